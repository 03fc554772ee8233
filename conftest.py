import pytest

SETTINGS_ENVIRON = [
    'AzureWebJobsStorage',
    'STORAGE_ACCOUNT_URL',
    'SOURCE_CONTAINER',
    'THUMBNAIL_CONTAINER',
    'THUMBNAIL_WIDTH',
    'THUMBNAIL_FIT_MODE',
    'THUMBNAIL_ALLOW_UPSCALE',
    'THUMBNAIL_QUALITY',
]


@pytest.fixture(autouse=True)
def clean_environ(monkeypatch):
    # Settings read the process environment, keep the developer's out of the tests.
    for key in SETTINGS_ENVIRON:
        monkeypatch.delenv(key, raising=False)

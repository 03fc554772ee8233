import pytest

from image_resizer.core.models import FitMode, ThumbnailSpec
from image_resizer.settings import ImproperlyConfigured, Settings

CONNECTION_STRING = 'DefaultEndpointsProtocol=https;AccountName=gcollection;AccountKey=a2V5;'


@pytest.fixture
def environ(monkeypatch):
    def set_environ(values):
        for key, value in values.items():
            monkeypatch.setenv(key, value)
    return set_environ


def test_defaults(environ):
    environ({'AzureWebJobsStorage': CONNECTION_STRING})

    settings = Settings.from_environ()

    assert settings.connection_string == CONNECTION_STRING
    assert settings.source_container == 'uploads'
    assert settings.thumbnail_container == 'thumbnails'
    assert settings.thumbnail == ThumbnailSpec(max_width=128, fit_mode=FitMode.WIDTH, allow_upscale=True)


def test_all_values(environ):
    environ({
        'STORAGE_ACCOUNT_URL': 'https://gcollection.blob.core.windows.net',
        'SOURCE_CONTAINER': 'card-high-res-images',
        'THUMBNAIL_CONTAINER': 'card-thumbnails',
        'THUMBNAIL_WIDTH': ' 100 ',
        'THUMBNAIL_FIT_MODE': 'MAX',
        'THUMBNAIL_ALLOW_UPSCALE': 'no',
        'THUMBNAIL_QUALITY': '85',
    })

    settings = Settings.from_environ()

    assert settings.connection_string == ''
    assert settings.storage_account_url == 'https://gcollection.blob.core.windows.net'
    assert settings.source_container == 'card-high-res-images'
    assert settings.thumbnail_container == 'card-thumbnails'
    assert settings.thumbnail == ThumbnailSpec(max_width=100, fit_mode=FitMode.MAX, allow_upscale=False, quality=85)


def test_empty_quality_means_encoder_default(environ):
    environ({'AzureWebJobsStorage': CONNECTION_STRING, 'THUMBNAIL_QUALITY': ''})

    assert Settings.from_environ().thumbnail.quality is None


def test_keyword_arguments_use_field_names():
    settings = Settings(connection_string='UseDevelopmentStorage=true', thumbnail_width=64)

    assert settings.thumbnail.max_width == 64
    assert settings.source_container == 'uploads'


@pytest.mark.parametrize('values', [
    {},
    {'AzureWebJobsStorage': '  '},
    {'AzureWebJobsStorage': CONNECTION_STRING, 'THUMBNAIL_WIDTH': 'wide'},
    {'AzureWebJobsStorage': CONNECTION_STRING, 'THUMBNAIL_WIDTH': '0'},
    {'AzureWebJobsStorage': CONNECTION_STRING, 'THUMBNAIL_WIDTH': '-128'},
    {'AzureWebJobsStorage': CONNECTION_STRING, 'THUMBNAIL_FIT_MODE': 'crop'},
    {'AzureWebJobsStorage': CONNECTION_STRING, 'THUMBNAIL_ALLOW_UPSCALE': 'maybe'},
    {'AzureWebJobsStorage': CONNECTION_STRING, 'THUMBNAIL_QUALITY': 'high'},
    {'AzureWebJobsStorage': CONNECTION_STRING, 'THUMBNAIL_QUALITY': '100'},
    {'AzureWebJobsStorage': CONNECTION_STRING, 'THUMBNAIL_CONTAINER': 'uploads'},
    {'AzureWebJobsStorage': CONNECTION_STRING, 'SOURCE_CONTAINER': ''},
])
def test_invalid_environment(environ, values):
    environ(values)

    with pytest.raises(ImproperlyConfigured):
        Settings.from_environ()

import pytest

from image_resizer.core.events import BLOB_CREATED, parse_blob_created
from image_resizer.core.exceptions import InvalidEvent, UnsupportedEvent

ACCOUNT = 'https://gcollection.blob.core.windows.net'


def test_parse_blob_created():
    locator = parse_blob_created(BLOB_CREATED, {'url': f'{ACCOUNT}/uploads/cat.jpg', 'api': 'PutBlob'})

    assert locator.container == 'uploads'
    assert locator.name == 'cat.jpg'
    assert locator.url == f'{ACCOUNT}/uploads/cat.jpg'


def test_parse_keeps_virtual_directories_and_decodes_name():
    locator = parse_blob_created(BLOB_CREATED, {'url': f'{ACCOUNT}/uploads/2024/holiday%20pics/beach%2B1.png'})

    assert locator.container == 'uploads'
    assert locator.name == '2024/holiday pics/beach+1.png'


def test_other_event_types_are_unsupported():
    with pytest.raises(UnsupportedEvent) as excinfo:
        parse_blob_created('Microsoft.Storage.BlobDeleted', {'url': f'{ACCOUNT}/uploads/cat.jpg'})

    assert excinfo.value.event_type == 'Microsoft.Storage.BlobDeleted'


@pytest.mark.parametrize('data', [
    {},
    {'url': ''},
    {'url': None},
    {'url': 42},
    {'url': ACCOUNT},
    {'url': f'{ACCOUNT}/'},
    {'url': f'{ACCOUNT}/uploads'},
    {'url': f'{ACCOUNT}/uploads/'},
    {'url': f'{ACCOUNT}/uploads/folder/'},
    None,
    'https://gcollection.blob.core.windows.net/uploads/cat.jpg',
])
def test_invalid_payloads(data):
    with pytest.raises(InvalidEvent):
        parse_blob_created(BLOB_CREATED, data)

import io
import logging
from unittest import mock

import pytest
from azure.core.exceptions import HttpResponseError, ResourceNotFoundError
from PIL import Image

from image_resizer.core.events import BLOB_CREATED
from image_resizer.core.models import BlobLocator
from image_resizer.core.pipeline import Outcome, handle_event, resize_blob
from image_resizer.settings import Settings

ACCOUNT = 'https://gcollection.blob.core.windows.net'


def jpeg(size=(800, 600)):
    buffer = io.BytesIO()
    Image.new('RGB', size, 'blue').save(buffer, format='JPEG')
    return buffer.getvalue()


def make_settings(**kwargs):
    return Settings(connection_string='UseDevelopmentStorage=true', **kwargs)


def make_client(source=b'', download_error=None):
    """BlobServiceClient stand-in that hands out one blob client per (container, blob)."""
    blob_clients = {}

    def get_blob_client(container, blob):
        if (container, blob) not in blob_clients:
            blob_client = mock.MagicMock(name=f'{container}/{blob}')
            if download_error is not None:
                blob_client.download_blob.side_effect = download_error
            else:
                blob_client.download_blob.return_value.readall.return_value = source
            blob_clients[(container, blob)] = blob_client
        return blob_clients[(container, blob)]

    client = mock.MagicMock()
    client.get_blob_client.side_effect = get_blob_client
    client.blob_clients = blob_clients
    return client


def uploaded(client, container, blob):
    blob_client = client.blob_clients[(container, blob)]
    blob_client.upload_blob.assert_called_once()
    return blob_client.upload_blob.call_args


def test_resize_blob_uploads_thumbnail_under_same_name():
    client = make_client(jpeg())

    thumbnail = resize_blob(client, BlobLocator('uploads', 'cats/cat.jpg'), make_settings())

    assert (thumbnail.dimensions.width, thumbnail.dimensions.height) == (128, 96)
    args, kwargs = uploaded(client, 'thumbnails', 'cats/cat.jpg')
    assert args[0] == thumbnail.data
    assert kwargs['overwrite'] is True
    assert kwargs['content_settings'].content_type == 'image/jpeg'
    assert kwargs['content_settings'].cache_control == 'public, max-age=86400'
    assert Image.open(io.BytesIO(args[0])).size == (128, 96)


def test_resize_blob_uses_configured_spec():
    client = make_client(jpeg((600, 800)))
    settings = make_settings(thumbnail_container='small', thumbnail_width=60)

    thumbnail = resize_blob(client, BlobLocator('uploads', 'tall.jpg'), settings)

    assert (thumbnail.dimensions.width, thumbnail.dimensions.height) == (60, 80)
    uploaded(client, 'small', 'tall.jpg')


def test_handle_event_resizes_new_upload(caplog):
    client = make_client(jpeg())

    with caplog.at_level(logging.INFO):
        outcome = handle_event(client, BLOB_CREATED, {'url': f'{ACCOUNT}/uploads/dog.png'}, make_settings())

    assert outcome is Outcome.RESIZED
    uploaded(client, 'thumbnails', 'dog.png')
    assert 'Successfully resized and uploaded uploads/dog.png' in caplog.text


def test_handle_event_skips_other_event_types():
    client = make_client(jpeg())

    outcome = handle_event(client, 'Microsoft.Storage.BlobDeleted', {'url': f'{ACCOUNT}/uploads/dog.png'},
                           make_settings())

    assert outcome is Outcome.SKIPPED
    client.get_blob_client.assert_not_called()


@pytest.mark.parametrize('url', [f'{ACCOUNT}/thumbnails/dog.png', f'{ACCOUNT}/other/dog.png'])
def test_handle_event_skips_blobs_outside_source_container(url):
    client = make_client(jpeg())

    outcome = handle_event(client, BLOB_CREATED, {'url': url}, make_settings())

    assert outcome is Outcome.SKIPPED
    client.get_blob_client.assert_not_called()


def test_handle_event_drops_malformed_event(caplog):
    client = make_client(jpeg())

    outcome = handle_event(client, BLOB_CREATED, {'api': 'PutBlob'}, make_settings())

    assert outcome is Outcome.FAILED
    assert any(record.levelno == logging.ERROR for record in caplog.records)
    client.get_blob_client.assert_not_called()


def test_handle_event_logs_and_drops_undecodable_image(caplog):
    client = make_client(b'plain text, not a picture')

    outcome = handle_event(client, BLOB_CREATED, {'url': f'{ACCOUNT}/uploads/notes.jpg'}, make_settings())

    assert outcome is Outcome.FAILED
    assert ('thumbnails', 'notes.jpg') not in client.blob_clients
    errors = [record for record in caplog.records if record.levelno == logging.ERROR]
    assert errors and errors[0].exc_info is not None
    assert 'Could not decode source image' in errors[0].getMessage()


def test_handle_event_skips_deleted_blob(caplog):
    client = make_client(download_error=ResourceNotFoundError('The specified blob does not exist.'))

    outcome = handle_event(client, BLOB_CREATED, {'url': f'{ACCOUNT}/uploads/gone.jpg'}, make_settings())

    assert outcome is Outcome.SKIPPED
    assert 'was deleted before it could be resized' in caplog.text


def test_handle_event_propagates_storage_errors():
    client = make_client(download_error=HttpResponseError('Server busy'))

    with pytest.raises(HttpResponseError):
        handle_event(client, BLOB_CREATED, {'url': f'{ACCOUNT}/uploads/busy.jpg'}, make_settings())


def test_handle_event_propagates_upload_errors():
    client = make_client(jpeg())
    client.get_blob_client(container='thumbnails', blob='cat.jpg').upload_blob.side_effect = \
        HttpResponseError('Forbidden')

    with pytest.raises(HttpResponseError):
        handle_event(client, BLOB_CREATED, {'url': f'{ACCOUNT}/uploads/cat.jpg'}, make_settings())

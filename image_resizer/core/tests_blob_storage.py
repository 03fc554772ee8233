from unittest import mock

from image_resizer.core import blob_storage
from image_resizer.core.models import BlobLocator
from image_resizer.settings import Settings


def test_client_from_connection_string():
    settings = Settings(connection_string='UseDevelopmentStorage=true')

    with mock.patch.object(blob_storage, 'BlobServiceClient') as service_client:
        client = blob_storage.create_blob_service_client(settings)

    service_client.from_connection_string.assert_called_once_with('UseDevelopmentStorage=true')
    assert client is service_client.from_connection_string.return_value


def test_client_with_managed_identity():
    settings = Settings(storage_account_url='https://gcollection.blob.core.windows.net')

    with mock.patch.object(blob_storage, 'BlobServiceClient') as service_client, \
            mock.patch.object(blob_storage, 'DefaultAzureCredential') as credential:
        blob_storage.create_blob_service_client(settings)

    service_client.assert_called_once_with(account_url='https://gcollection.blob.core.windows.net',
                                           credential=credential.return_value)
    service_client.from_connection_string.assert_not_called()


def test_thumbnail_locator_keeps_name():
    settings = Settings(connection_string='x', thumbnail_container='card-thumbnails')

    locator = blob_storage.thumbnail_locator(BlobLocator('uploads', 'a/b.jpg', url='https://x/uploads/a/b.jpg'),
                                             settings)

    assert locator == BlobLocator('card-thumbnails', 'a/b.jpg')


def test_download_blob_reads_whole_blob():
    client = mock.MagicMock()
    client.get_blob_client.return_value.download_blob.return_value.readall.return_value = b'\xff\xd8'

    assert blob_storage.download_blob(client, BlobLocator('uploads', 'cat.jpg')) == b'\xff\xd8'
    client.get_blob_client.assert_called_once_with(container='uploads', blob='cat.jpg')

import logging

from azure.identity import DefaultAzureCredential
from azure.storage.blob import BlobServiceClient, ContentSettings

from image_resizer.settings import Settings
from .models import BlobLocator, ThumbnailImage

logger = logging.getLogger(__name__)

THUMBNAIL_CACHE_CONTROL = 'public, max-age=86400'


def create_blob_service_client(settings: Settings) -> BlobServiceClient:
    if settings.connection_string:
        return BlobServiceClient.from_connection_string(settings.connection_string)

    # Authenticate with managed identity
    logger.info(f'Connecting to {settings.storage_account_url} with DefaultAzureCredential')
    return BlobServiceClient(account_url=settings.storage_account_url, credential=DefaultAzureCredential())


def download_blob(blob_service_client: BlobServiceClient, locator: BlobLocator) -> bytes:
    blob_client = blob_service_client.get_blob_client(container=locator.container, blob=locator.name)
    return blob_client.download_blob().readall()


def thumbnail_locator(source: BlobLocator, settings: Settings) -> BlobLocator:
    return BlobLocator(container=settings.thumbnail_container, name=source.name)


def upload_thumbnail(blob_service_client: BlobServiceClient, locator: BlobLocator, thumbnail: ThumbnailImage):
    blob_client = blob_service_client.get_blob_client(container=locator.container, blob=locator.name)
    blob_client.upload_blob(
        thumbnail.data,
        overwrite=True,
        content_settings=ContentSettings(content_type=thumbnail.content_type,
                                         cache_control=THUMBNAIL_CACHE_CONTROL),
    )

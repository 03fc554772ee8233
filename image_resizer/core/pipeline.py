"""
Resize pipeline run for each Event Grid notification.

Decides what happens to a failure: bad input is logged and dropped, because a
redelivery would fail the same way, while storage errors propagate so that the
Functions host reports the invocation as failed and Event Grid retries it.
"""

import enum
import logging
from typing import Any, Mapping

from azure.core.exceptions import ResourceNotFoundError
from azure.storage.blob import BlobServiceClient

from image_resizer.settings import Settings
from .blob_storage import download_blob, thumbnail_locator, upload_thumbnail
from .exceptions import InvalidEvent, ThumbnailError, UnsupportedEvent
from .events import parse_blob_created
from .models import BlobLocator, ThumbnailImage
from .thumbnail import generate

logger = logging.getLogger(__name__)


class Outcome(enum.Enum):
    RESIZED = 'resized'
    SKIPPED = 'skipped'
    FAILED = 'failed'


def resize_blob(blob_service_client: BlobServiceClient, locator: BlobLocator,
                settings: Settings) -> ThumbnailImage:
    source = download_blob(blob_service_client, locator)
    logger.info(f'Downloaded {locator} ({len(source)} bytes)')

    thumbnail = generate(source, settings.thumbnail)

    destination = thumbnail_locator(locator, settings)
    logger.info(f'Uploading resized thumbnail {thumbnail.dimensions} to {destination}')
    upload_thumbnail(blob_service_client, destination, thumbnail)
    return thumbnail


def handle_event(blob_service_client: BlobServiceClient, event_type: str, data: Mapping[str, Any],
                 settings: Settings) -> Outcome:
    try:
        locator = parse_blob_created(event_type, data)
    except UnsupportedEvent as exc:
        logger.info(f'Ignoring event: {exc}')
        return Outcome.SKIPPED
    except InvalidEvent as exc:
        logger.error(f'Dropping event: {exc}')
        return Outcome.FAILED

    if locator.container == settings.thumbnail_container:
        logger.info(f'Ignoring {locator}, it is a thumbnail')
        return Outcome.SKIPPED
    if locator.container != settings.source_container:
        logger.info(f'Ignoring {locator}, not in container "{settings.source_container}"')
        return Outcome.SKIPPED

    logger.info(f'New blob detected: {locator}')
    try:
        resize_blob(blob_service_client, locator, settings)
    except ResourceNotFoundError:
        logger.warning(f'Blob {locator} was deleted before it could be resized')
        return Outcome.SKIPPED
    except ThumbnailError as exc:
        logger.exception(f'An error occurred during image resizing of {locator}: {exc}')
        return Outcome.FAILED

    logger.info(f'Successfully resized and uploaded {locator}')
    return Outcome.RESIZED

from typing import Any, Mapping
from urllib.parse import unquote, urlparse

from .exceptions import InvalidEvent, UnsupportedEvent
from .models import BlobLocator

BLOB_CREATED = 'Microsoft.Storage.BlobCreated'


def parse_blob_created(event_type: str, data: Mapping[str, Any]) -> BlobLocator:
    """
    Extract the locator of a new blob from an Event Grid BlobCreated event.

    The blob url has the form https://<account>.blob.core.windows.net/<container>/<name>,
    where <name> may contain virtual directories and is percent-encoded.
    """
    if event_type != BLOB_CREATED:
        raise UnsupportedEvent(event_type)
    if not isinstance(data, Mapping):
        raise InvalidEvent(f'data must be an object, got {type(data).__name__}')

    url = data.get('url')
    if not url or not isinstance(url, str):
        raise InvalidEvent('"url" is missing')

    path = urlparse(url).path.lstrip('/')
    container, _, name = path.partition('/')
    if not container:
        raise InvalidEvent(f'no container in url {url}')
    if not name or name.endswith('/'):
        raise InvalidEvent(f'no blob name in url {url}')

    return BlobLocator(container=container, name=unquote(name), url=url)

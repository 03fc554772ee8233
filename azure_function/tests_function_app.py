import datetime
import importlib
import logging
import sys
from unittest import mock

import azure.functions as func
import pytest

from image_resizer.core import blob_storage
from image_resizer.core.events import BLOB_CREATED
from image_resizer.core.pipeline import Outcome

CONNECTION_STRING = 'UseDevelopmentStorage=true'
BLOB_URL = 'https://gcollection.blob.core.windows.net/uploads/cat.jpg'


@pytest.fixture
def function_app(monkeypatch):
    monkeypatch.setenv('AzureWebJobsStorage', CONNECTION_STRING)
    client = mock.MagicMock(name='BlobServiceClient')
    create_client = mock.Mock(return_value=client)
    monkeypatch.setattr(blob_storage, 'create_blob_service_client', create_client)
    monkeypatch.delitem(sys.modules, 'function_app', raising=False)

    module = importlib.import_module('function_app')
    yield module
    sys.modules.pop('function_app', None)


def make_event(event_type=BLOB_CREATED, url=BLOB_URL):
    return func.EventGridEvent(
        id='831e1650-001e-001b-66ab-eeb76e069631',
        data={'api': 'PutBlob', 'contentType': 'image/jpeg', 'url': url},
        topic='/subscriptions/x/resourceGroups/rg/providers/Microsoft.Storage/storageAccounts/gcollection',
        subject='/blobServices/default/containers/uploads/blobs/cat.jpg',
        event_type=event_type,
        event_time=datetime.datetime(2024, 3, 1, 12, 0, tzinfo=datetime.timezone.utc),
        data_version='',
    )


def resize_image(module):
    for function in module.app.get_functions():
        if function.get_function_name() == 'ResizeImage':
            return function.get_user_function()
    raise AssertionError('ResizeImage is not registered')


def test_settings_and_client_are_created_at_import(function_app):
    assert function_app.settings.connection_string == CONNECTION_STRING
    assert function_app.settings.thumbnail.max_width == 128
    blob_storage.create_blob_service_client.assert_called_once_with(function_app.settings)
    assert function_app.blob_service_client is blob_storage.create_blob_service_client.return_value


def test_resize_image_hands_event_to_pipeline(function_app, caplog):
    event = make_event()

    with mock.patch.object(function_app, 'handle_event', return_value=Outcome.RESIZED) as handle_event, \
            caplog.at_level(logging.INFO):
        resize_image(function_app)(event)

    handle_event.assert_called_once_with(function_app.blob_service_client, BLOB_CREATED, event.get_json(),
                                         function_app.settings)
    assert f'Event Type: {BLOB_CREATED}, Subject: /blobServices/default/containers/uploads/blobs/cat.jpg' \
        in caplog.text
    assert 'Event 831e1650-001e-001b-66ab-eeb76e069631 resized' in caplog.text


def test_resize_image_logs_skipped_events(function_app, caplog):
    with caplog.at_level(logging.INFO):
        resize_image(function_app)(make_event(event_type='Microsoft.Storage.BlobDeleted'))

    assert 'Event 831e1650-001e-001b-66ab-eeb76e069631 skipped' in caplog.text
    function_app.blob_service_client.get_blob_client.assert_not_called()

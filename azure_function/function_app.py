import azure.functions as func
import logging

from image_resizer.core.blob_storage import create_blob_service_client
from image_resizer.core.pipeline import handle_event
from image_resizer.settings import Settings

app = func.FunctionApp()

# Created once per worker process and shared by all invocations.
settings = Settings.from_environ()
blob_service_client = create_blob_service_client(settings)


@app.event_grid_trigger(arg_name="event")
def ResizeImage(event: func.EventGridEvent):
    logging.info("Python EventGrid trigger function processed an event.")
    logging.info(f"Event Type: {event.event_type}, Subject: {event.subject}")

    outcome = handle_event(blob_service_client, event.event_type, event.get_json(), settings)
    logging.info(f"Event {event.id} {outcome.value}")

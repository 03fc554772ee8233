class ImageResizerError(Exception):
    pass


class ThumbnailError(ImageResizerError):
    """
    Raised by the thumbnail generator. Retrying with the same input never helps.
    """


class InvalidSpec(ThumbnailError):
    def __init__(self, details=''):
        super().__init__(f'Invalid thumbnail spec: {details}')


class DecodeFailed(ThumbnailError):
    def __init__(self, details=''):
        super().__init__(f'Could not decode source image: {details}')


class EncodeFailed(ThumbnailError):
    def __init__(self, details=''):
        super().__init__(f'Could not encode thumbnail: {details}')


class EventError(ImageResizerError):
    pass


class UnsupportedEvent(EventError):
    def __init__(self, event_type=''):
        super().__init__(f'Unsupported event type: {event_type}')
        self.event_type = event_type


class InvalidEvent(EventError):
    def __init__(self, details=''):
        super().__init__(f'Invalid event payload: {details}')

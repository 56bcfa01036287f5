from typing import Any


class DeliveryError(Exception):
    """
    Failure raised before the response starts.
    Carries the HTTP status and the i18n key used to render the message.
    """
    status_code = 500
    message_key = "error.server_error"

    def __init__(self, reason: str = "", message_key: str = None, **params: Any):
        super().__init__(reason or self.message_key)
        self.reason = reason
        if message_key:
            self.message_key = message_key
        self.params = params


class InvalidInput(DeliveryError):
    status_code = 400
    message_key = "error.invalid_url"


class UnsupportedFormat(DeliveryError):
    status_code = 400
    message_key = "error.unsupported_format"


class UpstreamFetchFailure(DeliveryError):
    status_code = 500
    message_key = "error.fetch_failed"


class TranscodeFailure(DeliveryError):
    status_code = 500
    message_key = "error.merge_failed"


class StreamingFailure(DeliveryError):
    """Raised or logged after headers are flushed; never becomes a status."""
    message_key = "error.streaming_failed"

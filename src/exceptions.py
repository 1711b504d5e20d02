"""Errors raised by the canvas synchronization layer."""


class CanvasError(Exception):
    """Base class for canvas errors."""


class MalformedMessageError(CanvasError):
    """Inbound payload is not a well-formed, known message. The message is dropped."""


class TransportFailureError(CanvasError):
    """Sending to a single connection failed. Only that connection is affected."""

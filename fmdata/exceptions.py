"""FMData client exceptions."""


class FMDataError(Exception):
    """Base exception for FMData errors."""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code


class InvalidRequestError(FMDataError):
    """Request is missing routing information such as the layout."""

    pass


class ConstructionError(FMDataError):
    """Target record type cannot be built with no arguments."""

    pass


class SerializationError(FMDataError):
    """A value cannot be represented in the wire format."""

    pass


class RemoteError(FMDataError):
    """Data API answered with a non-success status."""

    pass


class ConnectionError(FMDataError):
    """Failed to reach the Data API."""

    pass

class RelayError(Exception):
    status_code = 500


class InvalidRequest(RelayError):
    status_code = 400


class NotFound(RelayError):
    status_code = 404


class UpstreamError(RelayError):
    """Upstream call failed, returned a non-2xx status, or sent an unreadable body."""

    def __init__(self, message: str, status: int = 0):
        super().__init__(message)
        self.status = status


class StorageError(RelayError):
    pass


class ConfigurationError(RelayError):
    pass

"""
errors.py — Error taxonomy for almanac.

Every public operation surfaces failures as one of these, each carrying a
single human-readable message. ``http_status`` is used by the controllers.
"""


class AlmanacError(Exception):
    http_status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFound(AlmanacError):
    """The path does not exist."""
    http_status = 404


class AccessError(AlmanacError):
    """stat/read was denied, or the existence check itself failed."""
    http_status = 403


class NotAFile(AlmanacError):
    """A directory was given where a regular file is required."""
    http_status = 422


class UnsupportedType(AlmanacError):
    """The MIME type is not eligible for thumbnailing."""
    http_status = 422


class DerivationFailed(AlmanacError):
    """The transcoder could not be spawned."""


class StoreError(AlmanacError):
    """The view-counter store could not be persisted."""


class LaunchError(AlmanacError):
    """The default application handler could not be started."""

"""
Error taxonomy shared by the store, the scanner and both control surfaces.

Every error carries a message that is safe to show to the user; the local
surface turns it into a notification and the remote surface into a JSON
error body.
"""


class KPlayerError(Exception):
    """Base class for all recoverable KPlayer errors."""

    title = "Error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(KPlayerError):
    """Input had the wrong shape, type or range."""


class InvalidNameError(ValidationError):
    """A playlist name was empty after trimming."""


class NotFoundError(KPlayerError):
    """A playlist (or other keyed entity) does not exist."""


class SongNotFoundError(NotFoundError):
    """A song is not part of the given playlist."""


class ConflictError(KPlayerError):
    """The target name is already taken."""


class DuplicateError(KPlayerError):
    """The song is already part of the playlist."""


class PersistenceError(KPlayerError):
    """Reading or writing a state file failed."""


class ScanError(KPlayerError):
    """The library directory could not be listed."""


class MetadataError(KPlayerError):
    """A single file's metadata could not be read."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path

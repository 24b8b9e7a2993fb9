"""Error kinds shared by the store backends and the box layer."""


class StoreBoxError(Exception):
    """Base class for every error raised by storebox."""


class BackendUnavailable(StoreBoxError):
    """A load/save/remove failed at the storage layer."""


class EntryNotFound(BackendUnavailable):
    """Nothing is stored under the requested key."""


class DeserializationFailure(StoreBoxError, ValueError):
    """Stored bytes could not be decoded."""


class EncodeFailure(StoreBoxError, ValueError):
    """A value could not be serialized for storage."""

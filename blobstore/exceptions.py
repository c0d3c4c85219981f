class StorageError(Exception):
    """The blob store could not complete a read or write."""

    def __init__(self, message, key=None):
        super().__init__(message)
        self.key = key


class WriteConflict(StorageError):
    """A conditional write lost against a concurrent writer."""

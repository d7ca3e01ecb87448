class NotFoundError(ValueError):
    """Referenced row does not exist (or is not visible to the caller)."""


class ConflictError(ValueError):
    """Operation is not allowed in the entity's current state."""


class StorageError(RuntimeError):
    """Receipt object store rejected or failed a write."""

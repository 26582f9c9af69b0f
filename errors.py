"""Crowd Pick – error types shared by the storage, recorder and API layers."""


class CrowdPickError(Exception):
    """Base class for errors raised by Crowd Pick."""


class ValidationError(CrowdPickError):
    """A required field is missing or malformed. Nothing was recorded."""


class StorageUnavailable(CrowdPickError):
    """The storage backend could not be reached or queried. Safe to retry."""

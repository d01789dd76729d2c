"""Persistence-related exceptions."""


class PersistenceError(Exception):
    """Base exception for persistence-related errors."""


class SerializationError(PersistenceError):
    """A stored history or entity blob could not be decoded."""

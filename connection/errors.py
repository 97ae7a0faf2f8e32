"""Connection lifecycle errors."""


class PersistenceError(Exception):
    """Session could not be written to durable storage."""
    pass


class InvalidTransition(Exception):
    """A state change was attempted along an edge the state machine does not have."""
    pass

"""Exceptions raised on the library boundary."""


class GraphError(Exception):
    """Base exception for relationship graph operations."""
    pass


class InvalidKindFilterError(GraphError, ValueError):
    """Raised when a kind filter or collection name is not recognised."""
    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Unknown node kind '{value}'")


class SourcesNotReadyError(GraphError):
    """Raised when a rebuild is forced before every collection was delivered."""
    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Collections not delivered yet: {', '.join(missing)}")

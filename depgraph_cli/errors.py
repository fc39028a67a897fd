"""Exception types raised by the graph engine and its collaborators."""

from __future__ import annotations

from typing import Optional


class DepGraphError(Exception):
    """Base class for all dependency-graph errors."""


class EntityNotFound(DepGraphError):
    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"Entity '{entity_id}' not found in graph")


class MalformedEntityId(DepGraphError):
    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"Invalid entity ID format: {entity_id}")


class GraphLoadFailure(DepGraphError):
    """Snapshot bytes are missing or do not decode to a graph.

    The underlying exception, when there is one, is chained as ``__cause__``.
    """

    def __init__(self, message: str, location: Optional[str] = None):
        self.location = location
        super().__init__(message)


class GitError(DepGraphError):
    """A git command failed where the caller needed its output."""

"""Error taxonomy shared by the knowledge engine, the tool layer and the routes.

Routers translate these into HTTP status codes via :func:`http_status_for`;
the tool dispatcher turns them into ``isError`` result envelopes.
"""

from __future__ import annotations

import contextlib

from sqlalchemy.exc import SQLAlchemyError


class KnowledgeError(Exception):
    """Base class for every error surfaced to a tool caller."""


class ValidationInputError(KnowledgeError):
    """A required field is missing or malformed. The caller must fix the request."""


class NotFoundError(KnowledgeError):
    """A referenced series, book, chapter or character does not exist."""

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} with ID {entity_id} not found")


class InfrastructureError(KnowledgeError):
    """The storage layer failed. Not retried here."""


@contextlib.contextmanager
def storage_errors(operation: str):
    """Re-raise SQLAlchemy failures inside the block as ``InfrastructureError``."""
    try:
        yield
    except SQLAlchemyError as exc:
        raise InfrastructureError(f"Storage failure during {operation}: {exc}") from exc


_HTTP_STATUS = {
    ValidationInputError: 400,
    NotFoundError: 404,
    InfrastructureError: 503,
}


def http_status_for(exc: KnowledgeError) -> int:
    for cls, status in _HTTP_STATUS.items():
        if isinstance(exc, cls):
            return status
    return 500

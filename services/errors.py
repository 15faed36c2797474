"""Error taxonomy for the progress core.

Every failure raised by a service is a ``ProgressError`` subclass.  The
``kind`` attribute is the protocol-neutral classification; mapping it to an
HTTP status (or anything else) is left to the caller boundary.
"""

from typing import Any, Dict, Optional


class ProgressError(Exception):
    """Base class for all progress core failures."""

    kind = "internal"
    default_message = "Internal error"

    def __init__(
        self,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        self.context = context or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Return a structured, serializable description of the error."""
        payload: Dict[str, Any] = {"error": self.kind, "message": self.message}
        if self.context:
            payload["details"] = dict(self.context)
        return payload

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.kind}: {self.message}>"


class InvalidArgumentError(ProgressError):
    """Malformed identifier, missing required field or wrong value type."""

    kind = "invalid_argument"
    default_message = "Invalid argument"


class NotFoundError(ProgressError):
    """A referenced student, subject, chapter, short form or mock test is absent."""

    kind = "not_found"
    default_message = "Not found"


class ConflictError(ProgressError):
    """The write would repeat something that may only happen once."""

    kind = "conflict"
    default_message = "Conflict"


class InternalError(ProgressError):
    """The store failed; the original exception is chained as ``__cause__``."""

    kind = "internal"
    default_message = "Internal error"

"""Error types shared across pipeline stages."""


class ExternalServiceError(Exception):
    """A call to an external service failed or timed out.

    Transient by nature: the item is skipped for this run and picked up again
    by the next scheduled run.
    """

    def __init__(self, note: str, message: str | None = None):
        super().__init__(message or note)
        self.note = note


class EmbeddingError(ExternalServiceError):
    """The embedding provider could not produce a usable vector."""


class GenerationError(ExternalServiceError):
    """The text generator could not produce a candidate headline."""


class InvariantViolation(Exception):
    """A computed result broke a data-model invariant. Fatal for one item only."""

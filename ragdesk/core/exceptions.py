"""Exception types shared by services, workers and the API layer."""


class RagdeskError(Exception):
    """Base class for all application errors."""

    status_code: int = 500


class NotFoundError(RagdeskError):
    status_code = 404


class PermissionDeniedError(RagdeskError):
    status_code = 403


class InvalidUploadError(RagdeskError):
    status_code = 400


class ConflictError(RagdeskError):
    status_code = 409


class ConfigurationError(RagdeskError):
    """Raised for misconfiguration that no retry can fix."""


class EmbeddingDimensionError(ConfigurationError):
    """The embedding model returned a vector of the wrong size."""

    def __init__(self, expected: int, actual: int):
        super().__init__(
            f"Embedding model returned {actual} dimensions, expected {expected}. "
            "Check EMBEDDING_MODEL and EMBEDDING_DIMENSIONS."
        )
        self.expected = expected
        self.actual = actual


class EmbeddingError(RagdeskError):
    """An embedding call kept failing after all attempts."""

    status_code = 502


class ExtractionError(RagdeskError):
    """A file could not be converted to text."""


class InvalidStatusTransition(RagdeskError):
    """A file was asked to move to a lifecycle state it cannot reach."""

    status_code = 409


class ServiceUnavailableError(RagdeskError):
    """A backing service such as the job queue could not be reached."""

    status_code = 503


class InvalidJobMessage(RagdeskError):
    """A queued message does not describe a known job."""

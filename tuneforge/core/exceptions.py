"""Custom exceptions for TuneForge."""


class TuneForgeError(Exception):
    """Base exception for all TuneForge errors."""

    pass


class AuthenticationError(TuneForgeError):
    """Authentication failed."""

    pass


class AuthorizationError(TuneForgeError):
    """User not authorized for this action."""

    pass


class NotFoundError(TuneForgeError):
    """Resource not found."""

    pass


class AlreadyExistsError(TuneForgeError):
    """A uniqueness rule was violated."""

    pass


class ValidationError(TuneForgeError):
    """Validation failed."""

    pass


class ConcurrentModificationError(TuneForgeError):
    """The document changed between read and write."""

    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"{collection}/{doc_id} was modified concurrently")


class DependencyUnavailableError(TuneForgeError):
    """A backing service (Firestore, identity store) failed to respond."""

    def __init__(self, service: str, message: str):
        self.service = service
        super().__init__(f"{service}: {message}")

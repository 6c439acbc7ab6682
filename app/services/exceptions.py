class CatalogDomainError(Exception):
    """Base class for all catalog domain errors."""

class NotFoundError(CatalogDomainError):
    """Raised when an id does not resolve to a stored record."""

class InvalidReferenceError(CatalogDomainError):
    """Raised when a payload points at a related record that does not exist."""

    def __init__(self, message: str, field: str = None):
        super().__init__(message)
        self.field = field

class PublishReadinessError(CatalogDomainError):
    """Raised when a vehicle is moved to PUBLISHED with required fields still empty."""

    def __init__(self, missing_fields: list[str]):
        super().__init__("Cannot publish vehicle. Missing required fields")
        self.missing_fields = missing_fields

class DuplicateRegistrationError(CatalogDomainError):
    """Raised when another published used vehicle already carries the same plate and state."""

    def __init__(self, message: str, conflict: dict = None):
        super().__init__(message)
        self.conflict = conflict or {}

class SlugConflictError(CatalogDomainError):
    """Raised when the storage unique constraint rejects a slug the pre-check let through."""

    def __init__(self, message: str, conflict: dict = None):
        super().__init__(message)
        self.conflict = conflict or {}

class TaxonomyRenameLockedError(CatalogDomainError):
    """Raised when renaming a taxonomy entry that vehicles or service centers still use."""

class TaxonomyDuplicateNameError(CatalogDomainError):
    """Raised when a taxonomy name already exists in its scope."""

class DatabaseQueryError(CatalogDomainError):
    """Raised when a database query fails or returns unexpected results."""

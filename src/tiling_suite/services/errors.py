"""Custom service layer errors."""


class ServiceError(Exception):
    """Base error for service-layer failures."""


class ValidationError(ServiceError):
    """Raised when user input fails a business rule; nothing is changed."""


class NotFoundError(ServiceError):
    """Raised when an entity is not found."""


class ExportError(ServiceError):
    """Raised when a document export fails; no output file is left behind."""

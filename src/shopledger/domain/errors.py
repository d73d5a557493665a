class AppError(Exception):
    """Base app error."""


class ValidationError(AppError):
    pass


class DuplicateError(ValidationError):
    pass


class NotFoundError(AppError):
    pass


class InsufficientStockError(AppError):
    pass

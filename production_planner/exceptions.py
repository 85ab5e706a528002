class PlannerError(Exception):
    """Base exception for Production Planner errors."""

    def __init__(self, message=None, code=None, details=None):
        """Initialize the exception.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
        """
        self.message = message or "An error occurred in the Production Planner"
        self.code = code
        self.details = details
        super().__init__(self.message)

    def __str__(self):
        """String representation of the error."""
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def to_dict(self):
        """Convert the exception to a dictionary."""
        error_dict = {
            'error': self.__class__.__name__,
            'message': self.message,
        }

        if self.code:
            error_dict['code'] = self.code

        if self.details:
            error_dict['details'] = self.details

        return error_dict


class ConfigError(PlannerError):
    """Exception raised for configuration errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Configuration error"
        super().__init__(message, code, details)


class DatabaseError(PlannerError):
    """Exception raised for database-related errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Database error"
        super().__init__(message, code, details)


class ConstraintViolationError(DatabaseError):
    """Exception raised when the store rejects a write on an integrity
    constraint (unique, foreign key, check, not null)."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Constraint violation"
        super().__init__(message, code, details)


class StorageUnavailableError(DatabaseError):
    """Raised when a read or write against the store fails.

    The whole calculation or commit that hit it has been abandoned, so the
    caller may simply run it again.
    """

    retryable = True

    def __init__(self, message=None, code=None, details=None):
        message = message or "Storage unavailable"
        super().__init__(message, code, details)


class PlanCommitError(StorageUnavailableError):
    """Exception raised when a production plan could not be replaced."""

    def __init__(self, message=None, code=None, details=None, plan_date=None):
        message = message or "Production plan commit failed"
        self.plan_date = plan_date
        super().__init__(message, code, details)


class ValidationError(PlannerError):
    """Exception raised for data validation errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Validation error"
        super().__init__(message, code, details)


class DuplicateObservationError(ValidationError):
    """Exception raised when a sales observation already exists for a
    (product, date, time period) triple."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Sales observation already recorded"
        super().__init__(message, code or 'DUPLICATE', details)


class NotFoundError(PlannerError):
    """Exception raised when a requested resource is not found."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Resource not found"
        super().__init__(message, code, details)


class ForecastError(PlannerError):
    """Exception raised for forecasting-related errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Forecasting error"
        super().__init__(message, code, details)

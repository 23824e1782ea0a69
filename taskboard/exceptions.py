from functools import wraps
from typing import Any, Dict, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

class TaskboardException(Exception):
    """Base exception for the Taskboard application."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

        # Log the exception for monitoring
        logger.error(f"{self.__class__.__name__}: {message}", extra={"details": self.details})

class DatabaseError(TaskboardException):
    """Raised when database operations fail."""

    def __init__(self, operation: str, error: str):
        message = f"Database operation '{operation}' failed: {error}"
        details = {"operation": operation, "database_error": error}
        super().__init__(message, details)

class ConfigurationError(TaskboardException):
    """Raised when application or seeding configuration is invalid."""

    def __init__(self, setting: str, reason: str):
        message = f"Configuration error for '{setting}': {reason}"
        details = {"setting": setting, "reason": reason}
        super().__init__(message, details)

def handle_store_errors(operation: str):
    """Decorator that rolls back the session and converts SQLAlchemy failures to DatabaseError.

    The decorated callable must be a method on an object holding the session as ``self.db``.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            try:
                return func(self, *args, **kwargs)
            except TaskboardException:
                raise
            except SQLAlchemyError as e:
                self.db.rollback()
                raise DatabaseError(operation, str(e)) from e
        return wrapper
    return decorator

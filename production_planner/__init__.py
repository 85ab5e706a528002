from .config import config
from .db import db, session_scope
from .logging_setup import logger, get_logger
from .exceptions import (
    PlannerError, ValidationError, DuplicateObservationError,
    StorageUnavailableError, PlanCommitError, ForecastError
)

__all__ = [
    'config',
    'db',
    'session_scope',
    'logger',
    'get_logger',
    'PlannerError',
    'ValidationError',
    'DuplicateObservationError',
    'StorageUnavailableError',
    'PlanCommitError',
    'ForecastError'
]

import logging
import logging.handlers
from pathlib import Path
import traceback
from datetime import datetime

from production_planner.config import config

class Logger:
    """Logging manager for the Production Planner."""

    _instance = None
    _loggers = {}

    def __new__(cls):
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super(Logger, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize the logger if not already initialized."""
        if self._initialized:
            return

        self._log_config = config.log_config
        self._log_dir = Path(self._log_config['directory'])

        # Create log directory if it doesn't exist
        if self._log_config['file_output'] and not self._log_dir.exists():
            self._log_dir.mkdir(parents=True)

        # Set up global logging configuration
        self._configure_root_logger()

        # Application logger
        self._app_logger = self.get_logger('app')

        self._initialized = True

    def _level(self):
        level_name = self._log_config['level'].upper()
        return getattr(logging, level_name, logging.INFO)

    def _configure_root_logger(self):
        """Configure the root logger."""
        root_logger = logging.getLogger()
        root_logger.setLevel(self._level())

        # Remove existing handlers
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

        # Add console handler if enabled
        if self._log_config['console_output']:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(logging.Formatter(self._log_config['format']))
            root_logger.addHandler(console_handler)

    def get_logger(self, name):
        """Get a logger with the specified name.

        Args:
            name: Name of the logger

        Returns:
            Configured logger instance
        """
        if name in self._loggers:
            return self._loggers[name]

        # Create new logger
        logger = logging.getLogger(name)
        logger.setLevel(self._level())

        # Remove existing handlers to prevent duplicates
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)

        # Create log file handler with rotation
        if self._log_config['file_output']:
            log_file = self._log_dir / f"{name.split('.')[-1]}.log"
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=self._log_config['max_size_mb'] * 1024 * 1024,
                backupCount=self._log_config['backup_count']
            )
            file_handler.setFormatter(logging.Formatter(self._log_config['format']))
            logger.addHandler(file_handler)

        # Add console handler if enabled
        if self._log_config['console_output']:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(logging.Formatter(self._log_config['format']))
            logger.addHandler(console_handler)

        # Prevent propagation to root logger to avoid duplicates
        logger.propagate = False

        self._loggers[name] = logger
        return logger

    def log_exception(self, logger_name, exception, message=None):
        """Log an exception with stack trace.

        Args:
            logger_name: Logger name
            exception: Exception object
            message: Optional message to include
        """
        logger = self.get_logger(logger_name)

        if message:
            logger.error(f"{message}: {str(exception)}")
        else:
            logger.error(str(exception))

        logger.error(traceback.format_exc())

    @property
    def app_logger(self):
        """Get the application logger."""
        return self._app_logger

    def operation_start_log(self, operation_name, additional_info=None):
        """Log the start of a forecast or plan operation.

        Args:
            operation_name: Name of the operation
            additional_info: Optional additional information

        Returns:
            Dictionary with operation logging information
        """
        ops_logger = self.get_logger('operations')

        log_info = {
            'operation_name': operation_name,
            'start_time': datetime.now(),
            'additional_info': additional_info
        }

        ops_logger.info(f"Starting {operation_name}")
        if additional_info:
            ops_logger.info(f"Operation info: {additional_info}")

        return log_info

    def operation_end_log(self, log_info, success=True, result_info=None):
        """Log the end of a forecast or plan operation.

        Args:
            log_info: Dictionary returned by operation_start_log
            success: Whether the operation succeeded
            result_info: Optional result information
        """
        ops_logger = self.get_logger('operations')

        operation_name = log_info.get('operation_name', 'Unknown')
        duration = datetime.now() - log_info.get('start_time', datetime.now())

        if success:
            ops_logger.info(f"Completed {operation_name} in {duration}")
        else:
            ops_logger.error(f"Failed {operation_name} after {duration}")

        if result_info:
            ops_logger.info(f"Operation results: {result_info}")

# Global logger instance
logger = Logger()

def get_logger(name):
    """Get a logger with the specified name."""
    return logger.get_logger(name)

def log_exception(logger_name, exception, message=None):
    """Log an exception with stack trace."""
    logger.log_exception(logger_name, exception, message)

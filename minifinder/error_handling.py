import logging
from typing import Optional, Any, Dict
import traceback

class FinderError(Exception):
    """Base exception class for minifinder errors"""
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}

class PathNotFoundError(FinderError):
    """Raised when a virtual path or a file inside it cannot be resolved"""
    status_code = 404

class DuplicateNameError(FinderError):
    """Raised when a rename would clash with an existing sibling"""
    pass

class NameNotFoundError(FinderError):
    """Raised when the source of a rename does not exist"""
    pass

class InvalidNameError(FinderError):
    """Raised for names that cannot be used as a path segment"""
    status_code = 400

class FileOperationError(FinderError):
    """Raised when a disk operation on content or download files fails"""
    pass

def setup_logging(level: str = "INFO", log_file: Optional[str] = None):
    """Configure logging for the application"""
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )

def log_operation(logger: logging.Logger, operation: str, **kwargs):
    """Log an operation with its parameters"""
    logger.info(f"Operation: {operation} {kwargs}", extra={"parameters": kwargs})

def handle_error(logger: logging.Logger, error: Exception, operation: str) -> Dict[str, Any]:
    """Handle and log an error, return error response"""
    error_details = {
        "type": type(error).__name__,
        "message": str(error),
        "operation": operation,
        "status_code": getattr(error, "status_code", 500),
    }

    if isinstance(error, FinderError):
        error_details.update(error.details)

    if error_details["status_code"] >= 500:
        error_details["traceback"] = traceback.format_exc()
        logger.error(
            f"Error during {operation}: {str(error)}",
            extra={"error_details": error_details},
            exc_info=True
        )
    else:
        logger.info(f"Rejected {operation}: {str(error)}")

    return {
        "type": "error",
        "message": str(error),
        "details": error_details
    }

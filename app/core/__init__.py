"""Core infrastructure modules."""

from .security import get_current_user, get_current_user_optional
from .exceptions import VoloException, NotFoundError, UnauthorizedError
from .logging import setup_logging, get_logger

__all__ = [
    "get_current_user",
    "get_current_user_optional",
    "VoloException",
    "NotFoundError", 
    "UnauthorizedError",
    "setup_logging",
    "get_logger",
]

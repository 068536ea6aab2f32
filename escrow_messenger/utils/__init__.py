# Utilities Module
"""
Configuration and error handling. The message codec lives in
utils.message_handler and is imported from there directly.
"""

from .config import MessengerConfig, DEFAULT_CONFIG
from .error_handler import ErrorHandler, ErrorCode

__all__ = ['MessengerConfig', 'DEFAULT_CONFIG', 'ErrorHandler', 'ErrorCode']

# error_handler.py - Error taxonomy and centralized error logging
import logging
from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(Enum):
    # Certificate errors
    CERTIFICATE_INVALID = "TRU_001"
    CERTIFICATE_MALFORMED = "TRU_002"

    # Message authentication errors
    AUTHENTICATION_FAILED = "AUT_001"
    MESSAGE_FORMAT_INVALID = "AUT_002"
    UNSUPPORTED_VERSION = "AUT_003"

    # Session state errors
    SESSION_NOT_FOUND = "STA_001"
    IDENTITY_MISSING = "STA_002"
    CHAIN_KEY_MISSING = "STA_003"

    # Cryptographic errors
    DH_EXCHANGE_FAILED = "DHE_001"
    ENCRYPTION_FAILED = "ENC_001"

    # General errors
    INVALID_PARAMETER = "GEN_001"


class MessengerError(Exception):
    """Base exception for messenger operations"""
    def __init__(self, error_code: ErrorCode, message: str, details: Optional[Dict[str, Any]] = None):
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        super().__init__(f"{error_code.value}: {message}")


class TrustError(MessengerError):
    """A certificate could not be verified against the certificate authority"""
    pass


class AuthenticationError(MessengerError):
    """A message failed its integrity check and must not be treated as delivered"""
    pass


class ProtocolStateError(MessengerError):
    """An operation was invoked without the session state it needs"""
    pass


class CryptographicError(MessengerError):
    """Errors related to cryptographic operations outside message authentication"""
    pass


class ErrorHandler:
    """Centralized error logging and bookkeeping.

    Errors are logged and counted, never swallowed: callers re-raise after
    handing the error over.
    """

    def __init__(self, enable_logging=True, logger_name="EscrowMessenger"):
        self.enable_logging = enable_logging
        self.error_stats = {}
        self.logger = logging.getLogger(logger_name)

    def handle_error(self, error: Exception, context: str = "") -> Dict[str, Any]:
        """
        Log an error and return a summary of it
        """
        error_info = {
            'context': context,
            'error_type': type(error).__name__,
            'error_message': str(error),
        }

        if isinstance(error, MessengerError):
            error_info['error_code'] = error.error_code.value
            error_info['details'] = error.details

        error_type = type(error).__name__
        if error_type not in self.error_stats:
            self.error_stats[error_type] = 0
        self.error_stats[error_type] += 1

        if self.enable_logging:
            self.logger.error(f"Error in {context}: {error_info['error_message']}")
            if isinstance(error, MessengerError) and error.details:
                self.logger.error(f"Error details: {error.details}")

        return error_info

    def validate_parameter(self, param_name: str, param_value: Any,
                           expected_type: Optional[type] = None,
                           min_length: Optional[int] = None) -> None:
        """
        Validate parameters and raise MessengerError if invalid
        """
        if param_value is None:
            raise MessengerError(
                ErrorCode.INVALID_PARAMETER,
                f"Parameter {param_name} cannot be None"
            )

        if expected_type and not isinstance(param_value, expected_type):
            raise MessengerError(
                ErrorCode.INVALID_PARAMETER,
                f"Parameter {param_name} must be of type {expected_type.__name__}, got {type(param_value).__name__}"
            )

        if min_length and hasattr(param_value, '__len__') and len(param_value) < min_length:
            raise MessengerError(
                ErrorCode.INVALID_PARAMETER,
                f"Parameter {param_name} must have minimum length {min_length}, got {len(param_value)}"
            )

    def get_error_statistics(self) -> Dict[str, Any]:
        total_errors = sum(self.error_stats.values())
        return {
            'total_errors': total_errors,
            'error_counts': self.error_stats.copy(),
        }

    def reset_statistics(self):
        """Reset error statistics"""
        self.error_stats.clear()


# Convenience functions for common error scenarios
def create_trust_error(error_code: ErrorCode, message: str, details: Optional[Dict] = None) -> TrustError:
    return TrustError(error_code, message, details)

def create_auth_error(error_code: ErrorCode, message: str, details: Optional[Dict] = None) -> AuthenticationError:
    return AuthenticationError(error_code, message, details)

def create_state_error(error_code: ErrorCode, message: str, details: Optional[Dict] = None) -> ProtocolStateError:
    return ProtocolStateError(error_code, message, details)

def create_crypto_error(error_code: ErrorCode, message: str, details: Optional[Dict] = None) -> CryptographicError:
    return CryptographicError(error_code, message, details)

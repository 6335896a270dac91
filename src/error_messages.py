"""
Error definitions for the Sheet Change Digest
Provides readable error messages with a suggested solution for every failure category
"""

import json
import smtplib
from enum import Enum


class ErrorCategory(Enum):
    """Error category definitions"""

    INVALID_FORMAT = "invalid_format"
    INVALID_ARGUMENT = "invalid_argument"
    PERSISTENCE = "persistence"
    DELIVERY = "delivery"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


class ChangeDigestError(Exception):
    """Base exception class for change digest operations"""

    category = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        solution: str = "",
        original_error: Exception | None = None,
        category: ErrorCategory | None = None,
    ):
        if category is not None:
            self.category = category
        self.message = message
        self.solution = solution
        self.original_error = original_error
        super().__init__(self.get_formatted_message())

    def get_formatted_message(self) -> str:
        """Get formatted error message"""
        if self.solution:
            return f"{self.message} {self.solution}"
        return self.message


class InvalidFormatError(ChangeDigestError, ValueError):
    """A reference or range string does not match the expected grammar"""

    category = ErrorCategory.INVALID_FORMAT


class InvalidArgumentError(ChangeDigestError, ValueError):
    """A structurally valid call received an out-of-domain value"""

    category = ErrorCategory.INVALID_ARGUMENT


class PersistenceFailure(ChangeDigestError):
    """The property store could not be read or written"""

    category = ErrorCategory.PERSISTENCE


class DeliveryError(ChangeDigestError):
    """The notification transport failed to deliver the digest"""

    category = ErrorCategory.DELIVERY


class ConfigurationError(ChangeDigestError):
    """Required configuration is missing or inconsistent"""

    category = ErrorCategory.CONFIGURATION


def get_invalid_reference_error(reference: str) -> InvalidFormatError:
    """Generate invalid cell reference error message"""
    return InvalidFormatError(
        message=f"Invalid cell reference: '{reference}'.",
        solution="Use column letters followed by a row number, e.g. 'A1' or '$AB$42'.",
    )


def get_invalid_range_error(range_spec: str) -> InvalidFormatError:
    """Generate invalid range specifier error message"""
    return InvalidFormatError(
        message=f"Invalid range specifier: '{range_spec}'.",
        solution="Use a single cell ('B3'), a range ('A2:C3') or a row number ('5').",
    )


def get_persistence_error(
    original_error: Exception, operation: str = "access"
) -> PersistenceFailure:
    """Generate persistence error message"""
    if operation == "decode" or isinstance(original_error, json.JSONDecodeError):
        return PersistenceFailure(
            message="The stored pending-change data is corrupted and could not be decoded.",
            solution="Run 'init' to reset the ledger. Pending changes in the corrupted data are lost.",
            original_error=original_error,
        )
    return PersistenceFailure(
        message=f"Failed to {operation} the pending-change store.",
        solution="Please verify the store path is writable and retry the operation.",
        original_error=original_error,
    )


def get_uninitialized_ledger_error(key: str) -> PersistenceFailure:
    """Generate uninitialized ledger error message"""
    return PersistenceFailure(
        message=f"The change ledger '{key}' has not been initialized.",
        solution="Run 'init' once before recording or flushing changes.",
    )


def get_delivery_error(original_error: Exception) -> DeliveryError:
    """Generate delivery error message"""
    error_str = str(original_error).lower()

    if isinstance(original_error, smtplib.SMTPAuthenticationError):
        solution = "Please verify DIGEST_SMTP_USERNAME and DIGEST_SMTP_PASSWORD."
    elif isinstance(original_error, smtplib.SMTPRecipientsRefused):
        solution = "Please verify the addresses listed in DIGEST_RECIPIENTS."
    elif "timeout" in error_str or "timed out" in error_str:
        solution = "The notification server did not respond in time. Pending changes are kept and will be retried on the next run."
    else:
        solution = "Pending changes are kept and will be retried on the next run."

    return DeliveryError(
        message="Failed to deliver the change digest.",
        solution=solution,
        original_error=original_error,
    )


def get_configuration_error(original_error: Exception) -> ConfigurationError:
    """Generate configuration error message"""
    return ConfigurationError(
        message="There is a problem with the change digest configuration.",
        solution="Please check the environment variable settings and ensure all required configuration items are correctly set.",
        original_error=original_error,
    )


def get_unknown_error(original_error: Exception) -> ChangeDigestError:
    """Generate unknown error message"""
    return ChangeDigestError(
        message="An unexpected error occurred.",
        solution="Please check the logs for details.",
        original_error=original_error,
    )


def handle_digest_error(error: Exception, context: str = "") -> ChangeDigestError:
    """
    Classify errors raised while recording, flushing or delivering into digest error categories

    Args:
        error: The exception that occurred
        context: The context where the error occurred ("record", "store", "deliver", etc.)

    Returns:
        ChangeDigestError: Classified error with a suggested solution
    """
    if isinstance(error, ChangeDigestError):
        return error

    error_str = str(error).lower()

    # Classification by HTTP status code
    if hasattr(error, "response") and hasattr(error.response, "status_code"):
        return get_delivery_error(error)

    if isinstance(error, smtplib.SMTPException):
        return get_delivery_error(error)

    if isinstance(error, json.JSONDecodeError):
        return get_persistence_error(error, "decode")

    if isinstance(error, OSError):
        if context == "deliver":
            return get_delivery_error(error)
        return get_persistence_error(error)

    # Classification by error message content
    if any(
        keyword in error_str
        for keyword in ["config", "validation", "missing", "required"]
    ):
        return get_configuration_error(error)
    elif context == "deliver":
        return get_delivery_error(error)
    elif context == "store":
        return get_persistence_error(error)
    else:
        return get_unknown_error(error)

"""Exception hierarchy for MCeption.

Four categories mirror the failure domains of the server:

- StorageError: persistence failures and keyed lookups (not found, duplicates)
- ConfigurationError: invalid or conflicting server settings
- ValidationError: malformed input rejected before any state change
- NetworkError: reserved for the forwarding layer

Every exception carries a ``message``. ``str(exc)`` renders the category,
the kind and the message, e.g.
``Storage error: Resource not found: Agent with ID 'a' not found``.
"""


class MceptionError(Exception):
    """Base exception for all MCeption errors."""

    category: str = "MCeption"
    kind: str = "Error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.category} error: {self.kind}: {self.message}"


# Storage errors
class StorageError(MceptionError):
    """Errors related to data storage operations."""

    category = "Storage"
    kind = "Storage failure"


class StorageIOError(StorageError):
    """Raised when the underlying file system operation fails."""

    kind = "IO error"


class SerializationError(StorageError):
    """Raised when a document cannot be serialized or deserialized."""

    kind = "Serialization error"


class NotFoundError(StorageError):
    """Raised when a keyed resource does not exist."""

    kind = "Resource not found"


class AlreadyExistsError(StorageError):
    """Raised when a keyed resource is already present."""

    kind = "Resource already exists"


class CorruptionError(StorageError):
    """Raised when stored data is structurally inconsistent."""

    kind = "Data corruption detected"


# Configuration errors
class ConfigurationError(MceptionError):
    """Errors related to configuration management."""

    category = "Configuration"
    kind = "Configuration failure"


class InvalidConfigurationError(ConfigurationError):
    kind = "Invalid configuration"


class MissingRequiredFieldError(ConfigurationError):
    kind = "Missing required field"


class ConflictingSettingsError(ConfigurationError):
    kind = "Conflicting settings"


# Validation errors
class ValidationError(MceptionError):
    """Errors related to input validation."""

    category = "Validation"
    kind = "Validation failure"


class InvalidFormatError(ValidationError):
    """Raised when an identifier or document has an invalid shape."""

    kind = "Invalid format"


class ValueOutOfRangeError(ValidationError):
    kind = "Value out of range"


class RequiredFieldMissingError(ValidationError):
    kind = "Required field missing"


# Network errors
class NetworkError(MceptionError):
    """Errors related to network operations."""

    category = "Network"
    kind = "Network failure"


class ConnectionFailedError(NetworkError):
    kind = "Connection failed"


class NetworkTimeoutError(NetworkError):
    kind = "Operation timed out"


class InvalidUrlError(NetworkError):
    kind = "Invalid URL"

"""
Core exceptions for the QMD compatibility checker.

The hierarchy separates local input problems, which are detected before
anything is sent to the server, from failures on the remote side of the
job protocol.
"""


class QmdVerifyError(Exception):
    """Base exception for all component-specific errors."""
    pass


# --- Configuration Errors ---

class ConfigurationError(QmdVerifyError):
    """Raised when the server address or other settings are unusable."""
    pass


# --- Input Errors ---

class InputError(QmdVerifyError):
    """Raised for missing, unreadable or invalid local files."""
    pass


class InvalidFilterError(InputError):
    """Raised when a filter value cannot match anything the server knows."""
    pass


# --- Infrastructure Errors ---

class InfrastructureError(QmdVerifyError):
    """Base class for errors on the remote side of the job protocol."""
    pass


class TransportError(InfrastructureError):
    """Raised when a request cannot be sent or returns an opaque failure."""
    pass


class ServerError(InfrastructureError):
    """Raised when the server answers with a structured error body."""
    pass


class JobFailedError(ServerError):
    """Raised when a comparison job finishes with status 'error'."""
    pass


class ProtocolError(InfrastructureError):
    """
    Raised when a response violates the job protocol contract
    (empty job id, undecodable body, unknown status, missing results).
    """
    pass


class PollingTimeoutError(InfrastructureError):
    """Raised when a job does not reach a terminal status in time."""
    pass

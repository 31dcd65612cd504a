#!/usr/bin/env python3
# CUI // SP-CTI
"""ocidbtools Resilience — Structured Exception Hierarchy.

Errors raised by this package. Failures coming back from OCI itself
(oci.exceptions.ServiceError, request timeouts, auth errors) are NOT wrapped;
they propagate unchanged so callers can tell "resource gone"
(InvalidStateError) from "call failed".

Usage:
    from ocidbtools.resilience.errors import InvalidStateError

    try:
        props = provider.get_connection_properties(ocid)
    except InvalidStateError as exc:
        print(exc.resource_id, exc.lifecycle_state)
"""


class DbToolsError(Exception):
    """Base exception for all ocidbtools errors.

    Attributes:
        service: Name of the service that caused the error (e.g. "database_tools").
        retryable: Whether the caller should retry the operation.
    """

    def __init__(self, message: str, service: str = "", retryable: bool = False):
        super().__init__(message)
        self.service = service
        self.retryable = retryable


class DbToolsTransientError(DbToolsError):
    """Transient error — the operation may succeed later.

    Examples: a lifecycle transition that has not settled yet.
    """

    def __init__(self, message: str, service: str = "", retryable: bool = True):
        super().__init__(message, service=service, retryable=retryable)


class DbToolsPermanentError(DbToolsError):
    """Permanent error — retrying will not help.

    Examples: deleted connection, unsupported connection type, bad config.
    """

    def __init__(self, message: str, service: str = "", retryable: bool = False):
        super().__init__(message, service=service, retryable=retryable)


class InvalidStateError(DbToolsPermanentError):
    """The connection exists but is in a lifecycle state that cannot be resolved.

    Attributes:
        resource_id: OCID of the database tools connection.
        lifecycle_state: State reported by OCI (e.g. "DELETED").
    """

    def __init__(self, message: str = "", resource_id: str = "",
                 lifecycle_state: str = ""):
        super().__init__(
            message or (
                f"Database Tools connection {resource_id} is in lifecycle "
                f"state {lifecycle_state}; expected ACTIVE"
            ),
            service="database_tools",
        )
        self.resource_id = resource_id
        self.lifecycle_state = lifecycle_state


class UnsupportedConnectionError(DbToolsPermanentError):
    """The connection cannot be expressed as JDBC connection properties."""

    def __init__(self, message: str, resource_id: str = ""):
        super().__init__(message, service="database_tools")
        self.resource_id = resource_id


class SecretResolutionError(DbToolsPermanentError):
    """A referenced secret has no usable content."""

    def __init__(self, message: str, secret_id: str = ""):
        super().__init__(message, service="secrets")
        self.secret_id = secret_id


class ConfigurationError(DbToolsPermanentError):
    """Configuration error — missing or invalid configuration."""

    def __init__(self, message: str, config_key: str = ""):
        super().__init__(message, service="config", retryable=False)
        self.config_key = config_key


class WaitTimeoutError(DbToolsTransientError):
    """A polled lifecycle state did not settle before the deadline.

    Attributes:
        resource_id: OCID being polled.
        last_state: Last lifecycle state observed (empty if none).
        waited: Seconds spent polling.
    """

    def __init__(self, message: str, resource_id: str = "",
                 last_state: str = "", waited: float = 0.0):
        super().__init__(message, service="database_tools")
        self.resource_id = resource_id
        self.last_state = last_state
        self.waited = waited

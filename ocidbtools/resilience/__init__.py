#!/usr/bin/env python3
# CUI // SP-CTI
"""ocidbtools resilience package — structured errors and bounded polling.

Remote calls are never retried here; polling only observes lifecycle
transitions the OCI service performs asynchronously.
"""

from ocidbtools.resilience.errors import (  # noqa: F401
    ConfigurationError,
    DbToolsError,
    DbToolsPermanentError,
    DbToolsTransientError,
    InvalidStateError,
    SecretResolutionError,
    UnsupportedConnectionError,
    WaitTimeoutError,
)
from ocidbtools.resilience.polling import backoff_delay, poll_until  # noqa: F401

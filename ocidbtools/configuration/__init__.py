# CUI // SP-CTI
"""Configuration providers: opaque identifier -> JDBC connection properties.

Importing this package registers the built-in "ocidbtools" provider.
"""

from ocidbtools.configuration.provider import (  # noqa: F401
    ConfigurationProvider,
    available_providers,
    find_provider,
    register_provider,
)
from ocidbtools.configuration.dbtools_provider import (  # noqa: F401
    OciDatabaseToolsConnectionProvider,
    resolve,
)

# CUI // SP-CTI
"""Parse configuration-provider locations.

Accepted forms:
    ocid1.databasetoolsconnection.oc1..xxxx
    config-ocidbtools://ocid1.databasetoolsconnection.oc1..xxxx
    jdbc:oracle:thin:@config-ocidbtools://ocid1...?authentication=OCI_INSTANCE_PRINCIPAL
"""

from dataclasses import dataclass, field
from typing import Dict, Optional
from urllib.parse import parse_qsl

from ocidbtools.resilience.errors import ConfigurationError

JDBC_PREFIX = "jdbc:oracle:thin:@"
CONFIG_PREFIX = "config-"


@dataclass
class ProviderLocation:
    """A parsed location: which provider, what to look up, and with which options."""
    location: str
    provider_type: Optional[str] = None
    options: Dict[str, str] = field(default_factory=dict)


def parse_location(value: str, default_type: Optional[str] = None) -> ProviderLocation:
    """Split a bare identifier or config-<type>:// URL into its parts.

    Option names are lower-cased; the last occurrence of a repeated option wins.
    """
    text = (value or "").strip()
    if text.lower().startswith(JDBC_PREFIX):
        text = text[len(JDBC_PREFIX):]

    provider_type = default_type
    if text.lower().startswith(CONFIG_PREFIX):
        scheme, sep, rest = text[len(CONFIG_PREFIX):].partition("://")
        if not sep or not scheme:
            raise ConfigurationError(f"Malformed provider URL: {value!r}")
        provider_type = scheme.lower()
        text = rest

    location, _, query = text.partition("?")
    if not location:
        raise ConfigurationError(f"No identifier in location {value!r}")
    options = {k.lower(): v for k, v in parse_qsl(query, keep_blank_values=True)}
    return ProviderLocation(location=location, provider_type=provider_type,
                            options=options)

# CUI // SP-CTI
"""OCI authentication context.

Parses the OCI credential source once (config file, instance principal or
resource principal) and hands out one SDK client per client class. The
context is constructed explicitly and passed to whoever needs a client;
nothing here is a module-level singleton.
"""

import logging
from typing import Any, Dict, Optional

import oci

from ocidbtools.resilience.errors import ConfigurationError

logger = logging.getLogger("ocidbtools.cloud.auth")

AUTH_CONFIG_FILE = "config_file"
AUTH_INSTANCE_PRINCIPAL = "instance_principal"
AUTH_RESOURCE_PRINCIPAL = "resource_principal"
AUTH_METHODS = (AUTH_CONFIG_FILE, AUTH_INSTANCE_PRINCIPAL, AUTH_RESOURCE_PRINCIPAL)

# Spellings accepted in location URL options (authentication=OCI_DEFAULT, ...)
_AUTH_ALIASES = {
    "oci_default": AUTH_CONFIG_FILE,
    "oci_config_file": AUTH_CONFIG_FILE,
    "config_file": AUTH_CONFIG_FILE,
    "oci_instance_principal": AUTH_INSTANCE_PRINCIPAL,
    "instance_principal": AUTH_INSTANCE_PRINCIPAL,
    "oci_resource_principal": AUTH_RESOURCE_PRINCIPAL,
    "resource_principal": AUTH_RESOURCE_PRINCIPAL,
}


def normalize_auth_method(value: str) -> str:
    """Map a user-supplied authentication name onto one of AUTH_METHODS."""
    method = _AUTH_ALIASES.get((value or AUTH_CONFIG_FILE).strip().lower())
    if method is None:
        raise ConfigurationError(
            f"Unknown OCI authentication method '{value}'. "
            f"Available: {', '.join(AUTH_METHODS)}",
            config_key="oci.auth",
        )
    return method


class OCIAuthContext:
    """Authenticated OCI configuration plus a per-class client cache.

    Args:
        config: OCI SDK config dict (at least "region" for signer-based auth).
        signer: Optional request signer (instance/resource principal).
        method: One of AUTH_METHODS, informational.
    """

    def __init__(self, config: Dict[str, Any], signer: Any = None,
                 method: str = AUTH_CONFIG_FILE):
        self.config = config
        self.signer = signer
        self.method = method
        self._clients: Dict[type, Any] = {}

    @classmethod
    def from_config_file(cls, config_file: Optional[str] = None,
                         profile: Optional[str] = None,
                         region: str = "") -> "OCIAuthContext":
        """Parse ~/.oci/config (or config_file) for the given profile."""
        location = config_file or oci.config.DEFAULT_LOCATION
        profile_name = profile or oci.config.DEFAULT_PROFILE
        config = oci.config.from_file(file_location=location, profile_name=profile_name)
        if region:
            config["region"] = region
        logger.info("OCI config loaded: file=%s profile=%s region=%s",
                    location, profile_name, config.get("region", ""))
        return cls(config, method=AUTH_CONFIG_FILE)

    @classmethod
    def from_instance_principal(cls, region: str = "") -> "OCIAuthContext":
        signer = oci.auth.signers.InstancePrincipalsSecurityTokenSigner()
        logger.info("OCI instance principal signer created")
        return cls({"region": region or signer.region}, signer=signer,
                   method=AUTH_INSTANCE_PRINCIPAL)

    @classmethod
    def from_resource_principal(cls, region: str = "") -> "OCIAuthContext":
        signer = oci.auth.signers.get_resource_principals_signer()
        logger.info("OCI resource principal signer created")
        return cls({"region": region or signer.region}, signer=signer,
                   method=AUTH_RESOURCE_PRINCIPAL)

    @classmethod
    def from_method(cls, method: str, config_file: Optional[str] = None,
                    profile: Optional[str] = None,
                    region: str = "") -> "OCIAuthContext":
        """Build a context for any supported authentication method."""
        method = normalize_auth_method(method)
        if method == AUTH_INSTANCE_PRINCIPAL:
            return cls.from_instance_principal(region=region)
        if method == AUTH_RESOURCE_PRINCIPAL:
            return cls.from_resource_principal(region=region)
        return cls.from_config_file(config_file=config_file, profile=profile,
                                    region=region)

    @property
    def region(self) -> str:
        return self.config.get("region", "")

    def client(self, client_cls, **kwargs):
        """Return the shared client of client_cls, building it on first use."""
        if client_cls in self._clients:
            return self._clients[client_cls]
        if self.signer is not None:
            instance = client_cls(self.config, signer=self.signer, **kwargs)
        else:
            instance = client_cls(self.config, **kwargs)
        self._clients[client_cls] = instance
        logger.debug("Created %s (region=%s)", client_cls.__name__, self.region)
        return instance

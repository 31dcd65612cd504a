#!/usr/bin/env python3
# CUI // SP-CTI
"""Provider Factory — config-driven construction of the shared OCI context.

Reads args/dbtools_config.yaml (or --config / $OCIDBTOOLS_CONFIG) and builds,
once per factory, the authentication context, the Database Tools client and
the secrets provider. Callers construct a factory explicitly and pass it to
configuration providers; there is no process-wide client.

Pattern: lazy instantiation with a per-factory cache, ${VAR:-default}
expansion of config values.
"""

import copy
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ocidbtools.cloud.auth import OCIAuthContext, normalize_auth_method
from ocidbtools.cloud.dbtools_client import (
    DEFAULT_MAX_WAIT_SECONDS,
    DatabaseToolsConnectionClient,
)
from ocidbtools.cloud.secrets_provider import (
    LocalSecretsProvider,
    OCIVaultSecretsProvider,
    SecretsProvider,
)
from ocidbtools.resilience.errors import ConfigurationError

logger = logging.getLogger("ocidbtools.cloud.factory")

BASE_DIR = Path(__file__).resolve().parent.parent.parent
DEFAULT_CONFIG_PATH = BASE_DIR / "args" / "dbtools_config.yaml"
CONFIG_ENV_VAR = "OCIDBTOOLS_CONFIG"

DEFAULT_CONFIG: Dict[str, Any] = {
    "oci": {"auth": "config_file", "config_file": "", "profile": "", "region": ""},
    "services": {"secrets": "oci"},
    "local": {"env_file": ""},
    "polling": {
        "max_wait_seconds": DEFAULT_MAX_WAIT_SECONDS,
        "base_delay": 2.0,
        "max_delay": 30.0,
    },
}


_ENV_REF = re.compile(r"\$\{(?P<name>[^}:]+)(?::-(?P<default>[^}]*))?\}")


def _expand_env(value):
    """Substitute ${VAR} and ${VAR:-default} references in a config string.

    Unset variables without a default are left as written.
    """
    if not isinstance(value, str):
        return value

    def _lookup(match):
        default = match.group("default")
        fallback = match.group(0) if default is None else default
        return os.environ.get(match.group("name"), fallback)

    return _ENV_REF.sub(_lookup, value)


def _merge(base: Dict, override: Dict) -> Dict:
    """Recursively merge override into a copy of base."""
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class DbToolsProviderFactory:
    """Config-driven factory for the OCI objects a provider needs.

    Args:
        config_path: YAML config path. Defaults to $OCIDBTOOLS_CONFIG, then
            args/dbtools_config.yaml.
        config: In-memory config dict; takes precedence over config_path.
        auth: Pre-built authentication context (skips credential parsing).
    """

    def __init__(self, config_path: Optional[str] = None,
                 config: Optional[Dict] = None,
                 auth: Optional[OCIAuthContext] = None):
        env_path = os.environ.get(CONFIG_ENV_VAR, "")
        self._config_path = Path(config_path or env_path or DEFAULT_CONFIG_PATH)
        self._config: Dict = {}
        self._auth = auth
        self._providers: Dict[str, Any] = {}
        self._derived: Dict[tuple, "DbToolsProviderFactory"] = {}
        if config is not None:
            self._config = _merge(DEFAULT_CONFIG, config)
        else:
            self._load_config()

    def _load_config(self):
        """Load dbtools_config.yaml."""
        if not self._config_path.exists():
            logger.warning("Config not found at %s — using defaults", self._config_path)
            self._config = copy.deepcopy(DEFAULT_CONFIG)
            return
        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(
                f"Invalid YAML in {self._config_path}: {exc}") from exc
        if not isinstance(loaded, dict):
            raise ConfigurationError(
                f"{self._config_path} must contain a mapping at the top level")
        self._config = _merge(DEFAULT_CONFIG, loaded)
        logger.info("Config loaded from %s: auth=%s secrets=%s",
                    self._config_path, self.auth_method, self.secrets_backend)

    def _section(self, name: str) -> Dict:
        return self._config.get(name) or {}

    @property
    def config(self) -> Dict:
        return copy.deepcopy(self._config)

    @property
    def auth_method(self) -> str:
        return normalize_auth_method(_expand_env(self._section("oci").get("auth", "")))

    @property
    def config_file(self) -> str:
        return os.path.expanduser(_expand_env(self._section("oci").get("config_file", "")))

    @property
    def profile(self) -> str:
        return _expand_env(self._section("oci").get("profile", ""))

    @property
    def region(self) -> str:
        return _expand_env(self._section("oci").get("region", ""))

    @property
    def secrets_backend(self) -> str:
        return _expand_env(self._section("services").get("secrets", "oci")) or "oci"

    def _polling(self, key: str) -> float:
        value = _expand_env(self._section("polling").get(key))
        try:
            return float(value)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(
                f"polling.{key} must be a number, got {value!r}",
                config_key=f"polling.{key}") from exc

    def with_overrides(self, options: Dict[str, str]) -> "DbToolsProviderFactory":
        """Return a new factory whose OCI auth settings are overridden.

        Recognised keys: authentication, config_file, profile, region.
        With no recognised key, returns self. Derived factories are cached
        per override set, so repeated lookups with the same options parse
        credentials once.
        """
        oci_override = {}
        if options.get("authentication"):
            oci_override["auth"] = options["authentication"]
        for key in ("config_file", "profile", "region"):
            if options.get(key):
                oci_override[key] = options[key]
        if not oci_override:
            return self
        key = tuple(sorted(oci_override.items()))
        if key not in self._derived:
            self._derived[key] = DbToolsProviderFactory(
                config=_merge(self._config, {"oci": oci_override}))
        return self._derived[key]

    def get_auth_context(self) -> OCIAuthContext:
        """Parse credentials once and return the shared context."""
        if self._auth is None:
            self._auth = OCIAuthContext.from_method(
                self.auth_method,
                config_file=self.config_file or None,
                profile=self.profile or None,
                region=self.region,
            )
        return self._auth

    def get_dbtools_client(self) -> DatabaseToolsConnectionClient:
        """Get Database Tools connection client (cached)."""
        if "dbtools" not in self._providers:
            self._providers["dbtools"] = DatabaseToolsConnectionClient(
                self.get_auth_context(),
                max_wait_seconds=self._polling("max_wait_seconds"),
                base_delay=self._polling("base_delay"),
                max_delay=self._polling("max_delay"),
            )
        return self._providers["dbtools"]

    def get_secrets_provider(self) -> SecretsProvider:
        """Get secrets provider (cached)."""
        if "secrets" in self._providers:
            return self._providers["secrets"]

        backend = self.secrets_backend
        provider: SecretsProvider
        if backend == "oci":
            provider = OCIVaultSecretsProvider(self.get_auth_context())
        elif backend == "local":
            env_file = _expand_env(self._section("local").get("env_file", ""))
            provider = LocalSecretsProvider(env_file=env_file or None)
        else:
            raise ConfigurationError(
                f"Unknown secrets backend '{backend}'. Available: oci, local",
                config_key="services.secrets")

        self._providers["secrets"] = provider
        logger.debug("Secrets provider: %s", provider.provider_name)
        return provider

    def health_check(self) -> Dict:
        """Report how credentials and services resolve, without remote calls."""
        result: Dict[str, Any] = {
            "config_path": str(self._config_path),
            "auth_method": "",
            "region": "",
            "services": {},
        }
        try:
            auth = self.get_auth_context()
            result["auth_method"] = auth.method
            result["region"] = auth.region
        except Exception as exc:
            result["error"] = str(exc)
            return result
        try:
            secrets = self.get_secrets_provider()
            result["services"]["secrets"] = {
                "provider": secrets.provider_name,
                "available": secrets.check_availability(),
            }
        except ConfigurationError as exc:
            result["services"]["secrets"] = {
                "provider": "error", "available": False, "error": str(exc),
            }
        return result

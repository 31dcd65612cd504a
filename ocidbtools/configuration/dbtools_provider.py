#!/usr/bin/env python3
# CUI // SP-CTI
"""OCI Database Tools connection configuration provider (scheme "ocidbtools").

Maps a Database Tools connection OCID to JDBC connection properties:

    URL                          jdbc:oracle:thin:@<connection string>
    user                         connection user name
    password                     content of the password secret
    <advanced properties>        copied verbatim (oracle.jdbc.*, oracle.net.*)
    oracle.net.wallet_location   data:;base64,<wallet> for SSO / PKCS12 key stores
    oracle.net.wallet_password   PKCS12 key store password
    oracle.jdbc.proxyClientName  proxy user, when a proxy client is configured

Only ACTIVE connections resolve. Any other lifecycle state (DELETED, FAILED,
CREATING, ...) raises InvalidStateError, as does a 404 for a connection the
service has already purged; no partial property set is ever
returned. Every call performs a fresh remote read of the connection and of
each secret it references.

CLI: ocidbtools-resolve <ocid-or-url> [--json] [--show-secrets]
"""

import argparse
import base64
import json
import logging
import sys
from typing import Dict, Optional

import oci

from ocidbtools.cloud.dbtools_client import (
    CONNECTION_TYPE_ORACLE_DATABASE,
    LIFECYCLE_DELETED,
    RESOLVABLE_STATES,
    is_not_found,
)
from ocidbtools.configuration.location import parse_location
from ocidbtools.configuration.provider import (
    ConfigurationProvider,
    find_provider,
    register_provider,
)
from ocidbtools.resilience.errors import (
    ConfigurationError,
    InvalidStateError,
    UnsupportedConnectionError,
)

logger = logging.getLogger("ocidbtools.configuration.dbtools")

JDBC_URL_PREFIX = "jdbc:oracle:thin:@"

PROPERTY_URL = "URL"
PROPERTY_USER = "user"
PROPERTY_PASSWORD = "password"
PROPERTY_WALLET_LOCATION = "oracle.net.wallet_location"
PROPERTY_WALLET_PASSWORD = "oracle.net.wallet_password"
PROPERTY_PROXY_CLIENT_NAME = "oracle.jdbc.proxyClientName"

SENSITIVE_PROPERTIES = frozenset({
    PROPERTY_PASSWORD, PROPERTY_WALLET_LOCATION, PROPERTY_WALLET_PASSWORD,
})

VALUE_TYPE_SECRET_ID = "SECRETID"
KEY_STORE_SSO = "SSO"
KEY_STORE_PKCS12 = "PKCS12"
PROXY_USER_NAME = "USER_NAME"


@register_provider
class OciDatabaseToolsConnectionProvider(ConfigurationProvider):
    """Resolves Database Tools connection OCIDs through the factory's clients."""

    TYPE = "ocidbtools"

    def get_connection_properties(self, location: str,
                                  options: Optional[Dict[str, str]] = None
                                  ) -> Dict[str, str]:
        factory = self._factory.with_overrides(options or {})
        try:
            connection = factory.get_dbtools_client().get(location).data
        except oci.exceptions.ServiceError as exc:
            # A purged connection answers 404; report it as DELETED
            if is_not_found(exc):
                raise InvalidStateError(resource_id=location,
                                        lifecycle_state=LIFECYCLE_DELETED) from exc
            raise

        state = connection.lifecycle_state
        if state not in RESOLVABLE_STATES:
            raise InvalidStateError(resource_id=location, lifecycle_state=state)
        if connection.type != CONNECTION_TYPE_ORACLE_DATABASE:
            raise UnsupportedConnectionError(
                f"Connection {location} has type {connection.type}; "
                f"only {CONNECTION_TYPE_ORACLE_DATABASE} is supported",
                resource_id=location)

        secrets = factory.get_secrets_provider()
        properties: Dict[str, str] = {
            PROPERTY_URL: JDBC_URL_PREFIX + connection.connection_string,
        }
        if connection.user_name:
            properties[PROPERTY_USER] = connection.user_name

        password_id = _secret_id(connection.user_password)
        if password_id:
            properties[PROPERTY_PASSWORD] = secrets.get_secret(password_id)

        for key, value in (connection.advanced_properties or {}).items():
            properties[key] = str(value)

        for key_store in getattr(connection, "key_stores", None) or []:
            properties.update(self._key_store_properties(location, key_store, secrets))

        proxy = getattr(connection, "proxy_client", None)
        if proxy is not None and proxy.proxy_authentication_type == PROXY_USER_NAME:
            properties[PROPERTY_PROXY_CLIENT_NAME] = proxy.user_name

        logger.info("Resolved %d connection properties for %s",
                    len(properties), location)
        return properties

    @staticmethod
    def _key_store_properties(location: str, key_store, secrets) -> Dict[str, str]:
        store_type = key_store.key_store_type
        if store_type not in (KEY_STORE_SSO, KEY_STORE_PKCS12):
            raise UnsupportedConnectionError(
                f"Connection {location} uses key store type {store_type}; "
                f"only {KEY_STORE_SSO} and {KEY_STORE_PKCS12} wallets are supported",
                resource_id=location)

        result: Dict[str, str] = {}
        content_id = _secret_id(key_store.key_store_content)
        if content_id:
            wallet = base64.b64encode(secrets.get_secret_bytes(content_id)).decode("ascii")
            result[PROPERTY_WALLET_LOCATION] = "data:;base64," + wallet
        password_id = _secret_id(getattr(key_store, "key_store_password", None))
        if store_type == KEY_STORE_PKCS12 and password_id:
            result[PROPERTY_WALLET_PASSWORD] = secrets.get_secret(password_id)
        return result


def _secret_id(details) -> str:
    """Secret OCID from a password / key store content model, if any."""
    if details is None or getattr(details, "value_type", "") != VALUE_TYPE_SECRET_ID:
        return ""
    return getattr(details, "secret_id", "") or ""


def resolve(identifier: str, factory, provider_type: str = OciDatabaseToolsConnectionProvider.TYPE
            ) -> Dict[str, str]:
    """Resolve a bare OCID or a config-<type>:// URL into connection properties."""
    parsed = parse_location(identifier, default_type=provider_type)
    provider = find_provider(parsed.provider_type, factory)
    if provider is None:
        raise ConfigurationError(
            f"No configuration provider for '{parsed.provider_type}'",
            config_key="provider_type")
    return provider.get_connection_properties(parsed.location, parsed.options)


def mask_properties(properties: Dict[str, str]) -> Dict[str, str]:
    return {k: ("********" if k in SENSITIVE_PROPERTIES else v)
            for k, v in properties.items()}


def main():
    """CLI entry point."""
    from ocidbtools.cloud.provider_factory import DbToolsProviderFactory

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    parser = argparse.ArgumentParser(
        description="Resolve a Database Tools connection into JDBC connection properties"
    )
    parser.add_argument("location",
                        help="Connection OCID or config-ocidbtools://<ocid>?options URL")
    parser.add_argument("--config", type=str, default=None,
                        help="Path to dbtools_config.yaml")
    parser.add_argument("--show-secrets", action="store_true",
                        help="Print password and wallet values instead of masking them")
    parser.add_argument("--json", action="store_true",
                        help="JSON output")

    args = parser.parse_args()
    factory = DbToolsProviderFactory(config_path=args.config)

    try:
        properties = resolve(args.location, factory)
    except InvalidStateError as exc:
        print(f"[FAIL] {exc}", file=sys.stderr)
        sys.exit(2)

    shown = properties if args.show_secrets else mask_properties(properties)
    if args.json:
        print(json.dumps(shown, indent=2, sort_keys=True))
    else:
        print(f"Connection properties ({len(shown)}):")
        for key in sorted(shown):
            print(f"  {key}={shown[key]}")


if __name__ == "__main__":
    main()

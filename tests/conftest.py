#!/usr/bin/env python3
# CUI // SP-CTI
"""Shared pytest fixtures for the ocidbtools test suite.

Unit tests never reach OCI: the SDK clients are MagicMocks installed in an
OCIAuthContext's client cache. Integration tests read OCI_* test properties
from the environment and skip when they are missing.
"""

import base64
import os
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

# Ensure project root is on sys.path
BASE_DIR = Path(__file__).resolve().parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from unittest.mock import MagicMock  # noqa: E402

import oci  # noqa: E402
from oci.database_tools import DatabaseToolsClient  # noqa: E402

from ocidbtools.cloud.auth import OCIAuthContext  # noqa: E402
from ocidbtools.cloud.provider_factory import DbToolsProviderFactory  # noqa: E402

CONNECTION_OCID = "ocid1.databasetoolsconnection.oc1.iad.aaaaexample"
PASSWORD_SECRET_OCID = "ocid1.vaultsecret.oc1.iad.password"
WALLET_SECRET_OCID = "ocid1.vaultsecret.oc1.iad.wallet"
WALLET_PASSWORD_SECRET_OCID = "ocid1.vaultsecret.oc1.iad.walletpw"


# ---------------------------------------------------------------------------
# SDK model stand-ins
# ---------------------------------------------------------------------------
def make_connection(**overrides):
    """An ACTIVE Oracle Database connection with a password secret."""
    data = {
        "id": CONNECTION_OCID,
        "display_name": "test-connection",
        "compartment_id": "ocid1.compartment.oc1..example",
        "lifecycle_state": "ACTIVE",
        "type": "ORACLE_DATABASE",
        "connection_string": "(description=(address=(host=db.example.com)(port=1522)))",
        "user_name": "ADMIN",
        "user_password": SimpleNamespace(value_type="SECRETID",
                                         secret_id=PASSWORD_SECRET_OCID),
        "advanced_properties": {},
        "key_stores": None,
        "proxy_client": None,
    }
    data.update(overrides)
    return SimpleNamespace(**data)


def make_response(data=None, status=200):
    return SimpleNamespace(status=status, data=data, headers={})


def secret_bundle(value: bytes):
    content = SimpleNamespace(content=base64.b64encode(value).decode("ascii"),
                              content_type="BASE64")
    return make_response(SimpleNamespace(secret_bundle_content=content))


def not_found():
    return oci.exceptions.ServiceError(
        404, "NotAuthorizedOrNotFound", {}, "Authorization failed or requested resource not found")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def dbtools_sdk():
    """MagicMock standing in for oci.database_tools.DatabaseToolsClient."""
    sdk = MagicMock(name="DatabaseToolsClient")
    sdk.get_database_tools_connection.return_value = make_response(make_connection())
    return sdk


@pytest.fixture
def secrets_sdk():
    """MagicMock standing in for oci.secrets.SecretsClient."""
    values = {
        PASSWORD_SECRET_OCID: b"s3cr3t-Passw0rd",
        WALLET_SECRET_OCID: b"\x00\x01wallet-bytes\xff",
        WALLET_PASSWORD_SECRET_OCID: b"wallet-pw",
    }
    sdk = MagicMock(name="SecretsClient")
    sdk.get_secret_bundle.side_effect = lambda secret_id, **kw: secret_bundle(values[secret_id])
    return sdk


@pytest.fixture
def auth(dbtools_sdk, secrets_sdk):
    """Auth context whose SDK clients are the mocks above."""
    context = OCIAuthContext({"region": "us-ashburn-1"})
    context._clients[DatabaseToolsClient] = dbtools_sdk
    context._clients[oci.secrets.SecretsClient] = secrets_sdk
    return context


@pytest.fixture
def factory(auth):
    """Factory bound to the mocked auth context, OCI Vault secrets."""
    return DbToolsProviderFactory(
        config={"services": {"secrets": "oci"},
                "polling": {"max_wait_seconds": 5, "base_delay": 0.01, "max_delay": 0.01}},
        auth=auth,
    )


@pytest.fixture
def oci_test_property():
    """Return a getter that skips the test when an OCI_* property is unset."""
    def get_or_skip(name: str) -> str:
        value = os.environ.get(name, "")
        if not value:
            pytest.skip(f"{name} is not set")
        return value
    return get_or_skip

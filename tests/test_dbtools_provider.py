# CUI // SP-CTI
"""Tests for the "ocidbtools" configuration provider.

Verifies OciDatabaseToolsConnectionProvider as documented: an ACTIVE
connection resolves to a non-empty property set, any other lifecycle state
raises InvalidStateError without touching secrets, and remote failures
propagate unchanged.
"""

import base64
from types import SimpleNamespace
from unittest.mock import patch

import oci
import pytest

from conftest import (
    CONNECTION_OCID,
    WALLET_PASSWORD_SECRET_OCID,
    WALLET_SECRET_OCID,
    make_connection,
    make_response,
    not_found,
)
from ocidbtools.configuration import (
    OciDatabaseToolsConnectionProvider,
    available_providers,
    find_provider,
    resolve,
)
from ocidbtools.configuration.dbtools_provider import mask_properties
from ocidbtools.resilience.errors import (
    ConfigurationError,
    InvalidStateError,
    UnsupportedConnectionError,
)


def _returns(dbtools_sdk, connection):
    dbtools_sdk.get_database_tools_connection.return_value = make_response(connection)


def _secret_ref(secret_id):
    return SimpleNamespace(value_type="SECRETID", secret_id=secret_id)


class TestRegistry:
    def test_find_by_scheme(self, factory):
        provider = find_provider("ocidbtools", factory)
        assert isinstance(provider, OciDatabaseToolsConnectionProvider)
        assert provider.provider_type == "ocidbtools"

    def test_scheme_is_case_insensitive(self, factory):
        assert find_provider("OCIDBTOOLS", factory) is not None

    def test_unknown_scheme(self, factory):
        assert find_provider("ocivault", factory) is None

    def test_listed(self):
        assert "ocidbtools" in available_providers()


class TestActiveConnection:
    def test_properties_not_empty(self, factory):
        props = find_provider("ocidbtools", factory).get_connection_properties(CONNECTION_OCID)
        assert len(props) != 0

    def test_core_properties(self, factory):
        props = find_provider("ocidbtools", factory).get_connection_properties(CONNECTION_OCID)
        assert props["URL"] == (
            "jdbc:oracle:thin:@(description=(address=(host=db.example.com)(port=1522)))")
        assert props["user"] == "ADMIN"
        assert props["password"] == "s3cr3t-Passw0rd"

    def test_one_remote_read_and_fresh_secret_each_call(self, factory, dbtools_sdk, secrets_sdk):
        provider = find_provider("ocidbtools", factory)
        provider.get_connection_properties(CONNECTION_OCID)
        provider.get_connection_properties(CONNECTION_OCID)
        assert dbtools_sdk.get_database_tools_connection.call_count == 2
        assert secrets_sdk.get_secret_bundle.call_count == 2

    def test_advanced_properties_copied_as_strings(self, factory, dbtools_sdk):
        _returns(dbtools_sdk, make_connection(advanced_properties={
            "oracle.jdbc.loginTimeout": 10,
            "oracle.net.ssl_server_dn_match": "true",
        }))
        props = find_provider("ocidbtools", factory).get_connection_properties(CONNECTION_OCID)
        assert props["oracle.jdbc.loginTimeout"] == "10"
        assert props["oracle.net.ssl_server_dn_match"] == "true"

    def test_no_password_secret(self, factory, dbtools_sdk, secrets_sdk):
        _returns(dbtools_sdk, make_connection(user_password=None))
        props = find_provider("ocidbtools", factory).get_connection_properties(CONNECTION_OCID)
        assert "password" not in props
        secrets_sdk.get_secret_bundle.assert_not_called()

    def test_sso_wallet(self, factory, dbtools_sdk):
        _returns(dbtools_sdk, make_connection(key_stores=[SimpleNamespace(
            key_store_type="SSO",
            key_store_content=_secret_ref(WALLET_SECRET_OCID),
            key_store_password=None,
        )]))
        props = find_provider("ocidbtools", factory).get_connection_properties(CONNECTION_OCID)
        expected = base64.b64encode(b"\x00\x01wallet-bytes\xff").decode("ascii")
        assert props["oracle.net.wallet_location"] == "data:;base64," + expected
        assert "oracle.net.wallet_password" not in props

    def test_pkcs12_wallet_with_password(self, factory, dbtools_sdk):
        _returns(dbtools_sdk, make_connection(key_stores=[SimpleNamespace(
            key_store_type="PKCS12",
            key_store_content=_secret_ref(WALLET_SECRET_OCID),
            key_store_password=_secret_ref(WALLET_PASSWORD_SECRET_OCID),
        )]))
        props = find_provider("ocidbtools", factory).get_connection_properties(CONNECTION_OCID)
        assert props["oracle.net.wallet_location"].startswith("data:;base64,")
        assert props["oracle.net.wallet_password"] == "wallet-pw"

    def test_java_key_store_unsupported(self, factory, dbtools_sdk):
        _returns(dbtools_sdk, make_connection(key_stores=[SimpleNamespace(
            key_store_type="JAVA_KEY_STORE",
            key_store_content=_secret_ref(WALLET_SECRET_OCID),
            key_store_password=None,
        )]))
        with pytest.raises(UnsupportedConnectionError):
            find_provider("ocidbtools", factory).get_connection_properties(CONNECTION_OCID)

    def test_proxy_client(self, factory, dbtools_sdk):
        _returns(dbtools_sdk, make_connection(proxy_client=SimpleNamespace(
            proxy_authentication_type="USER_NAME", user_name="APP_USER")))
        props = find_provider("ocidbtools", factory).get_connection_properties(CONNECTION_OCID)
        assert props["oracle.jdbc.proxyClientName"] == "APP_USER"

    def test_no_proxy(self, factory, dbtools_sdk):
        _returns(dbtools_sdk, make_connection(proxy_client=SimpleNamespace(
            proxy_authentication_type="NO_PROXY")))
        props = find_provider("ocidbtools", factory).get_connection_properties(CONNECTION_OCID)
        assert "oracle.jdbc.proxyClientName" not in props


class TestNonResolvableConnection:
    def test_deleted_raises_invalid_state(self, factory, dbtools_sdk):
        _returns(dbtools_sdk, make_connection(lifecycle_state="DELETED"))
        with pytest.raises(InvalidStateError) as exc_info:
            find_provider("ocidbtools", factory).get_connection_properties(CONNECTION_OCID)
        assert exc_info.value.resource_id == CONNECTION_OCID
        assert exc_info.value.lifecycle_state == "DELETED"

    @pytest.mark.parametrize("state", ["CREATING", "UPDATING", "DELETING", "FAILED",
                                       "UNKNOWN_ENUM_VALUE"])
    def test_other_states_raise(self, factory, dbtools_sdk, state):
        _returns(dbtools_sdk, make_connection(lifecycle_state=state))
        with pytest.raises(InvalidStateError):
            find_provider("ocidbtools", factory).get_connection_properties(CONNECTION_OCID)

    def test_secrets_not_read_for_deleted(self, factory, dbtools_sdk, secrets_sdk):
        _returns(dbtools_sdk, make_connection(lifecycle_state="DELETED"))
        with pytest.raises(InvalidStateError):
            find_provider("ocidbtools", factory).get_connection_properties(CONNECTION_OCID)
        secrets_sdk.get_secret_bundle.assert_not_called()

    def test_unsupported_connection_type(self, factory, dbtools_sdk):
        _returns(dbtools_sdk, make_connection(type="MYSQL"))
        with pytest.raises(UnsupportedConnectionError):
            find_provider("ocidbtools", factory).get_connection_properties(CONNECTION_OCID)

    def test_remote_failure_is_not_invalid_state(self, factory, dbtools_sdk):
        dbtools_sdk.get_database_tools_connection.side_effect = oci.exceptions.ServiceError(
            500, "InternalServerError", {}, "boom")
        with pytest.raises(oci.exceptions.ServiceError):
            find_provider("ocidbtools", factory).get_connection_properties(CONNECTION_OCID)

    def test_purged_connection_raises_invalid_state(self, factory, dbtools_sdk, secrets_sdk):
        dbtools_sdk.get_database_tools_connection.side_effect = not_found()
        with pytest.raises(InvalidStateError) as exc_info:
            find_provider("ocidbtools", factory).get_connection_properties(CONNECTION_OCID)
        assert exc_info.value.resource_id == CONNECTION_OCID
        assert exc_info.value.lifecycle_state == "DELETED"
        assert isinstance(exc_info.value.__cause__, oci.exceptions.ServiceError)
        secrets_sdk.get_secret_bundle.assert_not_called()

    def test_wait_for_deleted_then_resolve(self, factory, dbtools_sdk):
        dbtools_sdk.get_database_tools_connection.side_effect = [
            make_response(make_connection(lifecycle_state="DELETING")),
            not_found(),
            not_found(),
        ]
        client = factory.get_dbtools_client()
        assert client.wait_for_state(CONNECTION_OCID, {"DELETED"}) == "DELETED"
        with pytest.raises(InvalidStateError):
            find_provider("ocidbtools", factory).get_connection_properties(CONNECTION_OCID)

    def test_secret_failure_propagates(self, factory, secrets_sdk):
        secrets_sdk.get_secret_bundle.side_effect = oci.exceptions.ServiceError(
            403, "NotAuthorized", {}, "denied")
        with pytest.raises(oci.exceptions.ServiceError):
            find_provider("ocidbtools", factory).get_connection_properties(CONNECTION_OCID)


class TestResolve:
    def test_bare_ocid(self, factory, dbtools_sdk):
        props = resolve(CONNECTION_OCID, factory)
        assert props["user"] == "ADMIN"
        dbtools_sdk.get_database_tools_connection.assert_called_once_with(
            database_tools_connection_id=CONNECTION_OCID)

    def test_jdbc_url(self, factory, dbtools_sdk):
        props = resolve(f"jdbc:oracle:thin:@config-ocidbtools://{CONNECTION_OCID}", factory)
        assert props["password"] == "s3cr3t-Passw0rd"

    def test_unknown_scheme(self, factory):
        with pytest.raises(ConfigurationError):
            resolve(f"config-nosuch://{CONNECTION_OCID}", factory)

    def test_deleted(self, factory, dbtools_sdk):
        _returns(dbtools_sdk, make_connection(lifecycle_state="DELETED"))
        with pytest.raises(InvalidStateError):
            resolve(CONNECTION_OCID, factory)

    @patch("ocidbtools.cloud.secrets_provider.oci.secrets.SecretsClient")
    @patch("ocidbtools.cloud.dbtools_client.DatabaseToolsClient")
    @patch("ocidbtools.cloud.auth.oci.config.from_file")
    def test_url_options_parse_credentials_once(self, mock_from_file, mock_dbtools_cls,
                                                mock_secrets_cls, factory, dbtools_sdk,
                                                secrets_sdk):
        mock_from_file.return_value = {"region": "us-phoenix-1"}
        mock_dbtools_cls.__name__ = "DatabaseToolsClient"
        mock_dbtools_cls.return_value = dbtools_sdk
        mock_secrets_cls.__name__ = "SecretsClient"
        mock_secrets_cls.return_value = secrets_sdk
        url = f"config-ocidbtools://{CONNECTION_OCID}?profile=OTHER"
        for _ in range(3):
            assert resolve(url, factory)["user"] == "ADMIN"
        mock_from_file.assert_called_once()
        assert mock_from_file.call_args.kwargs["profile_name"] == "OTHER"
        mock_dbtools_cls.assert_called_once()
        assert dbtools_sdk.get_database_tools_connection.call_count == 3


class TestMaskProperties:
    def test_masks_secrets_only(self):
        masked = mask_properties({"URL": "jdbc:oracle:thin:@x", "user": "u",
                                  "password": "p", "oracle.net.wallet_location": "data:..."})
        assert masked["URL"] == "jdbc:oracle:thin:@x"
        assert masked["user"] == "u"
        assert masked["password"] == "********"
        assert masked["oracle.net.wallet_location"] == "********"


class TestCLI:
    def _run(self, monkeypatch, factory, *argv):
        from ocidbtools.configuration import dbtools_provider
        monkeypatch.setattr("sys.argv", ["ocidbtools-resolve", *argv])
        monkeypatch.setattr("ocidbtools.cloud.provider_factory.DbToolsProviderFactory",
                            lambda config_path=None: factory)
        dbtools_provider.main()

    def test_json_output_masks_password(self, monkeypatch, capsys, factory):
        import json
        self._run(monkeypatch, factory, CONNECTION_OCID, "--json")
        out = json.loads(capsys.readouterr().out)
        assert out["user"] == "ADMIN"
        assert out["password"] == "********"

    def test_show_secrets(self, monkeypatch, capsys, factory):
        self._run(monkeypatch, factory, CONNECTION_OCID, "--show-secrets")
        assert "password=s3cr3t-Passw0rd" in capsys.readouterr().out

    def test_deleted_exits_nonzero(self, monkeypatch, capsys, factory, dbtools_sdk):
        _returns(dbtools_sdk, make_connection(lifecycle_state="DELETED"))
        with pytest.raises(SystemExit) as exc_info:
            self._run(monkeypatch, factory, CONNECTION_OCID)
        assert exc_info.value.code == 2
        assert "DELETED" in capsys.readouterr().err

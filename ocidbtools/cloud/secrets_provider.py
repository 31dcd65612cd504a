#!/usr/bin/env python3
# CUI // SP-CTI
"""Secrets Provider — resolves secret OCIDs referenced by connections.

ABC + 2 implementations: OCI Vault and Local (.env / environment).
Database Tools connections reference their password and wallet by secret
OCID; the configuration provider resolves them through one of these on
every call. Nothing is cached.
"""

import base64
import binascii
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

import oci

from ocidbtools.cloud.auth import OCIAuthContext
from ocidbtools.resilience.errors import SecretResolutionError

logger = logging.getLogger("ocidbtools.cloud.secrets")


class SecretsProvider(ABC):
    """Abstract base class for secret retrieval."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return provider identifier."""

    @abstractmethod
    def get_secret_bytes(self, secret_id: str) -> bytes:
        """Retrieve the raw content of a secret."""

    def get_secret(self, secret_id: str) -> str:
        """Retrieve a secret as UTF-8 text."""
        content = self.get_secret_bytes(secret_id)
        try:
            return content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise SecretResolutionError(
                f"Secret {secret_id} is not UTF-8 text: {exc}",
                secret_id=secret_id) from exc

    @abstractmethod
    def check_availability(self) -> bool:
        """Check if the secrets provider is usable."""


# ============================================================
# OCI Vault
# ============================================================
class OCIVaultSecretsProvider(SecretsProvider):
    """Oracle Cloud Infrastructure Vault Secrets implementation.

    Reads the CURRENT version of a secret bundle. Service errors from OCI
    propagate unchanged.
    """

    def __init__(self, auth: OCIAuthContext):
        self._auth = auth

    @property
    def provider_name(self) -> str:
        return "oci_vault"

    def _get_client(self):
        return self._auth.client(oci.secrets.SecretsClient)

    def get_secret_bytes(self, secret_id: str) -> bytes:
        response = self._get_client().get_secret_bundle(secret_id=secret_id)
        content = getattr(response.data.secret_bundle_content, "content", None)
        if not content:
            raise SecretResolutionError(
                f"Secret {secret_id} has no content", secret_id=secret_id)
        try:
            return base64.b64decode(content, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise SecretResolutionError(
                f"Secret {secret_id} is not valid base64: {exc}",
                secret_id=secret_id) from exc

    def check_availability(self) -> bool:
        return bool(self._auth.region)


# ============================================================
# Local (.env file) — offline runs and tests
# ============================================================
class LocalSecretsProvider(SecretsProvider):
    """Local .env file secrets provider keyed by secret OCID."""

    def __init__(self, env_file: Optional[str] = None):
        self._env_path = Path(env_file) if env_file else Path.cwd() / ".env"

    @property
    def provider_name(self) -> str:
        return "local"

    def _read_env(self) -> Dict[str, str]:
        """Parse KEY=value lines from the .env file; missing file gives {}."""
        if not self._env_path.exists():
            return {}
        entries: Dict[str, str] = {}
        for raw in self._env_path.read_text(encoding="utf-8").splitlines():
            entry = raw.strip()
            if not entry or entry.startswith("#"):
                continue
            name, sep, value = entry.partition("=")
            if sep:
                entries[name.strip()] = value.strip().strip("'\"")
        return entries

    def get_secret_bytes(self, secret_id: str) -> bytes:
        # Check env vars first, then .env file
        val = os.environ.get(secret_id) or self._read_env().get(secret_id)
        if not val:
            raise SecretResolutionError(
                f"Secret {secret_id} not found in environment or {self._env_path}",
                secret_id=secret_id)
        return val.encode("utf-8")

    def check_availability(self) -> bool:
        return True

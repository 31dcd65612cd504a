#!/usr/bin/env python3
# CUI // SP-CTI
"""Database Tools Connection client — create / get / delete / wait.

Thin pass-through over oci.database_tools.DatabaseToolsClient. Status codes
(200 ok, 201 created, 202 accepted) and lifecycle states are read straight
from the SDK responses.

Deletion is asynchronous on the OCI side: delete() returning 202 only means
the request was accepted, and a get() issued right after may still report
ACTIVE or DELETING. Use wait_for_state() / delete_and_wait() when the
post-delete state matters.

CLI: --create, --get, --delete, --wait, --json
"""

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

import oci
from oci.database_tools import DatabaseToolsClient
from oci.database_tools.models import (
    CreateDatabaseToolsConnectionOracleDatabaseDetails,
    CreateDatabaseToolsRelatedResourceDetails,
    DatabaseToolsUserPasswordSecretIdDetails,
)

from ocidbtools.cloud.auth import OCIAuthContext
from ocidbtools.resilience.errors import InvalidStateError
from ocidbtools.resilience.polling import poll_until

logger = logging.getLogger("ocidbtools.cloud.dbtools")

# Lifecycle states reported by the Database Tools service
LIFECYCLE_CREATING = "CREATING"
LIFECYCLE_ACTIVE = "ACTIVE"
LIFECYCLE_UPDATING = "UPDATING"
LIFECYCLE_DELETING = "DELETING"
LIFECYCLE_DELETED = "DELETED"
LIFECYCLE_FAILED = "FAILED"

RESOLVABLE_STATES = frozenset({LIFECYCLE_ACTIVE})
TERMINAL_STATES = frozenset({LIFECYCLE_DELETED, LIFECYCLE_FAILED})

CONNECTION_TYPE_ORACLE_DATABASE = "ORACLE_DATABASE"

ENTITY_AUTONOMOUS_DATABASE = "AUTONOMOUSDATABASE"
ENTITY_DATABASE = "DATABASE"
ENTITY_PLUGGABLE_DATABASE = "PLUGGABLEDATABASE"

# --database-type choices
RELATED_RESOURCE_TYPES = {
    "autonomous": ENTITY_AUTONOMOUS_DATABASE,
    "database": ENTITY_DATABASE,
    "pluggable": ENTITY_PLUGGABLE_DATABASE,
}

DEFAULT_MAX_WAIT_SECONDS = 300.0


@dataclass
class ConnectionSpec:
    """Attributes needed to create an Oracle Database Tools connection."""
    display_name: str
    compartment_id: str
    user_name: str
    connection_string: str
    password_secret_id: str = ""
    related_resource_id: str = ""
    related_resource_type: str = ENTITY_AUTONOMOUS_DATABASE
    advanced_properties: Dict[str, str] = field(default_factory=dict)

    def to_create_details(self) -> CreateDatabaseToolsConnectionOracleDatabaseDetails:
        kwargs = {
            "display_name": self.display_name,
            "compartment_id": self.compartment_id,
            "user_name": self.user_name,
            "connection_string": self.connection_string,
        }
        if self.password_secret_id:
            kwargs["user_password"] = DatabaseToolsUserPasswordSecretIdDetails(
                secret_id=self.password_secret_id)
        if self.related_resource_id:
            kwargs["related_resource"] = CreateDatabaseToolsRelatedResourceDetails(
                entity_type=self.related_resource_type,
                identifier=self.related_resource_id)
        if self.advanced_properties:
            kwargs["advanced_properties"] = dict(self.advanced_properties)
        return CreateDatabaseToolsConnectionOracleDatabaseDetails(**kwargs)


def is_not_found(exc: Exception) -> bool:
    """True for an OCI 404 service error."""
    return isinstance(exc, oci.exceptions.ServiceError) and exc.status == 404


class DatabaseToolsConnectionClient:
    """Create, fetch, and delete Database Tools connections.

    Args:
        auth: Shared authentication context; the SDK client is built once
            per context and reused.
        max_wait_seconds: Default deadline for wait_for_state().
        base_delay: Base polling delay in seconds.
        max_delay: Polling delay cap in seconds.
    """

    def __init__(self, auth: OCIAuthContext,
                 max_wait_seconds: float = DEFAULT_MAX_WAIT_SECONDS,
                 base_delay: float = 2.0, max_delay: float = 30.0,
                 sleep=None):
        self._auth = auth
        self._max_wait_seconds = max_wait_seconds
        self._base_delay = base_delay
        self._max_delay = max_delay
        self._sleep = sleep

    def _get_client(self) -> DatabaseToolsClient:
        return self._auth.client(DatabaseToolsClient)

    def create(self, spec: ConnectionSpec):
        """Send a create request; response.data.id holds the new OCID."""
        response = self._get_client().create_database_tools_connection(
            create_database_tools_connection_details=spec.to_create_details())
        logger.info("Created Database Tools connection %s (%s, HTTP %s)",
                    response.data.id, response.data.lifecycle_state, response.status)
        return response

    def get(self, connection_id: str):
        return self._get_client().get_database_tools_connection(
            database_tools_connection_id=connection_id)

    def delete(self, connection_id: str):
        """Send a delete request. HTTP 202 means accepted, not completed."""
        response = self._get_client().delete_database_tools_connection(
            database_tools_connection_id=connection_id)
        logger.info("Delete accepted for %s (HTTP %s)", connection_id, response.status)
        return response

    def get_lifecycle_state(self, connection_id: str) -> str:
        return self.get(connection_id).data.lifecycle_state

    def wait_for_state(self, connection_id: str, targets: Iterable[str],
                       max_wait_seconds: Optional[float] = None) -> str:
        """Poll get() until the lifecycle state is one of targets.

        A 404 counts as DELETED when DELETED is a target. Settling in FAILED
        when FAILED is not a target raises InvalidStateError.

        Returns:
            The lifecycle state that satisfied the wait.
        """
        wanted = frozenset(targets)

        def fetch() -> str:
            try:
                return self.get_lifecycle_state(connection_id)
            except oci.exceptions.ServiceError as exc:
                if is_not_found(exc) and LIFECYCLE_DELETED in wanted:
                    logger.debug("%s no longer found; treating as DELETED", connection_id)
                    return LIFECYCLE_DELETED
                raise

        def is_done(state: str) -> bool:
            if state in wanted:
                return True
            if state == LIFECYCLE_FAILED:
                raise InvalidStateError(resource_id=connection_id,
                                        lifecycle_state=state)
            return False

        state = poll_until(
            fetch, is_done,
            max_wait_seconds=(self._max_wait_seconds if max_wait_seconds is None
                              else max_wait_seconds),
            base_delay=self._base_delay,
            max_delay=self._max_delay,
            resource_id=connection_id,
            sleep=self._sleep,
        )
        logger.info("Database Tools connection %s reached %s", connection_id, state)
        return state

    def delete_and_wait(self, connection_id: str,
                        max_wait_seconds: Optional[float] = None) -> str:
        self.delete(connection_id)
        return self.wait_for_state(connection_id, {LIFECYCLE_DELETED},
                                   max_wait_seconds=max_wait_seconds)


def _summary(data) -> Dict:
    return {
        "id": data.id,
        "display_name": getattr(data, "display_name", ""),
        "lifecycle_state": data.lifecycle_state,
        "type": getattr(data, "type", ""),
        "connection_string": getattr(data, "connection_string", ""),
        "user_name": getattr(data, "user_name", ""),
    }


def main():
    """CLI entry point."""
    from ocidbtools.cloud.provider_factory import DbToolsProviderFactory

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    parser = argparse.ArgumentParser(
        description="Database Tools connection client — create, get, delete, wait"
    )
    parser.add_argument("--create", action="store_true",
                        help="Create a connection from the --display-name ... options")
    parser.add_argument("--get", type=str, metavar="OCID",
                        help="Fetch a connection")
    parser.add_argument("--delete", type=str, metavar="OCID",
                        help="Delete a connection")
    parser.add_argument("--wait", type=str, metavar="OCID",
                        help="Poll a connection until it reaches --state")
    parser.add_argument("--state", type=str, default=LIFECYCLE_ACTIVE,
                        help="Target lifecycle state for --wait (default: ACTIVE)")
    parser.add_argument("--timeout", type=float, default=None,
                        help="Max seconds for --wait")
    parser.add_argument("--display-name", type=str, default="")
    parser.add_argument("--compartment-id", type=str, default="")
    parser.add_argument("--user-name", type=str, default="")
    parser.add_argument("--connection-string", type=str, default="")
    parser.add_argument("--password-secret-id", type=str, default="")
    parser.add_argument("--database-id", type=str, default="",
                        help="OCID of the related database")
    parser.add_argument("--database-type", choices=sorted(RELATED_RESOURCE_TYPES),
                        default="autonomous",
                        help="Kind of database --database-id names (default: autonomous)")
    parser.add_argument("--config", type=str, default=None,
                        help="Path to dbtools_config.yaml")
    parser.add_argument("--json", action="store_true",
                        help="JSON output")

    args = parser.parse_args()
    factory = DbToolsProviderFactory(config_path=args.config)
    client = factory.get_dbtools_client()

    if args.create:
        missing = [name for name in ("display_name", "compartment_id",
                                     "user_name", "connection_string")
                   if not getattr(args, name)]
        if missing:
            print(f"Missing required options for --create: "
                  f"{', '.join('--' + m.replace('_', '-') for m in missing)}",
                  file=sys.stderr)
            sys.exit(1)
        spec = ConnectionSpec(
            display_name=args.display_name,
            compartment_id=args.compartment_id,
            user_name=args.user_name,
            connection_string=args.connection_string,
            password_secret_id=args.password_secret_id,
            related_resource_id=args.database_id,
            related_resource_type=RELATED_RESOURCE_TYPES[args.database_type],
        )
        response = client.create(spec)
        result = {"status": response.status, **_summary(response.data)}
    elif args.get:
        response = client.get(args.get)
        result = {"status": response.status, **_summary(response.data)}
    elif args.delete:
        response = client.delete(args.delete)
        result = {"status": response.status, "id": args.delete}
    elif args.wait:
        state = client.wait_for_state(args.wait, {args.state.upper()},
                                      max_wait_seconds=args.timeout)
        result = {"id": args.wait, "lifecycle_state": state}
    else:
        parser.print_help()
        sys.exit(1)

    if args.json:
        print(json.dumps(result, indent=2))
    else:
        for key, value in result.items():
            print(f"  {key}: {value}")


if __name__ == "__main__":
    main()

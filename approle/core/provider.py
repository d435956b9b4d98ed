"""Provider host: owns the Graph clients and dispatches resource operations.

Architecture:
    CLI / caller ──> Provider ──> Resource.create/read/delete ──> Graph services ──> Graph

The provider builds a deadline from the resource's timeouts for every
operation and guarantees that callers only ever see diagnostics: any
exception escaping a resource is logged and converted.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from approle.config.settings import AppConfig
from approle.core.app_role_assignment import AppRoleAssignmentResource
from approle.core.deadline import Deadline
from approle.core.diagnostics import Diagnostic, Diagnostics, SEVERITY_ERROR
from approle.core.graph import AppRoleAssignmentService, DirectoryObjectService, GraphClient
from approle.core.resource import Resource, ResourceState, Timeouts

logger = logging.getLogger(__name__)


class UnknownResourceTypeError(KeyError):
    """No resource is registered under the requested type name."""
    pass


@dataclass
class GraphClients:
    """Graph services shared by every registered resource."""
    directory_objects: DirectoryObjectService
    app_role_assignments: AppRoleAssignmentService


def build_clients(config: AppConfig) -> GraphClients:
    """Authenticate against Entra ID and build the Graph services.

    Raises:
        GraphAuthError: If no token can be obtained
        ValueError: If the client secret is not configured
    """
    client = GraphClient(
        config.graph_url,
        api_version=config.graph_api_version,
        authority_url=config.authority_url,
        request_timeout=config.request_timeout,
    )
    client.authenticate_client_credentials(config.tenant_id, config.client_id, config.client_secret_resolved)
    return GraphClients(
        directory_objects=DirectoryObjectService(client),
        app_role_assignments=AppRoleAssignmentService(client),
    )


def timeouts_from_config(config: AppConfig) -> Timeouts:
    return Timeouts(create=config.create_timeout, read=config.read_timeout, delete=config.delete_timeout)


class Provider:
    """Registry of resource types plus the lifecycle entry points."""

    def __init__(self, clients: GraphClients, timeouts: Optional[Timeouts] = None):
        self.clients = clients
        self._resources: Dict[str, Resource] = {}
        self.register(AppRoleAssignmentResource(clients.directory_objects, clients.app_role_assignments, timeouts))

    @classmethod
    def from_config(cls, config: AppConfig) -> "Provider":
        return cls(build_clients(config), timeouts_from_config(config))

    def register(self, resource: Resource) -> None:
        if not resource.type_name:
            raise ValueError(f"{type(resource).__name__} has no type_name")
        self._resources[resource.type_name] = resource

    def resource(self, type_name: str) -> Resource:
        try:
            return self._resources[type_name]
        except KeyError:
            raise UnknownResourceTypeError(type_name) from None

    def resource_types(self) -> List[str]:
        return sorted(self._resources)

    def create(self, type_name: str, state: ResourceState) -> Diagnostics:
        """Validate the configuration then create the resource.

        On success ``state.id`` is set and computed attributes are filled in.
        A create whose follow-up read loses the object is reported as an error.
        """
        resource = self.resource(type_name)
        diags = resource.schema.validate(state)
        if diags.has_error():
            return diags

        diags = self._run(resource, "create", state)
        if not diags.has_error() and not state.exists:
            diags.append(Diagnostic(
                SEVERITY_ERROR,
                "Provider produced inconsistent result after create",
                f"{type_name} was created but could not be read back; no identifier was stored",
                attribute_path="id",
            ))
        return diags

    def read(self, type_name: str, state: ResourceState) -> Diagnostics:
        """Refresh state; an empty ``state.id`` afterwards means it is gone."""
        return self._run(self.resource(type_name), "read", state)

    def delete(self, type_name: str, state: ResourceState) -> Diagnostics:
        return self._run(self.resource(type_name), "delete", state)

    def import_resource(self, type_name: str, resource_id: str) -> Tuple[ResourceState, Diagnostics]:
        """Adopt an existing remote object by its identifier."""
        resource = self.resource(type_name)
        state, diags = resource.import_state(resource_id)
        if diags.has_error():
            return state, diags

        diags.extend(self._run(resource, "read", state))
        if not diags.has_error() and not state.exists:
            diags.append(Diagnostic(
                SEVERITY_ERROR,
                "Cannot import non-existent remote object",
                f"{type_name} with ID {resource_id!r} was not found",
                attribute_path="id",
            ))
        return state, diags

    def _run(self, resource: Resource, operation: str, state: ResourceState) -> Diagnostics:
        deadline = Deadline.after(resource.timeouts.for_operation(operation), f"{resource.type_name} {operation}")
        handler = getattr(resource, operation)
        try:
            return handler(state, deadline)
        except Exception as e:
            logger.error("Unhandled exception in %s %s: %s", resource.type_name, operation, e, exc_info=True)
            return Diagnostics([Diagnostic(
                SEVERITY_ERROR,
                f"Unexpected error during {resource.type_name} {operation}",
                str(e),
            )])

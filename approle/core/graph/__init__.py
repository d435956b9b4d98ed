"""Microsoft Graph client library.

Architecture:
- client.py: HTTP client with client-credentials authentication and auto-refresh
- directory_objects.py: Service principal lookups
- app_role_assignments.py: appRoleAssignedTo create/get/delete
- models.py: Wire representations with optional properties
- exceptions.py: Typed exceptions for error handling

Usage:
    from approle.core.graph import GraphClient, AppRoleAssignmentService

    client = GraphClient()
    client.authenticate_client_credentials(tenant_id, client_id, client_secret)

    assignments = AppRoleAssignmentService(client)
    assignment = assignments.get(resource_id, assignment_id)
"""
from .client import (
    GraphClient,
    create_client_with_token,
    response_json,
    REQUEST_TIMEOUT,
    GRAPH_SCOPE,
)
from .exceptions import (
    GraphError,
    GraphAPIError,
    GraphAuthError,
    GraphRequestError,
    DeadlineExceededError,
    ApiContractError,
    was_not_found,
)
from .models import AppRoleAssignment, ServicePrincipal, or_zero
from .directory_objects import DirectoryObjectService
from .app_role_assignments import AppRoleAssignmentService

__all__ = [
    # Client
    "GraphClient",
    "create_client_with_token",
    "response_json",
    "REQUEST_TIMEOUT",
    "GRAPH_SCOPE",

    # Exceptions
    "GraphError",
    "GraphAPIError",
    "GraphAuthError",
    "GraphRequestError",
    "DeadlineExceededError",
    "ApiContractError",
    "was_not_found",

    # Models
    "AppRoleAssignment",
    "ServicePrincipal",
    "or_zero",

    # Services
    "DirectoryObjectService",
    "AppRoleAssignmentService",
]

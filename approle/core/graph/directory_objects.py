"""Directory object lookups (service principals)."""
from __future__ import annotations
from typing import TYPE_CHECKING, Optional
from urllib.parse import quote

from .client import GraphClient, response_json
from .exceptions import ApiContractError
from .models import ServicePrincipal

if TYPE_CHECKING:
    from approle.core.deadline import Deadline


class DirectoryObjectService:
    """Service for reading directory objects from Microsoft Graph."""

    def __init__(self, client: GraphClient):
        """Initialize directory object service.

        Args:
            client: Authenticated Graph client
        """
        self.client = client

    def get_service_principal(self, object_id: str, deadline: Optional[Deadline] = None) -> ServicePrincipal:
        """Fetch a service principal by object ID.

        Args:
            object_id: Service principal object ID
            deadline: Operation deadline

        Returns:
            Service principal record

        Raises:
            GraphAPIError: On HTTP error (``not_found`` when it does not exist)
            ApiContractError: If the response body is empty or not JSON
        """
        resp = self.client.get(
            f"/servicePrincipals/{quote(object_id, safe='')}",
            params={"$select": "id,appId,displayName,servicePrincipalType"},
            deadline=deadline,
        )
        payload = response_json(resp)
        if not payload:
            raise ApiContractError(f"Service principal lookup for {object_id!r} returned an empty body")
        return ServicePrincipal.from_graph(payload)

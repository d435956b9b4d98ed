"""App role assignments granted for a resource service principal."""
from __future__ import annotations
from typing import TYPE_CHECKING, Optional
from urllib.parse import quote

from .client import GraphClient, response_json
from .models import AppRoleAssignment

if TYPE_CHECKING:
    from approle.core.deadline import Deadline


class AppRoleAssignmentService:
    """Service for ``/servicePrincipals/{id}/appRoleAssignedTo`` operations.

    Assignments are addressed under the resource service principal, so every
    call takes the resource object ID alongside the assignment ID.
    """

    def __init__(self, client: GraphClient):
        """Initialize app role assignment service.

        Args:
            client: Authenticated Graph client
        """
        self.client = client

    @staticmethod
    def _collection_path(resource_id: str) -> str:
        return f"/servicePrincipals/{quote(resource_id, safe='')}/appRoleAssignedTo"

    def _item_path(self, resource_id: str, assignment_id: str) -> str:
        return f"{self._collection_path(resource_id)}/{quote(assignment_id, safe='')}"

    def create(
        self,
        resource_id: str,
        assignment: AppRoleAssignment,
        deadline: Optional[Deadline] = None,
    ) -> Optional[AppRoleAssignment]:
        """Grant an app role to a principal.

        Args:
            resource_id: Object ID of the resource service principal
            assignment: Assignment properties (appRoleId, principalId, resourceId)
            deadline: Operation deadline

        Returns:
            Created assignment, or None if Graph returned an empty body
        """
        resp = self.client.post(self._collection_path(resource_id), json=assignment.to_graph(), deadline=deadline)
        payload = response_json(resp)
        if not payload:
            return None
        return AppRoleAssignment.from_graph(payload)

    def get(
        self,
        resource_id: str,
        assignment_id: str,
        deadline: Optional[Deadline] = None,
    ) -> Optional[AppRoleAssignment]:
        """Fetch a single assignment.

        Raises:
            GraphAPIError: On HTTP error (``not_found`` when it was deleted)
        """
        resp = self.client.get(self._item_path(resource_id, assignment_id), deadline=deadline)
        payload = response_json(resp)
        if not payload:
            return None
        return AppRoleAssignment.from_graph(payload)

    def delete(self, resource_id: str, assignment_id: str, deadline: Optional[Deadline] = None) -> None:
        """Revoke an assignment."""
        self.client.delete(self._item_path(resource_id, assignment_id), deadline=deadline)

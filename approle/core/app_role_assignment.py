"""``azuread_app_role_assignment`` resource.

Manages a grant of an app role, defined on a resource service principal, to
a user, group or service principal.

Flow:
    create: service principal lookup -> POST appRoleAssignedTo -> read
    read:   GET appRoleAssignedTo/{id}; 404 removes the resource from state
    delete: DELETE appRoleAssignedTo/{id}
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

from approle.core.deadline import Deadline
from approle.core.diagnostics import Diagnostics, error_diag, error_diag_path
from approle.core.graph import (
    AppRoleAssignment,
    AppRoleAssignmentService,
    ApiContractError,
    DirectoryObjectService,
    GraphError,
    or_zero,
    was_not_found,
)
from approle.core.ids import AppRoleAssignmentId, InvalidIdError, new_app_role_assignment_id
from approle.core.resource import Resource, ResourceState, Timeouts, attribute
from approle.core.validators import is_uuid

logger = logging.getLogger(__name__)

RESOURCE_TYPE = "azuread_app_role_assignment"


@dataclass
class AppRoleAssignmentState(ResourceState):
    app_role_id: str = attribute(
        "The ID of the app role to be assigned",
        required=True, force_new=True, validators=(is_uuid,),
    )
    principal_object_id: str = attribute(
        "The object ID of the user, group or service principal to be assigned this app role",
        required=True, force_new=True, validators=(is_uuid,),
    )
    resource_object_id: str = attribute(
        "The object ID of the service principal representing the resource",
        required=True, force_new=True, validators=(is_uuid,),
    )
    principal_display_name: str = attribute(
        "The display name of the principal to which the app role is assigned",
        computed=True,
    )
    principal_type: str = attribute(
        "The object type of the principal to which the app role is assigned",
        computed=True,
    )
    resource_display_name: str = attribute(
        "The display name of the application representing the resource",
        computed=True,
    )


class AppRoleAssignmentResource(Resource):
    """App role assignment lifecycle against Microsoft Graph."""

    type_name = RESOURCE_TYPE
    state_type = AppRoleAssignmentState

    def __init__(
        self,
        directory_objects: DirectoryObjectService,
        assignments: AppRoleAssignmentService,
        timeouts: Optional[Timeouts] = None,
    ):
        super().__init__(timeouts)
        self.directory_objects = directory_objects
        self.assignments = assignments

    def validate_import_id(self, resource_id: str) -> None:
        AppRoleAssignmentId.parse(resource_id)

    def create(self, state: AppRoleAssignmentState, deadline: Optional[Deadline] = None) -> Diagnostics:
        app_role_id = state.app_role_id
        principal_id = state.principal_object_id
        resource_id = state.resource_object_id

        try:
            self.directory_objects.get_service_principal(resource_id, deadline=deadline)
        except GraphError as e:
            if was_not_found(e):
                return error_diag_path(e, "principal_object_id",
                                       "Service principal not found for resource (Object ID: %r)", resource_id)
            return error_diag(e, "Could not retrieve service principal for resource (Object ID: %r)", resource_id)

        properties = AppRoleAssignment(
            app_role_id=app_role_id,
            principal_id=principal_id,
            resource_id=resource_id,
        )

        try:
            created = self.assignments.create(resource_id, properties, deadline=deadline)
        except GraphError as e:
            return error_diag(e, "Could not create app role assignment")

        if created is None:
            return error_diag(ApiContractError("model was nil"), "Could not create app role assignment")
        if not created.id:
            return error_diag(ApiContractError("ID returned for app role assignment is nil"), "Bad API response")
        if not created.resource_id:
            return error_diag(ApiContractError("Resource ID returned for app role assignment is nil"),
                              "Bad API response")

        try:
            ref = new_app_role_assignment_id(created.resource_id, created.id)
        except InvalidIdError as e:
            return error_diag(ApiContractError(str(e)), "Bad API response")
        state.id = ref.to_string()
        logger.info("Created app role assignment %s", state.id)

        return self.read(state, deadline)

    def read(self, state: AppRoleAssignmentState, deadline: Optional[Deadline] = None) -> Diagnostics:
        try:
            ref = AppRoleAssignmentId.parse(state.id)
        except InvalidIdError as e:
            return error_diag_path(e, "id", "Parsing app role assignment with ID %r", state.id)

        try:
            assignment = self.assignments.get(ref.resource_id, ref.assignment_id, deadline=deadline)
        except GraphError as e:
            if was_not_found(e):
                logger.debug("App role assignment %s was not found - removing from state!", ref)
                state.id = ""
                return Diagnostics()
            return error_diag(e, "retrieving app role assignment %s", ref)

        if assignment is None:
            return error_diag(ApiContractError("model was nil"), "retrieving app role assignment %s", ref)

        state.app_role_id = or_zero(assignment.app_role_id)
        state.principal_display_name = or_zero(assignment.principal_display_name)
        state.principal_object_id = or_zero(assignment.principal_id)
        state.principal_type = or_zero(assignment.principal_type)
        state.resource_display_name = or_zero(assignment.resource_display_name)
        state.resource_object_id = or_zero(assignment.resource_id)

        return Diagnostics()

    def delete(self, state: AppRoleAssignmentState, deadline: Optional[Deadline] = None) -> Diagnostics:
        try:
            ref = AppRoleAssignmentId.parse(state.id)
        except InvalidIdError as e:
            return error_diag_path(e, "id", "Parsing app role assignment with ID %r", state.id)

        try:
            self.assignments.delete(ref.resource_id, ref.assignment_id, deadline=deadline)
        except GraphError as e:
            return error_diag_path(e, "id", "Deleting app role assignment %s", ref)

        logger.info("Deleted app role assignment %s", ref)
        return Diagnostics()

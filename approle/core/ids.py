"""Composite identifier for app role assignments.

An assignment is only addressable under its resource service principal, so
the identifier stored in state is ``{resource_id}/{assignment_id}``.
"""
from __future__ import annotations
from dataclasses import dataclass

SEPARATOR = "/"


class InvalidIdError(ValueError):
    """Identifier string could not be parsed."""
    pass


@dataclass(frozen=True)
class AppRoleAssignmentId:
    resource_id: str
    assignment_id: str

    def __str__(self) -> str:
        return self.to_string()

    def to_string(self) -> str:
        return f"{self.resource_id}{SEPARATOR}{self.assignment_id}"

    @classmethod
    def parse(cls, value: str) -> "AppRoleAssignmentId":
        """Parse an identifier produced by ``to_string``.

        The resource part never contains the separator; everything after the
        first separator belongs to the assignment ID.

        Raises:
            InvalidIdError: If the value is empty or either part is missing
        """
        if not isinstance(value, str) or not value:
            raise InvalidIdError("app role assignment ID must be a non-empty string")
        resource_id, sep, assignment_id = value.partition(SEPARATOR)
        if not sep:
            raise InvalidIdError(f"app role assignment ID {value!r} must be in the format {{resourceId}}/{{assignmentId}}")
        if not resource_id:
            raise InvalidIdError(f"app role assignment ID {value!r} is missing the resource ID")
        if not assignment_id:
            raise InvalidIdError(f"app role assignment ID {value!r} is missing the assignment ID")
        return cls(resource_id, assignment_id)


def new_app_role_assignment_id(resource_id: str, assignment_id: str) -> AppRoleAssignmentId:
    """Build an identifier, rejecting parts that would not parse back."""
    if not resource_id or SEPARATOR in resource_id:
        raise InvalidIdError(f"invalid resource ID {resource_id!r}")
    if not assignment_id:
        raise InvalidIdError("assignment ID must not be empty")
    return AppRoleAssignmentId(resource_id, assignment_id)

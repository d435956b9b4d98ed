"""Wire representations of Graph resources used by this project."""
from __future__ import annotations
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

# Python attribute -> Graph JSON property
_APP_ROLE_ASSIGNMENT_PROPERTIES = {
    "id": "id",
    "app_role_id": "appRoleId",
    "principal_id": "principalId",
    "principal_display_name": "principalDisplayName",
    "principal_type": "principalType",
    "resource_id": "resourceId",
    "resource_display_name": "resourceDisplayName",
    "created_date_time": "createdDateTime",
}


def or_zero(value: Optional[str]) -> str:
    """Zero-value fallback for optional string properties."""
    return value if value is not None else ""


@dataclass
class AppRoleAssignment:
    """Graph ``appRoleAssignment`` resource.

    Every property is optional on the wire: ``None`` means the property was
    absent or null in the payload.
    """
    id: Optional[str] = None
    app_role_id: Optional[str] = None
    principal_id: Optional[str] = None
    principal_display_name: Optional[str] = None
    principal_type: Optional[str] = None
    resource_id: Optional[str] = None
    resource_display_name: Optional[str] = None
    created_date_time: Optional[str] = None

    @classmethod
    def from_graph(cls, payload: Dict[str, Any]) -> "AppRoleAssignment":
        return cls(**{attr: payload.get(prop) for attr, prop in _APP_ROLE_ASSIGNMENT_PROPERTIES.items()})

    def to_graph(self) -> Dict[str, Any]:
        """Serialize to a Graph request body, omitting unset properties."""
        body = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None:
                body[_APP_ROLE_ASSIGNMENT_PROPERTIES[f.name]] = value
        return body


@dataclass
class ServicePrincipal:
    """Subset of the Graph ``servicePrincipal`` resource needed for lookups."""
    id: Optional[str] = None
    app_id: Optional[str] = None
    display_name: Optional[str] = None
    service_principal_type: Optional[str] = None

    @classmethod
    def from_graph(cls, payload: Dict[str, Any]) -> "ServicePrincipal":
        return cls(
            id=payload.get("id"),
            app_id=payload.get("appId"),
            display_name=payload.get("displayName"),
            service_principal_type=payload.get("servicePrincipalType"),
        )

"""Pytest shared fixtures: network guard rails and in-memory Graph services."""
import json
import pathlib
import sys
from types import SimpleNamespace
from typing import Optional

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests

from approle.core.app_role_assignment import AppRoleAssignmentResource
from approle.core.graph import AppRoleAssignment, GraphAPIError, ServicePrincipal
from approle.core.provider import GraphClients, Provider

APP_ROLE_ID = "11111111-1111-1111-1111-111111111111"
PRINCIPAL_ID = "22222222-2222-2222-2222-222222222222"
RESOURCE_ID = "33333333-3333-3333-3333-333333333333"
MISSING_RESOURCE_ID = "44444444-4444-4444-4444-444444444444"


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch, request):
    """
    Prevent unit tests from reaching Microsoft Graph.

    Tests that exercise the HTTP client patch requests.get/post/delete again
    with their own stubs.
    """
    if request.node.get_closest_marker("integration"):
        return

    def _fail(method):
        def _stub(url, *args, **kwargs):
            raise RuntimeError(f"Unexpected HTTP {method} in unit test: {url}")
        return _stub

    monkeypatch.setattr(requests, "get", _fail("GET"))
    monkeypatch.setattr(requests, "post", _fail("POST"))
    monkeypatch.setattr(requests, "delete", _fail("DELETE"))


class StubResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, payload=None, status_code: int = 200, url: str = "https://graph.microsoft.com/v1.0/stub",
                 text: Optional[str] = None):
        self._payload = payload
        self.status_code = status_code
        self.url = url
        if text is not None:
            self.text = text
        else:
            self.text = json.dumps(payload) if payload is not None else ""
        self.content = self.text.encode("utf-8")

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


@pytest.fixture()
def stub_response():
    return StubResponse


# ─────────────────────────────────────────────────────────────────────────────
# In-memory Graph services
# ─────────────────────────────────────────────────────────────────────────────
def not_found(endpoint: str) -> GraphAPIError:
    return GraphAPIError(404, "Resource does not exist", endpoint, "Request_ResourceNotFound")


class FakeDirectoryObjects:
    """Service principals known to the fake tenant."""

    def __init__(self, existing=(RESOURCE_ID,)):
        self.existing = set(existing)
        self.calls = []
        self.error: Optional[Exception] = None

    def get_service_principal(self, object_id, deadline=None):
        self.calls.append(object_id)
        if self.error is not None:
            raise self.error
        if object_id not in self.existing:
            raise not_found(f"/servicePrincipals/{object_id}")
        return ServicePrincipal(id=object_id, display_name="Payroll API", service_principal_type="Application")


class FakeAppRoleAssignments:
    """appRoleAssignedTo collections keyed by (resource_id, assignment_id)."""

    def __init__(self):
        self.items = {}
        self.calls = []
        self.errors = {}
        self.create_response = None
        self._counter = 0

    def _maybe_fail(self, operation):
        error = self.errors.get(operation)
        if error is not None:
            raise error

    def create(self, resource_id, assignment, deadline=None):
        self.calls.append(("create", resource_id, assignment))
        self._maybe_fail("create")
        if self.create_response is not None:
            return self.create_response
        self._counter += 1
        assignment_id = f"rS0W7eGq{self._counter:04d}kGn2nIpRaQ"
        created = AppRoleAssignment(
            id=assignment_id,
            app_role_id=assignment.app_role_id,
            principal_id=assignment.principal_id,
            principal_display_name="Alice Example",
            principal_type="User",
            resource_id=assignment.resource_id,
            resource_display_name="Payroll API",
        )
        self.items[(resource_id, assignment_id)] = created
        return created

    def get(self, resource_id, assignment_id, deadline=None):
        self.calls.append(("get", resource_id, assignment_id))
        self._maybe_fail("get")
        try:
            return self.items[(resource_id, assignment_id)]
        except KeyError:
            raise not_found(f"/servicePrincipals/{resource_id}/appRoleAssignedTo/{assignment_id}")

    def delete(self, resource_id, assignment_id, deadline=None):
        self.calls.append(("delete", resource_id, assignment_id))
        self._maybe_fail("delete")
        if self.items.pop((resource_id, assignment_id), None) is None:
            raise not_found(f"/servicePrincipals/{resource_id}/appRoleAssignedTo/{assignment_id}")


@pytest.fixture()
def ids():
    """Well-known object IDs used across tests."""
    return SimpleNamespace(
        app_role=APP_ROLE_ID,
        principal=PRINCIPAL_ID,
        resource=RESOURCE_ID,
        missing_resource=MISSING_RESOURCE_ID,
    )


@pytest.fixture()
def directory_objects():
    return FakeDirectoryObjects()


@pytest.fixture()
def assignments():
    return FakeAppRoleAssignments()


@pytest.fixture()
def resource(directory_objects, assignments):
    return AppRoleAssignmentResource(directory_objects, assignments)


@pytest.fixture()
def provider(directory_objects, assignments):
    return Provider(GraphClients(directory_objects=directory_objects, app_role_assignments=assignments))


# ─────────────────────────────────────────────────────────────────────────────
# Pytest Configuration
# ─────────────────────────────────────────────────────────────────────────────
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (requires a real tenant)"
    )

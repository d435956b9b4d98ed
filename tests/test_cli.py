"""Tests for the assignments CLI host."""
import json
import sys
from types import SimpleNamespace

import pytest

import scripts.assignments as cli
from scripts import audit


@pytest.fixture(autouse=True)
def restore_sys_argv():
    """Make sure every test sees a clean CLI invocation."""
    original = sys.argv[:]
    yield
    sys.argv = original


@pytest.fixture
def audit_file(monkeypatch, tmp_path):
    audit_dir = tmp_path / "audit"
    monkeypatch.setattr(audit, "AUDIT_LOG_DIR", audit_dir)
    monkeypatch.setattr(audit, "AUDIT_LOG_FILE", audit_dir / "app-role-assignments.jsonl")
    monkeypatch.delenv("AUDIT_LOG_SIGNING_KEY", raising=False)
    monkeypatch.delenv("AUDIT_LOG_SIGNING_KEY_FILE", raising=False)
    return audit_dir / "app-role-assignments.jsonl"


@pytest.fixture
def run(monkeypatch, tmp_path, provider, audit_file):
    """Invoke the CLI against in-memory Graph services."""
    state_file = tmp_path / "state.json"
    monkeypatch.setattr(cli, "build_provider", lambda args: provider)

    def _run(*argv):
        sys.argv = ["assignments.py", "--state-file", str(state_file), *argv]
        cli.main()

    _run.state_file = state_file
    return _run


def audit_events(audit_file):
    return [json.loads(line) for line in audit_file.read_text().splitlines()]


def stored(run):
    return json.loads(run.state_file.read_text())["resources"]


def create_args(ids, name="payroll-reader"):
    return (
        "create", "--name", name,
        "--app-role-id", ids.app_role,
        "--principal-object-id", ids.principal,
        "--resource-object-id", ids.resource,
    )


def test_create_stores_state_and_audits(run, ids, capsys, audit_file):
    run(*create_args(ids))

    out = json.loads(capsys.readouterr().out)
    assert out["id"].startswith(f"{ids.resource}/")
    assert out["principal_display_name"] == "Alice Example"
    entry = stored(run)["payroll-reader"]
    assert entry["type"] == "azuread_app_role_assignment"
    assert entry["state"]["id"] == out["id"]
    event = audit_events(audit_file)[0]
    assert event["event_type"] == "assignment_create"
    assert event["resource_id"] == out["id"]
    assert event["success"] is True


def test_create_from_yaml_definition(run, ids, tmp_path, assignments):
    definition = tmp_path / "assignment.yaml"
    definition.write_text(
        f"app_role_id: {ids.app_role}\n"
        f"principal_object_id: {ids.principal}\n"
        f"resource_object_id: {ids.resource}\n"
    )

    run("create", "--name", "payroll-reader", "--from-file", str(definition))

    assert len(assignments.items) == 1


def test_create_rejects_unknown_yaml_fields(run, ids, tmp_path, capsys):
    definition = tmp_path / "assignment.yaml"
    definition.write_text(f"app_role_id: {ids.app_role}\nscope: everything\n")

    with pytest.raises(SystemExit) as exc:
        run("create", "--name", "payroll-reader", "--from-file", str(definition))

    assert exc.value.code == 1
    assert "unknown fields: scope" in capsys.readouterr().err


def test_create_requires_all_inputs(run, ids):
    with pytest.raises(SystemExit) as exc:
        run("create", "--name", "payroll-reader", "--app-role-id", ids.app_role)

    assert exc.value.code == 2


def test_create_with_missing_resource_fails_without_state(run, ids, capsys, audit_file):
    with pytest.raises(SystemExit) as exc:
        run(
            "create", "--name", "payroll-reader",
            "--app-role-id", ids.app_role,
            "--principal-object-id", ids.principal,
            "--resource-object-id", ids.missing_resource,
        )

    assert exc.value.code == 1
    assert "principal_object_id: Service principal not found" in capsys.readouterr().err
    assert not run.state_file.exists()
    assert audit_events(audit_file)[0]["success"] is False


def test_create_existing_name_is_noop(run, ids, capsys, assignments):
    run(*create_args(ids))
    capsys.readouterr()

    run(*create_args(ids))

    assert "nothing to do" in capsys.readouterr().err
    assert [call[0] for call in assignments.calls].count("create") == 1


def test_create_existing_name_with_new_principal_requires_replacement(run, ids, capsys):
    run(*create_args(ids))

    with pytest.raises(SystemExit):
        run(
            "create", "--name", "payroll-reader",
            "--app-role-id", ids.app_role,
            "--principal-object-id", "55555555-5555-5555-5555-555555555555",
            "--resource-object-id", ids.resource,
        )

    assert "principal_object_id requires replacement" in capsys.readouterr().err


def test_refresh_removes_assignment_deleted_out_of_band(run, ids, assignments, audit_file, capsys):
    run(*create_args(ids))
    assignments.items.clear()

    run("refresh", "--name", "payroll-reader")

    assert "no longer exists" in capsys.readouterr().err
    assert stored(run) == {}
    assert audit_events(audit_file)[-1]["event_type"] == "assignment_drift"


def test_refresh_updates_computed_fields(run, ids, assignments):
    run(*create_args(ids))
    for item in assignments.items.values():
        item.principal_display_name = "Alice Renamed"

    run("refresh", "--name", "payroll-reader")

    assert stored(run)["payroll-reader"]["state"]["principal_display_name"] == "Alice Renamed"


def test_refresh_unknown_name(run, capsys):
    with pytest.raises(SystemExit) as exc:
        run("refresh", "--name", "nope")

    assert exc.value.code == 1
    assert "[refresh] Error: No resource named 'nope'" in capsys.readouterr().err


def test_delete_removes_state(run, ids, assignments, audit_file):
    run(*create_args(ids))

    run("delete", "--name", "payroll-reader")

    assert assignments.items == {}
    assert stored(run) == {}
    assert audit_events(audit_file)[-1]["event_type"] == "assignment_delete"


def test_delete_failure_keeps_state(run, ids, assignments, audit_file, capsys):
    from approle.core.graph import GraphAPIError

    run(*create_args(ids))
    assignments.errors["delete"] = GraphAPIError(503, "Service unavailable", "/x")

    with pytest.raises(SystemExit) as exc:
        run("delete", "--name", "payroll-reader")

    assert exc.value.code == 1
    assert "id: Deleting app role assignment" in capsys.readouterr().err
    assert "payroll-reader" in stored(run)
    event = audit_events(audit_file)[-1]
    assert event["success"] is False
    assert "Service unavailable" in event["details"]["error"]


def test_import_existing_assignment(run, ids, provider, audit_file):
    from approle.core.app_role_assignment import AppRoleAssignmentState

    existing = AppRoleAssignmentState(
        app_role_id=ids.app_role, principal_object_id=ids.principal, resource_object_id=ids.resource,
    )
    provider.create("azuread_app_role_assignment", existing)

    run("import", "--name", "adopted", "--id", existing.id)

    state = stored(run)["adopted"]["state"]
    assert state["id"] == existing.id
    assert state["app_role_id"] == ids.app_role
    assert audit_events(audit_file)[-1]["event_type"] == "assignment_import"


def test_import_non_existent_assignment(run, ids, capsys):
    with pytest.raises(SystemExit) as exc:
        run("import", "--name", "adopted", "--id", f"{ids.resource}/missing")

    assert exc.value.code == 1
    assert "Cannot import non-existent remote object" in capsys.readouterr().err
    assert not run.state_file.exists()


def test_import_refuses_managed_name(run, ids, capsys):
    run(*create_args(ids))

    with pytest.raises(SystemExit):
        run("import", "--name", "payroll-reader", "--id", f"{ids.resource}/other")

    assert "already managed" in capsys.readouterr().err


def test_show_lists_names_and_state(run, ids, capsys):
    run(*create_args(ids, name="b-reader"))
    run(*create_args(ids, name="a-reader"))
    capsys.readouterr()

    run("show")
    assert capsys.readouterr().out.split() == ["a-reader", "b-reader"]

    run("show", "--name", "a-reader")
    assert json.loads(capsys.readouterr().out)["app_role_id"] == ids.app_role


def test_schema_does_not_authenticate(monkeypatch, tmp_path, capsys):
    def fail_if_called(args):
        raise AssertionError("schema must not build a provider")

    monkeypatch.setattr(cli, "build_provider", fail_if_called)
    sys.argv = ["assignments.py", "--state-file", str(tmp_path / "s.json"), "schema"]

    cli.main()

    described = json.loads(capsys.readouterr().out)
    assert described["resource_object_id"]["force_new"] is True


def test_no_command_prints_help(monkeypatch, capsys):
    sys.argv = ["assignments.py"]

    cli.main()

    assert "usage" in capsys.readouterr().out.lower()


def test_create_that_cannot_be_read_back_fails(run, ids, assignments, capsys, audit_file):
    original_create = assignments.create

    def create_then_vanish(resource_id, assignment, deadline=None):
        created = original_create(resource_id, assignment, deadline=deadline)
        assignments.items.pop((resource_id, created.id))
        return created

    assignments.create = create_then_vanish

    with pytest.raises(SystemExit) as exc:
        run(*create_args(ids))

    assert exc.value.code == 1
    assert "id: Provider produced inconsistent result after create" in capsys.readouterr().err
    assert not run.state_file.exists()
    assert audit_events(audit_file)[0]["success"] is False


def test_token_provider_honours_environment_settings(monkeypatch):
    for name in ("AZURE_TENANT_ID", "AZURE_CLIENT_ID", "APPROLE_READ_TIMEOUT", "APPROLE_DELETE_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("APPROLE_CREATE_TIMEOUT", "45")
    monkeypatch.setenv("GRAPH_REQUEST_TIMEOUT", "9")
    monkeypatch.setenv("GRAPH_API_VERSION", "beta")
    args = SimpleNamespace(token="pre-obtained", graph_url="https://graph.example.test")

    provider = cli.build_provider(args)

    timeouts = provider.resource("azuread_app_role_assignment").timeouts
    assert timeouts.create == 45
    assert timeouts.read == 300
    client = provider.clients.directory_objects.client
    assert client.api_version == "beta"
    assert client.request_timeout == 9
    assert client.url_for("/servicePrincipals/x") == "https://graph.example.test/beta/servicePrincipals/x"

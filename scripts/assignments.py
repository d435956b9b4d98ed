"""Command-line host for the azuread_app_role_assignment resource.

Resource state is kept in a local JSON file between invocations, keyed by
a name chosen by the operator.
"""
from __future__ import annotations
import argparse
import json
import logging
import os
import sys
from pathlib import Path

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import yaml

from approle.config.settings import load_settings
from approle.core.app_role_assignment import RESOURCE_TYPE, AppRoleAssignmentState
from approle.core.diagnostics import Diagnostics
from approle.core.graph import (
    AppRoleAssignmentService,
    DirectoryObjectService,
    GraphError,
    create_client_with_token,
)
from approle.core.provider import GraphClients, Provider, UnknownResourceTypeError, timeouts_from_config
from approle.core.resource import Schema
from approle.core.state import StateError, StateStore
from scripts import audit

DEFAULT_STATE_FILE = ".runtime/state/app_role_assignments.json"
INPUT_FIELDS = ("app_role_id", "principal_object_id", "resource_object_id")


def build_provider(args: argparse.Namespace) -> Provider:
    """Build a provider from an explicit token or from environment settings.

    Timeouts and the Graph API version come from the environment in both cases.
    """
    if args.token:
        config = load_settings(require_credentials=False)
        client = create_client_with_token(
            args.graph_url,
            args.token,
            api_version=config.graph_api_version,
            request_timeout=config.request_timeout,
        )
        clients = GraphClients(
            directory_objects=DirectoryObjectService(client),
            app_role_assignments=AppRoleAssignmentService(client),
        )
        return Provider(clients, timeouts_from_config(config))
    return Provider.from_config(load_settings())


def load_definition(path: str) -> dict:
    """Read create arguments from a YAML document."""
    with open(path, encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping of {', '.join(INPUT_FIELDS)}")
    unknown = sorted(set(data) - set(INPUT_FIELDS))
    if unknown:
        raise ValueError(f"{path} contains unknown fields: {', '.join(unknown)}")
    return {key: str(value) for key, value in data.items()}


def _print_diagnostics(command: str, diags: Diagnostics) -> None:
    for diag in diags:
        print(f"[{command}] {diag.severity.capitalize()}: {diag}", file=sys.stderr)


def _print_state(state_dict: dict) -> None:
    print(json.dumps(state_dict, indent=2, sort_keys=True))


def main() -> None:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="Manage Entra ID app role assignments")
    parser.add_argument("--state-file", default=os.environ.get("APPROLE_STATE_FILE", DEFAULT_STATE_FILE))
    parser.add_argument("--graph-url", default=os.environ.get("GRAPH_URL", "https://graph.microsoft.com"))
    parser.add_argument("--token", default=os.environ.get("GRAPH_ACCESS_TOKEN"),
                        help="Pre-obtained Graph access token (skips client-credentials login)")
    parser.add_argument("--operator", default="automation",
                        help="Operator identifier for audit logs (default: automation)")

    sub = parser.add_subparsers(dest="cmd")

    sc = sub.add_parser("create")
    sc.add_argument("--name", required=True)
    sc.add_argument("--from-file", help="YAML file with app_role_id, principal_object_id, resource_object_id")
    sc.add_argument("--app-role-id")
    sc.add_argument("--principal-object-id")
    sc.add_argument("--resource-object-id")

    sr = sub.add_parser("refresh")
    sr.add_argument("--name", required=True)

    sd = sub.add_parser("delete")
    sd.add_argument("--name", required=True)

    si = sub.add_parser("import")
    si.add_argument("--name", required=True)
    si.add_argument("--id", required=True, help="Assignment ID in the format {resourceId}/{assignmentId}")

    ss = sub.add_parser("show")
    ss.add_argument("--name")

    sub.add_parser("schema")

    args = parser.parse_args()

    if not args.cmd:
        parser.print_help()
        return

    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="[%(name)s] %(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    store = StateStore(args.state_file)

    try:
        if args.cmd == "show":
            _show(store, args.name)
            return
        if args.cmd == "schema":
            _print_state(Schema(AppRoleAssignmentState).describe())
            return

        if args.cmd == "create":
            desired = _desired_fields(parser, args)
            provider = build_provider(args)
            _create(provider, store, args, desired)
        elif args.cmd == "refresh":
            _refresh(build_provider(args), store, args)
        elif args.cmd == "delete":
            _delete(build_provider(args), store, args)
        elif args.cmd == "import":
            _import(build_provider(args), store, args)
        else:
            parser.print_help()
    except (StateError, GraphError, UnknownResourceTypeError, ValueError, RuntimeError) as e:
        print(f"[{args.cmd}] Error: {e}", file=sys.stderr)
        sys.exit(1)


def _desired_fields(parser: argparse.ArgumentParser, args: argparse.Namespace) -> dict:
    desired = {}
    if args.from_file:
        desired.update(load_definition(args.from_file))
    for key in INPUT_FIELDS:
        value = getattr(args, key)
        if value:
            desired[key] = value
    missing = [key for key in INPUT_FIELDS if not desired.get(key)]
    if missing:
        parser.error(f"create requires {', '.join('--' + key.replace('_', '-') for key in missing)}")
    return desired


def _show(store: StateStore, name: str | None) -> None:
    if not name:
        for entry in store.names():
            print(entry)
        return
    entry = store.get(name)
    if entry is None:
        raise ValueError(f"No resource named {name!r} in {store.path}")
    _print_state(entry["state"])


def _create(provider: Provider, store: StateStore, args: argparse.Namespace, desired: dict) -> None:
    resource = provider.resource(RESOURCE_TYPE)
    state = resource.new_state(**desired)

    existing = store.get(args.name)
    if existing is not None:
        prior = resource.schema.state_from_dict(existing["state"])
        changed = resource.schema.force_new_changes(prior, state)
        if changed:
            raise ValueError(
                f"{args.name!r} already exists and changing {', '.join(changed)} requires replacement; "
                "delete it first"
            )
        print(f"[create] {args.name!r} already exists ({prior.id}); nothing to do", file=sys.stderr)
        return

    diags = provider.create(RESOURCE_TYPE, state)
    if state.exists:
        store.put(args.name, RESOURCE_TYPE, resource.schema.state_to_dict(state))

    success = not diags.has_error()
    details = dict(desired)
    if not success:
        details["error"] = "; ".join(str(d) for d in diags.errors())
    audit.safe_log_assignment_event(
        "assignment_create",
        state.id or args.name,
        operator=args.operator,
        details=details,
        success=success,
    )
    if not success:
        _print_diagnostics("create", diags)
        sys.exit(1)

    print(f"[create] Created {args.name!r} with ID {state.id}", file=sys.stderr)
    _print_state(resource.schema.state_to_dict(state))


def _load_existing(provider: Provider, store: StateStore, name: str):
    entry = store.get(name)
    if entry is None:
        raise ValueError(f"No resource named {name!r} in {store.path}")
    return provider.resource(entry["type"]), entry["type"], entry


def _refresh(provider: Provider, store: StateStore, args: argparse.Namespace) -> None:
    resource, type_name, entry = _load_existing(provider, store, args.name)
    state = resource.schema.state_from_dict(entry["state"])
    previous_id = state.id

    diags = provider.read(type_name, state)
    if diags.has_error():
        _print_diagnostics("refresh", diags)
        sys.exit(1)

    if not state.exists:
        store.remove(args.name)
        audit.safe_log_assignment_event("assignment_drift", previous_id, operator=args.operator,
                                        details={"name": args.name})
        print(f"[refresh] {args.name!r} ({previous_id}) no longer exists; removed from state", file=sys.stderr)
        return

    store.put(args.name, type_name, resource.schema.state_to_dict(state))
    _print_state(resource.schema.state_to_dict(state))


def _delete(provider: Provider, store: StateStore, args: argparse.Namespace) -> None:
    resource, type_name, entry = _load_existing(provider, store, args.name)
    state = resource.schema.state_from_dict(entry["state"])

    diags = provider.delete(type_name, state)
    success = not diags.has_error()
    details = {"name": args.name}
    if not success:
        details["error"] = "; ".join(str(d) for d in diags.errors())
    audit.safe_log_assignment_event(
        "assignment_delete",
        state.id,
        operator=args.operator,
        details=details,
        success=success,
    )
    if not success:
        _print_diagnostics("delete", diags)
        sys.exit(1)

    store.remove(args.name)
    print(f"[delete] Deleted {args.name!r} ({state.id})", file=sys.stderr)


def _import(provider: Provider, store: StateStore, args: argparse.Namespace) -> None:
    if store.get(args.name) is not None:
        raise ValueError(f"{args.name!r} is already managed in {store.path}")

    resource = provider.resource(RESOURCE_TYPE)
    state, diags = provider.import_resource(RESOURCE_TYPE, args.id)
    success = not diags.has_error()
    audit.safe_log_assignment_event("assignment_import", args.id, operator=args.operator,
                                    details={"name": args.name}, success=success)
    if not success:
        _print_diagnostics("import", diags)
        sys.exit(1)

    store.put(args.name, RESOURCE_TYPE, resource.schema.state_to_dict(state))
    print(f"[import] Imported {args.id} as {args.name!r}", file=sys.stderr)
    _print_state(resource.schema.state_to_dict(state))


if __name__ == "__main__":
    main()

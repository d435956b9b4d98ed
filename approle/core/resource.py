"""Resource contract implemented by managed resource types.

A resource type is a class with explicit ``create``, ``read`` and ``delete``
methods operating on a typed state dataclass. The provider host holds
instances and calls these methods directly.

State dataclasses declare their schema through field metadata built with
``attribute()``; ``Schema`` reads that metadata for validation and to tell
which changes force replacement.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields, asdict
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from approle.core.deadline import Deadline
from approle.core.diagnostics import Diagnostic, Diagnostics, SEVERITY_ERROR, error_diag_path

Validator = Callable[[Any, str], Any]

DEFAULT_TIMEOUT = 5 * 60


@dataclass
class Timeouts:
    """Per-operation time limits in seconds."""
    create: float = DEFAULT_TIMEOUT
    read: float = DEFAULT_TIMEOUT
    delete: float = DEFAULT_TIMEOUT

    def for_operation(self, operation: str) -> float:
        return getattr(self, operation)


@dataclass(frozen=True)
class Attribute:
    name: str
    description: str
    required: bool = False
    computed: bool = False
    force_new: bool = False
    validators: Tuple[Validator, ...] = ()


def attribute(
    description: str,
    *,
    required: bool = False,
    computed: bool = False,
    force_new: bool = False,
    validators: Tuple[Validator, ...] = (),
    default: Any = "",
):
    """Declare a schema attribute on a state dataclass field."""
    return field(
        default=default,
        metadata={
            "schema": {
                "description": description,
                "required": required,
                "computed": computed,
                "force_new": force_new,
                "validators": tuple(validators),
            }
        },
    )


@dataclass
class ResourceState:
    """Base state: every resource carries the identifier assigned on create.

    An empty ``id`` means the resource does not exist (never created, or
    removed out-of-band).
    """
    id: str = ""

    @property
    def exists(self) -> bool:
        return bool(self.id)


class Schema:
    """Attribute declarations extracted from a state dataclass."""

    def __init__(self, state_type: Type[ResourceState]):
        self.state_type = state_type
        self.attributes: Dict[str, Attribute] = {}
        for f in fields(state_type):
            meta = f.metadata.get("schema")
            if meta is None:
                continue
            self.attributes[f.name] = Attribute(name=f.name, **meta)

    def validate(self, state: ResourceState) -> Diagnostics:
        """Run required checks and validators for every input attribute."""
        diags = Diagnostics()
        for name, attr in self.attributes.items():
            if attr.computed and not attr.required:
                continue
            value = getattr(state, name)
            if attr.required and (value is None or value == ""):
                diags.append(Diagnostic(SEVERITY_ERROR, "Missing required argument",
                                        f"The argument {name!r} is required", attribute_path=name))
                continue
            for validator in attr.validators:
                try:
                    validator(value, name)
                except ValueError as e:
                    diags.extend(error_diag_path(e, name, "Invalid value for %s", name))
                    break
        return diags

    def force_new_changes(self, prior: ResourceState, desired: ResourceState) -> List[str]:
        """Return the immutable attributes whose value differs."""
        return [
            name for name, attr in self.attributes.items()
            if attr.force_new and getattr(prior, name) != getattr(desired, name)
        ]

    def state_to_dict(self, state: ResourceState) -> Dict[str, Any]:
        return asdict(state)

    def state_from_dict(self, data: Dict[str, Any]) -> ResourceState:
        """Build a state object, ignoring keys the schema does not know."""
        known = {f.name for f in fields(self.state_type)}
        return self.state_type(**{k: v for k, v in data.items() if k in known})

    def describe(self) -> Dict[str, Dict[str, Any]]:
        return {
            name: {
                "description": attr.description,
                "required": attr.required,
                "computed": attr.computed,
                "force_new": attr.force_new,
            }
            for name, attr in self.attributes.items()
        }


class Resource(ABC):
    """Interface a managed resource type implements.

    Operations mutate the passed state in place and report problems as
    diagnostics; they do not raise for expected remote failures.
    """

    type_name: str = ""
    state_type: Type[ResourceState] = ResourceState

    def __init__(self, timeouts: Optional[Timeouts] = None):
        self.timeouts = timeouts or Timeouts()
        self.schema = Schema(self.state_type)

    def new_state(self, **values: Any) -> ResourceState:
        return self.state_type(**values)

    @abstractmethod
    def create(self, state: ResourceState, deadline: Optional[Deadline] = None) -> Diagnostics:
        ...

    @abstractmethod
    def read(self, state: ResourceState, deadline: Optional[Deadline] = None) -> Diagnostics:
        ...

    @abstractmethod
    def delete(self, state: ResourceState, deadline: Optional[Deadline] = None) -> Diagnostics:
        ...

    def validate_import_id(self, resource_id: str) -> None:
        """Raise ValueError if ``resource_id`` cannot identify this resource type."""

    def import_state(self, resource_id: str) -> Tuple[ResourceState, Diagnostics]:
        """Seed a state from an existing identifier.

        The returned state carries only the id; the host refreshes it with
        ``read`` afterwards.
        """
        try:
            self.validate_import_id(resource_id)
        except ValueError as e:
            return self.new_state(), error_diag_path(e, "id", "Invalid import ID %r", resource_id)
        return self.new_state(id=resource_id), Diagnostics()

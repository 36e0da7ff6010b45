"""Core object metadata, conditions, field errors and label selectors."""

from __future__ import annotations

import dataclasses
import enum
import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone

GROUP = "dbaas.redhat.com"
VERSION = "v1alpha1"
API_VERSION = f"{GROUP}/{VERSION}"

CONDITION_TRUE = "True"
CONDITION_FALSE = "False"
CONDITION_UNKNOWN = "Unknown"


class FieldPath:
    """A dotted path to a field of an object, such as ``spec.instanceID``."""

    def __init__(self, *parts: str) -> None:
        self._parts = tuple(parts)

    def child(self, name: str) -> FieldPath:
        return FieldPath(*self._parts, name)

    def __str__(self) -> str:
        return ".".join(self._parts)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, FieldPath) and self._parts == other._parts

    def __hash__(self) -> int:
        return hash(self._parts)

    def __repr__(self) -> str:
        return f"FieldPath({str(self)!r})"


class FieldError(ValueError):
    """An invalid value found at a field path."""

    def __init__(self, path, value, detail: str, value_repr: str | None = None) -> None:
        self.path = path if isinstance(path, FieldPath) else FieldPath(str(path))
        self.value = value
        self.detail = detail
        self.value_repr = value_repr if value_repr is not None else go_repr(value)
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"{self.path}: Invalid value: {self.value_repr}: {self.detail}"


class NotFoundError(LookupError):
    """The requested object does not exist."""


class ConflictError(RuntimeError):
    """The object was modified concurrently."""


@dataclass
class OwnerReference:
    api_version: str = ""
    kind: str = ""
    name: str = ""
    uid: str = ""
    controller: bool | None = None
    block_owner_deletion: bool | None = None


@dataclass
class ObjectMeta:
    name: str = ""
    namespace: str = ""
    uid: str = ""
    resource_version: str = ""
    generation: int = 0
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    owner_references: list[OwnerReference] = field(default_factory=list)


@dataclass
class Condition:
    type: str = ""
    status: str = CONDITION_UNKNOWN
    reason: str = ""
    message: str = ""
    observed_generation: int = 0
    last_transition_time: datetime | None = None


@dataclass
class Secret:
    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    data: dict[str, bytes] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.metadata.name


def find_status_condition(conditions, condition_type):
    """Return the condition of the given type, or None."""
    return next((c for c in conditions if c.type == condition_type), None)


def set_status_condition(conditions, new_condition) -> None:
    """Insert or update a condition in place, keeping transition times honest."""
    existing = find_status_condition(conditions, new_condition.type)
    if existing is None:
        added = dataclasses.replace(new_condition)
        if added.last_transition_time is None:
            added.last_transition_time = datetime.now(timezone.utc)
        conditions.append(added)
        return
    if existing.status != new_condition.status:
        existing.status = new_condition.status
        existing.last_transition_time = new_condition.last_transition_time or datetime.now(timezone.utc)
    existing.reason = new_condition.reason
    existing.message = new_condition.message
    existing.observed_generation = new_condition.observed_generation


class SelectorOperator(str, enum.Enum):
    IN = "In"
    NOT_IN = "NotIn"
    EXISTS = "Exists"
    DOES_NOT_EXIST = "DoesNotExist"


@dataclass
class LabelSelectorRequirement:
    key: str = ""
    operator: str = ""
    values: list[str] | None = None


@dataclass
class LabelSelector:
    match_labels: dict[str, str] = field(default_factory=dict)
    match_expressions: list[LabelSelectorRequirement] = field(default_factory=list)


_NAME_RE = re.compile(r"^([A-Za-z0-9]([-A-Za-z0-9_.]*[A-Za-z0-9])?)$")
_PREFIX_RE = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$")


def _validate_key(key: str) -> None:
    prefix, _, name = key.rpartition("/")
    if "/" in key and (not prefix or len(prefix) > 253 or not _PREFIX_RE.match(prefix)):
        raise FieldError(FieldPath("key"), key, "prefix part must be a valid DNS subdomain")
    if not name or len(name) > 63 or not _NAME_RE.match(name):
        raise FieldError(
            FieldPath("key"), key,
            "name part must consist of alphanumeric characters, '-', '_' or '.', "
            "and must start and end with an alphanumeric character",
        )


def _validate_value(value: str) -> None:
    if value and (len(value) > 63 or not _NAME_RE.match(value)):
        raise FieldError(
            FieldPath("values"), value,
            "a valid label must consist of alphanumeric characters, '-', '_' or '.', "
            "and must start and end with an alphanumeric character",
        )


@dataclass(frozen=True)
class _Requirement:
    key: str
    operator: SelectorOperator
    values: frozenset

    def matches(self, labels) -> bool:
        present = self.key in labels
        if self.operator is SelectorOperator.IN:
            return present and labels[self.key] in self.values
        if self.operator is SelectorOperator.NOT_IN:
            return not present or labels[self.key] not in self.values
        if self.operator is SelectorOperator.EXISTS:
            return present
        return not present


class Selector:
    """A compiled label query; ``nothing`` selectors match no object."""

    def __init__(self, requirements=(), nothing: bool = False) -> None:
        self.requirements = tuple(sorted(requirements, key=lambda r: r.key))
        self.nothing = nothing

    def matches(self, labels) -> bool:
        if self.nothing:
            return False
        labels = labels or {}
        return all(r.matches(labels) for r in self.requirements)

    def empty(self) -> bool:
        return not self.nothing and not self.requirements


def _requirement(key: str, operator: SelectorOperator, values) -> _Requirement:
    _validate_key(key)
    if operator in (SelectorOperator.IN, SelectorOperator.NOT_IN):
        if not values:
            raise FieldError(
                FieldPath("values"), values,
                "for 'in', 'notin' operators, values set can't be empty",
                value_repr=_go_typed_repr(values, "[]string"),
            )
    elif values:
        raise FieldError(
            FieldPath("values"), values,
            "values set must be empty for exists and does not exist",
            value_repr=_go_typed_repr(values, "[]string"),
        )
    for value in values or ():
        _validate_value(value)
    return _Requirement(key, operator, frozenset(values or ()))


def label_selector_as_selector(selector) -> Selector:
    """Compile a LabelSelector; None matches nothing, an empty one matches everything."""
    if selector is None:
        return Selector(nothing=True)
    if not selector.match_labels and not selector.match_expressions:
        return Selector()
    requirements = [
        _requirement(key, SelectorOperator.IN, [value])
        for key, value in selector.match_labels.items()
    ]
    for expr in selector.match_expressions:
        try:
            operator = SelectorOperator(expr.operator)
        except ValueError:
            raise ValueError(f'"{expr.operator}" is not a valid pod selector operator') from None
        requirements.append(_requirement(expr.key, operator, expr.values))
    return Selector(requirements)


def _go_field_name(f: dataclasses.Field) -> str:
    if "go" in f.metadata:
        return f.metadata["go"]
    return "".join(part.capitalize() for part in f.name.split("_"))


def _go_inner(value) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, enum.Enum):
        return _go_inner(value.value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (list, tuple)):
        return "[]{" + ", ".join(_go_inner(v) for v in value) + "}"
    if isinstance(value, dict):
        items = ", ".join(f"{_go_inner(k)}:{_go_inner(v)}" for k, v in sorted(value.items()))
        return "map{" + items + "}"
    if dataclasses.is_dataclass(value):
        parts = ", ".join(
            f"{_go_field_name(f)}:{_go_inner(getattr(value, f.name))}"
            for f in dataclasses.fields(value)
        )
        return f"v1alpha1.{type(value).__name__}{{{parts}}}"
    return repr(value)


def _go_typed_repr(value, type_name: str) -> str:
    """Render a sequence with an explicit type name, e.g. ``[]string(nil)``."""
    if value is None:
        return f"{type_name}(nil)"
    return type_name + "{" + ", ".join(_go_inner(v) for v in value) + "}"


def go_repr(value) -> str:
    """Render a value the way field errors show it: quoted strings, typed structs."""
    if value is None:
        return "null"
    if isinstance(value, str) and not isinstance(value, enum.Enum):
        return json.dumps(value, ensure_ascii=False)
    return _go_inner(value)
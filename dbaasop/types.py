"""Provider-facing API types and their JSON form."""

from __future__ import annotations

import base64
import dataclasses
import enum
import functools
import inspect
import types as _pytypes
import typing
from dataclasses import dataclass, field
from datetime import datetime

from .meta import API_VERSION, Condition, ObjectMeta

# Condition types
DBAAS_INVENTORY_READY_TYPE = "InventoryReady"
DBAAS_INVENTORY_PROVIDER_SYNC_TYPE = "SpecSynced"
DBAAS_CONNECTION_READY_TYPE = "ConnectionReady"
DBAAS_CONNECTION_PROVIDER_SYNC_TYPE = "ReadyForBinding"
DBAAS_INSTANCE_READY_TYPE = "InstanceReady"
DBAAS_INSTANCE_PROVIDER_SYNC_TYPE = "ProvisionReady"
DBAAS_POLICY_READY_TYPE = "PolicyReady"
DBAAS_PLATFORM_READY_TYPE = "PlatformReady"

# Condition reasons
READY = "Ready"
DBAAS_POLICY_NOT_FOUND = "DBaaSPolicyNotFound"
DBAAS_POLICY_NOT_READY = "DBaaSPolicyNotReady"
DBAAS_PROVIDER_NOT_FOUND = "DBaaSProviderNotFound"
DBAAS_INVENTORY_NOT_FOUND = "DBaaSInventoryNotFound"
DBAAS_INVENTORY_NOT_READY = "DBaaSInventoryNotReady"
DBAAS_INVENTORY_NOT_PROVISIONABLE = "DBaaSInventoryNotProvisionable"
DBAAS_INVALID_NAMESPACE = "InvalidNamespace"
DBAAS_INSTANCE_NOT_AVAILABLE = "DBaaSInstanceNotAvailable"
PROVIDER_RECONCILE_INPROGRESS = "ProviderReconcileInprogress"
PROVIDER_RECONCILE_ERROR = "ProviderReconcileError"
PROVIDER_PARSING_ERROR = "ProviderParsingError"
INSTALLATION_INPROGRESS = "InstallationInprogress"
INSTALLATION_CLEANUP = "InstallationCleanup"

# Condition messages
MSG_PROVIDER_CR_STATUS_SYNC_DONE = "Provider Custom Resource status sync completed"
MSG_PROVIDER_CR_RECONCILE_IN_PROGRESS = "DBaaS Provider Custom Resource reconciliation in progress"
MSG_INVENTORY_NOT_READY = "Inventory discovery not done"
MSG_INVENTORY_NOT_PROVISIONABLE = "Inventory provisioning not allowed"
MSG_POLICY_NOT_FOUND = "Failed to find an active Policy"
MSG_POLICY_READY = "Policy is active"
MSG_INVALID_NAMESPACE = "Invalid connection namespace for the referenced inventory"
MSG_POLICY_NOT_READY = "Another active Policy already exists"

TYPE_LABEL_VALUE = "credentials"
TYPE_LABEL_KEY = "db-operator/type"
TYPE_LABEL_KEY_MONGO = "atlas.mongodb.com/type"


def _j(name: str, *, omitempty: bool = False, inline: bool = False, go: str | None = None, **kw):
    meta = {"json": name, "omitempty": omitempty, "inline": inline}
    if go:
        meta["go"] = go
    return field(metadata=meta, **kw)


class InstancePhase(str, enum.Enum):
    UNKNOWN = "Unknown"
    PENDING = "Pending"
    CREATING = "Creating"
    UPDATING = "Updating"
    DELETING = "Deleting"
    DELETED = "Deleted"
    READY = "Ready"
    ERROR = "Error"
    FAILED = "Failed"


@dataclass
class ProviderIcon:
    data: str = _j("base64data", default="")
    media_type: str = _j("mediatype", default="")


@dataclass
class CredentialField:
    key: str = _j("key", default="")
    display_name: str = _j("displayName", default="")
    type: str = _j("type", default="")
    required: bool = _j("required", default=False)
    help_text: str = _j("helpText", omitempty=True, default="")


@dataclass
class DatabaseProvider:
    name: str = _j("name", default="")
    display_name: str = _j("displayName", default="")
    display_description: str = _j("displayDescription", default="")
    icon: ProviderIcon = _j("icon", default_factory=ProviderIcon)


@dataclass
class InstanceParameterSpec:
    name: str = _j("name", default="")
    display_name: str = _j("displayName", default="")
    type: str = _j("type", default="")
    required: bool = _j("required", default=False)
    default_value: str = _j("defaultValue", omitempty=True, default="")


@dataclass
class DBaaSProviderSpec:
    provider: DatabaseProvider = _j("provider", default_factory=DatabaseProvider)
    inventory_kind: str = _j("inventoryKind", default="")
    connection_kind: str = _j("connectionKind", default="")
    instance_kind: str = _j("instanceKind", default="")
    credential_fields: list[CredentialField] = _j("credentialFields", default_factory=list)
    allows_free_trial: bool = _j("allowsFreeTrial", default=False)
    external_provision_url: str = _j("externalProvisionURL", default="", go="ExternalProvisionURL")
    external_provision_description: str = _j("externalProvisionDescription", default="")
    instance_parameter_specs: list[InstanceParameterSpec] = _j("instanceParameterSpecs", default_factory=list)


@dataclass
class DBaaSProvider:
    """Cluster-scoped registration of a database provider."""

    metadata: ObjectMeta = _j("metadata", omitempty=True, default_factory=ObjectMeta)
    spec: DBaaSProviderSpec = _j("spec", omitempty=True, default_factory=DBaaSProviderSpec)
    KIND: typing.ClassVar[str] = "DBaaSProvider"


@dataclass
class LocalObjectReference:
    name: str = _j("name", default="")


@dataclass
class DBaaSInventorySpec:
    credentials_ref: LocalObjectReference | None = _j("credentialsRef", default=None)


@dataclass
class Instance:
    instance_id: str = _j("instanceID", default="", go="InstanceID")
    name: str = _j("name", omitempty=True, default="")
    instance_info: dict[str, str] = _j("instanceInfo", omitempty=True, default_factory=dict)


@dataclass
class DBaaSInventoryStatus:
    conditions: list[Condition] = _j("conditions", omitempty=True, default_factory=list)
    instances: list[Instance] = _j("instances", omitempty=True, default_factory=list)


@dataclass(frozen=True)
class NamespacedName:
    namespace: str = _j("namespace", omitempty=True, default="")
    name: str = _j("name", default="")


@dataclass
class DBaaSConnectionSpec:
    inventory_ref: NamespacedName = _j("inventoryRef", default_factory=NamespacedName)
    instance_id: str = _j("instanceID", omitempty=True, default="", go="InstanceID")
    instance_ref: NamespacedName | None = _j("instanceRef", omitempty=True, default=None)


@dataclass
class DBaaSConnectionStatus:
    conditions: list[Condition] = _j("conditions", omitempty=True, default_factory=list)
    credentials_ref: LocalObjectReference | None = _j("credentialsRef", omitempty=True, default=None)
    connection_info_ref: LocalObjectReference | None = _j("connectionInfoRef", omitempty=True, default=None)


@dataclass
class DBaaSInstanceSpec:
    inventory_ref: NamespacedName = _j("inventoryRef", default_factory=NamespacedName)
    name: str = _j("name", default="")
    cloud_provider: str = _j("cloudProvider", omitempty=True, default="")
    cloud_region: str = _j("cloudRegion", omitempty=True, default="")
    other_instance_params: dict[str, str] = _j("otherInstanceParams", omitempty=True, default_factory=dict)


@dataclass
class DBaaSInstanceStatus:
    conditions: list[Condition] = _j("conditions", omitempty=True, default_factory=list)
    instance_id: str = _j("instanceID", default="", go="InstanceID")
    instance_info: dict[str, str] = _j("instanceInfo", omitempty=True, default_factory=dict)
    phase: InstancePhase = _j("phase", default=InstancePhase.UNKNOWN)


@dataclass
class DBaaSProviderConnection:
    metadata: ObjectMeta = _j("metadata", omitempty=True, default_factory=ObjectMeta)
    spec: DBaaSConnectionSpec = _j("spec", omitempty=True, default_factory=DBaaSConnectionSpec)
    status: DBaaSConnectionStatus = _j("status", omitempty=True, default_factory=DBaaSConnectionStatus)


@dataclass
class DBaaSProviderInventory:
    metadata: ObjectMeta = _j("metadata", omitempty=True, default_factory=ObjectMeta)
    spec: DBaaSInventorySpec = _j("spec", omitempty=True, default_factory=DBaaSInventorySpec)
    status: DBaaSInventoryStatus = _j("status", omitempty=True, default_factory=DBaaSInventoryStatus)


@dataclass
class DBaaSProviderInstance:
    metadata: ObjectMeta = _j("metadata", omitempty=True, default_factory=ObjectMeta)
    spec: DBaaSInstanceSpec = _j("spec", omitempty=True, default_factory=DBaaSInstanceSpec)
    status: DBaaSInstanceStatus = _j("status", omitempty=True, default_factory=DBaaSInstanceStatus)


def _json_name(f: dataclasses.Field) -> str:
    if "json" in f.metadata:
        return f.metadata["json"]
    head, *rest = f.name.split("_")
    return head + "".join(p.capitalize() for p in rest)


def _omitempty(f: dataclasses.Field) -> bool:
    return f.metadata.get("omitempty", "json" not in f.metadata)


def _is_empty(value) -> bool:
    if value is None or value is False or value == 0 and not isinstance(value, enum.Enum):
        return True
    return isinstance(value, (str, list, dict, bytes)) and len(value) == 0


def _encode(value):
    if dataclasses.is_dataclass(value):
        return to_dict(value)
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat().replace("+00:00", "Z")
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    if isinstance(value, list):
        return [_encode(v) for v in value]
    if isinstance(value, dict):
        return {k: _encode(v) for k, v in value.items()}
    return value


def to_dict(obj) -> dict:
    """Serialise a dataclass to its JSON-ready dictionary."""
    out: dict = {}
    for f in dataclasses.fields(obj):
        value = getattr(obj, f.name)
        if f.metadata.get("inline"):
            out.update(to_dict(value))
            continue
        if _omitempty(f) and not dataclasses.is_dataclass(value) and _is_empty(value):
            continue
        out[_json_name(f)] = _encode(value)
    return out


_BUILTIN_TYPES = {
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
    "bytes": bytes,
    "list": list,
    "dict": dict,
    "None": type(None),
    "List": list,
    "Dict": dict,
    "Optional": typing.Optional,
    "Union": typing.Union,
    "Any": typing.Any,
}


def _split_top(text: str, sep: str) -> list[str]:
    """Split on ``sep`` outside of square brackets."""
    parts, depth, current = [], 0, []
    for ch in text:
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
        if ch == sep and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    parts.append("".join(current).strip())
    return parts


def _lookup(name: str, namespace: dict):
    head, *rest = name.split(".")
    if head in namespace:
        obj = namespace[head]
    elif head in _BUILTIN_TYPES:
        obj = _BUILTIN_TYPES[head]
    else:
        raise TypeError(f"cannot resolve type {name!r}")
    for attr in rest:
        obj = getattr(obj, attr)
    return obj


def _resolve(annotation, namespace: dict):
    """Turn a string annotation into a type, looking names up in ``namespace``."""
    if not isinstance(annotation, str):
        return annotation
    text = annotation.strip()
    alternatives = _split_top(text, "|")
    if len(alternatives) > 1:
        return typing.Union[tuple(_resolve(a, namespace) for a in alternatives)]
    if text.endswith("]"):
        base_text, _, inner = text[:-1].partition("[")
        base = _lookup(base_text.strip(), namespace)
        args = tuple(_resolve(a, namespace) for a in _split_top(inner, ","))
        if base is typing.Optional:
            return typing.Optional[args[0]]
        return base[args if len(args) > 1 else args[0]]
    return _lookup(text, namespace)


@functools.lru_cache(maxsize=None)
def _field_types(cls) -> dict:
    module = inspect.getmodule(cls)
    namespace = dict(vars(module)) if module is not None else {}
    return {f.name: _resolve(f.type, namespace) for f in dataclasses.fields(cls)}


def _decode(tp, value):
    if value is None:
        return None
    origin = typing.get_origin(tp)
    if origin is typing.Union or origin is _pytypes.UnionType:
        inner = [a for a in typing.get_args(tp) if a is not type(None)]
        return _decode(inner[0], value)
    if origin is list:
        (arg,) = typing.get_args(tp)
        return [_decode(arg, v) for v in value]
    if origin is dict:
        _, arg = typing.get_args(tp)
        return {k: _decode(arg, v) for k, v in value.items()}
    if isinstance(tp, type):
        if dataclasses.is_dataclass(tp):
            return from_dict(tp, value)
        if issubclass(tp, enum.Enum):
            return tp(value)
        if issubclass(tp, datetime):
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        if issubclass(tp, bytes):
            return base64.b64decode(value)
    return value


def from_dict(cls, data):
    """Build a dataclass of type ``cls`` from its JSON dictionary."""
    if not isinstance(data, dict):
        raise TypeError(f"expected an object for {cls.__name__}, got {type(data).__name__}")
    hints = _field_types(cls)
    kwargs = {}
    for f in dataclasses.fields(cls):
        if not f.init:
            continue
        tp = hints[f.name]
        if f.metadata.get("inline"):
            kwargs[f.name] = from_dict(tp, data)
            continue
        key = _json_name(f)
        if key in data:
            kwargs[f.name] = _decode(tp, data[key])
    return cls(**kwargs)


__all__ = ["API_VERSION", "to_dict", "from_dict"]
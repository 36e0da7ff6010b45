"""Custom resources managed by the operator: policies, inventories, connections, instances and platforms."""

from __future__ import annotations

import enum
import typing
from dataclasses import dataclass, field

from .meta import Condition, FieldError, FieldPath, LabelSelector, ObjectMeta
from .types import (
    DBaaSConnectionSpec,
    DBaaSConnectionStatus,
    DBaaSInstanceSpec,
    DBaaSInstanceStatus,
    DBaaSInventorySpec,
    DBaaSInventoryStatus,
    NamespacedName,
)

SYNC_PERIOD_MINIMUM = 1
SYNC_PERIOD_MAXIMUM = 1440


def _j(name: str, *, omitempty: bool = False, **kw):
    return field(metadata={"json": name, "omitempty": omitempty, "inline": False}, **kw)


@dataclass
class DBaaSInventoryPolicy:
    """Provisioning and connection-namespace rules for inventories."""

    disable_provisions: bool | None = _j("disableProvisions", omitempty=True, default=None)
    connection_namespaces: list[str] | None = _j("connectionNamespaces", omitempty=True, default=None)
    connection_ns_selector: LabelSelector | None = _j("connectionNsSelector", omitempty=True, default=None)


@dataclass
class DBaaSPolicySpec(DBaaSInventoryPolicy):
    """Enables a namespace for administration and sets the default inventory policy."""


@dataclass
class DBaaSPolicyStatus:
    conditions: list[Condition] = _j("conditions", omitempty=True, default_factory=list)


@dataclass
class DBaaSPolicy:
    """Enables administrative capabilities within a namespace."""

    metadata: ObjectMeta = _j("metadata", omitempty=True, default_factory=ObjectMeta)
    spec: DBaaSPolicySpec = _j("spec", omitempty=True, default_factory=DBaaSPolicySpec)
    status: DBaaSPolicyStatus = _j("status", omitempty=True, default_factory=DBaaSPolicyStatus)
    KIND: typing.ClassVar[str] = "DBaaSPolicy"


@dataclass
class DBaaSOperatorInventorySpec(DBaaSInventorySpec, DBaaSInventoryPolicy):
    """Inventory spec: provider reference, credentials and the inventory's own policy."""

    provider_ref: NamespacedName = _j("providerRef", default_factory=NamespacedName)


@dataclass
class DBaaSInventory:
    """A provider account; must live in a namespace enabled by a policy."""

    metadata: ObjectMeta = _j("metadata", omitempty=True, default_factory=ObjectMeta)
    spec: DBaaSOperatorInventorySpec = _j("spec", omitempty=True, default_factory=DBaaSOperatorInventorySpec)
    status: DBaaSInventoryStatus = _j("status", omitempty=True, default_factory=DBaaSInventoryStatus)
    KIND: typing.ClassVar[str] = "DBaaSInventory"


@dataclass
class DBaaSConnection:
    metadata: ObjectMeta = _j("metadata", omitempty=True, default_factory=ObjectMeta)
    spec: DBaaSConnectionSpec = _j("spec", omitempty=True, default_factory=DBaaSConnectionSpec)
    status: DBaaSConnectionStatus = _j("status", omitempty=True, default_factory=DBaaSConnectionStatus)
    KIND: typing.ClassVar[str] = "DBaaSConnection"


@dataclass
class DBaaSInstance:
    metadata: ObjectMeta = _j("metadata", omitempty=True, default_factory=ObjectMeta)
    spec: DBaaSInstanceSpec = _j("spec", omitempty=True, default_factory=DBaaSInstanceSpec)
    status: DBaaSInstanceStatus = _j("status", omitempty=True, default_factory=DBaaSInstanceStatus)
    KIND: typing.ClassVar[str] = "DBaaSInstance"


class PlatformsName(str, enum.Enum):
    CRUNCHY_BRIDGE_INSTALLATION = "crunchy-bridge"
    MONGODB_ATLAS_INSTALLATION = "mongodb-atlas"
    DBAAS_DYNAMIC_PLUGIN_INSTALLATION = "dbaas-dynamic-plugin"
    COCKROACHDB_INSTALLATION = "cockroachdb-cloud"
    OBSERVABILITY_INSTALLATION = "observability"
    DBAAS_QUICK_START_INSTALLATION = "dbaas-quick-starts"
    RDS_PROVIDER_INSTALLATION = "rds-provider"


class PlatformsType(enum.IntEnum):
    QUICK_START = 0
    CONSOLE_PLUGIN = 1
    OPERATOR = 2


class PlatformsInstlnStatus(str, enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"
    IN_PROGRESS = "in progress"


@dataclass
class PlatformConfig:
    """Parameters for installing one platform component."""

    name: str = ""
    csv: str = ""
    deployment_name: str = ""
    image: str = ""
    package_name: str = ""
    channel: str = ""
    display_name: str = ""
    envs: dict[str, str] = field(default_factory=dict)
    type: PlatformsType = PlatformsType.QUICK_START


@dataclass
class ObservabilityConfig:
    auth_type: str = ""
    remote_writes_url: str = ""
    rhsso_token_url: str = ""
    addon_name: str = ""
    rhobs_secret_name: str = ""


@dataclass
class DBaaSPlatformSpec:
    """Sync period, in minutes, for provider operator controllers (1 to 1440)."""

    sync_period: int | None = _j("syncPeriod", omitempty=True, default=None)

    def __post_init__(self) -> None:
        if self.sync_period is None:
            return
        path = FieldPath("spec", "syncPeriod")
        if self.sync_period < SYNC_PERIOD_MINIMUM:
            raise FieldError(
                path, self.sync_period,
                f"spec.syncPeriod in body should be greater than or equal to {SYNC_PERIOD_MINIMUM}",
            )
        if self.sync_period > SYNC_PERIOD_MAXIMUM:
            raise FieldError(
                path, self.sync_period,
                f"spec.syncPeriod in body should be less than or equal to {SYNC_PERIOD_MAXIMUM}",
            )


@dataclass
class PlatformStatus:
    platform_name: PlatformsName = _j("platformName", default=PlatformsName.DBAAS_DYNAMIC_PLUGIN_INSTALLATION)
    platform_status: PlatformsInstlnStatus = _j("platformStatus", default=PlatformsInstlnStatus.IN_PROGRESS)
    last_message: str = _j("lastMessage", omitempty=True, default="")


@dataclass
class DBaaSPlatformStatus:
    conditions: list[Condition] = _j("conditions", omitempty=True, default_factory=list)
    platforms_status: list[PlatformStatus] = _j("platformsStatus", default_factory=list)


@dataclass
class DBaaSPlatform:
    metadata: ObjectMeta = _j("metadata", omitempty=True, default_factory=ObjectMeta)
    spec: DBaaSPlatformSpec = _j("spec", omitempty=True, default_factory=DBaaSPlatformSpec)
    status: DBaaSPlatformStatus = _j("status", omitempty=True, default_factory=DBaaSPlatformStatus)
    KIND: typing.ClassVar[str] = "DBaaSPlatform"
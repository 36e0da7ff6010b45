# dbaasop

`dbaasop` models the resources that describe database-as-a-service setups:
provider accounts (inventories), database instances, connections, policies
and platforms. It also has the admission checks and reconciliation rules
that apply to these resources.

It has no runtime dependencies.

## Modules

### `dbaasop.meta`

Shared metadata building blocks.

- Records: `ObjectMeta`, `OwnerReference`, `Condition` and `Secret`.
- Condition helpers:
  - `find_status_condition(conditions, type)` returns the matching
    condition or `None`.
  - `set_status_condition(conditions, condition)` inserts or updates a
    condition in place. The transition time changes only when the status
    changes.
- Label selectors: `LabelSelector` and `LabelSelectorRequirement`.
  - `label_selector_as_selector` compiles a selector into a `Selector`.
    `Selector` has `matches(labels)` and `empty()`.
  - A `None` selector matches nothing.
  - An empty selector matches everything.
  - An invalid requirement raises `FieldError`. Examples are an `In`
    operator with no values, or a bad key.
  - An unknown operator raises `ValueError`.
- Errors:
  - `FieldPath` is a dotted field path built with `child()`.
  - `FieldError` is a `ValueError`. Its message has the form
    `path: Invalid value: <value>: detail`.
  - `NotFoundError` and `ConflictError`.
- `go_repr` renders values the way field errors show them.

### `dbaasop.types`

Provider-facing specs and statuses, and their JSON form.

- Provider records: `DBaaSProvider`, `DBaaSProviderSpec`,
  `DatabaseProvider`, `ProviderIcon`, `CredentialField` and
  `InstanceParameterSpec`.
- `NamespacedName`, `LocalObjectReference` and `Instance`.
- Specs and statuses for connections, inventories and instances. The
  `DBaaSProvider{Connection,Inventory,Instance}` records are views of
  provider objects.
- `InstancePhase`, plus the condition type, reason, message and label
  constants.
- `to_dict(obj)` and `from_dict(cls, data)` convert to and from
  camelCase JSON dictionaries. Empty optional fields are left out.

### `dbaasop.resources`

Top-level resources: `DBaaSPolicy`, `DBaaSInventory`, `DBaaSConnection`,
`DBaaSInstance` and `DBaaSPlatform`, with their specs and statuses.

- `PlatformsName`, `PlatformsType` and `PlatformsInstlnStatus` are enums.
- `PlatformConfig` and `ObservabilityConfig` are configuration records.
- `DBaaSPlatformSpec` rejects a `sync_period` outside 1–1440 with a
  `FieldError`.

### `dbaasop.webhooks`

Admission validation.

- `validate_connection_create` requires exactly one of `instance_id` and
  `instance_ref`.
- `validate_connection_update` rejects changes to `instance_id`,
  `inventory_ref` or `instance_ref`.
- `validate_policy` checks the policy's namespace selector. It returns the
  compiled selector, or `None` when no selector is set.
- `validate_inventory(client, inventory, old)` validates an inventory. Pass
  `old=None` on create. It:
  - rejects a change of provider name;
  - loads the credentials secret and the provider;
  - allows only one `rds-registration` account (`validate_rds`);
  - checks the namespace selector;
  - requires every required credential field to be present and non-empty
    in the secret (`validate_inventory_mandatory_fields`).
- `InventoryClient` is an in-memory source of secrets, providers and
  inventories for `validate_inventory`. Any object with the same three
  methods works in its place.

### `dbaasop.reconciler`

Reconciliation rules.

- `ResourceStore` is an in-memory object store keyed by kind, namespace and
  name. It has `get`, `list` and `patch_labels`.
- `DBaaSReconciler` works over a `ResourceStore`. Its methods:
  - `get_provider` looks up a provider.
  - `create_provider_object` and `mutate_provider_object` build an
    `UnstructuredObject` controlled by its owner.
  - `parse_provider_object` decodes a provider object into a typed record.
  - `policy_list_by_ns` lists the policies in a namespace.
  - `check_creds_ref_label` sets the credentials type label on an
    inventory's secret.
- `can_provision(inventory, active_policy)` decides whether provisioning is
  allowed. The inventory's setting takes precedence over the policy's. With
  no active policy the answer is `False`.
- `is_owner(owner, owned)` checks whether `owner` is the controlling owner
  of `owned`.
- `get_install_namespace(environ=None)` reads `INSTALL_NAMESPACE`. It raises
  `RuntimeError` when the variable is unset.

## Example

```python
from dbaasop.meta import FieldError
from dbaasop.resources import DBaaSConnection
from dbaasop.types import DBaaSConnectionSpec, NamespacedName
from dbaasop.webhooks import validate_connection_create

connection = DBaaSConnection(
    spec=DBaaSConnectionSpec(
        inventory_ref=NamespacedName(name="test-inventory", namespace="default"),
    ),
)

try:
    validate_connection_create(connection)
except FieldError as err:
    print(err)
# spec.instanceID: Invalid value: "": either instanceID or instanceRef must be specified
```

```python
from dbaasop.meta import LabelSelector, label_selector_as_selector

selector = label_selector_as_selector(LabelSelector(match_labels={"env": "prod"}))
selector.matches({"env": "prod"})   # True
selector.matches({"env": "dev"})    # False
```

## What it does not do

The package holds the rules only. It does not:

- connect to a cluster;
- watch resources or run controllers;
- serve admission requests over HTTP.

Objects are read from the in-memory `ResourceStore` and `InventoryClient`.
The full reconcile loops are not included. Those loops would sync provider
objects into status conditions, check inventories, and resolve which
connection namespaces are allowed.

## Running the tests

```
pip install -e .[test]
pytest
```
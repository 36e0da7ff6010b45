import pytest

from dbaasop.meta import NotFoundError, ObjectMeta, OwnerReference, Secret
from dbaasop.reconciler import (
    DBaaSReconciler,
    ResourceStore,
    UnstructuredObject,
    can_provision,
    get_install_namespace,
    is_owner,
)
from dbaasop.resources import (
    DBaaSConnection,
    DBaaSInventory,
    DBaaSOperatorInventorySpec,
    DBaaSPolicy,
    DBaaSPolicySpec,
)
from dbaasop.types import (
    TYPE_LABEL_KEY,
    TYPE_LABEL_KEY_MONGO,
    TYPE_LABEL_VALUE,
    DBaaSConnectionSpec,
    DBaaSProvider,
    DBaaSProviderConnection,
    LocalObjectReference,
    NamespacedName,
)


def _inventory(disable=None, provider="crunchy-bridge-registration", creds="creds"):
    return DBaaSInventory(
        metadata=ObjectMeta(name="inv", namespace="default"),
        spec=DBaaSOperatorInventorySpec(
            provider_ref=NamespacedName(name=provider),
            credentials_ref=LocalObjectReference(name=creds) if creds is not None else None,
            disable_provisions=disable,
        ),
    )


def _policy(disable=None, namespace="default", name="policy"):
    return DBaaSPolicy(
        metadata=ObjectMeta(name=name, namespace=namespace),
        spec=DBaaSPolicySpec(disable_provisions=disable),
    )


def _connection(namespace="default"):
    return DBaaSConnection(
        metadata=ObjectMeta(name="conn", namespace=namespace, uid="uid-1"),
        spec=DBaaSConnectionSpec(inventory_ref=NamespacedName(namespace="default", name="inv"), instance_id="id-1"),
    )


@pytest.mark.parametrize(
    "inv_disable, policy, expected",
    [
        (None, None, False),
        (False, None, False),
        (None, _policy(), True),
        (True, _policy(), False),
        (False, _policy(disable=True), True),
        (None, _policy(disable=True), False),
        (None, _policy(disable=False), True),
    ],
)
def test_can_provision(inv_disable, policy, expected):
    assert can_provision(_inventory(disable=inv_disable), policy) is expected


def test_get_install_namespace():
    assert get_install_namespace({"INSTALL_NAMESPACE": "ops"}) == "ops"


def test_get_install_namespace_missing():
    with pytest.raises(RuntimeError, match="INSTALL_NAMESPACE must be set"):
        get_install_namespace({})


def test_get_provider_found_and_missing():
    provider = DBaaSProvider(metadata=ObjectMeta(name="mongodb-atlas-registration"))
    rec = DBaaSReconciler(ResourceStore([provider]))
    assert rec.get_provider("mongodb-atlas-registration") == provider
    with pytest.raises(NotFoundError):
        rec.get_provider("absent")


def test_create_provider_object_copies_identity():
    rec = DBaaSReconciler(ResourceStore())
    obj = rec.create_provider_object(_connection(), "MongoDBAtlasConnection")
    assert obj.kind == "MongoDBAtlasConnection"
    assert obj.api_version == "dbaas.redhat.com/v1alpha1"
    assert (obj.metadata.namespace, obj.metadata.name) == ("default", "conn")


def test_mutate_sets_spec_and_single_controller():
    rec = DBaaSReconciler(ResourceStore())
    conn = _connection()
    provider_obj = rec.create_provider_object(conn, "Kind")
    provider_obj.metadata.owner_references.append(OwnerReference(kind="Stale", name="old"))
    rec.mutate_provider_object(conn, provider_obj, conn.spec)
    assert provider_obj.content["spec"]["instanceID"] == "id-1"
    assert provider_obj.content["spec"]["inventoryRef"] == {"namespace": "default", "name": "inv"}
    assert len(provider_obj.metadata.owner_references) == 1
    ref = provider_obj.metadata.owner_references[0]
    assert ref.controller is True
    assert ref.kind == "DBaaSConnection"
    assert is_owner(conn, provider_obj) is True


def test_is_owner_false_for_other_owner():
    rec = DBaaSReconciler(ResourceStore())
    conn = _connection()
    provider_obj = rec.create_provider_object(conn, "Kind")
    rec.mutate_provider_object(conn, provider_obj, {"a": "b"})
    other = _connection()
    other.metadata.uid = "uid-2"
    assert is_owner(other, provider_obj) is False


def test_mutate_rejects_cross_namespace():
    rec = DBaaSReconciler(ResourceStore())
    conn = _connection(namespace="a")
    provider_obj = UnstructuredObject(kind="Kind", metadata=ObjectMeta(name="conn", namespace="b"))
    with pytest.raises(ValueError, match="cross-namespace"):
        rec.mutate_provider_object(conn, provider_obj, {})


def test_parse_provider_object_round_trip():
    rec = DBaaSReconciler(ResourceStore())
    conn = _connection()
    provider_obj = rec.create_provider_object(conn, "Kind")
    rec.mutate_provider_object(conn, provider_obj, conn.spec)
    provider_obj.content["status"] = {"credentialsRef": {"name": "creds"}}
    parsed = rec.parse_provider_object(provider_obj, DBaaSProviderConnection)
    assert parsed.spec == conn.spec
    assert parsed.metadata.name == "conn"
    assert parsed.status.credentials_ref == LocalObjectReference(name="creds")
    assert parsed.metadata.owner_references == provider_obj.metadata.owner_references


def test_policy_list_by_ns_filters():
    store = ResourceStore([_policy(name="p1"), _policy(namespace="other", name="p2")])
    rec = DBaaSReconciler(store)
    assert [p.metadata.name for p in rec.policy_list_by_ns("default")] == ["p1"]
    assert sorted(p.metadata.name for p in rec.policy_list_by_ns("")) == ["p1", "p2"]


def _secret(labels=None):
    return Secret(metadata=ObjectMeta(name="creds", namespace="default", labels=dict(labels or {})))


def test_check_creds_ref_label_generic():
    store = ResourceStore([_secret()])
    DBaaSReconciler(store).check_creds_ref_label(_inventory())
    labels = store.get("Secret", "default", "creds").metadata.labels
    assert labels == {TYPE_LABEL_KEY: TYPE_LABEL_VALUE}


def test_check_creds_ref_label_mongo():
    store = ResourceStore([_secret()])
    DBaaSReconciler(store).check_creds_ref_label(_inventory(provider="mongodb-atlas-registration"))
    labels = store.get("Secret", "default", "creds").metadata.labels
    assert labels == {TYPE_LABEL_KEY_MONGO: TYPE_LABEL_VALUE}


def test_check_creds_ref_label_keeps_existing():
    store = ResourceStore([_secret({TYPE_LABEL_KEY: TYPE_LABEL_VALUE, "x": "y"})])
    DBaaSReconciler(store).check_creds_ref_label(_inventory())
    labels = store.get("Secret", "default", "creds").metadata.labels
    assert labels == {TYPE_LABEL_KEY: TYPE_LABEL_VALUE, "x": "y"}


def test_check_creds_ref_label_missing_secret():
    with pytest.raises(NotFoundError):
        DBaaSReconciler(ResourceStore()).check_creds_ref_label(_inventory())


def test_check_creds_ref_label_without_ref_leaves_store():
    store = ResourceStore([_secret()])
    DBaaSReconciler(store).check_creds_ref_label(_inventory(creds=None))
    assert store.get("Secret", "default", "creds").metadata.labels == {}


def test_store_get_returns_copy_and_patch_missing():
    store = ResourceStore([_secret()])
    fetched = store.get("Secret", "default", "creds")
    fetched.metadata.labels["a"] = "b"
    assert store.get("Secret", "default", "creds").metadata.labels == {}
    with pytest.raises(NotFoundError):
        store.patch_labels("Secret", "default", "absent", {"a": "b"})
"""Shared reconciliation helpers: provider lookup, provider objects, policies and credentials."""

from __future__ import annotations

import copy
import dataclasses
import os
from dataclasses import dataclass, field

from .meta import API_VERSION, NotFoundError, ObjectMeta, OwnerReference
from .types import TYPE_LABEL_KEY, TYPE_LABEL_KEY_MONGO, TYPE_LABEL_VALUE, from_dict, to_dict

INSTALL_NAMESPACE_ENV_VAR = "INSTALL_NAMESPACE"


def _kind_of(obj) -> str:
    return getattr(obj, "KIND", None) or getattr(obj, "kind", None) or type(obj).__name__


class ResourceStore:
    """In-memory collection of cluster objects, keyed by kind, namespace and name."""

    def __init__(self, objects=()) -> None:
        self._objects: dict[tuple[str, str, str], object] = {}
        for obj in objects:
            key = (_kind_of(obj), obj.metadata.namespace, obj.metadata.name)
            self._objects[key] = obj

    def _lookup(self, kind, namespace, name):
        try:
            return self._objects[(kind, namespace, name)]
        except KeyError:
            raise NotFoundError(f'{kind.lower()} "{name}" not found') from None

    def get(self, kind, namespace, name):
        """Return a copy of the stored object; raise NotFoundError if absent."""
        return copy.deepcopy(self._lookup(kind, namespace, name))

    def list(self, kind, namespace=""):
        """Return copies of every object of a kind; an empty namespace means all namespaces."""
        return [
            copy.deepcopy(obj)
            for (obj_kind, obj_ns, _), obj in self._objects.items()
            if obj_kind == kind and (not namespace or obj_ns == namespace)
        ]

    def patch_labels(self, kind, namespace, name, labels):
        """Merge labels into the stored object and return a copy of it."""
        obj = self._lookup(kind, namespace, name)
        obj.metadata.labels.update(labels)
        return copy.deepcopy(obj)


@dataclass
class UnstructuredObject:
    """A provider object known only by its kind, metadata and free-form content."""

    kind: str = ""
    api_version: str = API_VERSION
    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    content: dict = field(default_factory=dict)


def _controller_reference(owner, owned_namespace: str) -> OwnerReference:
    owner_ns = owner.metadata.namespace
    if owner_ns and owner_ns != owned_namespace:
        raise ValueError("cross-namespace owner references are disallowed")
    return OwnerReference(
        api_version=API_VERSION,
        kind=_kind_of(owner),
        name=owner.metadata.name,
        uid=owner.metadata.uid,
        controller=True,
        block_owner_deletion=True,
    )


def can_provision(inventory, active_policy) -> bool:
    """Whether provisioning is allowed; the inventory's setting overrides the policy's."""
    if active_policy is None:
        return False
    if inventory.spec.disable_provisions is not None:
        return not inventory.spec.disable_provisions
    if active_policy.spec.disable_provisions is not None:
        return not active_policy.spec.disable_provisions
    return True


def is_owner(owner, owned) -> bool:
    """Whether ``owner`` is set as the controlling owner of ``owned``."""
    expected = _controller_reference(owner, owner.metadata.namespace)
    return any(ref == expected for ref in owned.metadata.owner_references)


def get_install_namespace(environ=None) -> str:
    """Return the operator's install namespace from the environment."""
    env = os.environ if environ is None else environ
    try:
        return env[INSTALL_NAMESPACE_ENV_VAR]
    except KeyError:
        raise RuntimeError(f"{INSTALL_NAMESPACE_ENV_VAR} must be set") from None


@dataclass
class DBaaSReconciler:
    """Common operations used by the resource reconcilers."""

    store: ResourceStore
    install_namespace: str = ""

    def get_provider(self, provider_name):
        return self.store.get("DBaaSProvider", "", provider_name)

    def create_provider_object(self, obj, kind) -> UnstructuredObject:
        """A provider object of ``kind`` named and placed like ``obj``."""
        return UnstructuredObject(
            kind=kind,
            metadata=ObjectMeta(name=obj.metadata.name, namespace=obj.metadata.namespace),
        )

    def mutate_provider_object(self, obj, provider_object, spec) -> None:
        """Copy the spec into the provider object and make ``obj`` its sole controller."""
        provider_object.content["spec"] = to_dict(spec) if dataclasses.is_dataclass(spec) else spec
        provider_object.metadata.owner_references = []
        provider_object.metadata.owner_references.append(
            _controller_reference(obj, provider_object.metadata.namespace)
        )

    def parse_provider_object(self, provider_object, cls):
        """Decode the provider object's content into an instance of ``cls``."""
        data = {"metadata": to_dict(provider_object.metadata), **provider_object.content}
        return from_dict(cls, data)

    def policy_list_by_ns(self, namespace):
        return self.store.list("DBaaSPolicy", namespace)

    def check_creds_ref_label(self, inventory) -> None:
        """Label the inventory's credentials secret with the type label it needs."""
        ref = inventory.spec.credentials_ref
        if ref is None or not ref.name:
            return
        namespace = inventory.metadata.namespace
        secret = self.store.get("Secret", namespace, ref.name)
        labels = secret.metadata.labels
        key = TYPE_LABEL_KEY_MONGO if "mongodb" in inventory.spec.provider_ref.name else TYPE_LABEL_KEY
        if labels.get(key) != TYPE_LABEL_VALUE:
            self.store.patch_labels("Secret", namespace, ref.name, {key: TYPE_LABEL_VALUE})
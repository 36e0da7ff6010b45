"""Admission validation for connections, inventories and policies."""

from __future__ import annotations

import logging

from .meta import (
    FieldError,
    FieldPath,
    NotFoundError,
    Selector,
    label_selector_as_selector,
)

RDS_REGISTRATION = "rds-registration"
PROVIDER_NAME_KEY = "spec.providerRef.name"

_log = logging.getLogger(__name__)


class InventoryClient:
    """In-memory view of the secrets, providers and inventories the inventory webhook reads."""

    def __init__(self, secrets=(), providers=(), inventories=()) -> None:
        self.secrets = {(s.metadata.namespace, s.metadata.name): s for s in secrets}
        self.providers = {p.metadata.name: p for p in providers}
        self.inventories = list(inventories)

    def get_secret(self, namespace, name):
        try:
            return self.secrets[(namespace, name)]
        except KeyError:
            raise NotFoundError(f'secrets "{name}" not found') from None

    def get_provider(self, name):
        try:
            return self.providers[name]
        except KeyError:
            raise NotFoundError(f'dbaasproviders.dbaas.redhat.com "{name}" not found') from None

    def list_inventories_by_provider(self, provider_name):
        return [inv for inv in self.inventories if inv.spec.provider_ref.name == provider_name]


def validate_connection_create(connection) -> None:
    """Require exactly one of instanceID and instanceRef."""
    _log.info("validate create name=%s", connection.metadata.name)
    spec = connection.spec
    has_ref = spec.instance_ref is not None and bool(spec.instance_ref.name)
    path = FieldPath("spec").child("instanceID")
    if spec.instance_id and has_ref:
        raise FieldError(path, spec.instance_id, "both instanceID and instanceRef are specified")
    if not spec.instance_id and not has_ref:
        raise FieldError(path, spec.instance_id, "either instanceID or instanceRef must be specified")


def validate_connection_update(connection, old) -> None:
    """Reject changes to instanceID, inventoryRef and instanceRef."""
    _log.info("validate update name=%s", connection.metadata.name)
    spec, old_spec = connection.spec, old.spec
    spec_path = FieldPath("spec")
    if spec.instance_id != old_spec.instance_id:
        raise FieldError(spec_path.child("instanceID"), spec.instance_id, "instanceID is immutable")
    if spec.inventory_ref != old_spec.inventory_ref:
        raise FieldError(spec_path.child("inventoryRef"), spec.inventory_ref, "inventoryRef is immutable")
    if spec.instance_ref != old_spec.instance_ref:
        raise FieldError(spec_path.child("instanceRef"), spec.instance_ref, "instanceRef is immutable")


def validate_policy(policy) -> Selector | None:
    """Check the policy's namespace selector; return it compiled, or None when unset."""
    _log.info("validate name=%s", policy.metadata.name)
    if policy.spec.connection_ns_selector is None:
        return None
    return label_selector_as_selector(policy.spec.connection_ns_selector)


def validate_inventory(client, inventory, old) -> None:
    """Validate an inventory on create (``old`` is None) or update."""
    _log.info("validate name=%s", inventory.metadata.name)
    spec = inventory.spec
    if old is not None and old.spec.provider_ref.name != spec.provider_ref.name:
        raise FieldError(
            FieldPath("spec").child("providerRef").child("name"),
            spec.provider_ref.name,
            "provider name is immutable for provider accounts",
        )
    secret_name = spec.credentials_ref.name if spec.credentials_ref is not None else ""
    secret = client.get_secret(inventory.metadata.namespace, secret_name)
    provider = client.get_provider(spec.provider_ref.name)
    if old is None and spec.provider_ref.name == RDS_REGISTRATION:
        validate_rds(client)
    if spec.connection_ns_selector is not None:
        label_selector_as_selector(spec.connection_ns_selector)
    validate_inventory_mandatory_fields(inventory, secret, provider)


def validate_inventory_mandatory_fields(inventory, secret, provider) -> None:
    """Every required credential field must be present and non-empty in the secret."""
    for cred_field in provider.spec.credential_fields:
        if cred_field.required and not secret.data.get(cred_field.key):
            raise FieldError(
                FieldPath("spec").child("credentialsRef"),
                inventory.spec.credentials_ref,
                f"credentialsRef is invalid: {cred_field.key} is required in secret {secret.name}",
            )


def validate_rds(client) -> None:
    """Only one RDS provider account may exist in a cluster."""
    existing = client.list_inventories_by_provider(RDS_REGISTRATION)
    if existing:
        raise ValueError(
            "only one provider account for RDS can exist in a cluster, "
            f"but there is already a provider account {existing[0].metadata.name} created"
        )
from datetime import datetime, timezone

import pytest

from dbaasop.meta import (
    Condition,
    FieldError,
    FieldPath,
    LabelSelector,
    LabelSelectorRequirement,
    find_status_condition,
    go_repr,
    label_selector_as_selector,
    set_status_condition,
)
from dbaasop.types import NamespacedName


def test_field_path_child():
    assert str(FieldPath("spec").child("providerRef").child("name")) == "spec.providerRef.name"


def test_field_error_string():
    err = FieldError(FieldPath("spec").child("instanceID"), "updated-instanceID", "instanceID is immutable")
    assert str(err) == 'spec.instanceID: Invalid value: "updated-instanceID": instanceID is immutable'


def test_field_error_struct_value():
    err = FieldError(
        FieldPath("spec").child("inventoryRef"),
        NamespacedName(namespace="default", name="updated-inventory"),
        "inventoryRef is immutable",
    )
    assert str(err) == (
        'spec.inventoryRef: Invalid value: v1alpha1.NamespacedName{Namespace:"default", '
        'Name:"updated-inventory"}: inventoryRef is immutable'
    )


def test_go_repr_string_quotes():
    assert go_repr("") == '""'


def test_go_repr_none_and_bool():
    assert go_repr(None) == "null"
    assert go_repr(True) == "true"


def test_find_and_set_condition():
    conditions = []
    set_status_condition(conditions, Condition(type="Ready", status="False", reason="A"))
    first = find_status_condition(conditions, "Ready")
    assert first.reason == "A"
    stamp = first.last_transition_time
    assert stamp is not None
    set_status_condition(conditions, Condition(type="Ready", status="False", reason="B"))
    assert len(conditions) == 1
    assert conditions[0].reason == "B"
    assert conditions[0].last_transition_time == stamp
    later = datetime(2030, 1, 1, tzinfo=timezone.utc)
    set_status_condition(conditions, Condition(type="Ready", status="True", last_transition_time=later))
    assert conditions[0].last_transition_time == later
    assert find_status_condition(conditions, "Other") is None


def test_selector_none_and_empty():
    assert label_selector_as_selector(None).matches({"a": "b"}) is False
    assert label_selector_as_selector(LabelSelector()).matches({}) is True


def test_selector_matching():
    sel = label_selector_as_selector(
        LabelSelector(
            match_labels={"env": "prod"},
            match_expressions=[
                LabelSelectorRequirement(key="tier", operator="In", values=["db", "cache"]),
                LabelSelectorRequirement(key="legacy", operator="DoesNotExist"),
            ],
        )
    )
    assert sel.matches({"env": "prod", "tier": "db"})
    assert not sel.matches({"env": "prod", "tier": "web"})
    assert not sel.matches({"env": "prod", "tier": "db", "legacy": "x"})


def test_selector_in_without_values():
    sel = LabelSelector(match_expressions=[LabelSelectorRequirement(key="test", operator="In")])
    with pytest.raises(FieldError) as info:
        label_selector_as_selector(sel)
    assert str(info.value) == (
        "values: Invalid value: []string(nil): for 'in', 'notin' operators, values set can't be empty"
    )


def test_selector_bad_operator():
    sel = LabelSelector(match_expressions=[LabelSelectorRequirement(key="k", operator="Near")])
    with pytest.raises(ValueError, match="not a valid pod selector operator"):
        label_selector_as_selector(sel)


def test_selector_bad_key():
    sel = LabelSelector(match_labels={"-bad": "v"})
    with pytest.raises(FieldError):
        label_selector_as_selector(sel)
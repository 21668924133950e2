from __future__ import annotations

import pytest

from salesmanager.criteria import (
    Criteria,
    CriteriaBindingError,
    CriteriaOrderBy,
    MerchantStoreCriteria,
    ProductCriteria,
    apply_paging,
    build_criteria,
)


def test_only_mapped_and_present_parameters_are_bound() -> None:
    criteria = build_criteria(
        {"code": "code", "name": "name"},
        {"code": "shop-1", "ignored": "value", "user": "admin"},
    )

    assert isinstance(criteria, Criteria)
    assert criteria.code == "shop-1"
    assert criteria.name is None
    assert criteria.user is None


def test_binding_converts_to_declared_field_types() -> None:
    criteria = build_criteria(
        {"category": "category_id", "available": "available", "order": "criteria_order_by"},
        {"category": "12", "available": "false", "order": "desc"},
        ProductCriteria(),
    )

    assert criteria.category_id == 12
    assert criteria.available is False
    assert criteria.criteria_order_by is CriteriaOrderBy.DESC


def test_existing_values_survive_when_parameter_absent() -> None:
    criteria = MerchantStoreCriteria(retailers=True, code="keep")
    result = build_criteria({"code": "code", "retailers": "retailers"}, {}, criteria)

    assert result is criteria
    assert result.code == "keep"
    assert result.retailers is True


def test_unknown_field_is_rejected() -> None:
    with pytest.raises(CriteriaBindingError) as excinfo:
        build_criteria({"q": "does_not_exist"}, {"q": "value"})
    assert excinfo.value.field_name == "does_not_exist"


@pytest.mark.parametrize(
    "params",
    [{"category": "abc"}, {"available": "maybe"}, {"order": "sideways"}],
)
def test_unconvertible_values_are_rejected(params: dict) -> None:
    mapping = {"category": "category_id", "available": "available", "order": "criteria_order_by"}
    with pytest.raises(CriteriaBindingError):
        build_criteria(mapping, params, ProductCriteria())


def test_apply_paging_sets_window() -> None:
    criteria = apply_paging(Criteria(), page=2, count=10)

    assert criteria.start_index == 20
    assert criteria.max_count == 10
    assert criteria.legacy_pagination is False


def test_apply_paging_rejects_negative_values() -> None:
    with pytest.raises(CriteriaBindingError):
        apply_paging(Criteria(), page=-1, count=10)

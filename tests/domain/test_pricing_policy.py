"""Unit tests for policy scopes and configuration checks."""

from decimal import Decimal

import pytest

from opv.domain.exceptions import PolicyConfigurationError, ValidationError
from opv.domain.model.pricing_policy import (
    ExplicitSelection,
    MultiService,
    PolicyType,
    PricingPolicy,
    SingleService,
    TierSetting,
    policy_scope_from_raw,
    scope_covers,
)


class TestScopeFromRaw:

    def test_scalar_service_id(self):
        assert policy_scope_from_raw({"serviceId": "S1"}) == SingleService("S1")

    def test_list_service_id(self):
        assert policy_scope_from_raw({"serviceId": ["S1", "S2"]}) == MultiService(("S1", "S2"))

    def test_selected_policies(self):
        scope = policy_scope_from_raw({"selectedPolicies": ["S3"]})
        assert scope == ExplicitSelection(("S3",))

    def test_service_id_wins_over_selection(self):
        scope = policy_scope_from_raw({"serviceId": "S1", "selectedPolicies": ["S3"]})
        assert scope == SingleService("S1")

    def test_unscoped(self):
        assert policy_scope_from_raw({}) is None

    def test_malformed_selection_rejected(self):
        with pytest.raises(ValidationError, match="must be a list"):
            policy_scope_from_raw({"selectedPolicies": "S3"})


class TestScopeCovers:

    def test_single(self):
        assert scope_covers(SingleService("S1"), "S1")
        assert not scope_covers(SingleService("S1"), "S2")

    def test_multi(self):
        assert scope_covers(MultiService(("S1", "S2")), "S2")
        assert not scope_covers(MultiService(("S1", "S2")), "S3")

    def test_explicit(self):
        assert scope_covers(ExplicitSelection(("S3",)), "S3")

    def test_no_scope_covers_nothing(self):
        assert not scope_covers(None, "S1")

    def test_unknown_scope_type_rejected(self):
        with pytest.raises(TypeError):
            scope_covers("S1", "S1")  # type: ignore[arg-type]


class TestCheckConfiguration:

    def test_negative_start_rejected(self):
        policy = PricingPolicy(
            id="P",
            name="bad",
            type=PolicyType.TIERED_DISCOUNT,
            tier_settings=(TierSetting(-1, 5, Decimal("90")),),
        )
        with pytest.raises(PolicyConfigurationError, match="Negative start"):
            policy.check_configuration()

    def test_negative_ratio_rejected(self):
        policy = PricingPolicy(
            id="P", name="bad", type=PolicyType.UNIFORM_DISCOUNT,
            discount_ratio=Decimal("-5"),
        )
        with pytest.raises(PolicyConfigurationError, match="between 0 and 100"):
            policy.check_configuration()

    def test_gaps_and_overlaps_accepted(self):
        policy = PricingPolicy(
            id="P",
            name="loose",
            type=PolicyType.TIERED_DISCOUNT,
            tier_settings=(
                TierSetting(1, 10, Decimal("100")),
                TierSetting(5, 20, Decimal("90")),
                TierSetting(30, None, Decimal("80")),
            ),
        )
        policy.check_configuration()

    def test_open_ended_tier_has_no_capacity(self):
        assert TierSetting(11, None, Decimal("80")).capacity is None
        assert TierSetting(1, 10, Decimal("100")).capacity == 10

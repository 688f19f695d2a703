"""Tests for the priority/severity tier table."""
import pytest

from workitem_codegen.domain.tiering import (
    TIER_TABLE,
    Severity,
    assess_impact,
    clamp_priority,
    normalize_severity,
)
from workitem_codegen.schemas.extraction import PriorityTier, Urgency

pytestmark = pytest.mark.unit


class TestTierTable:
    @pytest.mark.parametrize("priority", [1, 2, 3, 4])
    @pytest.mark.parametrize("severity", ["Critical", "High", "Medium", "Low", None])
    def test_every_combination_is_defined(self, priority, severity):
        impact = assess_impact(priority, severity)
        assert impact.user_impact in set(PriorityTier)
        assert impact.urgency in set(Urgency)

    def test_table_covers_all_pairs(self):
        assert len(TIER_TABLE) == len(Severity) * 4

    def test_immediate_is_reserved_for_critical_p1(self):
        immediate = [key for key, (_, urgency) in TIER_TABLE.items() if urgency == Urgency.IMMEDIATE]
        assert immediate == [(Severity.CRITICAL, 1)]

    def test_absent_severity_reads_as_medium(self):
        assert assess_impact(2, None) == assess_impact(2, "Medium")

    def test_low_p4(self):
        impact = assess_impact(4, "Low")
        assert impact.user_impact == PriorityTier.LOW
        assert impact.urgency == Urgency.LOW


class TestNormalization:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("1 - Critical", Severity.CRITICAL),
            ("2 - High", Severity.HIGH),
            ("3 - medium", Severity.MEDIUM),
            ("4 - Low", Severity.LOW),
            ("whatever", Severity.MEDIUM),
            (None, Severity.MEDIUM),
        ],
    )
    def test_severity_labels(self, raw, expected):
        assert normalize_severity(raw) == expected

    @pytest.mark.parametrize("raw,expected", [(0, 1), (1, 1), (3, 3), (9, 4), (None, 2)])
    def test_priority_is_clamped(self, raw, expected):
        assert clamp_priority(raw) == expected

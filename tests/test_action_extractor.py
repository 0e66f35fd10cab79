"""Tests for insight action payload parsing.

Run with: pytest tests/test_action_extractor.py -v
"""

import json

import pytest

from analytics.actions import (
    ActionTotals,
    extract_conversion_value,
    extract_conversions,
    extract_leads,
    extract_messaging_starts,
    parse_actions,
)
from analytics.creative_models import ParsedAction


class TestParseActions:
    """Tests for parse_actions()."""

    def test_parses_json_string(self):
        """Test a JSON string payload is decoded into typed actions."""
        actions = parse_actions('[{"action_type": "purchase", "value": "2"}]')
        assert actions == [ParsedAction("purchase", 2.0)]

    def test_accepts_structured_list(self):
        """Test an already-decoded list is accepted as is."""
        actions = parse_actions([{"action_type": "lead", "value": 3}])
        assert actions == [ParsedAction("lead", 3.0)]

    @pytest.mark.parametrize("payload", [None, "", "not json", "{}", '{"a": 1}', 42, b"\xff"])
    def test_malformed_payloads_yield_empty(self, payload):
        """Test unparseable or non-list payloads yield no actions."""
        assert parse_actions(payload) == []

    def test_skips_entries_without_string_type(self):
        """Test entries that are not mappings or lack action_type are dropped."""
        payload = [
            "purchase",
            {"value": "4"},
            {"action_type": 7, "value": "1"},
            {"action_type": "purchase", "value": "1"},
        ]
        assert parse_actions(payload) == [ParsedAction("purchase", 1.0)]

    @pytest.mark.parametrize("value", ["abc", None, "nan", "inf", float("inf"), True, [1]])
    def test_bad_values_become_zero(self, value):
        """Test non-numeric and non-finite values contribute zero."""
        actions = parse_actions([{"action_type": "purchase", "value": value}])
        assert actions == [ParsedAction("purchase", 0.0)]


class TestCategoryExtraction:
    """Tests for the per-category extractors."""

    PAYLOAD = [
        {"action_type": "offsite_conversion.fb_pixel_purchase", "value": "2"},
        {"action_type": "omni_purchase", "value": "1"},
        {"action_type": "lead", "value": "4"},
        {"action_type": "onsite_conversion.lead_grouped", "value": "1"},
        {"action_type": "complete_registration", "value": "3"},
        {"action_type": "add_to_cart", "value": "5"},
        {"action_type": "onsite_conversion.messaging_conversation_started_7d", "value": "6"},
        {"action_type": "onsite_conversion.messaging_first_reply", "value": "2"},
        {"action_type": "link_click", "value": "100"},
    ]

    def test_conversions_match_by_substring(self):
        """Test conversions include pixel purchases, leads, registrations and carts."""
        # 2 + 1 + 4 + 1 (lead_grouped contains 'lead') + 3 + 5
        assert extract_conversions(self.PAYLOAD) == 16.0

    def test_conversion_value_counts_purchases_only(self):
        """Test conversion value sums purchase-type action values."""
        values = [
            {"action_type": "omni_purchase", "value": "19.90"},
            {"action_type": "offsite_conversion.fb_pixel_purchase", "value": "10.10"},
            {"action_type": "lead", "value": "50"},
        ]
        assert extract_conversion_value(values) == pytest.approx(30.0)

    def test_leads_match_exact_types(self):
        """Test leads only count the two exact lead types."""
        assert extract_leads(self.PAYLOAD) == 5.0

    def test_messaging_starts_match_exact_types(self):
        """Test messaging starts only count the two messaging types."""
        assert extract_messaging_starts(self.PAYLOAD) == 8.0

    def test_extractors_accept_raw_json(self):
        """Test extractors accept the raw JSON payload as well."""
        assert extract_leads(json.dumps(self.PAYLOAD)) == 5.0

    def test_extractors_are_deterministic(self):
        """Test identical input gives identical output."""
        assert extract_conversions(self.PAYLOAD) == extract_conversions(list(self.PAYLOAD))

    def test_empty_payload_is_zero(self):
        """Test every extractor returns 0 for a missing payload."""
        assert extract_conversions(None) == 0.0
        assert extract_conversion_value(None) == 0.0
        assert extract_leads(None) == 0.0
        assert extract_messaging_starts(None) == 0.0


class TestActionTotals:
    """Tests for ActionTotals.from_payloads()."""

    def test_computes_all_categories(self):
        """Test all four totals are computed from the two payloads."""
        totals = ActionTotals.from_payloads(
            '[{"action_type": "purchase", "value": "2"}, {"action_type": "lead", "value": "1"}]',
            [{"action_type": "purchase", "value": "80.5"}],
        )
        assert totals.conversions == 3.0
        assert totals.conversion_value == 80.5
        assert totals.leads == 1.0
        assert totals.messaging_starts == 0.0

    def test_malformed_payloads_contribute_zero(self):
        """Test a malformed payload yields all-zero totals."""
        assert ActionTotals.from_payloads("{broken", None) == ActionTotals()

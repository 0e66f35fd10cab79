"""Pure parsing functions for insight action payloads.

Insight rows carry their conversions as a loosely typed list of
``{"action_type": ..., "value": ...}`` pairs, stored either as JSON text or
as already-decoded lists. This module converts that payload into
``ParsedAction`` lists and sums the categories the dashboard reports on.
All functions are pure: malformed input contributes zero and never raises.
"""

import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Callable

from analytics.creative_models import ParsedAction

logger = logging.getLogger(__name__)

LEAD_TYPES = frozenset({"lead", "onsite_conversion.lead_grouped"})
MESSAGING_TYPES = frozenset({
    "onsite_conversion.messaging_conversation_started_7d",
    "onsite_conversion.messaging_first_reply",
})
CONVERSION_MARKERS = ("purchase", "lead", "complete_registration", "add_to_cart")


def _parse_value(value: Any) -> float:
    """Parse an action value as a finite float, 0 otherwise."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, (str, bytes)):
        try:
            number = float(value)
        except ValueError:
            return 0.0
    else:
        return 0.0
    return number if math.isfinite(number) else 0.0


def parse_actions(payload: Any) -> list[ParsedAction]:
    """Convert a raw action payload into typed actions.

    Args:
        payload: JSON text, a decoded list of dicts, or None.

    Returns:
        List of ParsedAction. Empty for anything that is not a list.

    Example:
        >>> parse_actions('[{"action_type": "purchase", "value": "2"}]')
        [ParsedAction(action_type='purchase', value=2.0)]
    """
    if not payload:
        return []

    decoded = payload
    if isinstance(payload, (str, bytes)):
        try:
            decoded = json.loads(payload)
        except (ValueError, TypeError):
            logger.debug("Ignoring unparseable action payload")
            return []

    if not isinstance(decoded, (list, tuple)):
        return []

    actions = []
    for entry in decoded:
        if not isinstance(entry, dict):
            continue
        action_type = entry.get("action_type")
        if not isinstance(action_type, str):
            continue
        actions.append(ParsedAction(action_type, _parse_value(entry.get("value"))))
    return actions


def _ensure_parsed(payload: Any) -> list[ParsedAction]:
    if isinstance(payload, list) and all(isinstance(a, ParsedAction) for a in payload):
        return payload
    return parse_actions(payload)


def _sum_matching(payload: Any, predicate: Callable[[str], bool]) -> float:
    return sum(
        (a.value for a in _ensure_parsed(payload) if predicate(a.action_type)),
        0.0,
    )


def is_conversion(action_type: str) -> bool:
    return any(marker in action_type for marker in CONVERSION_MARKERS)


def is_purchase(action_type: str) -> bool:
    return "purchase" in action_type


def extract_conversions(actions: Any) -> float:
    """Sum purchase, lead, registration and add-to-cart actions."""
    return _sum_matching(actions, is_conversion)


def extract_conversion_value(action_values: Any) -> float:
    """Sum purchase value from an action-values payload."""
    return _sum_matching(action_values, is_purchase)


def extract_leads(actions: Any) -> float:
    return _sum_matching(actions, lambda t: t in LEAD_TYPES)


def extract_messaging_starts(actions: Any) -> float:
    return _sum_matching(actions, lambda t: t in MESSAGING_TYPES)


@dataclass(frozen=True)
class ActionTotals:
    """The four action categories summed for one insight row."""

    conversions: float = 0.0
    conversion_value: float = 0.0
    leads: float = 0.0
    messaging_starts: float = 0.0

    @classmethod
    def from_payloads(cls, actions: Any, action_values: Any) -> "ActionTotals":
        """Parse both payloads once and compute every category."""
        parsed = parse_actions(actions)
        parsed_values = parse_actions(action_values)
        return cls(
            conversions=extract_conversions(parsed),
            conversion_value=extract_conversion_value(parsed_values),
            leads=extract_leads(parsed),
            messaging_starts=extract_messaging_starts(parsed),
        )

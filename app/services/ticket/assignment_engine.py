"""
Ticket classification & auto-assignment rules.

Maps the intake bot's free-form category labels onto a closed TicketType
and picks an assignee from a static rule table:
1. classify(category, subcategory) never fails; unknown labels become OTHERS
2. Rule table entries with one name assign deterministically
3. Entries with several names draw uniformly at random, once, at assignment time
4. Empty entries leave the ticket awaiting manual assignment
"""
import logging
import random
from typing import Dict, Iterable, List, Mapping, Optional

from app.core.exceptions import ConfigurationError
from app.models.shared.enums import TicketType
from app.schemas.ticket.ticket_schema import AssignmentDecision

logger = logging.getLogger(__name__)

CATEGORY_REPAIR = "repair and maintenance"
CATEGORY_DIFFICULTY = "difficulty in order"
CATEGORY_PLACE_ORDER = "place an order"

PLACE_ORDER_SUBCATEGORIES = {
    "stock items": TicketType.STOCK_ITEMS,
    "housekeeping": TicketType.HOUSEKEEPING,
}


def _normalize_label(value: Optional[str]) -> str:
    if value is None:
        return ""
    return " ".join(str(value).split()).lower()


def classify(category: Optional[str], subcategory: Optional[str] = None) -> TicketType:
    """Normalize raw intake labels into a TicketType"""
    normalized_category = _normalize_label(category)

    if normalized_category == CATEGORY_REPAIR:
        return TicketType.REPAIR_AND_MAINTENANCE
    if normalized_category == CATEGORY_DIFFICULTY:
        return TicketType.DIFFICULTY_IN_ORDER
    if normalized_category == CATEGORY_PLACE_ORDER:
        return PLACE_ORDER_SUBCATEGORIES.get(_normalize_label(subcategory), TicketType.OTHERS)
    return TicketType.OTHERS


def choose_assignee(candidates: List[str], rng: random.Random) -> Optional[str]:
    """Pick one candidate; the caller persists the result and never re-draws it"""
    if not candidates:
        return None
    if len(candidates) == 1:
        return candidates[0]
    return rng.choice(candidates)


class AssignmentRules:
    """Immutable type -> candidate names table"""

    def __init__(self, rules: Dict[TicketType, tuple]):
        self._rules = rules

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Iterable[str]]) -> "AssignmentRules":
        rules: Dict[TicketType, tuple] = {}
        for key, names in mapping.items():
            try:
                ticket_type = TicketType(key)
            except ValueError:
                raise ConfigurationError(f"Unknown ticket type in assignment rules: {key!r}")
            if ticket_type in rules:
                raise ConfigurationError(f"Duplicate assignment rule for {ticket_type.value}")
            rules[ticket_type] = tuple(name.strip() for name in names if name and name.strip())

        missing = [t.value for t in TicketType if t not in rules]
        if missing:
            raise ConfigurationError(f"Assignment rules missing ticket types: {', '.join(missing)}")

        return cls(rules)

    def candidates_for(self, ticket_type: TicketType) -> List[str]:
        return list(self._rules[ticket_type])

    def as_dict(self) -> Dict[str, List[str]]:
        return {t.value: list(names) for t, names in self._rules.items()}


def assign(ticket_type: TicketType, rules: AssignmentRules, rng: random.Random) -> AssignmentDecision:
    """Run the rule table for a ticket type"""
    candidates = rules.candidates_for(ticket_type)
    assignee = choose_assignee(candidates, rng)

    if assignee is None:
        logger.info(f"No auto-assignment rule for {ticket_type.value}; awaiting manual assignment")
    else:
        logger.info(f"Auto-assigned {ticket_type.value} to {assignee} (candidates: {candidates})")

    return AssignmentDecision(
        type=ticket_type,
        candidates=candidates,
        assigned_to=assignee,
        auto_assigned=assignee is not None,
    )

"""
Initiative System.

Builds the per-round turn order from committed card selections and the
living enemies, and tracks which entry is acting.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from hextactics.core.actions import Action, Card, CardHalf


class UnitKind(str, Enum):
    """Which side a unit fights on."""
    CHARACTER = "character"
    ENEMY = "enemy"


@dataclass
class CardSelection:
    """
    Two cards committed by a character for the coming round.

    `card_a` is the lead card: it was picked first and supplies initiative.
    """
    card_a: Optional[Card] = None
    card_b: Optional[Card] = None

    @property
    def is_complete(self) -> bool:
        return self.card_a is not None and self.card_b is not None

    @property
    def card_ids(self) -> List[str]:
        return [c.id for c in (self.card_a, self.card_b) if c is not None]

    def toggle(self, card: Card) -> "CardSelection":
        """
        Return the selection after clicking `card`.

        Clicking the lead card promotes the other card to lead; clicking the
        second card removes it; a third card replaces the older pick.
        """
        if self.card_a is not None and self.card_a.id == card.id:
            return CardSelection(card_a=self.card_b, card_b=None)
        if self.card_b is not None and self.card_b.id == card.id:
            return CardSelection(card_a=self.card_a, card_b=None)
        if self.card_a is None:
            return CardSelection(card_a=card, card_b=self.card_b)
        if self.card_b is None:
            return CardSelection(card_a=self.card_a, card_b=card)
        return CardSelection(card_a=self.card_b, card_b=card)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "card_a": self.card_a.id if self.card_a else None,
            "card_b": self.card_b.id if self.card_b else None,
            "card_ids": self.card_ids,
        }


@dataclass
class TurnOrderEntry:
    """
    A unit's slot in this round's turn order.

    Character entries carry their two cards; `lead_half` stays None until
    the player picks which half of the lead card resolves first.
    """
    unit_id: str
    kind: UnitKind
    initiative: int
    name: str = ""
    lead_card: Optional[Card] = None
    other_card: Optional[Card] = None
    lead_half: Optional[CardHalf] = None

    @property
    def is_character(self) -> bool:
        return self.kind == UnitKind.CHARACTER

    def action_pair(self, lead_half: Optional[CardHalf] = None) -> Tuple[Action, Action]:
        """
        The two actions in resolution order.

        First the chosen half of the lead card, then the opposite half of
        the other card. Both halves of one card are never played.
        """
        half = lead_half or self.lead_half
        if half is None or self.lead_card is None or self.other_card is None:
            raise ValueError(f"Turn entry {self.unit_id} has no resolved card halves")
        return self.lead_card.half(half), self.other_card.half(half.opposite)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "unit_id": self.unit_id,
            "kind": self.kind.value,
            "initiative": self.initiative,
            "name": self.name,
        }
        if self.is_character:
            data["lead_card"] = self.lead_card.id if self.lead_card else None
            data["other_card"] = self.other_card.id if self.other_card else None
            data["lead_half"] = self.lead_half.value if self.lead_half else None
        return data


@dataclass
class InitiativeTracker:
    """
    Turn order for one round.

    Handles:
    - Stable ascending sort by initiative
    - Tracking the acting entry
    - Advancing to the next entry
    """
    entries: List[TurnOrderEntry] = field(default_factory=list)
    current_index: int = 0

    def get_current(self) -> Optional[TurnOrderEntry]:
        if 0 <= self.current_index < len(self.entries):
            return self.entries[self.current_index]
        return None

    def advance(self) -> Optional[TurnOrderEntry]:
        self.current_index += 1
        return self.get_current()

    @property
    def is_round_over(self) -> bool:
        return self.current_index >= len(self.entries)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entries": [e.to_dict() for e in self.entries],
            "current_index": self.current_index,
        }


def sort_turn_order(entries: List[TurnOrderEntry]) -> List[TurnOrderEntry]:
    """
    Sort entries ascending by initiative.

    Python's sort is stable, so equal initiatives keep insertion order:
    characters in party order first, then enemies in spawn order.
    """
    return sorted(entries, key=lambda e: e.initiative)


def build_turn_order(characters, selections: Dict[str, CardSelection], enemies) -> InitiativeTracker:
    """
    Build the round's initiative order.

    Args:
        characters: Party members in party order
        selections: Committed card selections keyed by character id
        enemies: Living enemies in spawn order

    Returns:
        A tracker positioned on the first entry
    """
    entries: List[TurnOrderEntry] = []

    for char in characters:
        if char.resting or char.health <= 0:
            continue
        selection = selections.get(char.id)
        if selection is None or not selection.is_complete:
            continue
        entries.append(TurnOrderEntry(
            unit_id=char.id,
            kind=UnitKind.CHARACTER,
            initiative=selection.card_a.initiative,
            name=char.short_name,
            lead_card=selection.card_a,
            other_card=selection.card_b,
        ))

    for enemy in enemies:
        entries.append(TurnOrderEntry(
            unit_id=enemy.id,
            kind=UnitKind.ENEMY,
            initiative=enemy.initiative,
            name=enemy.name,
        ))

    return InitiativeTracker(entries=sort_turn_order(entries))

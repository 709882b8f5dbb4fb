"""
Attack Modifier Deck.

Each attack draws one modifier card that adjusts the flat card damage:
additive cards shift it, the critical card doubles it and the miss card
zeroes it. Characters own individually tuned decks; all enemies share
one standard deck.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional
import random


class ModifierType(str, Enum):
    """How a modifier card changes damage."""
    ADD = "add"
    MULTIPLY = "multiply"
    NULL = "null"


@dataclass(frozen=True)
class ModifierCard:
    """A single attack modifier."""
    value: int
    modifier_type: ModifierType
    label: str

    @property
    def triggers_reshuffle(self) -> bool:
        """Critical and miss cards force a reshuffle before the next draw."""
        return self.modifier_type in (ModifierType.MULTIPLY, ModifierType.NULL)

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "type": self.modifier_type.value, "label": self.label}


def _add_card(value: int) -> ModifierCard:
    label = f"+{value}" if value >= 0 else f"{value}"
    return ModifierCard(value=value, modifier_type=ModifierType.ADD, label=label)


@dataclass
class ModifierDeck:
    """
    A modifier deck: the full card set plus the current draw pile.

    `remaining` is drawn from the end of the list.
    """
    cards: List[ModifierCard]
    remaining: List[ModifierCard] = field(default_factory=list)
    needs_reshuffle: bool = False
    owner_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owner_id": self.owner_id,
            "size": len(self.cards),
            "remaining": len(self.remaining),
            "needs_reshuffle": self.needs_reshuffle,
        }


def create_standard_deck() -> List[ModifierCard]:
    """
    The standard 20-card modifier deck.

    6x +0, 5x +1, 5x -1, 1x +2, 1x -2, 1x x2, 1x MISS
    """
    cards: List[ModifierCard] = []
    cards.extend(_add_card(0) for _ in range(6))
    cards.extend(_add_card(1) for _ in range(5))
    cards.extend(_add_card(-1) for _ in range(5))
    cards.append(_add_card(2))
    cards.append(_add_card(-2))
    cards.append(ModifierCard(value=2, modifier_type=ModifierType.MULTIPLY, label="x2"))
    cards.append(ModifierCard(value=0, modifier_type=ModifierType.NULL, label="MISS"))
    return cards


# character_id -> [(old additive value, new additive value, count)]
CHARACTER_SUBSTITUTIONS: Dict[str, List[tuple]] = {
    "jack": [(-1, 1, 2)],               # 7x +1, 3x -1
    "sam": [(-1, 0, 3)],                # 9x +0, 2x -1
    "daniel": [(0, 2, 1), (0, -2, 1)],  # 4x +0, 2x +2, 2x -2
    "tealc": [(-1, 1, 2), (0, 2, 1)],   # 7x +1, 2x +2, 3x -1, 5x +0
}


def _replace_cards(cards: List[ModifierCard], old_value: int, new_value: int, count: int) -> None:
    """Replace the first `count` additive cards of old_value in place."""
    replaced = 0
    for i, card in enumerate(cards):
        if replaced >= count:
            break
        if card.modifier_type == ModifierType.ADD and card.value == old_value:
            cards[i] = _add_card(new_value)
            replaced += 1


def create_character_deck(character_id: str) -> List[ModifierCard]:
    """Standard deck with the character's fixed substitutions applied."""
    cards = create_standard_deck()
    for old_value, new_value, count in CHARACTER_SUBSTITUTIONS.get(character_id, []):
        _replace_cards(cards, old_value, new_value, count)
    return cards


def create_monster_deck() -> List[ModifierCard]:
    """The shared enemy deck is the standard deck."""
    return create_standard_deck()


def shuffle(cards: List[ModifierCard], rng: Optional[random.Random] = None) -> List[ModifierCard]:
    """Fisher-Yates shuffle returning a new list."""
    rng = rng or random
    shuffled = list(cards)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def new_deck(
    cards: List[ModifierCard],
    owner_id: Optional[str] = None,
    rng: Optional[random.Random] = None
) -> ModifierDeck:
    """Build a deck with a freshly shuffled draw pile."""
    return ModifierDeck(cards=list(cards), remaining=shuffle(cards, rng), owner_id=owner_id)


def draw(deck: ModifierDeck, rng: Optional[random.Random] = None) -> ModifierCard:
    """
    Draw the top modifier.

    Reshuffles the full card set first when the pile is empty or the
    previous draw was a critical/miss card.
    """
    if not deck.remaining or deck.needs_reshuffle:
        deck.remaining = shuffle(deck.cards, rng)
        deck.needs_reshuffle = False

    modifier = deck.remaining.pop()

    if modifier.triggers_reshuffle:
        deck.needs_reshuffle = True

    return modifier


def apply_modifier(modifier: ModifierCard, damage: int) -> int:
    """Apply a modifier to base damage, never going below zero."""
    if modifier.modifier_type == ModifierType.NULL:
        return 0
    if modifier.modifier_type == ModifierType.MULTIPLY:
        return max(0, damage * modifier.value)
    return max(0, damage + modifier.value)

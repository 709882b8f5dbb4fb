"""
Rest System.

Card recovery for characters whose hand has run short:
- Short rest: recover the discard, lose one random card to the burned pool
- Long rest: recover the discard and one burned card, heal, sit out a round
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional
import logging
import random

from hextactics.core.battle_state import BattleState, BattleStore, Character
from hextactics.core.events import EventType

logger = logging.getLogger(__name__)


class RestType(str, Enum):
    SHORT = "short"
    LONG = "long"


@dataclass
class ShortRestResult:
    """Result of a short rest for one character."""
    character_id: str
    character_name: str
    lost_card: str
    recovered_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rest_type": RestType.SHORT.value,
            "character_id": self.character_id,
            "character_name": self.character_name,
            "lost_card": self.lost_card,
            "recovered_count": self.recovered_count,
        }


@dataclass
class LongRestResult:
    """Result of a long rest for one character."""
    character_id: str
    character_name: str
    hp_before: int
    hp_after: int
    recovered_count: int
    recovered_burned_card: Optional[str] = None

    @property
    def hp_healed(self) -> int:
        return self.hp_after - self.hp_before

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rest_type": RestType.LONG.value,
            "character_id": self.character_id,
            "character_name": self.character_name,
            "hp_before": self.hp_before,
            "hp_after": self.hp_after,
            "hp_healed": self.hp_healed,
            "recovered_count": self.recovered_count,
            "recovered_burned_card": self.recovered_burned_card,
        }


def can_rest(character: Character, cards_to_play: int = 2) -> bool:
    """Resting is only allowed once the hand is too small to play a round."""
    return len(character.hand) < cards_to_play


def short_rest(
    store: BattleStore,
    character_id: str,
    rng: Optional[random.Random] = None,
    cards_to_play: int = 2
) -> Optional[ShortRestResult]:
    """
    Return the discard to hand minus one uniformly random card.

    The lost card goes to the burned pool. Returns None if the character
    cannot rest or has nothing to recover.
    """
    rng = rng or random
    char = store.state.get_character(character_id)
    if char is None or not can_rest(char, cards_to_play) or not char.discard:
        return None

    lost_index = rng.randrange(len(char.discard))
    lost_card = char.discard[lost_index]
    recovered = [c for i, c in enumerate(char.discard) if i != lost_index]

    def _rest(state: BattleState) -> None:
        c = state.get_character(character_id)
        c.hand = c.hand + recovered
        c.discard = []
        c.burned = c.burned + [lost_card]

    store.mutate(_rest)

    result = ShortRestResult(
        character_id=character_id,
        character_name=char.short_name,
        lost_card=lost_card.name,
        recovered_count=len(recovered),
    )
    store.emit(
        EventType.CARD_BURNED,
        f"{char.short_name} loses \"{lost_card.name}\"",
        unit_id=character_id,
        card_id=lost_card.id,
    )
    store.emit(
        EventType.REST_SHORT,
        f"{char.short_name} takes a short rest, loses \"{lost_card.name}\", "
        f"recovers {len(recovered)} cards",
        unit_id=character_id,
        **result.to_dict(),
    )
    logger.info(f"[Rest] Short rest for {character_id}: burned {lost_card.id}")
    return result


def long_rest(
    store: BattleStore,
    character_id: str,
    rng: Optional[random.Random] = None,
    heal_amount: int = 2,
    cards_to_play: int = 2
) -> Optional[LongRestResult]:
    """
    Recover the whole discard plus one random burned card, and heal.

    The character is flagged resting and sits out the coming round.
    """
    rng = rng or random
    char = store.state.get_character(character_id)
    if char is None or not can_rest(char, cards_to_play):
        return None

    recovered = list(char.discard)
    burned = list(char.burned)
    recovered_burned = None
    if burned:
        recovered_burned = burned.pop(rng.randrange(len(burned)))

    hp_before = char.health
    hp_after = min(char.max_health, char.health + heal_amount)

    def _rest(state: BattleState) -> None:
        c = state.get_character(character_id)
        c.hand = c.hand + recovered + ([recovered_burned] if recovered_burned else [])
        c.discard = []
        c.burned = burned
        c.health = hp_after
        c.resting = True

    store.mutate(_rest)

    result = LongRestResult(
        character_id=character_id,
        character_name=char.short_name,
        hp_before=hp_before,
        hp_after=hp_after,
        recovered_count=len(recovered),
        recovered_burned_card=recovered_burned.name if recovered_burned else None,
    )
    store.emit(
        EventType.REST_LONG,
        f"{char.short_name} takes a long rest, heals {heal_amount}, recovers "
        f"{len(recovered)} cards (skips this round)",
        unit_id=character_id,
        **result.to_dict(),
    )
    logger.info(f"[Rest] Long rest for {character_id}: healed {result.hp_healed}")
    return result

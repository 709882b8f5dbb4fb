"""
Enemy AI Behaviors.

One decision per enemy turn, chosen by the archetype's ai tag:
- MeleeBehavior: closes distance and attacks
- RangedBehavior: keeps its preferred range, retreats when engaged
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional
import math

from hextactics.core.battle_state import BattleState, Character, Enemy
from hextactics.core.combat import is_walkable
from hextactics.core.hex_math import Hex, distance
from hextactics.core.pathfinding import get_reachable_hexes


class AIRole(str, Enum):
    """Policy tags carried by enemy archetypes."""
    MELEE = "melee"
    RANGED = "ranged"


class DecisionType(str, Enum):
    WAIT = "wait"
    ATTACK = "attack"
    MOVE = "move"
    MOVE_AND_ATTACK = "move_and_attack"


@dataclass
class EnemyDecision:
    """Result of AI decision-making."""
    decision_type: DecisionType
    target_id: Optional[str] = None
    position: Optional[Hex] = None
    reasoning: str = ""

    @classmethod
    def wait(cls, reasoning: str = "") -> "EnemyDecision":
        return cls(DecisionType.WAIT, reasoning=reasoning)

    def to_dict(self) -> Dict:
        return {
            "type": self.decision_type.value,
            "target_id": self.target_id,
            "position": self.position.to_dict() if self.position else None,
            "reasoning": self.reasoning,
        }


class BaseBehavior:
    """Base class for enemy policies."""

    ROLE: Optional[AIRole] = None

    def __init__(self, enemy: Enemy, state: BattleState):
        self.enemy = enemy
        self.state = state

    def find_nearest_target(self) -> Optional[Character]:
        """Nearest living character; the first one found wins ties."""
        nearest = None
        nearest_distance = math.inf
        for char in self.state.characters:
            if not char.is_alive:
                continue
            d = distance(self.enemy.position, char.position)
            if d < nearest_distance:
                nearest_distance = d
                nearest = char
        return nearest

    def reachable(self) -> List[Hex]:
        return [
            r.hex for r in get_reachable_hexes(
                self.enemy.position,
                self.enemy.move,
                lambda h: is_walkable(h, self.state),
            )
        ]

    def find_best_move_toward(self, goal: Hex) -> Optional[Hex]:
        """The reachable hex closest to `goal`, first found on ties."""
        best = None
        best_distance = math.inf
        for hex_ in self.reachable():
            d = distance(hex_, goal)
            if d < best_distance:
                best_distance = d
                best = hex_
        return best

    def approach(self, target: Character) -> EnemyDecision:
        """Move toward the target, attacking if the destination is in range."""
        destination = self.find_best_move_toward(target.position)
        if destination is None:
            return EnemyDecision.wait("No reachable hex")
        if distance(destination, target.position) >= distance(self.enemy.position, target.position):
            return EnemyDecision.wait("No hex gets closer")

        if distance(destination, target.position) <= self.enemy.range:
            return EnemyDecision(
                DecisionType.MOVE_AND_ATTACK,
                target_id=target.id,
                position=destination,
                reasoning="Closing to attack range",
            )
        return EnemyDecision(DecisionType.MOVE, position=destination, reasoning="Advancing")

    def decide(self, target: Character) -> EnemyDecision:
        raise NotImplementedError


class MeleeBehavior(BaseBehavior):
    """
    Aggressive melee fighter.

    Attacks in place when in range, otherwise advances on the nearest
    character and attacks if it arrives in range this turn.
    """

    ROLE = AIRole.MELEE

    def decide(self, target: Character) -> EnemyDecision:
        if distance(self.enemy.position, target.position) <= self.enemy.range:
            return EnemyDecision(DecisionType.ATTACK, target_id=target.id, reasoning="Target in reach")
        return self.approach(target)


class RangedBehavior(BaseBehavior):
    """
    Distance-keeping ranged attacker.

    Fires from beyond melee range, backs off when a character is adjacent,
    and advances only when out of range.
    """

    ROLE = AIRole.RANGED

    def find_retreat_position(self, target: Character) -> Optional[Hex]:
        """
        Reachable hex with the best retreat score.

        Score is the distance from the target, +10 at exactly the attack
        range, +5 anywhere else beyond melee but within range.
        """
        best = None
        best_score = -math.inf
        for hex_ in self.reachable():
            d = distance(hex_, target.position)
            score = d
            if d == self.enemy.range:
                score += 10
            elif 1 < d <= self.enemy.range:
                score += 5
            if score > best_score:
                best_score = score
                best = hex_
        return best

    def decide(self, target: Character) -> EnemyDecision:
        d = distance(self.enemy.position, target.position)

        if 1 < d <= self.enemy.range:
            return EnemyDecision(DecisionType.ATTACK, target_id=target.id, reasoning="At firing range")

        if d == 1:
            retreat = self.find_retreat_position(target)
            if retreat is None:
                return EnemyDecision(DecisionType.ATTACK, target_id=target.id, reasoning="Cornered")
            if distance(retreat, target.position) <= self.enemy.range:
                return EnemyDecision(
                    DecisionType.MOVE_AND_ATTACK,
                    target_id=target.id,
                    position=retreat,
                    reasoning="Falling back to fire",
                )
            return EnemyDecision(DecisionType.MOVE, position=retreat, reasoning="Falling back")

        if d > self.enemy.range:
            return self.approach(target)

        return EnemyDecision.wait()


def get_behavior_for_role(role: str, enemy: Enemy, state: BattleState) -> Optional[BaseBehavior]:
    """
    Factory for the behavior matching an ai tag.

    Returns None for unknown tags.
    """
    role_to_class = {
        AIRole.MELEE.value: MeleeBehavior,
        AIRole.RANGED.value: RangedBehavior,
    }
    behavior_class = role_to_class.get(role)
    if behavior_class is None:
        return None
    return behavior_class(enemy, state)


def decide_action(enemy: Enemy, state: BattleState) -> EnemyDecision:
    """Pick this turn's action for an enemy."""
    if enemy.stunned:
        return EnemyDecision.wait("Stunned")

    behavior = get_behavior_for_role(enemy.ai, enemy, state)
    if behavior is None:
        return EnemyDecision.wait(f"Unknown ai '{enemy.ai}'")

    target = behavior.find_nearest_target()
    if target is None:
        return EnemyDecision.wait("No living targets")

    return behavior.decide(target)

"""
Mission Engine.

Turn orchestrator for a mission: card selection, initiative, the
two-action character turn, enemy turns, round end, room advance and the
victory/defeat checks.

The engine never blocks. A command runs the game forward until it needs
player input (a lead-half choice or a target) or the round returns to
card selection. Presentation pacing is delegated to an injected pacer
callback that receives a delay in milliseconds.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
import logging
import random
import uuid

from hextactics.config import Settings, get_settings
from hextactics.core.actions import (
    Action,
    AttackAction,
    CardHalf,
    HealAction,
    MoveAction,
    PushAction,
    ShieldAction,
    action_to_dict,
)
from hextactics.core.battle_state import (
    BattleState,
    BattleStore,
    Character,
    Enemy,
    PendingAction,
    Phase,
    Room,
    RoundPhase,
    TurnState,
    TurnStep,
)
from hextactics.core import combat
from hextactics.core.enemy_ai import DecisionType, decide_action
from hextactics.core.events import EventType, GameEvent
from hextactics.core.hex_math import Hex
from hextactics.core.initiative import CardSelection, TurnOrderEntry, UnitKind, build_turn_order
from hextactics.core.modifier_deck import (
    ModifierDeck,
    apply_modifier,
    create_character_deck,
    create_monster_deck,
    draw,
    new_deck,
)
from hextactics.core import rest_system
from hextactics.services.content_loader import ContentLoader, get_content_loader

logger = logging.getLogger(__name__)

Pacer = Callable[[int], None]

VICTORY_CODE_SYMBOLS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
VICTORY_CODE_LENGTH = 7


def generate_victory_code(rng: Optional[random.Random] = None) -> str:
    """Cosmetic gate address shown on victory, e.g. "K-3-Z-0-A-9-Q"."""
    rng = rng or random
    return "-".join(rng.choice(VICTORY_CODE_SYMBOLS) for _ in range(VICTORY_CODE_LENGTH))


def _no_pause(delay_ms: int) -> None:
    pass


@dataclass
class CommandResult:
    """Outcome of a player command. Rejected commands change nothing."""
    accepted: bool
    reason: str = ""
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, **data) -> "CommandResult":
        return cls(accepted=True, data=data)

    @classmethod
    def rejected(cls, reason: str) -> "CommandResult":
        return cls(accepted=False, reason=reason)

    def to_dict(self) -> Dict[str, Any]:
        return {"accepted": self.accepted, "reason": self.reason, "data": self.data}


class MissionEngine:
    """
    Runs one mission from briefing to victory or defeat.

    All state lives in `self.store`; the engine keeps only the modifier
    decks, which persist across rooms.
    """

    def __init__(
        self,
        loader: Optional[ContentLoader] = None,
        settings: Optional[Settings] = None,
        use_modifier_deck: Optional[bool] = None,
        rng: Optional[random.Random] = None,
        pacer: Optional[Pacer] = None,
        mission_id: Optional[str] = None,
    ):
        self.id = mission_id or str(uuid.uuid4())
        self.settings = settings or get_settings()
        self.loader = loader or get_content_loader()
        self.rng = rng or random.Random()
        self.pacer = pacer or _no_pause
        self.use_modifier_deck = (
            self.settings.USE_MODIFIER_DECK if use_modifier_deck is None else use_modifier_deck
        )
        self.store = BattleStore(
            max_history=self.settings.MAX_HISTORY,
            max_log=self.settings.MAX_LOG_MESSAGES,
        )
        self.character_decks: Dict[str, ModifierDeck] = {}
        self.monster_deck: Optional[ModifierDeck] = None

    @property
    def state(self) -> BattleState:
        return self.store.state

    @property
    def cards_to_play(self) -> int:
        return self.settings.CARDS_TO_PLAY

    # =========================================================================
    # Observation
    # =========================================================================

    def get_state(self) -> Dict[str, Any]:
        """Full snapshot of the mission, including the event log."""
        data = self.store.snapshot()
        data["mission_id"] = self.id
        data["all_cards_selected"] = self.state.all_cards_selected(self.cards_to_play)
        data["lead_choices"] = self.allowed_lead_choices()
        return data

    def subscribe(self, listener: Callable[[Dict[str, Any]], None]) -> Callable[[], None]:
        return self.store.subscribe(listener)

    def subscribe_events(self, listener: Callable[[GameEvent], None]) -> Callable[[], None]:
        return self.store.subscribe_events(listener)

    def allowed_lead_choices(self) -> List[Dict[str, Any]]:
        """The two ways the acting character can order its card halves."""
        entry = self._current_entry()
        if entry is None or not entry.is_character or self.state.turn.step != TurnStep.AWAITING_LEAD_CHOICE:
            return []

        choices = []
        for half in (CardHalf.TOP, CardHalf.BOTTOM):
            first, second = entry.action_pair(half)
            choices.append({
                "lead_half": half.value,
                "first": action_to_dict(first),
                "second": action_to_dict(second),
            })
        return choices

    # =========================================================================
    # Mission lifecycle
    # =========================================================================

    def start_mission(self) -> CommandResult:
        """Create the party and the first room's enemies."""
        if self.state.phase != Phase.BRIEFING:
            return CommandResult.rejected("Mission already started")

        rooms = self.loader.get_rooms()
        if not rooms:
            return CommandResult.rejected("No rooms available")
        first_room = rooms[0]

        characters = []
        for index, template in enumerate(self.loader.get_character_templates()):
            characters.append(Character(
                id=template.id,
                name=template.name,
                short_name=template.short_name,
                max_health=template.max_health,
                health=template.max_health,
                position=first_room.start_positions[index],
                hand=self.loader.get_deck(template.deck),
            ))

        self.character_decks = {
            c.id: new_deck(create_character_deck(c.id), owner_id=c.id, rng=self.rng)
            for c in characters
        }
        self.monster_deck = new_deck(create_monster_deck(), owner_id="monsters", rng=self.rng)
        enemies = self._spawn_enemies(first_room)

        def _start(state: BattleState) -> None:
            state.rooms = rooms
            state.room_index = 0
            state.round_number = 1
            state.characters = characters
            state.enemies = enemies
            state.turn = TurnState()
            state.phase = Phase.PLAYING
            state.selected_character = characters[0].id if characters else None
            state.highlighted_hexes = []
            state.victory_code = None

        self.store.mutate(_start)
        self.store.emit(EventType.MISSION_STARTED, f"Mission started: {first_room.name}", room=first_room.id)
        logger.info(f"[Mission] {self.id} started with {len(characters)} characters in {first_room.name}")
        return CommandResult.ok()

    def restart_mission(self) -> CommandResult:
        """Throw away the current mission and start a fresh one."""
        logger.info(f"[Mission] {self.id} restarting")
        self.store.reset(BattleState())
        self.character_decks = {}
        self.monster_deck = None
        return self.start_mission()

    def _spawn_enemies(self, room: Room) -> List[Enemy]:
        enemies = []
        for n, spawn in enumerate(room.enemies):
            archetype = self.loader.get_enemy_archetype(spawn.archetype)
            enemies.append(Enemy(
                id=f"enemy_{n}",
                type=archetype.id,
                name=archetype.name,
                health=archetype.max_health,
                max_health=archetype.max_health,
                position=spawn.position,
                move=archetype.move,
                attack=archetype.attack,
                range=archetype.range,
                ai=archetype.ai,
                initiative=archetype.initiative,
            ))
        return enemies

    # =========================================================================
    # Selection phase
    # =========================================================================

    def _in_selection(self) -> bool:
        return self.state.phase == Phase.PLAYING and self.state.turn.round_phase == RoundPhase.SELECTION

    def select_character(self, character_id: str) -> CommandResult:
        """Focus a character in the selection panel."""
        if self.state.get_character(character_id) is None:
            return CommandResult.rejected(f"Unknown character {character_id}")

        def _focus(state: BattleState) -> None:
            state.selected_character = character_id

        self.store.mutate(_focus)
        return CommandResult.ok()

    def select_card(self, character_id: str, card_id: str) -> CommandResult:
        """Toggle a card in the character's selection."""
        if not self._in_selection():
            return CommandResult.rejected("Not in card selection")

        char = self.state.get_character(character_id)
        if char is None:
            return CommandResult.rejected(f"Unknown character {character_id}")
        if char.resting:
            return CommandResult.rejected(f"{char.short_name} is resting this round")
        if len(char.hand) < self.cards_to_play:
            return CommandResult.rejected(f"{char.short_name} needs to rest")

        card = char.find_card(card_id)
        if card is None:
            return CommandResult.rejected(f"Card {card_id} is not in {char.short_name}'s hand")

        current = self.state.turn.selections.get(character_id) or CardSelection()
        selection = current.toggle(card)

        def _select(state: BattleState) -> None:
            state.turn.selections[character_id] = selection

        self.store.mutate(_select)
        return CommandResult.ok(selection=selection.to_dict())

    def confirm_selection(self) -> CommandResult:
        """Lock in the round's cards, build initiative and start resolving turns."""
        if not self._in_selection():
            return CommandResult.rejected("Not in card selection")
        if not self.state.all_cards_selected(self.cards_to_play):
            self.store.emit(EventType.MESSAGE, "Select 2 cards for each character first!")
            return CommandResult.rejected("Not every character is ready")

        order = build_turn_order(self.state.characters, self.state.turn.selections, self.state.enemies)

        def _confirm(state: BattleState) -> None:
            state.turn.order = order
            state.turn.round_phase = RoundPhase.EXECUTION
            state.turn.step = None
            state.turn.action_index = 0
            state.turn.pending = None

        self.store.mutate(_confirm)
        self.store.emit(
            EventType.ROUND_STARTED,
            "Cards confirmed! Calculating initiative...",
            order=[e.to_dict() for e in order.entries],
        )
        logger.debug(f"[Mission] Round {self.state.round_number} order: "
                     f"{[(e.unit_id, e.initiative) for e in order.entries]}")

        self.pacer(self.settings.ENEMY_TURN_DELAY_MS)
        self._run()
        return CommandResult.ok()

    def short_rest(self, character_id: Optional[str] = None) -> CommandResult:
        """Short rest for a character (defaults to the focused one)."""
        if not self._in_selection():
            return CommandResult.rejected("Rests are only taken during card selection")
        character_id = character_id or self.state.selected_character
        char = self.state.get_character(character_id) if character_id else None
        if char is None:
            return CommandResult.rejected("No character selected")
        if not rest_system.can_rest(char, self.cards_to_play):
            return CommandResult.rejected(f"{char.short_name} still has cards to play")
        if not char.discard:
            self.store.emit(EventType.MESSAGE, f"{char.short_name} has no cards to recover!", unit_id=char.id)
            return CommandResult.rejected("Nothing to recover")

        result = rest_system.short_rest(self.store, char.id, self.rng, self.cards_to_play)
        return CommandResult.ok(**result.to_dict())

    def long_rest(self, character_id: Optional[str] = None) -> CommandResult:
        """Long rest for a character (defaults to the focused one). It sits out the round."""
        if not self._in_selection():
            return CommandResult.rejected("Rests are only taken during card selection")
        character_id = character_id or self.state.selected_character
        char = self.state.get_character(character_id) if character_id else None
        if char is None:
            return CommandResult.rejected("No character selected")
        if not rest_system.can_rest(char, self.cards_to_play):
            return CommandResult.rejected(f"{char.short_name} still has cards to play")

        result = rest_system.long_rest(
            self.store, char.id, self.rng, self.settings.LONG_REST_HEAL, self.cards_to_play
        )

        def _drop_selection(state: BattleState) -> None:
            state.turn.selections.pop(char.id, None)

        self.store.mutate(_drop_selection)
        return CommandResult.ok(**result.to_dict())

    # =========================================================================
    # Execution phase
    # =========================================================================

    def _current_entry(self) -> Optional[TurnOrderEntry]:
        turn = self.state.turn
        if turn.round_phase != RoundPhase.EXECUTION:
            return None
        return turn.order.get_current()

    def _run(self) -> None:
        """Resolve turns until player input is needed or the round ends."""
        while True:
            state = self.state
            if state.phase != Phase.PLAYING or state.turn.round_phase != RoundPhase.EXECUTION:
                return

            # Cleared rooms end the round at once, except the final room where
            # the party still has to walk onto the artifact.
            if not state.enemies and not state.is_final_room:
                self._end_round()
                return

            entry = state.turn.order.get_current()
            if entry is None:
                self._end_round()
                return

            unit = state.get_unit(entry.unit_id)
            if unit is None or unit.kind != entry.kind or not unit.is_alive:
                self._advance_turn()
                continue

            if entry.is_character:
                if state.turn.step is None:
                    self._begin_character_turn(entry)
                return

            self._execute_enemy_turn(entry)
            self._advance_turn()

    def _advance_turn(self) -> None:
        def _advance(state: BattleState) -> None:
            state.turn.order.advance()
            state.turn.step = None
            state.turn.action_index = 0
            state.turn.pending = None
            state.highlighted_hexes = []

        self.store.mutate(_advance)

    def _begin_character_turn(self, entry: TurnOrderEntry) -> None:
        def _begin(state: BattleState) -> None:
            state.turn.step = TurnStep.AWAITING_LEAD_CHOICE

        self.store.mutate(_begin)
        self.store.emit(
            EventType.TURN_STARTED,
            f"--- {entry.name}'s turn (Initiative: {entry.initiative}) ---",
            unit_id=entry.unit_id,
            kind=UnitKind.CHARACTER.value,
            initiative=entry.initiative,
        )

    def choose_lead_half(self, half: CardHalf) -> CommandResult:
        """
        Pick which half of the lead card resolves first.

        The second action is the opposite half of the other card.
        """
        entry = self._current_entry()
        if (
            self.state.phase != Phase.PLAYING
            or entry is None
            or not entry.is_character
            or self.state.turn.step != TurnStep.AWAITING_LEAD_CHOICE
        ):
            return CommandResult.rejected("No lead choice is pending")

        half = CardHalf(half)

        def _choose(state: BattleState) -> None:
            state.turn.order.get_current().lead_half = half

        self.store.mutate(_choose)
        self._execute_character_action(0)
        return CommandResult.ok(lead_half=half.value)

    def _execute_character_action(self, action_index: int) -> None:
        entry = self._current_entry()
        action = entry.action_pair()[action_index]
        char = self.state.get_character(entry.unit_id)

        def _step(state: BattleState) -> None:
            state.turn.action_index = action_index
            state.turn.step = TurnStep.AWAITING_ACTION_1 if action_index == 0 else TurnStep.AWAITING_ACTION_2

        self.store.mutate(_step)

        outcome = combat.process_action(self.store, action, entry.unit_id)
        if outcome.complete:
            self.pacer(self.settings.ACTION_DELAY_MS)
            self._complete_action()
            return

        if not outcome.has_choices:
            self.store.emit(
                EventType.ACTION_SKIPPED,
                self._no_choice_message(action, char.short_name),
                unit_id=entry.unit_id,
                automatic=True,
            )
            self.pacer(self.settings.ACTION_DELAY_MS)
            self._complete_action()
            return

        pending = PendingAction(
            action=action,
            action_index=action_index,
            unit_id=entry.unit_id,
            hexes=list(outcome.hexes),
            target_ids=list(outcome.target_ids),
        )

        def _await(state: BattleState) -> None:
            state.turn.pending = pending
            state.turn.step = TurnStep.AWAITING_TARGET
            state.highlighted_hexes = list(outcome.hexes)

        self.store.mutate(_await)
        self.store.emit(EventType.MESSAGE, self._prompt_message(action, char.short_name), unit_id=entry.unit_id)

    def _complete_action(self) -> None:
        """Move on to the second action, or finish the turn."""
        action_index = self.state.turn.action_index

        def _clear(state: BattleState) -> None:
            state.turn.pending = None
            state.highlighted_hexes = []

        self.store.mutate(_clear)

        if action_index == 0:
            self._execute_character_action(1)
            return

        def _finish(state: BattleState) -> None:
            state.turn.step = TurnStep.TURN_COMPLETE

        self.store.mutate(_finish)
        self.pacer(self.settings.ACTION_DELAY_MS)
        self._advance_turn()
        self._run()

    def _prompt_message(self, action: Action, name: str) -> str:
        if isinstance(action, MoveAction):
            return f"Select destination for {name} (Move {action.value})"
        if isinstance(action, AttackAction):
            aoe = ", AOE" if action.area is not None else ""
            return f"Select target for {name}'s attack ({action.value} damage, range {action.range}{aoe})"
        if isinstance(action, HealAction):
            return f"Select heal target for {name} (Heal {action.value})"
        if isinstance(action, ShieldAction):
            return f"Select shield target for {name} (Shield {action.value})"
        if isinstance(action, PushAction):
            return f"Select target to push {action.value} hex(es)"
        raise TypeError(f"Action {type(action).__name__} never waits for a target")

    def _no_choice_message(self, action: Action, name: str) -> str:
        if isinstance(action, MoveAction):
            return f"{name} cannot move (blocked)"
        if isinstance(action, AttackAction):
            return f"{name} has no targets in range"
        if isinstance(action, HealAction):
            return f"{name} has no heal targets"
        if isinstance(action, ShieldAction):
            return f"{name} has no shield targets"
        if isinstance(action, PushAction):
            return f"{name} has no push targets in range"
        raise TypeError(f"Action {type(action).__name__} never waits for a target")

    # =========================================================================
    # Player input on a pending action
    # =========================================================================

    def click_hex(self, hex_: Hex) -> CommandResult:
        """Choose a move destination for the pending move action."""
        pending = self.state.turn.pending
        if self.state.phase != Phase.PLAYING or pending is None:
            return CommandResult.rejected("No action is waiting for a hex")
        if not isinstance(pending.action, MoveAction):
            return CommandResult.rejected("The pending action does not take a hex")
        if hex_ not in pending.hexes:
            return CommandResult.rejected("Hex is not a legal destination")

        combat.execute_move(self.store, pending.unit_id, hex_)

        def _clear(state: BattleState) -> None:
            state.highlighted_hexes = []

        self.store.mutate(_clear)

        if self._check_artifact_pickup(hex_):
            return CommandResult.ok(victory=True)

        self._complete_action()
        return CommandResult.ok()

    def click_unit(self, unit_id: str) -> CommandResult:
        """Choose the target unit for the pending attack, push, heal or shield."""
        pending = self.state.turn.pending
        if self.state.phase != Phase.PLAYING or pending is None:
            return CommandResult.rejected("No action is waiting for a target")
        if unit_id not in pending.target_ids:
            return CommandResult.rejected("Unit is not a legal target")
        if self.state.get_unit(unit_id) is None:
            return CommandResult.rejected("Unit no longer exists")

        action = pending.action
        actor_id = pending.unit_id

        if isinstance(action, AttackAction):
            damage = self._attack_damage(actor_id, action.value)
            if action.area is not None:
                combat.execute_aoe_attack(self.store, actor_id, unit_id, damage, action.area)
            else:
                combat.execute_attack(self.store, actor_id, unit_id, damage, stun=action.stun)
            if action.push > 0:
                target = self.state.get_enemy(unit_id)
                if target is not None and target.is_alive:
                    combat.execute_push(self.store, actor_id, unit_id, action.push)
        elif isinstance(action, PushAction):
            combat.execute_push(self.store, actor_id, unit_id, action.value)
        elif isinstance(action, HealAction):
            combat.execute_heal(self.store, actor_id, unit_id, action.value)
        elif isinstance(action, ShieldAction):
            combat.execute_shield(self.store, actor_id, unit_id, action.value)
        else:
            return CommandResult.rejected("The pending action does not take a unit")

        self._complete_action()
        return CommandResult.ok()

    def skip_pending_action(self) -> CommandResult:
        """Decline the pending action."""
        if self.state.phase != Phase.PLAYING or self.state.turn.pending is None:
            return CommandResult.rejected("No action to skip")

        self.store.emit(EventType.ACTION_SKIPPED, "Action skipped", unit_id=self.state.turn.pending.unit_id)
        self._complete_action()
        return CommandResult.ok()

    # =========================================================================
    # Damage
    # =========================================================================

    def _attack_damage(self, attacker_id: str, base_damage: int) -> int:
        """Base damage adjusted by a draw from the attacker's modifier deck."""
        if not self.use_modifier_deck:
            return base_damage

        if self.state.unit_kind(attacker_id) == UnitKind.CHARACTER:
            deck = self.character_decks.get(attacker_id)
        else:
            deck = self.monster_deck
        if deck is None:
            return base_damage

        modifier = draw(deck, self.rng)
        damage = apply_modifier(modifier, base_damage)
        self.store.emit(
            EventType.MODIFIER_DRAWN,
            f"Modifier {modifier.label}: {base_damage} -> {damage}",
            unit_id=attacker_id,
            modifier=modifier.to_dict(),
            base_damage=base_damage,
            damage=damage,
        )
        return damage

    # =========================================================================
    # Enemy turns
    # =========================================================================

    def _execute_enemy_turn(self, entry: TurnOrderEntry) -> None:
        enemy = self.state.get_enemy(entry.unit_id)
        self.store.emit(
            EventType.TURN_STARTED,
            f"--- {enemy.name}'s turn ---",
            unit_id=enemy.id,
            kind=UnitKind.ENEMY.value,
            initiative=entry.initiative,
        )

        decision = decide_action(enemy, self.state)
        logger.debug(f"[Mission] {enemy.id} decides {decision.decision_type.value}: {decision.reasoning}")

        if decision.decision_type == DecisionType.ATTACK:
            self._enemy_attack(enemy.id, decision.target_id)
            self.pacer(self.settings.ENEMY_TURN_DELAY_MS)
        elif decision.decision_type == DecisionType.MOVE:
            combat.execute_move(self.store, enemy.id, decision.position)
            self.pacer(self.settings.ENEMY_TURN_DELAY_MS)
        elif decision.decision_type == DecisionType.MOVE_AND_ATTACK:
            combat.execute_move(self.store, enemy.id, decision.position)
            self.pacer(self.settings.ACTION_DELAY_MS)
            moved = self.state.get_enemy(enemy.id)
            if moved is not None and decision.target_id:
                self._enemy_attack(moved.id, decision.target_id)
            self.pacer(self.settings.ENEMY_TURN_DELAY_MS)
        elif enemy.stunned:
            self.store.emit(EventType.ENEMY_STUNNED_SKIP, f"{enemy.name} is stunned and cannot act!", unit_id=enemy.id)

            def _unstun(state: BattleState) -> None:
                state.get_enemy(enemy.id).stunned = False

            self.store.mutate(_unstun)
            self.pacer(self.settings.ACTION_DELAY_MS)
        else:
            self.store.emit(EventType.ENEMY_WAIT, f"{enemy.name} waits", unit_id=enemy.id)
            self.pacer(self.settings.ACTION_DELAY_MS)

    def _enemy_attack(self, enemy_id: str, target_id: str) -> None:
        target = self.state.get_character(target_id)
        enemy = self.state.get_enemy(enemy_id)
        if target is None or not target.is_alive or enemy is None:
            return

        damage = self._attack_damage(enemy_id, enemy.attack)
        combat.execute_attack(self.store, enemy_id, target_id, damage)
        if self.state.phase == Phase.DEFEAT:
            self.store.emit(EventType.DEFEAT, "Mission failed!", unit_id=target_id)
            logger.info(f"[Mission] {self.id} lost: {target_id} fell in room {self.state.room_number}")

    # =========================================================================
    # Round end
    # =========================================================================

    def _end_round(self) -> None:
        self.store.emit(EventType.ROUND_ENDED, "=== Round Complete ===")

        def _cleanup(state: BattleState) -> None:
            for char in state.characters:
                selection = state.turn.selections.get(char.id)
                if selection is not None:
                    used = set(selection.card_ids)
                    char.discard = char.discard + [c for c in char.hand if c.id in used]
                    char.hand = [c for c in char.hand if c.id not in used]
                char.resting = False

        self.store.mutate(_cleanup)
        combat.clear_shields(self.store)

        state = self.state
        if not state.enemies:
            if not state.is_final_room:
                cleared = state.room_number
                self.store.emit(EventType.ROOM_CLEARED, f"Room {cleared} cleared! Advancing...", room=cleared)
                self._advance_room()
                self._clear_card_selections()
                self.store.emit(
                    EventType.ROOM_ENTERED,
                    f"Entering: {self.state.room.name}",
                    room=self.state.room.id,
                )
                logger.info(f"[Mission] {self.id} advanced to room {self.state.room_number}")
                return

            artifact = state.room.artifact
            on_artifact = any(c.is_alive and c.position == artifact for c in state.characters)
            if artifact is not None and on_artifact:
                self._victory()
                return
            self.store.emit(EventType.ROOM_CLEARED, "Room cleared! Collect the artifact to complete the mission!")
            self._clear_card_selections()
            return

        can_continue = any(not c.is_exhausted(self.cards_to_play) for c in state.characters)
        if not can_continue:
            def _defeat(state: BattleState) -> None:
                state.phase = Phase.DEFEAT

            self.store.mutate(_defeat)
            self.store.emit(EventType.DEFEAT, "No cards remaining! Mission failed!")
            logger.info(f"[Mission] {self.id} lost: party out of cards")
            return

        self._clear_card_selections()
        self.store.emit(EventType.MESSAGE, "Select cards for next round.")

    def _clear_card_selections(self) -> None:
        def _clear(state: BattleState) -> None:
            state.turn = TurnState()
            state.round_number += 1
            state.highlighted_hexes = []

        self.store.mutate(_clear)

    def _advance_room(self) -> None:
        next_index = self.state.room_index + 1
        room = self.state.rooms[next_index]
        enemies = self._spawn_enemies(room)

        def _advance(state: BattleState) -> None:
            state.room_index = next_index
            for index, char in enumerate(state.characters):
                char.position = room.start_positions[index]
            state.enemies = enemies

        self.store.mutate(_advance)

    def _check_artifact_pickup(self, hex_: Hex) -> bool:
        """A move onto the artifact in the cleared final room wins the mission."""
        state = self.state
        if not state.is_final_room or state.enemies:
            return False
        room = state.room
        if room.artifact is None or room.artifact != hex_:
            return False
        self._victory()
        return True

    def _victory(self) -> None:
        code = generate_victory_code(self.rng)

        def _win(state: BattleState) -> None:
            state.phase = Phase.VICTORY
            state.victory_code = code
            state.turn.pending = None
            state.highlighted_hexes = []

        self.store.mutate(_win)
        self.store.emit(EventType.VICTORY, "Artifact retrieved! Mission successful!", victory_code=code)
        logger.info(f"[Mission] {self.id} won in round {self.state.round_number}")

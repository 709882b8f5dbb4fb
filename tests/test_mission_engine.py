"""Tests for the mission engine: rounds, turns, rooms, victory and defeat."""
import logging
import random
import re

import pytest

from hextactics.core.actions import (
    AttackAction,
    BuffAction,
    CardHalf,
    HealAction,
    MoveAction,
    ShieldAction,
)
from hextactics.core.battle_state import EnemySpawn, Phase, RoundPhase, TurnStep
from hextactics.core.events import EventType
from hextactics.core.hex_math import Hex, distance
from hextactics.core.mission_engine import MissionEngine, generate_victory_code
from hextactics.core.modifier_deck import create_character_deck, new_deck


def events_of(engine, event_type):
    return [e for e in engine.store.log if e.event_type == event_type]


def select(engine, character_id, *card_ids):
    for card_id in card_ids:
        result = engine.select_card(character_id, card_id)
        assert result.accepted, result.reason


@pytest.fixture
def arena(engine, make_store):
    """Load a hand-built PLAYING state into the engine."""
    def _load(characters, enemies=None, rooms=None):
        engine.store.reset(make_store(characters, enemies or [], rooms).state)
        return engine
    return _load


@pytest.fixture
def strike_cards(make_card):
    """Lead card attacks on top; the other card shields on the bottom."""
    return [
        make_card("strike", 10, top=AttackAction(3), bottom=MoveAction(1)),
        make_card("step", 20, top=MoveAction(1), bottom=ShieldAction(1, self_only=True)),
        make_card("run", 30, top=MoveAction(3), bottom=MoveAction(3)),
        make_card("jog", 40, top=MoveAction(2), bottom=MoveAction(2)),
    ]


class TestVictoryCode:
    """Tests for the cosmetic victory code."""

    def test_format(self):
        code = generate_victory_code(random.Random(3))
        assert re.fullmatch(r"[A-Z0-9](-[A-Z0-9]){6}", code)


class TestStartMission:
    """Tests for mission setup from the bundled content."""

    def test_party_and_first_room(self, started_engine, loader):
        state = started_engine.state
        room = loader.get_rooms()[0]

        assert state.phase == Phase.PLAYING
        assert state.round_number == 1
        assert state.room_number == 1
        assert [c.id for c in state.characters] == ["jack", "sam", "daniel", "tealc"]
        assert [c.position for c in state.characters] == room.start_positions
        assert all(len(c.hand) == 10 for c in state.characters)
        assert state.selected_character == "jack"

    def test_enemies_spawned_from_archetypes(self, started_engine):
        enemies = started_engine.state.enemies
        assert [e.id for e in enemies] == ["enemy_0", "enemy_1", "enemy_2", "enemy_3"]
        assert all(e.type == "jaffa_warrior" and e.health == 6 for e in enemies)
        assert enemies[0].position == Hex(5, 3)

    def test_start_event(self, started_engine):
        first = started_engine.store.log[0]
        assert first.event_type == EventType.MISSION_STARTED
        assert first.message == "Mission started: Stargate Arrival"

    def test_modifier_decks_created(self, started_engine):
        assert set(started_engine.character_decks) == {"jack", "sam", "daniel", "tealc"}
        assert started_engine.monster_deck is not None

    def test_cannot_start_twice(self, started_engine):
        assert not started_engine.start_mission().accepted

    def test_commands_rejected_before_start(self, engine):
        assert not engine.select_card("jack", "jack_p90_burst").accepted
        assert not engine.confirm_selection().accepted


class TestCardSelection:
    """Tests for the selection phase."""

    def test_select_and_toggle(self, started_engine):
        select(started_engine, "jack", "jack_p90_burst", "jack_flashbang")
        selection = started_engine.state.turn.selections["jack"]
        assert selection.card_ids == ["jack_p90_burst", "jack_flashbang"]

        started_engine.select_card("jack", "jack_p90_burst")
        assert started_engine.state.turn.selections["jack"].card_ids == ["jack_flashbang"]

    def test_card_not_in_hand(self, started_engine):
        result = started_engine.select_card("jack", "sam_zat")
        assert not result.accepted
        assert "jack" not in started_engine.state.turn.selections

    def test_unknown_character(self, started_engine):
        assert not started_engine.select_card("vala", "jack_p90_burst").accepted

    def test_confirm_requires_everyone(self, started_engine):
        select(started_engine, "jack", "jack_p90_burst", "jack_flashbang")
        result = started_engine.confirm_selection()

        assert not result.accepted
        assert started_engine.state.turn.round_phase == RoundPhase.SELECTION
        assert started_engine.store.log[-1].message == "Select 2 cards for each character first!"

    def test_select_character(self, started_engine):
        assert started_engine.select_character("tealc").accepted
        assert started_engine.state.selected_character == "tealc"
        assert not started_engine.select_character("vala").accepted


class TestRests:
    """Tests for rests through the engine."""

    def test_must_rest_before_ready(self, arena, make_character, make_card, make_enemy):
        """An empty hand with a discard blocks readiness until a short rest."""
        discard = [make_card("a"), make_card("b"), make_card("c")]
        engine = arena([make_character("jack", hand=[], discard=discard)], [make_enemy(position=Hex(6, 6))])

        assert not engine.select_card("jack", "a").accepted
        assert not engine.state.all_cards_selected()
        assert not engine.confirm_selection().accepted

        assert engine.short_rest("jack").accepted
        jack = engine.state.get_character("jack")
        assert len(jack.hand) == 2
        assert jack.discard == []
        assert len(jack.burned) == 1
        assert jack.burned[0].id not in {c.id for c in jack.hand}

    def test_short_rest_needs_discard(self, arena, make_character):
        engine = arena([make_character("jack", hand=[], discard=[])])
        assert not engine.short_rest("jack").accepted
        assert engine.store.log[-1].message == "Jack has no cards to recover!"

    def test_rest_rejected_with_playable_hand(self, arena, make_character):
        engine = arena([make_character("jack")])
        assert not engine.short_rest("jack").accepted
        assert not engine.long_rest("jack").accepted

    def test_long_rest_defaults_to_selected(self, arena, make_character, make_card):
        engine = arena([make_character("jack", health=6, hand=[make_card("x")], discard=[make_card("a")])])
        engine.select_character("jack")

        assert engine.long_rest().accepted
        jack = engine.state.get_character("jack")
        assert jack.resting
        assert jack.health == 8
        assert not engine.select_card("jack", "x").accepted
        assert engine.state.all_cards_selected()


class TestCharacterTurn:
    """Tests for the two-action character turn."""

    @pytest.fixture
    def duel(self, arena, make_character, make_enemy, strike_cards):
        """Jack two hexes from a warrior that acts after him."""
        engine = arena(
            [make_character("jack", Hex(0, 0), hand=list(strike_cards))],
            [make_enemy(position=Hex(3, 0), health=6, initiative=90)],
        )
        select(engine, "jack", "run", "strike")
        assert engine.confirm_selection().accepted
        return engine

    def test_awaits_lead_choice(self, duel, pacer):
        state = duel.state
        assert state.turn.round_phase == RoundPhase.EXECUTION
        assert state.turn.step == TurnStep.AWAITING_LEAD_CHOICE
        assert pacer.delays[0] == duel.settings.ENEMY_TURN_DELAY_MS
        assert events_of(duel, EventType.TURN_STARTED)[-1].message == "--- Jack's turn (Initiative: 30) ---"

    def test_lead_choices(self, duel):
        choices = duel.allowed_lead_choices()
        assert [c["lead_half"] for c in choices] == ["top", "bottom"]
        assert choices[0]["first"]["type"] == "move"
        assert choices[0]["second"]["type"] == "move"
        assert choices[1]["second"]["type"] == "attack"
        assert duel.get_state()["lead_choices"] == choices

    def test_move_then_attack(self, duel):
        """Move adjacent with the lead's bottom, then attack with the other top."""
        assert duel.choose_lead_half(CardHalf.BOTTOM).accepted
        assert duel.state.turn.step == TurnStep.AWAITING_TARGET
        assert Hex(2, 0) in duel.state.highlighted_hexes

        assert not duel.click_hex(Hex(6, 6)).accepted
        assert duel.click_hex(Hex(2, 0)).accepted
        assert duel.state.turn.pending.target_ids == ["enemy_0"]

        assert not duel.click_unit("jack").accepted
        assert duel.click_unit("enemy_0").accepted

        state = duel.state
        assert state.get_character("jack").position == Hex(2, 0)
        assert state.get_enemy("enemy_0").health == 3
        # the warrior hits back on its turn, then the round ends
        assert state.get_character("jack").health == 7
        assert state.turn.round_phase == RoundPhase.SELECTION
        assert state.round_number == 2
        assert {c.id for c in state.get_character("jack").discard} == {"run", "strike"}
        assert [c.id for c in state.get_character("jack").hand] == ["step", "jog"]

    def test_skip_pending_action(self, duel):
        duel.choose_lead_half(CardHalf.BOTTOM)
        assert duel.skip_pending_action().accepted
        assert events_of(duel, EventType.ACTION_SKIPPED)[0].message == "Action skipped"
        # attack from the start hex has no target, so it skips itself
        assert events_of(duel, EventType.ACTION_SKIPPED)[1].message == "Jack has no targets in range"

    def test_lead_choice_rejected_when_not_waiting(self, duel):
        duel.choose_lead_half(CardHalf.TOP)
        assert not duel.choose_lead_half(CardHalf.TOP).accepted

    def test_click_without_pending(self, duel):
        assert not duel.click_hex(Hex(1, 0)).accepted
        assert not duel.click_unit("enemy_0").accepted
        assert not duel.skip_pending_action().accepted


class TestImmediateActions:
    """Tests for actions that resolve without a target."""

    def test_self_heal_completes(self, arena, make_character, make_enemy, make_card):
        """A range-0 heal resolves at once, even at full health."""
        hand = [
            make_card("kel", 10, top=HealAction(3, range=0), bottom=ShieldAction(2, self_only=True)),
            make_card("dash", 20, top=MoveAction(2), bottom=AttackAction(2)),
            make_card("spare_a"),
            make_card("spare_b"),
        ]
        engine = arena(
            [make_character("jack", Hex(0, 0), hand=hand)],
            [make_enemy(position=Hex(6, 6), initiative=90)],
        )
        select(engine, "jack", "kel", "dash")
        engine.confirm_selection()
        engine.choose_lead_half(CardHalf.TOP)

        state = engine.state
        assert state.get_character("jack").health == 10
        assert events_of(engine, EventType.UNIT_HEALED)
        assert events_of(engine, EventType.ACTION_SKIPPED)[0].message == "Jack has no targets in range"
        assert distance(state.get_enemy("enemy_0").position, Hex(6, 6)) == 2
        assert state.turn.round_phase == RoundPhase.SELECTION

    def test_stunned_enemy_skips_turn(self, arena, make_character, make_enemy, make_card):
        hand = [
            make_card("flash", 10, top=AttackAction(1, stun=True), bottom=MoveAction(2)),
            make_card("quip", 20, top=MoveAction(1), bottom=BuffAction(text="a quip")),
        ]
        engine = arena(
            [make_character("jack", Hex(0, 0), hand=hand)],
            [make_enemy(position=Hex(1, 0), health=6, initiative=90)],
        )
        select(engine, "jack", "flash", "quip")
        engine.confirm_selection()
        engine.choose_lead_half(CardHalf.TOP)
        engine.click_unit("enemy_0")

        enemy = engine.state.get_enemy("enemy_0")
        assert enemy.health == 5
        assert enemy.stunned is False
        assert events_of(engine, EventType.ENEMY_STUNNED_SKIP)[0].message == "Jaffa Warrior is stunned and cannot act!"
        assert engine.state.get_character("jack").health == 10


class TestRoundFlow:
    """Tests for turn skipping and round-end cleanup."""

    def test_slain_enemy_loses_its_turn(self, arena, make_character, make_enemy, strike_cards):
        """An enemy killed before its initiative comes up never acts."""
        engine = arena(
            [make_character("jack", Hex(0, 0), hand=list(strike_cards))],
            [
                make_enemy("enemy_0", Hex(1, 0), health=2, initiative=60),
                make_enemy("enemy_1", Hex(6, 6), initiative=90),
            ],
        )
        select(engine, "jack", "strike", "step")
        engine.confirm_selection()
        assert [e.unit_id for e in engine.state.turn.order.entries] == ["jack", "enemy_0", "enemy_1"]

        engine.choose_lead_half(CardHalf.TOP)
        engine.click_unit("enemy_0")

        started = [e.unit_id for e in events_of(engine, EventType.TURN_STARTED)]
        assert started == ["jack", "enemy_1"]
        assert engine.state.get_enemy("enemy_1").position != Hex(6, 6)
        assert engine.state.turn.round_phase == RoundPhase.SELECTION
        assert engine.state.round_number == 2

    def test_long_rest_sits_out_the_round(self, arena, make_character, make_enemy, make_card, strike_cards):
        engine = arena(
            [
                make_character("jack", Hex(0, 0), hand=[make_card("x")], discard=[make_card("a")]),
                make_character("sam", Hex(1, 0), hand=list(strike_cards)),
            ],
            [make_enemy(position=Hex(6, 6), initiative=90)],
        )
        assert engine.long_rest("jack").accepted
        select(engine, "sam", "strike", "step")
        assert engine.confirm_selection().accepted

        assert [e.unit_id for e in engine.state.turn.order.entries] == ["sam", "enemy_0"]

        engine.choose_lead_half(CardHalf.TOP)
        assert engine.state.turn.round_phase == RoundPhase.SELECTION
        assert engine.state.get_character("jack").resting is False
        assert {c.id for c in engine.state.get_character("jack").hand} == {"x", "a"}

    def test_shields_cleared_at_round_end(self, arena, make_character, make_enemy, strike_cards):
        engine = arena(
            [make_character("jack", Hex(0, 0), hand=list(strike_cards))],
            [make_enemy(position=Hex(6, 6), initiative=90)],
        )
        shields = []
        engine.subscribe(lambda snapshot: shields.append(snapshot["characters"][0]["shield"]))

        select(engine, "jack", "strike", "step")
        engine.confirm_selection()
        engine.choose_lead_half(CardHalf.TOP)

        assert max(shields) == 1
        assert engine.state.get_character("jack").shield == 0
        assert engine.state.round_number == 2


class TestRoomProgression:
    """Tests for clearing rooms."""

    def test_clearing_room_advances(self, arena, make_character, make_enemy, make_room, strike_cards):
        """Killing the last enemy mid-round ends the round and loads the next room."""
        second = make_room(2, width=8, height=6)
        second.enemies = [EnemySpawn("jaffa_warrior", Hex(5, 5))]
        engine = arena(
            [make_character("jack", Hex(2, 2), hand=list(strike_cards))],
            [make_enemy(position=Hex(3, 2), health=2, initiative=90)],
            [make_room(1), second],
        )
        select(engine, "jack", "strike", "step")
        engine.confirm_selection()
        engine.choose_lead_half(CardHalf.TOP)
        engine.click_unit("enemy_0")

        state = engine.state
        assert state.room_number == 2
        assert state.round_number == 2
        assert state.turn.round_phase == RoundPhase.SELECTION
        assert state.get_character("jack").position == Hex(0, 0)
        assert state.get_character("jack").shield == 0
        assert [(e.id, e.type, e.position, e.health) for e in state.enemies] == [
            ("enemy_0", "jaffa_warrior", Hex(5, 5), 6)
        ]
        assert events_of(engine, EventType.ROOM_CLEARED)[0].message == "Room 1 cleared! Advancing..."
        assert events_of(engine, EventType.ROOM_ENTERED)[0].message == "Entering: Room 2"

    def test_first_room_to_second_with_content(self, started_engine, loader):
        """All four warriors gone: the next round end loads room 2 from the tables."""
        engine = started_engine

        def _clear(state):
            state.enemies = []
            for char in state.characters:
                char.position = Hex(char.position.q + 2, char.position.r + 2)

        engine.store.mutate(_clear)
        for char in engine.state.characters:
            select(engine, char.id, char.hand[0].id, char.hand[1].id)
        assert engine.confirm_selection().accepted

        room_two = loader.get_rooms()[1]
        state = engine.state
        assert state.room_number == 2
        assert [c.position for c in state.characters] == room_two.start_positions
        assert [(e.type, e.position) for e in state.enemies] == [
            (s.archetype, s.position) for s in room_two.enemies
        ]
        assert [e.id for e in state.enemies] == [f"enemy_{n}" for n in range(5)]
        assert all(len(c.hand) == 8 for c in state.characters)


class TestVictory:
    """Tests for the artifact condition in the final room."""

    def test_cleared_room_needs_artifact(self, arena, make_character, make_enemy, make_room, strike_cards):
        engine = arena(
            [make_character("jack", Hex(0, 0), hand=list(strike_cards))],
            [make_enemy(position=Hex(1, 0), health=2, initiative=90)],
            [make_room(3, artifact=Hex(3, 0))],
        )
        select(engine, "jack", "strike", "step")
        engine.confirm_selection()
        engine.choose_lead_half(CardHalf.TOP)
        engine.click_unit("enemy_0")

        assert engine.state.phase == Phase.PLAYING
        assert engine.state.enemies == []
        assert engine.store.log[-1].message == "Room cleared! Collect the artifact to complete the mission!"

        select(engine, "jack", "run", "jog")
        engine.confirm_selection()
        engine.choose_lead_half(CardHalf.TOP)
        engine.click_hex(Hex(2, 0))
        assert engine.state.phase == Phase.PLAYING

        result = engine.click_hex(Hex(3, 0))
        assert result.data == {"victory": True}
        assert engine.state.phase == Phase.VICTORY
        assert re.fullmatch(r"[A-Z0-9](-[A-Z0-9]){6}", engine.state.victory_code)
        assert events_of(engine, EventType.VICTORY)[0].message == "Artifact retrieved! Mission successful!"

    def test_artifact_ignored_while_enemies_remain(self, arena, make_character, make_enemy, make_room, make_card):
        hand = [
            make_card("dash", 10, top=MoveAction(1), bottom=MoveAction(1)),
            make_card("rest", 20, top=MoveAction(1), bottom=BuffAction(text="a breather")),
        ]
        engine = arena(
            [make_character("jack", Hex(0, 0), hand=hand)],
            [make_enemy(position=Hex(6, 6), initiative=90)],
            [make_room(3, artifact=Hex(1, 0))],
        )
        select(engine, "jack", "dash", "rest")
        engine.confirm_selection()
        engine.choose_lead_half(CardHalf.TOP)
        engine.click_hex(Hex(1, 0))

        assert engine.state.phase == Phase.PLAYING
        assert engine.state.get_character("jack").position == Hex(1, 0)

    def test_standing_on_artifact_at_round_end(self, arena, make_character, make_enemy, make_room, make_card):
        """Reach the artifact first, then kill the last enemy: the round end wins."""
        hand = [
            make_card("dash", 10, top=MoveAction(1), bottom=MoveAction(1)),
            make_card("strike", 20, top=MoveAction(1), bottom=AttackAction(3)),
        ]
        engine = arena(
            [make_character("jack", Hex(0, 0), hand=hand)],
            [make_enemy(position=Hex(2, 0), health=2, initiative=90)],
            [make_room(3, artifact=Hex(1, 0))],
        )
        select(engine, "jack", "dash", "strike")
        engine.confirm_selection()
        engine.choose_lead_half(CardHalf.TOP)
        engine.click_hex(Hex(1, 0))
        assert engine.state.phase == Phase.PLAYING

        engine.click_unit("enemy_0")
        assert engine.state.phase == Phase.VICTORY


class TestDefeat:
    """Tests for mission failure."""

    def test_character_falls(self, arena, make_character, make_enemy, strike_cards):
        engine = arena(
            [make_character("jack", Hex(0, 0), health=3, hand=list(strike_cards))],
            [make_enemy(position=Hex(1, 0), attack=3, initiative=5)],
        )
        select(engine, "jack", "strike", "step")
        engine.confirm_selection()

        assert engine.state.phase == Phase.DEFEAT
        assert events_of(engine, EventType.DEFEAT)
        assert not engine.select_card("jack", "run").accepted
        assert not engine.choose_lead_half(CardHalf.TOP).accepted

    def test_out_of_cards(self, arena, make_character, make_enemy):
        engine = arena(
            [make_character("jack", hand=[], discard=[])],
            [make_enemy(position=Hex(6, 6))],
        )
        assert engine.confirm_selection().accepted
        assert engine.state.phase == Phase.DEFEAT
        assert engine.store.log[-1].message == "No cards remaining! Mission failed!"

    def test_restart_after_defeat(self, arena, make_character, make_enemy):
        engine = arena([make_character("jack", hand=[], discard=[])], [make_enemy(position=Hex(6, 6))])
        engine.confirm_selection()

        assert engine.restart_mission().accepted
        state = engine.state
        assert state.phase == Phase.PLAYING
        assert state.room_number == 1
        assert len(state.characters) == 4
        assert [e.event_type for e in engine.store.log] == [EventType.MISSION_STARTED]


class TestModifierDeck:
    """Tests for modifier draws on attacks."""

    def test_draw_adjusts_damage(self, loader, pacer, make_store, make_character, make_enemy, strike_cards):
        engine = MissionEngine(loader=loader, use_modifier_deck=True, rng=random.Random(5), pacer=pacer)
        engine.store.reset(make_store(
            [make_character("jack", Hex(0, 0), hand=list(strike_cards))],
            [make_enemy(position=Hex(1, 0), health=20, initiative=90)],
        ).state)
        engine.character_decks["jack"] = new_deck(create_character_deck("jack"), "jack", random.Random(5))

        select(engine, "jack", "strike", "step")
        engine.confirm_selection()
        engine.choose_lead_half(CardHalf.TOP)
        engine.click_unit("enemy_0")

        drawn = events_of(engine, EventType.MODIFIER_DRAWN)[0]
        assert drawn.unit_id == "jack"
        assert drawn.data["base_damage"] == 3
        assert engine.state.get_enemy("enemy_0").health == 20 - drawn.data["damage"]
        assert len(engine.character_decks["jack"].remaining) == 19


class TestObservation:
    """Tests for snapshots and subscriptions."""

    def test_subscribers_see_every_change(self, engine):
        snapshots = []
        engine.subscribe(snapshots.append)
        engine.start_mission()
        assert snapshots
        assert snapshots[-1]["phase"] == "playing"

    def test_event_subscription(self, engine):
        events = []
        unsubscribe = engine.subscribe_events(events.append)
        engine.start_mission()
        unsubscribe()
        engine.select_card("jack", "jack_p90_burst")
        assert [e.event_type for e in events] == [EventType.MISSION_STARTED]

    def test_state_snapshot(self, started_engine):
        data = started_engine.get_state()
        assert data["mission_id"] == started_engine.id
        assert data["total_rooms"] == 3
        assert data["all_cards_selected"] is False
        assert data["lead_choices"] == []
        assert data["log"][0]["type"] == "mission_started"

    def test_lifecycle_logged_under_module_logger(self, engine, caplog):
        with caplog.at_level(logging.INFO, logger="hextactics.core.mission_engine"):
            engine.start_mission()
        records = [r for r in caplog.records if r.name == "hextactics.core.mission_engine"]
        assert any("started with 4 characters" in r.getMessage() for r in records)

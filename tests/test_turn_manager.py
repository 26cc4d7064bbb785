import pytest

from rogue_kernel.constants import StatusType, TurnActionType
from rogue_kernel.entities.components import Actor, DamageDice, Position
from rogue_kernel.entities.factory import create_player
from rogue_kernel.events import EventBus, KernelEventType
from rogue_kernel.systems.status_effects import add_status_effect, create_status_effect
from rogue_kernel.systems.turn_manager import (
    ActionQueue,
    TurnAction,
    TurnClock,
    TurnPhase,
    advance_turn,
    check_turn_advancement,
    effective_movement_threshold,
    record_movement,
    should_advance_turn,
)


def make_player():
    return create_player(Position(1, 1))


def make_enemy():
    return Actor("Slime", "slime", 8, 8, 10, 0, DamageDice(1, 4), Position(3, 3))


@pytest.mark.parametrize("accumulated", [2.0, 2.5, 17.0])
def test_turn_advance_is_atomic_regardless_of_overshoot(accumulated):
    player = make_player()
    clock = TurnClock(accumulated_movement=accumulated)
    hunger = player.hunger
    assert check_turn_advancement(clock, player, 2.0)
    report = advance_turn(clock, player, hunger_rate=1)
    assert clock.turn_count == 1
    assert player.hunger == hunger - 1
    assert clock.accumulated_movement == 0
    assert report.turn == 1
    assert clock.phase is TurnPhase.IDLE


def test_speed_doubles_threshold():
    player = make_player()
    assert effective_movement_threshold(player.status_effects, 2.0) == 2.0
    add_status_effect(player.status_effects, create_status_effect(StatusType.SPEED, 5))
    assert effective_movement_threshold(player.status_effects, 2.0) == 4.0
    assert not check_turn_advancement(TurnClock(accumulated_movement=2.0), player, 2.0)
    assert check_turn_advancement(TurnClock(accumulated_movement=4.0), player, 2.0)


def test_should_advance_turn():
    assert should_advance_turn(2.0, 2.0)
    assert not should_advance_turn(1.99, 2.0)


def test_enemy_pass_runs_last():
    player = make_player()
    add_status_effect(player.status_effects, create_status_effect(StatusType.SIGHT, 3))
    clock = TurnClock(accumulated_movement=3.0)
    seen = {}

    def enemy_pass(turn):
        seen["turn"] = turn
        seen["accumulated"] = clock.accumulated_movement
        seen["hunger"] = player.hunger
        seen["effect"] = player.status_effects[0].turns_remaining
        seen["phase"] = clock.phase
        return "done"

    report = advance_turn(clock, player, hunger_rate=2, enemy_pass=enemy_pass)
    assert seen == {
        "turn": 1,
        "accumulated": 0.0,
        "hunger": player.max_hunger - 2,
        "effect": 2,
        "phase": TurnPhase.ADVANCING,
    }
    assert report.enemy_results == "done"


def test_enemy_effects_tick_and_expire():
    player = make_player()
    enemy = make_enemy()
    add_status_effect(enemy.status_effects, create_status_effect(StatusType.POISON, 1))
    report = advance_turn(TurnClock(), player, enemies=[enemy])
    assert enemy.status_effects == []
    assert report.expired_effects == [("Slime", StatusType.POISON)]


def test_hunger_floors_at_zero_and_reports_starvation():
    player = make_player()
    player.hunger = 1
    clock = TurnClock()
    assert advance_turn(clock, player, hunger_rate=3).starved
    assert player.hunger == 0
    assert advance_turn(clock, player, hunger_rate=3).starved
    assert player.hunger == 0


def test_footstep_event_emitted():
    bus = EventBus()
    heard = []
    bus.subscribe(KernelEventType.FOOTSTEP, heard.append)
    advance_turn(TurnClock(), make_player(), events=bus)
    assert [e.turn for e in heard] == [1]


def test_record_movement_accumulates_until_threshold():
    player = make_player()
    clock = TurnClock()
    assert record_movement(clock, player, 0.9, base_threshold=2.0) is None
    assert record_movement(clock, player, 0.9, base_threshold=2.0) is None
    report = record_movement(clock, player, 0.9, base_threshold=2.0)
    assert report is not None and report.turn == 1
    assert clock.accumulated_movement == 0


def test_negative_movement_rejected():
    with pytest.raises(ValueError):
        TurnClock().accumulate(-1.0)
    with pytest.raises(ValueError):
        TurnClock().accumulate(float("inf"))


def test_reentrant_advance_rejected_and_phase_restored():
    player = make_player()
    clock = TurnClock()

    def enemy_pass(turn):
        advance_turn(clock, player)

    with pytest.raises(RuntimeError):
        advance_turn(clock, player, enemy_pass=enemy_pass)
    assert clock.phase is TurnPhase.IDLE


def test_action_queue_is_fifo():
    queue = ActionQueue()
    assert queue.process_next() is None
    queue.add(TurnAction(TurnActionType.MOVE, {"dx": 1}))
    queue.add(TurnAction(TurnActionType.WAIT))
    assert len(queue) == 2
    assert queue.process_next().type is TurnActionType.MOVE
    assert queue.process_next().type is TurnActionType.WAIT
    assert queue.process_next() is None

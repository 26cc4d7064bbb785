import pytest

from rogue_kernel.constants import StatusType
from rogue_kernel.systems.status_effects import (
    StatusEffect,
    add_status_effect,
    create_status_effect,
    effect_display_strings,
    effect_magnitude,
    get_status_effect,
    has_status_effect,
    update_status_effects,
)


def test_shorter_effect_does_not_override_longer():
    effects = []
    add_status_effect(effects, create_status_effect(StatusType.SPEED, 10))
    changed = add_status_effect(effects, create_status_effect(StatusType.SPEED, 5))
    assert not changed
    assert len(effects) == 1
    assert effects[0].turns_remaining == 10


def test_longer_effect_replaces_shorter():
    effects = []
    add_status_effect(effects, create_status_effect(StatusType.SPEED, 5))
    add_status_effect(effects, create_status_effect(StatusType.SPEED, 10, magnitude=3))
    assert len(effects) == 1
    assert effects[0].turns_remaining == 10
    assert effects[0].magnitude == 3


def test_replacement_compares_against_turns_remaining():
    effects = []
    add_status_effect(effects, create_status_effect(StatusType.POISON, 10))
    for _ in range(3):
        update_status_effects(effects)
    assert add_status_effect(effects, create_status_effect(StatusType.POISON, 8))
    assert get_status_effect(effects, StatusType.POISON).turns_remaining == 8


def test_duration_one_expires_after_one_update():
    effects = [create_status_effect(StatusType.STONE, 1)]
    expired = update_status_effects(effects)
    assert effects == []
    assert [e.type for e in expired] == [StatusType.STONE]


def test_update_decrements_each_effect_once():
    effects = [
        create_status_effect(StatusType.SPEED, 3),
        create_status_effect(StatusType.SIGHT, 2),
    ]
    update_status_effects(effects)
    assert [e.turns_remaining for e in effects] == [2, 1]


def test_distinct_types_coexist():
    effects = []
    add_status_effect(effects, create_status_effect(StatusType.SPEED, 3))
    add_status_effect(effects, create_status_effect("strength", 3, magnitude=2))
    assert has_status_effect(effects, StatusType.SPEED)
    assert effect_magnitude(effects, StatusType.STRENGTH) == 2
    assert effect_magnitude(effects, StatusType.SKILL) == 0


def test_create_validates_input():
    with pytest.raises(ValueError):
        create_status_effect("levitation", 3)
    with pytest.raises(ValueError):
        create_status_effect(StatusType.SPEED, 0)


def test_display_strings():
    effects = [create_status_effect(StatusType.INVISIBILITY, 4)]
    assert effect_display_strings(effects) == ["Invisibility (4)"]


def test_turns_remaining_defaults_to_duration():
    assert StatusEffect(StatusType.SIGHT, 6).turns_remaining == 6
    assert StatusEffect(StatusType.SIGHT, 6, turns_remaining=0).turns_remaining == 0

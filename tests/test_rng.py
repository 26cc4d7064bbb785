import pytest

from rogue_kernel.rng import GameRNG


def test_same_seed_same_stream():
    a = GameRNG(42)
    b = GameRNG(42)
    assert [a.next() for _ in range(50)] == [b.next() for _ in range(50)]


def test_different_seeds_diverge():
    a = GameRNG(1)
    b = GameRNG(2)
    assert [a.next() for _ in range(5)] != [b.next() for _ in range(5)]


def test_next_is_unit_interval():
    rng = GameRNG(7)
    for _ in range(1000):
        value = rng.next()
        assert 0.0 <= value < 1.0


def test_next_int_is_inclusive():
    rng = GameRNG(3)
    seen = {rng.next_int(1, 3) for _ in range(500)}
    assert seen == {1, 2, 3}


def test_next_int_rejects_reversed_bounds():
    with pytest.raises(ValueError):
        GameRNG(1).next_int(5, 1)


def test_seed_is_masked_to_32_bits():
    a = GameRNG(2**32 + 5)
    b = GameRNG(5)
    assert a.next() == b.next()


def test_non_integer_seed_rejected():
    with pytest.raises(TypeError):
        GameRNG("abc")


def test_choice_empty_raises():
    with pytest.raises(ValueError):
        GameRNG(1).choice([])


def test_weighted_choice_skips_zero_weight():
    rng = GameRNG(11)
    picks = {rng.weighted_choice(["never", "always"], [0, 5]) for _ in range(200)}
    assert picks == {"always"}


def test_weighted_choice_validates_input():
    rng = GameRNG(1)
    with pytest.raises(ValueError):
        rng.weighted_choice(["a"], [1, 2])
    with pytest.raises(ValueError):
        rng.weighted_choice([], [])
    with pytest.raises(ValueError):
        rng.weighted_choice(["a", "b"], [0, 0])


def test_roll_dice_totals_rolls_and_modifier():
    result = GameRNG(9).roll_dice(3, 6, 2)
    assert len(result["rolls"]) == 3
    assert all(1 <= r <= 6 for r in result["rolls"])
    assert result["total"] == sum(result["rolls"]) + 2


def test_state_round_trip_replays_stream():
    rng = GameRNG(123)
    rng.next()
    state = rng.get_state()
    expected = [rng.next() for _ in range(10)]
    rng.set_state(state)
    assert [rng.next() for _ in range(10)] == expected


def test_coin_flip_follows_the_stream():
    a, b = GameRNG(11), GameRNG(11)
    assert [a.coin_flip() for _ in range(20)] == [b.next() > 0.5 for _ in range(20)]

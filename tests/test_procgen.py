import numpy as np
import pytest

from rogue_kernel import constants as C
from rogue_kernel.config import KernelConfig, load_enemy_templates
from rogue_kernel.constants import Tile
from rogue_kernel.entities.components import Position
from rogue_kernel.rng import GameRNG
from rogue_kernel.world import procgen
from rogue_kernel.world.grid import create_grid
from rogue_kernel.world.procgen import Room, generate_dungeon, player_start_position


def test_generation_is_deterministic():
    a = generate_dungeon(42, 1)
    b = generate_dungeon(42, 1)
    assert np.array_equal(a.tiles, b.tiles)
    assert a.rooms == b.rooms
    assert a.enemy_spawns == b.enemy_spawns
    assert a.item_spawns == b.item_spawns
    assert a.stairs_position == b.stairs_position


def test_different_seeds_give_different_layouts():
    assert not np.array_equal(generate_dungeon(1).tiles, generate_dungeon(2).tiles)


def test_seed_42_end_to_end():
    dungeon = generate_dungeon(42, 1)
    assert C.MIN_ROOMS <= len(dungeon.rooms) <= C.MAX_ROOMS
    stairs = dungeon.stairs_position
    assert stairs is not None
    assert dungeon.rooms[-1].contains(stairs.x, stairs.y)
    assert dungeon.tiles[stairs.y, stairs.x] == Tile.STAIRS_DOWN
    for spawn in dungeon.enemy_spawns + dungeon.item_spawns:
        assert spawn.position != stairs


@pytest.mark.parametrize("seed", range(15))
def test_rooms_never_overlap(seed):
    rooms = generate_dungeon(seed, 2).rooms
    for i, a in enumerate(rooms):
        for b in rooms[i + 1 :]:
            assert not a.intersects(b)


def test_room_intersection_counts_touching_rooms():
    assert Room(1, 1, 3, 3).intersects(Room(4, 1, 3, 3))
    assert not Room(1, 1, 3, 3).intersects(Room(5, 1, 3, 3))


def test_border_is_wall():
    tiles = generate_dungeon(7, 1).tiles
    assert np.all(tiles[0, :] == Tile.WALL)
    assert np.all(tiles[-1, :] == Tile.WALL)
    assert np.all(tiles[:, 0] == Tile.WALL)
    assert np.all(tiles[:, -1] == Tile.WALL)


def test_dungeon_tiles_are_read_only():
    dungeon = generate_dungeon(5, 1)
    with pytest.raises(ValueError):
        dungeon.tiles[1, 1] = Tile.WALL


def test_spawns_are_on_distinct_floor_tiles_outside_first_and_last_room():
    dungeon = generate_dungeon(99, 4)
    spawns = dungeon.enemy_spawns + dungeon.item_spawns
    positions = [tuple(s.position) for s in spawns]
    assert len(positions) == len(set(positions))
    for spawn in spawns:
        assert dungeon.tiles[spawn.position.y, spawn.position.x] == Tile.FLOOR
        assert not dungeon.rooms[0].contains(*spawn.position)
        assert not dungeon.rooms[-1].contains(*spawn.position)


def test_enemy_count_scales_with_depth():
    for depth in (1, 2, 4):
        dungeon = generate_dungeon(42, depth)
        assert len(dungeon.enemy_spawns) <= int(depth * C.ENEMY_SCALE_FACTOR)
        assert all(s.depth == depth for s in dungeon.enemy_spawns)


def test_spawn_table_respects_spawn_depth():
    for seed in range(10):
        for spawn in generate_dungeon(seed, 1).enemy_spawns:
            assert spawn.type_key in {"goblin", "slime"}


def test_up_stairs_only_below_first_level():
    shallow = generate_dungeon(42, 1)
    assert not np.any(shallow.tiles == Tile.STAIRS_UP)
    deep = generate_dungeon(42, 2)
    start = deep.rooms[0].center
    assert deep.tiles[start.y, start.x] == Tile.STAIRS_UP


def test_player_start_is_first_room_center():
    dungeon = generate_dungeon(42, 1)
    assert player_start_position(dungeon) == dungeon.rooms[0].center
    assert dungeon.player_start == dungeon.rooms[0].center


def test_invalid_arguments_fail_fast():
    with pytest.raises(ValueError):
        generate_dungeon(1, depth=0)
    with pytest.raises(ValueError):
        generate_dungeon(1, width=5, height=40)
    with pytest.raises(ValueError):
        generate_dungeon(1, width=0)


def test_custom_config_dimensions():
    config = KernelConfig(dungeon_width=60, dungeon_height=30)
    dungeon = generate_dungeon(3, 1, config=config)
    assert dungeon.tiles.shape == (30, 60)


def test_zero_rooms_is_an_error(monkeypatch):
    monkeypatch.setattr(procgen, "_place_rooms", lambda tiles, cfg, rng: [])
    with pytest.raises(RuntimeError):
        generate_dungeon(1, 1)


@pytest.mark.parametrize("seed", range(10))
def test_smallest_rooms_still_take_spawns(seed):
    config = KernelConfig(min_room_size=3, max_room_size=3)
    dungeon = generate_dungeon(seed, 3, config=config)
    for spawn in dungeon.enemy_spawns + dungeon.item_spawns:
        assert dungeon.tiles[spawn.position.y, spawn.position.x] == Tile.FLOOR


def test_room_attempt_budget_stops_generation():
    # At most four separated 3x3 rooms fit in a 12x12 map.
    config = KernelConfig(
        dungeon_width=12,
        dungeon_height=12,
        min_rooms=9,
        max_rooms=9,
        min_room_size=3,
        max_room_size=4,
        room_attempt_budget=25,
    )
    for seed in range(5):
        dungeon = generate_dungeon(seed, 2, config=config)
        assert 1 <= len(dungeon.rooms) < 9
        assert len(dungeon.enemy_spawns) <= int(2 * config.enemy_scale_factor)
        assert len(dungeon.item_spawns) <= config.max_items


def test_single_attempt_places_one_room():
    dungeon = generate_dungeon(3, 1, config=KernelConfig(room_attempt_budget=1))
    assert len(dungeon.rooms) == 1
    assert dungeon.stairs_position == dungeon.rooms[0].center
    assert dungeon.enemy_spawns == () and dungeon.item_spawns == ()


def test_spawns_without_a_free_tile_are_skipped():
    tiles = create_grid(6, 6)
    room = Room(1, 1, 3, 3)
    room.carve(tiles)
    table = list(load_enemy_templates())
    config = KernelConfig(spawn_attempt_budget=5)

    # The 3x3 room has a single interior tile, already taken.
    full = procgen._generate_spawns(
        "enemy", 3, [room], table, 1, tiles, {(2, 2)}, config, GameRNG(1)
    )
    assert full == []

    occupied = set()
    spawns = procgen._generate_spawns(
        "enemy", 3, [room], table, 1, tiles, occupied, config, GameRNG(1)
    )
    assert [s.position for s in spawns] == [Position(2, 2)]
    assert occupied == {(2, 2)}

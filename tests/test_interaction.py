from rogue_kernel.constants import ItemType, Tile, TurnActionType
from rogue_kernel.entities.components import Actor, DamageDice, Item, Position
from rogue_kernel.systems.interaction import (
    find_interactables,
    interaction_action,
    interaction_prompt,
)

HERE = Position(5, 5)


def make_enemy(x, y, name="Goblin"):
    return Actor(name, name.lower(), 10, 10, 12, 0, DamageDice(1, 6), Position(x, y))


def make_item(x, y, name="Dagger"):
    return Item(ItemType.WEAPON, name, position=Position(x, y), damage=DamageDice(1, 4))


def test_diagonal_enemies_are_interactable():
    diagonal = make_enemy(6, 6)
    far = make_enemy(7, 5)
    found = find_interactables(HERE, Tile.FLOOR, enemies=[diagonal, far])
    assert found.enemies == [diagonal]


def test_dead_enemies_are_skipped():
    enemy = make_enemy(5, 6)
    enemy.apply_damage(10)
    assert find_interactables(HERE, Tile.FLOOR, enemies=[enemy]).enemies == []


def test_items_must_share_the_tile():
    on_tile, beside = make_item(5, 5), make_item(5, 6)
    assert find_interactables(HERE, Tile.FLOOR, items=[on_tile, beside]).items == [on_tile]


def test_stairs_detected_from_tile():
    assert find_interactables(HERE, Tile.STAIRS_DOWN).stairs
    assert not find_interactables(HERE, Tile.STAIRS_UP).stairs


def test_prompt_lists_everything():
    found = find_interactables(
        HERE, Tile.STAIRS_DOWN, items=[make_item(5, 5)], enemies=[make_enemy(4, 4)]
    )
    assert interaction_prompt(found) == "Pick up Dagger / Descend stairs / Attack Goblin"
    assert interaction_prompt(find_interactables(HERE, Tile.FLOOR)) == ""


def test_action_priority_enemies_items_stairs():
    enemy, item = make_enemy(4, 5), make_item(5, 5)
    found = find_interactables(HERE, Tile.STAIRS_DOWN, items=[item], enemies=[enemy])
    action = interaction_action(found)
    assert action.type is TurnActionType.ATTACK
    assert action.params["target"] is enemy

    found = find_interactables(HERE, Tile.STAIRS_DOWN, items=[item])
    assert interaction_action(found).type is TurnActionType.PICKUP

    found = find_interactables(HERE, Tile.STAIRS_DOWN)
    assert interaction_action(found).type is TurnActionType.DESCEND

    assert interaction_action(find_interactables(HERE, Tile.FLOOR)) is None

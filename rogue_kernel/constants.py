"""Shared enums and default tuning values for the simulation kernel."""

from enum import Enum, IntEnum


class Tile(IntEnum):
    WALL = 0
    FLOOR = 1
    DOOR = 2
    STAIRS_DOWN = 3
    STAIRS_UP = 4


# One character per tile in the text encoding of a grid.
TILE_CHARS = {
    Tile.WALL: "#",
    Tile.FLOOR: ".",
    Tile.DOOR: "+",
    Tile.STAIRS_DOWN: ">",
    Tile.STAIRS_UP: "<",
}
CHAR_TILES = {char: tile for tile, char in TILE_CHARS.items()}


class StatusType(str, Enum):
    INVISIBILITY = "invisibility"
    POISON = "poison"
    SPEED = "speed"
    STRENGTH = "strength"
    SKILL = "skill"
    SIGHT = "sight"
    ATTRACTION = "attraction"
    STONE = "stone"


class ItemType(str, Enum):
    WEAPON = "weapon"
    ARMOR = "armor"
    POTION = "potion"
    SCROLL = "scroll"
    RING = "ring"
    GOLD = "gold"


class TurnActionType(str, Enum):
    MOVE = "move"
    ATTACK = "attack"
    USE_ITEM = "use_item"
    PICKUP = "pickup"
    DESCEND = "descend"
    WAIT = "wait"


# --- Spatial ---
TILE_SIZE = 2.0
VISIBILITY_RADIUS = 5.0
COMBAT_DETECTION_RADIUS = 10.0

# --- Turn clock ---
MOVEMENT_THRESHOLD = 2.0
MOVEMENT_SPEED = 2.0
INPUT_DEADZONE = 0.15
MIN_MOVE_DISTANCE = 0.01

# --- Player progression ---
HUNGER_RATE = 1
STARTING_HUNGER = 1000
STARTING_HP = 20
STARTING_LEVEL = 1
PLAYER_BASE_AC = 10
XP_PER_LEVEL = 100
XP_MULTIPLIER = 1.5
LEVEL_UP_HP = 5
LEVEL_UP_ATTACK = 1
INVENTORY_SIZE = 26

# --- Dungeon generation ---
DUNGEON_WIDTH = 40
DUNGEON_HEIGHT = 40
MIN_ROOMS = 6
MAX_ROOMS = 9
MIN_ROOM_SIZE = 3
MAX_ROOM_SIZE = 8
ENEMY_SCALE_FACTOR = 1.5
MIN_ITEMS = 2
MAX_ITEMS = 5
ROOM_ATTEMPT_BUDGET = 200
SPAWN_ATTEMPT_BUDGET = 20

# --- Entity scaling ---
DEPTH_STAT_SCALE = 0.2

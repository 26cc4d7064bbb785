"""The simulation kernel: one owner for all mutable run state.

``DungeonKernel`` wires generation, the turn clock, combat, status effects
and fog of war together. Hosts drive it with :meth:`DungeonKernel.step` once
per frame and issue discrete actions (attack, interact, descend) in between;
every call finishes its work before returning. Renderers read
:meth:`DungeonKernel.snapshot`, audio layers subscribe to ``kernel.events``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

import numpy as np
import structlog

from rogue_kernel.config import KernelConfig, load_enemy_templates, load_item_templates
from rogue_kernel.constants import MIN_MOVE_DISTANCE, ItemType, Tile, TurnActionType
from rogue_kernel.entities.components import (
    ActionResult,
    Actor,
    Item,
    Position,
    WorldPosition,
)
from rogue_kernel.entities.factory import create_actor, create_item, create_player
from rogue_kernel.entities.template_registry import (
    EnemyTemplate,
    ItemTemplate,
    TemplateRegistry,
)
from rogue_kernel.events import EventBus, KernelEventType
from rogue_kernel.rng import GameRNG
from rogue_kernel.systems.combat import (
    EnemyActionType,
    apply_attack,
    combat_message,
    decide_enemy_action,
    execute_attack,
)
from rogue_kernel.systems.interaction import (
    find_interactables,
    interaction_action,
    interaction_prompt,
    is_adjacent_8,
)
from rogue_kernel.systems.movement import (
    MovementInput,
    calculate_movement_delta,
    check_collision,
    detect_combat_mode,
    movement_budget,
    movement_distance,
)
from rogue_kernel.systems.status_effects import (
    add_status_effect,
    create_status_effect,
    effect_display_strings,
)
from rogue_kernel.systems.turn_manager import (
    ActionQueue,
    TurnAction,
    TurnClock,
    TurnReport,
    advance_turn,
    effective_movement_threshold,
    record_movement,
)
from rogue_kernel.world.grid import grid_to_world, is_walkable, world_to_grid
from rogue_kernel.world.procgen import Dungeon, generate_dungeon
from rogue_kernel.world.visibility import (
    FogOfWar,
    effective_visibility_radius,
    filter_visible_entities,
)

log = structlog.get_logger(__name__)

ItemSink = Callable[[Item], ActionResult]

_GOLDEN_GAMMA = 0x9E3779B9


def level_seed(run_seed: int, depth: int) -> int:
    """Seed for dungeon level ``depth`` of a run; depth 1 uses the run seed."""
    return (run_seed + (depth - 1) * _GOLDEN_GAMMA) & 0xFFFFFFFF


@dataclass
class RunStatistics:
    kills: int = 0
    gold_collected: int = 0
    deepest_level: int = 1
    items_used: int = 0
    hunger_deaths: int = 0
    combat_deaths: int = 0
    turns_played: int = 0


@dataclass(frozen=True)
class ActorView:
    name: str
    type_key: str
    position: Position
    alive: bool
    hp: int
    max_hp: int


@dataclass(frozen=True)
class ItemView:
    name: str
    item_type: ItemType
    position: Position


@dataclass(frozen=True)
class KernelSnapshot:
    """Read-only per-tick view for renderers. Arrays are non-writeable copies."""

    depth: int
    tiles: np.ndarray
    visible: np.ndarray
    explored: np.ndarray
    enemies: Tuple[ActorView, ...]
    items: Tuple[ItemView, ...]
    player_position: Position
    player_world_position: WorldPosition
    player_rotation: float
    turn: int
    hp: int
    max_hp: int
    hunger: int
    max_hunger: int
    level: int
    xp: int
    xp_to_next: int
    status_effects: Tuple[str, ...]
    in_combat: bool
    movement_budget: float
    interaction_prompt: str
    game_over: bool
    death_message: str


@dataclass
class StepResult:
    moved: bool = False
    turn_report: Optional[TurnReport] = None
    messages: List[str] = field(default_factory=list)


def _frozen_copy(array: np.ndarray) -> np.ndarray:
    copy = array.copy()
    copy.flags.writeable = False
    return copy


class DungeonKernel:
    def __init__(
        self,
        seed: int,
        config: Optional[KernelConfig] = None,
        enemy_templates: Optional[TemplateRegistry[EnemyTemplate]] = None,
        item_templates: Optional[TemplateRegistry[ItemTemplate]] = None,
        events: Optional[EventBus] = None,
        item_sink: Optional[ItemSink] = None,
    ) -> None:
        self.seed = seed
        self.config = config or KernelConfig()
        self.enemy_templates = enemy_templates or load_enemy_templates()
        self.item_templates = item_templates or load_item_templates()
        self.events = events or EventBus()
        self.item_sink = item_sink
        # Combat and AI rolls; level layouts come from their own per-depth seeds.
        self.rng = GameRNG(seed)
        self.clock = TurnClock()
        self.action_queue = ActionQueue()
        self.statistics = RunStatistics()
        self.combat_log: List[str] = []
        self.game_over = False
        self.death_message = ""
        self.in_combat = False

        self.dungeon: Dungeon
        self.enemies: List[Actor] = []
        self.items: List[Item] = []
        self.fog: FogOfWar
        self.player = create_player(Position(1, 1), self.config)
        self._enter_level(1)
        log.info("Kernel initialized", seed=seed)

    # ------------------------------------------------------------------
    # level lifecycle
    # ------------------------------------------------------------------
    @property
    def depth(self) -> int:
        return self.dungeon.depth

    def _enter_level(self, depth: int) -> None:
        self.dungeon = generate_dungeon(
            level_seed(self.seed, depth),
            depth,
            config=self.config,
            enemy_templates=self.enemy_templates,
            item_templates=self.item_templates,
        )
        self.enemies = [
            create_actor(s.type_key, s.position, depth, self.enemy_templates)
            for s in self.dungeon.enemy_spawns
        ]
        self.items = [create_item(s, self.item_templates) for s in self.dungeon.item_spawns]
        start = self.dungeon.player_start
        self.player.position = start
        self.player.world_position = grid_to_world(start.x, start.y, self.config.tile_size)
        self.clock.accumulated_movement = 0.0
        self.fog = FogOfWar.for_grid(self.dungeon.tiles)
        self._update_visibility()
        self.in_combat = self._detect_combat()
        self.statistics.deepest_level = max(self.statistics.deepest_level, depth)
        log.info(
            "Entered dungeon level",
            depth=depth,
            enemies=len(self.enemies),
            items=len(self.items),
        )

    def _update_visibility(self) -> None:
        radius = effective_visibility_radius(
            self.config.visibility_radius, self.player.status_effects
        )
        self.fog.update(self.dungeon.tiles, self.player.position, radius, self.config.tile_size)

    def _detect_combat(self) -> bool:
        living = [e for e in self.enemies if e.alive]
        seen = filter_visible_entities(living, self.fog.visible)
        return detect_combat_mode(
            self.player.world_position,
            [grid_to_world(e.position.x, e.position.y, self.config.tile_size) for e in seen],
            self.config.combat_detection_radius,
        )

    def _message(self, text: str) -> None:
        self.combat_log.append(text)
        log.debug("Message added", message=text)

    # ------------------------------------------------------------------
    # per-tick entry point
    # ------------------------------------------------------------------
    def step(self, movement: MovementInput, dt: float) -> StepResult:
        """Apply one frame of input.

        Moves the player if the destination tile is walkable and not held by a
        living enemy, accumulates the distance on the turn clock and runs at
        most one turn advance.
        """
        result = StepResult()
        if self.game_over:
            return result
        log_start = len(self.combat_log)

        self.player.rotation += movement.rotation_delta
        delta = calculate_movement_delta(
            movement, dt, self.config.movement_speed, self.config.input_deadzone
        )
        distance = movement_distance(delta)
        if distance > MIN_MOVE_DISTANCE:
            current = self.player.world_position
            target = WorldPosition(current.x + delta[0], current.z + delta[1])
            cell = world_to_grid(target.x, target.z, self.config.tile_size)
            entering = cell != self.player.position
            if check_collision(target, self.dungeon.tiles, self.config.tile_size) and not (
                entering and self._enemy_at(cell)
            ):
                result.moved = True
                self.player.world_position = target
                if entering:
                    self.player.position = cell
                    self._update_visibility()
                result.turn_report = record_movement(
                    self.clock,
                    self.player,
                    distance,
                    base_threshold=self.config.movement_threshold,
                    hunger_rate=self.config.hunger_rate,
                    enemies=self.enemies,
                    enemy_pass=self._process_enemy_turns,
                    events=self.events,
                )
                if result.turn_report is not None:
                    self._after_turn(result.turn_report)
                self.in_combat = self._detect_combat()

        result.messages = self.combat_log[log_start:]
        return result

    def _advance(self) -> TurnReport:
        report = advance_turn(
            self.clock,
            self.player,
            hunger_rate=self.config.hunger_rate,
            enemies=self.enemies,
            enemy_pass=self._process_enemy_turns,
            events=self.events,
        )
        self._after_turn(report)
        self.in_combat = self._detect_combat()
        return report

    def _after_turn(self, report: TurnReport) -> None:
        self.statistics.turns_played = report.turn
        for name, effect_type in report.expired_effects:
            if name == self.player.name:
                self._message(f"{effect_type.value.capitalize()} wears off.")
        # Sight may have expired.
        self._update_visibility()
        if report.starved and not self.game_over:
            self._end_run("You starved to death!")
            self.statistics.hunger_deaths += 1
            self.events.emit(KernelEventType.STARVED, report.turn)

    def _end_run(self, message: str) -> None:
        self.game_over = True
        self.death_message = message
        self._message(message)
        log.info("Run ended", reason=message, turn=self.clock.turn_count, depth=self.depth)

    def _process_enemy_turns(self, turn: int) -> List[Tuple[str, EnemyActionType]]:
        """Run every living enemy once, in list order."""
        actions: List[Tuple[str, EnemyActionType]] = []
        for enemy in self.enemies:
            if not enemy.alive or self.game_over:
                continue
            occupied = {
                (other.position.x, other.position.y)
                for other in self.enemies
                if other is not enemy and other.alive
            }
            action = decide_enemy_action(
                enemy,
                self.player.position,
                self.dungeon.tiles,
                self.player.status_effects,
                occupied,
            )
            enemy.last_action = action.action.value
            actions.append((enemy.name, action.action))

            if action.action is EnemyActionType.ATTACK:
                outcome = execute_attack(enemy, self.player, self.rng)
                apply_attack(self.player, outcome)
                self._message(combat_message(enemy.name, "Player", outcome))
                event = KernelEventType.HIT if outcome.hit else KernelEventType.MISS
                self.events.emit(
                    event, turn, attacker=enemy.name, target="player", damage=outcome.damage
                )
                if not self.player.alive:
                    self.statistics.combat_deaths += 1
                    self._end_run("You were slain in combat!")
                    self.events.emit(KernelEventType.PLAYER_DIED, turn, killer=enemy.name)
            elif action.action is EnemyActionType.MOVE and action.target is not None:
                enemy.position = action.target
        return actions

    # ------------------------------------------------------------------
    # discrete actions
    # ------------------------------------------------------------------
    def attack(self, target: Optional[Actor] = None) -> ActionResult:
        """Melee attack a living enemy in one of the eight surrounding tiles.

        Attacking takes a turn.
        """
        if self.game_over:
            return ActionResult.fail("game_over", "The run is over.")
        if target is None:
            found = find_interactables(
                self.player.position, self._tile_under_player(), enemies=self.enemies
            )
            if not found.enemies:
                return ActionResult.fail("no_target", "There is nothing to attack.")
            target = found.enemies[0]
        if not target.alive:
            return ActionResult.fail("target_dead", f"{target.name} is already dead.")
        if not is_adjacent_8(self.player.position, target.position):
            return ActionResult.fail("not_adjacent", f"{target.name} is out of reach.")

        outcome = execute_attack(self.player, target, self.rng)
        apply_attack(target, outcome)
        message = combat_message("Player", target.name, outcome)
        self._message(message)
        turn = self.clock.turn_count
        self.events.emit(
            KernelEventType.HIT if outcome.hit else KernelEventType.MISS,
            turn,
            attacker="player",
            target=target.name,
            damage=outcome.damage,
        )
        if not target.alive:
            self._on_kill(target)

        self._advance()
        return ActionResult.ok(
            message,
            hit=outcome.hit,
            damage=outcome.damage,
            critical=outcome.critical,
            killed=not target.alive,
        )

    def _on_kill(self, enemy: Actor) -> None:
        self.statistics.kills += 1
        turn = self.clock.turn_count
        self.events.emit(KernelEventType.KILL, turn, target=enemy.name, xp=enemy.xp_value)
        gained = self.player.add_experience(
            enemy.xp_value,
            multiplier=self.config.xp_multiplier,
            hp_per_level=self.config.level_up_hp,
            attack_per_level=self.config.level_up_attack,
        )
        if gained:
            self._message(f"You reach level {self.player.level}!")
            self.events.emit(KernelEventType.LEVEL_UP, turn, level=self.player.level)

    def _enemy_at(self, position: Position) -> bool:
        return any(e.alive and e.position == position for e in self.enemies)

    def _tile_under_player(self) -> int:
        pos = self.player.position
        return int(self.dungeon.tiles[pos.y, pos.x])

    def interact(self) -> ActionResult:
        """Perform the highest-priority interaction available here."""
        if self.game_over:
            return ActionResult.fail("game_over", "The run is over.")
        found = find_interactables(
            self.player.position, self._tile_under_player(), self.items, self.enemies
        )
        action = interaction_action(found)
        if action is None:
            return ActionResult.fail("nothing_here", "There is nothing here.")
        return self.perform(action)

    def pickup(self, item: Item) -> ActionResult:
        if self.game_over:
            return ActionResult.fail("game_over", "The run is over.")
        if item not in self.items or item.position != self.player.position:
            return ActionResult.fail("not_here", "That item is not here.")

        if item.item_type == ItemType.GOLD:
            self.statistics.gold_collected += item.amount
            message = f"You pick up {item.amount} gold."
        elif self.item_sink is not None:
            outcome = self.item_sink(item)
            if not outcome.success:
                return outcome
            message = outcome.message or f"You pick up {item.display_name}."
        elif item.item_type in (ItemType.WEAPON, ItemType.ARMOR):
            self.player.equip(item)
            message = f"You equip {item.display_name}."
        else:
            used = self.use_item(item)
            message = used.message

        self.items.remove(item)
        item.position = None
        self._message(message)
        self._advance()
        return ActionResult.ok(message, item=item.type_key)

    def use_item(self, item: Item) -> ActionResult:
        """Apply a consumable's healing and status effect to the player."""
        if item.item_type not in (ItemType.POTION, ItemType.SCROLL, ItemType.RING):
            return ActionResult.fail("not_usable", f"You cannot use {item.display_name}.")
        parts = []
        if item.heal:
            healed = self.player.heal(item.heal)
            parts.append(f"You recover {healed} hp.")
        if item.effect is not None and item.effect_duration > 0:
            effect = create_status_effect(item.effect, item.effect_duration, item.effect_magnitude)
            add_status_effect(self.player.status_effects, effect)
            parts.append(f"You feel the effect of {item.effect.value}.")
            self._update_visibility()
        item.identified = True
        self.statistics.items_used += 1
        return ActionResult.ok(" ".join(parts) or f"You use {item.display_name}.")

    def descend(self) -> ActionResult:
        if self.game_over:
            return ActionResult.fail("game_over", "The run is over.")
        if self._tile_under_player() != Tile.STAIRS_DOWN:
            return ActionResult.fail("not_on_stairs", "There are no stairs here.")
        new_depth = self.depth + 1
        self._enter_level(new_depth)
        message = f"You descend to level {new_depth}."
        self._message(message)
        self.events.emit(KernelEventType.DESCEND, self.clock.turn_count, depth=new_depth)
        return ActionResult.ok(message, depth=new_depth)

    def wait(self) -> ActionResult:
        if self.game_over:
            return ActionResult.fail("game_over", "The run is over.")
        report = self._advance()
        return ActionResult.ok("You wait.", turn=report.turn)

    def move(self, dx: int, dy: int) -> ActionResult:
        """Step one tile orthogonally; a turn passes on success."""
        if self.game_over:
            return ActionResult.fail("game_over", "The run is over.")
        if abs(dx) + abs(dy) != 1:
            return ActionResult.fail("invalid_step", "Moves are one orthogonal tile.")
        target = self.player.position.offset(dx, dy)
        if not is_walkable(self.dungeon.tiles, target.x, target.y):
            return ActionResult.fail("blocked", "Something blocks the way.")
        if self._enemy_at(target):
            return ActionResult.fail("occupied", "An enemy blocks the way.")
        self.player.position = target
        self.player.world_position = grid_to_world(target.x, target.y, self.config.tile_size)
        self._update_visibility()
        self._advance()
        return ActionResult.ok(position=tuple(target))

    def perform(self, action: TurnAction) -> ActionResult:
        kind = action.type
        if kind is TurnActionType.ATTACK:
            return self.attack(action.params.get("target"))
        if kind is TurnActionType.PICKUP:
            return self.pickup(action.params["target"])
        if kind is TurnActionType.DESCEND:
            return self.descend()
        if kind is TurnActionType.WAIT:
            return self.wait()
        if kind is TurnActionType.MOVE:
            return self.move(int(action.params.get("dx", 0)), int(action.params.get("dy", 0)))
        if kind is TurnActionType.USE_ITEM:
            return self.use_item(action.params["item"])
        return ActionResult.fail("unknown_action", f"Unknown action {kind!r}")

    def queue_action(self, action: TurnAction) -> None:
        self.action_queue.add(action)

    def process_next_action(self) -> Optional[ActionResult]:
        action = self.action_queue.process_next()
        return self.perform(action) if action is not None else None

    # ------------------------------------------------------------------
    # read-only views
    # ------------------------------------------------------------------
    def snapshot(self) -> KernelSnapshot:
        threshold = effective_movement_threshold(
            self.player.status_effects, self.config.movement_threshold
        )
        found = find_interactables(
            self.player.position, self._tile_under_player(), self.items, self.enemies
        )
        player = self.player
        return KernelSnapshot(
            depth=self.depth,
            tiles=self.dungeon.tiles,
            visible=_frozen_copy(self.fog.visible),
            explored=_frozen_copy(self.fog.explored),
            enemies=tuple(
                ActorView(e.name, e.type_key, e.position, e.alive, e.hp, e.max_hp)
                for e in self.enemies
            ),
            items=tuple(
                ItemView(i.display_name, i.item_type, i.position)
                for i in self.items
                if i.position is not None
            ),
            player_position=player.position,
            player_world_position=player.world_position,
            player_rotation=player.rotation,
            turn=self.clock.turn_count,
            hp=player.hp,
            max_hp=player.max_hp,
            hunger=player.hunger,
            max_hunger=player.max_hunger,
            level=player.level,
            xp=player.xp,
            xp_to_next=player.xp_to_next,
            status_effects=tuple(effect_display_strings(player.status_effects)),
            in_combat=self.in_combat,
            movement_budget=movement_budget(self.clock.accumulated_movement, threshold),
            interaction_prompt=interaction_prompt(found),
            game_over=self.game_over,
            death_message=self.death_message,
        )

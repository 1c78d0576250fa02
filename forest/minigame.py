"""Engine-agnostic model of the planting/harvesting minigame.

The garden is a fixed grid of tiles. Clicking an empty tile plants a sapling,
which grows into a tree once its timer fires; clicking a grown tree harvests
it for a coin. Time only moves when the host loop calls :meth:`Garden.tick`,
so the model can be driven by a renderer or by tests alike.
"""

from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

GRID_COLS = 10
GRID_ROWS = 8
GROWTH_DELAY = 5.0
HARVEST_REWARD = 1
POPUP_DURATION = 1.0


class TileState(str, Enum):
    EMPTY = 'empty'
    SAPLING = 'sapling'
    GROWN = 'grown'


@dataclass
class Timer:
    due: float
    callback: Callable[[], None]
    cancelled: bool = False
    fired: bool = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)


class Scheduler:
    """Single-shot delayed callbacks fired from :meth:`advance`."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: list[tuple[float, int, Timer]] = []
        self._order = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> Timer:
        if delay < 0:
            raise ValueError('delay must be non-negative')
        timer = Timer(due=self.now + delay, callback=callback)
        heapq.heappush(self._queue, (timer.due, next(self._order), timer))
        return timer

    def advance(self, dt: float) -> int:
        if dt < 0:
            raise ValueError('dt must be non-negative')
        self.now += dt
        fired = 0
        while self._queue and self._queue[0][0] <= self.now:
            _, _, timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            timer.fired = True
            timer.callback()
            fired += 1
        return fired

    def pending_count(self) -> int:
        return sum(1 for _, _, timer in self._queue if timer.pending)


@dataclass
class Sprite:
    kind: str
    alive: bool = True

    def destroy(self) -> None:
        self.alive = False


@dataclass
class Popup:
    text: str
    row: int
    col: int
    age: float = 0.0
    duration: float = POPUP_DURATION

    @property
    def progress(self) -> float:
        return min(1.0, self.age / self.duration)

    @property
    def expired(self) -> bool:
        return self.age >= self.duration


@dataclass
class Tile:
    row: int
    col: int
    state: TileState = TileState.EMPTY
    sprite: Sprite | None = None
    grow_timer: Timer | None = None

    def clear(self) -> None:
        if self.grow_timer is not None:
            self.grow_timer.cancel()
            self.grow_timer = None
        if self.sprite is not None:
            self.sprite.destroy()
            self.sprite = None
        self.state = TileState.EMPTY


@dataclass
class Garden:
    cols: int = GRID_COLS
    rows: int = GRID_ROWS
    growth_delay: float = GROWTH_DELAY
    reward: int = HARVEST_REWARD
    scheduler: Scheduler = field(default_factory=Scheduler)

    def __post_init__(self) -> None:
        if self.cols <= 0 or self.rows <= 0:
            raise ValueError('grid must have at least one tile')
        self.coins = 0
        self.popups: list[Popup] = []
        self.tiles = [[Tile(row=r, col=c) for c in range(self.cols)] for r in range(self.rows)]

    def tile(self, row: int, col: int) -> Tile:
        if not (0 <= row < self.rows and 0 <= col < self.cols):
            raise IndexError(f'No tile at ({row}, {col})')
        return self.tiles[row][col]

    def click(self, row: int, col: int) -> TileState:
        tile = self.tile(row, col)
        if tile.state == TileState.EMPTY:
            self.plant(tile)
        elif tile.state == TileState.GROWN:
            self.harvest(tile)
        # Saplings ignore clicks until they grow.
        return tile.state

    def plant(self, tile: Tile) -> None:
        if tile.state != TileState.EMPTY:
            raise ValueError(f'Tile ({tile.row}, {tile.col}) is not empty')
        tile.state = TileState.SAPLING
        tile.sprite = Sprite('sapling')
        tile.grow_timer = self.scheduler.call_later(self.growth_delay, lambda: self._grow(tile))

    def _grow(self, tile: Tile) -> None:
        tile.grow_timer = None
        if tile.state != TileState.SAPLING:
            return
        if tile.sprite is None or not tile.sprite.alive:
            # The sapling was taken off the board; free the tile for replanting.
            tile.clear()
            return
        tile.sprite.destroy()
        tile.state = TileState.GROWN
        tile.sprite = Sprite('tree')

    def harvest(self, tile: Tile) -> None:
        if tile.state != TileState.GROWN:
            raise ValueError(f'Tile ({tile.row}, {tile.col}) has nothing to harvest')
        tile.clear()
        self.coins += self.reward
        self.popups.append(Popup(text=f'+{self.reward}', row=tile.row, col=tile.col))

    def tick(self, dt: float) -> None:
        self.scheduler.advance(dt)
        for popup in self.popups:
            popup.age += dt
        self.popups = [p for p in self.popups if not p.expired]

    def reset(self) -> None:
        """Clear every tile and cancel pending growth. The coin counter is kept."""
        for row in self.tiles:
            for tile in row:
                tile.clear()
        self.popups.clear()

    def count(self, state: TileState) -> int:
        return sum(1 for row in self.tiles for tile in row if tile.state == state)

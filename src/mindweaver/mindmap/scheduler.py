# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Cooperative scheduling of layout simulations.

"""
Single-threaded scheduler for stepping layout simulations.

The host (a UI animation clock, or run_until_idle in tests and the CLI)
calls tick() repeatedly; each tick advances the current simulation by a
few steps and notifies listeners. Starting a new run cancels the old one:
its positions are snapshotted into the cache, and its LayoutRun handle
becomes inert, so callbacks from a stale run can never write into
current state.

Work requested while a tick is being dispatched is deferred until the
tick has finished.
"""

import logging
from typing import Callable, List, Optional

from .layout.engine import LayoutEngine
from .layout.force_directed import ForceSimulation
from .layout.styling import LayoutNode

logger = logging.getLogger(__name__)

TickListener = Callable[[List[LayoutNode]], None]


class LayoutRun:
    """Handle for one simulation run; inert once superseded."""

    def __init__(self, scheduler: 'LayoutScheduler', simulation: ForceSimulation, generation: int):
        self._scheduler = scheduler
        self.simulation = simulation
        self.generation = generation
        self.cancelled = False
        self.finished = False
        self.result: Optional[List[LayoutNode]] = None

    @property
    def active(self) -> bool:
        return (
            not self.cancelled
            and not self.finished
            and self._scheduler.generation == self.generation
        )

    def step(self) -> bool:
        """Advance one simulation step if this run is still current."""
        if not self.active:
            return False
        return self.simulation.step()

    def __repr__(self):
        state = 'cancelled' if self.cancelled else 'finished' if self.finished else 'active'
        return f"LayoutRun(generation={self.generation}, {state}, steps={self.simulation.iterations})"


class LayoutScheduler:
    """Owns at most one active LayoutRun for a LayoutEngine."""

    def __init__(self, engine: LayoutEngine, steps_per_tick: int = 1):
        self.engine = engine
        self.steps_per_tick = steps_per_tick
        self.generation = 0
        self.current: Optional[LayoutRun] = None
        self._tick_listeners: List[TickListener] = []
        self._end_listeners: List[TickListener] = []
        self._deferred: List[Callable[[], None]] = []
        self._dispatching = False

    # ------------------------------------------------------------------
    # listeners and deferral
    # ------------------------------------------------------------------

    def on_tick(self, listener: TickListener) -> None:
        self._tick_listeners.append(listener)

    def on_end(self, listener: TickListener) -> None:
        self._end_listeners.append(listener)

    @property
    def in_tick(self) -> bool:
        return self._dispatching

    def defer(self, fn: Callable[[], None]) -> None:
        """Run fn after the tick being dispatched, or now if none is."""
        if self._dispatching:
            self._deferred.append(fn)
        else:
            fn()

    def _flush_deferred(self) -> None:
        while self._deferred:
            pending, self._deferred = self._deferred, []
            for fn in pending:
                fn()

    def _dispatch(self, listeners: List[TickListener], nodes: List[LayoutNode]) -> None:
        self._dispatching = True
        try:
            for listener in list(listeners):
                listener(nodes)
        finally:
            self._dispatching = False
        self._flush_deferred()

    # ------------------------------------------------------------------
    # runs
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self.current is not None and self.current.active

    def cancel(self) -> None:
        """Stop the current run, keeping where its nodes got to."""
        run = self.current
        if run is None or not run.active:
            return
        self.engine.commit(run.simulation)
        run.cancelled = True
        self.generation += 1
        logger.debug(f"Cancelled {run}")

    def start(self, simulation: ForceSimulation) -> LayoutRun:
        self.cancel()
        self.generation += 1
        run = LayoutRun(self, simulation, self.generation)
        self.current = run
        logger.debug(f"Started {run} over {len(simulation)} nodes")
        if simulation.converged:
            self._finish(run)
        return run

    def _finish(self, run: LayoutRun) -> None:
        run.result = self.engine.finalize(run.simulation)
        run.finished = True
        self._dispatch(self._end_listeners, run.result)

    def tick(self, steps: Optional[int] = None) -> bool:
        """
        Advance the current run. Returns True while more ticks are needed.
        """
        run = self.current
        if run is None or not run.active:
            return False

        for _ in range(steps or self.steps_per_tick):
            if not run.step():
                break

        if not run.active:
            return False
        if run.simulation.converged:
            self._finish(run)
            return False

        self._dispatch(self._tick_listeners, run.simulation.layout_nodes())
        return run.active

    def run_until_idle(self) -> Optional[List[LayoutNode]]:
        """
        Drive the current run to completion and return its result.

        A deferred action flushed after a tick may start a newer run; that
        run becomes current and is driven in turn.
        """
        steps = max(self.steps_per_tick, 50)
        while self.tick(steps=steps) or self.running:
            pass
        return self.current.result if self.current is not None else None

    def snapshot(self) -> List[LayoutNode]:
        """Positions of the current run as they are right now."""
        if self.current is None:
            return []
        if self.current.result is not None:
            return list(self.current.result)
        return self.current.simulation.layout_nodes()

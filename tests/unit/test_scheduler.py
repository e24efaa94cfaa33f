"""Tests for cooperative layout scheduling and run cancellation."""

import pytest

from mindweaver.mindmap import view as views
from mindweaver.mindmap.layout import LayoutEngine
from mindweaver.mindmap.scheduler import LayoutScheduler
from mindweaver.mindmap.tree import TreeNode, flatten
from mindweaver.mindmap.view import ViewState


@pytest.fixture
def graph():
    root = TreeNode.from_dict({
        "id": "R", "title": "Root",
        "children": [
            {"id": "A", "title": "A", "children": [{"id": "C", "title": "C"}]},
            {"id": "B", "title": "B"},
        ],
    })
    flat = flatten(root)
    state = views.expand_all(ViewState.for_topic("R"), flat)
    nodes = views.visible_nodes(flat, state, "R")
    return nodes, views.visible_edges(nodes)


@pytest.fixture
def scheduler():
    return LayoutScheduler(LayoutEngine(), steps_per_tick=2)


class TestScheduler:
    """Tests for ticking, completion and cancellation."""

    def test_tick_advances_and_finishes(self, scheduler, graph):
        nodes, edges = graph
        run = scheduler.start(scheduler.engine.build(nodes, edges, 0, 800, 600))
        assert scheduler.running
        assert scheduler.tick() is True
        assert run.simulation.iterations == 2

        result = scheduler.run_until_idle()
        assert run.finished
        assert not scheduler.running
        assert [n.id for n in result] == ["R", "A", "C", "B"]
        assert scheduler.tick() is False

    def test_listeners_receive_frames_and_result(self, scheduler, graph):
        nodes, edges = graph
        ticks, ends = [], []
        scheduler.on_tick(ticks.append)
        scheduler.on_end(ends.append)
        scheduler.start(scheduler.engine.build(nodes, edges, 0, 800, 600))
        scheduler.run_until_idle()
        assert ticks
        assert len(ends) == 1
        assert len(ends[0]) == len(nodes)

    def test_converged_run_finishes_on_start(self, scheduler, graph):
        nodes, edges = graph
        scheduler.start(scheduler.engine.build(nodes, edges, 0, 800, 600))
        scheduler.run_until_idle()

        # same visible set: starts cold, nothing to step
        run = scheduler.start(scheduler.engine.build(nodes, edges, 0, 800, 600))
        assert run.finished
        assert run.simulation.iterations == 0

    def test_superseded_run_is_inert(self, scheduler, graph):
        nodes, edges = graph
        first = scheduler.start(scheduler.engine.build(nodes, edges, 0, 800, 600))
        scheduler.tick()
        at_cancel = first.simulation.positions_dict()

        scheduler.cancel()
        second = scheduler.start(scheduler.engine.build(nodes, edges, 0, 800, 600, reheat=0.5))
        assert first.cancelled
        assert not first.active
        assert first.step() is False
        assert first.simulation.positions_dict() == at_cancel
        assert second.active

        # the new run starts from where the cancelled one stopped
        start = {n.id: (n.x, n.y) for n in second.simulation.nodes}
        assert start == at_cancel

    def test_cancel_keeps_residual_alpha(self, scheduler, graph):
        nodes, edges = graph
        run = scheduler.start(scheduler.engine.build(nodes, edges, 0, 800, 600))
        scheduler.tick()
        scheduler.cancel()
        assert scheduler.engine.cache.residual_alpha == pytest.approx(run.simulation.alpha)
        # an unchanged set still resumes at the leftover temperature
        assert scheduler.engine.build(nodes, edges, 0, 800, 600).alpha > 0


class TestDeferral:
    """Tests for work requested from inside a tick."""

    def test_defer_outside_tick_runs_now(self, scheduler):
        calls = []
        scheduler.defer(lambda: calls.append(1))
        assert calls == [1]

    def test_defer_inside_tick_runs_after_dispatch(self, scheduler, graph):
        nodes, edges = graph
        order = []

        def listener(frame):
            if not order:
                order.append(('in_tick', scheduler.in_tick))
                scheduler.defer(lambda: order.append(('deferred', scheduler.in_tick)))
                order.append(('listener done', None))

        scheduler.on_tick(listener)
        scheduler.start(scheduler.engine.build(nodes, edges, 0, 800, 600))
        scheduler.tick()
        assert order == [('in_tick', True), ('listener done', None), ('deferred', False)]

    def test_run_until_idle_drives_run_started_after_tick(self, scheduler, graph):
        nodes, edges = graph
        scheduler.engine.config.energy_threshold = 0.0
        restarted = []

        def listener(frame):
            if not restarted:
                scheduler.defer(lambda: restarted.append(
                    scheduler.start(scheduler.engine.build(nodes, edges, 0, 800, 600, reheat=0.5))))

        scheduler.on_tick(listener)
        first = scheduler.start(scheduler.engine.build(nodes, edges, 0, 800, 600))
        result = scheduler.run_until_idle()

        assert first.cancelled
        assert restarted[0].finished
        assert restarted[0].simulation.iterations > 0
        assert result is restarted[0].result

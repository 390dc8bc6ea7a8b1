"""Tests for the dependency-ordered task graph."""

from __future__ import annotations

import asyncio
import time

import pytest

from semrel.core.graph import TaskGraph, invoke, topo_sort
from semrel.exceptions import ConfigurationError, StepTimeoutError


class TestTopoSort:
    """Tests for topo_sort()."""

    def test_edges_respected(self):
        order = topo_sort(["c", "b", "a"], [("a", "b"), ("b", "c")])
        assert order == ["a", "b", "c"]

    def test_ties_broken_by_name(self):
        assert topo_sort(["z", "y", "x"], []) == ["x", "y", "z"]

    def test_cycle_raises(self):
        with pytest.raises(ConfigurationError, match="Cycle detected"):
            topo_sort(["a", "b"], [("a", "b"), ("b", "a")])

    def test_unknown_node_raises(self):
        with pytest.raises(ConfigurationError):
            topo_sort(["a"], [("a", "missing")])


class TestInvoke:
    """Tests for invoke()."""

    @pytest.mark.asyncio
    async def test_async_callable(self):
        async def double(x):
            return x * 2

        assert await invoke(double, 4) == 8

    @pytest.mark.asyncio
    async def test_sync_callable(self):
        assert await invoke(lambda x: x + 1, 1) == 2

    @pytest.mark.asyncio
    async def test_sync_callable_returning_awaitable(self):
        async def inner():
            return "done"

        assert await invoke(lambda: inner()) == "done"


class TestTaskGraphDefinition:
    """Tests for building and validating graphs."""

    def test_duplicate_step_rejected(self):
        graph = TaskGraph().add("a", lambda deps: 1)
        with pytest.raises(ConfigurationError, match="Duplicate"):
            graph.add("a", lambda deps: 2)

    def test_unknown_dependency_rejected(self):
        graph = TaskGraph().add("b", lambda deps: 1, requires=["a"])
        with pytest.raises(ConfigurationError, match="unknown step 'a'"):
            graph.validate()

    @pytest.mark.asyncio
    async def test_cycle_rejected_before_any_step_runs(self):
        started: list[str] = []

        def step(name):
            def run(deps):
                started.append(name)

            return run

        graph = TaskGraph()
        graph.add("a", step("a"), requires=["b"])
        graph.add("b", step("b"), requires=["a"])
        graph.add("c", step("c"))

        with pytest.raises(ConfigurationError, match="Cycle"):
            await graph.run()
        assert started == []


class TestTaskGraphRun:
    """Tests for TaskGraph.run()."""

    @pytest.mark.asyncio
    async def test_steps_see_only_their_dependencies(self):
        seen: dict[str, dict] = {}

        def record(name, value):
            def run(deps):
                seen[name] = dict(deps)
                return value

            return run

        graph = TaskGraph()
        graph.add("a", record("a", 1))
        graph.add("b", record("b", 2), requires=["a"])
        graph.add("c", record("c", 3), requires=["a"])

        results = await graph.run()

        assert results == {"a": 1, "b": 2, "c": 3}
        assert seen["a"] == {}
        assert seen["b"] == {"a": 1}
        assert seen["c"] == {"a": 1}

    @pytest.mark.asyncio
    async def test_dependency_view_is_read_only(self):
        async def mutate(deps):
            deps["x"] = 1

        graph = TaskGraph().add("a", lambda deps: 1).add("b", mutate, requires=["a"])
        with pytest.raises(TypeError):
            await graph.run()

    @pytest.mark.asyncio
    async def test_independent_steps_overlap(self):
        b_started = asyncio.Event()
        c_started = asyncio.Event()

        async def b(deps):
            b_started.set()
            await asyncio.wait_for(c_started.wait(), 1)
            return "b"

        async def c(deps):
            c_started.set()
            await asyncio.wait_for(b_started.wait(), 1)
            return "c"

        graph = TaskGraph()
        graph.add("a", lambda deps: "a")
        graph.add("b", b, requires=["a"])
        graph.add("c", c, requires=["a"])

        assert await graph.run() == {"a": "a", "b": "b", "c": "c"}

    @pytest.mark.asyncio
    async def test_results_in_topological_order(self):
        async def slow(deps):
            await asyncio.sleep(0.05)
            return "slow"

        async def fast(deps):
            return "fast"

        graph = TaskGraph().add("b_slow", slow).add("c_fast", fast).add("a_root", fast)
        results = await graph.run()

        assert list(results) == ["a_root", "b_slow", "c_fast"]

    @pytest.mark.asyncio
    async def test_failure_stops_dependents(self):
        started: list[str] = []

        def fail(deps):
            raise RuntimeError("boom")

        def dependent(name):
            def run(deps):
                started.append(name)

            return run

        graph = TaskGraph()
        graph.add("a", fail)
        graph.add("b", dependent("b"), requires=["a"])
        graph.add("c", dependent("c"), requires=["a"])

        with pytest.raises(RuntimeError, match="boom"):
            await graph.run()
        assert started == []

    @pytest.mark.asyncio
    async def test_in_flight_steps_finish_but_are_discarded(self):
        finished: list[str] = []

        async def slow(deps):
            await asyncio.sleep(0.05)
            finished.append("slow")
            return "slow"

        async def fail(deps):
            raise ValueError("bad")

        def after_slow(deps):
            finished.append("after_slow")

        graph = TaskGraph()
        graph.add("fail", fail)
        graph.add("slow", slow)
        graph.add("after_slow", after_slow, requires=["slow"])

        with pytest.raises(ValueError, match="bad"):
            await graph.run()
        assert finished == ["slow"]

    @pytest.mark.asyncio
    async def test_sync_steps_run_off_the_event_loop(self):
        def blocking(deps):
            time.sleep(0.01)
            return "ok"

        assert await TaskGraph().add("blocking", blocking).run() == {"blocking": "ok"}

    @pytest.mark.asyncio
    async def test_step_timeout(self):
        async def hang(deps):
            await asyncio.sleep(5)

        graph = TaskGraph().add("hang", hang, timeout=0.01)
        with pytest.raises(StepTimeoutError) as exc_info:
            await graph.run()

        assert exc_info.value.step == "hang"

"""Dependency-ordered execution of asynchronous steps.

A :class:`TaskGraph` holds named steps, each declaring the steps it needs.
Running the graph starts every step as soon as all of its dependencies have
succeeded, so independent steps overlap. The first failure stops scheduling;
steps already running are awaited, their results dropped, and the failure
is raised as-is.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from semrel.exceptions import ConfigurationError, StepTimeoutError
from semrel.log import get_logger, step_timer

logger = get_logger(__name__)

StepFn = Callable[[Mapping[str, Any]], Awaitable[Any] | Any]


async def invoke(fn: Callable[..., Any], *args: Any) -> Any:
    """Call a sync or async callable and return its result.

    Sync callables run in a worker thread so blocking I/O does not stall
    the event loop.
    """
    if inspect.iscoroutinefunction(fn) or inspect.iscoroutinefunction(
        getattr(fn, "__call__", None)
    ):
        return await fn(*args)
    result = await asyncio.to_thread(fn, *args)
    if inspect.isawaitable(result):
        result = await result
    return result


@dataclass(frozen=True, slots=True)
class Step:
    name: str
    fn: StepFn
    requires: frozenset[str] = field(default_factory=frozenset)
    timeout: float | None = None


def topo_sort(nodes: Iterable[str], edges: Iterable[tuple[str, str]]) -> list[str]:
    """Order nodes so every edge ``(u, v)`` has ``u`` before ``v``.

    Ties are broken by name, so the order is stable for a given graph.

    Raises:
        ConfigurationError: On edges to unknown nodes or on a cycle
    """
    nodes = list(nodes)
    incoming: dict[str, set[str]] = {n: set() for n in nodes}
    outgoing: dict[str, set[str]] = {n: set() for n in nodes}
    for u, v in edges:
        if u not in incoming or v not in incoming:
            raise ConfigurationError(f"Dependency references unknown step: {u!r} -> {v!r}")
        outgoing[u].add(v)
        incoming[v].add(u)

    ordered: list[str] = []
    roots = sorted(n for n in nodes if not incoming[n])
    while roots:
        n = roots.pop(0)
        ordered.append(n)
        for m in sorted(outgoing[n]):
            incoming[m].discard(n)
            if not incoming[m]:
                roots.append(m)
        roots.sort()

    stuck = sorted(n for n in nodes if incoming[n])
    if stuck:
        raise ConfigurationError(f"Cycle detected among steps: {', '.join(stuck)}")
    return ordered


class TaskGraph:
    """A set of named steps with declared dependencies."""

    def __init__(self, name: str = "pipeline") -> None:
        self.name = name
        self._steps: dict[str, Step] = {}
        self.logger = get_logger(f"{__name__}.{name}")

    def add(
        self,
        name: str,
        fn: StepFn,
        requires: Iterable[str] = (),
        *,
        timeout: float | None = None,
    ) -> TaskGraph:
        if name in self._steps:
            raise ConfigurationError(f"Duplicate step name: {name!r}")
        self._steps[name] = Step(name=name, fn=fn, requires=frozenset(requires), timeout=timeout)
        return self

    @property
    def steps(self) -> Mapping[str, Step]:
        return MappingProxyType(self._steps)

    def validate(self) -> list[str]:
        """Check the graph and return its execution order.

        Raises:
            ConfigurationError: On unknown dependencies or cycles
        """
        edges = []
        for step in self._steps.values():
            for dep in step.requires:
                if dep not in self._steps:
                    raise ConfigurationError(
                        f"Step {step.name!r} depends on unknown step {dep!r}"
                    )
                edges.append((dep, step.name))
        return topo_sort(self._steps, edges)

    async def _execute(self, step: Step, results: Mapping[str, Any]) -> Any:
        visible = MappingProxyType({dep: results[dep] for dep in step.requires})
        with step_timer(self.logger, step.name):
            if step.timeout is None:
                return await invoke(step.fn, visible)
            try:
                return await asyncio.wait_for(invoke(step.fn, visible), step.timeout)
            except TimeoutError as e:
                raise StepTimeoutError(step.name, step.timeout) from e

    async def run(self) -> dict[str, Any]:
        """Run all steps and return their results keyed by step name.

        Results are ordered by the graph's topological order regardless of
        the order in which steps happened to finish.
        """
        order = self.validate()
        position = {name: i for i, name in enumerate(order)}
        results: dict[str, Any] = {}
        pending = list(order)
        running: dict[asyncio.Task[Any], str] = {}
        failure: tuple[int, BaseException] | None = None

        while pending or running:
            if failure is None:
                ready = [
                    name
                    for name in pending
                    if self._steps[name].requires.issubset(results.keys())
                ]
                for name in ready:
                    pending.remove(name)
                    self.logger.debug("Scheduling step %s", name)
                    task = asyncio.create_task(
                        self._execute(self._steps[name], results), name=f"{self.name}.{name}"
                    )
                    running[task] = name

            if not running:
                break

            done, _ = await asyncio.wait(running, return_when=asyncio.FIRST_COMPLETED)
            for task in sorted(done, key=lambda t: position[running[t]]):
                name = running.pop(task)
                error = task.exception()
                if error is not None:
                    self.logger.debug("Step %s failed: %s", name, error)
                    if failure is None:
                        failure = (position[name], error)
                elif failure is None:
                    results[name] = task.result()

        if failure is not None:
            raise failure[1]
        return {name: results[name] for name in order}

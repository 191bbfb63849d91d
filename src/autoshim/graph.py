# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import heapq
from collections import defaultdict, deque
from typing import Iterable


class CycleError(Exception):
    def __init__(self, cycle: list[str]):
        self.cycle = cycle
        super().__init__(" -> ".join(cycle))


class DependencyGraph:
    """Directed graph from an item key to the keys it depends on."""

    def __init__(self):
        self._nodes: set[str] = set()
        self._edges: dict[str, set[str]] = defaultdict(set)
        self._reverse: dict[str, set[str]] = defaultdict(set)

    def __contains__(self, key: str) -> bool:
        return key in self._nodes

    def __len__(self):
        return len(self._nodes)

    @property
    def nodes(self) -> list[str]:
        return sorted(self._nodes)

    def add_node(self, key: str):
        self._nodes.add(key)

    def add_edge(self, src: str, dst: str):
        if src == dst:
            return
        self._nodes.add(src)
        self._nodes.add(dst)
        self._edges[src].add(dst)
        self._reverse[dst].add(src)

    def dependencies(self, key: str) -> list[str]:
        return sorted(self._edges.get(key, ()))

    def dependents(self, key: str) -> list[str]:
        return sorted(self._reverse.get(key, ()))

    def transitive_dependents(self, keys: Iterable[str]) -> list[str]:
        """Every node that reaches one of ``keys``, excluding ``keys``."""
        start = set(keys)
        seen = set(start)
        worklist = deque(sorted(start))
        while worklist:
            key = worklist.popleft()
            for dep in self.dependents(key):
                if dep not in seen:
                    seen.add(dep)
                    worklist.append(dep)
        return sorted(seen - start)

    def topological_order(
        self, keys: Iterable[str] | None = None, strict: bool = False
    ) -> list[str]:
        """Order ``keys`` so that dependencies come first.

        Ties break by key. Edges leaving ``keys`` are ignored. A cycle is
        broken by releasing the smallest key on it, unless ``strict`` is
        set, in which case a ``CycleError`` naming the cycle is raised.
        """
        subset = set(self._nodes if keys is None else keys)
        indegree = {
            k: len(self._edges.get(k, set()) & subset) for k in subset
        }

        ready = [k for k, n in indegree.items() if n == 0]
        heapq.heapify(ready)
        order = []
        done = set()

        def release(key):
            done.add(key)
            order.append(key)
            for dependent in self._reverse.get(key, ()):
                if dependent in subset and dependent not in done:
                    indegree[dependent] -= 1
                    if indegree[dependent] == 0:
                        heapq.heappush(ready, dependent)

        while len(done) < len(subset):
            while ready:
                key = heapq.heappop(ready)
                if key not in done:
                    release(key)
            if len(done) == len(subset):
                break
            cycle = self.find_cycle(subset - done)
            if strict:
                raise CycleError(cycle)
            release(cycle[0])

        return order

    def find_cycle(self, keys: Iterable[str]) -> list[str]:
        """Return one cycle among ``keys``, smallest key first."""
        subset = set(keys)
        for start in sorted(subset):
            # Iterative DFS recording the path from ``start``.
            path = [start]
            on_path = {start}
            iters = [iter(sorted(self._edges.get(start, set()) & subset))]
            visited = {start}
            while iters:
                nxt = next(iters[-1], None)
                if nxt is None:
                    iters.pop()
                    on_path.discard(path.pop())
                    continue
                if nxt == start:
                    return list(path)
                if nxt in visited or nxt in on_path:
                    continue
                visited.add(nxt)
                path.append(nxt)
                on_path.add(nxt)
                iters.append(iter(sorted(self._edges.get(nxt, set()) & subset)))
        return sorted(subset)

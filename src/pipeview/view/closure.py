"""Downstream closure of seed jobs, used for view membership only."""

from collections import deque

from .protocol import Job, JobRegistry
from .seeds import Seed


def downstream_closure(job: Job, registry: JobRegistry) -> set[str]:
    """Names of every job reachable from ``job`` over forward trigger edges.

    The start job itself is only included when a cycle leads back to it.
    """
    visited: set[str] = set()
    queue = deque(registry.downstream_jobs(job))
    while queue:
        nxt = queue.popleft()
        if nxt.name in visited:
            continue
        visited.add(nxt.name)
        queue.extend(registry.downstream_jobs(nxt))
    return visited


def view_items(seeds: list[Seed], registry: JobRegistry) -> list[str]:
    items: dict[str, None] = {}
    for seed in seeds:
        items.update(dict.fromkeys(sorted(downstream_closure(seed.job, registry))))
    return list(items)

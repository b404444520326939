"""Collaborator protocols consumed by the pipeline view engine.

The view never schedules, executes or stores builds itself. Everything it
needs from the job/build subsystem, the security backend and the plugin
registries is expressed here so that production adapters and test fakes are
interchangeable.
"""

from typing import Any, Callable, Protocol

from .model import BuildCause, Pipeline


class Job(Protocol):
    name: str


class JobRegistry(Protocol):
    def find_job(self, name: str) -> Job | None: ...

    def find_jobs_matching(self, pattern: str) -> dict[str, Job]: ...

    def downstream_jobs(self, job: Job) -> list[Job]: ...

    def schedule_build(self, job: Job, cause: BuildCause) -> None: ...


class PipelineHandle(Protocol):
    def aggregate(self) -> Pipeline: ...

    def latest(self, count: int) -> list[Pipeline]: ...


class PipelineBuilder(Protocol):
    def construct(self, name: str, first_job: Job) -> PipelineHandle: ...


class Principal(Protocol):
    name: str

    def has_build_permission(self, job: Job) -> bool: ...


PrincipalProvider = Callable[[], Principal]


class TriggerStrategy(Protocol):
    def is_applicable(self, downstream: Job, upstream: Job) -> bool: ...

    def invoke(self, downstream: Job, upstream: Job, build_id: str,
               scope: Any) -> None: ...


class StrategyLookup(Protocol):
    def find(self, downstream: Job, upstream: Job) -> TriggerStrategy | None: ...


Comparator = Callable[[Any, Any], int]


class ComparatorLookup(Protocol):
    def find(self, sorter_id: str) -> Any: ...

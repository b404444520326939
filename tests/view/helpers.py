"""Fake collaborators for pipeline view tests."""

from dataclasses import dataclass, field

from pipeview.view.config import ComponentSpec, RegExpSpec, ViewConfig
from pipeview.view.errors import PipelineConstructionError
from pipeview.view.model import AGGREGATED, LATEST, BuildCause, Pipeline


@dataclass(frozen=True)
class FakeJob:
    name: str


class FakeRegistry:
    """In-memory registry: explicit jobs, direct edges and canned regex matches."""

    def __init__(self, names: list[str] | None = None,
                 edges: dict[str, list[str]] | None = None,
                 matches: dict[str, dict[str, str]] | None = None):
        self.jobs = {n: FakeJob(n) for n in names or []}
        self.edges = edges or {}
        self.matches = matches or {}
        self.scheduled: list[tuple[str, BuildCause]] = []

    def find_job(self, name):
        return self.jobs.get(name)

    def find_jobs_matching(self, pattern):
        return {group: self.jobs[name] for group, name in self.matches.get(pattern, {}).items()}

    def downstream_jobs(self, job):
        return [self.jobs[n] for n in self.edges.get(job.name, [])]

    def schedule_build(self, job, cause):
        self.scheduled.append((job.name, cause))


class FakeHandle:
    def __init__(self, name: str, builds: list[int]):
        self.name = name
        self.builds = builds
        self.latest_calls: list[int] = []

    def aggregate(self):
        return Pipeline(name=self.name, kind=AGGREGATED)

    def latest(self, count):
        self.latest_calls.append(count)
        return [Pipeline(name=self.name, kind=LATEST, build_number=n)
                for n in sorted(self.builds, reverse=True)[:count]]


class FakeBuilder:
    """Builds pipelines from a job -> build numbers map; listed jobs fail."""

    def __init__(self, builds: dict[str, list[int]] | None = None,
                 failing: dict[str, str] | None = None):
        self.builds = builds or {}
        self.failing = failing or {}
        self.constructed: list[str] = []

    def construct(self, name, first_job):
        self.constructed.append(first_job.name)
        if first_job.name in self.failing:
            raise PipelineConstructionError(self.failing[first_job.name])
        return FakeHandle(name, self.builds.get(first_job.name, []))


@dataclass
class FakePrincipal:
    name: str = "alice"
    allowed: set[str] | None = None

    def has_build_permission(self, job):
        return self.allowed is None or job.name in self.allowed


@dataclass
class FakeStrategy:
    applicable: bool = True
    error: Exception | None = None
    calls: list[tuple] = field(default_factory=list)

    def is_applicable(self, downstream, upstream):
        return self.applicable

    def invoke(self, downstream, upstream, build_id, scope):
        self.calls.append((downstream.name, upstream.name, build_id, scope))
        if self.error is not None:
            raise self.error


def make_config(
    specs: list[tuple[str, str]] | None = None,
    regexps: list[str] | None = None,
    **overrides,
) -> ViewConfig:
    return ViewConfig(
        name=overrides.pop("name", "Delivery"),
        component_specs=[ComponentSpec(n, j) for n, j in specs or []],
        regexp_first_jobs=[RegExpSpec(r) for r in regexps or []],
        **overrides,
    )


def name_comparator():
    """Comparator factory ordering components by name, for sorter registries."""
    def compare(a, b):
        return (a.name > b.name) - (a.name < b.name)
    return compare

"""JSON-backed job topology standing in for a live build scheduler.

A topology file lists jobs with their automatic and manual downstream edges,
plus a build history per job in which downstream builds record the upstream
build that caused them::

    {
      "jobs": [
        {"name": "build-alpha", "downstream": ["test-alpha"],
         "manualDownstream": ["deploy-alpha"]}
      ],
      "builds": {
        "build-alpha": [{"number": 2, "status": "SUCCESS"}],
        "test-alpha": [{"number": 7, "status": "FAILED",
                        "upstream": {"job": "build-alpha", "number": 2}}]
      }
    }
"""

import json
import re
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pipeview.view.errors import PipelineConstructionError, TriggerError
from pipeview.view.model import AGGREGATED, LATEST, BuildCause, Pipeline, Stage

IDLE = "IDLE"


@dataclass
class StaticJob:
    name: str
    downstream: list[str] = field(default_factory=list)
    manual_downstream: list[str] = field(default_factory=list)

    def edges(self) -> list[tuple[str, bool]]:
        return ([(n, False) for n in self.downstream]
                + [(n, True) for n in self.manual_downstream])


@dataclass(frozen=True)
class BuildRecord:
    number: int
    status: str
    upstream_job: str = ""
    upstream_number: int | None = None


@dataclass(frozen=True)
class QueuedBuild:
    job_name: str
    cause: BuildCause


class StaticJobRegistry:
    def __init__(self, jobs: list[StaticJob], builds: dict[str, list[BuildRecord]] | None = None):
        self._jobs: dict[str, StaticJob] = {j.name: j for j in jobs}
        self._builds: dict[str, list[BuildRecord]] = {
            name: sorted(records, key=lambda b: b.number, reverse=True)
            for name, records in (builds or {}).items()
        }
        self.queue: list[QueuedBuild] = []

    def all_jobs(self) -> list[StaticJob]:
        return list(self._jobs.values())

    def find_job(self, name: str) -> StaticJob | None:
        return self._jobs.get(name)

    def find_jobs_matching(self, pattern: str) -> dict[str, StaticJob]:
        compiled = re.compile(pattern)
        matches: dict[str, StaticJob] = {}
        for job in self._jobs.values():
            m = compiled.search(job.name)
            if not m:
                continue
            key = m.group(1) if compiled.groups >= 1 else job.name
            matches[key] = job
        return matches

    def downstream_jobs(self, job: StaticJob) -> list[StaticJob]:
        return [self._jobs[n] for n, _ in job.edges() if n in self._jobs]

    def schedule_build(self, job: StaticJob, cause: BuildCause) -> None:
        self.queue.append(QueuedBuild(job.name, cause))

    def builds_of(self, job_name: str) -> list[BuildRecord]:
        return self._builds.get(job_name, [])

    def find_build(self, job_name: str, number: int) -> BuildRecord | None:
        for b in self.builds_of(job_name):
            if b.number == number:
                return b
        return None

    def find_caused_build(self, job_name: str, upstream_job: str,
                          upstream_number: int) -> BuildRecord | None:
        for b in self.builds_of(job_name):
            if b.upstream_job == upstream_job and b.upstream_number == upstream_number:
                return b
        return None


@dataclass(frozen=True)
class _ChainLink:
    job_name: str
    parent: str
    manual: bool


class StaticPipelineHandle:
    def __init__(self, name: str, registry: StaticJobRegistry, chain: list[_ChainLink]):
        self.name = name
        self.registry = registry
        self.chain = chain

    def aggregate(self) -> Pipeline:
        stages = []
        for link in self.chain:
            builds = self.registry.builds_of(link.job_name)
            last = builds[0] if builds else None
            stages.append(Stage(
                name=link.job_name,
                job_name=link.job_name,
                status=last.status if last else IDLE,
                build_number=last.number if last else None,
                manual=link.manual,
            ))
        return Pipeline(name=self.name, kind=AGGREGATED, stages=tuple(stages))

    def latest(self, count: int) -> list[Pipeline]:
        seed = self.chain[0].job_name
        return [self._pipeline_for(build)
                for build in self.registry.builds_of(seed)[:count]]

    def _pipeline_for(self, seed_build: BuildRecord) -> Pipeline:
        numbers: dict[str, int] = {self.chain[0].job_name: seed_build.number}
        stages = [Stage(self.chain[0].job_name, self.chain[0].job_name,
                        seed_build.status, seed_build.number)]
        for link in self.chain[1:]:
            build = None
            parent_number = numbers.get(link.parent)
            if parent_number is not None:
                build = self.registry.find_caused_build(link.job_name, link.parent, parent_number)
            if build is not None:
                numbers[link.job_name] = build.number
            stages.append(Stage(
                name=link.job_name,
                job_name=link.job_name,
                status=build.status if build else IDLE,
                build_number=build.number if build else None,
                manual=link.manual,
            ))
        return Pipeline(name=self.name, kind=LATEST,
                        build_number=seed_build.number, stages=tuple(stages))


class StaticPipelineBuilder:
    def __init__(self, registry: StaticJobRegistry):
        self.registry = registry

    def construct(self, name: str, first_job: StaticJob) -> StaticPipelineHandle:
        chain = [_ChainLink(first_job.name, "", False)]
        seen = {first_job.name}
        queue = deque([first_job])
        while queue:
            job = queue.popleft()
            for next_name, manual in job.edges():
                nxt = self.registry.find_job(next_name)
                if nxt is None:
                    raise PipelineConstructionError(
                        f"Job {next_name} triggered by {job.name} does not exist")
                if next_name in seen:
                    continue
                seen.add(next_name)
                chain.append(_ChainLink(next_name, job.name, manual))
                queue.append(nxt)
        return StaticPipelineHandle(name, self.registry, chain)


@dataclass
class StaticPrincipal:
    name: str
    permitted: set[str] | None = None

    def has_build_permission(self, job: Any) -> bool:
        return self.permitted is None or job.name in self.permitted


class ManualEdgeTrigger:
    """Promote along a manual edge, correlating ``build_id`` to an upstream build."""

    def is_applicable(self, downstream: StaticJob, upstream: StaticJob) -> bool:
        return downstream.name in upstream.manual_downstream

    def invoke(self, downstream: StaticJob, upstream: StaticJob, build_id: str,
               scope: StaticJobRegistry) -> None:
        try:
            number = int(build_id)
        except ValueError as e:
            raise TriggerError(f"Invalid build id {build_id!r} for {upstream.name}") from e
        if scope.find_build(upstream.name, number) is None:
            raise TriggerError(f"Could not find build {build_id} of {upstream.name}")
        scope.schedule_build(downstream, BuildCause(
            kind="upstream", upstream_job=upstream.name, upstream_build=number))


# -- Loading ---------------------------------------------------------------------

def _parse_build(raw: dict) -> BuildRecord:
    upstream = raw.get("upstream") or {}
    return BuildRecord(
        number=int(raw["number"]),
        status=raw.get("status", IDLE),
        upstream_job=upstream.get("job", ""),
        upstream_number=upstream.get("number"),
    )


def load_topology(path: Path) -> StaticJobRegistry:
    if not path.is_file():
        raise FileNotFoundError(f"Topology not found: {path}")
    data = json.loads(path.read_text())
    jobs = [
        StaticJob(
            name=j["name"],
            downstream=j.get("downstream", []),
            manual_downstream=j.get("manualDownstream", []),
        )
        for j in data.get("jobs", [])
    ]
    builds = {
        name: [_parse_build(b) for b in records]
        for name, records in data.get("builds", {}).items()
    }
    return StaticJobRegistry(jobs, builds)

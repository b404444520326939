"""Seed resolution: which job starts each component."""

from dataclasses import dataclass

from .config import ComponentSpec, RegExpSpec
from .errors import JobNotFoundError
from .protocol import Job, JobRegistry


@dataclass(frozen=True)
class Seed:
    name: str
    job: Job


def get_job(registry: JobRegistry, name: str) -> Job:
    job = registry.find_job(name)
    if job is None:
        raise JobNotFoundError(name)
    return job


def resolve_seeds(
    component_specs: list[ComponentSpec] | None,
    regexp_specs: list[RegExpSpec] | None,
    registry: JobRegistry,
) -> list[Seed]:
    """Explicit specs in configured order, then every regex match.

    Regex matches come back in whatever order the registry enumerates them.
    Nothing is de-duplicated: a job picked up by two specs yields two seeds.
    """
    seeds: list[Seed] = []
    for spec in component_specs or []:
        seeds.append(Seed(name=spec.name, job=get_job(registry, spec.first_job)))
    for spec in regexp_specs or []:
        for captured, job in registry.find_jobs_matching(spec.regexp).items():
            seeds.append(Seed(name=captured, job=job))
    return seeds

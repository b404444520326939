"""Render-cycle value types: components, pipelines, stages, build causes."""

from dataclasses import asdict, dataclass, field

AGGREGATED = "aggregated"
LATEST = "latest"


@dataclass(frozen=True)
class Stage:
    name: str
    job_name: str
    status: str = "IDLE"
    build_number: int | None = None
    manual: bool = False


@dataclass(frozen=True)
class Pipeline:
    """One rendered delivery-flow instance.

    ``kind`` is ``"latest"`` for a snapshot tied to ``build_number`` of the
    seed job, or ``"aggregated"`` for a roll-up over the most recent builds
    (``build_number`` is then ``None``).
    """

    name: str
    kind: str = LATEST
    build_number: int | None = None
    stages: tuple[Stage, ...] = ()

    @property
    def aggregated(self) -> bool:
        return self.kind == AGGREGATED


@dataclass
class Component:
    name: str
    first_job_name: str
    pipelines: list[Pipeline] = field(default_factory=list)


@dataclass(frozen=True)
class BuildCause:
    kind: str
    user: str = ""
    upstream_job: str = ""
    upstream_build: int | None = None


@dataclass(frozen=True)
class TriggerRequest:
    project_name: str
    upstream_name: str
    build_id: str

    def describe(self) -> str:
        return (f"{self.project_name} for upstream {self.upstream_name} "
                f"id: {self.build_id}")


def component_to_dict(component: Component) -> dict:
    return {
        "name": component.name,
        "firstJobName": component.first_job_name,
        "pipelines": [
            {
                "name": p.name,
                "aggregated": p.aggregated,
                "buildNumber": p.build_number,
                "stages": [asdict(s) for s in p.stages],
            }
            for p in component.pipelines
        ],
    }

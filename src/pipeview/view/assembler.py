"""Component assembly: aggregated snapshot first, then the latest builds."""

from dataclasses import dataclass

from .config import clamp_no_of_pipelines
from .errors import PipelineConstructionError
from .model import Component
from .protocol import Job, PipelineBuilder


@dataclass
class AssemblyResult:
    component: Component | None = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.component is not None


def assemble_component(
    name: str,
    first_job: Job,
    builder: PipelineBuilder,
    show_aggregated: bool,
    latest_count: int,
) -> AssemblyResult:
    latest_count = clamp_no_of_pipelines(latest_count)
    try:
        handle = builder.construct(name, first_job)
        pipelines = []
        if show_aggregated:
            pipelines.append(handle.aggregate())
        if latest_count:
            pipelines.extend(handle.latest(latest_count)[:latest_count])
    except PipelineConstructionError as e:
        return AssemblyResult(error=str(e) or type(e).__name__)
    return AssemblyResult(component=Component(name, first_job.name, pipelines))

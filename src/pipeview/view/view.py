"""DeliveryPipelineView: the render orchestrator and presentation-facing API."""

import time
from pathlib import Path
from typing import Any

from pipeview.core.events import EventType, emit
from pipeview.core.logging import format_timestamp, log_activity
from pipeview.core.paths import activity_log_path

from .assembler import assemble_component
from .closure import view_items
from .config import (
    ViewConfig,
    ViewConfigStore,
    apply_job_rename,
    no_of_columns_options,
    no_of_pipelines_options,
    normalize_sorting,
)
from .model import BuildCause, Component, TriggerRequest, component_to_dict
from .protocol import JobRegistry, PipelineBuilder, PrincipalProvider, StrategyLookup
from .seeds import get_job, resolve_seeds
from .sorting import ComparatorRegistry, sort_components, sorting_options
from .triggers import ManualTriggerDispatcher, TriggerStrategyRegistry


class DeliveryPipelineView:
    """One dashboard view over a live job topology.

    Every ``get_components`` call recomputes from the registry. The only
    state kept between calls is the last render error, which concurrent
    renders overwrite in last-writer-wins order.
    """

    def __init__(
        self,
        config: ViewConfig,
        registry: JobRegistry,
        builder: PipelineBuilder,
        current_principal: PrincipalProvider,
        comparators: ComparatorRegistry | None = None,
        strategies: StrategyLookup | None = None,
        scope: Any = None,
        state_dir: Path | None = None,
        store: ViewConfigStore | None = None,
    ):
        self.config = config
        self.registry = registry
        self.builder = builder
        self.current_principal = current_principal
        self.comparators = comparators or ComparatorRegistry()
        self.strategies = strategies or TriggerStrategyRegistry()
        self.state_dir = str(state_dir) if state_dir else ""
        self.activity_log = activity_log_path(Path(state_dir)) if state_dir else ""
        self.store = store
        self._error: str | None = None
        self._dispatcher = ManualTriggerDispatcher(
            registry, self.strategies, current_principal,
            scope=scope, activity_log=self.activity_log,
            state_dir=self.state_dir, view_name=config.name,
        )

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def sorting(self) -> str | None:
        self.config.sorting = normalize_sorting(self.config.sorting)
        return self.config.sorting

    @sorting.setter
    def sorting(self, value: str | None) -> None:
        self.config.sorting = normalize_sorting(value)

    # -- Render ----------------------------------------------------------------

    def get_components(self) -> list[Component]:
        log_activity(self.activity_log, "render", "Getting pipelines")
        seeds = resolve_seeds(self.config.component_specs,
                              self.config.regexp_first_jobs, self.registry)

        components: list[Component] = []
        for seed in seeds:
            result = assemble_component(
                seed.name, seed.job, self.builder,
                show_aggregated=self.config.show_aggregated_pipeline,
                latest_count=self.config.no_of_pipelines,
            )
            if not result.ok:
                self._error = result.error
                log_activity(self.activity_log, "render",
                             f"Render failed at {seed.name}: {result.error}")
                emit(self.state_dir, EventType.RENDER_FAILED, "render",
                     view=self.name, job=seed.job.name, error=result.error)
                return []
            components.append(result.component)

        sort_components(components, self.sorting, self.comparators)
        self._error = None
        emit(self.state_dir, EventType.RENDER_COMPLETED, "render",
             view=self.name, components=len(components))
        return components

    def get_last_error(self) -> str | None:
        return self._error

    def last_updated(self) -> str:
        return format_timestamp(int(time.time() * 1000))

    # -- Membership ------------------------------------------------------------

    def get_items(self) -> list[str]:
        seeds = resolve_seeds(self.config.component_specs,
                              self.config.regexp_first_jobs, self.registry)
        return view_items(seeds, self.registry)

    def contains(self, job_name: str) -> bool:
        return job_name in self.get_items()

    # -- Actions ---------------------------------------------------------------

    def start_job(self, job_name: str) -> None:
        job = get_job(self.registry, job_name)
        principal = self.current_principal()
        self.registry.schedule_build(job, BuildCause(kind="user", user=principal.name))
        log_activity(self.activity_log, "start", f"Scheduled {job_name} for {principal.name}")
        emit(self.state_dir, EventType.JOB_STARTED, "start", view=self.name, job=job_name)

    def trigger_manual(self, project_name: str, upstream_name: str, build_id: str) -> None:
        self._dispatcher.dispatch(TriggerRequest(project_name, upstream_name, str(build_id)))

    def on_job_renamed(self, old_name: str, new_name: str | None) -> None:
        """Follow a rename; ``new_name`` of None means the job was deleted."""
        touched = []
        if self.store is not None and self.store.exists():
            self.config = self.store.update(
                lambda cfg: touched.extend(apply_job_rename(cfg, old_name, new_name)))
        else:
            touched.extend(apply_job_rename(self.config, old_name, new_name))
        if not touched:
            return
        event = EventType.SPEC_REMOVED if new_name is None else EventType.SPEC_RENAMED
        emit(self.state_dir, event, "config", view=self.name,
             old_name=old_name, new_name=new_name or "")

    # -- Export ----------------------------------------------------------------

    def options(self) -> dict:
        return {
            "noOfPipelines": no_of_pipelines_options(),
            "noOfColumns": no_of_columns_options(),
            "sorting": sorting_options(self.comparators),
        }

    def to_dict(self) -> dict:
        components = self.get_components()
        return {
            "name": self.name,
            "pipelines": [component_to_dict(c) for c in components],
            "error": self.get_last_error(),
            "lastUpdated": self.last_updated(),
            "allowManualTriggers": self.config.allow_manual_triggers,
            "showAvatars": self.config.show_avatars,
            "showChanges": self.config.show_changes,
            "noOfColumns": self.config.no_of_columns,
            "updateInterval": self.config.effective_update_interval(),
            "fullScreenCss": self.config.full_screen_css,
            "embeddedCss": self.config.embedded_css,
        }

"""Manual promotion of a correlated build from one stage to the next."""

from typing import Any

from pipeview.core.events import EventType, emit
from pipeview.core.logging import log_activity, log_warning

from .errors import AuthorizationError, JobNotFoundError, TriggerNotFoundError
from .model import TriggerRequest
from .protocol import Job, JobRegistry, PrincipalProvider, StrategyLookup, TriggerStrategy
from .seeds import get_job


class TriggerStrategyRegistry:
    """Ordered strategies; the first applicable one wins."""

    def __init__(self, strategies: list[TriggerStrategy] | None = None):
        self._strategies: list[TriggerStrategy] = list(strategies or [])

    def register(self, strategy: TriggerStrategy) -> None:
        self._strategies.append(strategy)

    def find(self, downstream: Job, upstream: Job) -> TriggerStrategy | None:
        for strategy in self._strategies:
            if strategy.is_applicable(downstream, upstream):
                return strategy
        return None


class ManualTriggerDispatcher:
    """Resolve, authorize, look up a strategy and invoke it. No retries."""

    def __init__(
        self,
        registry: JobRegistry,
        strategies: StrategyLookup,
        current_principal: PrincipalProvider,
        scope: Any = None,
        activity_log: str = "",
        state_dir: str = "",
        view_name: str = "",
    ):
        self.registry = registry
        self.strategies = strategies
        self.current_principal = current_principal
        self.scope = scope if scope is not None else registry
        self.activity_log = activity_log
        self.state_dir = state_dir
        self.view_name = view_name

    def _emit(self, event_type: EventType, request: TriggerRequest, **kwargs) -> None:
        emit(self.state_dir, event_type, "trigger", view=self.view_name,
             job=request.project_name, upstream=request.upstream_name,
             build_id=request.build_id, **kwargs)

    def dispatch(self, request: TriggerRequest) -> None:
        log_activity(self.activity_log, "trigger", f"Trigger manual build {request.describe()}")
        self._emit(EventType.TRIGGER_REQUESTED, request)

        try:
            project = get_job(self.registry, request.project_name)
            upstream = get_job(self.registry, request.upstream_name)
        except JobNotFoundError as e:
            self._emit(EventType.TRIGGER_FAILED, request, error=str(e))
            raise

        principal = self.current_principal()
        if not principal.has_build_permission(project):
            self._emit(EventType.TRIGGER_DENIED, request)
            raise AuthorizationError(
                f"{principal.name} is not authorized to build {request.project_name}")

        strategy = self.strategies.find(project, upstream)
        if strategy is None:
            message = f"Trigger not found for manual build {request.describe()}"
            log_warning(self.activity_log, "trigger", message)
            self._emit(EventType.TRIGGER_NOT_FOUND, request, error=message)
            raise TriggerNotFoundError(message)

        try:
            strategy.invoke(project, upstream, request.build_id, self.scope)
        except Exception as e:
            log_warning(self.activity_log, "trigger",
                        f"Could not trigger manual build {request.describe()}: {e}")
            self._emit(EventType.TRIGGER_FAILED, request, error=str(e))
            raise
        self._emit(EventType.TRIGGER_COMPLETED, request)

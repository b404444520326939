"""View configuration loading, validation and job-rename bookkeeping."""

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from pipeview.core.state import LockedStateManager

from .errors import ConfigurationError

DEFAULT_INTERVAL = 2
DEFAULT_NO_OF_PIPELINES = 3
MAX_NO_OF_PIPELINES = 10
MAX_NO_OF_COLUMNS = 3

NONE_SORTER = "none"
# Sorter id saved by Delivery Pipeline plugin view configurations imported as-is;
# its comparator sometimes reordered components.
LEGACY_NONE_SORTER = "se.diabol.jenkins.pipeline.sort.NoOpComparator"


@dataclass
class ComponentSpec:
    name: str
    first_job: str


@dataclass
class RegExpSpec:
    regexp: str


def normalize_sorting(sorting: str | None) -> str | None:
    if sorting == LEGACY_NONE_SORTER:
        return NONE_SORTER
    return sorting


def clamp_no_of_pipelines(value: int) -> int:
    return max(0, min(MAX_NO_OF_PIPELINES, value))


def _blank_to_none(value: str | None) -> str | None:
    if value is not None and value.strip() == "":
        return None
    return value


@dataclass
class ViewConfig:
    name: str
    component_specs: list[ComponentSpec] = field(default_factory=list)
    regexp_first_jobs: list[RegExpSpec] = field(default_factory=list)
    no_of_pipelines: int = DEFAULT_NO_OF_PIPELINES
    show_aggregated_pipeline: bool = False
    no_of_columns: int = 1
    sorting: str | None = NONE_SORTER
    full_screen_css: str | None = None
    embedded_css: str | None = None
    show_avatars: bool = False
    update_interval: int = DEFAULT_INTERVAL
    show_changes: bool = False
    allow_manual_triggers: bool = False

    def __post_init__(self):
        self.no_of_pipelines = clamp_no_of_pipelines(self.no_of_pipelines)
        self.sorting = normalize_sorting(self.sorting)
        self.full_screen_css = _blank_to_none(self.full_screen_css)
        self.embedded_css = _blank_to_none(self.embedded_css)

    def effective_update_interval(self) -> int:
        # Configurations saved before the interval existed carry 0.
        if self.update_interval == 0:
            self.update_interval = DEFAULT_INTERVAL
        return self.update_interval


# -- Validation ------------------------------------------------------------------

def validate_regexp(value: str | None) -> None:
    if value is None:
        return
    try:
        pattern = re.compile(value)
    except re.error as e:
        raise ConfigurationError(f"Syntax error in regular-expression pattern: {e}") from e
    if pattern.groups != 1:
        raise ConfigurationError("No capture group defined")


def validate_update_interval(value: Any) -> int:
    try:
        as_int = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError("Value must be an integer") from e
    if as_int <= 0:
        raise ConfigurationError("Value must be greater than 0")
    return as_int


def validate_component_name(value: str | None) -> None:
    if value is None or value.strip() == "":
        raise ConfigurationError("Please supply a title!")


def validate_view_config(config: ViewConfig) -> None:
    for spec in config.component_specs:
        validate_component_name(spec.name)
        if not spec.first_job:
            raise ConfigurationError(f"Component '{spec.name}' has no first job")
    for spec in config.regexp_first_jobs:
        validate_regexp(spec.regexp)
    # 0 is tolerated and read back as the default interval.
    if config.update_interval != 0:
        validate_update_interval(config.update_interval)
    if not 1 <= config.no_of_columns <= MAX_NO_OF_COLUMNS:
        raise ConfigurationError(
            f"Number of columns must be between 1 and {MAX_NO_OF_COLUMNS}")


# -- Form options ----------------------------------------------------------------

def no_of_pipelines_options() -> list[tuple[str, str]]:
    return [(str(i), str(i)) for i in range(MAX_NO_OF_PIPELINES + 1)]


def no_of_columns_options() -> list[tuple[str, str]]:
    return [(str(i), str(i)) for i in range(1, MAX_NO_OF_COLUMNS + 1)]


# -- Job rename notifications ----------------------------------------------------

def apply_job_rename(config: ViewConfig, old_name: str,
                     new_name: str | None) -> list[ComponentSpec]:
    """Follow a job rename (or deletion when ``new_name`` is None).

    Returns the specs that referenced ``old_name``.
    """
    touched = []
    kept = []
    for spec in config.component_specs:
        if spec.first_job == old_name:
            touched.append(spec)
            if new_name is None:
                continue
            spec.first_job = new_name
        kept.append(spec)
    config.component_specs[:] = kept
    return touched


# -- Serialization ---------------------------------------------------------------

def _config_to_dict(config: ViewConfig) -> dict:
    return {
        "name": config.name,
        "componentSpecs": [
            {"name": s.name, "firstJob": s.first_job} for s in config.component_specs
        ],
        "regexpFirstJobs": [{"regexp": s.regexp} for s in config.regexp_first_jobs],
        "noOfPipelines": config.no_of_pipelines,
        "showAggregatedPipeline": config.show_aggregated_pipeline,
        "noOfColumns": config.no_of_columns,
        "sorting": normalize_sorting(config.sorting),
        "fullScreenCss": config.full_screen_css,
        "embeddedCss": config.embedded_css,
        "showAvatars": config.show_avatars,
        "updateInterval": config.update_interval,
        "showChanges": config.show_changes,
        "allowManualTriggers": config.allow_manual_triggers,
    }


def _dict_to_config(d: dict) -> ViewConfig:
    try:
        specs = [ComponentSpec(name=s["name"], first_job=s["firstJob"])
                 for s in d.get("componentSpecs") or []]
        regexps = [RegExpSpec(regexp=s["regexp"])
                   for s in d.get("regexpFirstJobs") or []]
        config = ViewConfig(
            name=d["name"],
            component_specs=specs,
            regexp_first_jobs=regexps,
            no_of_pipelines=int(d.get("noOfPipelines", DEFAULT_NO_OF_PIPELINES)),
            show_aggregated_pipeline=d.get("showAggregatedPipeline", False),
            no_of_columns=int(d.get("noOfColumns", 1)),
            sorting=d.get("sorting", NONE_SORTER),
            full_screen_css=d.get("fullScreenCss"),
            embedded_css=d.get("embeddedCss"),
            show_avatars=d.get("showAvatars", False),
            update_interval=int(d.get("updateInterval", DEFAULT_INTERVAL)),
            show_changes=d.get("showChanges", False),
            allow_manual_triggers=d.get("allowManualTriggers", False),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigurationError(f"Malformed view configuration: {e}") from e
    validate_view_config(config)
    return config


def load_view_config(path: Path) -> ViewConfig:
    if not path.is_file():
        raise FileNotFoundError(f"View configuration not found: {path}")
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e
    return _dict_to_config(data)


class ViewConfigStore:
    """Locked, atomically written view configuration file."""

    def __init__(self, config_file: Path):
        self.config_file = config_file
        self._mgr = LockedStateManager(config_file, _config_to_dict, _dict_to_config)

    def exists(self) -> bool:
        return self._mgr.exists()

    def load(self) -> ViewConfig:
        if not self._mgr.exists():
            raise FileNotFoundError(f"View configuration not found: {self.config_file}")
        return self._mgr.load()

    def save(self, config: ViewConfig) -> None:
        validate_view_config(config)
        self._mgr.save(config)

    def update(self, mutator: Callable[[ViewConfig], None]) -> ViewConfig:
        return self._mgr.update(mutator)

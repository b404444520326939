"""Tests for adapters.static: the JSON topology adapter."""

import json

import pytest

from pipeview.adapters.static import (
    IDLE,
    ManualEdgeTrigger,
    StaticPipelineBuilder,
    StaticPrincipal,
    load_topology,
)
from pipeview.view.config import ComponentSpec, RegExpSpec, ViewConfig
from pipeview.view.errors import PipelineConstructionError, TriggerError
from pipeview.view.triggers import TriggerStrategyRegistry
from pipeview.view.view import DeliveryPipelineView

TOPOLOGY = {
    "jobs": [
        {"name": "build-alpha", "downstream": ["test-alpha"]},
        {"name": "test-alpha", "manualDownstream": ["deploy-alpha"]},
        {"name": "deploy-alpha"},
        {"name": "svc-auth"},
        {"name": "svc-billing"},
    ],
    "builds": {
        "build-alpha": [
            {"number": 1, "status": "SUCCESS"},
            {"number": 2, "status": "SUCCESS"},
        ],
        "test-alpha": [
            {"number": 10, "status": "FAILED", "upstream": {"job": "build-alpha", "number": 1}},
            {"number": 11, "status": "SUCCESS", "upstream": {"job": "build-alpha", "number": 2}},
        ],
        "deploy-alpha": [
            {"number": 3, "status": "SUCCESS", "upstream": {"job": "test-alpha", "number": 11}},
        ],
    },
}


@pytest.fixture
def topology_file(tmp_path):
    path = tmp_path / "topology.json"
    path.write_text(json.dumps(TOPOLOGY))
    return path


@pytest.fixture
def registry(topology_file):
    return load_topology(topology_file)


class TestStaticJobRegistry:
    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_topology(tmp_path / "missing.json")

    def test_find_job(self, registry):
        assert registry.find_job("build-alpha").downstream == ["test-alpha"]
        assert registry.find_job("ghost") is None

    def test_matches_keyed_by_capture_group_in_file_order(self, registry):
        matches = registry.find_jobs_matching("^svc-(.+)$")
        assert list(matches) == ["auth", "billing"]
        assert matches["auth"].name == "svc-auth"

    def test_downstream_includes_manual_edges(self, registry):
        test_job = registry.find_job("test-alpha")
        assert [j.name for j in registry.downstream_jobs(test_job)] == ["deploy-alpha"]

    def test_builds_sorted_newest_first(self, registry):
        assert [b.number for b in registry.builds_of("build-alpha")] == [2, 1]


class TestStaticPipelineBuilder:
    def test_latest_correlates_downstream_builds(self, registry):
        handle = StaticPipelineBuilder(registry).construct("Alpha", registry.find_job("build-alpha"))
        newest, older = handle.latest(2)
        assert newest.build_number == 2
        assert [(s.job_name, s.status, s.build_number) for s in newest.stages] == [
            ("build-alpha", "SUCCESS", 2),
            ("test-alpha", "SUCCESS", 11),
            ("deploy-alpha", "SUCCESS", 3),
        ]
        assert older.stages[1].status == "FAILED"
        assert older.stages[2].status == IDLE
        assert older.stages[2].manual

    def test_latest_limited(self, registry):
        handle = StaticPipelineBuilder(registry).construct("Alpha", registry.find_job("build-alpha"))
        assert len(handle.latest(1)) == 1

    def test_aggregate_uses_last_build_per_stage(self, registry):
        handle = StaticPipelineBuilder(registry).construct("Alpha", registry.find_job("build-alpha"))
        pipeline = handle.aggregate()
        assert pipeline.aggregated
        assert pipeline.build_number is None
        assert [s.build_number for s in pipeline.stages] == [2, 11, 3]

    def test_dangling_edge_is_construction_error(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text(json.dumps({"jobs": [{"name": "a", "downstream": ["gone"]}]}))
        registry = load_topology(path)
        with pytest.raises(PipelineConstructionError, match="gone"):
            StaticPipelineBuilder(registry).construct("A", registry.find_job("a"))


class TestManualEdgeTrigger:
    def test_applicable_only_on_manual_edge(self, registry):
        trigger = ManualEdgeTrigger()
        assert trigger.is_applicable(registry.find_job("deploy-alpha"), registry.find_job("test-alpha"))
        assert not trigger.is_applicable(registry.find_job("test-alpha"), registry.find_job("build-alpha"))

    def test_invoke_enqueues_with_upstream_cause(self, registry):
        ManualEdgeTrigger().invoke(registry.find_job("deploy-alpha"), registry.find_job("test-alpha"),
                                   "10", registry)
        queued = registry.queue[0]
        assert queued.job_name == "deploy-alpha"
        assert queued.cause.upstream_job == "test-alpha"
        assert queued.cause.upstream_build == 10

    def test_unknown_build_rejected(self, registry):
        with pytest.raises(TriggerError):
            ManualEdgeTrigger().invoke(registry.find_job("deploy-alpha"),
                                       registry.find_job("test-alpha"), "99", registry)
        assert registry.queue == []

    def test_non_numeric_build_rejected(self, registry):
        with pytest.raises(TriggerError):
            ManualEdgeTrigger().invoke(registry.find_job("deploy-alpha"),
                                       registry.find_job("test-alpha"), "latest", registry)


class TestStaticPrincipal:
    def test_unrestricted(self, registry):
        assert StaticPrincipal("ops").has_build_permission(registry.find_job("deploy-alpha"))

    def test_restricted(self, registry):
        principal = StaticPrincipal("dev", permitted={"build-alpha"})
        assert not principal.has_build_permission(registry.find_job("deploy-alpha"))


class TestEndToEnd:
    def test_render_and_promote(self, registry, tmp_path):
        config = ViewConfig(
            name="Delivery",
            component_specs=[ComponentSpec("Alpha", "build-alpha")],
            regexp_first_jobs=[RegExpSpec("^svc-(.+)$")],
            no_of_pipelines=2,
            show_aggregated_pipeline=True,
        )
        principal = StaticPrincipal("ops")
        view = DeliveryPipelineView(
            config, registry, StaticPipelineBuilder(registry), lambda: principal,
            strategies=TriggerStrategyRegistry([ManualEdgeTrigger()]),
            state_dir=tmp_path,
        )
        components = view.get_components()
        assert [c.name for c in components] == ["Alpha", "auth", "billing"]
        assert len(components[0].pipelines) == 3
        assert components[1].pipelines[1:] == []
        assert view.get_items() == ["deploy-alpha", "test-alpha"]

        view.trigger_manual("deploy-alpha", "test-alpha", "11")
        assert registry.queue[0].cause.upstream_build == 11

# Copyright 2026. Tests for the pipeview command-line entry point.

import json
from unittest.mock import patch

import pytest

from pipeview.cli import main

TOPOLOGY = {
    "jobs": [
        {"name": "build-alpha", "manualDownstream": ["deploy-alpha"]},
        {"name": "deploy-alpha"},
        {"name": "svc-auth"},
    ],
    "builds": {
        "build-alpha": [{"number": 1, "status": "SUCCESS"}, {"number": 2, "status": "FAILED"}],
    },
}


@pytest.fixture
def files(tmp_path):
    view = tmp_path / "view.json"
    view.write_text(json.dumps({
        "name": "Delivery",
        "componentSpecs": [{"name": "Alpha", "firstJob": "build-alpha"}],
        "regexpFirstJobs": [{"regexp": "^svc-(.+)$"}],
        "noOfPipelines": 2,
    }))
    topology = tmp_path / "topology.json"
    topology.write_text(json.dumps(TOPOLOGY))
    return view, topology


@pytest.fixture(autouse=True)
def state_base(tmp_path):
    with patch("pipeview.core.paths.STATE_BASE", tmp_path / "home"):
        yield tmp_path / "home"


def _run(*argv):
    with patch("sys.argv", ["pipeview", *argv]):
        return main()


def _view_args(files):
    view, topology = files
    return ["--view", str(view), "--topology", str(topology)]


class TestRender:
    def test_prints_components(self, files, capsys):
        assert _run("render", *_view_args(files)) == 0
        data = json.loads(capsys.readouterr().out)
        assert [c["name"] for c in data["pipelines"]] == ["Alpha", "auth"]
        assert [p["buildNumber"] for p in data["pipelines"][0]["pipelines"]] == [2, 1]

    def test_broken_topology_sets_error_and_exit_code(self, files, capsys):
        view, topology = files
        broken = dict(TOPOLOGY, jobs=[{"name": "build-alpha", "downstream": ["gone"]},
                                      {"name": "svc-auth"}])
        topology.write_text(json.dumps(broken))
        assert _run("render", *_view_args(files)) == 1
        data = json.loads(capsys.readouterr().out)
        assert data["pipelines"] == []
        assert "gone" in data["error"]

    def test_missing_seed_job_fails(self, files, capsys):
        view, topology = files
        topology.write_text(json.dumps({"jobs": [{"name": "svc-auth"}]}))
        assert _run("render", *_view_args(files)) == 1
        assert "build-alpha" in capsys.readouterr().err


class TestActions:
    def test_items(self, files, capsys):
        assert _run("items", *_view_args(files)) == 0
        assert json.loads(capsys.readouterr().out) == ["deploy-alpha"]

    def test_start(self, files, capsys):
        assert _run("start", *_view_args(files), "build-alpha", "--user", "ops") == 0
        assert json.loads(capsys.readouterr().out) == [{"job": "build-alpha", "cause": "user"}]

    def test_trigger(self, files, capsys):
        assert _run("trigger", *_view_args(files), "deploy-alpha", "build-alpha", "2") == 0
        queued = json.loads(capsys.readouterr().out)
        assert queued == [{"job": "deploy-alpha", "upstream": "build-alpha", "build": 2}]

    def test_trigger_not_found(self, files, capsys):
        assert _run("trigger", *_view_args(files), "svc-auth", "build-alpha", "2") == 1
        assert "Trigger not found" in capsys.readouterr().err

    def test_rename_job_persists(self, files, capsys):
        view, _ = files
        assert _run("rename-job", *_view_args(files), "build-alpha", "compile-alpha") == 0
        saved = json.loads(view.read_text())
        assert saved["componentSpecs"][0]["firstJob"] == "compile-alpha"

    def test_status_after_render(self, files, capsys):
        view, _ = files
        _run("render", *_view_args(files))
        capsys.readouterr()
        assert _run("status", "--view", str(view)) == 0
        out = json.loads(capsys.readouterr().out)
        assert out["renders"] == 1
        assert out["events"][0]["event"] == "render_completed"


class TestValidate:
    def test_valid_view(self, files, capsys):
        view, _ = files
        assert _run("validate", "--view", str(view)) == 0
        assert "1 components" in capsys.readouterr().out

    def test_bad_regexp(self, capsys):
        assert _run("validate", "--regexp", "^svc-.+$") == 1
        assert "No capture group" in capsys.readouterr().err

    def test_no_command_prints_help(self, capsys):
        assert _run() == 1

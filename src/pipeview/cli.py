# Copyright 2026. Command-line entry point for pipeline views.

import argparse
import json
import os
import sys
from pathlib import Path

from pipeview.view.errors import PipelineViewError


def _build_view(args):
    from pipeview.adapters.static import (
        ManualEdgeTrigger,
        StaticPipelineBuilder,
        StaticPrincipal,
        load_topology,
    )
    from pipeview.core.paths import view_state_dir
    from pipeview.view.config import ViewConfigStore
    from pipeview.view.triggers import TriggerStrategyRegistry
    from pipeview.view.view import DeliveryPipelineView

    store = ViewConfigStore(Path(args.view))
    config = store.load()
    registry = load_topology(Path(args.topology))
    user = getattr(args, "user", "") or os.environ.get("USER", "anonymous")
    principal = StaticPrincipal(user)
    return DeliveryPipelineView(
        config,
        registry,
        StaticPipelineBuilder(registry),
        lambda: principal,
        strategies=TriggerStrategyRegistry([ManualEdgeTrigger()]),
        state_dir=view_state_dir(config.name),
        store=store,
    )


def _print_json(data) -> None:
    print(json.dumps(data, indent=2))


def cmd_render(args) -> int:
    view = _build_view(args)
    data = view.to_dict()
    _print_json(data)
    return 1 if data["error"] else 0


def cmd_items(args) -> int:
    view = _build_view(args)
    _print_json(view.get_items())
    return 0


def cmd_start(args) -> int:
    view = _build_view(args)
    view.start_job(args.job)
    _print_json([{"job": q.job_name, "cause": q.cause.kind} for q in view.registry.queue])
    return 0


def cmd_trigger(args) -> int:
    view = _build_view(args)
    view.trigger_manual(args.project, args.upstream, args.build_id)
    _print_json([
        {"job": q.job_name, "upstream": q.cause.upstream_job, "build": q.cause.upstream_build}
        for q in view.registry.queue
    ])
    return 0


def cmd_validate(args) -> int:
    from pipeview.view.config import load_view_config, validate_regexp

    for regexp in args.regexp or []:
        validate_regexp(regexp)
    if args.view:
        config = load_view_config(Path(args.view))
        print(f"View '{config.name}' OK: {len(config.component_specs)} components, "
              f"{len(config.regexp_first_jobs)} regexps")
    return 0


def cmd_rename_job(args) -> int:
    view = _build_view(args)
    view.on_job_renamed(args.old_name, args.new_name)
    _print_json([{"name": s.name, "firstJob": s.first_job}
                 for s in view.config.component_specs])
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        prog="pipeview",
        description="Delivery pipeline views over a job topology.",
    )
    subparsers = parser.add_subparsers(dest="command")

    def add_view_args(p):
        p.add_argument("--view", required=True, help="View configuration JSON file")
        p.add_argument("--topology", required=True, help="Job topology JSON file")
        p.add_argument("--user", default="", help="Principal name (defaults to $USER)")

    render_parser = subparsers.add_parser("render", help="Render components as JSON")
    add_view_args(render_parser)
    items_parser = subparsers.add_parser("items", help="List jobs belonging to the view")
    add_view_args(items_parser)
    start_parser = subparsers.add_parser("start", help="Schedule a build of a job")
    add_view_args(start_parser)
    start_parser.add_argument("job")
    trigger_parser = subparsers.add_parser("trigger", help="Manually promote a build")
    add_view_args(trigger_parser)
    trigger_parser.add_argument("project", help="Downstream job to run")
    trigger_parser.add_argument("upstream", help="Upstream job owning the build")
    trigger_parser.add_argument("build_id", help="Upstream build number")
    rename_parser = subparsers.add_parser("rename-job", help="Apply a job rename to the view")
    add_view_args(rename_parser)
    rename_parser.add_argument("old_name")
    rename_parser.add_argument("new_name", nargs="?", default=None,
                               help="Omit to record a deletion")
    validate_parser = subparsers.add_parser("validate", help="Validate a view file or regexps")
    validate_parser.add_argument("--view", help="View configuration JSON file")
    validate_parser.add_argument("--regexp", action="append", help="Component regexp to check")
    status_parser = subparsers.add_parser("status", help="Show recent view events")
    status_parser.add_argument("--view", required=True, help="View configuration JSON file")
    status_parser.add_argument("--limit", type=int, default=20, help="Max events to show")
    status_parser.add_argument("--warnings", action="store_true", help="Only show warnings")
    serve_parser = subparsers.add_parser("serve", help="Serve the view over HTTP")
    add_view_args(serve_parser)
    serve_parser.add_argument("--port", type=int, default=8765, help="Server port")

    args = parser.parse_args()

    try:
        if args.command == "render":
            return cmd_render(args)
        elif args.command == "items":
            return cmd_items(args)
        elif args.command == "start":
            return cmd_start(args)
        elif args.command == "trigger":
            return cmd_trigger(args)
        elif args.command == "rename-job":
            return cmd_rename_job(args)
        elif args.command == "validate":
            return cmd_validate(args)
        elif args.command == "status":
            from pipeview.core.events import cmd_status
            from pipeview.core.paths import view_state_dir
            from pipeview.view.config import load_view_config
            args.state_dir = view_state_dir(load_view_config(Path(args.view)).name)
            return cmd_status(args)
        elif args.command == "serve":
            from pipeview.dashboard.server import run_server
            run_server(_build_view(args), args.port)
        else:
            parser.print_help()
            return 1
    except (PipelineViewError, FileNotFoundError) as e:
        print(f"{args.command} failed: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""Synthesize the delivery pipeline blueprint for a service and print it as JSON.

Account and region come from --account/--region, then the environment, then
the active AWS session. Parameter-store values are emitted as deferred
references; nothing is read from the parameter store here.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from delivery_pipeline.config import SETTINGS
from delivery_pipeline.errors import ConfigurationError
from delivery_pipeline.pipeline import PipelineBuilder, make_base_config


def _deploy_overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    dev_stage: dict[str, Any] = {"stackName": args.dev_stack or f"{args.service}-dev"}
    if args.dev_template is not None:
        dev_stage["templatePath"] = args.dev_template
    overrides["devStage"] = dev_stage

    if args.no_live:
        overrides["liveStage"] = None
        return overrides
    live_spec: dict[str, Any] = {"stackName": args.live_stack or f"{args.service}-live"}
    if args.live_template is not None:
        live_spec["templatePath"] = args.live_template
    overrides["liveStage"] = {"kind": "live", "spec": live_spec}
    return overrides


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Synthesize a delivery pipeline blueprint.")
    parser.add_argument("--service", required=True)
    parser.add_argument("--branch", default="master")
    parser.add_argument("--account")
    parser.add_argument("--region")
    parser.add_argument("--dev-stack", dest="dev_stack")
    parser.add_argument("--dev-template", dest="dev_template")
    parser.add_argument("--live-stack", dest="live_stack")
    parser.add_argument("--live-template", dest="live_template")
    parser.add_argument("--no-live", action="store_true", dest="no_live")
    parser.add_argument("--output", help="Write JSON to this path instead of stdout")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)
    try:
        context = SETTINGS.deployment_context(account=args.account, region=args.region)
        config = make_base_config(args.service, args.branch, overrides=_deploy_overrides(args))
        blueprint = PipelineBuilder(context).build(config)
    except ConfigurationError as exc:
        print(f"ERROR: {exc.code}: {exc.message}", file=sys.stderr)
        return 1

    rendered = json.dumps(blueprint.model_dump(mode="json"), indent=2, sort_keys=True)
    if args.output:
        Path(args.output).write_text(rendered + "\n", encoding="utf-8")
        print(f"wrote pipeline={blueprint.pipelineName} stages={len(blueprint.stages)} path={args.output}")
    else:
        print(rendered)
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))

"""installwizard - package entry point.

    python -m installwizard --spec-dir /usr/share/installer/spec.d \\
        --spec-dir /etc/installer/spec.d --output /var/lib/installer/config.json

Subcommands:
    serve (default)  run the HTTP API
    check            load + merge once, print diagnostics, exit 1 on conflict
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from installwizard.core.config import ConfigResolver
from installwizard.core.errors import ConfigError
from installwizard.core.logging import LEVEL_NAMES, get_logger, set_verbosity
from installwizard.core.service import WizardService

_logger = get_logger("installwizard")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="installwizard",
        description="Dynamic installer wizard: merges contribution specs and serves them",
    )
    p.add_argument(
        "command",
        nargs="?",
        choices=("serve", "check"),
        default="serve",
        help="serve the HTTP API (default) or check the contribution set and exit",
    )
    p.add_argument(
        "--spec-dir",
        dest="spec_dirs",
        action="append",
        metavar="PATH",
        help="contribution spec directory (can be specified multiple times)",
    )
    p.add_argument("--output", dest="output_path", metavar="PATH", help="output JSON file path")
    p.add_argument("--state", dest="state_path", metavar="PATH", help="wizard state file path")
    p.add_argument("--host", help="bind address")
    p.add_argument("--port", type=int, help="bind port")
    p.add_argument("--config", metavar="PATH", help="user config YAML")
    p.add_argument(
        "--verbosity",
        choices=sorted(LEVEL_NAMES, key=lambda n: LEVEL_NAMES[n]),
        help="logging level",
    )
    return p


def _cli_args(ns: argparse.Namespace) -> dict[str, Any]:
    web: dict[str, Any] = {}
    if ns.host:
        web["host"] = ns.host
    if ns.port is not None:
        web["port"] = ns.port
    out: dict[str, Any] = {
        "spec_dirs": ns.spec_dirs,
        "output_path": ns.output_path,
        "state_path": ns.state_path,
    }
    if web:
        out["web"] = web
    if ns.verbosity:
        out["logging"] = {"level": ns.verbosity}
    return out


def main(argv: list[str] | None = None) -> int:
    ns = build_parser().parse_args(argv)

    resolver = ConfigResolver(
        cli_args=_cli_args(ns),
        user_config_path=Path(ns.config) if ns.config else None,
    )
    try:
        level = resolver.resolve_logging_level()
        set_verbosity(level)
        service = WizardService.from_resolver(resolver)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if ns.command == "check":
        report = service.diagnostics()
        print(json.dumps(report, indent=2))
        return 1 if "error" in report else 0

    from installwizard.web.app import run

    try:
        host = resolver.resolve_web_host()
        port = resolver.resolve_web_port()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    _logger.info(f"Serving install wizard on http://{host}:{port}")
    run(service, host, port, verbosity=int(LEVEL_NAMES[level]))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

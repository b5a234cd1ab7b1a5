#!/usr/bin/env python3
"""
Feature suite runner

Usage:
  python scripts/run_features.py run [--tags <expr>] [--workers <n>] [--features <dir>] [pytest args...]
  python scripts/run_features.py report

Examples:
  python scripts/run_features.py run
  python scripts/run_features.py run --tags "smoke and not slow"
  python scripts/run_features.py run --workers 1 -- -x
  python scripts/run_features.py report
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List

import pytest
from dotenv import load_dotenv

# プロジェクトルートを import パスに追加（未インストールでも直接実行できるように）
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

load_dotenv()

from domain.exceptions import ConfigurationError
from domain.settings import HarnessSettings
from infrastructure.logging.console_logger import ConsoleLogger
from infrastructure.logging.log_setup import setup_console_logging
from infrastructure.report.html_report_generator import HtmlReportGenerator
from infrastructure.report.report_config import ReportConfig, YamlReportConfigLoader
from infrastructure.run.jsonl_run_log_store import JsonlRunLogStore
from infrastructure.settings.env_settings_provider import EnvSettingsProvider

FEATURES_DIR = project_root / "features"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="BDD API feature runner")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Run feature scenarios in parallel")
    run_parser.add_argument("--tags", type=str, help="pytest marker expression, e.g. 'smoke and not slow'")
    run_parser.add_argument("--workers", type=int, help="override BDD_PARALLELISM")
    run_parser.add_argument("--features", type=str, default=str(FEATURES_DIR))
    run_parser.add_argument("--no-report", action="store_true", help="skip report generation")
    run_parser.add_argument("pytest_args", nargs=argparse.REMAINDER)

    subparsers.add_parser("report", help="Render the HTML report from the last run log")

    return parser


def build_pytest_args(args: argparse.Namespace, settings: HarnessSettings, report_config: ReportConfig) -> List[str]:
    workers = args.workers if args.workers is not None else settings.parallelism
    if workers < 1:
        raise ValueError(f"workers must be >= 1: {workers}")

    report_config.cucumber_json.parent.mkdir(parents=True, exist_ok=True)

    pytest_args = [
        args.features,
        "-n",
        str(workers),
        "--dist",
        "load",
        f"--cucumberjson={report_config.cucumber_json}",
    ]
    if not args.no_report:
        pytest_args.append("--generate-report")
    if args.tags:
        pytest_args += ["-m", args.tags]

    extra = list(args.pytest_args or [])
    if extra and extra[0] == "--":
        extra = extra[1:]
    return pytest_args + extra


def _load_config() -> tuple[HarnessSettings, ReportConfig]:
    settings = EnvSettingsProvider().get()
    report_config = YamlReportConfigLoader().load_from_file(Path(settings.report_config_path))
    return settings, report_config


def _run(args: argparse.Namespace) -> int:
    settings, report_config = _load_config()
    pytest_args = build_pytest_args(args, settings, report_config)
    print(f"pytest {' '.join(pytest_args)}")
    return int(pytest.main(pytest_args))


def _report(_args: argparse.Namespace) -> int:
    settings, report_config = _load_config()
    setup_console_logging(settings.log_level)
    records = JsonlRunLogStore(report_config.run_log_dir).list()
    if not records:
        print(f"ERROR: no scenario records in {report_config.run_log_dir}")
        return 1
    path = HtmlReportGenerator(report_config, ConsoleLogger()).generate(records)
    print(f"Report: {path}")
    return 0


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args(sys.argv[1:])

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == "run":
            exit_code = _run(args)
        elif args.command == "report":
            exit_code = _report(args)
        else:
            raise ValueError(f"Unknown command: {args.command}")
    except (ValueError, ConfigurationError) as exc:
        print(f"ERROR: {exc}")
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()

"""CLI entrypoints for flowwarden commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Dict, List, Optional

from .config import ConfigError
from .extractors import DataContract
from .files import write_text_atomic
from .fixes import StrategyResolutionError
from .graph import WorkflowError
from .impact import ImpactAnalyzer, NodeNotFound
from .logging import configure_logging
from .orchestrator import AutoFixOrchestrator
from .project import Project
from .reporting import FORMATS, TEXT, ReportRenderer, render_json
from .stores import RegistryCorrupt, RegistryMissing
from .validators import DataFlowValidator, Issue, IssueKind, ValidationReport

_FATAL_ERRORS = (
    ConfigError,
    RegistryMissing,
    RegistryCorrupt,
    StrategyResolutionError,
    WorkflowError,
    NodeNotFound,
    FileNotFoundError,
)


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_report_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--format",
        choices=FORMATS,
        default=TEXT,
        help="Report format written to stdout (default: text).",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Also write the report to this file.",
    )


def _add_workflow_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--workflow",
        type=Path,
        help="Saved workflow JSON to check instead of the configured one.",
    )
    parser.add_argument(
        "--name",
        help="Workflow name when the file holds several workflows (default: all of them).",
    )


def _issue_kind(value: str) -> IssueKind:
    try:
        return IssueKind.parse(value)
    except ValueError as exc:
        choices = ", ".join(kind.value for kind in IssueKind)
        raise argparse.ArgumentTypeError(f"{exc} (choose from {choices})") from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flowwarden",
        description="Keep a node editor's component registry, docs and data flow consistent.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--root",
        default=".",
        help="Project root containing .flowwarden.yml (defaults to current directory).",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Also write log output to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    registry_parser = subparsers.add_parser("registry", help="Build, check or list the component registry.")
    _add_verbose_option(registry_parser, suppress_default=True)
    registry_actions = registry_parser.add_subparsers(dest="action", required=True)
    build_parser = registry_actions.add_parser("build", help="Scan component sources and rewrite the registry.")
    _add_verbose_option(build_parser, suppress_default=True)
    check_parser = registry_actions.add_parser(
        "check", help="Check documentation references and component naming against the registry."
    )
    _add_verbose_option(check_parser, suppress_default=True)
    _add_report_options(check_parser)
    list_parser = registry_actions.add_parser("list", help="List registered components.")
    _add_verbose_option(list_parser, suppress_default=True)
    _add_report_options(list_parser)

    validate_parser = subparsers.add_parser("validate", help="Run validators and record the run in metrics.")
    _add_verbose_option(validate_parser, suppress_default=True)
    validate_parser.add_argument(
        "target",
        choices=("docs", "dataflow", "syntax", "all"),
        help="Which validator to run.",
    )
    _add_workflow_options(validate_parser)
    _add_report_options(validate_parser)
    validate_parser.add_argument(
        "--no-metrics",
        action="store_true",
        help="Do not record this run in the metrics store.",
    )

    fix_parser = subparsers.add_parser("fix", help="Find and apply automated repairs.")
    _add_verbose_option(fix_parser, suppress_default=True)
    fix_actions = fix_parser.add_subparsers(dest="action", required=True)
    scan_parser = fix_actions.add_parser("scan", help="List auto-fixable issues without changing files.")
    apply_parser = fix_actions.add_parser("apply", help="Apply fixes for auto-fixable issues.")
    for sub in (scan_parser, apply_parser):
        _add_verbose_option(sub, suppress_default=True)
        sub.add_argument("--only", type=_issue_kind, help="Restrict to one issue kind.")
        _add_workflow_options(sub)
        _add_report_options(sub)
    apply_parser.add_argument("--dry-run", action="store_true", help="Report what would be fixed without writing.")
    apply_parser.add_argument("--backup", action="store_true", help="Copy each file to <file>.bak before fixing it.")
    apply_parser.add_argument(
        "--force",
        action="store_true",
        help="Apply fixes whose strategy requires confirmation.",
    )

    contracts_parser = subparsers.add_parser("contracts", help="Show the data contract of components.")
    _add_verbose_option(contracts_parser, suppress_default=True)
    contracts_parser.add_argument("identity", nargs="?", help="Only show this component.")
    _add_report_options(contracts_parser)

    impact_parser = subparsers.add_parser("impact", help="Analyse the impact of changing one component.")
    _add_verbose_option(impact_parser, suppress_default=True)
    impact_parser.add_argument("identity", help="Component identity, e.g. storyboardNode.")
    impact_parser.add_argument("--workflow", help="Workflow name to include an integration test for.")
    impact_parser.add_argument(
        "--run",
        action="store_true",
        help="Check the component and its dependents instead of listing recommended tests.",
    )
    _add_report_options(impact_parser)

    metrics_parser = subparsers.add_parser("metrics", help="Inspect or maintain validation metrics.")
    _add_verbose_option(metrics_parser, suppress_default=True)
    metrics_actions = metrics_parser.add_subparsers(dest="action", required=True)
    trend_parser = metrics_actions.add_parser("trend", help="Show the issue trend and recent activity.")
    _add_report_options(trend_parser)
    export_parser = metrics_actions.add_parser("export", help="Print the raw metrics JSON.")
    export_parser.add_argument("--output", type=Path, help="Write the export to this file instead of stdout.")
    clear_parser = metrics_actions.add_parser("clear", help="Reset all metrics.")
    cleanup_parser = metrics_actions.add_parser(
        "cleanup", help="Drop per-day buckets older than the retention window."
    )
    for sub in (trend_parser, export_parser, clear_parser, cleanup_parser):
        _add_verbose_option(sub, suppress_default=True)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for flowwarden commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    try:
        project = Project.load(args.root)
        status = _dispatch(project, args)
    except _FATAL_ERRORS as exc:
        parser.exit(1, f"{_describe(exc)}\n")
    except RuntimeError as exc:
        parser.exit(1, f"flowwarden {args.command} failed: {exc}\nRun with --verbose for more details.\n")
    if status:
        parser.exit(status)


def _dispatch(project: Project, args: argparse.Namespace) -> int:
    renderer = ReportRenderer(project.config.reporting.templates_dir)
    if args.command == "registry":
        return _run_registry(project, renderer, args)
    if args.command == "validate":
        return _run_validate(project, renderer, args)
    if args.command == "fix":
        return _run_fix(project, renderer, args)
    if args.command == "contracts":
        return _run_contracts(project, renderer, args)
    if args.command == "impact":
        return _run_impact(project, renderer, args)
    if args.command == "metrics":
        return _run_metrics(project, renderer, args)
    raise RuntimeError(f"Unknown command {args.command}")  # pragma: no cover - argparse enforces choices


def _run_registry(project: Project, renderer: ReportRenderer, args: argparse.Namespace) -> int:
    if args.action == "build":
        registry = project.build_registry()
        failures = project.registry_store.failures
        print(f"Registered {registry.total} components in {_relativize(project.config.registry_path)}")
        for category, count in sorted(registry.by_category().items()):
            print(f"  {category}: {count}")
        if failures:
            print(f"Skipped {len(failures)} file(s); run with --verbose for details")
        return 0

    registry = project.load_registry()
    if args.action == "list":
        text = renderer.emit(
            "registry_list.j2", registry.to_dict(), fmt=args.format, output=args.output, registry=registry
        )
        _print(text)
        return 0

    report = project.check_registry(registry)
    _print(renderer.emit("validation.j2", report.to_dict(), fmt=args.format, output=args.output, report=report))
    return 1 if report.failed else 0


def _run_validate(project: Project, renderer: ReportRenderer, args: argparse.Namespace) -> int:
    report: ValidationReport
    if args.target == "docs":
        report = project.validate_docs()
    elif args.target == "dataflow":
        report = project.validate_dataflow(workflow=args.workflow, name=args.name)
    elif args.target == "syntax":
        report = project.validate_syntax()
    else:
        report = project.validate_all(workflow=args.workflow, name=args.name)

    if not args.no_metrics:
        project.record_run(report)
    _print(renderer.emit("validation.j2", report.to_dict(), fmt=args.format, output=args.output, report=report))
    return 1 if report.failed else 0


def _run_fix(project: Project, renderer: ReportRenderer, args: argparse.Namespace) -> int:
    orchestrator = AutoFixOrchestrator(project)
    issues = orchestrator.scan(only=args.only, workflow=args.workflow, name=args.name)
    if args.action == "scan":
        payload = {"issues": [issue.to_dict() for issue in issues]}
        _print(renderer.emit("fix_scan.j2", payload, fmt=args.format, output=args.output, issues=issues))
        return 0

    report = orchestrator.apply_fixes(issues, dry_run=args.dry_run, backup=args.backup, force=args.force)
    _print(renderer.emit("fix_report.j2", report.to_dict(), fmt=args.format, output=args.output, report=report))
    return report.exit_code


def _run_impact(project: Project, renderer: ReportRenderer, args: argparse.Namespace) -> int:
    analyzer = ImpactAnalyzer(project.load_registry(), project.config.impact)
    if args.run:
        checks = analyzer.verify(args.identity, project.syntax_validator())
        _print(renderer.emit("impact_run.j2", checks.to_dict(), fmt=args.format, output=args.output, report=checks))
        return checks.exit_code

    report = analyzer.analyze(args.identity, workflow=args.workflow)
    _print(renderer.emit("impact.j2", report.to_dict(), fmt=args.format, output=args.output, report=report))
    return 0


def _run_contracts(project: Project, renderer: ReportRenderer, args: argparse.Namespace) -> int:
    registry = project.load_registry()
    if args.identity:
        if args.identity not in registry:
            raise NodeNotFound(args.identity, registry.identities())
        identities = [args.identity]
    else:
        identities = registry.identities()

    validator = DataFlowValidator(project.config.dataflow)
    contracts: List[tuple[str, Optional[DataContract]]] = []
    issues: List[Issue] = []
    for identity in identities:
        record = registry.nodes[identity]
        contracts.append((identity, validator.contract_for(record)))
        issues.extend(validator.component_issues(record))

    payload: Dict[str, object] = {
        "contracts": {
            identity: contract.to_dict() if contract is not None else None for identity, contract in contracts
        },
        "issues": [issue.to_dict() for issue in issues],
    }
    _print(
        renderer.emit(
            "contracts.j2", payload, fmt=args.format, output=args.output, contracts=contracts, issues=issues
        )
    )
    return 0


def _run_metrics(project: Project, renderer: ReportRenderer, args: argparse.Namespace) -> int:
    store = project.metrics()
    if args.action == "trend":
        trend = store.trend()
        recent = store.recent_dates(7)
        by_type = store.by_type
        payload = {
            "totalRuns": store.total_runs,
            "trend": trend.to_dict(),
            "byType": {name: stats.to_dict() for name, stats in by_type.items()},
            "recent": {day: stats.to_dict() for day, stats in recent.items()},
        }
        _print(
            renderer.emit(
                "trend.j2",
                payload,
                fmt=args.format,
                output=args.output,
                store=store,
                trend=trend,
                by_type=by_type,
                recent=recent,
            )
        )
    elif args.action == "export":
        text = render_json(store.to_dict())
        if args.output:
            write_text_atomic(args.output, text + "\n")
            print(f"Metrics exported to {_relativize(args.output)}")
        else:
            print(text)
    elif args.action == "clear":
        store.clear()
        print("Metrics cleared")
    else:
        removed = store.cleanup()
        print(f"Removed {len(removed)} day(s) older than {store.retention_days} days")
    return 0


def _print(text: str) -> None:
    sys.stdout.write(text if text.endswith("\n") else text + "\n")


def _describe(exc: BaseException) -> str:
    if isinstance(exc, StrategyResolutionError):
        return f"Invalid fix configuration: {exc}"
    return str(exc)


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])

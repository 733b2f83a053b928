"""CLI entrypoints for auracoil commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .errors import AuracoilError
from .health import format_health_report
from .logging import configure_logging
from .models import SecretScanResult
from .orchestrator import Orchestrator
from .security.secrets import format_scan_results, mask_secret


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


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the repository root (defaults to current directory).",
    )


def _add_review_file_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-f",
        "--file",
        dest="review_file",
        default=None,
        help=(
            "Review artifact to use, relative to the current directory or to "
            ".auracoil/reviews/ (defaults to the newest review there)."
        ),
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="auracoil",
        description="Keep agent documentation honest with an external reviewer.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser(
        "init",
        help="Write .auracoil/config.yaml with safe defaults.",
    )
    _add_verbose_option(init_parser, suppress_default=True)
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing configuration.",
    )
    _add_path_argument(init_parser)

    review_parser = subparsers.add_parser(
        "review",
        help="Send the documentation and evidence to the reviewer.",
    )
    _add_verbose_option(review_parser, suppress_default=True)
    review_parser.add_argument(
        "--skip-preflight",
        action="store_true",
        help="Do not check the reviewer session before running.",
    )
    review_parser.add_argument(
        "--use-cache",
        action="store_true",
        default=None,
        help="Reuse a cached review when the bundle and prompt are unchanged.",
    )
    _add_path_argument(review_parser)

    apply_parser = subparsers.add_parser(
        "apply",
        help="Write a review into the auracoil region of the document.",
    )
    _add_verbose_option(apply_parser, suppress_default=True)
    _add_review_file_option(apply_parser)
    apply_parser.add_argument(
        "--no-findings",
        action="store_true",
        help="Do not record suggestions as findings.",
    )
    _add_path_argument(apply_parser)

    diff_parser = subparsers.add_parser(
        "diff",
        help="Preview the region change `apply` would make.",
    )
    _add_verbose_option(diff_parser, suppress_default=True)
    _add_review_file_option(diff_parser)
    _add_path_argument(diff_parser)

    health_parser = subparsers.add_parser(
        "health",
        help="Report reviewer availability and documentation staleness.",
    )
    _add_verbose_option(health_parser, suppress_default=True)
    _add_path_argument(health_parser)

    findings_parser = subparsers.add_parser(
        "findings",
        help="List findings recorded from applied reviews.",
    )
    _add_verbose_option(findings_parser, suppress_default=True)
    findings_parser.add_argument(
        "--all",
        dest="include_resolved",
        action="store_true",
        help="Include resolved findings.",
    )
    _add_path_argument(findings_parser)

    resolve_parser = subparsers.add_parser(
        "resolve",
        help="Mark a finding as resolved.",
    )
    _add_verbose_option(resolve_parser, suppress_default=True)
    resolve_parser.add_argument("finding_id", metavar="ID", help="Finding id to resolve.")
    _add_path_argument(resolve_parser)

    return parser


def main(argv: list[str] | None = None, orchestrator: Orchestrator | None = None) -> None:
    """CLI entrypoint for auracoil commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), redact=mask_secret)

    orchestrator = orchestrator or Orchestrator()

    try:
        _dispatch(args, orchestrator)
    except AuracoilError as exc:
        message = f"{exc}\n"
        if exc.hint:
            message += f"{exc.hint}\n"
        parser.exit(1, message)
    except FileExistsError as exc:
        parser.exit(1, f"{exc}\n")


def _dispatch(args: argparse.Namespace, orchestrator: Orchestrator) -> None:
    if args.command == "init":
        config_file = orchestrator.run_init(args.path, force=bool(args.force))
        print(f"Configuration written to {_relativize(config_file)}")
    elif args.command == "review":
        outcome = orchestrator.run_review(
            args.path,
            skip_preflight=bool(args.skip_preflight),
            use_cache=args.use_cache,
        )
        if outcome.excluded_issues:
            print(format_scan_results(SecretScanResult(issues=outcome.excluded_issues)))
        source = " (cached)" if outcome.cached else ""
        print(f"Review saved to {_relativize(outcome.artifact_path)}{source}")
        print(f"Sent {len(outcome.sent_files)} file(s); run `auracoil diff` to preview changes.")
    elif args.command == "apply":
        outcome = orchestrator.run_apply(
            args.path,
            args.review_file,
            record_findings=not args.no_findings,
        )
        if outcome.changed:
            print(f"Review applied to {_relativize(outcome.document_path)}")
        else:
            print(f"{_relativize(outcome.document_path)} already up to date")
        if outcome.findings_added:
            print(f"Recorded {len(outcome.findings_added)} new finding(s)")
    elif args.command == "diff":
        diff = orchestrator.run_diff(args.path, args.review_file)
        print(diff if diff else "No changes to the auracoil region")
    elif args.command == "health":
        print(format_health_report(orchestrator.run_health(args.path)))
    elif args.command == "findings":
        findings = orchestrator.list_findings(args.path, include_resolved=args.include_resolved)
        if not findings:
            print("No findings")
        for finding in findings:
            print(f"[{finding.status}] {finding.id} ({finding.severity}) {finding.section}")
            print(f"    {finding.suggestion}")
    elif args.command == "resolve":
        if orchestrator.resolve_finding(args.path, args.finding_id):
            print(f"Resolved {args.finding_id}")
        else:
            print(f"No finding with id {args.finding_id}")
    else:  # pragma: no cover - argparse enforces choices
        raise SystemExit(1)


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])

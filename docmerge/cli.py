"""CLI entrypoints for docmerge commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path, PurePosixPath

from .aggregator import Aggregator
from .config import CONFIG_FILENAME, load_config
from .errors import ConfigurationError, DocMergeError
from .logging import configure_logging, get_logger
from .models import RunSummary
from .pipeline import Pipeline
from .writer import Writer


def _add_common_options(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    verbose_kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    log_kwargs: dict[str, object] = {
        "type": Path,
        "metavar": "PATH",
        "help": "Also write logs (with timestamps) to this file.",
    }
    if suppress_default:
        verbose_kwargs["default"] = argparse.SUPPRESS
        log_kwargs["default"] = argparse.SUPPRESS
    else:
        verbose_kwargs["default"] = False
        log_kwargs["default"] = None
    parser.add_argument("-v", "--verbose", **verbose_kwargs)
    parser.add_argument("--log-file", **log_kwargs)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docmerge",
        description="Consolidate documentation from checked-out repositories into one file per library.",
    )
    _add_common_options(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser(
        "build",
        help="Aggregate every configured library and refresh the index.",
    )
    _add_common_options(build_parser, suppress_default=True)
    build_parser.add_argument(
        "config",
        nargs="?",
        default=".",
        help=f"Path to the configuration file or its directory (defaults to ./{CONFIG_FILENAME}).",
    )
    build_parser.add_argument(
        "-o",
        "--output-dir",
        type=Path,
        default=None,
        help="Directory for consolidated files (overrides output_dir from the config).",
    )
    build_parser.add_argument(
        "--index",
        type=Path,
        default=None,
        help="Path of the index file (overrides index_file from the config).",
    )
    build_parser.add_argument(
        "-j",
        "--workers",
        type=int,
        default=None,
        help="Number of libraries to aggregate concurrently.",
    )
    build_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would change without writing any file.",
    )

    split_parser = subparsers.add_parser(
        "split",
        help="Recover the original documents from a consolidated file.",
    )
    _add_common_options(split_parser, suppress_default=True)
    split_parser.add_argument("file", type=Path, help="Consolidated markdown file to split.")
    split_parser.add_argument(
        "-o",
        "--output-dir",
        type=Path,
        default=None,
        help="Directory to write documents into (defaults to a folder named after the file).",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for docmerge commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    if args.command == "build":
        _run_build(parser, args)
    elif args.command == "split":
        _run_split(parser, args)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_build(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    if args.workers is not None and args.workers < 1:
        parser.exit(2, "docmerge build: --workers must be at least 1\n")
    try:
        config = load_config(Path(args.config))
    except ConfigurationError as exc:
        parser.exit(2, f"docmerge build: {exc}\n")

    try:
        summary = Pipeline().run(
            config,
            output_dir=args.output_dir.resolve() if args.output_dir else None,
            index_path=args.index.resolve() if args.index else None,
            workers=args.workers,
            dry_run=bool(args.dry_run),
        )
    except ConfigurationError as exc:
        parser.exit(2, f"docmerge build: {exc}\n")
    _print_summary(summary, dry_run=bool(args.dry_run))

    if summary.exit_code:
        failed = len(summary.failures)
        total = len(summary.outcomes)
        message = f"docmerge build: {failed} of {total} libraries failed"
        if summary.index_error is not None:
            message += "; index not written"
        parser.exit(summary.exit_code, message + "\n")


def _print_summary(summary: RunSummary, *, dry_run: bool) -> None:
    suffix = " (dry-run)" if dry_run else ""
    for outcome in summary.outcomes:
        rel_path = _relativize(outcome.output_path)
        if outcome.error is not None:
            print(f"{outcome.library.name}: FAILED: {outcome.error}")
            continue
        result = outcome.result.value if outcome.result else "unknown"
        print(f"{outcome.library.name}: {result} {rel_path} ({outcome.documents} documents){suffix}")
        for pattern in outcome.unmatched:
            print(f"  no documents matched {pattern}")
        for skipped in outcome.skipped:
            print(f"  skipped {skipped.source_path}: {skipped.reason}")
        if dry_run and outcome.diff:
            print(outcome.diff, end="" if outcome.diff.endswith("\n") else "\n")
    if summary.index_path is not None:
        if summary.index_error is not None:
            print(f"index: FAILED: {summary.index_error}")
        elif summary.index_result is not None:
            print(f"index: {summary.index_result.value} {_relativize(summary.index_path)}{suffix}")


def _run_split(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    logger = get_logger("cli")
    source: Path = args.file
    try:
        markdown = source.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        parser.exit(1, f"docmerge split: cannot read {source}: {exc}\n")

    output_dir: Path = args.output_dir or source.with_suffix("")
    documents = Aggregator.split(markdown)
    if not documents:
        parser.exit(1, f"docmerge split: no documents found in {source}\n")

    writer = Writer()
    written = 0
    for document in documents:
        relative = PurePosixPath(document.source_path)
        if relative.is_absolute() or ".." in relative.parts:
            logger.warning("Refusing to write %s outside %s", document.source_path, output_dir)
            continue
        try:
            writer.write(output_dir.joinpath(*relative.parts), document.content)
        except DocMergeError as exc:
            parser.exit(1, f"docmerge split: {exc}\n")
        written += 1
    print(f"Recovered {written} documents into {_relativize(output_dir)}")


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])

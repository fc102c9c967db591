"""CLI entrypoints for gdassist commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .chat import ChatMode, ChatSession
from .config import STRATEGY_FAST, AssistConfig, ConfigError, load_config
from .extractors import available_extractors, get_extractor
from .llm import ChatRunner
from .logging import configure_logging
from .pipeline import MaterializationPipeline, PipelineResult
from .prompting import PromptBuilder
from .storage import FileSystemStorage, MemoryStorage, Storage
from .uid import UidGenerator
from .upgrade import LegacyFormatUpgrader, is_legacy


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


def _add_project_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--project",
        default=None,
        help="Godot project root that res:// maps to (defaults to the config's project.root).",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to .gdassist.yml or the directory holding it (defaults to the project or cwd).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gdassist",
        description="Turn assistant replies into Godot 4 project files.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    apply_parser = subparsers.add_parser(
        "apply",
        help="Write the code blocks of an assistant response into the project.",
    )
    _add_verbose_option(apply_parser, suppress_default=True)
    _add_project_options(apply_parser)
    apply_parser.add_argument(
        "response",
        nargs="?",
        default="-",
        help="File holding the response text, or '-' for stdin (default).",
    )
    apply_parser.add_argument(
        "--fast",
        action="store_true",
        help="Use the fast strategy: File: lines only, scene validation, no placeholders.",
    )
    apply_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run against an in-memory project and print what would be written.",
    )

    extract_parser = subparsers.add_parser(
        "extract",
        help="List the code blocks an extractor variant finds in a response.",
    )
    _add_verbose_option(extract_parser, suppress_default=True)
    extract_parser.add_argument(
        "response",
        nargs="?",
        default="-",
        help="File holding the response text, or '-' for stdin (default).",
    )
    extract_parser.add_argument(
        "--variant",
        choices=available_extractors(),
        default="multiple",
        help="Extractor variant to run (default: multiple).",
    )

    upgrade_parser = subparsers.add_parser(
        "upgrade",
        help="Upgrade a Godot 3 scene or resource file to the Godot 4 format.",
    )
    _add_verbose_option(upgrade_parser, suppress_default=True)
    upgrade_parser.add_argument("path", help="Scene or resource file to upgrade.")
    upgrade_parser.add_argument(
        "--in-place",
        action="store_true",
        help="Rewrite the file instead of printing the upgraded text.",
    )
    upgrade_parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for generated uids so output is reproducible.",
    )

    chat_parser = subparsers.add_parser(
        "chat",
        help="Send one message to the configured model.",
    )
    _add_verbose_option(chat_parser, suppress_default=True)
    _add_project_options(chat_parser)
    chat_parser.add_argument("message", help="Message to send.")
    chat_parser.add_argument(
        "--mode",
        choices=[mode.value for mode in ChatMode],
        default=ChatMode.ASK.value,
        help="ask answers only; composer also writes the files in the reply.",
    )
    chat_parser.add_argument(
        "--attach",
        default=None,
        help="File to attach to the message.",
    )
    chat_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="In composer mode, materialise into memory instead of the project.",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service (requires the service extra).",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    _add_project_options(serve_parser)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to bind.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for gdassist commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    verbose = bool(getattr(args, "verbose", False))
    # upgrade prints file content to stdout; keep stderr to warnings.
    configure_logging(verbose=verbose, quiet=args.command == "upgrade" and not args.in_place)

    if args.command == "apply":
        _run_apply(parser, args)
    elif args.command == "extract":
        _run_extract(parser, args)
    elif args.command == "upgrade":
        _run_upgrade(parser, args)
    elif args.command == "chat":
        _run_chat(parser, args)
    elif args.command == "serve":
        _run_serve(parser, args)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_apply(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    config = _load(parser, args)
    try:
        response = _read_response(args.response)
    except OSError as exc:
        parser.exit(1, f"{exc}\n")
    if args.fast:
        config.materialize.strategy = STRATEGY_FAST
    storage = _storage(config, dry_run=bool(args.dry_run))
    pipeline = MaterializationPipeline(
        storage,
        config=config.materialize,
        templates_dir=config.project.templates_dir,
    )
    try:
        result = pipeline.run(response)
    except RuntimeError as exc:
        parser.exit(1, f"gdassist apply failed: {exc}\nRun with --verbose for more details.\n")
    _print_result(result, dry_run=bool(args.dry_run))
    if not result.ok:
        sys.exit(1)


def _run_extract(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    try:
        response = _read_response(args.response)
    except OSError as exc:
        parser.exit(1, f"{exc}\n")
    blocks = get_extractor(args.variant).extract(response)
    if not blocks:
        print("No code blocks found.")
        return
    for block in blocks:
        language = block.language_hint or "-"
        lines = len(block.raw_content.splitlines())
        print(f"{block.inferred_path}\t{block.inferred_type.value}\t{language}\t{lines} lines")


def _run_upgrade(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    path = Path(args.path)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        parser.exit(1, f"{exc}\n")
    generator = UidGenerator.seeded(args.seed) if args.seed is not None else UidGenerator()
    if not is_legacy(content):
        print(f"{path} is already in the current format", file=sys.stderr)
    upgraded = LegacyFormatUpgrader(generator).upgrade(content)
    if args.in_place:
        try:
            path.write_text(upgraded, encoding="utf-8")
        except OSError as exc:
            parser.exit(1, f"gdassist upgrade failed: {exc}\nRun with --verbose for more details.\n")
        print(f"Upgraded {_relativize(path)}")
    else:
        sys.stdout.write(upgraded)


def _run_chat(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    config = _load(parser, args)
    runner = ChatRunner.from_config(config.llm)
    pipeline = MaterializationPipeline(
        _storage(config, dry_run=bool(args.dry_run)),
        config=config.materialize,
        templates_dir=config.project.templates_dir,
    )
    session = ChatSession(
        runner,
        pipeline=pipeline,
        prompt_builder=PromptBuilder(config.project.templates_dir),
        mode=ChatMode(args.mode),
        history_limit=config.chat.history_limit,
        max_attachment_chars=config.chat.max_attachment_chars,
    )
    if args.attach:
        attachment = Path(args.attach)
        try:
            session.attach(str(attachment), attachment.read_text(encoding="utf-8"))
        except OSError as exc:
            parser.exit(1, f"{exc}\n")
    try:
        reply = session.send(args.message)
    except RuntimeError as exc:
        parser.exit(1, f"gdassist chat failed: {exc}\nRun with --verbose for more details.\n")
    print(reply.text)
    if reply.result is not None:
        print()
        _print_result(reply.result, dry_run=bool(args.dry_run))


def _run_serve(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:  # pragma: no cover - integration path
    config = _load(parser, args)
    from .service import run_service

    run_service(args.host, args.port, config)


def _load(parser: argparse.ArgumentParser, args: argparse.Namespace) -> AssistConfig:
    if args.config:
        location = Path(args.config)
    elif args.project:
        location = Path(args.project)
    else:
        location = Path.cwd()
    try:
        config = load_config(location)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")
    if args.project:
        config.project.root = Path(args.project).resolve()
    return config


def _storage(config: AssistConfig, *, dry_run: bool) -> Storage:
    if dry_run:
        return MemoryStorage()
    return FileSystemStorage(config.root)


def _read_response(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _print_result(result: PipelineResult, *, dry_run: bool) -> None:
    for line in result.status_lines():
        print(line)
    if result.cycles:
        for cycle in result.cycles:
            print(f"Warning: dependency cycle {' -> '.join(cycle)}")
    summary = result.summary()
    if dry_run:
        summary += " (dry-run)"
    print(summary)


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])

"""CLI entrypoints for nixgen commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .compiler import OutputMode, SchemaCompiler
from .config import CONFIG_FILENAME, load_config
from .logging import configure_logging, get_logger
from .models import SchemaError

_COMMAND_HELP = {
    OutputMode.OPTIONS: "Print the options block of one type.",
    OutputMode.TYPE: "Print a named declaration of one type.",
    OutputMode.FULL: "Print a let-block declaring the root type and everything it references.",
    OutputMode.MODULE: "Print a complete NixOS module declaring the root type's options.",
}


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


def _add_log_file_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "--log-file",
        default=argparse.SUPPRESS if suppress_default else None,
        help="Also write debug logs to this file.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nixgen",
        description="Compile typed configuration models into NixOS option definitions.",
    )
    _add_verbose_option(parser)
    _add_log_file_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    for mode in OutputMode:
        sub = subparsers.add_parser(mode.value, help=_COMMAND_HELP[mode])
        _add_verbose_option(sub, suppress_default=True)
        _add_log_file_option(sub, suppress_default=True)
        sub.add_argument("model", help="Path to the YAML model document.")
        sub.add_argument(
            "--root",
            default=None,
            help="Type to render (defaults to the model's root).",
        )
        sub.add_argument(
            "--config",
            default=None,
            help=f"Path to {CONFIG_FILENAME} (defaults to the one next to the model).",
        )
        sub.add_argument(
            "--output",
            "-o",
            default=None,
            help="Write the result to this file instead of stdout.",
        )
        if mode is OutputMode.MODULE:
            sub.add_argument(
                "--module-name",
                default=None,
                help="Option path of the module, e.g. services.myapp.",
            )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for nixgen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    log_file = Path(args.log_file).expanduser() if args.log_file else None
    configure_logging(verbose=bool(args.verbose), log_file=log_file)

    model_path = Path(args.model).expanduser()
    config_path = Path(args.config).expanduser() if args.config else model_path.parent

    try:
        compiler = SchemaCompiler(load_config(config_path))
        graph = compiler.load(model_path, root=args.root)
        text = compiler.compile(
            graph,
            args.command,
            module_name=getattr(args, "module_name", None),
        )
    except FileNotFoundError as exc:
        parser.exit(1, f"{exc}\n")
    except SchemaError as exc:
        get_logger("cli").debug("nixgen %s failed", args.command, exc_info=True)
        parser.exit(1, f"nixgen {args.command} failed: {exc}\nRun with --verbose for more details.\n")

    if args.output:
        output = Path(args.output).expanduser()
        output.write_text(text, encoding="utf-8")
        print(f"Wrote {args.command} output to {_relativize(output)}")
    else:
        sys.stdout.write(text)


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])

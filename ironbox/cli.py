"""
Command-line interface for ironbox.

Commands:
    run        Execute a snippet in the sandbox
    languages  List supported languages and their images
    doctor     Check the Docker daemon, images and configured limits
    serve      Start the MCP stdio server
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .core.config import ConfigManager, IronboxConfig
from .core.exceptions import (
    ConfigurationError,
    InfrastructureError,
    InputError,
    format_error_message,
)
from .core.logging import get_logger, setup_logging
from .sandbox.executor import SandboxExecutor
from .sandbox.languages import LanguageCatalog
from .sandbox.runtimes.docker_runtime import DockerContainerRuntime
from .sandbox.runtimes.doctor import run_runtime_doctor
from .tools.docker_sandbox import DockerSandboxTool, result_to_json

logger = get_logger(__name__)

console = Console()
err_console = Console(stderr=True)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def create_runtime(config: IronboxConfig) -> Any:
    """Connect to the container engine configured in ``config``."""
    return DockerContainerRuntime.from_config(config.sandbox)


def _print_error(error: Exception) -> None:
    err_console.print(f"[red]Error:[/red] {escape(format_error_message(error))}")


def _read_code(args: argparse.Namespace) -> str:
    if args.code is not None:
        return args.code
    if args.file is not None:
        try:
            return Path(args.file).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise InputError(f"cannot read {args.file}: {e}") from e
    if sys.stdin is None or sys.stdin.isatty():
        raise InputError("no code given; use --code, --file or pipe it on stdin")
    return sys.stdin.read()


def cmd_run(args: argparse.Namespace, config: IronboxConfig) -> int:
    try:
        code = _read_code(args)
    except InputError as e:
        _print_error(e)
        return EXIT_USAGE

    arguments: dict[str, Any] = {"language": args.language, "code": code}
    if args.timeout is not None:
        arguments["timeout"] = args.timeout

    try:
        runtime = create_runtime(config)
    except ConfigurationError as e:
        _print_error(e)
        return EXIT_FAILURE

    try:
        tool = DockerSandboxTool(SandboxExecutor.from_config(runtime, config.sandbox))
        result = tool.call(arguments)
    except ConfigurationError as e:
        _print_error(e)
        return EXIT_FAILURE
    except InputError as e:
        _print_error(e)
        return EXIT_USAGE
    except InfrastructureError as e:
        if e.partial_output:
            sys.stdout.write(e.partial_output)
            sys.stdout.flush()
        _print_error(e)
        if e.cleanup_error:
            err_console.print(f"[yellow]Cleanup:[/yellow] {escape(e.cleanup_error)}")
        return EXIT_FAILURE
    finally:
        runtime.close()

    if args.json:
        sys.stdout.write(result_to_json(result) + "\n")
    else:
        sys.stdout.write(result.data)
        if result.data and not result.data.endswith("\n"):
            sys.stdout.write("\n")
        sys.stdout.flush()
        exit_code = result.metadata["exit_code"]
        style = "green" if exit_code == "0" else "yellow"
        err_console.print(f"[dim]exit code:[/dim] [{style}]{exit_code}[/{style}]")
        if "cleanup_error" in result.metadata:
            err_console.print(f"[yellow]Cleanup:[/yellow] {escape(result.metadata['cleanup_error'])}")

    if args.propagate_exit_code:
        exit_code = result.metadata["exit_code"]
        return int(exit_code) if exit_code.isdigit() else EXIT_FAILURE
    return EXIT_OK


def cmd_languages(args: argparse.Namespace, config: IronboxConfig) -> int:
    try:
        catalog = LanguageCatalog(config.sandbox.images)
    except ConfigurationError as e:
        _print_error(e)
        return EXIT_FAILURE

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Language", style="cyan")
    table.add_column("Image")
    table.add_column("Interpreter", style="dim")
    for language in catalog.languages():
        spec = catalog.resolve(language)
        table.add_row(spec.name, spec.image, spec.interpreter)
    console.print(table)
    return EXIT_OK


def cmd_doctor(args: argparse.Namespace, config: IronboxConfig) -> int:
    try:
        runtime = create_runtime(config)
    except ConfigurationError as e:
        logger.debug("Docker connection failed: %s", e)
        runtime = None

    try:
        checks = run_runtime_doctor(sandbox_config=config.sandbox, runtime=runtime)
    finally:
        if runtime is not None:
            runtime.close()

    console.print()
    console.print("[bold cyan]Sandbox Doctor[/bold cyan]")
    console.print()

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Check", style="cyan", width=24)
    table.add_column("Status", width=8)
    table.add_column("Details", style="dim")
    table.add_column("Fix", style="yellow")

    for check in checks:
        if check.status == "pass":
            status = "[green]PASS[/green]"
        elif check.status == "warn":
            status = "[yellow]WARN[/yellow]"
        else:
            status = "[red]FAIL[/red]"
        table.add_row(
            check.name,
            status,
            check.detail,
            check.recommendation or "",
        )

    console.print(table)
    console.print()
    failures = [check for check in checks if check.status == "fail"]
    if failures:
        console.print(f"[yellow]Sandbox doctor found {len(failures)} blocking issue(s).[/yellow]")
        return EXIT_FAILURE
    console.print("[green]Sandbox doctor checks passed.[/green]")
    return EXIT_OK


def cmd_serve(args: argparse.Namespace, config: IronboxConfig) -> int:
    from .mcp.server.sandbox_server import create_sandbox_server

    try:
        server = create_sandbox_server(config, runtime=create_runtime(config))
    except ConfigurationError as e:
        _print_error(e)
        return EXIT_FAILURE

    try:
        asyncio.run(server.run())
    except KeyboardInterrupt:
        logger.info("MCP server stopped")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ironbox",
        description="Run untrusted code snippets in disposable, hardened containers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run a snippet
  ironbox run -l python -c "print(2 + 2)"

  # Run a file with a 20 second limit
  ironbox run -l javascript -f script.js -t 20

  # Check the local setup
  ironbox doctor
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration file (default: ./ironbox.yaml)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        help="Logging level (default: from configuration, WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Execute code in the sandbox")
    run_parser.add_argument(
        "--language",
        "-l",
        type=str,
        required=True,
        help="Language of the snippet (python, bash, javascript)",
    )
    source = run_parser.add_mutually_exclusive_group()
    source.add_argument("--code", "-c", type=str, help="Source code to execute")
    source.add_argument("--file", "-f", type=str, help="File containing the source code")
    run_parser.add_argument(
        "--timeout",
        "-t",
        type=int,
        help="Execution timeout in seconds (default: 10)",
    )
    run_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full tool result as JSON",
    )
    run_parser.add_argument(
        "--propagate-exit-code",
        action="store_true",
        help="Exit with the guest program's exit code",
    )

    subparsers.add_parser("languages", help="List supported languages")
    subparsers.add_parser("doctor", help="Diagnose the sandbox setup")
    subparsers.add_parser("serve", help="Start the MCP stdio server")
    return parser


_COMMANDS = {
    "run": cmd_run,
    "languages": cmd_languages,
    "doctor": cmd_doctor,
    "serve": cmd_serve,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    args = build_parser().parse_args(argv)

    try:
        config = ConfigManager(config_path=args.config).load_config()
    except ConfigurationError as e:
        _print_error(e)
        return EXIT_FAILURE

    # The MCP server owns stdout, so it gets plain stderr logging.
    rich_logs = config.logging.rich and args.command != "serve"
    setup_logging(args.log_level or config.logging.level, rich=rich_logs)

    return _COMMANDS[args.command](args, config)


if __name__ == "__main__":
    sys.exit(main())

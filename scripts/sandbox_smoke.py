#!/usr/bin/env python3
"""Manual integration check for the docker_sandbox tool.

Runs a fixed set of snippets against a real Docker daemon and prints each
output with its metadata. Needs Docker running and network access for the
first image pulls.
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Callable
from typing import Any, TextIO

from ironbox.core.config import ConfigManager
from ironbox.core.exceptions import ConfigurationError, IronboxError
from ironbox.sandbox.executor import SandboxExecutor
from ironbox.sandbox.runtimes.docker_runtime import DockerContainerRuntime
from ironbox.tools.docker_sandbox import DockerSandboxTool

SCENARIOS: list[tuple[str, dict[str, Any]]] = [
    ("Python execution", {"language": "python", "code": "print('Hello from sandbox!')"}),
    (
        "Bash execution",
        {"language": "bash", "code": "echo 'Hello from Alpine!' && whoami && hostname"},
    ),
    (
        "JavaScript execution",
        {
            "language": "javascript",
            "code": "console.log('Hello from Node.js!'); console.log(process.version)",
        },
    ),
    (
        "Non-zero exit (Python error)",
        {"language": "python", "code": "raise ValueError('intentional error')"},
    ),
    (
        "Network isolation (should fail)",
        {
            "language": "bash",
            "code": "wget -T 3 http://example.com 2>&1 || echo 'GOOD: Network is blocked'",
        },
    ),
    (
        "Host isolation check",
        {
            "language": "bash",
            "code": "cat /proc/1/cmdline 2>&1 || echo 'GOOD: Cannot read host PID 1'",
        },
    ),
    (
        "Multiline Python",
        {
            "language": "python",
            "code": "import sys\nfor i in range(5):\n    print(f'Line {i}')\nprint(f'Python {sys.version}')\n",
        },
    ),
    ("Custom timeout", {"language": "bash", "code": "echo 'fast'", "timeout": 5}),
    (
        "Timeout enforcement (should time out)",
        {"language": "bash", "code": "sleep 30", "timeout": 2},
    ),
    ("Input validation (should reject)", {"language": "cobol", "code": "DISPLAY 'HI'"}),
]


def run_scenario(out: TextIO, tool: DockerSandboxTool, arguments: dict[str, Any]) -> None:
    try:
        result = tool.call(json.dumps(arguments))
    except IronboxError as e:
        out.write(f"  Error: {e}\n")
        return
    out.write(f"  Output: {result.data.strip()}\n")
    out.write(
        "  Metadata: "
        f"language={result.metadata['language']} "
        f"image={result.metadata['image']} "
        f"exit_code={result.metadata['exit_code']}\n"
    )


def run(out: TextIO, runtime_factory: Callable[[], Any], sandbox_config: Any = None) -> int:
    out.write("=== Docker Sandbox Manual Integration Test ===\n")
    try:
        runtime = runtime_factory()
    except ConfigurationError as e:
        out.write(f"[FAIL] {e}\n")
        return 1
    out.write("[OK] Connected to Docker daemon\n")

    try:
        tool = DockerSandboxTool(SandboxExecutor.from_config(runtime, sandbox_config))
        for number, (title, arguments) in enumerate(SCENARIOS, start=1):
            out.write(f"\n--- Test {number}: {title} ---\n")
            run_scenario(out, tool, arguments)
    finally:
        runtime.close()

    out.write("\n=== Manual Integration Test Complete ===\n")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the docker_sandbox smoke scenarios.")
    parser.add_argument("--config", type=str, help="Path to ironbox.yaml")
    args = parser.parse_args()

    try:
        config = ConfigManager(config_path=args.config).load_config()
    except ConfigurationError as e:
        print(f"[FAIL] {e}")
        return 1
    return run(
        sys.stdout,
        lambda: DockerContainerRuntime.from_config(config.sandbox),
        config.sandbox,
    )


if __name__ == "__main__":
    raise SystemExit(main())

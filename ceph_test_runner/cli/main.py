# -*- coding: utf-8 -*-

# Copyright: (c) 2022, Daniel Schmidt <danischm@cisco.com>

import logging
from pathlib import Path
from typing import Optional

import errorhandler
import typer
from typing_extensions import Annotated

import ceph_test_runner
from ceph_test_runner.core.constants import (
    DEFAULT_TEST_TIMEOUT,
    DEFAULT_WORKER_COUNT,
    EXIT_DISCOVERY_ERROR,
    EXIT_FAILURE,
    EXIT_INVALID_ARGS,
    MAX_WORKER_COUNT,
)
from ceph_test_runner.core.errors import DiscoveryError, RuleFileError, SuitesFailedError
from ceph_test_runner.orchestrator import TestOrchestrator
from ceph_test_runner.rules import load_rules
from ceph_test_runner.utils.logging import VerbosityLevel, configure_logging
from ceph_test_runner.utils.terminal import terminal

app = typer.Typer(add_completion=False)

logger = logging.getLogger(__name__)

error_handler = errorhandler.ErrorHandler()


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"ceph-test-runner, version {ceph_test_runner.__version__}")
        raise typer.Exit()


Verbosity = Annotated[
    VerbosityLevel,
    typer.Option(
        "-v",
        "--verbosity",
        help="Verbosity level.",
        envvar="CEPH_TEST_VERBOSITY",
        is_eager=True,
    ),
]


TestDir = Annotated[
    Path,
    typer.Option(
        "-t",
        "--test-dir",
        exists=True,
        dir_okay=True,
        file_okay=False,
        help="Directory tree containing the test binaries.",
        envvar="CEPH_TEST_DIR",
    ),
]


Output = Annotated[
    Path,
    typer.Option(
        "-o",
        "--output",
        exists=False,
        dir_okay=True,
        file_okay=False,
        help="Path to output directory (logs, result stream, xunit report).",
        envvar="CEPH_TEST_OUTPUT",
    ),
]


Timeout = Annotated[
    int,
    typer.Option(
        "--timeout",
        help="Timeout per test binary in seconds.",
        envvar="CEPH_TEST_TIMEOUT",
        min=1,
    ),
]


Workers = Annotated[
    int,
    typer.Option(
        "-w",
        "--workers",
        help="Number of test binaries run in parallel. Isolated tests always run one at a time.",
        envvar="CEPH_TEST_WORKERS",
        min=1,
        max=MAX_WORKER_COUNT,
    ),
]


SkipSlow = Annotated[
    bool,
    typer.Option(
        "--skip-slow",
        help="Skip the test binaries listed in the slow table.",
        envvar="CEPH_TEST_SKIP_SLOW",
    ),
]


Rules = Annotated[
    Optional[Path],
    typer.Option(
        "-r",
        "--rules",
        exists=True,
        dir_okay=False,
        file_okay=True,
        help="Path to a YAML file with the excluded/isolated/manual/slow/standalone tables. Defaults to the bundled rules.",
        envvar="CEPH_TEST_RULES",
    ),
]


NoXunit = Annotated[
    bool,
    typer.Option(
        "--no-xunit",
        help="Do not convert the result stream into xunit.xml.",
        envvar="CEPH_TEST_NO_XUNIT",
    ),
]


Version = Annotated[
    bool,
    typer.Option(
        "--version",
        callback=version_callback,
        help="Display version number.",
        is_eager=True,
    ),
]


@app.command()
def main(
    test_dir: TestDir,
    output: Output,
    timeout: Timeout = DEFAULT_TEST_TIMEOUT,
    workers: Workers = DEFAULT_WORKER_COUNT,
    skip_slow: SkipSlow = False,
    rules: Rules = None,
    no_xunit: NoXunit = False,
    verbosity: Verbosity = VerbosityLevel.WARNING,
    version: Version = False,
) -> None:
    """A CLI tool to discover and run compiled test binaries in parallel and isolated passes."""
    configure_logging(verbosity, error_handler)

    try:
        rule_set = load_rules(rules)
    except RuleFileError as e:
        typer.echo(terminal.error(f"Invalid rules: {e}"), err=True)
        raise typer.Exit(EXIT_INVALID_ARGS)

    orchestrator = TestOrchestrator(
        test_dir=test_dir,
        output_dir=output,
        rules=rule_set,
        timeout=timeout,
        workers=workers,
        skip_slow=skip_slow,
        write_xunit=not no_xunit,
    )

    try:
        orchestrator.run()
    except DiscoveryError as e:
        typer.echo(terminal.error(f"Test discovery failed: {e}"), err=True)
        raise typer.Exit(EXIT_DISCOVERY_ERROR)
    except SuitesFailedError as e:
        typer.echo(terminal.error(f"{e} ({e.failure_count} failed)"), err=True)
        raise typer.Exit(EXIT_FAILURE)

    exit()


def exit() -> None:
    if error_handler.fired:
        raise typer.Exit(EXIT_FAILURE)
    else:
        raise typer.Exit(0)

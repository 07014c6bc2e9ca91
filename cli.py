#!/usr/bin/env python3
"""
NotebookWeb CLI.

One entry point for running and inspecting the web client. --service picks
what to run; --action controls the server's lifecycle.

Usage:
    python cli.py --service server --reload --verbose
    python cli.py --service server --action status
    python cli.py --service health
    python cli.py --service config
    python cli.py --service test --test-type unit --coverage
"""

import asyncio
import os
import signal
import subprocess
import sys
import time
from collections.abc import Callable
from typing import Any

import click
import structlog

from notebookweb.backend.core.config import get_app_config, get_settings, validate_project_root
from notebookweb.backend.core.logging import get_logger, setup_logging

ASGI_APP = "notebookweb.backend.main:app"

TEST_PATHS = {"all": "tests/", "unit": "tests/unit", "integration": "tests/integration"}

RESTART_PAUSE_SECONDS = 2

CheckResult = tuple[str, bool, str | None]


# =============================================================================
# Server lifecycle
# =============================================================================


def _find_process_on_port(port: int) -> list[int]:
    """PIDs listening on a port, via lsof."""
    result = subprocess.run(["lsof", "-ti", f":{port}"], capture_output=True, text=True)
    return [int(pid) for pid in result.stdout.split() if pid.strip()]


def _service_stop(logger: Any, port: int) -> None:
    pids = _find_process_on_port(port)
    if not pids:
        click.echo(f"No server running on port {port}.")
        return
    for pid in pids:
        os.kill(pid, signal.SIGINT)
        logger.info("Sent SIGINT", extra={"pid": pid, "port": port})
    click.echo(f"Server on port {port} stopped (PID: {', '.join(map(str, pids))}).")


def _service_status(logger: Any, port: int) -> None:
    pids = _find_process_on_port(port)
    logger.debug("Status checked", extra={"port": port, "pids": pids})
    if pids:
        click.echo(f"Server is running on port {port} (PID: {', '.join(map(str, pids))}).")
    else:
        click.echo(f"Server is not running on port {port}.")


def run_server(logger: Any, host: str | None, port: int | None, reload: bool) -> None:
    """Run uvicorn in a child process until it exits or Ctrl+C."""
    server = get_app_config().application.server
    host, port = host or server.host, port or server.port

    cmd = [sys.executable, "-m", "uvicorn", ASGI_APP, "--host", host, "--port", str(port)]
    if reload:
        cmd.append("--reload")

    logger.info("Starting server", extra={"host": host, "port": port, "reload": reload})
    click.echo(f"Starting server at http://{host}:{port} (public URL {server.public_url})")
    click.echo("Press Ctrl+C to stop\n")

    try:
        subprocess.run(cmd, check=True)
    except KeyboardInterrupt:
        logger.info("Server stopped")
    except subprocess.CalledProcessError as e:
        logger.error("Server exited with an error", extra={"exit_code": e.returncode})
        sys.exit(e.returncode)


# =============================================================================
# Health
# =============================================================================


async def _probe_backend() -> dict:
    """One call to the backend auth health endpoint with a short-lived client."""
    from notebookweb.backend.api.health import check_backend
    from notebookweb.backend.supabase.client import create_supabase_client

    backend = create_supabase_client()
    try:
        return await check_backend(backend)
    finally:
        await backend.close()


def _check_config() -> CheckResult:
    try:
        app_config = get_app_config()
    except (FileNotFoundError, ValueError) as e:
        return "YAML configuration", False, str(e)
    return "YAML configuration", True, f"App: {app_config.application.name}"


def _check_secrets() -> CheckResult:
    try:
        get_settings()
    except ValueError as e:
        return "Secrets (environment or config/.env)", False, str(e)
    return "Secrets (environment or config/.env)", True, None


def _check_app() -> CheckResult:
    from notebookweb.backend.main import get_app

    try:
        app = get_app()
    except (ValueError, RuntimeError) as e:
        return "FastAPI application", False, str(e)
    return "FastAPI application", True, f"{len(app.routes)} routes"


def _check_backend() -> CheckResult:
    result = asyncio.run(_probe_backend())
    if result["status"] == "healthy":
        return "Backend auth service", True, f"{result['latency_ms']}ms"
    return "Backend auth service", False, result.get("error")


HEALTH_CHECKS: list[Callable[[], CheckResult]] = [_check_config, _check_secrets, _check_app, _check_backend]


def check_health(logger: Any) -> None:
    """Run checks in order; stop at the first failure since later ones depend on it."""
    click.echo("Checking application health...\n")
    results: list[CheckResult] = []
    for check in HEALTH_CHECKS:
        results.append(check())
        logger.debug("Health check ran", extra={"check": results[-1][0], "passed": results[-1][1]})
        if not results[-1][1]:
            break
    _print_checks(results)


def _print_checks(results: list[CheckResult]) -> None:
    click.echo("Health Check Results:")
    click.echo("-" * 50)
    for name, passed, detail in results:
        mark = click.style("✓ PASS", fg="green") if passed else click.style("✗ FAIL", fg="red")
        click.echo(f"  {mark}  {name}" + (f" ({detail})" if detail else ""))
    click.echo("-" * 50)

    if all(passed for _, passed, _ in results) and len(results) == len(HEALTH_CHECKS):
        click.echo(click.style("\nAll checks passed!", fg="green"))
    else:
        click.echo(click.style("\nSome checks failed. See details above.", fg="yellow"))
        click.echo("Secrets can be set in the environment or config/.env (see config/.env.example).")


# =============================================================================
# Config, tests, info
# =============================================================================


SECTION_TITLES = {
    "application": "Application Settings",
    "supabase": "Backend Settings",
    "logging": "Logging Settings",
    "features": "Feature Flags",
    "security": "Security Settings",
}


def _echo_values(values: dict, indent: int = 2) -> None:
    for key, value in values.items():
        if isinstance(value, dict):
            click.echo(f"{' ' * indent}{key}:")
            _echo_values(value, indent + 2)
        else:
            click.echo(f"{' ' * indent}{key}: {value}")


def show_config(logger: Any) -> None:
    """Print every YAML section. Secrets live in Settings and are never shown."""
    app_config = get_app_config()
    click.echo("Application Configuration:")
    for section, title in SECTION_TITLES.items():
        click.echo(f"\n{title} ({section}.yaml):")
        click.echo("-" * 40)
        _echo_values(getattr(app_config, section).model_dump())
    logger.info("Configuration displayed")


def run_tests(logger: Any, test_type: str, coverage: bool) -> None:
    cmd = [sys.executable, "-m", "pytest", TEST_PATHS[test_type], "-v"]
    if coverage:
        cmd += ["--cov=notebookweb", "--cov-report=term-missing"]

    logger.info("Running tests", extra={"type": test_type, "coverage": coverage})
    click.echo(f"Running: {' '.join(cmd)}\n")
    sys.exit(subprocess.run(cmd).returncode)


def show_info(logger: Any) -> None:
    application = get_app_config().application
    click.echo("NotebookWeb")
    click.echo("=" * 40)
    click.echo(f"Name: {application.name}")
    click.echo(f"Version: {application.version}")
    click.echo(f"Environment: {application.environment}")
    click.echo(f"Backend: {get_app_config().supabase.url}")
    click.echo(
        "\nServices (--service):\n"
        "  server   Web screens and JSON API (--action start|stop|restart|status)\n"
        "  health   Configuration, secrets, app and backend checks\n"
        "  config   Show YAML configuration\n"
        "  test     Run the test suite\n"
        "  info     Show this information\n"
        "\nLogging: --verbose for INFO, --debug for DEBUG"
    )
    logger.debug("Info displayed")


# =============================================================================
# Entry point
# =============================================================================


@click.command()
@click.option(
    "--service", "-s",
    type=click.Choice(["server", "health", "config", "test", "info"]),
    default="info",
    help="Service or command to run.",
)
@click.option(
    "--action", "-a",
    type=click.Choice(["start", "stop", "restart", "status"]),
    default="start",
    help="Server lifecycle action.",
)
@click.option("--verbose", "-v", is_flag=True, help="INFO level logging.")
@click.option("--debug", "-d", is_flag=True, help="DEBUG level logging.")
@click.option("--host", default=None, help="Server host (default from application.yaml).")
@click.option("--port", default=None, type=int, help="Server port (default from application.yaml).")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes (server only).")
@click.option(
    "--test-type",
    type=click.Choice(sorted(TEST_PATHS)),
    default="all",
    help="Test selection.",
)
@click.option("--coverage", is_flag=True, help="Measure coverage of the notebookweb package.")
def main(
    service: str,
    action: str,
    verbose: bool,
    debug: bool,
    host: str | None,
    port: int | None,
    reload: bool,
    test_type: str,
    coverage: bool,
) -> None:
    """
    NotebookWeb CLI.

    \b
    Examples:
        python cli.py --service server --reload --verbose
        python cli.py --service server --action restart --port 8099
        python cli.py --service health --debug
        python cli.py --service test --test-type unit --coverage
    """
    validate_project_root()

    log_level = "DEBUG" if debug else "INFO" if verbose else "WARNING"
    setup_logging(level=log_level, format_type="console")
    structlog.contextvars.bind_contextvars(source="cli")
    logger = get_logger(__name__)
    logger.debug("CLI invoked", extra={"service": service, "action": action})

    if service == "server":
        server_port = port or get_app_config().application.server.port
        if action == "status":
            _service_status(logger, server_port)
            return
        if action == "stop":
            _service_stop(logger, server_port)
            return
        if action == "restart":
            _service_stop(logger, server_port)
            time.sleep(RESTART_PAUSE_SECONDS)
        run_server(logger, host, port, reload)
    elif service == "health":
        check_health(logger)
    elif service == "config":
        show_config(logger)
    elif service == "test":
        run_tests(logger, test_type, coverage)
    else:
        show_info(logger)


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
EventDesk CLI.

Primary entry point for all application operations.
Use --service to select what to run, --action to control lifecycle.

Usage:
    python cli.py --help
    python cli.py --service server --verbose
    python cli.py --service server --action stop
    python cli.py --service worker --workers 2
    python cli.py --service health --debug
    python cli.py --service config
    python cli.py --service db
    python cli.py --service test --test-type unit
"""

import asyncio
import os
import signal
import subprocess
import sys
import time
from pathlib import Path

import click
import structlog

PROJECT_ROOT = Path(__file__).parent

from eventdesk.backend.core.logging import get_logger, setup_logging

LONG_RUNNING_SERVICES = {"server", "worker"}

WORKER_MODULE = "eventdesk.backend.tasks.notifications:broker"


def validate_project_root() -> Path:
    """Validate that we're running from the project root."""
    if not (PROJECT_ROOT / ".project_root").exists():
        click.echo(
            click.style("Error: .project_root not found. Run from project root.", fg="red"),
            err=True,
        )
        sys.exit(1)
    return PROJECT_ROOT


def _find_process_on_port(port: int) -> list[int]:
    """Find PIDs listening on a port."""
    result = subprocess.run(
        ["lsof", "-ti", f":{port}"],
        capture_output=True, text=True,
    )
    pids = result.stdout.strip().split("\n")
    return [int(p) for p in pids if p.strip()]


def _find_worker_processes() -> list[int]:
    """Find PIDs of taskiq workers consuming the notification broker."""
    result = subprocess.run(
        ["pgrep", "-f", f"taskiq worker {WORKER_MODULE}"],
        capture_output=True, text=True,
    )
    pids = result.stdout.strip().split("\n")
    return [int(p) for p in pids if p.strip()]


def _service_pids(service: str, port: int | None) -> list[int]:
    if service == "worker":
        return _find_worker_processes()
    return _find_process_on_port(_get_service_port(port))


def _service_stop(logger, service: str, port: int | None) -> None:
    """Stop a running service."""
    pids = _service_pids(service, port)
    if not pids:
        click.echo(f"No {service} running.")
        return

    for pid in pids:
        os.kill(pid, signal.SIGINT)
        logger.info("Sent SIGINT", extra={"service": service, "pid": pid})

    click.echo(f"{service.title()} stopped (PID: {', '.join(str(p) for p in pids)}).")


def _service_status(logger, service: str, port: int | None) -> None:
    """Check if a service is running."""
    pids = _service_pids(service, port)
    if pids:
        click.echo(f"{service.title()} is running (PID: {', '.join(str(p) for p in pids)}).")
    else:
        click.echo(f"{service.title()} is not running.")


def _get_service_port(port: int | None) -> int:
    """Get the port from argument or config."""
    if port is not None:
        return port
    from eventdesk.backend.core.config import get_app_config
    return get_app_config().application.server.port


@click.command()
@click.option(
    "--service", "-s",
    type=click.Choice(["server", "worker", "health", "config", "db", "test", "info"]),
    default="info",
    help="Service or command to run.",
)
@click.option(
    "--action", "-a",
    type=click.Choice(["start", "stop", "restart", "status"]),
    default="start",
    help="Lifecycle action for long-running services (server, worker).",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose output (INFO level logging).",
)
@click.option(
    "--debug", "-d",
    is_flag=True,
    help="Enable debug output (DEBUG level logging).",
)
@click.option(
    "--host",
    default=None,
    help="Server host.",
)
@click.option(
    "--port",
    default=None,
    type=int,
    help="Server port.",
)
@click.option(
    "--reload",
    is_flag=True,
    help="Enable auto-reload (server only).",
)
@click.option(
    "--test-type",
    type=click.Choice(["all", "unit", "integration"]),
    default="all",
    help="Test type to run.",
)
@click.option(
    "--coverage",
    is_flag=True,
    help="Run tests with coverage.",
)
@click.option(
    "--workers",
    default=1,
    type=int,
    help="Number of worker processes.",
)
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
    workers: int,
) -> None:
    """
    EventDesk CLI.

    Use --service to select what to run. For long-running services
    (server, worker), use --action to control lifecycle
    (start/stop/restart/status).

    \b
    Examples:
        python cli.py --service server --verbose
        python cli.py --service server --action stop
        python cli.py --service server --action restart --port 8099
        python cli.py --service worker --workers 2
        python cli.py --service worker --action status
        python cli.py --service health --debug
        python cli.py --service config
        python cli.py --service db
        python cli.py --service test --test-type unit --coverage
        python cli.py --service info
    """
    validate_project_root()

    if debug:
        log_level = "DEBUG"
    elif verbose:
        log_level = "INFO"
    else:
        log_level = "WARNING"

    setup_logging(level=log_level, format_type="console")

    structlog.contextvars.bind_contextvars(source="cli")

    logger = get_logger(__name__)

    logger.debug("CLI invoked", extra={"service": service, "action": action, "log_level": log_level})

    if service in LONG_RUNNING_SERVICES and action != "start":
        if action == "stop":
            _service_stop(logger, service, port)
            return
        elif action == "status":
            _service_status(logger, service, port)
            return
        elif action == "restart":
            _service_stop(logger, service, port)
            time.sleep(2)

    if service == "server":
        run_server(logger, host, port, reload)
    elif service == "worker":
        run_worker(logger, workers)
    elif service == "health":
        check_health(logger)
    elif service == "config":
        show_config(logger)
    elif service == "db":
        create_tables(logger)
    elif service == "test":
        run_tests(logger, test_type, coverage)
    elif service == "info":
        show_info(logger)


def run_server(logger, host: str | None, port: int | None, reload: bool) -> None:
    """Start the FastAPI development server."""
    from eventdesk.backend.core.config import get_app_config

    try:
        server_config = get_app_config().application.server
    except Exception as e:
        logger.error("Failed to load configuration.", extra={"error": str(e)})
        click.echo(
            click.style("Error: Could not load config/settings/application.yaml.", fg="red"),
            err=True,
        )
        sys.exit(1)

    server_host = host or server_config.host
    server_port = port or server_config.port

    logger.info(
        "Starting server",
        extra={"host": server_host, "port": server_port, "reload": reload},
    )

    cmd = [
        sys.executable, "-m", "uvicorn",
        "eventdesk.backend.main:app",
        "--host", server_host,
        "--port", str(server_port),
    ]

    if reload:
        cmd.append("--reload")

    click.echo(f"Starting server at http://{server_host}:{server_port}")
    click.echo("Press Ctrl+C to stop\n")

    try:
        subprocess.run(cmd, check=True)
    except KeyboardInterrupt:
        logger.info("Server stopped")
    except subprocess.CalledProcessError as e:
        logger.error("Server failed to start", extra={"exit_code": e.returncode})
        sys.exit(e.returncode)


def run_worker(logger, workers: int) -> None:
    """Start the Taskiq worker that sends queued confirmation emails."""
    logger.info("Starting background task worker", extra={"workers": workers})

    try:
        from eventdesk.backend.core.config import get_redis_url
        redis_url = get_redis_url()
        logger.debug("Redis configured", extra={"redis_url": redis_url.split("@")[-1]})
    except Exception as e:
        logger.error("Failed to load Redis configuration.", extra={"error": str(e)})
        click.echo(
            click.style(f"Error: Redis not configured: {e}", fg="red"),
            err=True,
        )
        sys.exit(1)

    cmd = [
        sys.executable, "-m", "taskiq",
        "worker",
        WORKER_MODULE,
        "--workers", str(workers),
    ]

    click.echo(f"Starting Taskiq worker with {workers} worker(s)")
    click.echo("Press Ctrl+C to stop\n")

    try:
        subprocess.run(cmd, check=True)
    except KeyboardInterrupt:
        logger.info("Worker stopped")
    except subprocess.CalledProcessError as e:
        logger.error("Worker failed to start", extra={"exit_code": e.returncode})
        sys.exit(e.returncode)


def check_health(logger) -> None:
    """Check application health by testing imports and configuration."""
    click.echo("Checking application health...\n")

    checks = []

    # Check 1: Core imports
    try:
        from eventdesk.backend.core.config import get_app_config, get_settings
        checks.append(("Core imports", True, None))
        logger.debug("Core imports successful")
    except Exception as e:
        checks.append(("Core imports", False, str(e)))
        logger.error("Core imports failed", extra={"error": str(e)})

    # Check 2: Configuration loading
    try:
        app_config = get_app_config()
        app_name = app_config.application.name
        base_url = app_config.integrations.public_base_url
        checks.append(("YAML configuration", True, f"App: {app_name}, public URL: {base_url}"))
        logger.debug("Configuration loaded", extra={"app_name": app_name})
    except Exception as e:
        checks.append(("YAML configuration", False, str(e)))
        logger.error("Configuration failed", extra={"error": str(e)})

    # Check 3: Secrets
    try:
        get_settings()
        app_env = get_app_config().application.environment
        checks.append(("Environment secrets", True, f"Env: {app_env}"))
        logger.debug("Settings loaded", extra={"env": app_env})
    except Exception as e:
        checks.append(("Environment secrets", False, str(e)))
        logger.warning("Environment secrets not configured", extra={"error": str(e)})

    # Check 4: FastAPI app
    try:
        from eventdesk.backend.main import get_app
        app = get_app()
        checks.append(("FastAPI application", True, f"Routes: {len(app.routes)}"))
        logger.debug("FastAPI app loaded", extra={"title": app.title})
    except Exception as e:
        checks.append(("FastAPI application", False, str(e)))
        logger.error("FastAPI app failed", extra={"error": str(e)})

    # Check 5: Database models
    try:
        import eventdesk.backend.models  # noqa: F401
        from eventdesk.backend.models.base import Base
        checks.append(("Database models", True, f"Tables: {len(Base.metadata.tables)}"))
        logger.debug("Database models loaded")
    except Exception as e:
        checks.append(("Database models", False, str(e)))
        logger.error("Database models failed", extra={"error": str(e)})

    click.echo("Health Check Results:")
    click.echo("-" * 50)

    all_passed = True
    for name, passed, detail in checks:
        status = click.style("✓ PASS", fg="green") if passed else click.style("✗ FAIL", fg="red")
        detail_str = f" ({detail})" if detail else ""
        click.echo(f"  {status}  {name}{detail_str}")
        if not passed:
            all_passed = False

    click.echo("-" * 50)

    if all_passed:
        click.echo(click.style("\nAll checks passed!", fg="green"))
    else:
        click.echo(click.style("\nSome checks failed. See details above.", fg="yellow"))
        click.echo("Note: DB_PASSWORD and JWT_SECRET must be set in config/.env.")
        sys.exit(1)


def _echo_section(title: str, values: dict, indent: int = 2) -> None:
    if title:
        click.echo(f"\n{title}:")
        click.echo("-" * 40)
    for key, value in values.items():
        if isinstance(value, dict):
            click.echo(f"{' ' * indent}{key}:")
            _echo_section("", value, indent + 2)
        else:
            click.echo(f"{' ' * indent}{key}: {value}")


def show_config(logger) -> None:
    """Display loaded configuration."""
    click.echo("Application Configuration:")

    try:
        from eventdesk.backend.core.config import get_app_config

        app_config = get_app_config()

        _echo_section("Application (application.yaml)", app_config.application.model_dump())
        _echo_section("Database (database.yaml)", app_config.database.model_dump())
        _echo_section("Logging (logging.yaml)", app_config.logging.model_dump())
        _echo_section("Feature Flags (features.yaml)", app_config.features.model_dump())
        _echo_section("Concurrency (concurrency.yaml)", app_config.concurrency.model_dump())
        _echo_section("Integrations (integrations.yaml)", app_config.integrations.model_dump())

        logger.info("Configuration displayed successfully")

    except Exception as e:
        logger.error("Failed to load configuration", extra={"error": str(e)})
        click.echo(click.style(f"Error loading configuration: {e}", fg="red"))
        sys.exit(1)


def create_tables(logger) -> None:
    """Create every table from the ORM metadata."""
    from eventdesk.backend.core.database import create_all_tables, dispose_engine

    async def _run() -> None:
        try:
            await create_all_tables()
        finally:
            await dispose_engine()

    try:
        asyncio.run(_run())
    except Exception as e:
        logger.error("Table creation failed", extra={"error": str(e)})
        click.echo(click.style(f"Error creating tables: {e}", fg="red"), err=True)
        sys.exit(1)

    click.echo(click.style("Database tables created.", fg="green"))


def run_tests(logger, test_type: str, coverage: bool) -> None:
    """Run the test suite."""
    logger.info("Running tests", extra={"type": test_type, "coverage": coverage})

    cmd = [sys.executable, "-m", "pytest"]

    if test_type == "unit":
        cmd.append("tests/unit")
    elif test_type == "integration":
        cmd.append("tests/integration")
    else:
        cmd.append("tests/")

    cmd.append("-v")

    if coverage:
        cmd.extend(["--cov=eventdesk", "--cov-report=term-missing"])

    click.echo(f"Running: {' '.join(cmd)}\n")

    try:
        result = subprocess.run(cmd)
        sys.exit(result.returncode)
    except FileNotFoundError:
        logger.error("pytest not found. Install with: pip install -e '.[test]'")
        sys.exit(1)


def show_info(logger) -> None:
    """Display application information."""
    click.echo("EventDesk")
    click.echo("=" * 40)

    try:
        from eventdesk.backend.core.config import get_app_config
        app_config = get_app_config()
        click.echo(f"Name: {app_config.application.name}")
        click.echo(f"Version: {app_config.application.version}")
        click.echo(f"Description: {app_config.application.description}")
    except Exception as e:
        logger.error(
            "Failed to load application configuration",
            extra={"error": str(e)},
        )
        click.echo(
            click.style(
                "Error: Could not load application.yaml configuration.",
                fg="red",
            ),
            err=True,
        )
        sys.exit(1)

    click.echo()
    click.echo("Services (--service):")
    click.echo("  server         FastAPI development server")
    click.echo("  worker         Confirmation email worker (taskiq)")
    click.echo("  health         Check configuration and imports")
    click.echo("  config         Display configuration")
    click.echo("  db             Create database tables")
    click.echo("  test           Run test suite")
    click.echo("  info           Show this information")
    click.echo()
    click.echo("Lifecycle actions (--action, for server and worker):")
    click.echo("  start          Start the service (default)")
    click.echo("  stop           Stop a running service")
    click.echo("  restart        Stop then start")
    click.echo("  status         Check if running")
    click.echo()
    click.echo("Options:")
    click.echo("  --verbose, -v  Enable INFO level logging")
    click.echo("  --debug, -d    Enable DEBUG level logging")

    logger.debug("Info displayed")


if __name__ == "__main__":
    main()

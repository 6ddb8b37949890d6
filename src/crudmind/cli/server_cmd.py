"""Server management commands."""

import os
import signal
import subprocess
import sys
from pathlib import Path

import httpx
from rich.console import Console

from crudmind.config.loader import CONFIG_ENV_VAR, ConfigError, load_config, resolve_config_path

STATE_DIR = Path.home() / ".crudmind"
PID_FILE = STATE_DIR / "server.pid"
LOG_FILE = STATE_DIR / "server.log"

console = Console()


def _write_pid(pid: int) -> None:
    PID_FILE.parent.mkdir(parents=True, exist_ok=True)
    PID_FILE.write_text(str(pid))


def _read_pid() -> int | None:
    """PID of the running server, or None if the PID file is missing or stale."""
    if not PID_FILE.exists():
        return None
    try:
        pid = int(PID_FILE.read_text().strip())
        os.kill(pid, 0)
        return pid
    except (ValueError, ProcessLookupError, PermissionError):
        PID_FILE.unlink(missing_ok=True)
        return None


def start_command(config_path: str | None = None, detach: bool = False) -> None:
    """Start the crudmind API server.

    Args:
        config_path: Optional path to config file
        detach: Run server in background
    """
    existing_pid = _read_pid()
    if existing_pid:
        console.print(f"[yellow]Server already running (PID {existing_pid})[/yellow]")
        console.print("Run [bold]crudmind stop[/bold] first.")
        return

    path = resolve_config_path(config_path)
    try:
        config = load_config(path)
    except ConfigError as e:
        console.print(f"[red]Failed to load config: {e}[/red]")
        return

    if not Path(config.database.path).exists():
        console.print(f"[red]Database not found: {config.database.path}[/red]")
        return

    if detach:
        # The ASGI module loads its own config, so hand it the resolved path.
        env = {**os.environ, CONFIG_ENV_VAR: str(path)}
        cmd = [
            sys.executable,
            "-m",
            "uvicorn",
            "crudmind.server.asgi:app",
            "--host",
            config.server.host,
            "--port",
            str(config.server.port),
            "--log-level",
            "info",
        ]
        LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        log_file = LOG_FILE.open("a")
        proc = subprocess.Popen(
            cmd,
            stdout=log_file,
            stderr=subprocess.STDOUT,
            start_new_session=True,
            env=env,
        )
        _write_pid(proc.pid)
        console.print(f"[green]crudmind server started in background (PID {proc.pid})[/green]")
        console.print(f"  http://{config.server.host}:{config.server.port}")
        console.print(f"  Log: {LOG_FILE}")
        console.print("\nRun [bold]crudmind stop[/bold] to stop.")
        return

    import uvicorn

    from crudmind.server.app import create_app

    app = create_app(config)
    _write_pid(os.getpid())

    console.print(
        f"[green]Starting crudmind server on {config.server.host}:{config.server.port}[/green]"
    )
    console.print(f"Model: {config.model.name} ({config.inference.backend})")
    console.print(f"Database: {config.database.path}")
    console.print("\nPress Ctrl+C to stop")

    try:
        uvicorn.run(app, host=config.server.host, port=config.server.port, log_level="info")
    finally:
        PID_FILE.unlink(missing_ok=True)


def stop_command() -> None:
    """Stop the crudmind API server."""
    pid = _read_pid()
    if pid is None:
        console.print("[yellow]No running crudmind server found.[/yellow]")
        return

    try:
        os.kill(pid, signal.SIGTERM)
        console.print(f"[green]Stopped crudmind server (PID {pid})[/green]")
    except ProcessLookupError:
        console.print("[yellow]Server process already exited.[/yellow]")
    finally:
        PID_FILE.unlink(missing_ok=True)


def status_command() -> None:
    """Check crudmind server status through its health endpoint."""
    pid = _read_pid()

    try:
        config = load_config()
        host, port = config.server.host, config.server.port
    except ConfigError:
        host, port = "127.0.0.1", 8000

    try:
        resp = httpx.get(f"http://{host}:{port}/health", timeout=3.0)
        resp.raise_for_status()
        data = resp.json()
    except (httpx.HTTPError, ValueError):
        if pid:
            console.print(f"[yellow]PID {pid} exists but health check failed.[/yellow]")
        else:
            console.print("[yellow]Server is not running.[/yellow]")
            console.print("Start with: [bold]crudmind start[/bold]")
        return

    console.print("[green]Server is running[/green]")
    if pid:
        console.print(f"  PID:     {pid}")
    console.print(f"  URL:     http://{host}:{port}")
    console.print(f"  Model:   {data.get('model', 'unknown')}")
    console.print(f"  Version: {data.get('version', 'unknown')}")
    console.print(f"  Tables:  {', '.join(data.get('tables', [])) or '-'}")

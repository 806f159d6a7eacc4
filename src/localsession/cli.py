"""localsession CLI - inspect store configuration and watch a sweep.

Designed for:
- Checking localsession.yaml / env configuration before deploying
- Seeing how the grace period affects what a sweep reclaims
"""
from __future__ import annotations

import logging
import random
import sys
import time
from typing import Optional

import typer
import yaml
from rich.console import Console

from localsession.errors import InvalidOptionsError

app = typer.Typer(help="localsession CLI - Check configuration, run a demo sweep")

_CONSOLE = Console()
_CONSOLE_ERR = Console(file=sys.stderr)


@app.command()
def check(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show where configuration was loaded from",
    ),
) -> None:
    """Validate session store configuration.

    Example:
        localsession check
        localsession check --verbose
    """
    from localsession.session import create_session_store
    from localsession.settings import load_settings

    try:
        settings = load_settings()
        logging.basicConfig(level=settings.session.log_level)
        store = create_session_store()
    except (InvalidOptionsError, ValueError, yaml.YAMLError) as e:
        _CONSOLE_ERR.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(code=1)

    if verbose:
        _CONSOLE.print(f"Project root: {settings.project_root}")
        _CONSOLE.print(f"Config file: {settings.config_path or '(none, using env and defaults)'}")

    _CONSOLE.print(f"gc: {store.gc}")
    _CONSOLE.print(f"probability: {store.probability}")
    _CONSOLE.print(f"maxlifetime: {store.maxlifetime}ms")
    _CONSOLE.print(f"debug: {'on' if store.debug else 'off'}")
    _CONSOLE.print("[green]Configuration valid![/green]")


@app.command()
def sweep(
    sessions: int = typer.Option(10, "--sessions", "-n", help="Live sessions to insert"),
    expired: int = typer.Option(5, "--expired", "-e", help="Stale sessions to insert"),
    maxlifetime: int = typer.Option(60000, "--maxlifetime", help="Grace period in ms"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for generated keys"),
) -> None:
    """Insert live and stale sessions, then trigger one sweep."""
    from localsession.store import LocalSessionStore

    rnd = random.Random(seed)
    messages: list[str] = []
    try:
        store = LocalSessionStore(
            {"gc": True, "probability": 1, "maxlifetime": maxlifetime, "debug": messages.append}
        )
    except InvalidOptionsError as e:
        _CONSOLE_ERR.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(code=1)

    now = int(time.time() * 1000)
    for i in range(sessions):
        store.set(f"live-{i:06d}-{rnd.getrandbits(32):08x}", {"_expire": now + 3600000}, 3600000, {"force": True})
    for i in range(expired):
        stale_expire = now - maxlifetime - rnd.randint(1, 3600000)
        store.set(f"stale-{i:06d}-{rnd.getrandbits(32):08x}", {"_expire": stale_expire}, 0, {"force": True})

    before = store.size
    store.get("__sweep__")
    _CONSOLE.print(f"Before sweep: {before} session(s)")
    _CONSOLE.print(f"After sweep: {store.size} session(s)")
    for message in messages:
        _CONSOLE.print(f"  - {message}", style="dim")


if __name__ == "__main__":
    app()

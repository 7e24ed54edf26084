from __future__ import annotations

from typing import Any, Dict, Optional
import json
import os

import typer
from rich.console import Console
from rich.table import Table
import httpx


app = typer.Typer()
console = Console()
trace_console = Console(stderr=True)

DEFAULT_TIMEOUT = float(os.getenv("CLI_HTTP_TIMEOUT", "60"))


def _base_url() -> str:
    return os.getenv("EXPLORER_URL", "http://localhost:3000").rstrip("/")


def _open_session(client: httpx.Client) -> str:
    resp = client.post(f"{_base_url()}/sessions", json={"autostart": False})
    resp.raise_for_status()
    return resp.json()["session_id"]


def _print_state(state: Dict[str, Any]) -> None:
    if state.get("caption_visible") and state.get("caption"):
        console.print(state["caption"], style="bold")
    if state.get("directions_visible") and state.get("directions_result"):
        console.print(state["directions_result"], style="bold")
    if state.get("map_src"):
        console.print(f"Map: {state['map_src']}", style="dim")


def _post(path: str, body: Optional[dict] = None) -> Optional[Dict[str, Any]]:
    try:
        with httpx.Client(timeout=DEFAULT_TIMEOUT) as client:
            session_id = _open_session(client)
            resp = client.post(f"{_base_url()}/sessions/{session_id}{path}", json=body or {})
            resp.raise_for_status()
            return resp.json()
    except httpx.HTTPStatusError as e:
        detail = e.response.text
        try:
            detail = e.response.json().get("detail", detail)
        except json.JSONDecodeError:
            pass
        trace_console.print(f"Request failed ({e.response.status_code}): {detail}", style="bold red")
    except httpx.HTTPError as e:
        trace_console.print(f"Request failed: {e}", style="bold red")
    return None


@app.command()
def presets() -> None:
    """List the preset prompts."""
    try:
        resp = httpx.get(f"{_base_url()}/presets", timeout=DEFAULT_TIMEOUT)
        resp.raise_for_status()
    except httpx.HTTPError as e:
        trace_console.print(f"Request failed: {e}", style="bold red")
        raise typer.Exit(code=1)
    table = Table("#", "Preset", "Prompt")
    for item in resp.json():
        table.add_row(str(item["index"]), item["label"], item["prompt"])
    console.print(table)


@app.command()
def recommend(
    prompt: Optional[str] = typer.Argument(None, help="Free-text travel prompt."),
    preset: Optional[int] = typer.Option(None, "--preset", "-p", help="Use a preset by index instead."),
) -> None:
    """Ask for a place recommendation."""
    if preset is None and not (prompt and prompt.strip()):
        console.print("Give a prompt or --preset.", style="bold red")
        raise typer.Exit(code=1)
    with console.status("Finding somewhere surprising..."):
        if preset is not None:
            state = _post(f"/presets/{preset}")
        else:
            state = _post("/recommend", {"prompt": prompt})
    if state is None:
        raise typer.Exit(code=1)
    if not state.get("caption_visible"):
        console.print("No place was recommended this time.", style="yellow")
    _print_state(state)


@app.command()
def directions(
    origin: str = typer.Argument(..., help="Where the trip starts."),
    destination: str = typer.Argument(..., help="Where the trip ends."),
) -> None:
    """Estimate the driving time between two places."""
    with console.status("Calculating..."):
        state = _post("/directions", {"origin": origin, "destination": destination})
    if state is None:
        raise typer.Exit(code=1)
    _print_state(state)


@app.command()
def watch(session_id: str = typer.Argument(..., help="Session to follow, e.g. one opened in a browser.")) -> None:
    """Print every display update of a session as it happens."""
    url = f"{_base_url()}/sessions/{session_id}/events"
    try:
        with httpx.stream("GET", url, headers={"Accept": "text/event-stream"}, timeout=None) as resp:
            resp.raise_for_status()
            for raw_line in resp.iter_lines():
                line = raw_line.strip()
                if not line.startswith("data:"):
                    continue
                try:
                    state = json.loads(line[len("data:"):].strip())
                except json.JSONDecodeError:
                    continue
                trace_console.print("-- update --", style="dim")
                _print_state(state)
    except httpx.HTTPError as e:
        trace_console.print(f"Request failed: {e}", style="bold red")
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    app()

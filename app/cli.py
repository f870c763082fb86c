from __future__ import annotations

import time
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from adapters.random.sources import SeededRandomSource
from adapters.token.state_codec import StateCodec
from app.config import AppSettings, load_settings
from app.draw_wiring import build_draw_links
from domain.services.draw_links import DrawLinks, LinkEncodingError, LinkView

app = typer.Typer(no_args_is_help=True)
console = Console()

ConfigOption = typer.Option(None, "--config", help="Path to a YAML settings file.")


def _settings(config: Path | None) -> AppSettings:
    return load_settings(config)


def _print_link(view: LinkView) -> None:
    console.print(f"[bold]Token:[/] {view.token}")
    console.print(f"[bold]Link:[/] {view.url}")
    if view.is_exhausted:
        console.print("[yellow]All items have been drawn.[/]")
        return
    labels = ", ".join(item.label for item in view.remaining_items)
    console.print(f"[bold]Remaining ({view.remaining_count}):[/] {labels}")


def _unrecognized(token: str) -> typer.Exit:
    console.print(f"[red]Unrecognized draw token:[/] {token}")
    return typer.Exit(code=1)


@app.command("create")
def create(
    base_url: str | None = typer.Option(None, help="Base URL the share link points to."),
    config: Path | None = ConfigOption,
) -> None:
    links = build_draw_links(_settings(config), base_url=base_url)
    try:
        view = links.create(int(time.time() * 1000))
    except LinkEncodingError as exc:
        console.print(f"[red]Cannot create link:[/] {exc}")
        raise typer.Exit(code=1) from exc
    _print_link(view)


@app.command("inspect")
def inspect_token(
    token: str = typer.Argument(..., help="Token from the share link's state parameter."),
    legacy: bool = typer.Option(False, "--legacy", help="Also print the legacy Base64 form."),
    config: Path | None = ConfigOption,
) -> None:
    settings = _settings(config)
    links = build_draw_links(settings)
    view = links.inspect(token)
    if view is None:
        raise _unrecognized(token)
    _print_link(view)
    if legacy:
        legacy_token = StateCodec(links.pool).encode_legacy(view.state)
        if not legacy_token:
            console.print("[red]Cannot encode legacy token.[/]")
            raise typer.Exit(code=1)
        console.print(f"[bold]Legacy token:[/] {legacy_token}")


@app.command("draw")
def draw_token(
    token: str = typer.Argument(..., help="Token from the share link's state parameter."),
    seed: int | None = typer.Option(None, help="Seed for a reproducible pick."),
    config: Path | None = ConfigOption,
) -> None:
    settings = _settings(config)
    random_source = SeededRandomSource(seed) if seed is not None else None
    links = build_draw_links(settings, random_source=random_source)
    try:
        outcome = links.draw(token)
    except LinkEncodingError as exc:
        console.print(f"[red]Cannot publish the next link:[/] {exc}")
        raise typer.Exit(code=1) from exc
    if outcome is None:
        raise _unrecognized(token)
    if outcome.picked is None:
        console.print("[yellow]Nothing left to draw.[/]")
        raise typer.Exit(code=0)
    console.print(f"[green]Picked:[/] {outcome.picked.label}")
    _print_link(outcome.link)


@app.command("simulate")
def simulate(
    participants: int | None = typer.Option(
        None, min=1, help="Number of sequential participants (defaults to the pool size)."
    ),
    seed: int | None = typer.Option(None, help="Seed for reproducible picks."),
    config: Path | None = ConfigOption,
) -> None:
    settings = _settings(config)
    random_source = SeededRandomSource(seed) if seed is not None else None
    links = build_draw_links(settings, random_source=random_source)
    rounds = participants or links.pool.size

    table = Table(title="Draw simulation")
    table.add_column("#", justify="right")
    table.add_column("Picked")
    table.add_column("Next token")
    table.add_column("Left", justify="right")

    for number, (label, view) in enumerate(run_sequential_draws(links, rounds), start=1):
        table.add_row(str(number), label or "-", view.token, str(view.remaining_count))
    console.print(table)


def run_sequential_draws(links: DrawLinks, rounds: int) -> list[tuple[str | None, LinkView]]:
    """Hand the link from one participant to the next, each decoding their own copy."""
    rows: list[tuple[str | None, LinkView]] = []
    token = links.create(int(time.time() * 1000)).token
    for _ in range(rounds):
        outcome = links.draw(token)
        if outcome is None:
            msg = f"Simulation produced an unreadable token: {token}"
            raise RuntimeError(msg)
        rows.append((outcome.picked.label if outcome.picked else None, outcome.link))
        token = outcome.link.token
    return rows


if __name__ == "__main__":
    app()

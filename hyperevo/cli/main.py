"""hyperevo CLI.

`hyperevo init` creates the store, `hyperevo seed` fills it with a synthetic
population, `hyperevo evolve` runs evolution cycles against it and
`hyperevo serve` exposes the same runs over HTTP.
"""

from __future__ import annotations

import logging
import random

import structlog
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from hyperevo.config import settings
from hyperevo.evolution.catalog import SEGMENT_KNOWLEDGE_TOPICS
from hyperevo.store.base import Entity, MemoryRecord
from hyperevo.types import ALL_SKILL_TYPES, DEFAULT_SEGMENT, EvolutionMode, MemoryType, new_id

app = typer.Typer(
    name="hyperevo",
    help="hyperevo -- multi-cycle skill evolution over a scored population.",
    no_args_is_help=True,
)
console = Console()

SEED_SEGMENTS = [s for s in SEGMENT_KNOWLEDGE_TOPICS if s != DEFAULT_SEGMENT] + [""]


def configure_logging(level: str) -> None:
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.INFO
    logging.basicConfig(level=numeric, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(numeric))


@app.callback()
def main(
    log_level: str = typer.Option(settings.log_level, "--log-level", help="Log level"),
):
    configure_logging(log_level)


@app.command()
def init():
    """Create the store and its schema."""
    from hyperevo.cli.context import run_async
    from hyperevo.handler import open_store

    store = run_async(open_store(settings))
    console.print(Panel(
        f"[green]hyperevo store initialized at {store.db_path}[/green]\n\n"
        "Optional knowledge endpoints:\n"
        "  [bold]export HYPEREVO_SEARCH_API_KEY=your-key[/bold]\n"
        "  [bold]export HYPEREVO_GATEWAY_API_KEY=your-key[/bold]\n\n"
        "Then seed and evolve:\n"
        "  [bold]hyperevo seed --count 50[/bold]\n"
        "  [bold]hyperevo evolve --mode collective[/bold]",
        title="hyperevo",
        border_style="cyan",
    ))


def synthetic_population(count: int, rng: random.Random, user_id: str | None = None) -> list[Entity]:
    entities = []
    for i in range(count):
        skills = rng.sample(ALL_SKILL_TYPES, rng.randint(0, 4))
        entities.append(Entity(
            id=new_id(),
            name=f"entity-{i + 1:04d}",
            sector=rng.choice(SEED_SEGMENTS),
            user_id=user_id,
            learning_velocity=round(rng.uniform(0.2, 0.8), 3),
            success_rate=round(rng.random(), 3),
            avg_confidence=round(rng.random(), 3),
            total_tasks_completed=rng.randint(0, 150),
            task_specializations={s: round(rng.uniform(0.1, 0.9), 3) for s in skills},
        ))
    return entities


def synthetic_memories(entities: list[Entity], rng: random.Random, per_entity: int) -> list[MemoryRecord]:
    return [
        MemoryRecord(
            entity_id=e.id,
            user_id=e.user_id,
            memory_type=MemoryType.EXPERIENCE.value,
            content=f"{e.name} completed a {rng.choice(ALL_SKILL_TYPES)} task (run {n + 1})",
            importance_score=round(rng.random(), 3),
        )
        for e in entities
        for n in range(per_entity)
    ]


@app.command()
def seed(
    count: int = typer.Option(50, "--count", "-n", help="Entities to create"),
    memories: int = typer.Option(2, "--memories", help="Memories per entity"),
    user_id: str = typer.Option("", "--user", help="Owner id for the new entities"),
    seed_value: int = typer.Option(0, "--seed", help="Random seed (0 = random)"),
):
    """Insert a synthetic population for local runs."""
    from hyperevo.cli.context import run_async
    from hyperevo.handler import open_store
    from hyperevo.store.base import Table as StoreTable
    from hyperevo.store.batch import batch_insert

    rng = random.Random(seed_value or None)
    entities = synthetic_population(count, rng, user_id or None)
    notes = synthetic_memories(entities, rng, memories)

    async def _seed():
        store = await open_store(settings)
        await store.register_entities(entities)
        return await batch_insert(store, StoreTable.MEMORIES, notes, 50)

    result = run_async(_seed())
    console.print(
        f"[green]Seeded {len(entities)} entities and {result.inserted} memories[/green] "
        f"into {settings.db_path}"
    )


@app.command()
def evolve(
    mode: EvolutionMode = typer.Option(EvolutionMode.FULL_ACCELERATION, "--mode", "-m", help="Evolution mode"),
    batch_size: int = typer.Option(500, "--batch-size", "-b", help="Entities per cycle (1-1000)"),
    intensity: float = typer.Option(3.0, "--intensity", "-i", help="Intensity multiplier (0.1-10)"),
    cycles: int = typer.Option(5, "--cycles", "-c", help="Evolution cycles (1-20)"),
    sector: str = typer.Option("", "--sector", "-s", help="Only evolve this segment"),
    user_id: str = typer.Option("", "--user", help="Only evolve entities of this owner"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw response body"),
):
    """Run evolution cycles against the local store.

    Examples:
        hyperevo evolve                          # full acceleration, 5 cycles
        hyperevo evolve --mode adversarial -c 3  # three adversarial rounds
        hyperevo evolve --sector FINANCE -i 1    # one segment, low intensity
    """
    from hyperevo.cli.context import run_async
    from hyperevo.handler import handle_request

    body = {
        "mode": mode.value,
        "batchSize": batch_size,
        "intensityMultiplier": intensity,
        "evolutionCycles": cycles,
        "targetSector": sector or None,
        "userId": user_id or None,
    }
    status, payload = run_async(handle_request(body, config=settings))

    if as_json:
        console.print_json(data=payload)
    elif status != 200:
        console.print(f"[red]Evolution failed:[/red] {payload['error']} [dim]({payload['requestId']})[/dim]")
    else:
        summary = payload["summary"]
        console.print(Panel(
            "\n".join(f"{k}: [bold]{v}[/bold]" for k, v in summary.items()),
            title=payload["message"],
            border_style="cyan",
        ))
        if payload["topEvolutions"]:
            table = Table(title="Top Evolutions")
            table.add_column("Entity", style="cyan")
            table.add_column("Gain", style="green")
            table.add_column("Score", style="yellow")
            table.add_column("Won", style="dim")
            for r in payload["topEvolutions"]:
                table.add_row(
                    r["entityName"] or r["entityId"][:8],
                    f"{r['evolutionGain']:.3f}",
                    f"{r['previousScore']:.2f} -> {r['newScore']:.2f}",
                    str(r["competitionsWon"]),
                )
            console.print(table)

    if status != 200:
        raise typer.Exit(code=1)


@app.command()
def status():
    """Show store contents and endpoint configuration."""
    from hyperevo.cli.context import run_async
    from hyperevo.handler import open_store

    async def _counts():
        store = await open_store(settings)
        return await store.counts()

    counts = run_async(_counts())
    from hyperevo import __version__
    console.print(Panel(
        f"[bold]hyperevo v{__version__}[/bold]\n\n"
        f"Store:      {settings.db_path}\n"
        f"Search:     {'[green]set[/green]' if settings.search_api_key else '[red]not set[/red]'}\n"
        f"Gateway:    {'[green]set[/green]' if settings.gateway_api_key or settings.anthropic_api_key else '[red]not set[/red]'}\n\n"
        + "\n".join(f"{table:<16}{n}" for table, n in counts.items()),
        title="Status",
        border_style="cyan",
    ))


@app.command()
def serve(
    port: int = typer.Option(settings.api_port, "--port", "-p", help="Port to run on"),
    host: str = typer.Option(settings.api_host, "--host", help="Host to bind to"),
):
    """Serve POST /api/evolve, GET /api/health and GET /api/events."""
    from hyperevo.api.app import app as api_app, configure

    configure(settings=settings)
    console.print(f"[bold cyan]hyperevo[/bold cyan] listening on http://{host}:{port}")
    console.print("[dim]Press Ctrl+C to stop.[/dim]")

    import uvicorn
    uvicorn.run(api_app, host=host, port=port, log_level="warning")


if __name__ == "__main__":
    app()

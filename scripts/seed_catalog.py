"""
Sample catalog generator for the movie catalog core.

Builds a deterministic pseudo-random set of movie/series entries, optionally
writes them to a JSON Lines file, and loads them through the repository so
every record goes through the same validation and identity rules as real
traffic.
"""

from __future__ import annotations

import json
import random
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer

from moviecatalog.bootstrap import build_repository
from moviecatalog.config import get_settings
from moviecatalog.repository import CatalogRepository
from moviecatalog.utils.logging import configure_logging

app = typer.Typer(help="Generate a sample catalog and load it through the repository.")

_ADJECTIVES = ["Silent", "Crimson", "Hidden", "Last", "Frozen", "Electric", "Golden", "Lost"]
_NOUNS = ["Harbor", "Empire", "Signal", "Garden", "Frontier", "Witness", "Orbit", "Archive"]


def _generate_inputs(count: int, seed: int) -> List[Dict[str, Any]]:
    rng = random.Random(seed)
    inputs: List[Dict[str, Any]] = []
    for index in range(count):
        kind = rng.choice(["movie", "movie", "series"])
        title = f"The {rng.choice(_ADJECTIVES)} {rng.choice(_NOUNS)}"
        if rng.random() < 0.3:
            title = f"{title} {index + 2}"
        entry: Dict[str, Any] = {"title": title, "kind": kind}
        if rng.random() < 0.9:
            entry["year"] = rng.randint(1950, 2024)
        if rng.random() < 0.5:
            entry["description"] = f"A {kind} about the {rng.choice(_NOUNS).lower()}."
        inputs.append(entry)
    return inputs


def _write_jsonl(path: Path, inputs: List[Dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        for entry in inputs:
            f.write(json.dumps(entry, sort_keys=True) + "\n")


def _load(repo: CatalogRepository, inputs: List[Dict[str, Any]]) -> int:
    for entry in inputs:
        repo.create(entry, caller="seed")
    return len(inputs)


@app.command()
def main(
    count: int = typer.Option(
        50,
        "--count",
        "-n",
        help="Number of records to generate.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Optional JSON Lines output path for the generated inputs.",
    ),
    backend: Optional[str] = typer.Option(
        None,
        "--backend",
        "-b",
        help="Override CATALOG_BACKEND.",
    ),
    no_load: bool = typer.Option(
        False,
        "--no-load",
        help="Only generate inputs; skip loading them.",
    ),
) -> None:
    """
    Generate sample entries and optionally load them through the repository.
    """
    settings = get_settings()
    configure_logging(
        level=settings.log_level, json_logs=settings.log_json, app_env=settings.app_env
    )

    inputs = _generate_inputs(count, seed)
    typer.echo(f"Generated {len(inputs):,} entries (seed={seed})")
    if output:
        _write_jsonl(output, inputs)
        typer.echo(f"Wrote {output}")

    if no_load:
        typer.echo("Skipping load (no-load flag set).")
        return

    start = time.perf_counter()
    repo = build_repository(settings, backend=backend)
    try:
        loaded = _load(repo, inputs)
    finally:
        repo.close()
    duration = time.perf_counter() - start
    typer.echo(f"Loaded {loaded:,} records in {duration:.2f}s.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)

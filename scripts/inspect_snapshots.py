#!/usr/bin/env python3
"""Inspect interrupted runs stored in SQLite.

Usage:
    uv run scripts/inspect_snapshots.py                # list all interrupted runs
    uv run scripts/inspect_snapshots.py <run_id>       # show one snapshot
    uv run scripts/inspect_snapshots.py --db path      # custom DB path
"""

import argparse
import json
from pathlib import Path

from rich.console import Console

from eventflow.errors import PersistenceError, SnapshotNotFoundError
from eventflow.persistence import SqlitePersistence

console = Console()


def list_runs(store: SqlitePersistence) -> None:
    """List all interrupted runs, most recent first."""
    rows = store.list_runs()
    if not rows:
        console.print("No interrupted runs found in database.")
        return

    console.print(f"{'Run ID':<48} Updated")
    console.print("-" * 70)
    for run_id, updated_at in rows:
        console.print(f"{run_id:<48} {updated_at}")


def show_run(store: SqlitePersistence, run_id: str) -> None:
    """Show where a run stopped and what it is waiting for."""
    try:
        interrupt = store.load(run_id)
    except SnapshotNotFoundError:
        console.print(f"No snapshot found for run: {run_id}")
        return

    console.print(f"[bold]Snapshot for run:[/] {run_id}")
    console.print("=" * 80)
    console.print(f"  node:     [yellow]{interrupt.node_id}[/]")
    console.print(f"  event:    {interrupt.event.event_type()}")
    console.print(f"  message:  {interrupt.request.message}")
    for action in interrupt.request.actions:
        console.print(f"  action:   {action.id} [dim]({action.decision.value})[/] {action.name}")
    if interrupt.node_checkpoints:
        console.print(f"  checkpoints: {', '.join(interrupt.node_checkpoints)}")
    console.print("  state:")
    console.print_json(json.dumps(interrupt.to_dict()["state"]))


def main() -> None:
    parser = argparse.ArgumentParser(description="Inspect interrupted workflow runs")
    parser.add_argument("run_id", nargs="?", help="Run ID to inspect")
    parser.add_argument(
        "--db",
        default="eventflow.db",
        help="Path to SQLite database (default: eventflow.db)",
    )
    args = parser.parse_args()

    db_path = Path(args.db)
    if not db_path.exists():
        console.print(f"Database not found: {db_path}")
        console.print("Run the approval demo with --backend sqlite first.")
        return

    try:
        with SqlitePersistence(db_path) as store:
            if args.run_id:
                show_run(store, args.run_id)
            else:
                list_runs(store)
    except PersistenceError as err:
        console.print(f"[red]Cannot read snapshot:[/] {err}")
        raise SystemExit(1) from err


if __name__ == "__main__":
    main()

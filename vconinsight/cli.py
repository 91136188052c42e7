import glob
import random
from pathlib import Path
from typing import List, Optional
import typer
from rich.console import Console
from rich.table import Table
from tqdm import tqdm

from .core.errors import VconError
from .core.logging_utils import configure_logging
from .core.parser import parse_file
from .core.storage import (init_db, ingest_document, list_vcon_files, get_analytics_by_file_id,
                           get_latest_analytics, call_qualities_by_file_id, latest_call_qualities)

app = typer.Typer(help="vCon Insight CLI")
console = Console()

def _format_mmss(sec: float) -> str:
    sec = int(sec)
    m = sec // 60
    s = sec % 60
    return f"{m:02d}:{s:02d}"

def _yes_no(flag: bool) -> str:
    return "[green]yes[/green]" if flag else "[red]no[/red]"

def _file_id(raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        console.print(f"[red]Invalid file id {raw!r}: expected a number or 'latest'[/red]")
        raise typer.Exit(1)

@app.callback()
def main(log_level: str = typer.Option(None, help="Override LOG_LEVEL")):
    configure_logging(log_level)

@app.command()
def ingest(paths: List[str] = typer.Argument(..., help="Glob(s) for vCon JSON files"),
           seed: Optional[int] = typer.Option(None, help="Seed for service attribution")):
    init_db()
    files: List[Path] = []
    for p in paths:
        files += [Path(x) for x in sorted(glob.glob(p))]
    if not files:
        console.print("[red]No files matched[/red]")
        raise typer.Exit(1)

    rng = random.Random(seed) if seed is not None else None
    failed = 0
    for f in tqdm(files, desc="ingest", disable=len(files) < 2):
        try:
            filename, data = parse_file(str(f))
        except VconError as e:
            console.print(f"[yellow]Skipped {f.name}: {e.message}[/yellow]")
            failed += 1
            continue
        vfile, analytics, records = ingest_document(filename, data, rng=rng)
        console.print(f"Ingested {f.name} as file {vfile.id}: {analytics.total_calls} calls, "
                      f"avg quality {analytics.avg_quality_score}, {analytics.calls_below_threshold} below threshold")
    if failed == len(files):
        raise typer.Exit(1)

@app.command("list-files")
def list_files_cmd():
    init_db()
    rows = list_vcon_files()
    if not rows:
        console.print("No files ingested yet.")
        raise typer.Exit(0)
    table = Table(title="vCon files")
    table.add_column("ID", style="cyan")
    table.add_column("Filename", style="magenta")
    table.add_column("Uploaded")
    table.add_column("Processed")
    for f in rows:
        table.add_row(str(f.id), f.filename, f.uploaded_at, _yes_no(f.processed))
    console.print(table)

@app.command()
def analytics(file_id: str = typer.Argument("latest")):
    init_db()
    a = get_latest_analytics() if file_id == "latest" else get_analytics_by_file_id(_file_id(file_id))
    if a is None:
        console.print(f"No analytics for {file_id}")
        raise typer.Exit(1)
    table = Table(title=f"Analytics for file {a.file_id}", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value")
    table.add_row("Total calls", str(a.total_calls))
    table.add_row("Avg wait", _format_mmss(a.avg_wait_time_seconds))
    table.add_row("Escalated calls", str(a.escalated_calls))
    table.add_row("Satisfaction", f"{a.satisfaction_score} / 5")
    table.add_row("Top complaints", ", ".join(a.top_complaints) or "-")
    table.add_row("Top compliments", ", ".join(a.top_compliments) or "-")
    table.add_row("Popular service", a.popular_service)
    table.add_row("Least engaged service", a.least_engaged_service)
    table.add_row("Avg quality", f"{a.avg_quality_score} / 10")
    table.add_row("Top agent", a.top_performing_agent or "-")
    table.add_row("Calls below threshold", str(a.calls_below_threshold))
    console.print(table)

@app.command()
def quality(file_id: str = typer.Argument("latest")):
    init_db()
    records = latest_call_qualities() if file_id == "latest" else call_qualities_by_file_id(_file_id(file_id))
    if not records:
        console.print(f"No call quality data for {file_id}")
        raise typer.Exit(1)
    table = Table(title=f"Call quality for file {records[0].file_id}")
    for col in ("#", "Agent", "Score", "Greeting", "Closing", "Calm", "In time", "Transferred", "Duration"):
        table.add_column(col)
    for r in records:
        style = "red" if r.quality_score < 6 else None
        table.add_row(str(r.call_index), r.agent_name, f"{r.quality_score:.1f}", _yes_no(r.has_greeting),
                      _yes_no(r.has_closing), _yes_no(r.is_calm), _yes_no(r.resolved_in_time),
                      _yes_no(r.was_transferred), _format_mmss(r.duration_seconds), style=style)
    console.print(table)

if __name__ == "__main__":
    app()

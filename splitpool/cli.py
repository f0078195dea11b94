"""splitpool Command Line Interface."""

from typing import Any

import typer

app = typer.Typer(
    name="splitpool",
    help="splitpool - Balance dataset splits across a fixed pool of workers",
    add_completion=False,
)


def _build_format(path: str, source_type: str, workers: int, batch_size: int):
    from splitpool.distributed.input_format import CombinedInputFormat

    config: dict[str, Any] = {
        "type": source_type,
        "path": path,
        "num_workers": workers,
        "batch_size": batch_size,
    }
    try:
        return CombinedInputFormat.from_config(config)
    except ValueError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(1) from e


@app.command()
def version():
    """Show splitpool version."""
    try:
        import splitpool

        typer.echo(f"splitpool version: {getattr(splitpool, '__version__', 'unknown')}")
    except ImportError:
        typer.echo("splitpool not installed or not in PYTHONPATH")


@app.command()
def plan(
    path: str = typer.Argument(..., help="Dataset path"),
    workers: int = typer.Option(0, "--workers", "-w", help="Number of workers (0 = one per split)"),
    source_type: str = typer.Option("parquet", "--type", "-t", help="Source type: parquet or lance"),
):
    """Show how a dataset's splits would be grouped."""
    from splitpool.distributed.rebalancer import size_spread

    input_format = _build_format(path, source_type, workers, 65536)
    try:
        groups = input_format.get_groups()
    except (OSError, ValueError) as e:
        typer.echo(f"❌ Failed to list splits: {e}")
        raise typer.Exit(1) from e

    n_splits = sum(len(group) for group in groups)
    typer.echo(f"📦 {n_splits} splits -> {len(groups)} groups")
    for i, group in enumerate(groups):
        typer.echo(f"  group {i}: {len(group)} splits, total size {group.total_size}")
    typer.echo(f"Size spread: {size_spread(groups)}")


@app.command()
def scan(
    path: str = typer.Argument(..., help="Dataset path"),
    workers: int = typer.Option(0, "--workers", "-w", help="Number of workers (0 = one per split)"),
    source_type: str = typer.Option("parquet", "--type", "-t", help="Source type: parquet or lance"),
    batch_size: int = typer.Option(65536, "--batch-size", "-b", help="Rows per record batch"),
):
    """Read every group concurrently and report rows per task."""
    from splitpool.distributed.worker import run_local

    input_format = _build_format(path, source_type, workers, batch_size)
    try:
        results = run_local(input_format)
    except (OSError, ValueError) as e:
        typer.echo(f"❌ Scan failed: {e}")
        raise typer.Exit(1) from e

    for result in results:
        typer.echo(
            f"  {result['task_id']}: {result['n_splits']} splits, "
            f"{result['rows_read']} rows"
        )
    total_rows = sum(result["rows_read"] for result in results)
    typer.echo(f"✅ Read {total_rows} rows in {len(results)} tasks")


if __name__ == "__main__":
    app()

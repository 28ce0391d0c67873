"""Command-line interface for merging CSV files by BM25 record linkage."""

from pathlib import Path
from typing import Dict, List, Optional
import logging

import typer

from core.dataset import Dataset
from core.errors import RecordLinkError
from core.matcher import RecordLinker
from core.preprocessor import registry
from core.sources import load_csv, resolve_sources, write_csv
from config.models import DatasetSelection, MatchConfig

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, help="Fuzzy-merge CSV files that share no key")


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )


def parse_field_list(text: str) -> Dict[str, float]:
    """
    Parse ``field[:weight],field[:weight]`` into a weight mapping.

    Raises:
        ValueError: If a weight is not a number
    """
    fields: Dict[str, float] = {}
    for item in text.split(','):
        item = item.strip()
        if not item:
            continue
        name, sep, weight = item.rpartition(':')
        if not sep:
            name, weight = item, '1'
        try:
            fields[name.strip()] = float(weight)
        except ValueError:
            raise ValueError(f"Invalid weight in field selection: {item!r}")
    return fields


def parse_selections(options: List[str]) -> Dict[str, DatasetSelection]:
    """Parse repeated ``DATASET=field[:weight],...`` options."""
    selections: Dict[str, DatasetSelection] = {}
    for option in options:
        dataset, sep, fields = option.partition('=')
        if not sep:
            raise ValueError(
                f"Expected DATASET=field[,field...] in --fields, got {option!r}"
            )
        selections[dataset.strip()] = DatasetSelection(parse_field_list(fields))
    return selections


def _lookup_selection(
    dataset: Dataset,
    selections: Dict[str, DatasetSelection]
) -> Optional[DatasetSelection]:
    for key in (dataset.name, dataset.path.stem if dataset.path else None):
        if key in selections:
            return selections[key]
    return None


def prompt_selection(dataset: Dataset, primary: bool) -> DatasetSelection:
    """Ask which of a dataset's headers take part in matching."""
    if primary:
        typer.echo(
            f"To configure the matching engine, we need to know a few things about {dataset.name}."
        )
        question = "Which fields should be searchable?"
    else:
        typer.echo(f"Tell us how to match {dataset.name}:")
        question = "Which fields should be used to search?"

    typer.echo("Available fields: " + ", ".join(dataset.headers))
    answer = typer.prompt(f"{question} (comma-separated)", default='', show_default=False)
    return DatasetSelection(parse_field_list(answer))


@app.command()
def merge(
    sources: Optional[List[Path]] = typer.Argument(
        None,
        help="Source CSV files; the first one is the primary dataset",
    ),
    output: Path = typer.Option(
        Path('combined.csv'),
        "--output",
        "-o",
        help="Path to write the combined output CSV file to",
    ),
    fields: Optional[List[str]] = typer.Option(
        None,
        "--fields",
        "-f",
        help="Field selection as DATASET=field[:weight],... (repeatable)",
    ),
    min_score: float = typer.Option(0.0, "--min-score", help="Reject matches scoring below this"),
    min_overlap: int = typer.Option(1, "--min-overlap", help="Distinct query terms a match must share"),
    workers: int = typer.Option(1, "--workers", help="Threads used to score secondary rows"),
    preprocess: str = typer.Option(
        'whitespace',
        "--preprocess",
        help=f"Normalization pipeline ({', '.join(registry.names)})",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Merge rows of each secondary CSV file onto their best-matching primary row."""
    configure_logging(verbose)

    try:
        paths = resolve_sources(sources or [])
        output = output.resolve()
        selections = parse_selections(fields or [])

        datasets = [load_csv(path) for path in paths]
        for position, dataset in enumerate(datasets):
            selection = _lookup_selection(dataset, selections)
            if selection is None:
                selection = prompt_selection(dataset, primary=position == 0)
            dataset.selection = selection

        linker = RecordLinker(
            match_config=MatchConfig(
                min_score=min_score,
                min_overlap=min_overlap,
                worker_threads=workers,
                preprocess_method=preprocess
            )
        )
        frame = linker.link(datasets)

        logger.info(f"Writing output to {output}")
        write_csv(frame, output)
    except (RecordLinkError, ValueError, OSError) as e:
        logger.error(f"An error occurred: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    typer.echo("Done!")


def main() -> None:
    app()


if __name__ == "__main__":
    main()

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import pandas as pd
import typer
from loguru import logger

from flipwise.adapters.clock import FixedClock, SystemClock
from flipwise.adapters.config import config
from flipwise.adapters.memory_repo import InMemoryPropertyStore
from flipwise.adapters.sql_repo import SqlAnalysisRepository
from flipwise.adapters.storage import read_df, records_from_frame, write_df
from flipwise.domain.property import SubjectProperty
from flipwise.services.flip_analyzer import FlipAnalyzer

app = typer.Typer(help="Flipwise: ARV + flip / rental / BRRRR analysis for one property.")


def _parse_as_of(value: str) -> datetime:
    try:
        ts = datetime.fromisoformat(value)
    except ValueError as err:
        raise typer.BadParameter(f"not an ISO date: {value!r}") from err
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


@app.command()
def analyze(
    sales: str = typer.Argument(..., help="Closed sales file (.csv or .parquet)"),
    subject: str = typer.Argument(..., help="Subject property JSON file"),
    as_of: Optional[str] = typer.Option(
        None, "--as-of", help="Analyze as of this ISO date instead of now"
    ),
    db: Optional[str] = typer.Option(
        None, "--db", help="SQLAlchemy URI; when set the analysis is saved there"
    ),
    out: Optional[str] = typer.Option(
        None, "--out", help="Write the result here (.csv or .parquet: one summary row, else JSON)"
    ),
) -> None:
    """
    Run the full analysis for one subject against a file of closed sales.
    """
    records = records_from_frame(read_df(sales))
    logger.info("Loaded closed sales", path=sales, rows=len(records))

    subject_prop = SubjectProperty.model_validate_json(Path(subject).read_text())

    clock = FixedClock(_parse_as_of(as_of)) if as_of else SystemClock()
    repo = SqlAnalysisRepository(db) if db else None

    analyzer = FlipAnalyzer(
        InMemoryPropertyStore(records),
        assumptions=config.financial_assumptions(),
        clock=clock,
        repo=repo,
        arv_assumptions=config.arv_assumptions(),
    )
    result = analyzer.analyze(subject_prop, save=repo is not None)

    logger.info(
        "Analysis complete",
        listing_id=subject_prop.listing_id,
        arv=result.arv.arv,
        best_strategy=result.viability.best_strategy,
        analysis_id=result.analysis_id,
    )

    if out and out.endswith((".csv", ".parquet")):
        # nested blocks go out as JSON text
        row = {k: json.dumps(v, default=str) if isinstance(v, dict) else v for k, v in result.summary_row().items()}
        write_df(pd.DataFrame([row]), out)
        logger.info("Wrote summary", path=out)
        return

    payload = json.dumps(result.to_dict(), indent=2, default=str)
    if out:
        Path(out).parent.mkdir(parents=True, exist_ok=True)
        Path(out).write_text(payload)
        logger.info("Wrote result", path=out)
    else:
        typer.echo(payload)


@app.command()
def show(
    analysis_id: int = typer.Argument(..., help="Stored analysis id"),
    db: str = typer.Option(config.DB_URI, "--db", help="SQLAlchemy URI"),
) -> None:
    """
    Print a saved analysis and its comparables.
    """
    repo = SqlAnalysisRepository(db)
    row = repo.get(analysis_id)
    if row is None:
        logger.error("Analysis not found", analysis_id=analysis_id)
        raise typer.Exit(code=1)

    payload = {
        "analysis": row.model_dump(mode="json"),
        "comparables": [c.model_dump(mode="json") for c in repo.list_comparables(analysis_id)],
    }
    typer.echo(json.dumps(payload, indent=2, default=str))


if __name__ == "__main__":
    app()

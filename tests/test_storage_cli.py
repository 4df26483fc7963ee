# tests/test_storage_cli.py
import json
from datetime import date

import pandas as pd
import pytest
from typer.testing import CliRunner

from entrypoints.cli.analyze_property import app
from flipwise.adapters.storage import read_df, records_from_frame, write_df

from .fixtures.sales import matching_comps, subject_property

runner = CliRunner()


def _sales_frame() -> pd.DataFrame:
    rows = [r.model_dump() for r in matching_comps()]
    df = pd.DataFrame(rows)
    # exported files use short column names
    return df.rename(columns={"bedrooms": "beds", "bathrooms": "baths", "living_area": "sqft"})


def test_records_from_frame_maps_aliases_and_missing_values(tmp_path):
    path = str(tmp_path / "sales.csv")
    write_df(_sales_frame(), path)

    records = records_from_frame(read_df(path))

    assert len(records) == 5
    first = records[0]
    assert first.listing_id == "C1"
    assert first.bedrooms == 3
    assert first.living_area == 1500
    assert first.close_date == date(2024, 5, 20)
    assert first.garage_spaces is None
    assert first.remarks == ""


def test_records_from_frame_numeric_ids_become_strings():
    df = pd.DataFrame([{"mls_id": 12345, "close_price": 400_000, "sold_date": "2024-01-05"}])
    rec = records_from_frame(df)[0]
    assert rec.listing_id == "12345"
    assert rec.close_date == date(2024, 1, 5)


def test_records_from_frame_drops_rows_without_listing_id(tmp_path):
    path = tmp_path / "sales.csv"
    path.write_text("listing_id,close_price,close_date\n101,1,2024-01-05\n,2,2024-01-05\n")

    records = records_from_frame(read_df(str(path)))

    assert len(records) == 1
    assert records[0].listing_id == "101"
    assert records[0].close_price == 1


def test_records_from_frame_float_ids_lose_trailing_zero():
    df = pd.DataFrame({"listing_id": [101.0, None, 202.0], "close_price": [1.0, 2.0, 3.0]})
    assert [r.listing_id for r in records_from_frame(df)] == ["101", "202"]


def test_records_from_frame_trims_text_ids_without_reparsing():
    df = pd.DataFrame({"listing_id": [" 73012345 ", "X-1.0"], "close_price": [1.0, 2.0]})
    assert [r.listing_id for r in records_from_frame(df)] == ["73012345", "X-1.0"]


@pytest.fixture
def cli_inputs(tmp_path):
    sales = str(tmp_path / "sales.csv")
    write_df(_sales_frame(), sales)

    subject = tmp_path / "subject.json"
    subject.write_text(subject_property().model_dump_json())
    return sales, str(subject)


def test_cli_analyze_writes_json(cli_inputs, tmp_path):
    sales, subject = cli_inputs
    out = tmp_path / "out" / "result.json"

    res = runner.invoke(app, ["analyze", sales, subject, "--as-of", "2024-06-15T12:00:00", "--out", str(out)])

    assert res.exit_code == 0, res.output
    payload = json.loads(out.read_text())
    assert payload["arv"]["arv"] == pytest.approx(500_000.0)
    assert payload["viability"]["best_strategy"] == "flip"
    assert payload["analysis_id"] is None


def test_cli_analyze_and_show_with_db(cli_inputs, tmp_path):
    sales, subject = cli_inputs
    db = f"sqlite:///{tmp_path / 'cli.db'}"
    out = tmp_path / "result.json"

    res = runner.invoke(app, ["analyze", sales, subject, "--as-of", "2024-06-15", "--db", db, "--out", str(out)])
    assert res.exit_code == 0, res.output
    analysis_id = json.loads(out.read_text())["analysis_id"]
    assert analysis_id == 1

    shown = runner.invoke(app, ["show", str(analysis_id), "--db", db])
    assert shown.exit_code == 0, shown.output
    assert '"listing_id": "SUBJ-1"' in shown.output


def test_cli_show_missing_analysis(tmp_path):
    db = f"sqlite:///{tmp_path / 'empty.db'}"
    res = runner.invoke(app, ["show", "42", "--db", db])
    assert res.exit_code == 1


def test_cli_rejects_bad_date(cli_inputs):
    sales, subject = cli_inputs
    res = runner.invoke(app, ["analyze", sales, subject, "--as-of", "last tuesday"])
    assert res.exit_code != 0


def test_cli_analyze_writes_summary_csv(cli_inputs, tmp_path):
    sales, subject = cli_inputs
    out = tmp_path / "out" / "summary.csv"

    res = runner.invoke(app, ["analyze", sales, subject, "--as-of", "2024-06-15", "--out", str(out)])

    assert res.exit_code == 0, res.output
    summary = read_df(str(out))
    assert len(summary) == 1
    row = summary.iloc[0]
    assert str(row["listing_id"]) == "SUBJ-1"
    assert row["estimated_arv"] == pytest.approx(500_000.0)
    assert row["best_strategy"] == "flip"
    assert json.loads(row["risk_factors"])

import pandas as pd
import pytest

from tabsql.export.exporter import export_batches, export_result


def test_export_csv(tmp_path):
    df = pd.DataFrame({"a": [1, 2], "b": ["x", "y"]})
    paths = export_result(df, tmp_path / "out", "result")
    assert paths.csv_path is not None
    assert paths.xml_path is None and paths.pdf_path is None
    assert pd.read_csv(paths.csv_path).values.tolist() == [[1, "x"], [2, "y"]]


def test_export_all_formats(tmp_path):
    df = pd.DataFrame({"a": [1, 2], "b": ["x", "y"]})
    paths = export_result(df, tmp_path, "result", formats=("csv", "xml", "pdf"))
    assert (tmp_path / "result.xml").exists()
    assert paths.xml_path == str(tmp_path / "result.xml")
    assert (tmp_path / "result.pdf").read_bytes().startswith(b"%PDF")


def test_unknown_format(tmp_path):
    with pytest.raises(ValueError):
        export_result(pd.DataFrame({"a": [1]}), tmp_path, "r", formats=("csv", "parquet"))


def test_export_batches(numbers_db, tmp_path):
    out = tmp_path / "numbers.csv"
    with numbers_db.send_query("SELECT id, label FROM numbers ORDER BY id") as cursor:
        rows = export_batches(cursor, out, batch_size=10)
        assert cursor.has_completed()
    assert rows == 25
    back = pd.read_csv(out)
    assert list(back.columns) == ["id", "label"]
    assert back["id"].tolist() == list(range(1, 26))


def test_export_batches_empty_result_writes_header(numbers_db, tmp_path):
    out = tmp_path / "none.csv"
    with numbers_db.send_query("SELECT id, label FROM numbers WHERE id < 0") as cursor:
        assert export_batches(cursor, out, batch_size=10) == 0
    assert out.read_text(encoding="utf-8").strip() == "id,label"

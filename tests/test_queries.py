import pytest

from tabsql.queries.saved import delete_query, list_queries, load_query, save_query
from tabsql.queries.sql_files import list_sql_files, read_sql_file, split_statements


class TestSqlFiles:
    def test_list_sorted_non_recursive(self, tmp_path) -> None:
        (tmp_path / "b.sql").write_text("SELECT 2", encoding="utf-8")
        (tmp_path / "a.sql").write_text("SELECT 1", encoding="utf-8")
        (tmp_path / "notes.txt").write_text("x", encoding="utf-8")
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "c.sql").write_text("SELECT 3", encoding="utf-8")
        assert [p.name for p in list_sql_files(tmp_path)] == ["a.sql", "b.sql"]

    def test_list_missing_dir(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            list_sql_files(tmp_path / "absent")

    def test_list_not_a_dir(self, tmp_path) -> None:
        f = tmp_path / "a.sql"
        f.write_text("SELECT 1", encoding="utf-8")
        with pytest.raises(NotADirectoryError):
            list_sql_files(f)

    def test_read(self, tmp_path) -> None:
        f = tmp_path / "a.sql"
        f.write_text("SELECT 1", encoding="utf-8")
        assert read_sql_file(f) == "SELECT 1"
        with pytest.raises(FileNotFoundError):
            read_sql_file(tmp_path / "b.sql")
        with pytest.raises(IsADirectoryError):
            read_sql_file(tmp_path)


class TestSplitStatements:
    def test_simple(self) -> None:
        assert split_statements("SELECT 1; SELECT 2;") == ["SELECT 1", "SELECT 2"]

    def test_no_trailing_semicolon(self) -> None:
        assert split_statements("SELECT 1;\nSELECT 2") == ["SELECT 1", "SELECT 2"]

    def test_semicolon_in_literal(self) -> None:
        assert split_statements("SELECT 'a;b'; SELECT \"x;y\" FROM t") == [
            "SELECT 'a;b'",
            'SELECT "x;y" FROM t',
        ]

    def test_doubled_quote(self) -> None:
        assert split_statements("SELECT 'it''s; fine'") == ["SELECT 'it''s; fine'"]

    def test_comments(self) -> None:
        script = "-- first; still comment\nSELECT 1;\n/* block; */ SELECT 2;\n-- trailing only\n"
        assert split_statements(script) == [
            "-- first; still comment\nSELECT 1",
            "/* block; */ SELECT 2",
        ]

    def test_empty(self) -> None:
        assert split_statements(" ;; \n") == []


class TestSavedQueries:
    def test_save_and_load(self, tmp_path) -> None:
        q = save_query(tmp_path, "Fast Cars", "SELECT * FROM cars WHERE hp > 200", description="powerful")
        assert q.id == "fast_cars"
        loaded = load_query(tmp_path, "fast_cars")
        assert loaded.sql == "SELECT * FROM cars WHERE hp > 200"
        assert loaded.name == "Fast Cars"
        assert loaded.description == "powerful"

    def test_save_replaces(self, tmp_path) -> None:
        save_query(tmp_path, "q", "SELECT 1")
        save_query(tmp_path, "q", "SELECT 2")
        assert [q.sql for q in list_queries(tmp_path)] == ["SELECT 2"]

    def test_list_sorted_and_skips_garbage(self, tmp_path) -> None:
        save_query(tmp_path, "b", "SELECT 2")
        save_query(tmp_path, "a", "SELECT 1")
        (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
        assert [q.id for q in list_queries(tmp_path)] == ["a", "b"]

    def test_list_missing_dir(self, tmp_path) -> None:
        assert list_queries(tmp_path / "absent") == []

    def test_load_missing(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            load_query(tmp_path, "nope")

    def test_empty_sql_rejected(self, tmp_path) -> None:
        with pytest.raises(ValueError):
            save_query(tmp_path, "q", "   ")

    def test_delete(self, tmp_path) -> None:
        save_query(tmp_path, "q", "SELECT 1")
        assert delete_query(tmp_path, "q") is True
        assert delete_query(tmp_path, "q") is False
        assert list_queries(tmp_path) == []

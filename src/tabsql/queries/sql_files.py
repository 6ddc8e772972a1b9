"""Reading SQL text from ``.sql`` files and splitting scripts into statements."""
from __future__ import annotations

from pathlib import Path
from typing import List


def list_sql_files(sql_dir: str | Path) -> List[Path]:
    """List the ``.sql`` files directly inside ``sql_dir``, sorted by name."""
    dir_path = Path(sql_dir)
    if not dir_path.exists():
        raise FileNotFoundError(f"SQL directory not found: {dir_path.absolute()}")
    if not dir_path.is_dir():
        raise NotADirectoryError(f"Not a directory: {dir_path.absolute()}")

    return sorted(p for p in dir_path.glob("*.sql") if p.is_file())


def read_sql_file(path: str | Path, encoding: str = "utf-8") -> str:
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"SQL file not found: {file_path.absolute()}")
    if file_path.is_dir():
        raise IsADirectoryError(f"Expected a file but got a directory: {file_path.absolute()}")

    return file_path.read_text(encoding=encoding)


def split_statements(script: str) -> List[str]:
    """Split a SQL script on ``;`` outside string literals and comments.

    Comments are kept with the statement they precede; statements that are
    empty once comments and whitespace are removed are dropped.
    """
    statements: List[str] = []
    buf: List[str] = []
    meaningful = False
    i = 0
    n = len(script)
    quote = ""

    while i < n:
        ch = script[i]
        nxt = script[i + 1] if i + 1 < n else ""

        if quote:
            buf.append(ch)
            if ch == quote:
                if nxt == quote:
                    # doubled quote inside a literal
                    buf.append(nxt)
                    i += 2
                    continue
                quote = ""
            i += 1
            continue

        if ch == "-" and nxt == "-":
            end = script.find("\n", i)
            end = n if end == -1 else end
            buf.append(script[i:end])
            i = end
            continue
        if ch == "/" and nxt == "*":
            end = script.find("*/", i + 2)
            end = n if end == -1 else end + 2
            buf.append(script[i:end])
            i = end
            continue

        if ch in ("'", '"'):
            quote = ch
            meaningful = True
            buf.append(ch)
        elif ch == ";":
            if meaningful:
                statements.append("".join(buf).strip())
            buf = []
            meaningful = False
        else:
            if not ch.isspace():
                meaningful = True
            buf.append(ch)
        i += 1

    if meaningful:
        statements.append("".join(buf).strip())
    return statements

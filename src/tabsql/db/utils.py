from __future__ import annotations

from typing import Iterable, List, Set


def quote_ident(name: str) -> str:
    """Double-quote an identifier, doubling any embedded quotes."""
    return '"' + str(name).replace('"', '""') + '"'


def sanitize_identifier(name: str) -> str:
    """Make a safe SQL identifier. Keeps letters/numbers/_ and lowercases.

    Names starting with a digit get a ``t_`` prefix so they can be used
    unquoted in hand-written SQL.
    """
    out = []
    for ch in str(name).strip():
        if ch.isascii() and (ch.isalnum() or ch == "_"):
            out.append(ch.lower())
        else:
            out.append("_")
    s = "".join(out).strip("_")
    if not s:
        return "col"
    if s[0].isdigit():
        s = f"t_{s}"
    return s


def dedupe_names(names: Iterable[str]) -> List[str]:
    """Suffix repeated names with _2, _3, ... so every name is unique."""
    used: Set[str] = set()
    deduped: List[str] = []
    for n in names:
        candidate = n
        i = 1
        while candidate in used:
            i += 1
            candidate = f"{n}_{i}"
        used.add(candidate)
        deduped.append(candidate)
    return deduped

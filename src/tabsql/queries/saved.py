from __future__ import annotations
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import List
import json
import time

from tabsql.db.utils import sanitize_identifier
from tabsql.logging.logger import get_logger

log = get_logger("queries.saved")

@dataclass(frozen=True)
class SavedQuery:
    id: str
    name: str
    sql: str
    description: str
    created_at: float

def _path_for(out_dir: str | Path, qid: str) -> Path:
    return Path(out_dir) / f"{qid}.json"

def save_query(out_dir: str | Path, name: str, sql: str, description: str = "") -> SavedQuery:
    """Store ``sql`` under ``name``; saving the same name again replaces it."""
    if not (sql or "").strip():
        raise ValueError("Refusing to save an empty query")
    Path(out_dir).mkdir(parents=True, exist_ok=True)
    qid = sanitize_identifier(name)
    query = SavedQuery(id=qid, name=name, sql=sql.strip(), description=description, created_at=time.time())
    path = _path_for(out_dir, qid)
    path.write_text(json.dumps(asdict(query), indent=2), encoding="utf-8")
    log.info("Saved query", extra={"id": qid, "path": str(path)})
    return query

def list_queries(out_dir: str | Path) -> List[SavedQuery]:
    p = Path(out_dir)
    if not p.exists():
        return []
    out: List[SavedQuery] = []
    for f in sorted(p.glob("*.json")):
        try:
            payload = json.loads(f.read_text(encoding="utf-8"))
            out.append(SavedQuery(**payload))
        except (ValueError, TypeError) as e:
            log.warning("Skipping unreadable saved query", extra={"path": str(f), "error": str(e)})
    return out

def load_query(out_dir: str | Path, qid: str) -> SavedQuery:
    path = _path_for(out_dir, qid)
    if not path.exists():
        raise FileNotFoundError(f"Saved query not found: {qid}")
    payload = json.loads(path.read_text(encoding="utf-8"))
    return SavedQuery(**payload)

def delete_query(out_dir: str | Path, qid: str) -> bool:
    path = _path_for(out_dir, qid)
    if not path.exists():
        return False
    path.unlink()
    log.info("Deleted query", extra={"id": qid})
    return True

from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional
import yaml
from dotenv import load_dotenv

load_dotenv()

_TRUTHY = ("1", "true", "yes", "y", "on")

def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)

def _env_bool(key: str, default: bool = False) -> bool:
    val = os.environ.get(key)
    if val is None:
        return default
    return val.strip().lower() in _TRUTHY

def _env_list(key: str, default: List[str]) -> List[str]:
    val = os.environ.get(key)
    if not val:
        return default
    return [x.strip() for x in val.split(",") if x.strip()]

def _section(cfg: Dict[str, Any], name: str) -> Dict[str, Any]:
    return cfg.get(name) or {}

def _as_bool(val: Any) -> bool:
    if isinstance(val, bool):
        return val
    return str(val).strip().lower() in _TRUTHY

@dataclass(frozen=True)
class Settings:
    env: str
    log_level: str
    log_file: str

    # Embedded database: a file path or ":memory:"
    database: str
    read_only: bool

    data_dir: str
    file_pattern: str
    delimiter: str
    fallback_encodings: List[str]
    skip_bad_lines: bool
    overwrite_tables: bool

    batch_size: int
    max_rows_preview: int

    export_dir: str
    saved_query_dir: str

def load_settings(config_dir: str = "config", missing_ok: bool = False) -> Settings:
    """Build Settings from config/<APP_ENV>.yaml, with environment variables taking precedence.

    With missing_ok=True an absent config file falls back to built-in defaults.
    """
    app_env = _env("APP_ENV", "dev")
    cfg_path = Path(config_dir) / f"{app_env}.yaml"
    if cfg_path.exists():
        cfg = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
    elif missing_ok:
        cfg = {}
    else:
        raise FileNotFoundError(f"Config not found: {cfg_path}")

    app_cfg = _section(cfg, "app")
    db_cfg = _section(cfg, "database")
    ing_cfg = _section(cfg, "ingestion")
    q_cfg = _section(cfg, "query")
    exp_cfg = _section(cfg, "export")

    database = _env("TABSQL_DATABASE", str(db_cfg.get("path", ":memory:"))) or ":memory:"
    read_only = _env_bool("TABSQL_READ_ONLY", _as_bool(db_cfg.get("read_only", False)))

    fallback_encodings = _env_list(
        "FALLBACK_ENCODINGS", list(ing_cfg.get("fallback_encodings", ["utf-8", "latin-1"]))
    )

    batch_size = int(_env("BATCH_SIZE", str(q_cfg.get("batch_size", 1000))))
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    max_rows_preview = int(_env("MAX_ROWS_PREVIEW", str(q_cfg.get("max_rows_preview", 20))))

    return Settings(
        env=app_env,
        log_level=_env("LOG_LEVEL", str(app_cfg.get("log_level", "INFO"))),
        log_file=_env("LOG_FILE", str(app_cfg.get("log_file", "logs/app.log"))),
        database=database,
        read_only=read_only,
        data_dir=_env("DATA_DIR", str(ing_cfg.get("data_dir", "data"))),
        file_pattern=_env("FILE_PATTERN", str(ing_cfg.get("file_pattern", "*.csv"))),
        delimiter=_env("DEFAULT_DELIMITER", str(ing_cfg.get("delimiter", ","))),
        fallback_encodings=fallback_encodings,
        skip_bad_lines=_env_bool("SKIP_BAD_LINES", _as_bool(ing_cfg.get("skip_bad_lines", False))),
        overwrite_tables=_env_bool("OVERWRITE_TABLES", _as_bool(ing_cfg.get("overwrite", False))),
        batch_size=batch_size,
        max_rows_preview=max_rows_preview,
        export_dir=_env("EXPORT_DIR", str(exp_cfg.get("export_dir", "exports"))),
        saved_query_dir=_env("SAVED_QUERY_DIR", str(exp_cfg.get("saved_query_dir", "saved_queries"))),
    )

from __future__ import annotations
import sys
from pathlib import Path as _Path

_ROOT = _Path(__file__).resolve().parents[1]
_SRC = _ROOT / "src"
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

from tabsql.config.settings import load_settings
from tabsql.logging.logger import init_logging
from tabsql.walkthrough import format_report, run_walkthrough


def main() -> int:
    settings = load_settings(str(_ROOT / "config"))
    init_logging(settings.log_level, settings.log_file)

    data_dir = _Path(settings.data_dir)
    if not data_dir.is_absolute():
        data_dir = _ROOT / data_dir

    report = run_walkthrough(
        data_dir=data_dir,
        database=settings.database,
        # small batches so the 32-row sample spans several fetches
        batch_size=10,
    )
    print(format_report(report, max_rows=settings.max_rows_preview))
    return 0


if __name__ == "__main__":
    sys.exit(main())

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence
import pandas as pd

from reportlab.lib.pagesizes import letter
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib import colors
from reportlab.lib.styles import getSampleStyleSheet

from tabsql.db.cursor import ResultCursor
from tabsql.exceptions.errors import ExportError
from tabsql.logging.logger import get_logger

log = get_logger("export.exporter")

PDF_MAX_ROWS = 200
SUPPORTED_FORMATS = ("csv", "xml", "pdf")

@dataclass(frozen=True)
class ExportPaths:
    csv_path: Optional[str] = None
    xml_path: Optional[str] = None
    pdf_path: Optional[str] = None

def _export_pdf(df: pd.DataFrame, pdf_path: str, title: str) -> None:
    styles = getSampleStyleSheet()
    doc = SimpleDocTemplate(pdf_path, pagesize=letter)
    elements = [Paragraph(f"Query result: {title}", styles["Title"]), Spacer(1, 12)]
    max_rows = min(len(df), PDF_MAX_ROWS)
    table_data = [[str(c) for c in df.columns]] + df.head(max_rows).astype(str).values.tolist()
    t = Table(table_data, repeatRows=1)
    t.setStyle(TableStyle([
        ("BACKGROUND", (0,0), (-1,0), colors.lightgrey),
        ("GRID", (0,0), (-1,-1), 0.25, colors.grey),
        ("FONTSIZE", (0,0), (-1,-1), 8),
        ("ALIGN", (0,0), (-1,-1), "LEFT"),
    ]))
    elements.append(t)
    if len(df) > max_rows:
        elements.append(Spacer(1, 6))
        elements.append(Paragraph(f"First {max_rows} of {len(df)} rows shown.", styles["Normal"]))
    doc.build(elements)

def export_result(
    df: pd.DataFrame,
    out_dir: str | Path,
    base_name: str,
    formats: Sequence[str] = ("csv",),
) -> ExportPaths:
    """Write a query result to ``out_dir``.

    CSV is always written and a failure raises ``ExportError``. XML and PDF are
    best-effort: a failure is logged and the corresponding path is None.
    """
    unknown = set(formats) - set(SUPPORTED_FORMATS)
    if unknown:
        raise ValueError(f"Unsupported export formats: {sorted(unknown)}")

    Path(out_dir).mkdir(parents=True, exist_ok=True)
    csv_path: Optional[str] = str(Path(out_dir) / f"{base_name}.csv")
    xml_path: Optional[str] = None
    pdf_path: Optional[str] = None

    try:
        df.to_csv(csv_path, index=False, encoding="utf-8")
        log.info("Exported CSV", extra={"path": csv_path, "rows": len(df)})
    except OSError as e:
        log.exception("CSV export failed")
        raise ExportError("CSV export failed") from e

    if "xml" in formats:
        xml_path = str(Path(out_dir) / f"{base_name}.xml")
        try:
            df.to_xml(xml_path, index=False, root_name="Result", row_name="Row", parser="etree")
            log.info("Exported XML", extra={"path": xml_path})
        except Exception:
            log.exception("XML export failed")
            xml_path = None

    if "pdf" in formats:
        pdf_path = str(Path(out_dir) / f"{base_name}.pdf")
        try:
            _export_pdf(df, pdf_path, base_name)
            log.info("Exported PDF", extra={"path": pdf_path})
        except Exception:
            log.exception("PDF export failed")
            pdf_path = None

    return ExportPaths(csv_path=csv_path, xml_path=xml_path, pdf_path=pdf_path)

def export_batches(cursor: ResultCursor, path: str | Path, batch_size: int) -> int:
    """Stream a cursor to a CSV file one batch at a time. Returns the rows written."""
    if batch_size <= 0:
        raise ValueError(f"Batch size must be positive, got {batch_size}")
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)

    written = 0
    try:
        with open(out, "w", encoding="utf-8", newline="") as fh:
            # Header even when the result is empty.
            pd.DataFrame(columns=cursor.columns).to_csv(fh, index=False)
            for batch in cursor.iter_batches(batch_size):
                batch.to_csv(fh, index=False, header=False)
                written += len(batch)
    except OSError as e:
        log.exception("Batched CSV export failed")
        raise ExportError(f"Could not write {out}") from e

    log.info("Exported CSV in batches", extra={"path": str(out), "rows": written, "batch_size": batch_size})
    return written

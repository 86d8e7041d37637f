import csv
import io
import logging
from datetime import datetime, timezone

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from portfolio.models.catalog import CRITERIA, DEFAULT_BUSINESS_MODEL
from portfolio.models.scoring import TIER_HIGH, TIER_LOW, TIER_MEDIUM, TIER_VERY_HIGH
from portfolio.models.service import Service

logger = logging.getLogger(__name__)

HEADER_FILL = PatternFill(start_color="374151", end_color="374151", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True, size=11)
THIN_BORDER = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)
TIER_FILLS = {
    TIER_VERY_HIGH: PatternFill(start_color="1F2937", end_color="1F2937", fill_type="solid"),
    TIER_HIGH: PatternFill(start_color="4B5563", end_color="4B5563", fill_type="solid"),
    TIER_MEDIUM: PatternFill(start_color="9CA3AF", end_color="9CA3AF", fill_type="solid"),
    TIER_LOW: PatternFill(start_color="E5E7EB", end_color="E5E7EB", fill_type="solid"),
}
WHITE_FONT = Font(color="FFFFFF", bold=True)

EXPORT_COLUMNS = (
    ["id", "service", "need", "targetAudience", "cluster", "businessModel",
     "businessModelCategory", "status", "creatorName", "creationDate"]
    + [c["shortTitle"] for c in CRITERIA]
    + ["total", "classification", "revenueEstimate"]
)


def _row(record: Service, default_business_model: str) -> list:
    return (
        [
            record.id,
            record.service,
            (record.need or "").replace("\n", " "),
            record.target_audience,
            record.cluster,
            record.business_model,
            record.business_model_category(default_business_model),
            record.status,
            record.creator_name,
            record.creation_date.strftime("%Y-%m-%d") if record.creation_date else "",
        ]
        + list(record.scores)
        + [record.total, record.classification, record.revenue_estimate]
    )


def generate_services_csv(records: list[Service], default_business_model: str = DEFAULT_BUSINESS_MODEL) -> str:
    """One row per record of the full collection, in collection order.

    Returns:
        str: CSV content as a UTF-8 string.
    """
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(EXPORT_COLUMNS)
    for record in records:
        writer.writerow(_row(record, default_business_model))
    return buf.getvalue()


def _apply_header_style(ws, row: int, col_count: int) -> None:
    """Apply dark-header styling to an Excel row (1-indexed)."""
    for col in range(1, col_count + 1):
        cell = ws.cell(row=row, column=col)
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
        cell.border = THIN_BORDER
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)


def _auto_width(ws) -> None:
    """Auto-size column widths based on content (capped at 60 chars)."""
    for col in ws.columns:
        max_len = 0
        col_letter = get_column_letter(col[0].column)
        for cell in col:
            if cell.value:
                max_len = max(max_len, min(len(str(cell.value)), 60))
        ws.column_dimensions[col_letter].width = max(max_len + 4, 12)


def generate_services_xlsx(records: list[Service], default_business_model: str = DEFAULT_BUSINESS_MODEL) -> bytes:
    """Styled workbook with the same columns as the CSV export.

    Sheet "Serviços" holds the records (classification cell shaded by tier);
    a title row above the header carries the generation timestamp.

    Returns:
        bytes: Raw .xlsx file content ready to stream to the client.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = "Serviços"

    ws["A1"] = "Portfólio de Serviços"
    ws["A1"].font = Font(size=16, bold=True, color="374151")
    ws["D1"] = f"Generated: {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M UTC')}"
    ws["D1"].font = Font(size=10, italic=True, color="666666")

    header_row = 3
    for col, header in enumerate(EXPORT_COLUMNS, 1):
        ws.cell(row=header_row, column=col, value=header)
    _apply_header_style(ws, header_row, len(EXPORT_COLUMNS))

    class_col = EXPORT_COLUMNS.index("classification") + 1
    for row_idx, record in enumerate(records, header_row + 1):
        for col, value in enumerate(_row(record, default_business_model), 1):
            ws.cell(row=row_idx, column=col, value=value).border = THIN_BORDER
        tier_cell = ws.cell(row=row_idx, column=class_col)
        tier_cell.fill = TIER_FILLS.get(record.classification, PatternFill())
        if record.classification in (TIER_VERY_HIGH, TIER_HIGH):
            tier_cell.font = WHITE_FONT
        tier_cell.alignment = Alignment(horizontal="center")

    ws.freeze_panes = ws.cell(row=header_row + 1, column=1)
    _auto_width(ws)

    buf = io.BytesIO()
    wb.save(buf)
    logger.info("XLSX export built: %d records", len(records))
    return buf.getvalue()

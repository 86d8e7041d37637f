"""
Export endpoints.

    GET /api/v1/export/services
        format: csv | excel (default: csv)

The whole collection is exported; content is built in memory, no temp files.
"""

import logging
from datetime import datetime, timezone

from flask import Blueprint, Response, request

from portfolio.services.export_service import generate_services_csv, generate_services_xlsx
from portfolio.state import get_state
from portfolio.utils.errors import E, api_error

logger = logging.getLogger(__name__)

export_bp = Blueprint("export", __name__, url_prefix="/api/v1/export")

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@export_bp.route("/services", methods=["GET"])
def export_services():
    """Export every service idea.

    Returns:
        Binary file download (csv or xlsx) with Content-Disposition.
    """
    fmt = request.args.get("format", "csv").lower()
    if fmt not in ("excel", "csv"):
        return api_error(E.VALIDATION_INVALID, "Unsupported format. Supported values: csv, excel.")

    state = get_state()
    records = state.records()
    date_str = datetime.now(timezone.utc).strftime("%Y%m%d")

    if fmt == "excel":
        content = generate_services_xlsx(records, state.default_business_model)
        filename = f"Servicos_{date_str}.xlsx"
        mimetype = XLSX_MIMETYPE
    else:
        content = generate_services_csv(records, state.default_business_model)
        filename = f"Servicos_{date_str}.csv"
        mimetype = "text/csv"

    logger.info("Export %s: %d records", fmt, len(records))
    return Response(
        content,
        mimetype=mimetype,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )

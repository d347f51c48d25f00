"""
Reporting router.
Endpoints:
  GET /reports                      occupancy, revenue by day, headline metrics
  GET /reports/export/occupancy     per-facility occupancy as CSV
  GET /reports/export/revenue       daily income / expenses as CSV
"""
import csv
import io
from typing import Literal

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from stowpilot.core.database import get_db
from stowpilot.core.deps import get_current_user
from stowpilot.models.profile import Profile
from stowpilot.schemas.report import ReportResponse
from stowpilot.services.reports import build_report, occupancy_data, revenue_data

router = APIRouter(prefix="/reports", tags=["reports"])

_COLUMNS = {
    "occupancy": [
        "facility_id", "facility_name", "total_units", "occupied_units",
        "available_units", "reserved_units", "maintenance_units", "occupancy_rate",
    ],
    "revenue": ["date", "income", "expenses", "net"],
}


@router.get("", response_model=ReportResponse)
async def get_reports(
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await build_report(db, user.id)


@router.get("/export/{dataset}")
async def export_report(
    dataset: Literal["occupancy", "revenue"],
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if dataset == "occupancy":
        rows = await occupancy_data(db, user.id)
        for row in rows:
            row["occupancy_rate"] = f"{row['occupancy_rate']:.1f}"
    else:
        rows = await revenue_data(db, user.id)

    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=_COLUMNS[dataset])
    writer.writeheader()
    writer.writerows(rows)

    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={dataset}_report.csv"},
    )

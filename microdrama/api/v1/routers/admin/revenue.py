# ╔══════════════════════════════════════════════════════════════════════════╗
# ║ 📈 MicroDrama · Admin Revenue API                                        ║
# ╠──────────────────────────────────────────────────────────────────────────╣
# ║  - GET /revenue?period=week|month → bucketed revenue + totals            ║
# ║  - Admin only; responses are `Cache-Control: no-store`.                  ║
# ╚══════════════════════════════════════════════════════════════════════════╝

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from microdrama.api.http_utils import json_no_store
from microdrama.dependencies.admin import require_admin
from microdrama.dependencies.services import get_revenue_aggregator
from microdrama.schemas.auth import Identity
from microdrama.schemas.enums import ReportPeriod
from microdrama.schemas.revenue import RevenueReportOut
from microdrama.services.revenue_service import RevenueAggregator

router = APIRouter(tags=["Admin Revenue"])


@router.get("/revenue", response_model=RevenueReportOut, summary="Revenue report")
async def revenue_report(
    period: ReportPeriod = Query(ReportPeriod.MONTH, description="Bucket width: week | month"),
    _admin: Identity = Depends(require_admin),
    aggregator: RevenueAggregator = Depends(get_revenue_aggregator),
) -> JSONResponse:
    report = await aggregator.revenue_report(period)
    return json_no_store(RevenueReportOut.model_validate(report))

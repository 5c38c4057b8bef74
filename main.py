import logging
from typing import Optional, Union

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from sqlalchemy.orm import Session

from config import get_settings
from database import get_db, session_scope
from periods import InvalidPeriod, parse_anchor_date
from repository import ensure_default_categories
from schemas import (
    CategoryOverviewReport,
    CategorySpendReport,
    DashboardReport,
    IncomeSummaryReport,
    MonthlyReport,
    WeeklyReport,
    YearlyReport,
)
from services import (
    CategoryNotFound,
    ReportService,
    ReportUnavailable,
    get_current_user_id,
    local_today,
)

logging.basicConfig(level=get_settings().log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Finance Reports")


@app.on_event("startup")
def startup_event():
    with session_scope() as session:
        created = ensure_default_categories(session)
    logger.info(f"startup: default_categories_created={created}")


def current_user_id(x_user_id: Optional[int] = Header(default=None)) -> int:
    return get_current_user_id() if x_user_id is None else x_user_id


def report_service(
    db: Session = Depends(get_db), user_id: int = Depends(current_user_id)
) -> ReportService:
    return ReportService(db, user_id)


def _or(value: Optional[int], default: int) -> int:
    return default if value is None else value


def _unavailable(exc: ReportUnavailable) -> HTTPException:
    return HTTPException(
        status_code=500, detail={"message": str(exc), "step": exc.step}
    )


@app.get("/api/health")
def health():
    return {"ok": True}


@app.get("/api/reports/dashboard", response_model=DashboardReport)
def dashboard(service: ReportService = Depends(report_service)):
    try:
        return service.dashboard()
    except ReportUnavailable as exc:
        raise _unavailable(exc) from exc


@app.get("/api/reports/monthly", response_model=MonthlyReport)
def monthly_report_current(
    month: Optional[int] = None,
    year: Optional[int] = None,
    service: ReportService = Depends(report_service),
):
    try:
        today = local_today()
        return service.monthly(_or(year, today.year), _or(month, today.month))
    except InvalidPeriod as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ReportUnavailable as exc:
        raise _unavailable(exc) from exc


@app.get("/api/reports/monthly/{year}/{month}", response_model=MonthlyReport)
def monthly_report(
    year: int, month: int, service: ReportService = Depends(report_service)
):
    try:
        return service.monthly(year, month)
    except InvalidPeriod as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ReportUnavailable as exc:
        raise _unavailable(exc) from exc


@app.get("/api/reports/weekly", response_model=WeeklyReport)
def weekly_report(
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    service: ReportService = Depends(report_service),
):
    try:
        return service.weekly(parse_anchor_date(start_date))
    except InvalidPeriod as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ReportUnavailable as exc:
        raise _unavailable(exc) from exc


@app.get("/api/reports/yearly/{year}", response_model=YearlyReport)
def yearly_report(year: int, service: ReportService = Depends(report_service)):
    try:
        return service.yearly(year)
    except InvalidPeriod as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ReportUnavailable as exc:
        raise _unavailable(exc) from exc


@app.get(
    "/api/reports/category",
    response_model=Union[CategorySpendReport, CategoryOverviewReport],
)
def category_report(
    month: Optional[int] = None,
    year: Optional[int] = None,
    category_id: Optional[int] = Query(default=None, alias="categoryId"),
    service: ReportService = Depends(report_service),
):
    try:
        today = local_today()
        return service.category_detail(
            _or(year, today.year), _or(month, today.month), category_id
        )
    except InvalidPeriod as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except CategoryNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ReportUnavailable as exc:
        raise _unavailable(exc) from exc


@app.get("/api/incomes/summary", response_model=IncomeSummaryReport)
def income_summary(
    month: Optional[int] = None,
    year: Optional[int] = None,
    service: ReportService = Depends(report_service),
):
    try:
        today = local_today()
        return service.income_summary(_or(year, today.year), _or(month, today.month))
    except InvalidPeriod as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ReportUnavailable as exc:
        raise _unavailable(exc) from exc

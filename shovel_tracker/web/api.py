"""
HTTP interface.

Route groups:
- /api/<collection>: the raw store resources (GET the array, POST a full replacement)
- /api/tracker/...: user actions that go through the TrackerService
- /api/reports, /reports/...: the report as JSON, printable HTML and Excel
- /api/preferences: report title, subtitle and recent entries limit
"""

import datetime
import io
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field

from shovel_tracker.domain.models import Collection, ReportFilter
from shovel_tracker.domain.mutators import InvalidRecordError
from shovel_tracker.infra.config import Settings, TrackerPreferences, get_settings
from shovel_tracker.infra.store import CollectionStore, StoreError, create_store
from shovel_tracker.services.excel_report_service import ExcelReportService
from shovel_tracker.services.report_service import ReportService
from shovel_tracker.services.tracker_service import MutationResult, TrackerService

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class ProjectIn(BaseModel):
    code: str = ""
    name: str = ""


class TeamMemberIn(BaseModel):
    name: str = ""


class TimeEntryIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    project_id: str = Field(default="", alias="projectId")
    team_member_id: str = Field(default="", alias="teamMemberId")
    date: datetime.date = Field(default_factory=datetime.date.today)
    hours: Optional[float] = Field(default=None, allow_inf_nan=False)
    kilometers: Optional[float] = Field(default=None, allow_inf_nan=False)
    description: Optional[str] = None


def get_store(request: Request) -> CollectionStore:
    return request.app.state.store


def get_tracker(request: Request) -> TrackerService:
    return request.app.state.tracker


def get_report_filter(start: Optional[datetime.date] = None,
                      end: Optional[datetime.date] = None,
                      member: str = "all") -> ReportFilter:
    return ReportFilter(start_date=start, end_date=end, member_id=member)


def _mutation_response(result: MutationResult, status_code: int = 200) -> JSONResponse:
    """The requested status when everything was saved, 503 otherwise"""
    return JSONResponse(result.to_json(), status_code=status_code if result.saved else 503)


# Raw collection resources

collections_router = APIRouter(prefix="/api", tags=["collections"])


def _register_collection_routes(collection: Collection):
    path = f"/{collection.value}"

    async def read_collection(store: CollectionStore = Depends(get_store)):
        try:
            return await store.get(collection)
        except StoreError as e:
            logger.error("Error fetching %s: %s", collection.label, e)
            return JSONResponse({"error": f"Failed to fetch {collection.label}"}, status_code=500)

    async def replace_collection(request: Request,
                                 store: CollectionStore = Depends(get_store),
                                 tracker: TrackerService = Depends(get_tracker)):
        try:
            items: Any = await request.json()
        except ValueError:
            return JSONResponse({"error": "Request body must be JSON"}, status_code=400)
        if not isinstance(items, list):
            return JSONResponse({"error": f"{collection.label} must be a JSON array"}, status_code=400)
        try:
            await store.set(collection, items)
        except StoreError as e:
            logger.error("Error saving %s: %s", collection.label, e)
            return JSONResponse({"error": f"Failed to save {collection.label}"}, status_code=500)
        # Keep the session copy in step with what was just written
        await tracker.load()
        return {"success": True}

    collections_router.add_api_route(path, read_collection, methods=["GET"], name=f"get_{collection.name.lower()}")
    collections_router.add_api_route(path, replace_collection, methods=["POST"], name=f"save_{collection.name.lower()}")


for _collection in Collection:
    _register_collection_routes(_collection)


@collections_router.get("/test")
async def test_connection(store: CollectionStore = Depends(get_store)):
    """Round-trip a marker through the store and report the backend settings"""
    env = store.describe()
    try:
        value = await store.check_connection()
    except StoreError as e:
        logger.error("Store connection test failed: %s", e)
        return JSONResponse({"success": False, "error": str(e), "env": env}, status_code=500)
    return {
        "success": True,
        "message": "Store connection test",
        "value": value or "No value found",
        "env": env,
    }


# Tracker actions

tracker_router = APIRouter(prefix="/api/tracker", tags=["tracker"])


@tracker_router.get("/state")
async def read_state(tracker: TrackerService = Depends(get_tracker)):
    return tracker.state.to_json()


@tracker_router.post("/projects")
async def create_project(body: ProjectIn, tracker: TrackerService = Depends(get_tracker)):
    return _mutation_response(await tracker.add_project(body.code, body.name), 201)


@tracker_router.delete("/projects/{project_id}")
async def remove_project(project_id: str, tracker: TrackerService = Depends(get_tracker)):
    return _mutation_response(await tracker.delete_project(project_id))


@tracker_router.post("/team-members")
async def create_team_member(body: TeamMemberIn, tracker: TrackerService = Depends(get_tracker)):
    return _mutation_response(await tracker.add_team_member(body.name), 201)


@tracker_router.delete("/team-members/{member_id}")
async def remove_team_member(member_id: str, tracker: TrackerService = Depends(get_tracker)):
    return _mutation_response(await tracker.delete_team_member(member_id))


@tracker_router.get("/time-entries")
async def list_time_entries(date: Optional[datetime.date] = None,
                            tracker: TrackerService = Depends(get_tracker)):
    """Entries for one day, or every entry when no date is given"""
    entries = tracker.entries_for_date(date) if date else tracker.state.time_entries
    return [e.to_json() for e in entries]


@tracker_router.post("/time-entries")
async def create_time_entry(body: TimeEntryIn, tracker: TrackerService = Depends(get_tracker)):
    result = await tracker.add_time_entry(
        body.project_id, body.team_member_id, body.date,
        hours=body.hours, kilometers=body.kilometers, description=body.description,
    )
    return _mutation_response(result, 201)


@tracker_router.delete("/time-entries/{entry_id}")
async def remove_time_entry(entry_id: str, tracker: TrackerService = Depends(get_tracker)):
    return _mutation_response(await tracker.delete_time_entry(entry_id))


@tracker_router.get("/recent")
async def list_recent_entries(request: Request, limit: Optional[int] = Query(None, ge=1),
                              tracker: TrackerService = Depends(get_tracker)):
    if limit is None:
        limit = request.app.state.settings.preferences.recent_entries_limit
    return [e.to_json() for e in tracker.recent_entries(limit)]


# Reports

reports_router = APIRouter(tags=["reports"])


@reports_router.get("/api/reports")
async def read_report(report_filter: ReportFilter = Depends(get_report_filter),
                      tracker: TrackerService = Depends(get_tracker)):
    return tracker.report(report_filter).model_dump(mode="json", by_alias=True)


@reports_router.get("/reports/print", response_class=HTMLResponse)
async def print_report(report_filter: ReportFilter = Depends(get_report_filter),
                       tracker: TrackerService = Depends(get_tracker)):
    report = tracker.report(report_filter)
    return HTMLResponse(tracker.report_service.render_html(report))


@reports_router.get("/reports/export.xlsx")
async def export_report(report_filter: ReportFilter = Depends(get_report_filter),
                        tracker: TrackerService = Depends(get_tracker)):
    report = tracker.report(report_filter)
    buffer = io.BytesIO()
    ExcelReportService().generate_report(report, buffer)
    return Response(
        content=buffer.getvalue(),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="shovel-report.xlsx"'},
    )


# Preferences

preferences_router = APIRouter(prefix="/api/preferences", tags=["preferences"])


@preferences_router.get("")
async def read_preferences(request: Request):
    return request.app.state.settings.preferences.model_dump()


@preferences_router.put("")
async def update_preferences(preferences: TrackerPreferences, request: Request,
                             tracker: TrackerService = Depends(get_tracker)):
    """Apply new report preferences and write them to settings.yaml"""
    settings: Settings = request.app.state.settings
    settings.preferences = preferences
    settings.save_preferences()
    tracker.report_service.preferences = preferences
    logger.info("Preferences saved to %s", settings.config_dir)
    return preferences.model_dump()


async def invalid_record_handler(request: Request, exc: InvalidRecordError) -> JSONResponse:
    return JSONResponse({"error": str(exc)}, status_code=422)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Field and message only; rejected inputs such as inf or NaN cannot be encoded as JSON"""
    messages = [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]
    return JSONResponse({"error": "; ".join(messages)}, status_code=422)


def create_app(settings: Optional[Settings] = None,
               store: Optional[CollectionStore] = None) -> FastAPI:
    """
    Build the web application.

    Args:
        settings: Configuration, defaults to the global settings
        store: Collection store, defaults to the backend named in settings
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_store = store or create_store(settings)
        tracker = TrackerService(app_store, ReportService(preferences=settings.preferences))
        await tracker.load()

        app.state.settings = settings
        app.state.store = app_store
        app.state.tracker = tracker
        logger.info("Using %s store", app_store.backend_name)
        yield
        await app_store.close()

    app = FastAPI(title=settings.preferences.report_title, lifespan=lifespan)
    app.add_exception_handler(InvalidRecordError, invalid_record_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.include_router(collections_router)
    app.include_router(tracker_router)
    app.include_router(reports_router)
    app.include_router(preferences_router)
    return app

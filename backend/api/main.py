import uuid
import asyncio
import functools
import contextvars
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request, Response, status
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field

from backend.api.responses import APIResponse
from backend.core import settings
from backend.engine.attendance import AttendanceCalculator, InvalidInputError
from backend.engine.chart import generate_graph
from backend.engine.dashboard import build_dashboard
from backend.engine.fetch import CyberVidyaClient, PortalError, SessionExpiredError
from backend.engine.session import AttendanceSession
from backend.engine.stream import app_logger, mask_username, request_logging_context

LOGIN_FAILED_MESSAGE = "Failed to fetch attendance data. Please check your credentials."
SESSION_EXPIRED_MESSAGE = "Session expired. Please login again."
NOT_LOGGED_IN_MESSAGE = "Not logged in"

FRONTEND_DIR = Path(__file__).resolve().parent.parent.parent / "frontend" / "web"

router = APIRouter()


class LoginRequest(BaseModel):
    """Credentials forwarded to the CyberVidya portal."""

    username: str = Field(..., min_length=1, description="Portal username")
    password: str = Field(..., min_length=1, description="Portal password")
    remember_me: bool = Field(
        False, description="Persist the portal token in a cookie"
    )


def get_portal_client() -> Iterator[CyberVidyaClient]:
    client = CyberVidyaClient()
    try:
        yield client
    finally:
        client.close()


async def _run_blocking(func: Callable[..., Any], *args: Any) -> Any:
    # requests is blocking; keep it off the event loop. The copied context
    # carries the request id into the worker thread's log records.
    loop = asyncio.get_running_loop()
    context = contextvars.copy_context()
    return await loop.run_in_executor(None, functools.partial(context.run, func, *args))


def _error_response(
    error_type: str, details: str, code: str, status_code: int
) -> JSONResponse:
    payload, status_code = APIResponse.error(
        error_type=error_type, details=details, code=code, status_code=status_code
    )
    return JSONResponse(content=payload, status_code=status_code)


def _session_expired_response() -> JSONResponse:
    response = _error_response(
        "SessionExpired", SESSION_EXPIRED_MESSAGE, "session_expired", status.HTTP_401_UNAUTHORIZED
    )
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return response


async def _load_dashboard(session: AttendanceSession) -> Dict[str, Any]:
    attendance = await _run_blocking(session.load_attendance)
    return build_dashboard(attendance, settings.ATTENDANCE_THRESHOLD)


async def _resume_dashboard(
    request: Request, client: CyberVidyaClient
) -> tuple[Optional[Dict[str, Any]], Optional[JSONResponse]]:
    token = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if not token:
        return None, _error_response(
            "NotLoggedIn", NOT_LOGGED_IN_MESSAGE, "not_logged_in", status.HTTP_401_UNAUTHORIZED
        )

    session = AttendanceSession(client)
    session.resume(token)

    try:
        return await _load_dashboard(session), None
    except SessionExpiredError:
        return None, _session_expired_response()


@router.get("/healthcheck")
async def healthcheck() -> Dict[str, str]:
    return {"message": "Service is healthy", "status": "ok"}


@router.post("/login")
async def login(
    payload: LoginRequest,
    client: CyberVidyaClient = Depends(get_portal_client),
):
    session = AttendanceSession(client)

    try:
        portal_session = await _run_blocking(
            session.sign_in, payload.username, payload.password
        )
        dashboard = await _load_dashboard(session)

    except PortalError as error:
        app_logger.warning(f"Login failed for {mask_username(payload.username)}: {error}")
        return _error_response(
            "AuthenticationError", LOGIN_FAILED_MESSAGE, "auth_failed", status.HTTP_401_UNAUTHORIZED
        )

    except InvalidInputError as error:
        app_logger.error(f"Portal returned unusable attendance counts: {error}")
        return _error_response(
            "InvalidInput", str(error), "invalid_attendance", status.HTTP_502_BAD_GATEWAY
        )

    response = JSONResponse(
        content=APIResponse.success(
            data=dashboard,
            code="attendance_retrieved",
            message="Attendance data retrieved",
        )
    )
    if payload.remember_me:
        response.set_cookie(
            settings.AUTH_COOKIE_NAME,
            portal_session.token,
            max_age=settings.auth_cookie_max_age,
            httponly=True,
            secure=settings.AUTH_COOKIE_SECURE,
            samesite="lax",
        )
    return response


@router.get("/attendance")
async def get_attendance(
    request: Request,
    client: CyberVidyaClient = Depends(get_portal_client),
):
    try:
        dashboard, error_response = await _resume_dashboard(request, client)
    except InvalidInputError as error:
        app_logger.error(f"Portal returned unusable attendance counts: {error}")
        return _error_response(
            "InvalidInput", str(error), "invalid_attendance", status.HTTP_502_BAD_GATEWAY
        )

    if error_response is not None:
        return error_response

    return APIResponse.success(
        data=dashboard,
        code="attendance_retrieved",
        message="Attendance data retrieved",
    )


@router.get("/attendance/chart")
async def get_attendance_chart(
    request: Request,
    client: CyberVidyaClient = Depends(get_portal_client),
):
    try:
        dashboard, error_response = await _resume_dashboard(request, client)
    except InvalidInputError as error:
        app_logger.error(f"Portal returned unusable attendance counts: {error}")
        return _error_response(
            "InvalidInput", str(error), "invalid_attendance", status.HTTP_502_BAD_GATEWAY
        )

    if error_response is not None:
        return error_response

    app_logger.info("Generating attendance visualization")
    graph = await _run_blocking(generate_graph, dashboard, settings.ATTENDANCE_THRESHOLD)

    return APIResponse.success(
        data={"graph": graph},
        code="chart_generated",
        message="Attendance chart generated",
    )


@router.post("/logout")
async def logout(response: Response) -> Dict[str, Any]:
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return APIResponse.success(data=None, code="logged_out", message="Logged out")


@router.get("/projection")
async def get_projection(
    present: int = Query(..., ge=0, description="Classes attended"),
    total: int = Query(..., ge=0, description="Classes held so far"),
    threshold: int = Query(settings.ATTENDANCE_THRESHOLD, gt=0, lt=100),
) -> Dict[str, Any]:
    # Query bounds reject negative counts with a 422 before we get here
    projection = AttendanceCalculator.project(present, total, threshold)

    return APIResponse.success(
        data=projection.to_dict(),
        code="projection_computed",
        message=projection.message,
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title="CyberVidya Attendance Tracker",
        description="Fetch student attendance from CyberVidya and project classes to attend or miss",
        version="1.0.0",
    )

    @app.middleware("http")
    async def assign_request_id(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        async with request_logging_context(request_id):
            response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    app.include_router(router, prefix="/api")

    if settings.ENABLE_BACKEND_WEB and FRONTEND_DIR.is_dir():
        app.mount("/", StaticFiles(directory=FRONTEND_DIR, html=True), name="frontend")
    else:
        app_logger.info("Frontend static files mount disabled")

        @app.get("/{full_path:path}", include_in_schema=False)
        async def frontend_disabled(full_path: str):
            # API routes are registered first and take precedence.
            if full_path.startswith("api"):
                return _error_response(
                    "NotFound", f"Path '/{full_path}' not found", "not_found", status.HTTP_404_NOT_FOUND
                )
            return _error_response(
                "FeatureDisabled",
                "Frontend disabled. Set ENABLE_BACKEND_WEB=true to enable serving the web frontend.",
                "frontend_disabled",
                status.HTTP_404_NOT_FOUND,
            )

    return app


app = create_app()

"""FastAPI application entrypoint and HTTP controllers.

This module wires the resource controllers to HTTP. Resource routes are
declared in the explicit `ROUTES` table: each entry names the method,
path, the role required to call it and the handler. Building the app
attaches the authorization gate for that role in front of every handler,
so the gate runs before parameters are parsed and before any repository
is touched (a body that is not JSON at all still gets FastAPI's 422
first). Handlers parse their own query parameters, call a controller
and pass its result through `errors.respond`.

Endpoints implemented:
- GET    /api/helprequests/all
- POST   /api/helprequests/post
- GET    /api/helprequests?id=
- PUT    /api/helprequests?id=
- DELETE /api/helprequests?id=
- GET    /api/ucsborganization/all
- POST   /api/ucsborganization/post
- GET    /api/ucsborganization?orgcode=
- PUT    /api/ucsborganization?orgcode=
- DELETE /api/ucsborganization?orgcode=
- GET    /api/currentUser
- GET    /api/admin/users
- POST   /auth/register
- POST   /auth/login
- GET    /health
"""

import json
import logging
import time
import uuid
from typing import Any, Callable, List, NamedTuple, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session

from . import models, repositories, services
from .auth import Role, get_current_user, require_role, roles_for
from .config import settings
from .controllers import HelpRequestController, UCSBOrganizationController
from .database import create_db_and_tables, get_session
from .errors import register_error_handlers, respond
from .schemas import (
    CurrentUserOut,
    ErrorOut,
    HelpRequestIn,
    HelpRequestOut,
    MessageOut,
    RegisterIn,
    TokenOut,
    UCSBOrganizationIn,
    UCSBOrganizationOut,
    UserOut,
)
from .utils.parsers import parse_bool, parse_local_datetime, require_text

app = FastAPI(title="Course Records API")
logger = logging.getLogger("app.api")
if not logger.handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

register_error_handlers(app)
create_db_and_tables()


def _request_log_line(request: Request, req_id: str, started: float, **extra) -> str:
    """JSON summary of one API request for the access log."""
    entry = {
        "request_id": req_id,
        "path": request.url.path,
        "method": request.method,
        **extra,
        "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
        "client": request.client.host if request.client else "unknown",
    }
    return json.dumps(entry, ensure_ascii=True)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    logged = request.url.path.startswith("/api")
    try:
        response = await call_next(request)
    except Exception:
        if logged:
            logger.exception("request_failed %s", _request_log_line(request, req_id, started))
        raise
    response.headers["X-Request-ID"] = req_id
    if logged:
        logger.info(
            "request_done %s",
            _request_log_line(request, req_id, started, status_code=response.status_code),
        )
    return response


# Controller providers: the composition root handing each controller its store.

def get_help_request_controller(db: Session = Depends(get_session)) -> HelpRequestController:
    return HelpRequestController(repositories.HelpRequestRepository(db))


def get_organization_controller(db: Session = Depends(get_session)) -> UCSBOrganizationController:
    return UCSBOrganizationController(repositories.UCSBOrganizationRepository(db))


def _bad_request(exc: ValueError) -> HTTPException:
    return HTTPException(status_code=400, detail=str(exc))


# Help requests

def list_help_requests(controller: HelpRequestController = Depends(get_help_request_controller)):
    """List all help requests."""
    return respond(controller.list_all(), HelpRequestOut)


def post_help_request(
    requester_email: Optional[str] = Query(None, alias="requesterEmail"),
    team_id: Optional[str] = Query(None, alias="teamId"),
    table_or_breakout_room: Optional[str] = Query(None, alias="tableOrBreakoutRoom"),
    explanation: Optional[str] = Query(None),
    solved: Optional[str] = Query(None),
    request_time: Optional[str] = Query(None, alias="requestTime", description="ISO-8601, e.g. 2022-04-20T17:35"),
    controller: HelpRequestController = Depends(get_help_request_controller),
):
    """Create a new help request from query parameters."""
    try:
        fields = {
            "requester_email": require_text("requesterEmail", requester_email),
            "team_id": require_text("teamId", team_id),
            "table_or_breakout_room": require_text("tableOrBreakoutRoom", table_or_breakout_room),
            "explanation": require_text("explanation", explanation),
            "solved": parse_bool("solved", solved),
            "request_time": parse_local_datetime("requestTime", request_time),
        }
    except ValueError as e:
        raise _bad_request(e)
    return respond(controller.create(**fields), HelpRequestOut)


def get_help_request(id: int = Query(...), controller: HelpRequestController = Depends(get_help_request_controller)):
    """Get a single help request by id."""
    return respond(controller.get_by_id(id), HelpRequestOut)


def put_help_request(
    body: HelpRequestIn,
    id: int = Query(...),
    controller: HelpRequestController = Depends(get_help_request_controller),
):
    """Replace every field of the help request stored under `id`."""
    return respond(controller.update(id, body), HelpRequestOut)


def delete_help_request(id: int = Query(...), controller: HelpRequestController = Depends(get_help_request_controller)):
    """Delete the help request stored under `id`."""
    return respond(controller.delete(id), MessageOut)


# Organizations

def list_organizations(controller: UCSBOrganizationController = Depends(get_organization_controller)):
    """List all organizations."""
    return respond(controller.list_all(), UCSBOrganizationOut)


def post_organization(
    org_translation: Optional[str] = Query(None, alias="orgTranslation"),
    orgcode: Optional[str] = Query(None),
    org_translation_short: Optional[str] = Query(None, alias="orgTranslationShort"),
    inactive: Optional[str] = Query(None),
    controller: UCSBOrganizationController = Depends(get_organization_controller),
):
    """Create a new organization from query parameters."""
    try:
        fields = {
            "orgcode": require_text("orgcode", orgcode),
            "org_translation": require_text("orgTranslation", org_translation),
            "org_translation_short": require_text("orgTranslationShort", org_translation_short),
            "inactive": parse_bool("inactive", inactive),
        }
    except ValueError as e:
        raise _bad_request(e)
    return respond(controller.create(**fields), UCSBOrganizationOut)


def get_organization(orgcode: str = Query(...), controller: UCSBOrganizationController = Depends(get_organization_controller)):
    """Get a single organization by its code."""
    return respond(controller.get_by_id(orgcode), UCSBOrganizationOut)


def put_organization(
    body: UCSBOrganizationIn,
    orgcode: str = Query(...),
    controller: UCSBOrganizationController = Depends(get_organization_controller),
):
    """Update the organization stored under `orgcode`; the code itself never changes."""
    return respond(controller.update(orgcode, body), UCSBOrganizationOut)


def delete_organization(orgcode: str = Query(...), controller: UCSBOrganizationController = Depends(get_organization_controller)):
    """Delete the organization stored under `orgcode`."""
    return respond(controller.delete(orgcode), MessageOut)


# Users

def current_user(user: Optional[models.User] = Depends(get_current_user)):
    """Return the caller's username and roles; anonymous callers get `loggedIn: false`."""
    roles = sorted(role.value for role in roles_for(user))
    return CurrentUserOut(logged_in=user is not None, username=user.username if user else None, roles=roles)


def list_users(db: Session = Depends(get_session)):
    """List registered users (admin only)."""
    return [UserOut.model_validate(u) for u in repositories.UserRepository(db).find_all()]


class Route(NamedTuple):
    method: str
    path: str
    role: Optional[Role]
    endpoint: Callable[..., Any]
    response_model: Any = None
    not_found: bool = False


ROUTES: List[Route] = [
    Route("GET", "/api/helprequests/all", Role.USER, list_help_requests, List[HelpRequestOut]),
    Route("POST", "/api/helprequests/post", Role.ADMIN, post_help_request, HelpRequestOut),
    Route("GET", "/api/helprequests", Role.USER, get_help_request, HelpRequestOut, True),
    Route("PUT", "/api/helprequests", Role.ADMIN, put_help_request, HelpRequestOut, True),
    Route("DELETE", "/api/helprequests", Role.ADMIN, delete_help_request, MessageOut, True),
    Route("GET", "/api/ucsborganization/all", Role.USER, list_organizations, List[UCSBOrganizationOut]),
    Route("POST", "/api/ucsborganization/post", Role.ADMIN, post_organization, UCSBOrganizationOut),
    Route("GET", "/api/ucsborganization", Role.USER, get_organization, UCSBOrganizationOut, True),
    Route("PUT", "/api/ucsborganization", Role.ADMIN, put_organization, UCSBOrganizationOut, True),
    Route("DELETE", "/api/ucsborganization", Role.ADMIN, delete_organization, MessageOut, True),
    Route("GET", "/api/currentUser", None, current_user, CurrentUserOut),
    Route("GET", "/api/admin/users", Role.ADMIN, list_users, List[UserOut]),
]


def register_routes(target: FastAPI, routes: List[Route]) -> None:
    """Add every route in `routes`, gated by its required role."""
    for route in routes:
        dependencies = [Depends(require_role(route.role))] if route.role else []
        target.add_api_route(
            route.path,
            route.endpoint,
            methods=[route.method],
            dependencies=dependencies,
            response_model=route.response_model,
            responses={404: {"model": ErrorOut}} if route.not_found else None,
        )


register_routes(app, ROUTES)


@app.post('/auth/register')
def register(payload: RegisterIn, db: Session = Depends(get_session)):
    """Register a new user (idempotent).

    Returns existing user if the username already exists to make the
    operation idempotent (useful for automation/tests).
    """
    existing = repositories.UserRepository(db).get_by_username(payload.username)
    if existing:
        return {'id': existing.id, 'username': existing.username}
    user = services.AuthService(db).register(payload.username, payload.password)
    return {'id': user.id, 'username': user.username}


@app.post('/auth/login', response_model=TokenOut)
def login(payload: RegisterIn, db: Session = Depends(get_session)):
    """Authenticate a user and return a JWT bearer token.

    The returned token contains `user_id` and `username` and is signed
    using the configured JWT secret.
    """
    token = services.AuthService(db).authenticate(payload.username, payload.password)
    if not token:
        raise HTTPException(status_code=401, detail='invalid credentials')
    return {'access_token': token}


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}

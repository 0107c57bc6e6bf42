"""FastAPI application for the staff portfolio service."""

from __future__ import annotations

from typing import Any, Dict, Iterator

import structlog
from fastapi import Body, Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import PortfolioSettings
from .errors import MethodNotAllowed, PortfolioError, RouteNotFound, UnknownAttribute
from .service import PortfolioDatabase, PortfolioService, init_engine

__all__ = ["create_app", "ENDPOINTS"]

logger = structlog.get_logger(__name__)

FILTERS = "any filterable attribute, <DateAttribute>After/Before, includeConfidential, KeywordQueryType"

ENDPOINTS: Dict[str, Dict[str, Any]] = {
    "GET /api": {"description": "serves this description of every available endpoint"},
    "GET /api/info": {
        "description": "type and distinct values of the commonly filtered attributes",
        "queries": ["includeConfidential"],
    },
    "GET /api/staff/meta": {"description": "serves all staff", "queries": ["any staff attribute"]},
    "GET /api/staff/meta/:StaffID": {"description": "serves one staff member"},
    "PATCH /api/staff/meta/:StaffID": {
        "description": "updates a staff member's mutable attributes",
        "exampleBody": {"nationality": "British", "qualifications": ["MEng"]},
    },
    "GET /api/projects": {"description": "serves all projects", "queries": [FILTERS]},
    "GET /api/projects/staff": {
        "description": "staff who booked time to the matching projects, with TotalHrs and ProjectCount",
        "queries": [FILTERS],
    },
    "POST /api/projects/staff": {
        "description": "TotalHrs and ProjectCount per staff member over the given projects",
        "exampleBody": {"Projects": [22398800, 25397800]},
        "queries": ["any staff attribute", "includeConfidential"],
    },
    "GET /api/projects/staff/:StaffID": {
        "description": "the projects a staff member booked time to",
        "queries": [FILTERS, "showDetails"],
    },
    "GET /api/projects/keywords/:StaffID": {
        "description": "keyword codes across a staff member's projects",
        "queries": [FILTERS],
    },
    "GET /api/project/:ProjectCode": {"description": "serves one project", "queries": ["StaffID"]},
    "PATCH /api/project/:ProjectCode": {
        "description": "updates a project's mutable attributes",
        "exampleBody": {"JobNameLong": "Bridge Street Quarter", "Confidential": False},
    },
    "GET /api/project/keywords/:ProjectCode": {"description": "keyword codes of one project"},
    "POST /api/project/staff/:ProjectCode": {
        "description": "records a staff member's time and narrative on a project",
        "queries": ["StaffID"],
        "exampleBody": {"TotalHrs": 5, "experience": "Led the structural design."},
    },
    "PATCH /api/project/staff/:ProjectCode": {
        "description": "updates an existing time booking",
        "queries": ["StaffID"],
        "exampleBody": {"experience": "Led the structural design."},
    },
    "GET /api/keywords": {"description": "serves all keywords", "queries": ["any keyword attribute"]},
    "GET /api/keywords/groups": {"description": "serves all keyword groups"},
    "GET /api/keywords/allgroups": {"description": "keywords arranged by group"},
    "GET /api/keywords/groups/:StaffID": {
        "description": "keywords by group across a staff member's projects",
        "queries": [FILTERS],
    },
}


def create_app(settings: PortfolioSettings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = settings or PortfolioSettings()
    engine = init_engine(settings)
    database = PortfolioDatabase(engine=engine)
    prefix = settings.API_PREFIX.rstrip("/")

    app = FastAPI(title="Staff Portfolio Service", version="1.0.0")
    app.state.database = database

    def get_session() -> Iterator[Session]:
        session = database.session()
        try:
            yield session
        finally:
            session.close()

    def get_service(session: Session = Depends(get_session)) -> PortfolioService:
        return PortfolioService(session=session)

    @app.exception_handler(PortfolioError)
    async def _handle_portfolio_error(request: Request, exc: PortfolioError):  # type: ignore[override]
        logger.info(
            "request_failed",
            method=request.method,
            path=request.url.path,
            status=exc.status_code,
            reason=exc.detail or exc.message,
        )
        return JSONResponse(status_code=exc.status_code, content={"msg": exc.message})

    @app.exception_handler(RequestValidationError)
    async def _handle_invalid_body(request: Request, exc: RequestValidationError):  # type: ignore[override]
        errors = exc.errors()
        reason = errors[0].get("msg") if errors else "invalid request"
        return await _handle_portfolio_error(request, UnknownAttribute("body", detail=f"malformed body: {reason}"))

    @app.exception_handler(StarletteHTTPException)
    async def _handle_routing(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
        if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
            error: PortfolioError = MethodNotAllowed()
        elif exc.status_code == status.HTTP_404_NOT_FOUND:
            error = RouteNotFound()
        else:
            return JSONResponse(status_code=exc.status_code, content={"msg": str(exc.detail)})
        return JSONResponse(status_code=error.status_code, content={"msg": error.message})

    @app.exception_handler(Exception)
    async def _handle_errors(request: Request, exc: Exception):  # type: ignore[override]
        logger.exception("unhandled_error", method=request.method, path=request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"msg": "Internal server error"},
        )

    # ------------------------------------------------------------------ index
    @app.get(prefix or "/")
    def endpoints() -> Dict[str, Any]:
        return ENDPOINTS

    @app.get(f"{prefix}/info")
    def info(request: Request, service: PortfolioService = Depends(get_service)) -> Dict[str, Any]:
        return {"dbInfo": service.describe(dict(request.query_params))}

    # ------------------------------------------------------------------ staff
    @app.get(f"{prefix}/staff/meta")
    def list_staff(request: Request, service: PortfolioService = Depends(get_service)) -> Dict[str, Any]:
        return {"staffMeta": service.list_staff(dict(request.query_params))}

    @app.get(f"{prefix}/staff/meta/{{staff_id}}")
    def get_staff(staff_id: str, service: PortfolioService = Depends(get_service)) -> Dict[str, Any]:
        return {"staffMeta": service.get_staff(staff_id)}

    @app.patch(f"{prefix}/staff/meta/{{staff_id}}")
    def patch_staff(
        staff_id: str,
        payload: Any = Body(None),
        service: PortfolioService = Depends(get_service),
    ):
        result = service.patch_staff(staff_id, payload)
        return _mutation_response("staffMeta", result)

    # ------------------------------------------------------------------ portfolios
    @app.get(f"{prefix}/projects")
    def list_projects(request: Request, service: PortfolioService = Depends(get_service)) -> Dict[str, Any]:
        return {"projects": service.list_projects(dict(request.query_params))}

    @app.get(f"{prefix}/projects/staff")
    def staff_portfolio(request: Request, service: PortfolioService = Depends(get_service)) -> Dict[str, Any]:
        return {"staffPortfolio": service.staff_portfolio(dict(request.query_params))}

    @app.post(f"{prefix}/projects/staff")
    def staff_for_projects(
        request: Request,
        body: Any = Body(None),
        service: PortfolioService = Depends(get_service),
    ) -> Dict[str, Any]:
        return {"staffList": service.staff_for_projects(body, dict(request.query_params))}

    @app.get(f"{prefix}/projects/staff/{{staff_id}}")
    def staff_projects(
        staff_id: str, request: Request, service: PortfolioService = Depends(get_service)
    ) -> Dict[str, Any]:
        return {"projects": service.staff_projects(staff_id, dict(request.query_params))}

    @app.get(f"{prefix}/projects/keywords/{{staff_id}}")
    def staff_keywords(
        staff_id: str, request: Request, service: PortfolioService = Depends(get_service)
    ) -> Dict[str, Any]:
        return {"keywords": service.staff_keywords(staff_id, dict(request.query_params))}

    # ------------------------------------------------------------------ single project
    @app.get(f"{prefix}/project/keywords/{{project_code}}")
    def project_keywords(project_code: str, service: PortfolioService = Depends(get_service)) -> Dict[str, Any]:
        return {"keywords": service.project_keywords(project_code)}

    @app.post(f"{prefix}/project/staff/{{project_code}}")
    def add_experience(
        project_code: str,
        request: Request,
        payload: Any = Body(None),
        service: PortfolioService = Depends(get_service),
    ) -> Dict[str, Any]:
        return {"experience": service.add_experience(project_code, dict(request.query_params), payload)}

    @app.patch(f"{prefix}/project/staff/{{project_code}}")
    def patch_experience(
        project_code: str,
        request: Request,
        payload: Any = Body(None),
        service: PortfolioService = Depends(get_service),
    ) -> Dict[str, Any]:
        return {"project": service.patch_experience(project_code, dict(request.query_params), payload)}

    @app.get(f"{prefix}/project/{{project_code}}")
    def get_project(
        project_code: str, request: Request, service: PortfolioService = Depends(get_service)
    ) -> Dict[str, Any]:
        return {"project": service.get_project(project_code, dict(request.query_params))}

    @app.patch(f"{prefix}/project/{{project_code}}")
    def patch_project(
        project_code: str,
        payload: Any = Body(None),
        service: PortfolioService = Depends(get_service),
    ):
        result = service.patch_project(project_code, payload)
        return _mutation_response("project", result)

    # ------------------------------------------------------------------ keywords
    @app.get(f"{prefix}/keywords")
    def list_keywords(request: Request, service: PortfolioService = Depends(get_service)) -> Dict[str, Any]:
        return {"keywords": service.list_keywords(dict(request.query_params))}

    @app.get(f"{prefix}/keywords/allgroups")
    def all_keyword_groups(service: PortfolioService = Depends(get_service)) -> Dict[str, Any]:
        return {"keywords": service.all_keyword_groups()}

    @app.get(f"{prefix}/keywords/groups")
    def keyword_groups(service: PortfolioService = Depends(get_service)) -> Dict[str, Any]:
        return {"keywordGroups": service.list_keyword_groups()}

    @app.get(f"{prefix}/keywords/groups/{{staff_id}}")
    def staff_keyword_groups(
        staff_id: str, request: Request, service: PortfolioService = Depends(get_service)
    ) -> Dict[str, Any]:
        return {"keywords": service.staff_keyword_groups(staff_id, dict(request.query_params))}

    return app


def _mutation_response(key: str, result) -> JSONResponse:
    # An identifier in the payload is ignored; the rest of the patch still lands.
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY if result.identifier_ignored else status.HTTP_200_OK
    return JSONResponse(status_code=status_code, content={key: result.record})

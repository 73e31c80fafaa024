from __future__ import annotations

import datetime as dt
import logging
from typing import Optional

from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException
from starlette.middleware.sessions import SessionMiddleware

from . import models
from .auth import authenticate, ensure_admin_user, get_current_user, sign_in, sign_out
from .config import configure_logging, settings
from .database import db_session, engine, get_db
from .errors import AgendaError
from .itinerary import itinerary_filename, load_business_trip, render_itinerary_pdf
from .middleware import BlockListMiddleware
from .reschedule import reschedule_activity
from .schemas import (
    ActivityRequest,
    ActivityResponse,
    BranchSearchResponse,
    DeleteResponse,
    EmployeeSearchResponse,
    RescheduleRequest,
    RescheduleResponse,
    SignInRequest,
    UserResponse,
)
from .services import (
    create_activity,
    delete_activity,
    list_activities,
    load_activity_with_children,
    search_branches,
    search_employees,
    update_activity,
)

configure_logging()
logger = logging.getLogger(__name__)

models.Base.metadata.create_all(bind=engine)
with db_session() as session:
    ensure_admin_user(session)

app = FastAPI(title=settings.app_name)
app.add_middleware(BlockListMiddleware)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.secret_key,
    session_cookie=settings.session_cookie,
    max_age=settings.session_max_age,
    same_site="lax",
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://127.0.0.1:3000", "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)


@app.exception_handler(AgendaError)
async def agenda_error_handler(request: Request, exc: AgendaError) -> JSONResponse:
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0]["msg"] if errors else "Data yang dimasukkan tidak valid"
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    details = [{"loc": list(error["loc"]), "msg": error["msg"]} for error in errors]
    return JSONResponse({"error": message, "details": details}, status_code=status.HTTP_400_BAD_REQUEST)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"error": "Internal server error"}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/auth/signin", response_model=UserResponse)
def auth_signin(payload: SignInRequest, request: Request, db: Session = Depends(get_db)) -> UserResponse:
    user = authenticate(db, payload.email, payload.password)
    sign_in(request, user)
    return user


@app.post("/auth/signout", status_code=status.HTTP_204_NO_CONTENT)
def auth_signout(request: Request) -> Response:
    sign_out(request)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/auth/me", response_model=UserResponse)
def auth_me(user: models.User = Depends(get_current_user)) -> UserResponse:
    return user


@app.get("/activities", response_model=list[ActivityResponse])
def get_activities(
    date: Optional[dt.date] = None,
    month: Optional[int] = None,
    year: Optional[int] = None,
    from_date: Optional[dt.date] = None,
    to_date: Optional[dt.date] = None,
    employee_id: Optional[int] = None,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ActivityResponse]:
    return list_activities(
        db,
        user.id,
        day=date,
        month=month,
        year=year,
        from_date=from_date,
        to_date=to_date,
        employee_id=employee_id,
    )


@app.post("/activities", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
def create_activity_entry(
    payload: ActivityRequest,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ActivityResponse:
    return create_activity(db, user.id, payload.root)


@app.get("/activities/{activity_id}", response_model=ActivityResponse)
def get_activity(
    activity_id: int,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ActivityResponse:
    return load_activity_with_children(db, activity_id, user.id)


@app.put("/activities/{activity_id}", response_model=ActivityResponse)
def update_activity_entry(
    activity_id: int,
    payload: ActivityRequest,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ActivityResponse:
    return update_activity(db, activity_id, user.id, payload.root)


@app.delete("/activities/{activity_id}", response_model=DeleteResponse)
def remove_activity(
    activity_id: int,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> DeleteResponse:
    delete_activity(db, activity_id, user.id)
    return DeleteResponse(success=True)


@app.post("/activities/{activity_id}/reschedule", response_model=RescheduleResponse)
def reschedule(
    activity_id: int,
    payload: RescheduleRequest,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> RescheduleResponse:
    result = reschedule_activity(db, activity_id, user.id, payload.date, payload.time)
    return {"updated_original": result.updated_original, "new_activity": result.new_activity}


@app.get("/activities/{activity_id}/itinerary.pdf")
def download_itinerary(
    activity_id: int,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    activity = load_business_trip(db, activity_id, user.id)
    content = render_itinerary_pdf(activity)
    headers = {"Content-Disposition": f'inline; filename="{itinerary_filename(activity)}"'}
    return Response(content, media_type="application/pdf", headers=headers)


@app.get("/employees/search", response_model=EmployeeSearchResponse)
def employee_search(
    search: str = "",
    page: int = 1,
    limit: int = 20,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> EmployeeSearchResponse:
    return search_employees(db, search, page, limit)


@app.get("/branches/search", response_model=BranchSearchResponse)
def branch_search(
    search: str = "",
    page: int = 1,
    limit: int = 20,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> BranchSearchResponse:
    return search_branches(db, search, page, limit)

"""HTTP API exposing the users service."""

from __future__ import annotations

import logging
import os
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from fastapi import FastAPI, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, EmailStr, field_validator
from pydantic.alias_generators import to_camel

from .config import Settings, apply_environment, load_settings, resolve_config_path
from .models import User, UserDetails
from .repository import UserRepository
from .service import InvalidInputError, UserNotFoundError, UserService

logger = logging.getLogger("usersapi.api")

_NOT_BLANK = r".*\S.*"

_REQUIRED_FIELD_MESSAGES: Dict[str, str] = {
    "firstName": "First name must not be empty.",
    "lastName": "Last name must not be empty.",
    "email": "Email must not be empty.",
    "birthDate": "Birth date must not be empty.",
}
_EMPTY_VALUE_ERRORS = {"missing", "string_too_short", "string_pattern_mismatch"}


def _require_text(value: object, message: str) -> object:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError(message)
    return value


class UserPayload(BaseModel):
    """Body accepted when creating or replacing a user."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # Ignored: identifiers are assigned by the repository or taken from the path.
    id: Optional[str] = None
    first_name: str
    last_name: str
    email: EmailStr
    birth_date: date
    address: Optional[str] = None
    phone_number: Optional[str] = None

    @field_validator("first_name", mode="before")
    @classmethod
    def _check_first_name(cls, value: object) -> object:
        return _require_text(value, _REQUIRED_FIELD_MESSAGES["firstName"])

    @field_validator("last_name", mode="before")
    @classmethod
    def _check_last_name(cls, value: object) -> object:
        return _require_text(value, _REQUIRED_FIELD_MESSAGES["lastName"])

    @field_validator("email", mode="before")
    @classmethod
    def _check_email_present(cls, value: object) -> object:
        return _require_text(value, _REQUIRED_FIELD_MESSAGES["email"])

    @field_validator("birth_date", mode="before")
    @classmethod
    def _check_birth_date_present(cls, value: object) -> object:
        return _require_text(value, _REQUIRED_FIELD_MESSAGES["birthDate"])

    @field_validator("birth_date")
    @classmethod
    def _check_birth_date_in_past(cls, value: date) -> date:
        if value >= date.today():
            raise ValueError("Birth date must be earlier than current date.")
        return value

    def to_details(self) -> UserDetails:
        return UserDetails(
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            birth_date=self.birth_date,
            address=self.address,
            phone_number=self.phone_number,
        )


class UserResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    first_name: str
    last_name: str
    email: str
    birth_date: date
    address: Optional[str] = None
    phone_number: Optional[str] = None


def _user_to_response(user: User) -> UserResponse:
    return UserResponse.model_validate(user, from_attributes=True)


def _validation_message(error: Mapping[str, Any]) -> str:
    location = error.get("loc") or ()
    field = str(location[-1]) if location else ""
    if error.get("type") in _EMPTY_VALUE_ERRORS and field in _REQUIRED_FIELD_MESSAGES:
        return _REQUIRED_FIELD_MESSAGES[field]

    context = error.get("ctx") or {}
    if error.get("type") == "value_error" and "error" in context:
        return str(context["error"])
    if error.get("type") == "value_error" and field == "email":
        return "Wrong email format"

    message = str(error.get("msg", "Invalid request"))
    return f"{field}: {message}" if field else message


def register_api_routes(
    app: FastAPI,
    service: UserService,
    repository: UserRepository,
) -> None:
    """Expose the JSON API endpoints on the provided FastAPI application."""

    @app.get("/healthz")
    def healthcheck() -> Dict[str, object]:
        return {"status": "ok", "users": repository.count()}

    @app.post("/users", status_code=status.HTTP_201_CREATED, response_model=UserResponse)
    def create_user(payload: UserPayload) -> UserResponse:
        user = service.create_user(payload.to_details())
        logger.info("Created user %s", user.id)
        return _user_to_response(user)

    @app.get("/users/filter", response_model=List[UserResponse])
    def filter_users(
        start: date = Query(..., alias="from"),
        end: date = Query(..., alias="to"),
    ) -> List[UserResponse]:
        users = service.find_users_by_birth_date(start, end)
        return [_user_to_response(user) for user in users]

    @app.get("/users/{user_id}", response_model=UserResponse)
    def get_user(user_id: str) -> UserResponse:
        return _user_to_response(service.get_user(user_id))

    @app.patch("/users/{user_id}")
    def rename_user(
        user_id: str,
        first_name: str = Query(..., alias="firstName", pattern=_NOT_BLANK),
        last_name: str = Query(..., alias="lastName", pattern=_NOT_BLANK),
    ) -> Response:
        service.rename_user(user_id, first_name, last_name)
        logger.info("Renamed user %s", user_id)
        return Response(status_code=status.HTTP_200_OK)

    @app.put("/users/{user_id}", response_model=UserResponse)
    def replace_user(user_id: str, payload: UserPayload) -> UserResponse:
        user = service.replace_user(user_id, payload.to_details())
        logger.info("Replaced user %s", user.id)
        return _user_to_response(user)

    @app.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_user(user_id: str) -> Response:
        service.delete_user(user_id)
        logger.info("Deleted user %s", user_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)


def register_exception_handlers(app: FastAPI) -> None:
    """Translate service failures into HTTP responses."""

    @app.exception_handler(UserNotFoundError)
    async def handle_not_found(request: Request, exc: UserNotFoundError):
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(InvalidInputError)
    async def handle_invalid_input(request: Request, exc: InvalidInputError):
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        messages: List[str] = []
        for error in exc.errors():
            message = _validation_message(error)
            if message not in messages:
                messages.append(message)
        logger.info("%s %s failed validation: %s", request.method, request.url.path, "; ".join(messages))
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "\n".join(messages)},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error while processing %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": str(exc) or exc.__class__.__name__},
        )


def create_app(
    *,
    settings: Settings | None = None,
    repository: UserRepository | None = None,
    service: UserService | None = None,
) -> FastAPI:
    """Instantiate the FastAPI application for the users service."""

    app_settings = settings or apply_environment(
        load_settings(resolve_config_path(os.getenv("USERS_API_CONFIG")))
    )
    app_repository = repository or UserRepository()
    app_service = service or UserService(app_repository, min_age=app_settings.min_user_age)

    app = FastAPI(
        title="Users API",
        version="0.1.0",
        description="In-memory management of user records.",
    )

    app.state.settings = app_settings
    app.state.repository = app_repository
    app.state.service = app_service

    register_api_routes(app, app_service, app_repository)
    register_exception_handlers(app)

    return app


__all__ = ["UserPayload", "UserResponse", "create_app", "register_api_routes"]

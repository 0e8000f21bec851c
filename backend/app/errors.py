"""Error kinds and their mapping to HTTP responses.

Missing entities are not raised: controllers return an `EntityNotFound`
value and `respond` turns it into the structured 404 body. Authorization
failures are raised as `AuthorizationDenied` from the route dependency so
the handler never runs; `register_error_handlers` maps them to an empty
403.
"""

import logging
from dataclasses import dataclass
from typing import Any, Type, Union

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

logger = logging.getLogger("app.errors")

NOT_FOUND_TYPE = "EntityNotFoundException"


@dataclass(frozen=True)
class EntityNotFound:
    """Result of a key lookup that matched no stored record."""
    entity_name: str
    key: Any

    @property
    def message(self) -> str:
        return f"{self.entity_name} with id {self.key} not found"

    def to_body(self) -> dict:
        return {"type": NOT_FOUND_TYPE, "message": self.message}


class AuthorizationDenied(Exception):
    """The caller's roles do not include the role a route requires."""

    def __init__(self, required_role: str, caller_roles=()):
        super().__init__(f"role {required_role} required")
        self.required_role = required_role
        self.caller_roles = tuple(sorted(caller_roles))


def respond(result: Union[Any, EntityNotFound], schema: Type[BaseModel] = None):
    """Map a controller result to a response.

    Plain values are validated into `schema` (when given) and returned for
    FastAPI to serialize with a 200; `EntityNotFound` becomes a 404 JSON
    body.
    """
    if isinstance(result, EntityNotFound):
        logger.warning("not_found %s", result.message)
        return JSONResponse(status_code=404, content=result.to_body())
    if schema is None:
        return result
    if isinstance(result, list):
        return [schema.model_validate(item) for item in result]
    return schema.model_validate(result)


def register_error_handlers(app: FastAPI) -> None:
    """Register the domain error handlers on the FastAPI application."""

    @app.exception_handler(AuthorizationDenied)
    async def handle_authorization_denied(request: Request, exc: AuthorizationDenied) -> Response:
        logger.info(
            "access_denied path=%s method=%s required=%s roles=%s",
            request.url.path, request.method, exc.required_role, list(exc.caller_roles),
        )
        return Response(status_code=403)

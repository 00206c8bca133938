"""Users Resource — CRUD handler group mounted by the App under /users.

Invariants:
    - Bodies come from BodyParserMiddleware (JSON or URL-encoded) via parsed_body()
    - Payload validation failures surface as RequestValidationError (loc prefixed "body")
    - Storage errors (not found, duplicate email) propagate to the exception filter

Design Decisions:
    - Controller class owning its APIRouter: storage is passed in by the composition
      root, the App only sees `.router`
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from userhub.api.exception_filter import ExceptionFilterRoute
from userhub.api.middleware import parsed_body
from userhub.core.domain_types import UserId
from userhub.infrastructure.memory_storage import MemoryStorage
from userhub.schemas.user import UserCreate, UserResponse, UserUpdate


class UserController:
    """Routable handler group for the user resource."""

    def __init__(self, storage: MemoryStorage):
        self.storage = storage
        self.router = APIRouter(tags=["users"], route_class=ExceptionFilterRoute)
        self.router.add_api_route("", self.list_users, methods=["GET"])
        self.router.add_api_route(
            "", self.create_user, methods=["POST"],
            status_code=status.HTTP_201_CREATED,
        )
        self.router.add_api_route("/{user_id}", self.get_user, methods=["GET"])
        self.router.add_api_route("/{user_id}", self.update_user, methods=["PATCH"])
        self.router.add_api_route(
            "/{user_id}", self.delete_user, methods=["DELETE"],
            status_code=status.HTTP_204_NO_CONTENT,
        )

    async def list_users(
        self,
        limit: int = Query(10, ge=1, le=100),
        offset: int = Query(0, ge=0),
    ) -> dict:
        """List users with pagination."""
        users = await self.storage.list_users(limit=limit, offset=offset)
        total = await self.storage.count_users()
        return {
            "users": [
                UserResponse.model_validate(u).model_dump(mode="json") for u in users
            ],
            "pagination": {"limit": limit, "offset": offset, "total": total},
        }

    async def get_user(self, user_id: UUID) -> UserResponse:
        user = await self.storage.get_user(UserId(user_id))
        return UserResponse.model_validate(user)

    async def create_user(self, body: object = Depends(parsed_body)) -> UserResponse:
        payload = _validate(UserCreate, body)
        user = await self.storage.create_user(payload.name, payload.email)
        return UserResponse.model_validate(user)

    async def update_user(
        self, user_id: UUID, body: object = Depends(parsed_body),
    ) -> UserResponse:
        """Apply a partial update — only provided fields change."""
        payload = _validate(UserUpdate, body)
        user = await self.storage.update_user(
            UserId(user_id), **payload.model_dump(exclude_none=True),
        )
        return UserResponse.model_validate(user)

    async def delete_user(self, user_id: UUID) -> Response:
        await self.storage.delete_user(UserId(user_id))
        return Response(status_code=status.HTTP_204_NO_CONTENT)


def _validate(model: type[BaseModel], body: object) -> BaseModel:
    try:
        return model.model_validate(body)
    except ValidationError as e:
        errors = [
            {**err, "loc": ("body", *err["loc"])}
            for err in e.errors(include_url=False)
        ]
        raise RequestValidationError(errors, body=body)

from fastapi import APIRouter, Request
from starlette import status
from schemas.user_schemas import CreateUserRequest, UserResource
from core.result import Ok
from utils.deps import container_dependency, db_dependency, user_dependency
from utils.responses import to_response


router = APIRouter(
    prefix="/api/v1/users",
    tags=["users"]
)


def _query_params(request: Request) -> dict[str, list[str]]:
    params: dict[str, list[str]] = {}
    for key, value in request.query_params.multi_items():
        params.setdefault(key, []).append(value)
    return params


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(body: CreateUserRequest, db: db_dependency, container: container_dependency):
    return to_response(container.user_service.create(db, body), status.HTTP_201_CREATED)


@router.get("/me", status_code=status.HTTP_200_OK)
def get_user_info(user: user_dependency):
    """
    Current user (protected endpoint).
    """
    return to_response(Ok(UserResource.model_validate(user)))


@router.get("/list", status_code=status.HTTP_200_OK)
def list_users(request: Request, user: user_dependency, db: db_dependency, container: container_dependency):
    """
    All users matching ``keyword`` and the simple filters, unpaginated.
    Requires a valid access token.
    """
    return to_response(container.user_service.get_all(db, _query_params(request)))


@router.get("", status_code=status.HTTP_200_OK)
def paginate_users(request: Request, user: user_dependency, db: db_dependency, container: container_dependency):
    """
    Same filters as ``/list``, paginated with ``page`` and ``perPage``.
    """
    return to_response(container.user_service.paginate(db, _query_params(request)))

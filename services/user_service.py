from typing import Mapping, Sequence
from sqlalchemy import or_
from sqlalchemy.orm import Query, Session
from core.result import Err, ErrorKind, Ok, Result
from models.users import User
from schemas.user_schemas import CreateUserRequest, UserPage, UserResource
from utils.hashing import get_password_hash, verify_password
from utils.logger import get_logger

logger = get_logger(__name__)

MAX_PER_PAGE = 100

# query parameter -> column usable as an exact-match filter
SIMPLE_FILTERS = {
    "id": User.id,
    "email": User.email,
    "firstName": User.first_name,
    "lastName": User.last_name,
    "middleName": User.middle_name,
    "phone": User.phone,
    "isActive": User.is_active,
}

SORTABLE = {"id", "email", "firstName", "lastName", "createdAt"}
_SORT_COLUMNS = {**SIMPLE_FILTERS, "createdAt": User.created_at}

_TRUE = {"1", "true", "yes"}
_FALSE = {"0", "false", "no"}

INVALID_CREDENTIALS = "Invalid email or password"


class UserService:

    def get_by_email(self, db: Session, email: str) -> User | None:
        return db.query(User).filter(User.email == email.strip().lower()).first()

    def get_active_user_by_id(self, db: Session, user_id) -> User | None:
        if user_id is None:
            return None
        return db.query(User).filter(User.id == user_id, User.is_active == True).one_or_none()  # noqa: E712

    def authenticate_user(self, db: Session, email: str, password: str) -> Result:
        user = self.get_by_email(db, email)

        if not user:
            logger.warning("Login failed - user not found", extra={"email": email})
            return Err(ErrorKind.INVALID_CREDENTIALS, INVALID_CREDENTIALS)

        if not verify_password(password, user.hashed_password):
            logger.warning("Login failed - invalid password", extra={"user_id": user.id, "email": email})
            return Err(ErrorKind.INVALID_CREDENTIALS, INVALID_CREDENTIALS)

        if not user.is_active:
            logger.warning("Login failed - inactive account", extra={"user_id": user.id, "email": email})
            return Err(ErrorKind.INVALID_CREDENTIALS, "Account is inactive")

        logger.debug("User authenticated successfully", extra={"user_id": user.id, "email": email})
        return Ok(user)

    def create(self, db: Session, request: CreateUserRequest) -> Result:
        if self.get_by_email(db, request.email):
            logger.warning("Registration attempt with existing email", extra={"email": request.email})
            return Err(ErrorKind.CONFLICT, "Email already registered")

        user = User(
            email=request.email,
            first_name=request.first_name,
            last_name=request.last_name,
            middle_name=request.middle_name,
            phone=request.phone,
            hashed_password=get_password_hash(request.password),
        )
        db.add(user)
        db.commit()
        db.refresh(user)

        logger.info("User created", extra={"user_id": user.id, "email": user.email})
        return Ok(UserResource.model_validate(user), "User created successfully")

    def _filtered_query(self, db: Session, params: Mapping[str, Sequence[str]]) -> Query:
        """
        Builds the list query. ``keyword`` is a case-insensitive substring match
        on email and names; every SIMPLE_FILTERS key is an exact match (several
        values for one key mean "any of"). Unknown keys are ignored.
        Raises ValueError on a value that cannot be coerced.
        """
        query = db.query(User)

        keyword = (params.get("keyword") or [""])[-1].strip()
        if keyword:
            pattern = f"%{keyword}%"
            query = query.filter(or_(
                User.email.ilike(pattern),
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
            ))

        for key, column in SIMPLE_FILTERS.items():
            values = [v for v in params.get(key, []) if v != ""]
            if not values:
                continue
            query = query.filter(column.in_([_coerce(key, v) for v in values]))

        sort = (params.get("sort") or ["id,asc"])[-1]
        field, _, direction = sort.partition(",")
        if field not in SORTABLE or direction.lower() not in ("", "asc", "desc"):
            raise ValueError(f"Unsupported sort: {sort}")
        column = _SORT_COLUMNS[field]
        return query.order_by(column.desc() if direction.lower() == "desc" else column.asc())

    def get_all(self, db: Session, params: Mapping[str, Sequence[str]]) -> Result:
        try:
            query = self._filtered_query(db, params)
        except ValueError as exc:
            return Err(ErrorKind.VALIDATION, str(exc))
        return Ok([UserResource.model_validate(u) for u in query.all()])

    def paginate(self, db: Session, params: Mapping[str, Sequence[str]]) -> Result:
        try:
            page = max(int((params.get("page") or ["1"])[-1]), 1)
            per_page = min(max(int((params.get("perPage") or ["20"])[-1]), 1), MAX_PER_PAGE)
            query = self._filtered_query(db, params)
        except ValueError as exc:
            return Err(ErrorKind.VALIDATION, str(exc))

        total = query.count()
        rows = query.offset((page - 1) * per_page).limit(per_page).all()
        return Ok(UserPage(
            items=[UserResource.model_validate(u) for u in rows],
            total=total,
            page=page,
            per_page=per_page,
        ))


def _coerce(key: str, value: str):
    if key == "id":
        try:
            return int(value)
        except ValueError:
            raise ValueError(f"id must be an integer, got {value!r}")
    if key == "isActive":
        lowered = value.lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ValueError(f"isActive must be a boolean, got {value!r}")
    return value

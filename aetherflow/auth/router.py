from fastapi import APIRouter

from aetherflow.auth import service
from aetherflow.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, UserResponse
from aetherflow.core.dependencies import CurrentUser, DbSession

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(body: RegisterRequest, db: DbSession) -> TokenResponse:
    user = await service.register_user(db, body.username, body.email, body.password)
    return TokenResponse(access_token=service.issue_token(user), user=UserResponse.model_validate(user))


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: DbSession) -> TokenResponse:
    user = await service.authenticate_user(db, body.email, body.password)
    return TokenResponse(access_token=service.issue_token(user), user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
async def me(user: CurrentUser) -> UserResponse:
    return UserResponse.model_validate(user)

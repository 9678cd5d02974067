from fastapi import APIRouter, Depends, Request, status
from slowapi.util import get_remote_address

from app.core.security import get_current_user
from app.models.household import User
from app.schemas.auth import RegisterRequest, LoginRequest, UserResponse, AuthResponse
from app.schemas.response import SuccessResponse
from app.services import auth_service

router = APIRouter()


def _auth(user, token: str) -> dict:
    return AuthResponse(access_token=token, user=UserResponse.model_validate(user)).model_dump(mode="json")


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def register_endpoint(payload: RegisterRequest):
    """Creates an account with a personal household and kitchen, and signs it in."""
    user, token = await auth_service.register(payload.email, payload.password, payload.name)
    return SuccessResponse(data=_auth(user, token))


@router.post("/login", response_model=SuccessResponse)
async def login_endpoint(payload: LoginRequest, request: Request):
    user, token = await auth_service.login(payload.email, payload.password, get_remote_address(request))
    return SuccessResponse(data=_auth(user, token))


@router.get("/me", response_model=SuccessResponse)
async def me_endpoint(current_user: User = Depends(get_current_user)):
    return SuccessResponse(data=UserResponse.model_validate(current_user).model_dump(mode="json"))

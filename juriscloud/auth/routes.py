from fastapi import APIRouter, Depends, HTTPException, status
from juriscloud.auth.schemas import UserCreate, UserLogin, AuthUser, AuthResponse
from juriscloud.auth.dependencies import get_auth_gateway, get_current_user, get_token
from juriscloud.gateway.auth import AuthGateway
from juriscloud.gateway.errors import AuthError, GatewayError, to_http_exception
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/sign-up", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(user_data: UserCreate, auth: AuthGateway = Depends(get_auth_gateway)):
    """Register an account. Until the email is confirmed no session is returned."""
    try:
        return await auth.sign_up(
            user_data.email,
            user_data.password,
            user_data.model_dump(exclude={"email", "password"})
        )
    except AuthError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except GatewayError as e:
        raise to_http_exception(e)


@router.get("/confirm", response_model=AuthUser)
async def confirm_email(token: str, auth: AuthGateway = Depends(get_auth_gateway)):
    try:
        return await auth.verify_email(token)
    except AuthError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except GatewayError as e:
        raise to_http_exception(e)


@router.post("/sign-in", response_model=AuthResponse)
async def sign_in(credentials: UserLogin, auth: AuthGateway = Depends(get_auth_gateway)):
    try:
        return await auth.sign_in_with_password(credentials.email, credentials.password)
    except GatewayError as e:
        raise to_http_exception(e)


@router.post("/sign-out", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(token: str = Depends(get_token), auth: AuthGateway = Depends(get_auth_gateway)):
    try:
        await auth.sign_out(token)
    except GatewayError as e:
        raise to_http_exception(e)


@router.get("/me", response_model=AuthUser)
async def me(current_user: AuthUser = Depends(get_current_user)):
    return current_user

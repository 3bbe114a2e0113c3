from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from juriscloud.auth.schemas import AuthUser
from juriscloud.gateway.auth import AuthGateway
from juriscloud.gateway.errors import AuthError
from juriscloud.gateway.query import Gateway, get_gateway

bearer_scheme = HTTPBearer()

def get_auth_gateway(gateway: Gateway = Depends(get_gateway)) -> AuthGateway:
    return AuthGateway(gateway)

def get_token(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)) -> str:
    return credentials.credentials

async def get_current_user(
    token: str = Depends(get_token),
    auth: AuthGateway = Depends(get_auth_gateway)
) -> AuthUser:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        return await auth.get_user(token)
    except AuthError:
        raise credentials_exception

def get_user_gateway(
    current_user: AuthUser = Depends(get_current_user),
    gateway: Gateway = Depends(get_gateway)
) -> Gateway:
    """Gateway scoped to the signed in user's rows."""
    return gateway.for_user(current_user.id)

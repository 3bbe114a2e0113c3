from dataclasses import asdict

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder

from juriscloud.auth.dependencies import get_current_user, get_user_gateway
from juriscloud.auth.schemas import AuthUser
from juriscloud.dashboard.service import DashboardService
from juriscloud.gateway.errors import GatewayError, to_http_exception
from juriscloud.gateway.query import Gateway

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/stats")
async def dashboard_stats(
    current_user: AuthUser = Depends(get_current_user),
    gateway: Gateway = Depends(get_user_gateway)
):
    try:
        stats = await DashboardService(gateway, current_user.id).stats()
    except GatewayError as e:
        raise to_http_exception(e)
    return jsonable_encoder(asdict(stats))

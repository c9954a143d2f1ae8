from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from petmarket.health.service import health_info, health_supabase_info
from petmarket.utils.dependencies import get_service_client
from petmarket.utils.rate_limit import rate_limit_health_info

router = APIRouter(prefix="/api/health", tags=["Health"])

@router.get("")
def health_root(request: Request):
    info = health_info()
    info["rateLimit"] = rate_limit_health_info(request)
    return info

@router.get("/supabase")
def health_supabase(client=Depends(get_service_client)):
    info = health_supabase_info(client)
    return JSONResponse(info)

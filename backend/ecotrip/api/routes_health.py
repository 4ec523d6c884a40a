from fastapi import APIRouter
from starlette.requests import Request

router = APIRouter()


@router.get("/health")
def healthcheck(request: Request) -> dict:
    key_pool = getattr(request.app.state, "key_pool", None)
    return {"status": "ok", "api_keys": len(key_pool) if key_pool is not None else 0}

from fastapi import APIRouter

from flowdash_auth.api.auth import router as auth_router


router = APIRouter()

router.include_router(auth_router)


@router.get("/ping")
def ping():
    return {"msg": "pong"}

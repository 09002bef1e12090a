from fastapi import APIRouter

from findash.api import auth, dashboard, export, transactions, users

router = APIRouter()


@router.get("/healthz", response_model=dict)
async def healthz() -> dict:
    return {"status": "ok"}


router.include_router(auth.router)
router.include_router(users.router)
router.include_router(transactions.router)
router.include_router(dashboard.router)
router.include_router(export.router)

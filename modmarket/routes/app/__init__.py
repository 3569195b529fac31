from fastapi import APIRouter

from . import health

router = APIRouter(prefix="/app")
router.include_router(health.router, tags=["App: Health"])

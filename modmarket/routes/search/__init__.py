from fastapi import APIRouter

from . import analyze, dynamic

router = APIRouter(prefix="/search")
router.include_router(dynamic.router, tags=["Search: Dynamic"])
router.include_router(analyze.router, tags=["Search: Analyze"])

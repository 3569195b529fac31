from fastapi import APIRouter

from . import app, search

router = APIRouter(prefix="/api")
router.include_router(app.router)
router.include_router(search.router)

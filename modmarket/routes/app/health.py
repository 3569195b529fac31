"""
Health check endpoint, used by container orchestration and uptime monitors.
"""
from fastapi import APIRouter, Response, status
from pydantic import BaseModel

router = APIRouter(prefix="/health")


class HealthCheck(BaseModel):
    status: str = "OK"


@router.get(
    "",
    summary="Perform a Health Check",
    response_description="Returns HTTP Status Code 200 (OK) if the application is healthy.",
    status_code=status.HTTP_200_OK,
    response_model=HealthCheck,
)
def get_health(resp: Response) -> HealthCheck:
    resp.headers["Cache-Control"] = "no-cache"
    return HealthCheck(status="OK")

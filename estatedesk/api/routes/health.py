from fastapi import APIRouter

from estatedesk.core.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "service": settings.PROJECT_NAME}

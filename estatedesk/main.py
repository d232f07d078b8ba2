from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from estatedesk.api.routes.auth import router as auth_router
from estatedesk.api.routes.compliance import router as compliance_router
from estatedesk.api.routes.health import router as health_router
from estatedesk.api.routes.invoices import router as invoices_router
from estatedesk.api.routes.pdcs import router as pdcs_router
from estatedesk.api.routes.pm_schedules import router as pm_schedules_router
from estatedesk.api.routes.properties import router as properties_router
from estatedesk.api.routes.sweeps import router as sweeps_router
from estatedesk.core.config import settings
from estatedesk.core.errors import register_exception_handlers
from estatedesk.core.logging import RequestLoggingMiddleware, configure_logging

configure_logging(settings.LOG_LEVEL)

app = FastAPI(title=settings.PROJECT_NAME)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.CORS_ALLOW_ORIGINS.split(",") if origin.strip()],
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-Id", "Retry-After"],
)
register_exception_handlers(app)

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(properties_router)
app.include_router(invoices_router)
app.include_router(pdcs_router)
app.include_router(compliance_router)
app.include_router(pm_schedules_router)
app.include_router(sweeps_router)

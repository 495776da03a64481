import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware
from carelearn.config import get_settings
from carelearn.database import engine, Base, async_session
from carelearn.exceptions import RedirectRequired
from carelearn.logging_config import configure_logging
from carelearn.routers import assessments, content, dashboard, enrollments, modules, pages, patient, patients, programs
from carelearn.routers import auth as auth_router
from carelearn.seed import seed_demo_data
import carelearn.models  # noqa: F401  registers every table on Base.metadata

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create tables, then optionally seed demo data
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    if settings.seed_demo_data:
        async with async_session() as session:
            await seed_demo_data(session)
    logger.info("CareLearn backend started")
    yield
    # Shutdown
    await engine.dispose()


app = FastAPI(
    title="CareLearn",
    description="Patient learning platform: treatment programs, assessments and mood tracking",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class NoCacheMiddleware(BaseHTTPMiddleware):
    """Per-user pages and envelopes must never be served from a browser cache."""
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, proxy-revalidate, max-age=0"
        response.headers["Expires"] = "0"
        response.headers["Pragma"] = "no-cache"
        return response


app.add_middleware(NoCacheMiddleware)


@app.exception_handler(RedirectRequired)
async def redirect_handler(request: Request, exc: RedirectRequired):
    return RedirectResponse(exc.location, status_code=303)


app.include_router(auth_router.router, prefix="/api/auth", tags=["Auth"])
app.include_router(patients.router, prefix="/api/admin/patients", tags=["Patients"])
app.include_router(programs.router, prefix="/api/admin/programs", tags=["Programs"])
app.include_router(modules.router, prefix="/api/admin/modules", tags=["Modules"])
app.include_router(content.router, prefix="/api/admin/content", tags=["Content"])
app.include_router(assessments.router, prefix="/api/admin/assessments", tags=["Assessments"])
app.include_router(enrollments.router, prefix="/api/admin/enrollments", tags=["Enrollments"])
app.include_router(dashboard.router, prefix="/api/admin/dashboard", tags=["Dashboard"])
app.include_router(patient.router, prefix="/api/patient", tags=["Patient"])
app.include_router(pages.router, tags=["Pages"])


@app.get("/api/health")
async def health_check():
    return {"status": "healthy", "service": "carelearn"}

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from codejudge.business.services import (
    AdvisoryClient,
    GradingService,
    SandboxExecutor,
    TestCaseRunner,
)
from codejudge.config import Config, logger
from codejudge.data.repositories import (
    InMemorySubmissionRepository,
    ProblemCatalog,
    SqlSubmissionRepository,
    create_db_engine,
    init_db,
)
from codejudge.errors import register_exception_handlers
from codejudge.presentation.routes import (
    analysis_router,
    assessment_router,
    execution_router,
    health_router,
    problem_router,
    submission_router,
)


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        client = request.client.host if request.client else "unknown"
        logger.info(
            f"Request started: {request.method} {request.url.path} - "
            f"ID: {request_id} - Client: {client}"
        )
        start_time = time.time()
        try:
            response = await call_next(request)
            process_time = time.time() - start_time
            logger.info(
                f"Request completed: {request.method} {request.url.path} - "
                f"ID: {request_id} - Status: {response.status_code} - "
                f"Time: {process_time:.4f}s"
            )
            return response
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                f"Request failed: {request.method} {request.url.path} - "
                f"ID: {request_id} - Error: {e} - "
                f"Time: {process_time:.4f}s"
            )
            raise


def build_repository():
    if Config.USE_SQL_STORE:
        engine = create_db_engine()
        init_db(engine)
        logger.info("Database initialized successfully")
        return SqlSubmissionRepository(engine)
    logger.info("Using in-memory submission store")
    return InMemorySubmissionRepository()


@asynccontextmanager
async def life_span(app: FastAPI):
    logger.info("Server is starting...")
    try:
        repository = build_repository()
    except Exception as e:
        logger.error(f"Failed to initialize submission store: {e}")
        raise

    executor = SandboxExecutor()
    catalog = ProblemCatalog()
    advisory = AdvisoryClient()
    if not advisory.configured:
        logger.warning("OPENAI_API_KEY is not set; code analysis is disabled")

    app.state.executor = executor
    app.state.catalog = catalog
    app.state.repository = repository
    app.state.grading_service = GradingService(
        TestCaseRunner(executor), repository, catalog, advisory
    )
    yield
    logger.info("Server has been stopped")


version = "v1"

app = FastAPI(
    title="Codejudge API",
    description="Untrusted code execution and grading engine for coding problems and tests",
    version=version,
    lifespan=life_span,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(LoggingMiddleware)

register_exception_handlers(app)

app.include_router(execution_router,  prefix=f"/api/{version}", tags=["execution"])
app.include_router(problem_router,    prefix=f"/api/{version}", tags=["problem"])
app.include_router(analysis_router,   prefix=f"/api/{version}", tags=["analysis"])
app.include_router(assessment_router, prefix=f"/api/{version}", tags=["test"])
app.include_router(submission_router, prefix=f"/api/{version}", tags=["submission"])
app.include_router(health_router,     prefix=f"/api/{version}", tags=["health"])

logger.info(f"Application startup complete - API version: {version}")

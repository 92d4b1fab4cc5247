"""
Progress System - Application wiring
Routers, error translation and startup for the completion engine
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from starlette.responses import JSONResponse
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_500_INTERNAL_SERVER_ERROR

from app.courses.completion_router import router as completion_router
from app.courses.progress_router import router as progress_router
from app.courses.leaderboard_router import router as leaderboard_router
from app.courses.database import create_progress_indexes
from app.courses.exceptions import ProgressError
from app.utils.logger import get_logger

logger = get_logger(__name__)

# ==================== ERROR HANDLERS ====================

async def progress_error_handler(request: Request, exc: ProgressError) -> JSONResponse:
    if exc.status_code >= 500:
        # Details go to the logs only
        logger.error("progress error status=%s path=%s %s", exc.status_code, request.url.path, exc.to_dict())
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    logger.warning("progress error status=%s path=%s %s", exc.status_code, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    logger.warning("http error status=%s path=%s detail=%s", exc.status_code, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=exc.headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
    )
    logger.warning("validation error path=%s errors=%s", request.url.path, problems)
    return JSONResponse(status_code=HTTP_400_BAD_REQUEST, content={"message": f"Invalid request: {problems}"})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error method=%s path=%s", request.method, request.url.path)
    return JSONResponse(status_code=HTTP_500_INTERNAL_SERVER_ERROR, content={"error": "Internal server error"})


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(ProgressError, progress_error_handler)
    app.add_exception_handler(HTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

# ==================== ROUTER SETUP ====================

def setup_course_routes(app: FastAPI):
    """Register progress routers and error handlers"""
    app.include_router(completion_router, prefix="/courses")
    app.include_router(progress_router, prefix="/courses")
    app.include_router(leaderboard_router)
    register_error_handlers(app)

    logger.info("progress routes registered")

# ==================== STARTUP ====================

async def startup_course_system(db):
    """Initialize progress system on app startup"""
    await create_progress_indexes(db)
    logger.info("progress system initialized")

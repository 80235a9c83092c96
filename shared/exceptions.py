"""
Domain error taxonomy shared by every service.

Services raise these instead of HTTPException so the same rules apply whether
an operation is called from a router, the checkout flow or a test. The app
level handler in ``register_exception_handlers`` maps each one to its status.
"""
import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = structlog.get_logger(__name__)


class FoodFusionError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(FoodFusionError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class NotFound(FoodFusionError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Unauthorized(FoodFusionError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authorized"


class Conflict(FoodFusionError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Illegal state transition"


class Internal(FoodFusionError):
    default_message = "Internal server error"


async def food_fusion_error_handler(request: Request, exc: FoodFusionError):
    if isinstance(exc, Internal):
        logger.error("request_failed", path=request.url.path, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in err["loc"] if p != "body"), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Missing or invalid fields", "errors": errors},
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("database_error", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": Internal.default_message},
    )


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(FoodFusionError, food_fusion_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)

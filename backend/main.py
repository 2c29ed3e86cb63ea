import logging
import uuid
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from api import auth
from api import users
from api import documents
from api import translation
from core.config import settings
from core.database import engine, init_models
from core.errors import DocuLinguaError
from utils.logger import init_logging, get_logger, set_request_id, clear_request_id

API_PREFIX = "/api/v1"

# Initialize logging
def setup_logging(config=settings) -> None:
    init_logging(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        log_dir=config.LOG_DIR,
        filename=config.LOG_FILE,
    )


setup_logging()
logger = get_logger("main")

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Request ID middleware for request tracing
@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = str(uuid.uuid4())[:8]
    set_request_id(request_id)
    logger.info("Request started", extra={
        "method": request.method,
        "path": request.url.path,
    })
    try:
        response = await call_next(request)
        logger.info("Request completed", extra={"status_code": response.status_code})
        response.headers["X-Request-ID"] = request_id
        return response
    except Exception as e:
        logger.error("Request failed", extra={"error": str(e)})
        raise
    finally:
        clear_request_id()

# ------ Error handlers: every failure is a JSON {"message": ...} body -----
@app.exception_handler(DocuLinguaError)
async def doculingua_error_handler(request: Request, exc: DocuLinguaError):
    if exc.status_code >= 500:
        logger.error("Request error", extra={"status_code": exc.status_code, "error": exc.message})
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(status_code=exc.status_code, content={"message": message}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning("Request validation failed", extra={"path": request.url.path})
    return JSONResponse(
        status_code=400,
        content={"message": "Validation failed", "errors": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error", extra={"error": str(exc)}, exc_info=exc)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})

# Routes
app.include_router(auth.router, prefix=API_PREFIX)
app.include_router(users.router, prefix=API_PREFIX)
app.include_router(documents.router, prefix=API_PREFIX)
app.include_router(translation.router, prefix=API_PREFIX)


@app.get("/")
async def root():
    return {"name": settings.app_name, "version": settings.app_version, "status": "running"}


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.on_event("startup")
async def startup_event():
    await init_models()
    logger.info("Backend server started")


@app.on_event("shutdown")
async def shutdown_event():
    await engine.dispose()
    logger.info("Backend server shutting down")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000)

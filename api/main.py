"""Entry point for the REST façade over the file client."""

import time
import uuid

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.logging_config import setup_logging
from api.config import API_HOST, API_PORT, API_RELOAD
from api.dependencies import close_file_service
from api.routes.file_routes import router as file_router
from client.exceptions import (
    DFSException,
    ValidationError,
    FileNotFoundError,
    CorruptFileError,
    UnreachableError,
    MetadataServiceError,
    NoChunkserversError,
    UnrecoverableReadError,
    PartialWriteError,
    PartialDeleteError,
)

logger = setup_logging('api')

app = FastAPI(
    title="Chunked File Store Client",
    description="REST façade over the chunked distributed file store client",
    version="1.0.0"
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(f"Request started: {request.method} {request.url.path} [request_id={request_id}]")

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


@app.on_event("shutdown")
async def shutdown_event():
    """
    Close outbound HTTP sessions on application shutdown.
    """
    await close_file_service()
    logger.info("File client sessions closed")


def _error(request: Request, status_code: int, exc: Exception, code: str, **extra) -> JSONResponse:
    request_id = getattr(request.state, 'request_id', 'unknown')
    log = logger.error if status_code >= 500 else logger.warning
    log(f"{type(exc).__name__}: {exc} [request_id={request_id}] path={request.url.path}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "code": code, **extra}
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return _error(request, status.HTTP_400_BAD_REQUEST, exc, "VALIDATION_ERROR")


@app.exception_handler(FileNotFoundError)
async def file_not_found_handler(request: Request, exc: FileNotFoundError):
    return _error(request, status.HTTP_404_NOT_FOUND, exc, "FILE_NOT_FOUND")


@app.exception_handler(CorruptFileError)
async def corrupt_file_handler(request: Request, exc: CorruptFileError):
    return _error(
        request, status.HTTP_409_CONFLICT, exc, "FILE_CORRUPT",
        expected_chunks=exc.expected_chunks,
        found_chunks=exc.found_chunks
    )


@app.exception_handler(UnrecoverableReadError)
async def unrecoverable_read_handler(request: Request, exc: UnrecoverableReadError):
    return _error(
        request, status.HTTP_502_BAD_GATEWAY, exc, "FILE_UNREADABLE",
        chunk_number=exc.chunk_number
    )


@app.exception_handler(PartialWriteError)
async def partial_write_handler(request: Request, exc: PartialWriteError):
    return _error(
        request, status.HTTP_502_BAD_GATEWAY, exc, "PARTIAL_WRITE_FAILURE",
        missing_chunks=exc.missing_chunks
    )


@app.exception_handler(PartialDeleteError)
async def partial_delete_handler(request: Request, exc: PartialDeleteError):
    return _error(
        request, status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "PARTIAL_DELETE_FAILURE",
        failed_replicas=exc.failed_replicas,
        replicas_deleted=exc.deleted_replicas
    )


@app.exception_handler(NoChunkserversError)
async def no_chunkservers_handler(request: Request, exc: NoChunkserversError):
    return _error(request, status.HTTP_503_SERVICE_UNAVAILABLE, exc, "NO_CHUNKSERVERS")


@app.exception_handler(MetadataServiceError)
async def metadata_service_handler(request: Request, exc: MetadataServiceError):
    return _error(request, status.HTTP_503_SERVICE_UNAVAILABLE, exc, "METADATA_SERVICE_UNAVAILABLE")


@app.exception_handler(UnreachableError)
async def unreachable_handler(request: Request, exc: UnreachableError):
    return _error(request, status.HTTP_503_SERVICE_UNAVAILABLE, exc, "CHUNKSERVER_UNAVAILABLE")


@app.exception_handler(DFSException)
async def dfs_exception_handler(request: Request, exc: DFSException):
    return _error(request, status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "INTERNAL_ERROR")


app.include_router(file_router)


@app.get("/")
async def root():
    """
    Root endpoint for health check.
    """
    return {"message": "Chunked File Store Client API", "status": "running"}


@app.get("/health")
async def health_check():
    """
    Health check endpoint.
    Returns 200 if service is alive.
    """
    return {"status": "healthy", "service": "api"}


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "api.main:app",
        host=API_HOST,
        port=API_PORT,
        reload=API_RELOAD
    )


if __name__ == "__main__":
    main()

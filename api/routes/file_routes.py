"""File operation API routes."""

from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status

from api.dependencies import get_file_service
from api.schemas import (
    CorruptFileErrorResponse,
    CreateFileResponse,
    DeleteFileResponse,
    ErrorResponse,
    FileSizeResponse,
    PartialDeleteErrorResponse,
    PartialWriteErrorResponse,
    UnreadableFileErrorResponse,
)
from client.services.file_service import FileService

router = APIRouter(prefix="/api/File", tags=["Files"])

UNAVAILABLE = {status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ErrorResponse}}
NOT_FOUND = {status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}}


def _content_disposition(file_name: str) -> str:
    """
    Build an attachment header value that survives names outside Latin-1.

    Plain names are sent as-is; anything else gets an ASCII fallback plus the
    RFC 5987 `filename*` parameter.
    """
    quoted = quote(file_name)
    if quoted == file_name:
        return f'attachment; filename="{file_name}"'

    fallback = file_name.encode('ascii', 'ignore').decode('ascii').replace('"', '').replace('\\', '')
    return f'attachment; filename="{fallback or "download"}"; filename*=UTF-8\'\'{quoted}'


@router.post(
    "/CreateFile",
    response_model=CreateFileResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_502_BAD_GATEWAY: {"model": PartialWriteErrorResponse},
        **UNAVAILABLE,
    }
)
async def create_file(
    file: UploadFile = File(...),
    file_service: FileService = Depends(get_file_service)
):
    """
    Upload a file and store it as replicated chunks.

    Parameters:
        - file: File to upload (multipart/form-data)

    Returns:
        - file_id, name, size, number_of_chunks, replicas_stored, replicas_failed

    Raises:
        - 400: Empty file or missing name
        - 502: Some chunk could not be stored on any storage node
        - 503: Metadata service unreachable or no storage nodes registered
    """
    content = await file.read()

    report = await file_service.create_file(content, file.filename or "")

    return CreateFileResponse(
        file_id=report.file_id,
        name=report.name,
        size=report.size,
        number_of_chunks=report.number_of_chunks,
        replicas_stored=report.replicas_stored,
        replicas_failed=report.replicas_failed,
    )


@router.get(
    "/ReadFile/{file_name}",
    response_class=Response,
    responses={
        **NOT_FOUND,
        status.HTTP_409_CONFLICT: {"model": CorruptFileErrorResponse},
        status.HTTP_502_BAD_GATEWAY: {"model": UnreadableFileErrorResponse},
        **UNAVAILABLE,
    }
)
async def read_file(
    file_name: str,
    file_service: FileService = Depends(get_file_service)
):
    """
    Reassemble a file and return its bytes.

    Raises:
        - 404: File not found
        - 409: Chunk records do not match the recorded chunk count
        - 502: Every replica of some chunk failed
        - 503: Metadata service unreachable
    """
    content = await file_service.read_file(file_name)

    return Response(
        content=content,
        media_type="application/octet-stream",
        headers={"Content-Disposition": _content_disposition(file_name)}
    )


@router.delete(
    "/DeleteFile",
    response_model=DeleteFileResponse,
    responses={
        **NOT_FOUND,
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": PartialDeleteErrorResponse},
        **UNAVAILABLE,
    }
)
async def delete_file(
    file_name: str = Query(..., alias="fileName"),
    file_service: FileService = Depends(get_file_service)
):
    """
    Delete a file and every known replica.

    Raises:
        - 404: File not found
        - 500: File metadata deleted but some replicas could not be removed
        - 503: Metadata service unreachable
    """
    report = await file_service.delete_file(file_name)

    return DeleteFileResponse(name=report.name, replicas_deleted=report.replicas_deleted)


@router.get("/GetSize/{file_name}", response_model=FileSizeResponse, responses={**NOT_FOUND, **UNAVAILABLE})
async def get_size(
    file_name: str,
    file_service: FileService = Depends(get_file_service)
):
    """
    Report a file's size in bytes.

    Raises:
        - 404: File not found
        - 503: Metadata service unreachable
    """
    size = await file_service.get_size(file_name)

    return FileSizeResponse(name=file_name, size=size)

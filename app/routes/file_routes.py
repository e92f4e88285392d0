import mimetypes
import re
from urllib.parse import quote
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import FileResponse, HTMLResponse
from starlette.datastructures import UploadFile
from starlette.formparsers import MultiPartException
import config
from logger_config import setup_logger
from app import pages
from app.dependencies import get_settings, get_storage_manager, get_upload_log
from app.services.id_generator import IdentifierGenerationError
from app.services.storage_manager import StorageManager, StorageError, StoredFileNotFound, UploadTooLarge
from app.services.upload_log import UploadLog

logger = setup_logger()

router = APIRouter()

NOT_FOUND = "404 page not found"


def check_content_length(request: Request, max_size: int):
    """Reject bodies whose declared length is already over the limit."""
    content_length = request.headers.get("content-length")
    if content_length is None:
        return
    try:
        content_length_value = int(content_length)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid Content-Length header")
    if content_length_value > max_size:
        raise HTTPException(
            status_code=413,
            detail=f"Upload exceeds maximum allowed size ({max_size} bytes)"
        )


def limit_body(request: Request, max_size: int) -> Request:
    """Wrap a request so reading more than max_size body bytes raises UploadTooLarge.

    Covers chunked bodies, which carry no Content-Length to check up front.
    """
    received = 0

    async def receive():
        nonlocal received
        message = await request.receive()
        if message["type"] == "http.request":
            received += len(message.get("body", b""))
            if received > max_size:
                raise UploadTooLarge(f"Upload exceeds maximum allowed size ({max_size} bytes)")
        return message

    return Request(request.scope, receive)


def inline_disposition(filename: str) -> str:
    cleaned = re.sub(r'[\r\n\t"\\]', '', filename)
    try:
        cleaned.encode('ascii')
        return f'inline; filename="{cleaned}"'
    except UnicodeEncodeError:
        return "inline; filename*=UTF-8''" + quote(cleaned)


@router.get("/", response_class=HTMLResponse)
async def index(settings: config.Settings = Depends(get_settings)):
    return pages.render_index(settings)


@router.post("/upload", response_class=HTMLResponse)
async def upload_file(
    request: Request,
    settings: config.Settings = Depends(get_settings),
    storage_manager: StorageManager = Depends(get_storage_manager),
    upload_log: UploadLog = Depends(get_upload_log),
):
    """Store the multipart field "file" and link to it."""
    check_content_length(request, settings.max_upload_size)

    try:
        form = await limit_body(request, settings.max_upload_size).form()
    except UploadTooLarge as e:
        logger.warning(f"Rejected upload body: {str(e)}")
        raise HTTPException(status_code=413, detail=str(e))
    except MultiPartException as e:
        logger.warning(f"Unable to parse upload form: {str(e)}")
        raise HTTPException(status_code=400, detail="Bad Request")

    try:
        upload = form.get("file")
        if not isinstance(upload, UploadFile) or not upload.filename:
            logger.warning("Upload request without a file field")
            raise HTTPException(status_code=400, detail="Bad Request")

        logger.info(f"Receiving upload: {upload.filename}")
        try:
            file_id = await storage_manager.save(upload, settings.max_upload_size)
        except UploadTooLarge as e:
            logger.warning(f"Rejected upload {upload.filename!r}: {str(e)}")
            raise HTTPException(status_code=413, detail=str(e))
        except (IdentifierGenerationError, StorageError) as e:
            logger.error(f"Error uploading {upload.filename!r}: {str(e)}", exc_info=True)
            raise HTTPException(status_code=500, detail="Internal Server Error")

        await upload_log.record(upload.filename)
        logger.info(f"Stored {upload.filename!r} as {file_id}")
    finally:
        await form.close()

    return pages.render_upload_success(settings, file_id)


@router.get("/list", response_class=HTMLResponse)
async def list_files(
    settings: config.Settings = Depends(get_settings),
    storage_manager: StorageManager = Depends(get_storage_manager),
):
    try:
        files = await storage_manager.list_files()
    except StorageError as e:
        logger.error(f"Unable to list files: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal Server Error")
    return pages.render_file_list(settings, files)


@router.get("/file/{file_id:path}")
async def get_file(
    file_id: str,
    storage_manager: StorageManager = Depends(get_storage_manager),
):
    """Serve a stored file inline, with length, validators and range support."""
    try:
        file_path = storage_manager.resolve(file_id)
    except StoredFileNotFound:
        logger.info(f"File not found: {file_id}")
        raise HTTPException(status_code=404, detail=NOT_FOUND)

    content_type, _ = mimetypes.guess_type(file_path.name)
    headers = {"content-disposition": inline_disposition(file_path.name)}

    return FileResponse(
        file_path,
        media_type=content_type or "application/octet-stream",
        headers=headers
    )

"""
/items endpoints.

GET downloads every stored item as JSON; POST uploads one or more JSON files
(multipart field `files`). `/download` and `/upload` are kept as single-method
aliases for the admin page.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from config import Settings, get_logger
from database.connection import ItemStore, StoreError
from pipeline.download import fetch_items
from pipeline.errors import InvalidItemError, UploadDecodeError
from pipeline.upload import UploadPipeline


router = APIRouter()

logger = get_logger("api.items")

_OTHER_METHODS = ["PUT", "PATCH", "DELETE", "OPTIONS", "TRACE", "CONNECT"]


def _settings(request: Request) -> Settings:
    """Get Settings from app state."""

    s = getattr(request.app.state, "settings", None)
    if s is None:
        raise RuntimeError("App settings not initialized.")
    return s


def _store(request: Request) -> ItemStore:
    """Get the ItemStore from app state."""

    store = getattr(request.app.state, "store", None)
    if store is None:
        raise RuntimeError("Item store not initialized.")
    return store


def _method_not_allowed(request: Request, allow: list[str]) -> PlainTextResponse:
    return PlainTextResponse(
        f"Method {request.method} Not Allowed",
        status_code=405,
        headers={"Allow": ", ".join(allow)},
    )


@router.get("/items")
@router.get("/download")
async def download_items(request: Request) -> JSONResponse:
    """Return every stored item with `effects` as an object (or null)."""

    try:
        items = await fetch_items(_store(request))
    except (StoreError, ValueError):
        logger.exception("Failed to fetch items")
        return JSONResponse(status_code=500, content={"error": "Failed to fetch items from the database."})
    return JSONResponse(status_code=200, content=items)


@router.post("/items")
@router.post("/upload")
async def upload_items(request: Request) -> JSONResponse:
    """
    Load items from uploaded JSON files.

    Each file holds one item object or an array of them. Processing stops at
    the first invalid record; records before it remain stored.
    """

    settings = _settings(request)

    try:
        form = await request.form(max_files=settings.max_upload_files)
    except (MultiPartException, StarletteHTTPException) as e:
        logger.warning("Error parsing the files: %s", getattr(e, "detail", None) or getattr(e, "message", e))
        return JSONResponse(status_code=500, content={"error": "Error parsing the files"})

    try:
        files = form.getlist("files")
        if not files or not all(isinstance(f, UploadFile) for f in files):
            logger.warning("Upload request without files under the 'files' field")
            return JSONResponse(status_code=500, content={"error": "Error parsing the files"})

        pipeline = UploadPipeline(_store(request), conflict_policy=settings.conflict_policy)
        try:
            report = await pipeline.run(files)
        except UploadDecodeError as e:
            logger.error("%s", e)
            return JSONResponse(status_code=500, content={"error": "Error processing or uploading items."})
        except InvalidItemError as e:
            return JSONResponse(
                status_code=500,
                content={"message": str(e), "index": e.index, "id": e.item_id, "errors": e.errors},
            )
    finally:
        await form.close()

    return JSONResponse(
        status_code=200,
        content={"message": "Items uploaded and processed successfully.", "report": report.to_dict()},
    )


@router.api_route("/items", methods=_OTHER_METHODS, include_in_schema=False)
async def items_other_methods(request: Request) -> PlainTextResponse:
    return _method_not_allowed(request, ["GET", "POST"])


@router.api_route("/download", methods=["POST", *_OTHER_METHODS], include_in_schema=False)
async def download_other_methods(request: Request) -> PlainTextResponse:
    return _method_not_allowed(request, ["GET"])


@router.api_route("/upload", methods=["GET", *_OTHER_METHODS], include_in_schema=False)
async def upload_other_methods(request: Request) -> PlainTextResponse:
    return _method_not_allowed(request, ["POST"])

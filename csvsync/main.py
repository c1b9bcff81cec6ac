import base64
import hashlib
import logging

from fastapi import FastAPI, UploadFile, File, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from .analysis import analyze
from .codec import decode_upload, parse
from .errors import CsvSyncError, MissingColumnError, ParseError, StorageError
from .export import export_table
from .filters import apply_filters
from .models import (
    ErrorDetail,
    ExportedCsv,
    ExportRecord,
    ExportRequest,
    ExportResponse,
    FilterRequest,
    FilterResult,
    HealthResponse,
    RecentFile,
    SplitRequest,
    SplitResponse,
    UploadResponse,
)
from .rules import LOG_LEVEL, MAX_UPLOAD_BYTES, REQUIRED_COLUMNS, STORAGE_PATH, TARGET_ENCODING
from .split import split_table
from .storage import ExportHistory, InMemoryStorage, JsonFileStorage, RecentFiles
from .validation import missing_required_columns, validate_advanced

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

storage = JsonFileStorage(STORAGE_PATH) if STORAGE_PATH else InMemoryStorage()
recent_files = RecentFiles(storage)
export_history = ExportHistory(storage)

app = FastAPI(
    title="csv-sync",
    description="Contact CSV cleanup and export for OmniChat and Zenvia",
    version="0.1.0",
)


def _unprocessable(message: str, **kwargs) -> HTTPException:
    return HTTPException(status_code=422, detail=ErrorDetail(message=message, **kwargs).model_dump())


@app.exception_handler(StorageError)
async def storage_unavailable(request: Request, exc: StorageError):
    logger.error("Storage failure on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}


@app.post("/upload", response_model=UploadResponse)
async def upload_csv(file: UploadFile = File(...)):
    if not (file.filename or "").lower().endswith(".csv"):
        raise _unprocessable("Only CSV files are supported")

    raw = await file.read()
    if len(raw) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail=f"File size exceeds the {MAX_UPLOAD_BYTES} byte limit")

    decoded = await run_in_threadpool(decode_upload, raw)
    try:
        table = await run_in_threadpool(parse, decoded.text)
    except ParseError as e:
        logger.warning("Rejected upload %s: %s", file.filename, e)
        raise _unprocessable(str(e))

    missing = missing_required_columns(table)
    if missing:
        logger.warning("Rejected upload %s: missing columns %s", file.filename, missing)
        raise _unprocessable(
            "CSV must contain required columns: " + ", ".join(REQUIRED_COLUMNS),
            missing_columns=missing,
        )

    await run_in_threadpool(recent_files.add, file.filename, table, len(raw))
    return UploadResponse(
        filename=file.filename,
        table=table,
        stats=await run_in_threadpool(analyze, table),
        validation=await run_in_threadpool(validate_advanced, table),
        decoding=decoded.report,
    )


@app.post("/filter", response_model=FilterResult)
def filter_csv(request: FilterRequest):
    return apply_filters(request.table, request.spec)


@app.post("/export", response_model=ExportResponse)
def export_csv(request: ExportRequest):
    try:
        result = export_table(request.table, request.options)
    except MissingColumnError as e:
        raise _unprocessable(str(e), missing_columns=[e.role])
    except CsvSyncError as e:
        raise _unprocessable(str(e))

    content = result.content.encode(TARGET_ENCODING)
    record = export_history.save(
        name=result.filename,
        type=result.format,
        row_count=result.row_count,
        theme=request.options.theme,
        scheduled_for=request.options.scheduled_for,
    )
    return ExportResponse(
        filename=result.filename,
        format=result.format,
        row_count=result.row_count,
        byte_size=result.byte_size,
        sms_status=result.sms_status,
        exported_csv=ExportedCsv(
            sha256=hashlib.sha256(content).hexdigest(),
            encoding=TARGET_ENCODING,
            content_b64=base64.b64encode(content).decode("ascii"),
        ),
        record=record,
    )


@app.post("/split", response_model=SplitResponse)
def split_csv(request: SplitRequest):
    return SplitResponse(parts=split_table(request.table, request.max_rows_per_part))


@app.get("/history", response_model=list[ExportRecord])
def list_history():
    return export_history.list()


@app.delete("/history/{record_id}")
def delete_history(record_id: str):
    if not export_history.delete(record_id):
        raise HTTPException(status_code=404, detail="Export record not found")
    return {"ok": True}


@app.get("/recent", response_model=list[RecentFile])
def list_recent():
    return recent_files.list()

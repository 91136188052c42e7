import logging
from pathlib import Path

from fastapi import FastAPI, UploadFile, File, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from vconinsight.core import config
from vconinsight.core.errors import VconError, NoFileError
from vconinsight.core.logging_utils import configure_logging
from vconinsight.core.parser import check_upload, load_document, parse_file
from vconinsight.core.storage import (init_db, ingest_document, list_vcon_files, all_analytics,
                                      get_analytics_by_file_id, get_latest_analytics,
                                      call_qualities_by_file_id, latest_call_qualities)

logger = logging.getLogger(__name__)

app = FastAPI(title="vCon Insight API")

@app.exception_handler(VconError)
def _vcon_error(request: Request, exc: VconError):
    logger.warning("Rejected %s: %s", request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

def _not_found(message: str):
    return JSONResponse(status_code=404, content={"message": message})

@app.on_event("startup")
def _startup():
    configure_logging()
    init_db()
    # Ingest sample vCon files if the db is empty and AUTO_INGEST enabled
    if not config.AUTO_INGEST or list_vcon_files():
        return
    for f in sorted(Path(config.DATA_DIR).glob("*.json")):
        try:
            filename, data = parse_file(str(f))
            ingest_document(filename, data)
        except VconError as e:
            logger.warning("Skipping sample %s: %s", f.name, e.message)

@app.post("/api/upload")
async def upload(file: UploadFile | None = File(None)):
    if file is None or not file.filename:
        raise NoFileError()
    # Reject on the declared size first, then read at most one byte past the limit
    check_upload(file.filename, file.content_type, file.size or 0)
    content = await file.read(config.MAX_UPLOAD_BYTES + 1)
    check_upload(file.filename, file.content_type, len(content))
    data = load_document(content)

    try:
        vfile, _, _ = await run_in_threadpool(ingest_document, file.filename, data)
    except Exception:
        logger.exception("Upload of %s failed", file.filename)
        return JSONResponse(status_code=500, content={"message": "Failed to upload file"})

    return {"message": "File uploaded and processed successfully", "file_id": vfile.id}

@app.get("/api/files")
def files():
    return [f.summary() for f in list_vcon_files()]

@app.get("/api/analytics")
def analytics():
    return [a.to_dict() for a in all_analytics()]

# "latest" routes must be registered before the {file_id} ones
@app.get("/api/analytics/latest")
def analytics_latest():
    a = get_latest_analytics()
    if a is None:
        return _not_found("No analytics data found")
    return a.to_dict()

@app.get("/api/analytics/{file_id}")
def analytics_for_file(file_id: int):
    a = get_analytics_by_file_id(file_id)
    if a is None:
        return _not_found("Analytics not found for this file")
    return a.to_dict()

@app.get("/api/call-quality/latest")
def call_quality_latest():
    records = latest_call_qualities()
    if not records:
        return _not_found("No call quality data found")
    return [r.to_dict() for r in records]

@app.get("/api/call-quality/{file_id}")
def call_quality_for_file(file_id: int):
    return [r.to_dict() for r in call_qualities_by_file_id(file_id)]

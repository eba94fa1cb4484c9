# pngstrip/server.py
from fastapi import FastAPI, File, UploadFile, HTTPException
from fastapi.responses import FileResponse, Response
from pathlib import Path
import json
import logging
import uuid
import zipfile
from typing import List
from pngstrip.utils.signature import detect_extension, ext_equivalent
from pngstrip.settings import OUTPUT_DIR, ALLOWED_EXTENSIONS, MAX_FILE_SIZE, CLEANUP_INTERVAL_SECONDS, LOG_LEVEL
from pngstrip.utils.cleanup import cleanup_once, start_background_cleanup
from pngstrip.utils.chunks import list_chunks
from pngstrip.cleaners.png import StripError, strip

logger = logging.getLogger(__name__)

app = FastAPI(title="PNG Metadata Stripper")

@app.on_event("startup")
def bootstrap():
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    start_background_cleanup(interval_seconds=CLEANUP_INTERVAL_SECONDS)

@app.get("/healthz")
def health():
    return {"status": "ok"}

def _secure_ext(filename: str) -> str:
    return Path(filename).suffix.lower()

async def _validate_and_read(upload_file: UploadFile):
    ext = _secure_ext(upload_file.filename or "")
    if ext not in ALLOWED_EXTENSIONS:
        return None, 400, f"Extension {ext or '(none)'} not allowed."

    data = await upload_file.read()

    if len(data) > MAX_FILE_SIZE:
        return None, 413, f"File too large. Limit is {MAX_FILE_SIZE} bytes."

    _verify_signature(data, upload_file.filename)
    return data, None, None

def _verify_signature(data: bytes, filename: str) -> None:
    claimed = Path(filename).suffix.lower()
    detected = detect_extension(data)
    if detected is None:
        raise HTTPException(status_code=400, detail="Unsupported or unrecognized file signature.")
    if not ext_equivalent(claimed, detected):
        raise HTTPException(
            status_code=400,
            detail=f"Extension spoofing detected: file looks like {detected} but was uploaded as {claimed}."
        )

async def _read_or_raise(upload: UploadFile) -> bytes:
    data, status, error_detail = await _validate_and_read(upload)
    if error_detail:
        raise HTTPException(status_code=status, detail=error_detail)
    return data

@app.post("/clean")
async def clean(upload: UploadFile = File(...)):
    data = await _read_or_raise(upload)
    try:
        cleaned, stats = strip(data)
    except StripError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info("cleaned %s: %d of %d bytes removed", upload.filename, stats.total, len(data))
    return Response(
        content=cleaned,
        media_type="image/png",
        headers={
            "X-Bytes-Removed": str(stats.total),
            "X-Removal-Stats": json.dumps(stats.as_dict())
        },
    )

@app.post("/clean-batch")
async def clean_batch(uploads: List[UploadFile] = File(...)):
    if not uploads:
        raise HTTPException(status_code=400, detail="No files uploaded.")

    results = []
    errors = []
    uid = uuid.uuid4().hex
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    try:
        for index, up in enumerate(uploads):
            try:
                data, _, error_detail = await _validate_and_read(up)
            except HTTPException as e:
                error_detail = e.detail
            if error_detail:
                errors.append({"orig": up.filename, "error": error_detail})
                continue

            try:
                cleaned, stats = strip(data)
            except StripError as e:
                logger.warning("rejected %s: %s", up.filename, e)
                errors.append({"orig": up.filename, "error": str(e)})
                continue

            dst_path = OUTPUT_DIR / f"{uid}_{index}_{Path(up.filename).stem}_clean.png"
            dst_path.write_bytes(cleaned)
            results.append({
                "orig": up.filename,
                "cleaned_name": dst_path.name,
                "download": f"/download/{dst_path.name}",
                "removed": stats.as_dict(),
            })
    finally:
        cleanup_once()

    if not results:
        raise HTTPException(status_code=400, detail={"message": "All uploaded files were invalid or failed to process.", "errors": errors})

    if len(results) == 1:
        item = results[0]
        return {
            "download": item["download"],
            "suggested_filename": item["cleaned_name"],
            "items": results,
            "errors": errors,
        }

    zip_name = f"{uid}_cleaned_files.zip"
    zip_path = OUTPUT_DIR / zip_name
    with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED) as z:
        for item in results:
            file_path = OUTPUT_DIR / item["cleaned_name"]
            if file_path.exists():
                z.write(file_path, arcname=item["cleaned_name"])

    return {
        "zip_download": f"/download/{zip_name}",
        "items": results,
        "errors": errors,
        "count": len(results)
    }

@app.post("/inspect")
async def inspect(upload: UploadFile = File(...)):
    data = await _read_or_raise(upload)
    try:
        chunks = list_chunks(data)
    except StripError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "size": len(data),
        "chunks": [c.as_dict() for c in chunks],
        "removable_bytes": sum(c.size for c in chunks if not c.keep),
    }

@app.get("/download/{name}")
def download(name: str):
    if Path(name).name != name or name.startswith("."):
        raise HTTPException(status_code=400, detail="Invalid file name.")
    path = OUTPUT_DIR / name
    if not path.is_file():
        raise HTTPException(status_code=404, detail="File not found (maybe it expired and was deleted).")
    media_type = "image/png" if path.suffix == ".png" else "application/octet-stream"
    return FileResponse(path, media_type=media_type, filename=name)

import json
import math
from pathlib import Path
from typing import Any, Dict, List, Tuple
from .models import DialogEntry
from .errors import InvalidJSONError, InvalidStructureError, UnsupportedFileError, FileTooLargeError
from . import config

JSON_MIMETYPE = "application/json"

def check_upload(filename: str, content_type: str | None, size: int):
    # Accept by mimetype or by extension, as browsers often send octet-stream
    if content_type != JSON_MIMETYPE and not (filename or "").lower().endswith(".json"):
        raise UnsupportedFileError()
    if size > config.MAX_UPLOAD_BYTES:
        raise FileTooLargeError()

def _reject_constant(name: str):
    # NaN, Infinity and -Infinity are not JSON
    raise InvalidJSONError()

def load_document(content: bytes | str) -> Dict[str, Any]:
    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8")
        except UnicodeDecodeError:
            raise InvalidJSONError()
    try:
        data = json.loads(content, parse_constant=_reject_constant)
    except json.JSONDecodeError:
        raise InvalidJSONError()

    # vcon must be truthy; an empty dialog list is still a valid document
    if not isinstance(data, dict) or not data.get("vcon") or data.get("dialog") is None:
        raise InvalidStructureError()
    if not isinstance(data["dialog"], list):
        raise InvalidStructureError()
    return data

def parse_file(path: str) -> Tuple[str, Dict[str, Any]]:
    p = Path(path)
    if p.suffix.lower() != ".json":
        raise UnsupportedFileError()
    return p.name, load_document(p.read_bytes())

def _duration(raw) -> float:
    if isinstance(raw, bool) or raw is None:
        return 0.0
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value) or value < 0:
        return 0.0
    return value

def _text(entry: Dict[str, Any]) -> str:
    for key in ("transcript", "body"):
        val = entry.get(key)
        if isinstance(val, str) and val:
            return val.lower()
    return ""

def normalize_dialogs(document: Dict[str, Any]) -> List[DialogEntry]:
    """One DialogEntry per raw dialog, in input order. Nothing is dropped."""
    out: List[DialogEntry] = []
    for entry in document.get("dialog") or []:
        if not isinstance(entry, dict):
            out.append(DialogEntry())
            continue
        out.append(DialogEntry(duration_seconds=_duration(entry.get("duration")), text=_text(entry)))
    return out

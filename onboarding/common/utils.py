from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse


def now() -> datetime:
    return datetime.now(timezone.utc)


def build_success(data: Dict[str, Any], request_id: Optional[str] = None) -> Dict[str, Any]:
    content = {"success": True, **data}
    if request_id:
        content["request_id"] = request_id
    return content


def build_error(kind: str = "UNKNOWN_ERROR",
                message: Optional[str] = None,
                request_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "success": False,
        "error": message,
        "kind": kind,
        "request_id": request_id,
    }


def json_ok(content: Dict[str, Any], status_code: int = 200, headers=None) -> JSONResponse:
    return JSONResponse(content, status_code=status_code, headers=headers)


def json_error(content: Dict[str, Any], status_code: int = 500, headers=None) -> JSONResponse:
    return JSONResponse(content, status_code=status_code, headers=headers)


def success_response(data: Dict[str, Any], status_code: int = 200, headers: Optional[Dict[str, Any]] = None,
                     request_id: Optional[str] = None) -> JSONResponse:
    content = build_success(data, request_id=request_id)
    return json_ok(content, status_code=status_code, headers=headers)

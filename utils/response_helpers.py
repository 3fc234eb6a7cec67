from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

NO_STORE_HEADERS = {"Cache-Control": "no-store"}


def success_response(data: Any, headers: Optional[dict] = None):
    return JSONResponse(
        content={"success": True, "data": jsonable_encoder(data)},
        status_code=200,
        headers=headers,
    )

def error_response(
    message: str,
    status_code: int = 500,
    code: Optional[str] = None,
    details: Optional[dict] = None,
):
    content = {"success": False, "error": message}
    if code:
        content["code"] = code
    if details:
        content["details"] = jsonable_encoder(details)
    return JSONResponse(content=content, status_code=status_code, headers=NO_STORE_HEADERS)

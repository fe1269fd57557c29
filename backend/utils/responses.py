# backend/utils/responses.py
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


# JSON envelope shared by the storefront endpoints: {"success", "message", ...extra}
def success(message: str, **extra) -> dict:
    return {"success": True, "message": message, **extra}


def failure(message: str, status_code: int = 500, **extra) -> JSONResponse:
    body = {"success": False, "message": message, **extra}
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))

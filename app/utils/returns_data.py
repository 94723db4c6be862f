from fastapi.responses import JSONResponse
from typing import Any, Optional


class returnsdata:
    @staticmethod
    def success(data: Any, msg: str, status: str):
        return JSONResponse(content={
            "data": data,
            "msg": msg,
            "status": status,
            "status_code": 200
        }, status_code=200)

    @staticmethod
    def not_found(msg: str, status: str):
        return JSONResponse(content={
            "msg": msg,
            "status": status,
            "status_code": 404
        }, status_code=404)

    @staticmethod
    def error_msg(msg: str, status: str, status_code: int = 500):
        return JSONResponse(content={
            "msg": msg,
            "status": status,
            "status_code": status_code
        }, status_code=status_code)

    @staticmethod
    def bad_gateway(msg: str, upstream_status: Optional[int], detail: str):
        return JSONResponse(content={
            "message": msg,
            "upstreamStatus": upstream_status,
            "detail": detail
        }, status_code=502)

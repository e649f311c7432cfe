"""
Success envelope shared by all routers.

Every successful response has the shape
`{"statusCode": ..., "data": ..., "message": ..., "success": true}`.
"""

from typing import Any, Dict
from pydantic import BaseModel


def api_response(data: Any, message: str, status_code: int = 200) -> Dict[str, Any]:
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", by_alias=True)
    return {
        "statusCode": status_code,
        "data": data,
        "message": message,
        "success": status_code < 400,
    }

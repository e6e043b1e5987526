"""Error response body.

Successful endpoints return their payload directly (camelCase JSON).
Every failure returns:
{
    "error": "Listing not found: ...",
    "code": 3001,
    "requestId": "req_..."
}
"""

import uuid

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ErrorResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    error: str
    code: int
    request_id: str = Field(default_factory=lambda: f"req_{uuid.uuid4().hex[:12]}")


def error_response(code: int, message: str, request_id: str | None = None) -> ErrorResponse:
    resp = ErrorResponse(error=message, code=code)
    if request_id:
        resp.request_id = request_id
    return resp

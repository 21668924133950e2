"""JSON envelopes returned by the admin AJAX endpoints."""
from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping, Optional

from fastapi.responses import JSONResponse


class AjaxResponse:
    """Accumulates status, data rows and validation messages for a reply.

    Serialised form::

        {"response": {"status": 0, "statusMessage": "...", "data": [...],
                      "dataMap": {...}, "validationMessages": [...]}}

    Empty sections are omitted.
    """

    SUCCESS = 0
    FAILURE = -1
    VALIDATION_FAILED = -2
    OPERATION_COMPLETED = 9999
    CODE_ALREADY_EXIST = 9998

    def __init__(self, status: int = FAILURE, status_message: Optional[str] = None) -> None:
        self.status = status
        self.status_message = status_message
        self.error_string: Optional[str] = None
        self.data: List[Dict[str, Any]] = []
        self.data_map: Dict[str, Any] = {}
        self.validation_messages: Dict[str, str] = {}

    def add_entry(self, entry: Mapping[str, Any]) -> None:
        self.data.append(dict(entry))

    def add_data_entry(self, key: str, value: Any) -> None:
        self.data_map[key] = value

    def add_validation_message(self, field: str, message: str) -> None:
        self.validation_messages[field] = message

    def set_error(self, exc: BaseException) -> None:
        self.error_string = str(exc)

    def _payload(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"status": self.status}
        if self.status_message:
            body["statusMessage"] = self.status_message
        if self.error_string:
            body["errorString"] = self.error_string
        if self.data:
            body["data"] = self.data
        if self.data_map:
            body["dataMap"] = self.data_map
        if self.validation_messages:
            body["validationMessages"] = [
                {"field": field, "message": message} for field, message in self.validation_messages.items()
            ]
        return body

    def to_dict(self) -> Dict[str, Any]:
        return {"response": self._payload()}

    def to_json_string(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    def to_response(self, status_code: int = 200) -> JSONResponse:
        return JSONResponse(status_code=status_code, content=json.loads(self.to_json_string()))


class AjaxPageableResponse(AjaxResponse):
    """Response carrying a window of rows out of a larger result set."""

    def __init__(self, status: int = AjaxResponse.FAILURE, status_message: Optional[str] = None) -> None:
        super().__init__(status, status_message)
        self.start_row = 0
        self.end_row = 0
        self.total_row = 0

    def _payload(self) -> Dict[str, Any]:
        body = super()._payload()
        body["startRow"] = self.start_row
        body["endRow"] = self.end_row
        body["totalRow"] = self.total_row
        return body


__all__ = ["AjaxPageableResponse", "AjaxResponse"]

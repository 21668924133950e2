from __future__ import annotations

import json

from salesmanager.ajax import AjaxPageableResponse, AjaxResponse


def test_empty_sections_are_omitted() -> None:
    response = AjaxResponse(AjaxResponse.SUCCESS)

    assert response.to_dict() == {"response": {"status": 0}}


def test_full_payload_shape() -> None:
    response = AjaxResponse(AjaxResponse.VALIDATION_FAILED, status_message="Invalid form")
    response.add_entry({"name": "logo.png", "url": "/static/files/DEFAULT/LOGO/logo.png"})
    response.add_data_entry("count", 1)
    response.add_validation_message("email", "Email is required")
    response.set_error(ValueError("boom"))

    payload = json.loads(response.to_json_string())["response"]

    assert payload["status"] == -2
    assert payload["statusMessage"] == "Invalid form"
    assert payload["errorString"] == "boom"
    assert payload["data"] == [{"name": "logo.png", "url": "/static/files/DEFAULT/LOGO/logo.png"}]
    assert payload["dataMap"] == {"count": 1}
    assert payload["validationMessages"] == [{"field": "email", "message": "Email is required"}]


def test_status_constants() -> None:
    assert AjaxResponse.SUCCESS == 0
    assert AjaxResponse.FAILURE == -1
    assert AjaxResponse.OPERATION_COMPLETED == 9999
    assert AjaxResponse.CODE_ALREADY_EXIST == 9998
    assert AjaxResponse().status == AjaxResponse.FAILURE


def test_pageable_response_includes_row_window() -> None:
    response = AjaxPageableResponse(AjaxResponse.SUCCESS)
    response.start_row = 10
    response.end_row = 20
    response.total_row = 42

    payload = response.to_dict()["response"]

    assert payload["startRow"] == 10
    assert payload["endRow"] == 20
    assert payload["totalRow"] == 42


def test_to_response_builds_json_response() -> None:
    response = AjaxResponse(AjaxResponse.OPERATION_COMPLETED).to_response(201)

    assert response.status_code == 201
    assert json.loads(response.body) == {"response": {"status": 9999}}

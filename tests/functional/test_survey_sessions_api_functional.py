"""HTTP contract tests for the survey session routes.

Exercises the in-process FastAPI app through ``TestClient``: status codes,
camelCase bodies, problem+json errors, ETag emission and If-Match handling.
"""

from __future__ import annotations

import re

import pytest

from survey_stepper.logic.storage import InMemorySessionStore

from survey_stepper.config import AppConfig

PROBLEM = "application/problem+json"
WEAK_ETAG = re.compile(r'^W/"[0-9a-f]{40}"$')


def _create(client, survey_id: str = "customer-2024", **extra):
    resp = client.post("/survey-sessions", json={"surveyId": survey_id, **extra})
    assert resp.status_code == 201, resp.text
    return resp


def _assert_problem(resp, status: int, code: str) -> dict:
    assert resp.status_code == status, resp.text
    assert resp.headers["content-type"].startswith(PROBLEM)
    body = resp.json()
    assert body["status"] == status
    assert body["code"] == code
    assert body["message"] == body["detail"]
    assert body["title"]
    return body


# ---------------------------------------------------------------------------
# create / get / delete
# ---------------------------------------------------------------------------


def test_create_returns_201_camel_case_session_and_etag(client):
    resp = _create(client)

    body = resp.json()
    assert set(body) >= {
        "id",
        "surveyId",
        "currentStepIndex",
        "steps",
        "answers",
        "progress",
        "createdAt",
        "updatedAt",
    }
    assert body["surveyId"] == "customer-2024"
    assert body["currentStepIndex"] == 0
    assert len(body["steps"]) == 3
    assert body["steps"][0]["questionIds"] == ["q1", "q2", "q3"]
    assert body["progress"] == {"completedSteps": 0, "totalSteps": 3, "percentage": 0}
    assert body["createdAt"].endswith("Z")
    assert WEAK_ETAG.match(resp.headers["ETag"])


def test_create_with_initial_answers_keeps_them(client):
    initial = [
        {"questionId": "q1", "value": 30, "stepId": "step-1"},
        {"questionId": "q2", "value": None},
    ]

    body = _create(client, "x", initialAnswers=initial).json()

    assert [a["questionId"] for a in body["answers"]] == ["q1", "q2"]
    assert body["answers"][1]["value"] is None
    assert body["progress"]["percentage"] == 0


def test_create_without_survey_id_is_422(client):
    resp = client.post("/survey-sessions", json={})

    body = _assert_problem(resp, 422, "VALIDATION_FAILED")
    assert any(fe["field"] == "surveyId" for fe in body["fieldErrors"])


def test_create_with_blank_survey_id_is_400(client):
    resp = client.post("/survey-sessions", json={"surveyId": "  "})

    _assert_problem(resp, 400, "BAD_REQUEST")


def test_answer_without_value_is_rejected(client):
    resp = client.post("/survey-sessions", json={"surveyId": "x", "initialAnswers": [{"questionId": "q1"}]})

    _assert_problem(resp, 422, "VALIDATION_FAILED")


def test_get_returns_session_with_stable_etag(client):
    created = _create(client)
    session_id = created.json()["id"]

    first = client.get(f"/survey-sessions/{session_id}")
    second = client.get(f"/survey-sessions/{session_id}")

    assert first.status_code == 200
    assert first.json()["id"] == session_id
    assert first.headers["ETag"] == second.headers["ETag"] == created.headers["ETag"]


def test_get_unknown_session_is_404(client):
    body = _assert_problem(client.get("/survey-sessions/nope"), 404, "NOT_FOUND")

    assert body["message"] == "Survey session not found"


def test_delete_returns_204_then_404(client):
    session_id = _create(client).json()["id"]

    resp = client.delete(f"/survey-sessions/{session_id}")
    assert resp.status_code == 204
    assert resp.content == b""

    _assert_problem(client.get(f"/survey-sessions/{session_id}"), 404, "NOT_FOUND")
    _assert_problem(client.delete(f"/survey-sessions/{session_id}"), 404, "NOT_FOUND")


# ---------------------------------------------------------------------------
# steps
# ---------------------------------------------------------------------------


def test_get_step_returns_step_answers_and_progress(client):
    session_id = _create(client).json()["id"]
    client.put(
        f"/survey-sessions/{session_id}/steps/1",
        json={"answers": [{"questionId": "q4", "value": "great"}]},
    )

    resp = client.get(f"/survey-sessions/{session_id}/steps/1")

    assert resp.status_code == 200
    body = resp.json()
    assert body["step"]["title"] == "Product Experience"
    assert [a["questionId"] for a in body["answers"]] == ["q4"]
    assert body["currentStepIndex"] == 0
    assert body["progress"]["completedSteps"] == 1
    assert "ETag" in resp.headers


@pytest.mark.parametrize("raw", ["abc", "-1", "1.5"])
def test_get_step_with_malformed_index_is_400(client, raw):
    session_id = _create(client).json()["id"]

    body = _assert_problem(client.get(f"/survey-sessions/{session_id}/steps/{raw}"), 400, "BAD_REQUEST")

    assert body["message"] == "Invalid step index"


def test_get_step_out_of_range_is_404(client):
    session_id = _create(client, "x").json()["id"]

    body = _assert_problem(client.get(f"/survey-sessions/{session_id}/steps/2"), 404, "NOT_FOUND")

    assert body["message"] == "Session or step not found"


def test_save_step_answers_stamps_and_recomputes_progress(client):
    created = _create(client)
    session_id = created.json()["id"]

    resp = client.put(
        f"/survey-sessions/{session_id}/steps/0",
        json={"answers": [{"questionId": "q1", "value": 42}, {"questionId": "q2", "value": ["a", "b"]}]},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert {a["stepId"] for a in body["answers"]} == {"step-1"}
    assert all(a["updatedAt"].endswith("Z") for a in body["answers"])
    assert body["answers"][1]["value"] == ["a", "b"]
    assert body["progress"] == {"completedSteps": 1, "totalSteps": 3, "percentage": 33}
    assert resp.headers["ETag"] != created.headers["ETag"]


def test_save_with_preserve_false_wipes_other_steps(client):
    session_id = _create(client).json()["id"]
    client.put(f"/survey-sessions/{session_id}/steps/0", json={"answers": [{"questionId": "q1", "value": 1}]})

    resp = client.put(
        f"/survey-sessions/{session_id}/steps/1",
        json={"answers": [{"questionId": "q4", "value": 2}], "preserveOtherSteps": False},
    )

    assert [a["questionId"] for a in resp.json()["answers"]] == ["q4"]


def test_save_with_preserve_false_under_step_scope_keeps_other_steps(app_client_factory):
    client = app_client_factory(AppConfig.model_validate({"answers": {"reset_scope": "step"}}))
    session_id = _create(client).json()["id"]
    client.put(f"/survey-sessions/{session_id}/steps/0", json={"answers": [{"questionId": "q1", "value": 1}]})

    resp = client.put(
        f"/survey-sessions/{session_id}/steps/1",
        json={"answers": [{"questionId": "q4", "value": 2}], "preserveOtherSteps": False},
    )

    assert sorted(a["questionId"] for a in resp.json()["answers"]) == ["q1", "q4"]


def test_save_on_out_of_range_step_is_404(client):
    session_id = _create(client, "x").json()["id"]

    resp = client.put(f"/survey-sessions/{session_id}/steps/9", json={"answers": []})

    _assert_problem(resp, 404, "NOT_FOUND")


def test_save_on_unknown_session_is_404(client):
    resp = client.put("/survey-sessions/missing/steps/0", json={"answers": []})

    _assert_problem(resp, 404, "NOT_FOUND")


# ---------------------------------------------------------------------------
# navigation
# ---------------------------------------------------------------------------


def test_navigate_next_and_previous(client):
    session_id = _create(client).json()["id"]

    after_next = client.post(f"/survey-sessions/{session_id}/navigate", json={"direction": "next"})
    assert after_next.status_code == 200
    assert after_next.json()["currentStepIndex"] == 1

    after_prev = client.post(f"/survey-sessions/{session_id}/navigate", json={"direction": "previous"})
    assert after_prev.json()["currentStepIndex"] == 0


def test_navigate_clamps_at_boundaries(client):
    session_id = _create(client, "x").json()["id"]

    at_start = client.post(f"/survey-sessions/{session_id}/navigate", json={"direction": "previous"})
    assert at_start.status_code == 200
    assert at_start.json()["currentStepIndex"] == 0

    for _ in range(4):
        last = client.post(f"/survey-sessions/{session_id}/navigate", json={"direction": "next"})
    assert last.json()["currentStepIndex"] == 1


def test_navigate_with_unknown_direction_is_422(client):
    session_id = _create(client).json()["id"]

    resp = client.post(f"/survey-sessions/{session_id}/navigate", json={"direction": "sideways"})

    _assert_problem(resp, 422, "VALIDATION_FAILED")


def test_navigate_unknown_session_is_404(client):
    resp = client.post("/survey-sessions/missing/navigate", json={"direction": "next"})

    _assert_problem(resp, 404, "NOT_FOUND")


def test_enforced_validation_returns_field_errors(app_client_factory):
    client = app_client_factory(AppConfig.model_validate({"navigation": {"enforce_step_validation": True}}))
    session_id = _create(client, "x").json()["id"]
    client.put(f"/survey-sessions/{session_id}/steps/0", json={"answers": [{"questionId": "q1", "value": "a"}]})

    resp = client.post(
        f"/survey-sessions/{session_id}/navigate",
        json={"direction": "next", "validateCurrentStep": True},
    )

    body = _assert_problem(resp, 422, "VALIDATION_FAILED")
    assert body["fieldErrors"] == [{"field": "q2", "message": "An answer is required"}]
    assert client.get(f"/survey-sessions/{session_id}").json()["currentStepIndex"] == 0


def test_set_current_step_jumps_directly(client):
    session_id = _create(client).json()["id"]

    resp = client.put(f"/survey-sessions/{session_id}/current-step", json={"stepIndex": 2})

    assert resp.status_code == 200
    assert resp.json()["currentStepIndex"] == 2


@pytest.mark.parametrize("index", [-1, 3])
def test_set_current_step_out_of_range_is_400(client, index):
    session_id = _create(client).json()["id"]

    resp = client.put(f"/survey-sessions/{session_id}/current-step", json={"stepIndex": index})

    _assert_problem(resp, 400, "BAD_REQUEST")


def test_progress_endpoint(client):
    session_id = _create(client, "x").json()["id"]
    saved = client.put(f"/survey-sessions/{session_id}/steps/0", json={"answers": [{"questionId": "q1", "value": 1}]})

    resp = client.get(f"/survey-sessions/{session_id}/progress")

    assert resp.status_code == 200
    assert resp.json() == {"completedSteps": 1, "totalSteps": 2, "percentage": 50}
    assert resp.headers["ETag"] == saved.headers["ETag"]
    assert client.get(f"/survey-sessions/{session_id}/steps/0").headers["ETag"] == resp.headers["ETag"]
    _assert_problem(client.get("/survey-sessions/missing/progress"), 404, "NOT_FOUND")


# ---------------------------------------------------------------------------
# concurrency
# ---------------------------------------------------------------------------


def test_write_with_current_if_match_succeeds(client):
    created = _create(client)
    session_id = created.json()["id"]

    resp = client.post(
        f"/survey-sessions/{session_id}/navigate",
        json={"direction": "next"},
        headers={"If-Match": created.headers["ETag"]},
    )

    assert resp.status_code == 200


def test_strong_form_of_weak_etag_matches(client):
    created = _create(client)
    session_id = created.json()["id"]
    strong = created.headers["ETag"][2:]

    resp = client.put(
        f"/survey-sessions/{session_id}/current-step",
        json={"stepIndex": 1},
        headers={"If-Match": f'"other", {strong}'},
    )

    assert resp.status_code == 200


def test_stale_if_match_is_409_with_current_etag(client):
    created = _create(client)
    session_id = created.json()["id"]
    moved = client.post(f"/survey-sessions/{session_id}/navigate", json={"direction": "next"})

    resp = client.put(
        f"/survey-sessions/{session_id}/steps/0",
        json={"answers": []},
        headers={"If-Match": created.headers["ETag"]},
    )

    _assert_problem(resp, 409, "PRE_IF_MATCH_ETAG_MISMATCH")
    assert resp.headers["ETag"] == moved.headers["ETag"]


def test_stale_if_match_blocks_delete(client):
    created = _create(client)
    session_id = created.json()["id"]
    client.post(f"/survey-sessions/{session_id}/navigate", json={"direction": "next"})

    resp = client.delete(f"/survey-sessions/{session_id}", headers={"If-Match": created.headers["ETag"]})

    _assert_problem(resp, 409, "PRE_IF_MATCH_ETAG_MISMATCH")
    assert client.get(f"/survey-sessions/{session_id}").status_code == 200


def test_required_if_match_missing_is_428(app_client_factory):
    client = app_client_factory(AppConfig.model_validate({"concurrency": {"require_if_match": True}}))
    created = _create(client)
    session_id = created.json()["id"]

    missing = client.post(f"/survey-sessions/{session_id}/navigate", json={"direction": "next"})
    _assert_problem(missing, 428, "PRE_IF_MATCH_MISSING")

    ok = client.post(
        f"/survey-sessions/{session_id}/navigate",
        json={"direction": "next"},
        headers={"If-Match": created.headers["ETag"]},
    )
    assert ok.status_code == 200


def test_reads_never_require_if_match(app_client_factory):
    client = app_client_factory(AppConfig.model_validate({"concurrency": {"require_if_match": True}}))
    session_id = _create(client).json()["id"]

    assert client.get(f"/survey-sessions/{session_id}").status_code == 200
    assert client.get(f"/survey-sessions/{session_id}/progress").status_code == 200


# ---------------------------------------------------------------------------
# app surface
# ---------------------------------------------------------------------------


def test_routes_are_also_served_under_api_v1(client):
    created = client.post("/api/v1/survey-sessions", json={"surveyId": "x"})
    assert created.status_code == 201

    session_id = created.json()["id"]
    assert client.get(f"/survey-sessions/{session_id}").status_code == 200
    assert client.get(f"/api/v1/survey-sessions/{session_id}/progress").status_code == 200


def test_request_id_is_echoed_or_generated(client):
    echoed = client.get("/health", headers={"X-Request-Id": "req-123"})
    generated = client.get("/health")

    assert echoed.headers["X-Request-Id"] == "req-123"
    assert generated.headers["X-Request-Id"]


def test_health_reports_store_backend(app_client_factory):
    client = app_client_factory(store=InMemorySessionStore())

    assert client.get("/health").json() == {"status": "ok", "store": "memory"}


def test_cors_exposes_etag_header(client):
    resp = client.get("/health", headers={"Origin": "http://example.test"})

    exposed = resp.headers.get("access-control-expose-headers", "")
    assert "ETag" in exposed


def test_unknown_route_is_problem_json(client):
    resp = client.get("/no-such-route")

    _assert_problem(resp, 404, "NOT_FOUND")


def test_documented_error_model_matches_problem_fields(client):
    schema = client.get("/openapi.json").json()["components"]["schemas"]["ErrorResponse"]

    assert set(schema["properties"]) == {"code", "message", "fieldErrors"}

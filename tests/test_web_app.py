from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from fastapi.testclient import TestClient

from formwizard.core.request import FormRequest
from formwizard.infra.config import load_settings
from formwizard.storage.session_store import InMemorySessionStore
from formwizard.web.app import create_app, mount_form, to_starlette_response

ROOT = Path(__file__).resolve().parents[1]
JSON_HEADERS = {"Accept": "application/json"}


def make_settings(tmp_path, **overrides):
    env = {
        "APP_ENV": "dev",
        "SESSION_SECRET": "test-secret",
        "SESSION_STORE_PATH": str(tmp_path / "sessions"),
        "TEMPLATES_PATH": str(ROOT / "templates"),
        "SESSION_COOKIE_SECURE": "false",
    }
    env.update(overrides)
    return load_settings(raw_env=env)


@pytest.fixture
def client(tmp_path) -> TestClient:
    return TestClient(create_app(make_settings(tmp_path)))


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.text == "ok"


def test_registration_json_flow(client) -> None:
    response = client.get("/register", headers=JSON_HEADERS)
    assert response.status_code == 200
    assert response.json() == {
        "data": {"title": "Create your account", "section": "account", "heading": "Account"},
        "form": {},
    }

    response = client.post(
        "/register",
        json={"form_step": 1, "email": "alice@example.com", "username": "alice"},
        headers=JSON_HEADERS,
    )
    assert response.status_code == 200
    assert response.json()["form"] == {"email": "alice@example.com", "username": "alice", "form_step": 2}

    response = client.post("/register", json={"form_step": 2, "full_name": "Alice", "age": 5}, headers=JSON_HEADERS)
    assert response.status_code == 422
    body = response.json()
    assert body["message"] == "The given data was invalid."
    assert body["errors"]["age"] == ["You must be at least 13 years old."]

    response = client.get("/register", headers=JSON_HEADERS)
    assert response.json()["form"]["form_step"] == 2
    assert "full_name" not in response.json()["form"]

    response = client.post("/register", json={"form_step": 2, "full_name": "Alice", "age": 30}, headers=JSON_HEADERS)
    assert response.json()["form"]["form_step"] == 3
    assert response.json()["form"]["newsletter"] is False

    response = client.post("/register", json={"form_step": 3}, headers=JSON_HEADERS)
    assert response.status_code == 422
    assert response.json()["errors"]["accept_terms"] == ["You must accept the terms to continue."]

    response = client.post("/register", json={"form_step": 3, "accept_terms": True}, headers=JSON_HEADERS)
    assert response.status_code == 200
    assert response.json()["form"] == {"completed": True, "username": "alice", "form_step": 1}


def test_completed_registration_refuses_until_restart(client) -> None:
    steps = [
        {"form_step": 1, "email": "bob@example.com", "username": "bob"},
        {"form_step": 2, "full_name": "Bob", "age": 40, "newsletter": True},
        {"form_step": 3, "accept_terms": True},
    ]
    for payload in steps:
        assert client.post("/register", json=payload, headers=JSON_HEADERS).status_code == 200

    response = client.post("/register", json=steps[0], headers=JSON_HEADERS)
    assert response.status_code == 409
    assert response.json()["message"] == "Registration already completed."

    response = client.post("/register", json={"restart": 1}, headers=JSON_HEADERS)
    assert response.status_code == 200
    assert response.json()["form"] == {}

    response = client.get("/register", headers=JSON_HEADERS)
    assert response.json()["data"]["section"] == "account"


def test_registration_html_flow(client) -> None:
    response = client.get("/register")
    assert response.status_code == 200
    assert "Step 1 of 3" in response.text

    response = client.post("/register", data={"form_step": "1", "email": "carol@example.com", "username": "carol"})
    assert response.history[0].status_code == 303
    assert response.status_code == 200
    assert "Step 2 of 3" in response.text

    response = client.post("/register", data={"form_step": "2", "full_name": "Carol", "age": "5"})
    assert response.status_code == 422
    assert "You must be at least 13 years old." in response.text
    assert 'value="5"' in response.text

    response = client.post("/register", data={"form_step": "2", "full_name": "Carol", "age": "33", "newsletter": "1"})
    assert "Step 3 of 3" in response.text
    assert "carol@example.com" in response.text

    response = client.post("/register", data={"form_step": "3", "accept_terms": "1"})
    assert response.status_code == 200
    assert "Registration complete for carol." in response.text


def test_sessions_are_isolated_and_tampered_cookie_ignored(tmp_path) -> None:
    app = create_app(make_settings(tmp_path))
    first = TestClient(app)
    first.post("/register", json={"form_step": 1, "email": "dan@example.com", "username": "dan"}, headers=JSON_HEADERS)
    assert first.get("/register", headers=JSON_HEADERS).json()["form"]["username"] == "dan"

    second = TestClient(app, cookies={"formwizard_session": "abcdefgh12345678:1:forged"})
    assert second.get("/register", headers=JSON_HEADERS).json()["form"] == {}


def test_session_survives_new_app_instance(tmp_path) -> None:
    settings = make_settings(tmp_path)
    client = TestClient(create_app(settings))
    client.post("/register", json={"form_step": 1, "email": "eve@example.com", "username": "eve"}, headers=JSON_HEADERS)

    restarted = TestClient(create_app(settings), cookies=dict(client.cookies))

    assert restarted.get("/register", headers=JSON_HEADERS).json()["form"]["username"] == "eve"


def test_request_summary_logged(client, caplog) -> None:
    caplog.set_level(logging.INFO, logger="formwizard.web.app")

    client.post("/register", json={"form_step": 1, "email": "nope"}, headers=JSON_HEADERS)

    records = [r for r in caplog.records if r.name == "formwizard.web.app" and r.getMessage().startswith("{")]
    summary = json.loads(records[-1].getMessage())
    assert summary["event"] == "request.summary"
    assert summary["status_code"] == 422
    assert summary["outcome"] == "invalid"
    assert summary["invalid_fields"] == ["email", "username"]
    assert summary["namespace"] == "multistep-form"
    assert summary["step"] == 1
    assert "nope" not in records[-1].getMessage()


def _memory_app(tmp_path, configure, *, view=None) -> TestClient:
    stores: dict[str, InMemorySessionStore] = {}

    def factory(session_id: str) -> InMemorySessionStore:
        return stores.setdefault(session_id, InMemorySessionStore())

    app = FastAPI()
    mount_form(
        app,
        "/survey",
        configure,
        settings=make_settings(tmp_path),
        view=view,
        store_factory=factory,
    )
    return TestClient(app)


def test_form_without_view_reports_errors_as_json(tmp_path) -> None:
    client = _memory_app(tmp_path, lambda form: form.add_step(1, {"rules": {"answer": str}}))

    response = client.post("/survey", data={"form_step": "1"})

    assert response.status_code == 422
    assert response.json()["errors"]["answer"] == ["Field required"]


def test_hook_responses_pass_through(tmp_path) -> None:
    def configure(form) -> None:
        form.add_step(1, {"rules": {"answer": str}})
        form.before_step(1, lambda f: PlainTextResponse("closed", status_code=403))

    client = _memory_app(tmp_path, configure)

    response = client.post("/survey", data={"form_step": "1", "answer": "yes"})

    assert response.status_code == 403
    assert response.text == "closed"


def test_to_starlette_response_conversions() -> None:
    request = FormRequest(method="POST", url="http://testserver/survey")

    assert to_starlette_response({"a": 1}, request).body == b'{"a":1}'
    assert to_starlette_response("<p>hi</p>", request).media_type == "text/html"
    with pytest.raises(TypeError):
        to_starlette_response(42, request)

"""RFC 7807 rendering of service, validation and unexpected errors."""

from __future__ import annotations

import pytest
from flask import Flask
from marshmallow import Schema, fields

from eduportal.core import errors
from eduportal.services._shared.errors import (
    AlreadyExistsError,
    ForbiddenError,
    NotFoundError,
    ServiceError,
    StoreError,
    TokenExpiredError,
)


class _Payload(Schema):
    email = fields.Email(required=True)


@pytest.fixture()
def error_app() -> Flask:
    app = Flask(__name__)
    errors.init_app(app)

    raises = {
        "exists": AlreadyExistsError("Email already in use"),
        "forbidden": ForbiddenError("Account is suspended"),
        "missing": NotFoundError("Account", 7),
        "expired": TokenExpiredError(),
        "store": StoreError(),
        "boom": RuntimeError("secret internals"),
    }

    @app.get("/raise/<name>")
    def raise_(name):
        raise raises[name]

    @app.post("/validate")
    def validate():
        _Payload().load({})

    return app


@pytest.mark.parametrize(
    "name,status,code",
    [
        ("exists", 409, "already_exists"),
        ("forbidden", 403, "forbidden"),
        ("missing", 404, "not_found"),
        ("expired", 401, "token_expired"),
        ("store", 503, "store_unavailable"),
    ],
)
def test_service_errors_keep_status_and_code(error_app, name, status, code):
    resp = error_app.test_client().get(f"/raise/{name}")
    assert resp.status_code == status
    assert resp.mimetype == "application/problem+json"
    body = resp.get_json()
    assert body["code"] == code
    assert body["status"] == status
    assert body["instance"] == f"/raise/{name}"
    assert body["request_id"]


def test_not_found_message(error_app):
    assert error_app.test_client().get("/raise/missing").get_json()["detail"] == "Account not found: 7"


def test_validation_error_lists_fields(error_app):
    resp = error_app.test_client().post("/validate")
    assert resp.status_code == 422
    assert "email" in resp.get_json()["details"]["errors"]


def test_unexpected_error_hides_internals(error_app):
    resp = error_app.test_client().get("/raise/boom")
    assert resp.status_code == 500
    assert "secret internals" not in resp.get_data(as_text=True)


def test_request_id_is_echoed_from_header(error_app):
    resp = error_app.test_client().get("/raise/forbidden", headers={"X-Request-ID": "req-123"})
    assert resp.get_json()["request_id"] == "req-123"


def test_service_error_defaults():
    err = ServiceError()
    assert err.message == "Service error"
    assert str(ForbiddenError()) == "Forbidden"

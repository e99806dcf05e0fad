from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError

from respos.core import errors
from respos.core.errors import (
    AuthError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    ValidationError,
    register_exception_handlers,
    translate_integrity_error,
)
from respos.core.serialization import MAX_SAFE_INTEGER, envelope, serialize_data


def test_identifier_keys_become_strings_everywhere():
    payload = {
        "uid": 42,
        "count": 3,
        "isdeleted": False,
        "merge_table_id": [1, 2],
        "nested": [{"uoid": 7, "capacity": 4}],
    }

    assert serialize_data(payload) == {
        "uid": "42",
        "count": 3,
        "isdeleted": False,
        "merge_table_id": ["1", "2"],
        "nested": [{"uoid": "7", "capacity": 4}],
    }


def test_out_of_range_integers_decimals_and_datetimes():
    moment = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    result = serialize_data(
        {
            "big": MAX_SAFE_INTEGER + 1,
            "small": -(MAX_SAFE_INTEGER + 1),
            "safe": MAX_SAFE_INTEGER,
            "amount": Decimal("12345678901234567890.10"),
            "when": moment,
            "ratio": 0.5,
        }
    )

    assert result == {
        "big": str(MAX_SAFE_INTEGER + 1),
        "small": str(-(MAX_SAFE_INTEGER + 1)),
        "safe": MAX_SAFE_INTEGER,
        "amount": "12345678901234567890.10",
        "when": "2026-01-02T03:04:05+00:00",
        "ratio": 0.5,
    }


def test_envelope_wraps_serialized_data():
    assert envelope({"ulid": 5}) == {"success": True, "data": {"ulid": "5"}}
    assert envelope(None) == {"success": True, "data": None}


def _integrity_error(message, pgcode=None):
    orig = Exception(message)
    orig.pgcode = pgcode
    return IntegrityError("INSERT", {}, orig)


@pytest.mark.parametrize(
    "exc, expected_type, expected_code",
    [
        (_integrity_error("UNIQUE constraint failed: users.emailid"), ConflictError, "UNIQUE_VIOLATION"),
        (_integrity_error("duplicate key", pgcode="23505"), ConflictError, "UNIQUE_VIOLATION"),
        (_integrity_error("FOREIGN KEY constraint failed"), ValidationError, "FOREIGN_KEY_VIOLATION"),
        (_integrity_error("violates", pgcode="23503"), ValidationError, "FOREIGN_KEY_VIOLATION"),
        (_integrity_error("NOT NULL constraint failed"), DatabaseError, "DATABASE_ERROR"),
    ],
)
def test_integrity_errors_are_translated(exc, expected_type, expected_code):
    translated = translate_integrity_error(exc, "Duplicate thing")

    assert isinstance(translated, expected_type)
    assert translated.code == expected_code


def test_duplicate_message_only_applies_to_its_own_columns():
    mobile_clash = _integrity_error("UNIQUE constraint failed: users.mobno")
    email_clash = _integrity_error("UNIQUE constraint failed: users.emailid")
    pg_email_clash = _integrity_error(
        "duplicate key value violates unique constraint \"uq_users_emailid_active\"\n"
        "DETAIL:  Key (emailid)=(a@example.com) already exists.",
        pgcode="23505",
    )

    other = translate_integrity_error(mobile_clash, "Email taken", columns=("emailid",))

    assert other.message == "Duplicate entry found"
    assert other.details == {"constraint": "users.mobno"}
    assert translate_integrity_error(email_clash, "Email taken", columns=("emailid",)).message == "Email taken"
    assert translate_integrity_error(pg_email_clash, "Email taken", columns=("emailid",)).message == "Email taken"
    unnamed = _integrity_error("duplicate", pgcode="23505")
    assert translate_integrity_error(unnamed, "Email taken", columns=("emailid",)).message == "Email taken"


def test_conflict_keeps_the_400_convention():
    assert ConflictError("x").status_code == 400
    assert AuthError("x").status_code == 401
    assert NotFoundError("x").status_code == 404


def _error_app():
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/conflict")
    def conflict():
        raise ConflictError("Already there", details={"field": "emailid"})

    @app.get("/boom")
    def boom():
        raise RuntimeError("kaboom")

    @app.get("/integrity")
    def integrity():
        raise _integrity_error("UNIQUE constraint failed: users.mobno")

    @app.get("/typed/{item_id}")
    def typed(item_id: int):
        return {"item_id": item_id}

    return app


def test_error_payload_shape_outside_production():
    client = TestClient(_error_app(), raise_server_exceptions=False)

    response = client.get("/conflict")

    assert response.status_code == 400
    error = response.json()["error"]
    assert {key: error[key] for key in ("message", "status", "type", "code", "path", "method")} == {
        "message": "Already there",
        "status": 400,
        "type": "ConflictError",
        "code": "UNIQUE_VIOLATION",
        "path": "/conflict",
        "method": "GET",
    }
    assert error["timestamp"]
    assert error["details"] == {"field": "emailid"}
    assert "ConflictError" in error["stack"]


def test_production_hides_stack_and_details(monkeypatch):
    monkeypatch.setattr(errors, "IS_PROD", True)
    client = TestClient(_error_app(), raise_server_exceptions=False)

    error = client.get("/conflict").json()["error"]

    assert "stack" not in error
    assert "details" not in error


def test_unhandled_and_storage_errors_are_tagged():
    client = TestClient(_error_app(), raise_server_exceptions=False)

    boom = client.get("/boom")
    integrity = client.get("/integrity")
    typed = client.get("/typed/not-a-number")
    unknown = client.get("/missing")

    assert boom.status_code == 500
    assert boom.json()["error"]["code"] == "INTERNAL_ERROR"
    assert boom.json()["error"]["message"] == "Internal Server Error"
    assert integrity.status_code == 400
    assert integrity.json()["error"]["code"] == "UNIQUE_VIOLATION"
    assert typed.status_code == 400
    assert typed.json()["error"]["code"] == "VALIDATION_ERROR"
    assert unknown.status_code == 404
    assert unknown.json()["error"]["code"] == "NOT_FOUND"


def test_row_shaped_objects_pass_through_untouched():
    marker = SimpleNamespace(value=1)

    assert serialize_data(marker) is marker


def test_log_lines_mask_credentials():
    from respos.core.logging_setup import mask_secrets

    line = mask_secrets('Authorization: Bearer abc.def.ghi password=hunter2 {"token": "x"}')

    assert "abc.def.ghi" not in line
    assert "hunter2" not in line
    assert "Bearer ***" in line
    assert "password=***" in line

# app/core/test_core.py
from unittest.mock import patch

import pytest
from firebase_admin import auth as firebase_auth

from app import create_app
from app.core.config import TestingConfig, missing_required_keys
from app.core.exceptions import AuthenticationError, ParseError
from app.core.security import verify_token


def test_missing_required_keys():
    config = {'REQUIRED_KEYS': ('OPENAI_API_KEY', 'FIREBASE_STORAGE_BUCKET'), 'OPENAI_API_KEY': 'sk'}
    assert missing_required_keys(config) == ['FIREBASE_STORAGE_BUCKET']


def test_create_app_fails_fast_without_openai_key(services):
    with patch.object(TestingConfig, 'OPENAI_API_KEY', None):
        with pytest.raises(ValueError):
            create_app(config_name='testing', services=services)


def test_unknown_route_keeps_http_status(client):
    response = client.get('/nope')
    assert response.status_code == 404


@pytest.mark.parametrize("error", [
    firebase_auth.ExpiredIdTokenError("expired", cause=None),
    firebase_auth.InvalidIdTokenError("bad"),
    ValueError("malformed"),
    RuntimeError("auth backend down"),
])
def test_verify_token_failures_are_authentication_errors(error):
    with patch('app.core.security.firebase_auth.verify_id_token', side_effect=error):
        with pytest.raises(AuthenticationError):
            verify_token('token')


def test_verify_token_returns_uid():
    with patch('app.core.security.firebase_auth.verify_id_token', return_value={'uid': 'user-1'}):
        assert verify_token('token') == 'user-1'


def test_parse_error_includes_details():
    err = ParseError("bad response", details={"summary": ["Missing data for required field."]})
    assert err.status_code == 500
    assert err.to_dict() == {
        "error_code": "ANALYSIS_PARSE_FAILED",
        "message": "bad response",
        "details": {"summary": ["Missing data for required field."]},
    }

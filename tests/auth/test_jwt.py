"""Tests for bearer token verification and role gating."""
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from app.core.config import settings
from app.services.auth.jwt import (
    CurrentUser,
    create_access_token,
    get_current_user,
    require_roles,
    verify_token,
)


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


def test_round_trip_claims():
    token = create_access_token({"sub": "u-1", "role": "Affiliates"})
    payload = verify_token(token)
    assert payload["sub"] == "u-1"
    assert payload["role"] == "Affiliates"


def test_wrong_secret_is_rejected():
    token = jwt.encode({"sub": "u-1"}, "other-secret", algorithm="HS256")
    assert verify_token(token) is None


def test_expired_token_is_rejected():
    past = datetime.now(timezone.utc) - timedelta(hours=2)
    token = jwt.encode(
        {"sub": "u-1", "exp": past},
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )
    assert verify_token(token) is None


def test_current_user_from_role_list():
    token = create_access_token({"sub": "u-2", "roles": ["Staff", "Manager"]})
    user = get_current_user(_credentials(token))
    assert user == CurrentUser(id="u-2", roles=frozenset({"Staff", "Manager"}))


def test_missing_credentials():
    with pytest.raises(HTTPException) as exc_info:
        get_current_user(None)
    assert exc_info.value.status_code == 401


def test_token_without_subject():
    with pytest.raises(HTTPException) as exc_info:
        get_current_user(_credentials(create_access_token({"role": "Staff"})))
    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "Invalid token"


def test_require_roles():
    dependency = require_roles("Affiliates")
    affiliate = CurrentUser(id="u-1", roles=frozenset({"Affiliates"}))
    assert dependency(affiliate) is affiliate

    with pytest.raises(HTTPException) as exc_info:
        dependency(CurrentUser(id="u-2", roles=frozenset({"Customers"})))
    assert exc_info.value.status_code == 403

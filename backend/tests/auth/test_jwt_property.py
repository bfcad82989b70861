"""Property-based tests for JWT authentication.

**Feature: video-upload, Property 5: Authentication Token Validity**
"""

import asyncio
import uuid
from datetime import timedelta

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from hypothesis import given, settings, strategies as st
from jose import jwt

from app.core.config import settings as app_settings
from app.modules.auth.jwt import (
    ALGORITHM,
    create_access_token,
    create_token,
    decode_token,
    get_current_user_id,
    get_user_id_from_token,
)

uuid_strategy = st.uuids()


class TestJWTTokenValidity:
    """Property tests for JWT token validity."""

    @given(user_id=uuid_strategy)
    @settings(max_examples=100)
    def test_access_token_contains_correct_user_id(self, user_id: uuid.UUID) -> None:
        """For any user ID, an access token decodes back to that user."""
        token = create_access_token(user_id)
        payload = decode_token(token)

        assert payload is not None, "Token should be decodable"
        assert payload.sub == str(user_id)
        assert payload.type == "access"
        assert get_user_id_from_token(token) == user_id

    @given(user_id=uuid_strategy)
    @settings(max_examples=50)
    def test_expiry_after_issue(self, user_id: uuid.UUID) -> None:
        payload = decode_token(create_access_token(user_id))
        assert payload.exp > payload.iat

    @given(user_id=uuid_strategy)
    @settings(max_examples=50)
    def test_expired_token_is_rejected(self, user_id: uuid.UUID) -> None:
        token = create_access_token(user_id, expires_delta=timedelta(seconds=-10))
        assert decode_token(token) is None
        assert get_user_id_from_token(token) is None

    @given(user_id=uuid_strategy)
    @settings(max_examples=50)
    def test_wrong_signature_is_rejected(self, user_id: uuid.UUID) -> None:
        token = create_access_token(user_id)
        payload = jwt.get_unverified_claims(token)
        forged = jwt.encode(payload, "not-the-secret", algorithm=ALGORITHM)
        assert decode_token(forged) is None

    def test_other_token_type_is_rejected(self) -> None:
        token = create_token(uuid.uuid4(), "refresh", timedelta(minutes=5))
        assert decode_token(token) is not None
        assert get_user_id_from_token(token) is None

    def test_non_uuid_subject_is_rejected(self) -> None:
        token = jwt.encode(
            {"sub": "alice", "exp": 4102444800, "iat": 0, "type": "access"},
            app_settings.SECRET_KEY,
            algorithm=ALGORITHM,
        )
        assert get_user_id_from_token(token) is None

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
    def test_malformed_token_is_rejected(self, token: str) -> None:
        assert decode_token(token) is None


class TestCurrentUserDependency:
    """Resolving the bearer credential for a request."""

    def test_valid_credential(self) -> None:
        user_id = uuid.uuid4()
        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials=create_access_token(user_id))
        assert asyncio.run(get_current_user_id(credentials)) == user_id

    def test_missing_credential(self) -> None:
        with pytest.raises(HTTPException) as exc_info:
            asyncio.run(get_current_user_id(None))
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Couldn't find JWT"

    def test_invalid_credential(self) -> None:
        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials="garbage")
        with pytest.raises(HTTPException) as exc_info:
            asyncio.run(get_current_user_id(credentials))
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Couldn't validate JWT"

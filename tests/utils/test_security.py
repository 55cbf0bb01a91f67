"""
Unit Tests: bearer token handling
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

import config
from exceptions.auth import AuthenticationException
from utils.security import create_access_token, decode_token, extract_bearer


class TestExtractBearer:

    def test_valid_header(self):
        assert extract_bearer("Bearer abc.def.ghi") == "abc.def.ghi"
        assert extract_bearer("bearer   abc ") == "abc"

    @pytest.mark.parametrize("header", [None, "", "Basic dXNlcjpwYXNz", "Bearer ", "abc.def.ghi"])
    def test_rejected_headers(self, header):
        with pytest.raises(AuthenticationException):
            extract_bearer(header)


class TestDecodeToken:

    def test_round_trip(self):
        assert decode_token(create_access_token(42)) == 42

    def test_legacy_id_claim(self):
        token = jwt.encode({"id": "17"}, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)
        assert decode_token(token) == 17

    def test_expired(self):
        expired = datetime.now(timezone.utc) - timedelta(minutes=1)
        token = jwt.encode({"sub": "5", "exp": expired}, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)
        with pytest.raises(AuthenticationException):
            decode_token(token)

    def test_wrong_secret(self):
        token = jwt.encode({"sub": "5"}, "another-secret", algorithm=config.JWT_ALGORITHM)
        with pytest.raises(AuthenticationException):
            decode_token(token)

    def test_non_numeric_subject(self):
        token = jwt.encode({"sub": "admin"}, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)
        with pytest.raises(AuthenticationException):
            decode_token(token)

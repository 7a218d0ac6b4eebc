"""Unit tests for bearer token authentication."""

from datetime import timedelta
from unittest.mock import Mock, patch

import pytest
from fastapi import HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from survey_data.middleware.auth import (
    AuthenticatedUser,
    TokenValidator,
    authenticate,
    create_access_token,
    require_admin,
)


class TestTokenValidator:
    """Test suite for TokenValidator class."""

    @pytest.fixture
    def mock_settings(self):
        """Mock settings with a test signing secret."""
        with patch('survey_data.middleware.auth.get_settings') as mock:
            mock_settings = Mock()
            mock_settings.jwt_secret_key = "unit_test_secret"
            mock_settings.jwt_algorithm = "HS256"
            mock_settings.access_token_expire_minutes = 5
            mock.return_value = mock_settings
            yield mock_settings

    @pytest.fixture
    def validator(self, mock_settings):
        return TokenValidator()

    def test_round_trip(self, validator):
        token = validator.create_token(42, role="admin", email="ops@example.com")

        user = validator.verify_token(token)

        assert user == AuthenticatedUser(id=42, role="admin", email="ops@example.com")
        assert user.is_admin is True

    def test_claims(self, validator):
        token = validator.create_token(7)

        claims = jwt.decode(token, "unit_test_secret", algorithms=["HS256"])

        assert claims["sub"] == "7"
        assert claims["role"] == "user"
        assert "email" not in claims

    def test_expired_token_rejected(self, validator):
        token = validator.create_token(7, expires_delta=timedelta(seconds=-1))

        assert validator.verify_token(token) is None

    def test_wrong_secret_rejected(self, validator):
        token = jwt.encode({"sub": "7"}, "some_other_secret", algorithm="HS256")

        with patch('survey_data.middleware.auth.logger') as mock_logger:
            assert validator.verify_token(token) is None

            mock_logger.warning.assert_called_once()
            # The token itself is never logged
            assert token not in str(mock_logger.warning.call_args)

    def test_missing_subject_rejected(self, validator):
        token = jwt.encode({"role": "admin"}, "unit_test_secret", algorithm="HS256")

        assert validator.verify_token(token) is None

    def test_garbage_rejected(self, validator):
        assert validator.verify_token("not.a.jwt") is None


class TestAuthenticateDependency:
    """Test suite for the authenticate and require_admin dependencies."""

    @pytest.fixture
    def mock_request(self):
        """Mock FastAPI request."""
        request = Mock(spec=Request)
        request.client = Mock()
        request.client.host = "192.168.1.1"
        request.state = Mock()
        return request

    @staticmethod
    def credentials(token: str) -> HTTPAuthorizationCredentials:
        return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)

    @pytest.mark.asyncio
    async def test_missing_token_is_401(self, mock_request):
        with patch('survey_data.middleware.auth.logger') as mock_logger:
            with pytest.raises(HTTPException) as exc_info:
                await authenticate(mock_request, None)

            warning_msg = str(mock_logger.warning.call_args)
            assert "192.168.1.1" in warning_msg

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "No token provided"

    @pytest.mark.asyncio
    async def test_invalid_token_is_403(self, mock_request):
        with pytest.raises(HTTPException) as exc_info:
            await authenticate(mock_request, self.credentials("invalid"))

        assert exc_info.value.status_code == 403
        assert exc_info.value.detail == "Invalid token"

    @pytest.mark.asyncio
    async def test_valid_token_sets_request_user(self, mock_request):
        token = create_access_token(5, email="alice@example.com")

        user = await authenticate(mock_request, self.credentials(token))

        assert user.id == 5
        assert user.email == "alice@example.com"
        assert mock_request.state.user == user

    @pytest.mark.asyncio
    async def test_require_admin_rejects_users(self):
        with pytest.raises(HTTPException) as exc_info:
            await require_admin(AuthenticatedUser(id=5, role="user"))

        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_require_admin_allows_admins(self):
        admin = AuthenticatedUser(id=1, role="admin")

        assert await require_admin(admin) is admin


class TestAuthenticatedUser:

    @pytest.mark.parametrize("role,owner_id,expected", [
        ("user", 5, True),
        ("user", 6, False),
        ("user", None, False),
        ("admin", 6, True),
        ("admin", None, True),
    ])
    def test_may_access(self, role, owner_id, expected):
        assert AuthenticatedUser(id=5, role=role).may_access(owner_id) is expected

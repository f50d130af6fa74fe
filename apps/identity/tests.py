from datetime import timedelta
from unittest import mock

import jwt
from django.test import RequestFactory, SimpleTestCase

from .jwt_auth import (
    JWT_ALGORITHM, RequestIdentity, create_access_token, decode_token,
    get_identity_from_token, get_jwt_secret,
)
from .security import JWTAuth


class JWTTokenTest(SimpleTestCase):
    def test_round_trip(self):
        token = create_access_token("user-1", name="Alice")
        identity = get_identity_from_token(token)
        self.assertEqual(identity, RequestIdentity(user_id="user-1", name="Alice"))

    def test_name_falls_back_to_user_id(self):
        identity = get_identity_from_token(create_access_token("user-1"))
        self.assertEqual(identity.name, "user-1")

    def test_expired_token(self):
        token = create_access_token("user-1", expires_in=timedelta(seconds=-1))
        self.assertIsNone(decode_token(token))
        self.assertIsNone(get_identity_from_token(token))

    def test_wrong_secret(self):
        token = jwt.encode(
            {"sub": "user-1", "type": "access"},
            "some-other-secret-that-is-long-enough",
            algorithm=JWT_ALGORITHM,
        )
        self.assertIsNone(get_identity_from_token(token))

    def test_refresh_token_is_not_an_access_token(self):
        token = jwt.encode({"sub": "user-1", "type": "refresh"}, get_jwt_secret(), algorithm=JWT_ALGORITHM)
        self.assertIsNone(get_identity_from_token(token))

    def test_missing_subject(self):
        token = jwt.encode({"type": "access"}, get_jwt_secret(), algorithm=JWT_ALGORITHM)
        self.assertIsNone(get_identity_from_token(token))

    def test_garbage(self):
        self.assertIsNone(get_identity_from_token("not-a-jwt"))

    @mock.patch.dict("os.environ", {"JWT_SECRET": "shared-secret-from-the-identity-provider"})
    def test_env_secret_takes_precedence(self):
        token = jwt.encode(
            {"sub": "user-1", "type": "access"},
            "shared-secret-from-the-identity-provider",
            algorithm=JWT_ALGORITHM,
        )
        self.assertEqual(get_identity_from_token(token).user_id, "user-1")


class JWTAuthTest(SimpleTestCase):
    def setUp(self):
        self.request = RequestFactory().get("/api/tasks")

    def test_valid_token(self):
        identity = JWTAuth().authenticate(self.request, create_access_token("user-1", name="Alice"))
        self.assertEqual(identity.user_id, "user-1")

    def test_invalid_token_logged_and_rejected(self):
        with self.assertLogs("apps.identity.security", level="WARNING"):
            self.assertIsNone(JWTAuth().authenticate(self.request, "bad"))

# User value: This test validates sign-in, sign-out and route memory so interpreters resume where they left off.
import unittest
from unittest.mock import MagicMock, patch

from fastapi import HTTPException

from fakes import FakeRedis
from routes.auth import login, logout, read_session, save_route
from schemas.requests import LoginRequest, RouteUpdateRequest
from services.auth import bearer_token, require_session
from services.portal_api import PortalApiError
from services.query_cache import QueryCache
from services.session_store import SessionStore, session_owner_id


class AuthEndpointUnitTests(unittest.TestCase):
    def setUp(self):
        self.r = FakeRedis()
        self.store = SessionStore(self.r, ttl_sec=3600, cache=QueryCache(self.r, ttl_sec=60))
        self.api = MagicMock()
        self.api.login.return_value = {"data": {"token": "tok", "user": {"id": 5, "email": "i@example.com"}}}
        self.api.get_profile.return_value = {"data": {"first_name": "Ana", "service_rates": []}}
        self.patches = [
            patch("routes.auth.get_portal_api", return_value=self.api),
            patch("routes.auth.get_session_store", return_value=self.store),
            patch("services.auth.get_session_store", return_value=self.store),
        ]
        for p in self.patches:
            p.start()

    def tearDown(self):
        for p in self.patches:
            p.stop()

    def _session(self, token="tok"):
        return require_session(authorization=f"Bearer {token}")

    def test_login_stores_session_and_profile(self):
        out = login(LoginRequest(email=" I@Example.com ", password="pw"))
        self.api.login.assert_called_once_with("i@example.com", "pw")
        self.assertEqual(out.token, "tok")
        self.assertEqual(out.profile["first_name"], "Ana")
        session = self._session()
        self.assertEqual(session["owner"], session_owner_id("tok"))
        self.assertEqual(session["user"]["id"], 5)

    def test_login_survives_profile_failure(self):
        self.api.get_profile.side_effect = PortalApiError(502, "UPSTREAM_SERVER_ERROR", "Server error")
        out = login(LoginRequest(email="i@example.com", password="pw"))
        self.assertEqual(out.profile, {})
        self.assertIsNotNone(self.store.read("tok"))

    def test_login_without_token_is_502(self):
        self.api.login.return_value = {"data": {"user": {}}}
        with self.assertRaises(HTTPException) as ctx:
            login(LoginRequest(email="i@example.com", password="pw"))
        self.assertEqual(ctx.exception.status_code, 502)

    def test_missing_session_requires_login(self):
        with self.assertRaises(HTTPException) as ctx:
            self._session("unknown")
        self.assertEqual(ctx.exception.status_code, 401)
        self.assertEqual(ctx.exception.detail["error_code"], "AUTH_SESSION_NOT_FOUND")
        self.assertEqual(ctx.exception.detail["redirect"], "/login")

    def test_bearer_token_parsing(self):
        self.assertEqual(bearer_token("Bearer abc"), "abc")
        with self.assertRaises(HTTPException):
            bearer_token(None)
        with self.assertRaises(HTTPException):
            bearer_token("Basic abc")

    # User value: signing out still works when the remote API is unreachable.
    def test_logout_clears_local_session_even_if_upstream_fails(self):
        login(LoginRequest(email="i@example.com", password="pw"))
        session = self._session()
        self.api.logout.side_effect = PortalApiError(503, "UPSTREAM_UNAVAILABLE", "down")
        out = logout(session=session)
        self.assertEqual(out["redirect"], "/login")
        self.assertIsNone(self.store.read("tok"))

    def test_route_memory(self):
        login(LoginRequest(email="i@example.com", password="pw"))
        session = self._session()
        save_route(RouteUpdateRequest(route="/jobs?tab=past"), session=session)
        routes = save_route(RouteUpdateRequest(route="/job/12"), session=session)
        self.assertEqual(routes["last_list_route"], "/jobs?tab=past")
        self.assertEqual(read_session(session=session).restore_route, "/job/12")

        with self.assertRaises(HTTPException) as ctx:
            save_route(RouteUpdateRequest(route="jobs"), session=session)
        self.assertEqual(ctx.exception.detail["error_code"], "INVALID_ROUTE")


if __name__ == "__main__":
    unittest.main()

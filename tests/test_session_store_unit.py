# User value: This test keeps interpreters signed in across visits and makes logout forget everything.
import unittest

from services.query_cache import QueryCache
from services.session_store import (
    SessionStore,
    SessionStoreUnavailable,
    is_restorable_route,
    session_owner_id,
)
from fakes import FakeRedis


class SessionStoreUnitTests(unittest.TestCase):
    def setUp(self):
        self.r = FakeRedis()
        self.cache = QueryCache(self.r, ttl_sec=60)
        self.store = SessionStore(self.r, ttl_sec=3600, cache=self.cache)

    def test_login_then_read(self):
        self.store.login("tok", {"id": 7, "email": "i@example.com"}, {"first_name": "Ana"})
        session = self.store.read("tok")
        self.assertEqual(session["user"]["id"], 7)
        self.assertEqual(session["profile"]["first_name"], "Ana")
        self.assertIsNone(self.store.read("other"))
        self.assertIsNone(self.store.read(""))

    def test_token_is_not_stored_in_key(self):
        self.store.login("secret-token", {"id": 1})
        self.assertTrue(all("secret-token" not in key for key in self.r.data))
        self.assertEqual(self.r.ttls[f"portal:session:{session_owner_id('secret-token')}:data"], 3600)

    def test_update_profile(self):
        self.store.login("tok", {"id": 1})
        self.store.update_profile("tok", {"hourly_rate": 40})
        self.assertEqual(self.store.read("tok")["profile"], {"hourly_rate": 40})
        self.assertIsNone(self.store.update_profile("missing", {}))

    # User value: logout drops the session, remembered routes and cached job lists together.
    def test_logout_clears_session_routes_and_cache(self):
        self.store.login("tok", {"id": 1})
        self.store.save_route("tok", "/jobs?tab=past")
        self.cache.get_or_fetch(session_owner_id("tok"), "my_jobs", None, lambda: [1])
        self.assertEqual(len(self.r.data), 4)

        self.store.logout("tok")
        self.assertEqual(self.r.data, {})
        self.assertIsNone(self.store.read("tok"))

    def test_job_detail_route_does_not_replace_list_route(self):
        self.store.login("tok", {"id": 1})
        self.store.save_route("tok", "/jobs?tab=upcoming")
        self.store.save_route("tok", "/job/42")
        routes = self.store.get_routes("tok")
        self.assertEqual(routes["current_route"], "/job/42")
        self.assertEqual(routes["last_list_route"], "/jobs?tab=upcoming")
        self.assertEqual(routes["restore_route"], "/job/42")

    def test_restorable_routes(self):
        self.assertTrue(is_restorable_route("/jobs"))
        self.assertFalse(is_restorable_route("/"))
        self.assertFalse(is_restorable_route("/dashboard"))
        self.assertFalse(is_restorable_route("/login?next=/jobs"))
        self.assertFalse(is_restorable_route("/apply/step-2"))
        self.assertFalse(is_restorable_route(None))
        self.assertFalse(is_restorable_route("jobs"))

    def test_redis_errors_raise_unavailable(self):
        store = SessionStore(FakeRedis(fail=True), ttl_sec=60)
        with self.assertLogs("portal.session", level="ERROR"):
            with self.assertRaises(SessionStoreUnavailable):
                store.read("tok")


if __name__ == "__main__":
    unittest.main()

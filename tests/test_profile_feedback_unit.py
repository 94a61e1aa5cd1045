# User value: This test makes sure profile changes go out for approval and feedback is checked before sending.
import asyncio
import io
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from fastapi import HTTPException
from starlette.datastructures import FormData, Headers, UploadFile

from fakes import FakeRedis
from routes.feedback import list_feedback, submit_feedback
from routes.profile import cancel_pending_update, pending_update, read_profile, submit_profile_update
from schemas.requests import FeedbackRequest
from services.query_cache import QueryCache
from services.session_store import SessionStore

SESSION = {"token": "tok", "owner": "owner-1", "user": {"id": 5}, "profile": {}}


def _form_request(items):
    request = MagicMock()
    request.form = AsyncMock(return_value=FormData(items))
    return request


class ProfileEndpointUnitTests(unittest.TestCase):
    def setUp(self):
        self.r = FakeRedis()
        self.store = SessionStore(self.r, ttl_sec=3600, cache=QueryCache(self.r, ttl_sec=60))
        self.store.login("tok", {"id": 5}, {})
        self.api = MagicMock()
        self.patches = [
            patch("routes.profile.get_portal_api", return_value=self.api),
            patch("routes.profile.get_session_store", return_value=self.store),
        ]
        for p in self.patches:
            p.start()

    def tearDown(self):
        for p in self.patches:
            p.stop()

    # User value: opening the profile also refreshes the rates used in earnings estimates.
    def test_read_profile_refreshes_session_copy(self):
        self.api.get_profile.return_value = {"data": {"first_name": "Ana", "service_rates": [{"rate_amount": 50}]}}
        out = read_profile(session=SESSION)
        self.assertEqual(out["first_name"], "Ana")
        self.assertEqual(self.store.read("tok")["profile"]["service_rates"], [{"rate_amount": 50}])

    def test_update_sends_fields_and_files_for_approval(self):
        self.api.submit_profile_update.return_value = {"success": True, "data": {"id": 3, "status": "pending"}}
        photo = UploadFile(
            file=io.BytesIO(b"jpeg-bytes"),
            filename="me.jpg",
            headers=Headers({"content-type": "image/jpeg"}),
        )
        request = _form_request(
            [("first_name", "Ana"), ("phone", ""), ("date_of_birth", "1990-03-04T00:00:00Z"), ("profile_photo", photo)]
        )

        out = asyncio.run(submit_profile_update(request, session=SESSION))

        self.assertEqual(out, {"status": "pending_approval", "data": {"id": 3, "status": "pending"}})
        token, fields, files = self.api.submit_profile_update.call_args.args
        self.assertEqual(token, "tok")
        self.assertEqual(fields, {"first_name": "Ana", "date_of_birth": "1990-03-04"})
        self.assertEqual(files, [("profile_photo", ("me.jpg", b"jpeg-bytes", "image/jpeg"))])

    def test_empty_update_is_rejected(self):
        request = _form_request([("first_name", "  ")])
        with self.assertRaises(HTTPException) as ctx:
            asyncio.run(submit_profile_update(request, session=SESSION))
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(ctx.exception.detail["error_code"], "PROFILE_UPDATE_EMPTY")
        self.api.submit_profile_update.assert_not_called()

    def test_pending_update_read_and_cancel(self):
        self.api.get_pending_profile_update.return_value = {"success": True, "data": None}
        self.assertEqual(pending_update(session=SESSION), {"pending_update": None})

        self.api.get_pending_profile_update.return_value = {"data": {"id": 3, "changes": {"first_name": "Ana"}}}
        self.assertEqual(pending_update(session=SESSION)["pending_update"]["id"], 3)

        self.assertEqual(cancel_pending_update(session=SESSION), {"status": "cancelled"})
        self.api.cancel_pending_profile_update.assert_called_once_with("tok")


class FeedbackEndpointUnitTests(unittest.TestCase):
    def setUp(self):
        self.api = MagicMock()
        self.patch = patch("routes.feedback.get_portal_api", return_value=self.api)
        self.patch.start()

    def tearDown(self):
        self.patch.stop()

    def test_list_feedback(self):
        self.api.list_feedback.return_value = {"data": [{"id": 1, "rating": 5}]}
        self.assertEqual(list_feedback(session=SESSION), {"feedback": [{"id": 1, "rating": 5}]})
        self.api.list_feedback.return_value = {"data": {"unexpected": True}}
        self.assertEqual(list_feedback(session=SESSION), {"feedback": []})

    def test_submit_feedback(self):
        self.api.submit_feedback.return_value = {"success": True, "data": {"id": 9}}
        out = submit_feedback(FeedbackRequest(category="bug_report", rating=2, comment=" Timer froze "), session=SESSION)
        self.assertEqual(out, {"status": "submitted", "data": {"id": 9}})
        self.api.submit_feedback.assert_called_once_with("tok", "bug_report", 2, "Timer froze")

    def test_feedback_without_rating_is_not_sent(self):
        with self.assertRaises(HTTPException) as ctx:
            submit_feedback(FeedbackRequest(comment="hello"), session=SESSION)
        self.assertEqual(ctx.exception.detail["error_message"], "Please select a rating")
        self.api.submit_feedback.assert_not_called()


if __name__ == "__main__":
    unittest.main()

# User value: This test keeps password, sign-up and feedback rules identical to what the screens promise.
import unittest
from unittest.mock import MagicMock, patch

from fastapi import HTTPException

from fakes import FakeRedis
from routes.auth import change_password, complete_signup, forgot_password, reset_password, validate_signup_token
from schemas.requests import (
    ChangePasswordRequest,
    CompleteSignupRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    SignupTokenRequest,
)
from services.account import password_problems, profile_update_fields, validate_feedback, validate_new_password
from services.auth import require_session
from services.query_cache import QueryCache
from services.session_store import SessionStore


class AccountRulesUnitTests(unittest.TestCase):
    def test_password_problems(self):
        self.assertEqual(password_problems("Abcdef1!"), [])
        self.assertEqual(password_problems("abc"), ["length", "uppercase", "number", "special"])
        self.assertEqual(password_problems("Abcdefg1"), ["special"])
        self.assertEqual(password_problems("Abcdefg1", require_special=False), [])

    def test_new_password_rules(self):
        self.assertEqual(validate_new_password("Abcdef1!", "Abcdef1!"), "Abcdef1!")

        with self.assertRaises(HTTPException) as ctx:
            validate_new_password("", "")
        self.assertEqual(ctx.exception.detail["error_message"], "Password is required")

        with self.assertRaises(HTTPException) as ctx:
            validate_new_password("Ab1!", "Ab1!")
        self.assertEqual(ctx.exception.detail["error_message"], "Password must be at least 8 characters long")

        with self.assertRaises(HTTPException) as ctx:
            validate_new_password("Abcdefg1", "Abcdefg1")
        self.assertEqual(ctx.exception.detail["error_code"], "PASSWORD_INVALID")
        self.assertIn("special character", ctx.exception.detail["error_message"])

    # User value: invite links accept a password without a special character, as the setup screen says.
    def test_signup_password_does_not_need_special_character(self):
        self.assertEqual(validate_new_password("Abcdefg1", "Abcdefg1", require_special=False), "Abcdefg1")

    def test_confirmation_must_match(self):
        with self.assertRaises(HTTPException) as ctx:
            validate_new_password("Abcdef1!", "")
        self.assertEqual(ctx.exception.detail["error_message"], "Please confirm your password")
        self.assertEqual(ctx.exception.detail["field"], "confirm_password")

        with self.assertRaises(HTTPException) as ctx:
            validate_new_password("Abcdef1!", "Abcdef1?")
        self.assertEqual(ctx.exception.detail["error_code"], "PASSWORD_MISMATCH")
        self.assertEqual(ctx.exception.detail["error_message"], "Passwords do not match")

    def test_new_password_must_differ_from_current(self):
        with self.assertRaises(HTTPException) as ctx:
            validate_new_password("Abcdef1!", "Abcdef1!", current="Abcdef1!", field="new_password")
        self.assertEqual(ctx.exception.detail["field"], "new_password")
        self.assertEqual(
            ctx.exception.detail["error_message"], "New password must be different from your current password"
        )

    def test_feedback_rules(self):
        self.assertEqual(
            validate_feedback(None, 4, "  Great app "),
            {"category": "general", "rating": 4, "comment": "Great app"},
        )
        with self.assertRaises(HTTPException) as ctx:
            validate_feedback("bug_report", 0, "broken")
        self.assertEqual(ctx.exception.detail["error_message"], "Please select a rating")
        with self.assertRaises(HTTPException) as ctx:
            validate_feedback("bug_report", 6, "broken")
        self.assertEqual(ctx.exception.detail["field"], "rating")
        with self.assertRaises(HTTPException) as ctx:
            validate_feedback("suggestion", 3, "   ")
        self.assertEqual(ctx.exception.detail["error_message"], "Please enter a comment")
        with self.assertRaises(HTTPException) as ctx:
            validate_feedback("complaint", 3, "hi")
        self.assertEqual(ctx.exception.detail["field"], "category")

    def test_profile_update_fields_drop_blanks_and_normalize_birth_date(self):
        out = profile_update_fields(
            {"first_name": "Ana", "last_name": "  ", "phone": None, "date_of_birth": "1990-03-04T00:00:00.000Z"}
        )
        self.assertEqual(out, {"first_name": "Ana", "date_of_birth": "1990-03-04"})


class AccountEndpointUnitTests(unittest.TestCase):
    def setUp(self):
        self.r = FakeRedis()
        self.store = SessionStore(self.r, ttl_sec=3600, cache=QueryCache(self.r, ttl_sec=60))
        self.store.login("tok", {"id": 5, "email": "i@example.com"}, {})
        self.api = MagicMock()
        self.patches = [
            patch("routes.auth.get_portal_api", return_value=self.api),
            patch("services.auth.get_session_store", return_value=self.store),
        ]
        for p in self.patches:
            p.start()

    def tearDown(self):
        for p in self.patches:
            p.stop()

    def test_change_password_sends_current_and_new(self):
        session = require_session(authorization="Bearer tok")
        payload = ChangePasswordRequest(
            current_password="Old1!pass", new_password="New1!pass", confirm_password="New1!pass"
        )
        out = change_password(payload, session=session)
        self.assertEqual(out, {"status": "password_changed"})
        self.api.change_password.assert_called_once_with("tok", "Old1!pass", "New1!pass")

    def test_weak_new_password_never_reaches_server(self):
        session = require_session(authorization="Bearer tok")
        payload = ChangePasswordRequest(current_password="Old1!pass", new_password="weak", confirm_password="weak")
        with self.assertRaises(HTTPException) as ctx:
            change_password(payload, session=session)
        self.assertEqual(ctx.exception.status_code, 400)
        self.api.change_password.assert_not_called()

    def test_forgot_password_normalizes_email(self):
        out = forgot_password(ForgotPasswordRequest(email=" I@Example.com "))
        self.assertEqual(out["status"], "reset_email_sent")
        self.api.forgot_password.assert_called_once_with("i@example.com")

    def test_reset_password_redirects_to_login(self):
        out = reset_password(ResetPasswordRequest(token="reset", password="Abcdef1!", confirm_password="Abcdef1!"))
        self.assertEqual(out, {"status": "password_reset", "redirect": "/login"})
        self.api.reset_password.assert_called_once_with("reset", "Abcdef1!")

    def test_signup_flow(self):
        self.api.validate_signup_token.return_value = {"success": True, "data": {"user": {"email": "new@example.com"}}}
        out = validate_signup_token(SignupTokenRequest(token="invite"))
        self.assertEqual(out, {"valid": True, "user": {"email": "new@example.com"}})

        out = complete_signup(CompleteSignupRequest(token="invite", password="Abcdefg1", confirm_password="Abcdefg1"))
        self.assertEqual(out["redirect"], "/login")
        self.api.complete_signup.assert_called_once_with("invite", "Abcdefg1")

    def test_signup_mismatch_is_rejected_locally(self):
        with self.assertRaises(HTTPException) as ctx:
            complete_signup(CompleteSignupRequest(token="invite", password="Abcdefg1", confirm_password="Abcdefg2"))
        self.assertEqual(ctx.exception.detail["error_code"], "PASSWORD_MISMATCH")
        self.api.complete_signup.assert_not_called()


if __name__ == "__main__":
    unittest.main()

# User value: This test verifies feature-flag safety so operators can roll portal behavior out predictably.
import importlib
import os
import unittest
from unittest.mock import patch

import startup_env


class FeatureFlagsUnitTests(unittest.TestCase):
    # User value: supports setUp so users get deterministic behavior regardless of local env leftovers.
    def setUp(self):
        self._old = os.environ.get("FEATURE_ACCEPT_RESTRICTIONS")

    # User value: supports tearDown so users get deterministic behavior regardless of local env leftovers.
    def tearDown(self):
        if self._old is None:
            os.environ.pop("FEATURE_ACCEPT_RESTRICTIONS", None)
        else:
            os.environ["FEATURE_ACCEPT_RESTRICTIONS"] = self._old
        import services.feature_flags as ff

        importlib.reload(ff)

    # User value: confirms the overdue-report gate is on unless explicitly turned off.
    def test_accept_restriction_enabled_by_default(self):
        os.environ.pop("FEATURE_ACCEPT_RESTRICTIONS", None)
        import services.feature_flags as ff

        ff = importlib.reload(ff)
        self.assertTrue(ff.is_accept_restriction_enabled())

    def test_accept_restriction_disabled(self):
        os.environ["FEATURE_ACCEPT_RESTRICTIONS"] = "off"
        import services.feature_flags as ff

        ff = importlib.reload(ff)
        self.assertFalse(ff.is_accept_restriction_enabled())

    # User value: prevents bad deploy config from silently changing portal behavior.
    def test_validate_bool_flag_env_rejects_invalid(self):
        errors = []
        os.environ["FEATURE_ACCEPT_RESTRICTIONS"] = "maybe"
        startup_env._validate_bool_flag_env("FEATURE_ACCEPT_RESTRICTIONS", errors)
        self.assertTrue(errors)
        self.assertIn("FEATURE_ACCEPT_RESTRICTIONS must be one of", errors[0])

    def test_startup_validation_reports_every_problem(self):
        env = {
            "PORTAL_API_BASE_URL": "ftp://api",
            "REDIS_URL": "localhost:6379",
            "CORS_ALLOW_ORIGINS": "*",
            "POLL_INTERVAL_SEC": "0",
        }
        with patch.dict(os.environ, env):
            with self.assertLogs("portal.startup", level="ERROR"):
                with self.assertRaises(RuntimeError) as ctx:
                    startup_env.validate_startup_env()
        message = str(ctx.exception)
        self.assertIn("PORTAL_API_BASE_URL must start with http:// or https://", message)
        self.assertIn("REDIS_URL must start with redis://", message)
        self.assertIn("must not contain '*'", message)
        self.assertIn("POLL_INTERVAL_SEC must be positive", message)

    def test_startup_validation_accepts_good_env(self):
        env = {
            "PORTAL_API_BASE_URL": "https://api.example.com/api",
            "REDIS_URL": "redis://localhost:6379/0",
            "CORS_ALLOW_ORIGINS": "https://portal.example.com",
            "PORTAL_TIMEZONE": "America/Chicago",
            "FEATURE_ACCEPT_RESTRICTIONS": "1",
        }
        with patch.dict(os.environ, env):
            startup_env.validate_startup_env()


if __name__ == "__main__":
    unittest.main()

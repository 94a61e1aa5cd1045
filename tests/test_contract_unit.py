# User value: This test keeps the published status vocabulary and earnings screen stable for every client.
import unittest
from unittest.mock import MagicMock, patch

from fastapi import HTTPException

from fakes import FakeRedis
from routes.contract import job_status_contract
from routes.earnings import earnings
from schemas.job_contract import BUCKETS, JOB_STATUSES
from services.query_cache import QueryCache

SESSION = {"token": "tok", "owner": "owner-1", "user": {}, "profile": {}}


class ContractUnitTests(unittest.TestCase):
    def test_contract_lists_statuses_buckets_and_thresholds(self):
        out = job_status_contract()
        self.assertEqual(out["job_statuses"], list(JOB_STATUSES))
        self.assertEqual(out["buckets"], list(BUCKETS))
        self.assertEqual(set(out["job_status_labels"]), set(JOB_STATUSES))
        self.assertEqual(out["thresholds"]["report_overdue_hours"], 24)
        self.assertEqual(out["thresholds"]["federal_mileage_cap"], 0.72)
        self.assertIn("live_streams_enabled", out["capabilities"])

    def test_earnings_rejects_unknown_period(self):
        with self.assertRaises(HTTPException) as ctx:
            earnings(period="decade", session=SESSION)
        self.assertEqual(ctx.exception.detail["error_code"], "INVALID_PERIOD")

    # User value: paid jobs show what was actually paid, not the estimate.
    def test_earnings_prefers_actual_payment(self):
        api = MagicMock()
        api.get_earnings.return_value = {
            "data": {
                "summary": {"total_earnings": 300, "completed_jobs": 2},
                "breakdown": [
                    {"id": 1, "status": "interpreter_paid", "interpreter_paid_amount": 180, "earnings": 150},
                    {"id": 2, "status": "billed", "earnings": 120},
                ],
            }
        }
        with patch("routes.earnings.get_portal_api", return_value=api):
            with patch("routes.earnings.get_query_cache", return_value=QueryCache(FakeRedis(), ttl_sec=60)):
                out = earnings(period="year", session=SESSION)
        api.get_earnings.assert_called_once_with("tok", "year")
        self.assertEqual(out["breakdown"][0]["display_amount"], 180.0)
        self.assertTrue(out["breakdown"][0]["is_actual_payment"])
        self.assertEqual(out["summary"]["average_per_job_text"], "$150.00")


if __name__ == "__main__":
    unittest.main()

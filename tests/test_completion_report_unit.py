# User value: This test catches incomplete completion reports before they are sent to the server.
import unittest
from datetime import date

from fastapi import HTTPException

from services.completion_report import (
    parse_clock_minutes,
    validate_completion_report,
    validate_transportation_report,
)

TODAY = date(2026, 3, 10)


def _report(**overrides) -> dict:
    fields = {
        "email": "interp@example.com",
        "order_number": "ORD-1",
        "result": "Completed",
        "file_status": "one_time",
        "start_time": "09:00 AM",
        "end_time": "10:30 AM",
        "notes": " smooth ",
    }
    fields.update(overrides)
    return fields


def _follow_up(**overrides) -> dict:
    fields = _report(
        result="Completed with follow up",
        follow_up_date="2026-03-12",
        follow_up_time="14:00",
        follow_up_use_same_location="yes",
        follow_up_available="no",
    )
    fields.update(overrides)
    return fields


class CompletionReportUnitTests(unittest.TestCase):
    def _error(self, fields) -> dict:
        with self.assertRaises(HTTPException) as ctx:
            validate_completion_report(fields, today=TODAY)
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(ctx.exception.detail["error_code"], "REPORT_VALIDATION_FAILED")
        return ctx.exception.detail

    def test_parse_clock_minutes(self):
        self.assertEqual(parse_clock_minutes("09:30 PM"), 21 * 60 + 30)
        self.assertEqual(parse_clock_minutes("12:05 AM"), 5)
        self.assertEqual(parse_clock_minutes("21:30"), 21 * 60 + 30)
        self.assertIsNone(parse_clock_minutes("13:00 PM"))
        self.assertIsNone(parse_clock_minutes("24:00"))
        self.assertIsNone(parse_clock_minutes(""))

    def test_valid_report_is_normalized(self):
        out = validate_completion_report(_report(), today=TODAY)
        self.assertEqual(out["notes"], "smooth")
        self.assertNotIn("follow_up_date", out)

    def test_required_fields_in_form_order(self):
        self.assertEqual(self._error(_report(email=""))["error_message"], "Email and order number are required")
        self.assertEqual(self._error(_report(result=""))["error_message"], "Please select a result")
        self.assertEqual(self._error(_report(file_status=""))["error_message"], "Please select a file status")
        self.assertEqual(self._error(_report(start_time=""))["error_message"], "Please select a start time")
        self.assertEqual(self._error(_report(end_time=""))["error_message"], "Please select an end time")

    # User value: a report where the job ends before it starts is rejected with a clear message.
    def test_end_must_follow_start(self):
        detail = self._error(_report(start_time="10:00", end_time="09:59"))
        self.assertEqual(detail["error_message"], "End time must be after start time")
        self.assertEqual(detail["field"], "end_time")

    def test_unknown_result_rejected(self):
        self.assertIn("Unknown result", self._error(_report(result="Done"))["error_message"])

    def test_follow_up_happy_path(self):
        out = validate_completion_report(_follow_up(), today=TODAY)
        self.assertEqual(out["follow_up_date"], "2026-03-12")
        self.assertEqual(out["follow_up_use_same_location"], "Yes")
        self.assertEqual(out["follow_up_available"], "No")

    def test_follow_up_date_rules(self):
        self.assertEqual(self._error(_follow_up(follow_up_date=None))["error_message"], "Follow-up date is required")
        self.assertEqual(
            self._error(_follow_up(follow_up_date="2026-03-09"))["error_message"],
            "Follow-up date cannot be in the past",
        )
        validate_completion_report(_follow_up(follow_up_date="2026-03-10"), today=TODAY)

    def test_follow_up_location_and_availability(self):
        self.assertEqual(self._error(_follow_up(follow_up_time=""))["error_message"], "Follow-up time is required")
        self.assertEqual(
            self._error(_follow_up(follow_up_use_same_location=None))["error_message"],
            "Please indicate if the follow-up is at the same location",
        )
        self.assertEqual(
            self._error(_follow_up(follow_up_use_same_location="no", follow_up_street="1 Main"))["error_message"],
            "Please provide complete follow-up location details",
        )
        self.assertEqual(
            self._error(_follow_up(follow_up_available=None))["error_message"],
            "Please indicate if you are available for the follow-up",
        )
        out = validate_completion_report(
            _follow_up(
                follow_up_use_same_location="no",
                follow_up_street="1 Main",
                follow_up_city="Austin",
                follow_up_state="TX",
                follow_up_zip="78701",
            ),
            today=TODAY,
        )
        self.assertEqual(out["follow_up_city"], "Austin")

    def test_transportation_report(self):
        out = validate_transportation_report(
            {"actual_pickup_time": "08:00", "actual_dropoff_time": "08:45", "actual_wait_time": "10"}
        )
        self.assertEqual(out["actual_wait_time"], 10)

        with self.assertRaises(HTTPException) as ctx:
            validate_transportation_report({"actual_pickup_time": "09:00", "actual_dropoff_time": "08:00"})
        self.assertEqual(ctx.exception.detail["error_message"], "Drop-off time must be after pickup time")

        with self.assertRaises(HTTPException) as ctx:
            validate_transportation_report(
                {"actual_pickup_time": "08:00", "actual_dropoff_time": "09:00", "actual_wait_time": "-3"}
            )
        self.assertEqual(ctx.exception.detail["field"], "actual_wait_time")


if __name__ == "__main__":
    unittest.main()

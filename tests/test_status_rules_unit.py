# User value: This test keeps job buttons in step with job status so interpreters never see dead actions.
import unittest

from utils.status_rules import allowed_actions, is_action_allowed


class StatusRulesUnitTests(unittest.TestCase):
    def test_open_job_can_be_accepted_or_declined(self):
        job = {"id": 1, "status": "finding_interpreter", "assignment_status": "available"}
        self.assertEqual(
            allowed_actions(job),
            ["accept", "decline", "indicate-available", "indicate-not-available"],
        )

    def test_job_already_taken_cannot_be_accepted(self):
        job = {"id": 1, "status": "finding_interpreter", "assignment_status": "declined"}
        self.assertFalse(is_action_allowed(job, "accept"))
        self.assertTrue(is_action_allowed(job, "indicate-available"))

    def test_start_end_and_report(self):
        self.assertTrue(is_action_allowed({"status": "Reminders_Sent"}, "start"))
        self.assertFalse(is_action_allowed({"status": "assigned"}, "end"))
        self.assertTrue(is_action_allowed({"status": "in_progress"}, "end"))
        self.assertTrue(is_action_allowed({"status": "completed"}, "completion-report"))
        self.assertFalse(
            is_action_allowed({"status": "completed", "completion_report_submitted": "true"}, "completion-report")
        )

    def test_confirm_requires_pending_confirmation(self):
        self.assertTrue(is_action_allowed({"status": "assigned", "assignment_status": "pending_confirmation"}, "confirm-availability"))
        self.assertFalse(is_action_allowed({"status": "assigned", "assignment_status": "accepted"}, "confirm-availability"))

    def test_unknown_action_defers_to_server(self):
        with self.assertLogs("portal.status_rules", level="WARNING"):
            self.assertTrue(is_action_allowed({"id": 3, "status": "closed"}, "teleport"))


if __name__ == "__main__":
    unittest.main()

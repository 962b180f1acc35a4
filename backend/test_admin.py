import unittest
from datetime import datetime

from database import ActionLog, Rating, Task, User
from fixtures import DatabaseTestCase, make_application, make_task, make_user
from marketplace.admin import AdminService
from marketplace.errors import InvalidStateError, NotFoundError
from marketplace.ratings import RatingService


class AdminServiceTests(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.service = AdminService()
        self.admin = make_user(self.db, user_type="admin")
        self.client = make_user(self.db, user_type="client")
        self.freelancer = make_user(self.db)

    def test_ban_and_unban_are_logged(self):
        banned = self.service.ban_user(self.db, self.freelancer.id, self.admin.id)
        self.assertTrue(banned["is_banned"])
        unbanned = self.service.unban_user(self.db, self.freelancer.id, self.admin.id)
        self.assertFalse(unbanned["is_banned"])

        logs = self.service.logs(self.db)
        self.assertCountEqual([entry["action"] for entry in logs], ["BAN_USER", "UNBAN_USER"])
        self.assertEqual(logs[0]["user"]["email"], self.admin.email)

    def test_admins_cannot_be_banned(self):
        other_admin = make_user(self.db, user_type="admin")
        with self.assertRaises(InvalidStateError):
            self.service.ban_user(self.db, other_admin.id, self.admin.id)
        with self.assertRaises(NotFoundError):
            self.service.ban_user(self.db, "ghost", self.admin.id)

    def test_list_users(self):
        rows = self.service.list_users(self.db)
        self.assertEqual(len(rows), 3)
        self.assertIn("email", rows[0])

    def test_delete_task_any_status(self):
        task = make_task(self.db, self.client, ["React"], status="in_progress")
        make_application(self.db, task, self.freelancer)

        self.service.delete_task(self.db, task.id, self.admin.id)

        self.assertEqual(self.db.query(Task).count(), 0)
        self.assertEqual(
            self.db.query(ActionLog).filter(ActionLog.action == "ADMIN_TASK_DELETE").one().target_id,
            task.id,
        )

    def test_delete_rating_recomputes_average(self):
        ratings = RatingService()
        other_client = make_user(self.db, user_type="client")
        ratings.rate(self.db, self.client.id, self.freelancer.id, 5)
        low = ratings.rate(self.db, other_client.id, self.freelancer.id, 1)

        self.service.delete_rating(self.db, low["id"], self.admin.id)

        freelancer = self.db.query(User).filter(User.id == self.freelancer.id).one()
        self.assertEqual(freelancer.rating, 5.0)
        self.assertEqual(freelancer.completed_jobs, 1)
        self.assertEqual(self.db.query(Rating).count(), 1)

        self.service.delete_rating(self.db, self.db.query(Rating).one().id, self.admin.id)
        freelancer = self.db.query(User).filter(User.id == self.freelancer.id).one()
        self.assertIsNone(freelancer.rating)
        self.assertEqual(freelancer.completed_jobs, 0)

    def test_analytics(self):
        make_task(self.db, self.client, ["React"])
        make_task(self.db, self.client, ["React"], status="in_progress")
        make_user(self.db, created_at=datetime(2025, 1, 15))

        data = self.service.analytics(self.db, now=datetime(2025, 3, 10))

        self.assertEqual(data["total_users"], 4)
        self.assertEqual(data["total_tasks"], 2)
        self.assertEqual(data["user_breakdown"], {"freelancers": 2, "clients": 1, "admins": 1})
        self.assertCountEqual(
            data["task_status_data"],
            [{"name": "Open", "value": 1}, {"name": "In progress", "value": 1}],
        )
        growth = data["user_growth_data"]
        self.assertEqual([point["name"] for point in growth], ["Oct", "Nov", "Dec", "Jan", "Feb", "Mar"])
        self.assertEqual(growth[3]["users"], 1)


if __name__ == "__main__":
    unittest.main()

import unittest
from unittest import mock

import httpx

from database import ActionLog, Message, Notification, Task, TaskRequest, User
from fixtures import DatabaseTestCase, make_task, make_user
from marketplace.applications import ApplicationService
from marketplace.chat import ChatService
from marketplace.errors import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
)
from marketplace.notifier import Notifier
from marketplace.profiles import ProfileService
from marketplace.ratings import RatingService
from marketplace.skills import PREDETERMINED_SKILLS, list_skills, seed_skills
from marketplace.task_requests import TaskRequestService
from marketplace.tasks import TaskService, fetch_similar_tasks


class ApplicationWorkflowTests(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.service = ApplicationService(notifier=self.notifier)
        self.client = make_user(self.db, user_type="client")
        self.freelancer = make_user(self.db, skills=["React"])
        self.task = make_task(self.db, self.client, ["React"])

    def test_apply_notifies_client_and_rejects_duplicates(self):
        application = self.service.apply(self.db, self.freelancer.id, self.task.id, "I can do this")
        self.assertEqual(application["status"], "pending")
        note = self.db.query(Notification).filter(Notification.user_id == self.client.id).one()
        self.assertEqual(note.type, "APPLICATION_RECEIVED")
        self.assertEqual(note.related_id, application["id"])

        with self.assertRaises(ConflictError):
            self.service.apply(self.db, self.freelancer.id, self.task.id)

    def test_apply_requires_open_task(self):
        closed = make_task(self.db, self.client, ["React"], status="completed")
        with self.assertRaises(ForbiddenError):
            self.service.apply(self.db, self.freelancer.id, closed.id)
        with self.assertRaises(NotFoundError):
            self.service.apply(self.db, self.freelancer.id, "missing")

    def test_only_owner_sees_and_decides_applications(self):
        application = self.service.apply(self.db, self.freelancer.id, self.task.id)
        stranger = make_user(self.db, user_type="client")

        with self.assertRaises(ForbiddenError):
            self.service.list_for_task(self.db, self.task.id, stranger.id)
        with self.assertRaises(ForbiddenError):
            self.service.update_status(self.db, application["id"], stranger.id, "accepted")

        rows = self.service.list_for_task(self.db, self.task.id, self.client.id)
        self.assertEqual(rows[0]["freelancer"]["id"], self.freelancer.id)

        declined = self.service.update_status(self.db, application["id"], self.client.id, "rejected")
        self.assertEqual(declined["status"], "rejected")
        types = {n.type for n in self.db.query(Notification).filter(Notification.user_id == self.freelancer.id)}
        self.assertEqual(types, {"APPLICATION_DECLINED"})

        with self.assertRaises(InvalidInputError):
            self.service.update_status(self.db, application["id"], self.client.id, "maybe")

    def test_list_for_freelancer_embeds_task_and_client(self):
        self.service.apply(self.db, self.freelancer.id, self.task.id)
        rows = self.service.list_for_freelancer(self.db, self.freelancer.id)
        self.assertEqual(rows[0]["task"]["id"], self.task.id)
        self.assertEqual(rows[0]["task"]["client"]["id"], self.client.id)

    def test_assign_starts_work_and_feeds_recommendations(self):
        application = self.service.apply(self.db, self.freelancer.id, self.task.id)

        result = self.service.assign(self.db, application["id"], self.client.id)

        self.assertEqual(result["task"]["status"], "in_progress")
        self.assertEqual(result["application"]["status"], "accepted")
        self.assertEqual(result["freelancer_id"], self.freelancer.id)
        system = self.db.query(Message).filter(Message.is_system.is_(True)).one()
        self.assertIn(self.task.title, system.content)

        new_task = make_task(self.db, self.client, ["React"])
        similar = fetch_similar_tasks(self.db, new_task)
        self.assertEqual(similar[0].application_freelancer_ids, (self.freelancer.id,))
        ranked = TaskService().recommend_freelancers(self.db, new_task.id)
        self.assertEqual(ranked[0]["id"], self.freelancer.id)
        self.assertGreater(ranked[0]["score"], 2.0)


class TaskRequestWorkflowTests(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.service = TaskRequestService(notifier=self.notifier)
        self.client = make_user(self.db, user_type="client")
        self.freelancer = make_user(self.db)
        self.task = make_task(self.db, self.client, ["React"])

    def _task_status(self):
        return self.db.query(Task).filter(Task.id == self.task.id).one().status

    def test_create_moves_task_to_pending(self):
        request = self.service.create(self.db, self.client.id, self.task.id, self.freelancer.id)
        self.assertEqual(request["status"], "pending")
        self.assertEqual(self._task_status(), "pending")
        self.assertEqual(
            self.db.query(Notification).filter(Notification.user_id == self.freelancer.id).one().type,
            "REQUEST_RECEIVED",
        )
        pending = self.service.list_pending_for_freelancer(self.db, self.freelancer.id)
        self.assertEqual([r["id"] for r in pending], [request["id"]])

    def test_create_validations(self):
        other = make_user(self.db, user_type="client")
        with self.assertRaises(ForbiddenError):
            self.service.create(self.db, other.id, self.task.id, self.freelancer.id)
        with self.assertRaises(InvalidInputError):
            self.service.create(self.db, self.client.id, self.task.id, self.client.id)
        with self.assertRaises(NotFoundError):
            self.service.create(self.db, self.client.id, self.task.id, "ghost")
        with self.assertRaises(NotFoundError):
            self.service.create(self.db, self.client.id, "missing", self.freelancer.id)

        self.service.create(self.db, self.client.id, self.task.id, self.freelancer.id)
        with self.assertRaises(InvalidStateError):
            self.service.create(self.db, self.client.id, self.task.id, self.freelancer.id)

    def test_accept_starts_work_and_opens_chat(self):
        request = self.service.create(self.db, self.client.id, self.task.id, self.freelancer.id)

        result = self.service.accept(self.db, request["id"], self.freelancer.id)

        self.assertEqual(result["request"]["status"], "accepted")
        self.assertEqual(result["chat"]["partner_id"], self.client.id)
        self.assertEqual(self._task_status(), "in_progress")
        self.assertEqual(self.db.query(Message).count(), 1)
        with self.assertRaises(InvalidStateError):
            self.service.reject(self.db, request["id"], self.freelancer.id)

    def test_accept_by_someone_else_is_forbidden(self):
        request = self.service.create(self.db, self.client.id, self.task.id, self.freelancer.id)
        intruder = make_user(self.db)
        with self.assertRaises(ForbiddenError):
            self.service.accept(self.db, request["id"], intruder.id)

    def test_reject_reopens_task(self):
        request = self.service.create(self.db, self.client.id, self.task.id, self.freelancer.id)
        self.service.reject(self.db, request["id"], self.freelancer.id)
        self.assertEqual(self._task_status(), "open")
        self.assertEqual(self.db.query(TaskRequest).one().status, "rejected")

    def test_cancel_deletes_request_and_reopens_task(self):
        request = self.service.create(self.db, self.client.id, self.task.id, self.freelancer.id)
        with self.assertRaises(ForbiddenError):
            self.service.cancel(self.db, request["id"], self.freelancer.id)

        self.service.cancel(self.db, request["id"], self.client.id)

        self.assertEqual(self.db.query(TaskRequest).count(), 0)
        self.assertEqual(self._task_status(), "open")
        actions = [a.action for a in self.db.query(ActionLog)]
        self.assertCountEqual(actions, ["TASK_REQUEST_CREATE", "TASK_REQUEST_CANCEL"])


class RatingTests(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.service = RatingService()
        self.freelancer = make_user(self.db)
        self.alice = make_user(self.db, user_type="client")
        self.bob = make_user(self.db, user_type="client")

    def _freelancer(self):
        return self.db.query(User).filter(User.id == self.freelancer.id).one()

    def test_average_and_count_follow_ratings(self):
        self.service.rate(self.db, self.alice.id, self.freelancer.id, 5, "Great")
        self.service.rate(self.db, self.bob.id, self.freelancer.id, 2)
        self.assertAlmostEqual(self._freelancer().rating, 3.5)
        self.assertEqual(self._freelancer().completed_jobs, 2)

    def test_re_rating_updates_existing_row(self):
        first = self.service.rate(self.db, self.alice.id, self.freelancer.id, 1)
        second = self.service.rate(self.db, self.alice.id, self.freelancer.id, 4, "Better now")
        self.assertEqual(first["id"], second["id"])
        self.assertEqual(self._freelancer().rating, 4.0)
        self.assertEqual(self._freelancer().completed_jobs, 1)

        check = self.service.check_exists(self.db, self.alice.id, self.freelancer.id)
        self.assertTrue(check["exists"])
        self.assertEqual(check["rating"]["comment"], "Better now")
        self.assertFalse(self.service.check_exists(self.db, self.bob.id, self.freelancer.id)["exists"])

    def test_invalid_score_and_unknown_user(self):
        with self.assertRaises(InvalidInputError):
            self.service.rate(self.db, self.alice.id, self.freelancer.id, 6)
        with self.assertRaises(InvalidInputError):
            self.service.rate(self.db, self.alice.id, "ghost", 3)

    def test_list_includes_client_summary(self):
        self.service.rate(self.db, self.alice.id, self.freelancer.id, 5)
        rows = self.service.list_for_freelancer(self.db, self.freelancer.id)
        self.assertEqual(rows[0]["client"]["id"], self.alice.id)


class NotificationTests(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.user = make_user(self.db)
        self.other = make_user(self.db)

    def test_mark_read_and_delete_are_recipient_only(self):
        note = self.notifier.notify(self.db, self.user.id, "TEST", "Hello", "Body")
        self.db.commit()

        with self.assertRaises(ForbiddenError):
            self.notifier.mark_read(self.db, note.id, self.other.id)
        self.assertTrue(self.notifier.mark_read(self.db, note.id, self.user.id)["is_read"])
        with self.assertRaises(NotFoundError):
            self.notifier.mark_read(self.db, "missing", self.user.id)

        with self.assertRaises(ForbiddenError):
            self.notifier.delete(self.db, note.id, self.other.id)
        self.assertEqual(self.notifier.delete(self.db, note.id, self.user.id)["id"], note.id)
        self.assertIsNone(self.notifier.delete(self.db, note.id, self.user.id))
        self.assertEqual(self.notifier.list_for_user(self.db, self.user.id), [])

    def test_webhook_failure_does_not_fail_notification(self):
        notifier = Notifier(webhook_url="https://hooks.example.com/notify")
        with mock.patch("marketplace.notifier.httpx.post", side_effect=httpx.ConnectError("down")) as post:
            notifier.notify(self.db, self.user.id, "TEST", "Hello", "Body")
            self.db.commit()
        post.assert_called_once()
        self.assertEqual(len(notifier.list_for_user(self.db, self.user.id)), 1)

    def test_malformed_webhook_url_does_not_fail_workflow(self):
        notifier = Notifier(webhook_url="https://hooks.example.com:badport/x")
        client = make_user(self.db, user_type="client")
        task = make_task(self.db, client, ["React"])

        application = ApplicationService(notifier=notifier).apply(self.db, self.user.id, task.id)

        self.assertEqual(application["status"], "pending")
        self.assertEqual(
            self.db.query(Notification).filter(Notification.user_id == client.id).one().type,
            "APPLICATION_RECEIVED",
        )

    def test_webhook_waits_for_commit(self):
        response = mock.Mock()
        with mock.patch("marketplace.notifier.httpx.post", return_value=response) as post:
            Notifier(webhook_url="https://discord.com/api/webhooks/1").notify(
                self.db, self.user.id, "TEST", "Hello", "Body"
            )
            post.assert_not_called()
            self.db.commit()
        payload = post.call_args.kwargs["json"]
        self.assertEqual(payload["embeds"][0]["title"], "Hello")
        response.raise_for_status.assert_called_once()

    def test_rolled_back_notification_sends_no_webhook(self):
        notifier = Notifier(webhook_url="https://hooks.example.com/notify")
        with mock.patch("marketplace.notifier.httpx.post") as post:
            notifier.notify(self.db, self.user.id, "TEST", "Hello", "Body")
            self.db.flush()
            self.db.rollback()
            self.notifier.notify(self.db, self.user.id, "OTHER", "Later", "Body")
            self.db.commit()
        post.assert_not_called()
        self.assertEqual([n["type"] for n in notifier.list_for_user(self.db, self.user.id)], ["OTHER"])


class ChatTests(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.service = ChatService()
        self.alice = make_user(self.db, user_type="client")
        self.bob = make_user(self.db)
        self.carol = make_user(self.db)

    def test_history_and_conversations(self):
        self.service.send_message(self.db, self.alice.id, self.bob.id, "hi bob")
        self.service.send_message(self.db, self.bob.id, self.alice.id, "hi alice")
        self.service.send_message(self.db, self.carol.id, self.alice.id, "hello from carol")

        history = self.service.history(self.db, self.alice.id, self.bob.id)
        self.assertEqual([m["content"] for m in history], ["hi bob", "hi alice"])

        partners = {c["partner"]["id"] for c in self.service.conversations(self.db, self.alice.id)}
        self.assertEqual(partners, {self.bob.id, self.carol.id})

    def test_send_validations(self):
        with self.assertRaises(InvalidInputError):
            self.service.send_message(self.db, self.alice.id, self.alice.id, "me")
        with self.assertRaises(NotFoundError):
            self.service.send_message(self.db, self.alice.id, "ghost", "anyone?")


class ProfileAndSkillTests(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.service = ProfileService()
        seed_skills(self.db)

    def test_seed_skills_is_idempotent(self):
        self.assertEqual(seed_skills(self.db), 0)
        self.assertEqual(len(list_skills(self.db)), len(set(PREDETERMINED_SKILLS)))
        matches = list_skills(self.db, "script")
        self.assertEqual([s["name"] for s in matches], ["JavaScript", "TypeScript"])

    def test_register_rejects_duplicates_and_admin(self):
        profile = self.service.register_user(self.db, "Dev@Example.com", "Dev", "freelancer")
        self.assertEqual(profile["email"], "dev@example.com")
        with self.assertRaises(ConflictError):
            self.service.register_user(self.db, "dev@example.com", "Dev again", "client")
        with self.assertRaises(InvalidInputError):
            self.service.register_user(self.db, "root@example.com", "Root", "admin")

    def test_update_profile_skills_and_visibility(self):
        freelancer = make_user(self.db)
        client = make_user(self.db, user_type="client")

        profile = self.service.update_profile(
            self.db, freelancer.id,
            {"skills": ["python", "FastAPI", "Not A Skill"], "is_hidden": True, "title": "Backend dev"},
        )
        self.assertEqual(profile["skills"], ["FastAPI", "Python"])
        self.assertTrue(profile["is_hidden"])
        self.assertEqual(profile["title"], "Backend dev")

        self.assertFalse(self.service.update_profile(self.db, client.id, {"is_hidden": True})["is_hidden"])

    def test_public_profile_hides_email_and_avatar(self):
        user = make_user(self.db, image_url="https://img.example.com/me.png", is_avatar_visible=False)
        public = self.service.get_public_profile(self.db, user.id)
        self.assertNotIn("email", public)
        self.assertIsNone(public["image_url"])
        self.assertEqual(self.service.get_profile(self.db, user.id)["email"], user.email)
        with self.assertRaises(NotFoundError):
            self.service.get_public_profile(self.db, "ghost")

    def test_list_freelancers_filters_and_orders_by_rating(self):
        low = make_user(self.db, full_name="Low Rated", rating=2.0, skills=["Go"])
        high = make_user(self.db, full_name="High Rated", rating=4.5, skills=["Python"])
        make_user(self.db, full_name="Hidden One", is_hidden=True)
        make_user(self.db, user_type="client", full_name="Client Person")

        self.assertEqual([p["id"] for p in self.service.list_freelancers(self.db)], [high.id, low.id])
        self.assertEqual([p["id"] for p in self.service.list_freelancers(self.db, search="low")], [low.id])
        self.assertEqual([p["id"] for p in self.service.list_freelancers(self.db, skills=["python"])], [high.id])


if __name__ == "__main__":
    unittest.main()

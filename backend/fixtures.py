"""
Shared test helpers: an in-memory database and row factories.
"""
import itertools
import unittest
from datetime import datetime

from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import (
    Base,
    Task,
    TaskApplication,
    TaskRequest,
    User,
    build_engine,
    encode_list,
    init_db,
    new_id,
)
from marketplace.notifier import Notifier

_counter = itertools.count(1)


def make_engine():
    return build_engine("sqlite:///:memory:", poolclass=StaticPool)


def make_user(db, user_type="freelancer", skills=None, **fields) -> User:
    n = next(_counter)
    user = User(
        id=new_id(),
        email=fields.pop("email", f"user{n}@example.com"),
        full_name=fields.pop("full_name", f"User {n}"),
        user_type=user_type,
        legacy_skills=encode_list(skills or []),
        created_at=fields.pop("created_at", datetime.utcnow()),
        **fields,
    )
    db.add(user)
    db.commit()
    return user


def make_task(db, client, skills=None, status="open", **fields) -> Task:
    n = next(_counter)
    task = Task(
        id=new_id(),
        title=fields.pop("title", f"Task {n}"),
        description=fields.pop("description", "A task description long enough"),
        budget=fields.pop("budget", 500.0),
        skills=encode_list(skills or []),
        image_url=fields.pop("image_url", "https://img.example.com/task.png"),
        status=status,
        client_id=client.id,
        created_at=fields.pop("created_at", datetime.utcnow()),
        updated_at=datetime.utcnow(),
        **fields,
    )
    db.add(task)
    db.commit()
    return task


def make_application(db, task, freelancer, status="accepted") -> TaskApplication:
    application = TaskApplication(
        id=new_id(),
        task_id=task.id,
        freelancer_id=freelancer.id,
        status=status,
        created_at=datetime.utcnow(),
    )
    db.add(application)
    db.commit()
    return application


def make_request(db, task, freelancer, status="accepted") -> TaskRequest:
    request = TaskRequest(
        id=new_id(),
        task_id=task.id,
        client_id=task.client_id,
        freelancer_id=freelancer.id,
        status=status,
        created_at=datetime.utcnow(),
    )
    db.add(request)
    db.commit()
    return request


class DatabaseTestCase(unittest.TestCase):
    """Fresh in-memory schema per test, plus a notifier with no webhook."""

    def setUp(self):
        self.engine = make_engine()
        init_db(self.engine)
        self.Session = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        self.db = self.Session()
        self.notifier = Notifier(webhook_url="")

    def tearDown(self):
        self.db.close()
        Base.metadata.drop_all(bind=self.engine)
        self.engine.dispose()

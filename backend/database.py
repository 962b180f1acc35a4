"""
Database configuration and models for GigBoard
"""
import json
import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
    create_engine,
    event,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker
from sqlalchemy.pool import NullPool

from config import DATABASE_URL, SQLITE_BUSY_TIMEOUT_MS

IS_SQLITE = DATABASE_URL.startswith("sqlite")

TASK_STATUSES = ("open", "pending", "in_progress", "completed", "cancelled")
USER_TYPES = ("client", "freelancer", "admin")


def _sqlite_pragmas(dbapi_connection, _connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL;")
    cursor.execute("PRAGMA synchronous=NORMAL;")
    cursor.execute("PRAGMA temp_store=MEMORY;")
    cursor.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS};")
    cursor.close()


def build_engine(url: str = DATABASE_URL, **kwargs):
    engine_kwargs = dict(kwargs)
    if url.startswith("sqlite"):
        connect_args = engine_kwargs.setdefault("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        connect_args.setdefault("timeout", SQLITE_BUSY_TIMEOUT_MS / 1000.0)
        # Avoid queue-pool starvation under bursty local requests.
        engine_kwargs.setdefault("poolclass", NullPool)
    engine = create_engine(url, pool_pre_ping=True, **engine_kwargs)
    if url.startswith("sqlite") and ":memory:" not in url:
        event.listen(engine, "connect", _sqlite_pragmas)
    return engine


engine = build_engine()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def new_id() -> str:
    return str(uuid.uuid4())


def encode_list(values) -> str:
    return json.dumps(list(values or []), ensure_ascii=False)


def decode_list(raw) -> list:
    """Decode a JSON array column; malformed or non-list payloads become []."""
    if isinstance(raw, list):
        return raw
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except (TypeError, json.JSONDecodeError):
        return []
    return value if isinstance(value, list) else []


user_skills = Table(
    "user_skills",
    Base.metadata,
    Column("user_id", String, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("skill_id", String, ForeignKey("skills.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    """Marketplace account: client, freelancer or admin"""
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=new_id)
    email = Column(String, unique=True, nullable=False, index=True)
    full_name = Column(String, nullable=False)
    user_type = Column(String, nullable=False, default="client", index=True)  # client, freelancer, admin
    title = Column(String)
    bio = Column(Text)
    hourly_rate = Column(Float)
    location = Column(String)
    image_url = Column(String)
    is_avatar_visible = Column(Boolean, default=True, nullable=False)
    is_hidden = Column(Boolean, default=False, nullable=False)
    is_banned = Column(Boolean, default=False, nullable=False)
    rating = Column(Float)
    completed_jobs = Column(Integer)
    legacy_skills = Column(Text, default="[]")  # JSON array string
    languages = Column(Text, default="[]")  # JSON array string
    education = Column(Text, default="[]")  # JSON array string
    experience = Column(Text, default="[]")  # JSON array string
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    skills = relationship("Skill", secondary=user_skills, order_by="Skill.name")


class Skill(Base):
    """Predetermined skill tag"""
    __tablename__ = "skills"

    id = Column(String, primary_key=True, default=new_id)
    name = Column(String, unique=True, nullable=False, index=True)


class Task(Base):
    """Unit of work posted by a client"""
    __tablename__ = "tasks"

    id = Column(String, primary_key=True, default=new_id)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    budget = Column(Float, nullable=False)
    skills = Column(Text, default="[]")  # JSON array string
    image_url = Column(String)
    status = Column(String, default="open", nullable=False, index=True)
    client_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    client = relationship("User", foreign_keys=[client_id])
    applications = relationship("TaskApplication", back_populates="task", cascade="all, delete-orphan")
    requests = relationship("TaskRequest", back_populates="task", cascade="all, delete-orphan")


class TaskApplication(Base):
    """Freelancer application to an open task"""
    __tablename__ = "task_applications"
    __table_args__ = (UniqueConstraint("task_id", "freelancer_id", name="uq_application_task_freelancer"),)

    id = Column(String, primary_key=True, default=new_id)
    task_id = Column(String, ForeignKey("tasks.id"), nullable=False, index=True)
    freelancer_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    cover_letter = Column(Text)
    status = Column(String, default="pending", nullable=False)  # pending, accepted, rejected
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    task = relationship("Task", back_populates="applications")
    freelancer = relationship("User", foreign_keys=[freelancer_id])


class TaskRequest(Base):
    """Client invitation to a specific freelancer"""
    __tablename__ = "task_requests"

    id = Column(String, primary_key=True, default=new_id)
    task_id = Column(String, ForeignKey("tasks.id"), nullable=False, index=True)
    client_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    freelancer_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String, default="pending", nullable=False)  # pending, accepted, rejected
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    task = relationship("Task", back_populates="requests")
    client = relationship("User", foreign_keys=[client_id])
    freelancer = relationship("User", foreign_keys=[freelancer_id])


class Rating(Base):
    """Client rating of a freelancer, one per pair"""
    __tablename__ = "ratings"
    __table_args__ = (UniqueConstraint("client_id", "freelancer_id", name="uq_rating_client_freelancer"),)

    id = Column(String, primary_key=True, default=new_id)
    client_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    freelancer_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    score = Column(Integer, nullable=False)
    comment = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    client = relationship("User", foreign_keys=[client_id])


class Notification(Base):
    """In-app notification"""
    __tablename__ = "notifications"

    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    related_id = Column(String)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class Message(Base):
    """Direct chat message"""
    __tablename__ = "messages"

    id = Column(String, primary_key=True, default=new_id)
    sender_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    receiver_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    is_system = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    sender = relationship("User", foreign_keys=[sender_id])
    receiver = relationship("User", foreign_keys=[receiver_id])


class ActionLog(Base):
    """Audit trail of user and admin actions"""
    __tablename__ = "action_logs"

    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    action = Column(String, nullable=False, index=True)
    target_id = Column(String)
    details = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    user = relationship("User", foreign_keys=[user_id])


def get_db():
    """Database session dependency"""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db(bind=None):
    """Initialize database tables"""
    Base.metadata.create_all(bind=bind or engine)

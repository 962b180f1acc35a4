"""
Pydantic models for API requests and responses

JSON keys are camelCase on the wire; snake_case is accepted on input too.
"""
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Any, List, Optional
from datetime import datetime


class ApiModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


# User Models
class UserSummary(ApiModel):
    id: str
    full_name: str
    image_url: Optional[str] = None
    title: Optional[str] = None
    location: Optional[str] = None
    rating: Optional[float] = None
    hourly_rate: Optional[float] = None
    skills: Optional[List[str]] = None


class RegisterUserRequest(ApiModel):
    email: str = Field(..., min_length=3, max_length=254, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    full_name: str = Field(..., min_length=1, max_length=100)
    user_type: str = Field(default="client", pattern="^(client|freelancer)$")


class ProfileUpdate(ApiModel):
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    title: Optional[str] = Field(default=None, max_length=200)
    bio: Optional[str] = Field(default=None, max_length=5000)
    hourly_rate: Optional[float] = Field(default=None, ge=0, le=10000)
    location: Optional[str] = Field(default=None, max_length=200)
    image_url: Optional[str] = None
    is_avatar_visible: Optional[bool] = None
    is_hidden: Optional[bool] = None
    skills: Optional[List[str]] = Field(default=None, max_length=50)
    languages: Optional[List[Any]] = None
    education: Optional[List[Any]] = None
    experience: Optional[List[Any]] = None


class ProfileResponse(ApiModel):
    id: str
    full_name: str
    user_type: str
    title: Optional[str] = None
    bio: Optional[str] = None
    hourly_rate: Optional[float] = None
    location: Optional[str] = None
    image_url: Optional[str] = None
    is_avatar_visible: bool
    is_hidden: bool
    rating: Optional[float] = None
    completed_jobs: Optional[int] = None
    skills: List[str]
    languages: List[Any]
    education: List[Any]
    experience: List[Any]
    created_at: Optional[datetime] = None
    email: Optional[str] = None
    is_banned: Optional[bool] = None


class SkillResponse(ApiModel):
    id: str
    name: str


# Task Models
class TaskCreate(ApiModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: str = Field(..., min_length=10, max_length=5000)
    budget: float = Field(..., ge=1, le=1_000_000)
    skills: List[str] = Field(..., min_length=1, max_length=20)
    image_url: Optional[str] = None


class TaskUpdate(ApiModel):
    title: Optional[str] = Field(default=None, min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, min_length=10, max_length=5000)
    budget: Optional[float] = Field(default=None, ge=1, le=1_000_000)
    skills: Optional[List[str]] = Field(default=None, min_length=1, max_length=20)
    status: Optional[str] = Field(default=None, pattern="^(open|pending|in_progress|completed|cancelled)$")
    image_url: Optional[str] = None


class TaskResponse(ApiModel):
    id: str
    title: str
    description: str
    budget: float
    skills: List[str]
    image_url: Optional[str] = None
    status: str
    client_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    client: Optional[UserSummary] = None
    task_requests: Optional[List["TaskRequestResponse"]] = None


class RecommendedFreelancerResponse(ApiModel):
    id: str
    full_name: str
    image_url: Optional[str] = None
    title: Optional[str] = None
    hourly_rate: Optional[float] = None
    rating: Optional[float] = None
    completed_jobs: Optional[int] = None
    location: Optional[str] = None
    skills: List[str]
    score: float


# Application Models
class ApplicationCreate(ApiModel):
    cover_letter: Optional[str] = Field(default=None, max_length=2000)


class ApplicationStatusUpdate(ApiModel):
    status: str = Field(..., pattern="^(accepted|rejected)$")


class ApplicationResponse(ApiModel):
    id: str
    task_id: str
    freelancer_id: str
    cover_letter: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    freelancer: Optional[UserSummary] = None
    task: Optional[TaskResponse] = None


class AssignmentResponse(ApiModel):
    application: ApplicationResponse
    task: TaskResponse
    freelancer_id: str


# Task Request Models
class TaskRequestCreate(ApiModel):
    task_id: str
    freelancer_id: str


class TaskRequestResponse(ApiModel):
    id: str
    task_id: str
    client_id: str
    freelancer_id: str
    status: str
    created_at: Optional[datetime] = None
    task: Optional[TaskResponse] = None
    client: Optional[UserSummary] = None
    freelancer: Optional[UserSummary] = None


class ChatPartner(ApiModel):
    partner_id: str
    partner_name: str


class TaskRequestAcceptResponse(ApiModel):
    request: TaskRequestResponse
    chat: ChatPartner


class MessageOnlyResponse(ApiModel):
    message: str


# Rating Models
class RatingCreate(ApiModel):
    freelancer_id: str
    score: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=1000)


class RatingResponse(ApiModel):
    id: str
    client_id: str
    freelancer_id: str
    score: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    client: Optional[UserSummary] = None


class RatingCheckResponse(ApiModel):
    exists: bool
    rating: Optional[RatingResponse] = None


# Notification Models
class NotificationResponse(ApiModel):
    id: str
    user_id: str
    type: str
    title: str
    message: str
    related_id: Optional[str] = None
    is_read: bool
    created_at: Optional[datetime] = None


# Chat Models
class MessageCreate(ApiModel):
    receiver_id: str
    content: str = Field(..., min_length=1, max_length=5000)


class MessageResponse(ApiModel):
    id: str
    sender_id: str
    receiver_id: str
    content: str
    is_system: bool
    created_at: Optional[datetime] = None
    sender: Optional[UserSummary] = None
    receiver: Optional[UserSummary] = None


class ConversationResponse(ApiModel):
    partner: UserSummary
    last_message: MessageResponse


# Admin Models
class AdminUserResponse(ApiModel):
    id: str
    email: str
    full_name: str
    user_type: str
    is_banned: bool
    created_at: Optional[datetime] = None


class ActionLogUser(ApiModel):
    full_name: str
    email: str
    user_type: str


class ActionLogResponse(ApiModel):
    id: str
    user_id: str
    action: str
    target_id: Optional[str] = None
    details: Optional[str] = None
    created_at: Optional[datetime] = None
    user: Optional[ActionLogUser] = None


class UserBreakdown(ApiModel):
    freelancers: int
    clients: int
    admins: int


class ChartPoint(ApiModel):
    name: str
    value: int


class GrowthPoint(ApiModel):
    name: str
    users: int


class AnalyticsResponse(ApiModel):
    total_users: int
    total_tasks: int
    total_ratings: int
    user_breakdown: UserBreakdown
    task_status_data: List[ChartPoint]
    user_growth_data: List[GrowthPoint]


# System Status
class SystemStatusResponse(ApiModel):
    status: str
    version: str
    database_connected: bool
    users: int
    open_tasks: int
    uptime: str


for _model in (TaskResponse, ApplicationResponse, AssignmentResponse, TaskRequestResponse, TaskRequestAcceptResponse):
    _model.model_rebuild()

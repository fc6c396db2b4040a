import uuid
from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, Field, field_validator
from typing import List, Dict, Optional

def new_id() -> str:
    return uuid.uuid4().hex[:9]

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def as_utc(value: datetime) -> datetime:
    # naive timestamps are taken to be UTC
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value

# ---------- Enums ----------
class UserRole(str, Enum):
    STUDENT = "STUDENT"
    ADMIN = "ADMIN"

class UserStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

class NotificationType(str, Enum):
    REGISTRATION = "REGISTRATION"
    RISK_ALERT = "RISK_ALERT"
    SYSTEM = "SYSTEM"

class LinkTab(str, Enum):
    OVERVIEW = "OVERVIEW"
    REGISTRATIONS = "REGISTRATIONS"

# ---------- Stored records ----------
class User(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    email: str
    role: UserRole
    status: UserStatus
    register_no: Optional[str] = None
    department: Optional[str] = None
    password: Optional[str] = None   # plaintext, demo grade
    registration_date: Optional[datetime] = None

class AcademicData(BaseModel):
    id: str = Field(default_factory=new_id)
    student_id: str
    student_name: str              # denormalized at submission time
    attendance: float
    internal_marks: float
    assignment_score: float
    timestamp: datetime = Field(default_factory=utcnow)

    @field_validator("timestamp")
    @classmethod
    def _aware_timestamp(cls, v: datetime) -> datetime:
        return as_utc(v)

class PredictionResult(BaseModel):
    id: str = Field(default_factory=new_id)
    data_id: str                   # AcademicData.id, looked up by scan
    risk_level: RiskLevel
    risk_score: int
    performance_score: int
    summary: str
    recommendations: List[str]

class StudentFullProfile(AcademicData):
    prediction: Optional[PredictionResult] = None

class SystemNotification(BaseModel):
    id: str = Field(default_factory=new_id)
    title: str
    message: str
    type: NotificationType
    timestamp: datetime = Field(default_factory=utcnow)
    read: bool = False
    link_tab: Optional[LinkTab] = None
    student_id: Optional[str] = None

class AuditLog(BaseModel):
    id: str = Field(default_factory=new_id)
    admin_id: str
    admin_name: str
    action: str
    target_id: str
    target_name: str
    timestamp: datetime = Field(default_factory=utcnow)

class UserFeedback(BaseModel):
    id: str = Field(default_factory=new_id)
    student_id: str
    student_name: str
    message: str
    timestamp: datetime = Field(default_factory=utcnow)

# ---------- Request / response bodies ----------
class AcademicSubmission(BaseModel):
    student_id: str
    attendance: float = Field(ge=0, le=100)
    internal_marks: float = Field(ge=0, le=100)
    assignment_score: float = Field(ge=0, le=100)

class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str
    register_no: Optional[str] = None
    department: Optional[str] = None

class LoginRequest(BaseModel):
    email: str
    password: str
    role: UserRole

class StatusDecision(BaseModel):
    admin_id: str
    status: UserStatus

class NotificationCreate(BaseModel):
    title: str
    message: str
    type: NotificationType = NotificationType.SYSTEM
    link_tab: Optional[LinkTab] = None
    student_id: Optional[str] = None

class AuditLogCreate(BaseModel):
    admin_id: str
    action: str
    target_id: str
    target_name: str

class FeedbackCreate(BaseModel):
    student_id: str
    message: str = Field(min_length=1)

class RiskDistribution(BaseModel):
    n_profiles: int
    risk_counts: Dict[str, int]    # {"LOW": n, "MEDIUM": n, "HIGH": n}
    unscored: int                  # profiles whose latest record has no prediction yet

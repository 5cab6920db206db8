# SchoolGate - RBAC protocol objects
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# --- Roles (exactly one per actor) ---
class Role(str, Enum):
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"
    PARENT = "parent"


# --- Secondary affiliation (at most one per actor) ---
class Affiliation(str, Enum):
    STAFF = "staff"
    STUDENT_COUNCIL = "student-council"
    VICE_PRINCIPAL = "vice-principal"
    PRINCIPAL = "principal"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Permission(BaseModel):
    """An atomic capability: one allowed (resource, action) pair."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stable id, <resource>.<action>")
    name: str
    resource: str
    action: str
    description: str = ""


class Actor(BaseModel):
    """Who is asking; trusted verbatim from the identity provider."""
    user_id: str
    role: Role
    affiliation: Optional[Affiliation] = None


class RequestContext(BaseModel):
    """Optional per-call data used only to enrich the audit trail."""
    user_id: Optional[str] = None
    ip: Optional[str] = None
    user_agent: Optional[str] = None


class AccessDecision(BaseModel):
    granted: bool
    reason: str
    required_permission: Optional[str] = None

    @property
    def can_access(self) -> bool:
        return self.granted


# --- Audit log entry (one per decision, never mutated) ---
class AuditLogEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=_utcnow)
    user_id: Optional[str] = None
    role: str
    affiliation: Optional[str] = None
    resource: str
    action: str
    granted: bool
    reason: str
    permission_ids: tuple[str, ...] = ()
    ip: Optional[str] = None
    user_agent: Optional[str] = None

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)


class AuditFilter(BaseModel):
    """AND of every supplied predicate; omitted fields match everything."""
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    role: Optional[str] = None
    affiliation: Optional[str] = None
    resource: Optional[str] = None
    granted: Optional[bool] = None
    user_id: Optional[str] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def _assume_utc(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)

    @property
    def is_inverted(self) -> bool:
        return (
            self.start_date is not None
            and self.end_date is not None
            and self.start_date > self.end_date
        )

    def matches(self, entry: AuditLogEntry) -> bool:
        if self.start_date is not None and entry.timestamp < self.start_date:
            return False
        if self.end_date is not None and entry.timestamp > self.end_date:
            return False
        if self.role is not None and entry.role != self.role:
            return False
        if self.affiliation is not None and entry.affiliation != self.affiliation:
            return False
        if self.resource is not None and entry.resource != self.resource:
            return False
        if self.granted is not None and entry.granted != self.granted:
            return False
        if self.user_id is not None and entry.user_id != self.user_id:
            return False
        return True


class CombinationReport(BaseModel):
    role: str
    affiliation: Optional[str] = None
    valid: bool
    message: str

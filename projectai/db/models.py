"""
ProjectAI Tables — local SQL mirror of the hosted backend's tables.

Tables (7):
1. profiles          — workspace identities and their stored role
2. projects          — projects owned by a profile
3. tasks             — tasks, optionally attached to a project
4. project_members   — profile ↔ project join with a project role
5. task_assignments  — task ↔ assignee notifications
6. audit_logs        — who changed which row
7. vendors           — vendor submissions

Only used in ``backend.mode: sql``. The hosted backend owns its real
schema, constraints and row-level security policies.
"""

from __future__ import annotations

from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from projectai.db.base import Base, TimestampMixin, new_id, utcnow


class ProfileRow(Base, TimestampMixin):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(200), nullable=True)
    role = Column(String(20), nullable=True, default="member")
    department = Column(String(120), nullable=True)
    position = Column(String(120), nullable=True)
    avatar_url = Column(Text, nullable=True)
    workload = Column(Integer, nullable=True, default=0)
    status = Column(String(20), nullable=True, default="active")

    def __repr__(self) -> str:
        return f"<ProfileRow(id={self.id}, email='{self.email}', role='{self.role}')>"


class ProjectRow(Base, TimestampMixin):
    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=True, default="planning")
    priority = Column(String(20), nullable=True, default="medium")
    progress = Column(Integer, nullable=True, default=0)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    budget = Column(Float, nullable=True)
    color = Column(String(7), nullable=True)
    owner_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)


class TaskRow(Base, TimestampMixin):
    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=True, default="todo")
    priority = Column(String(20), nullable=True)
    progress = Column(Integer, nullable=False, default=0)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    estimated_hours = Column(Float, nullable=True)
    actual_hours = Column(Float, nullable=True)
    assignee = Column(String(200), nullable=True)
    color = Column(String(7), nullable=False, default="#3B82F6")
    dependencies = Column(JSON, nullable=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=True, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=True)


class ProjectMemberRow(Base):
    __tablename__ = "project_members"

    id = Column(String(36), primary_key=True, default=new_id)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    role = Column(String(20), nullable=True)
    joined_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_member"),
        Index("idx_pm_user_id", "user_id"),
    )


class TaskAssignmentRow(Base):
    __tablename__ = "task_assignments"

    id = Column(String(36), primary_key=True, default=new_id)
    task_id = Column(String(36), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=True)
    assigned_user_id = Column(String(36), ForeignKey("profiles.id"), nullable=True)
    assigned_by_user_id = Column(String(36), ForeignKey("profiles.id"), nullable=True)
    notified_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class AuditLogRow(Base):
    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True, default=new_id)
    action = Column(String(50), nullable=False)
    table_name = Column(String(100), nullable=False)
    record_id = Column(String(36), nullable=False)
    user_id = Column(String(36), nullable=False)
    user_email = Column(String(255), nullable=False)
    old_data = Column(JSON, nullable=True)
    new_data = Column(JSON, nullable=True)
    details = Column(JSON, nullable=True)
    vendor_id = Column(String(36), nullable=True)
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class VendorRow(Base, TimestampMixin):
    __tablename__ = "vendors"

    id = Column(String(36), primary_key=True, default=new_id)
    company_name = Column(String(200), nullable=False)
    contact_name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    services = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="pending")
    submitted_by_email = Column(String(255), nullable=False)
    approved_by_email = Column(String(255), nullable=True)
    submitted_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    approved_at = Column(DateTime(timezone=True), nullable=True)


TABLE_MODELS = {
    "profiles": ProfileRow,
    "projects": ProjectRow,
    "tasks": TaskRow,
    "project_members": ProjectMemberRow,
    "task_assignments": TaskAssignmentRow,
    "audit_logs": AuditLogRow,
    "vendors": VendorRow,
}

"""
ProjectAI — Project-management dashboard service layer.
Version: 1.0

Authentication, CRUD over projects / tasks / team members, role-gated
views and analytics aggregates on top of a hosted database-as-a-service.

Row-level security on the backend is the real access control. Every role
check in this package is a presentation convenience.
"""

__version__ = "1.0.0"
__all__ = ["engine", "db", "backend", "records", "security", "services", "views"]

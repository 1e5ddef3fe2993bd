"""
Project access check — owner / member lookup for a single project.

Owners may do anything with their project; project members may read it.
Any lookup failure answers "no". Advisory like every other check here.
"""

from __future__ import annotations

import logging

from projectai.backend.client import BackendClient
from projectai.backend.query import Query
from projectai.engine.errors import ProjectAIBackendError

logger = logging.getLogger("projectai.security.access")

ACTIONS = ("read", "write", "delete")


class ProjectAccessChecker:

    def __init__(self, backend: BackendClient):
        self._backend = backend

    def can_access(self, project_id: str, user_id: str, action: str) -> bool:
        if action not in ACTIONS:
            raise ValueError(f"action must be one of {ACTIONS}, got '{action}'")
        try:
            project = self._backend.select_one(
                Query("projects").select("owner_id").eq("id", project_id)
            )
            if project is None:
                logger.info(f"Project access check: project {project_id} not found")
                return False
            if project["owner_id"] == user_id:
                return True
            if action != "read":
                return False
            membership = self._backend.select_one(
                Query("project_members").select("id")
                .eq("project_id", project_id)
                .eq("user_id", user_id)
            )
            return membership is not None
        except ProjectAIBackendError as e:
            logger.error(f"Project access validation failed for {project_id}: {e.message}")
            return False

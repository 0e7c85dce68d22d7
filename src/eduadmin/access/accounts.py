from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel

from eduadmin.cache import QueryCache
from eduadmin.exceptions.handlers import AdminException, ApiError
from eduadmin.integrations.admin_api import AdminApiClient
from eduadmin.optimistic import Optimistic

logger = logging.getLogger(__name__)


class LinkedUser(BaseModel):
    id: int
    name: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None


class StudentAccountLink:
    """
    The user account linked to one student.

    The displayed account changes as soon as the operator picks one and is
    rolled back if the server rejects the change.
    """

    def __init__(
        self,
        client: AdminApiClient,
        student_id: int,
        linked_user: Optional[LinkedUser] = None,
        *,
        cache: Optional[QueryCache] = None,
    ) -> None:
        self.client = client
        self.student_id = student_id
        self.cache = cache or QueryCache()
        self.state: Optimistic[Optional[LinkedUser]] = Optimistic(linked_user)
        self.last_error: Optional[AdminException] = None

    @property
    def user(self) -> Optional[LinkedUser]:
        return self.state.value

    def link(self, user: LinkedUser) -> bool:
        self.state.apply(user)
        try:
            self.client.link_user(self.student_id, user.id)
        except ApiError as exc:
            return self._rollback("link", exc)
        return self._confirm("link_user")

    def unlink(self) -> bool:
        if self.state.confirmed is None:
            return True
        self.state.apply(None)
        try:
            self.client.unlink_user(self.student_id)
        except ApiError as exc:
            return self._rollback("unlink", exc)
        return self._confirm("unlink_user")

    def _confirm(self, mutation: str) -> bool:
        self.state.confirm()
        self.last_error = None
        self.cache.after_mutation(mutation)
        return True

    def _rollback(self, action: str, exc: ApiError) -> bool:
        restored = self.state.rollback()
        self.last_error = exc
        logger.warning(
            "Account %s failed for student %s, restored %s: %s",
            action,
            self.student_id,
            restored.id if restored else None,
            exc.message,
        )
        return False

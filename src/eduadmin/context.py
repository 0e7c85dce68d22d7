from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass
from typing import Optional


institution_id_var: ContextVar[Optional[int]] = ContextVar("institution_id", default=None)
user_id_var: ContextVar[Optional[int]] = ContextVar("user_id", default=None)


@dataclass(frozen=True)
class RequestContext:
    institution_id: Optional[int]
    user_id: Optional[int]


def get_request_context() -> RequestContext:
    return RequestContext(
        institution_id=institution_id_var.get(),
        user_id=user_id_var.get(),
    )

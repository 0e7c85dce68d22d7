from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from eduadmin.config import get_settings
from eduadmin.context import get_request_context


@dataclass(frozen=True)
class OutboundHeaders:
    institution_id: Optional[int]
    user_id: Optional[int]
    authorization: Optional[str]

    def as_dict(self) -> dict[str, str]:
        settings = get_settings()
        headers: dict[str, str] = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self.institution_id is not None:
            headers[settings.INSTITUTION_HEADER] = str(self.institution_id)
        if self.user_id is not None:
            headers[settings.USER_HEADER] = str(self.user_id)
        if self.authorization:
            headers["Authorization"] = self.authorization
        return headers


def bearer(token: Optional[str]) -> Optional[str]:
    if not token:
        return None
    token = token.strip()
    if not token:
        return None
    if token.lower().startswith("bearer "):
        return token
    return f"Bearer {token}"


def build_outbound_headers(*, authorization: Optional[str] = None) -> OutboundHeaders:
    ctx = get_request_context()
    return OutboundHeaders(
        institution_id=ctx.institution_id,
        user_id=ctx.user_id,
        authorization=authorization,
    )

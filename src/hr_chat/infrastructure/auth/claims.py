"""Map decoded JWT claims onto a Principal.

The HR backend issues ``{"id", "email", "role"}`` tokens; newer issuers
use ``sub`` and a ``roles`` list. Both shapes are accepted.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from hr_chat.application.dto.principal import Principal
from hr_chat.application.exceptions import AuthError


def principal_from_claims(payload: dict[str, Any]) -> Principal:
    raw_id = payload.get("sub", payload.get("id"))
    try:
        user_id = int(raw_id)
    except (TypeError, ValueError) as exc:
        raise AuthError("Token has no usable subject") from exc

    roles = payload.get("roles") or ([payload["role"]] if payload.get("role") else [])
    exp = payload.get("exp")
    expires_at = datetime.fromtimestamp(exp, tz=timezone.utc) if exp is not None else None
    return Principal(
        user_id=user_id,
        email=payload.get("email"),
        roles=list(roles),
        expires_at=expires_at,
    )

from __future__ import annotations

import pytest

from hr_chat.api import deps
from hr_chat.infrastructure.auth.hs256_verifier import HS256Verifier


def test_jwks_mode_without_url_is_a_configuration_error(monkeypatch):
    monkeypatch.setattr(deps.settings, "JWT_VERIFY_MODE", "jwks")
    monkeypatch.setattr(deps.settings, "JWKS_URL", None)

    with pytest.raises(RuntimeError, match="JWKS_URL"):
        deps.build_verifier()


def test_hs256_is_the_default_verifier():
    assert isinstance(deps.build_verifier(), HS256Verifier)

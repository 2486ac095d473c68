"""OAuth session augmentation.

On every token refresh the OAuth pipeline copies the provider access token
and the external account's id and username into the token, and from there
into the session handed to the client.

Chain identity is keyed separately: nothing here reads or writes a DID.
The wallet's DID comes from the identity router, never from the OAuth session.
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


def _as_int(value: Any) -> int | None:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric external account id %r", value)
        return None


def augment_token(
    token: dict[str, Any],
    account: dict[str, Any] | None = None,
    profile: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Return a copy of ``token`` carrying the account's access token and identity.

    ``account`` and ``profile`` are only present on sign-in; on later
    refreshes the token passes through unchanged.
    """
    augmented = dict(token)
    if account and profile:
        augmented["accessToken"] = account.get("access_token")
        augmented["githubId"] = _as_int(profile.get("id"))
        augmented["githubUsername"] = profile.get("login")
    return augmented


def build_session(session: dict[str, Any], token: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``session`` with the token's claims exposed to the client."""
    built = dict(session)
    user = dict(built.get("user") or {})
    user["githubId"] = token.get("githubId")
    user["githubUsername"] = token.get("githubUsername")
    built["user"] = user
    built["accessToken"] = token.get("accessToken")
    return built

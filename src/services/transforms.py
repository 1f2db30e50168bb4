"""Transforms from raw backend payloads to the UI-shaped models.

Pure functions: field renaming, status vocabulary mapping, views display
text, date formatting and default substitution for absent fields.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional

from core.models import (
    KeyCollection,
    KeyDetails,
    KeyStatus,
    KeyType,
    KycStatus,
    Profile,
    RequestCollection,
    ShareableKey,
    UserSummary,
    VerificationRequest,
)

UNKNOWN = "Unknown"
UNLIMITED_VIEWS = 999

# Backend -> UI status vocabulary; "removed" collapses into "revoked"
_KEY_STATUS_MAP: Mapping[str, KeyStatus] = {
    "revoked": "revoked",
    "viewed_out": "viewed_out",
    "removed": "revoked",
}


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, (list, tuple)) else []


def format_date(value: Optional[str]) -> str:
    """Render an ISO-8601 timestamp as e.g. 'Jan 5, 2025'; 'Unknown' otherwise."""
    raw = _text(value)
    if raw is None:
        return UNKNOWN
    try:
        dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return UNKNOWN
    return f"{dt:%b} {dt.day}, {dt.year}"


def format_views(used: Any, allowed: Any) -> str:
    allowed_n = _as_int(allowed)
    if allowed_n == UNLIMITED_VIEWS:
        return "Unlimited"
    return f"{max(0, _as_int(used))}/{allowed_n}"


def map_key_status(status: Any) -> KeyStatus:
    return _KEY_STATUS_MAP.get(str(status or "").strip().lower(), "active")


def key_counterpart(raw: Mapping[str, Any], key_type: KeyType) -> str:
    # Priority: display name -> nested screen name -> nested email -> flat email
    nested_field = "recipient" if key_type == "sent" else "creator"
    nested = raw.get(nested_field)
    nested = nested if isinstance(nested, Mapping) else {}

    candidates = (
        raw.get("display_name"),
        nested.get("screen_name"),
        nested.get("email"),
        raw.get(f"{nested_field}_email"),
    )
    for c in candidates:
        s = _text(c)
        if s:
            return s
    return UNKNOWN


def transform_key(raw: Mapping[str, Any], key_type: KeyType) -> ShareableKey:
    used = _as_int(raw.get("views_used"))
    allowed = _as_int(raw.get("views_allowed"))
    status = map_key_status(raw.get("status"))

    return ShareableKey(
        id=_as_int(raw.get("id")),
        title=_text(raw.get("label")) or _text(raw.get("title")) or "Untitled Key",
        key_type=key_type,
        counterpart=key_counterpart(raw, key_type),
        status=status,
        views=format_views(used, allowed),
        views_used=used,
        views_allowed=allowed,
        views_remaining=max(0, allowed - used),
        is_new=key_type == "received" and used == 0 and status == "active",
        created_on=format_date(raw.get("created_at")),
        expires_on=format_date(raw.get("expires_at")),
        information_types=[str(t) for t in _list(raw.get("information_types"))],
        notes=_text(raw.get("notes")) or "",
    )


def _pick_list(raw: Mapping[str, Any], *names: str) -> Iterable[Mapping[str, Any]]:
    for name in names:
        value = raw.get(name)
        if isinstance(value, list):
            return [v for v in value if isinstance(v, Mapping)]
    return []


def transform_keys(raw: Any) -> KeyCollection:
    raw = raw if isinstance(raw, Mapping) else {}
    return KeyCollection(
        sent=[transform_key(k, "sent") for k in _pick_list(raw, "sent_keys", "sent")],
        received=[transform_key(k, "received") for k in _pick_list(raw, "received_keys", "received")],
    )


def transform_key_details(raw: Any) -> KeyDetails:
    raw = raw if isinstance(raw, Mapping) else {}
    # Details come either wrapped ({"key": {...}, "shared_data": {...}}) or flat
    key_raw = raw.get("key") if isinstance(raw.get("key"), Mapping) else raw
    key_type: KeyType = "received" if str(key_raw.get("type", "")).lower() == "received" else "sent"
    shared = raw.get("shared_data")
    return KeyDetails(
        key=transform_key(key_raw, key_type),
        shared_data=dict(shared) if isinstance(shared, Mapping) else {},
    )


def transform_request(raw: Mapping[str, Any], request_type: KeyType) -> VerificationRequest:
    if request_type == "sent":
        counterpart = _text(raw.get("target_email")) or _text(raw.get("recipient_email"))
    else:
        counterpart = _text(raw.get("requester_screen_name")) or _text(raw.get("requester_email"))

    return VerificationRequest(
        id=_as_int(raw.get("id")),
        title=_text(raw.get("label")) or _text(raw.get("title")) or "Verification Request",
        request_type=request_type,
        counterpart=counterpart or UNKNOWN,
        status=_text(raw.get("status")) or "pending",
        information_types=[str(t) for t in _list(raw.get("information_types"))],
        notes=_text(raw.get("notes")) or "",
        sent_on=format_date(raw.get("created_at")),
    )


def transform_requests(raw: Any) -> RequestCollection:
    raw = raw if isinstance(raw, Mapping) else {}
    return RequestCollection(
        sent=[transform_request(r, "sent") for r in _pick_list(raw, "sent")],
        received=[transform_request(r, "received") for r in _pick_list(raw, "received")],
    )


def transform_request_details(raw: Any) -> VerificationRequest:
    raw = raw if isinstance(raw, Mapping) else {}
    request_type: KeyType = "received" if str(raw.get("type", "")).lower() == "received" else "sent"
    return transform_request(raw, request_type)


def _display_name(raw: Mapping[str, Any]) -> str:
    full = " ".join(p for p in (_text(raw.get("first_name")), _text(raw.get("last_name"))) if p)
    return _text(raw.get("screen_name")) or full or _text(raw.get("email")) or UNKNOWN


def transform_profile(raw: Any) -> Profile:
    raw = raw if isinstance(raw, Mapping) else {}
    # Some endpoints wrap the profile as {"user": {...}}
    if isinstance(raw.get("user"), Mapping):
        raw = raw["user"]
    return Profile(
        id=_as_int(raw.get("id")),
        email=_text(raw.get("email")) or "",
        first_name=_text(raw.get("first_name")) or "",
        last_name=_text(raw.get("last_name")) or "",
        screen_name=_text(raw.get("screen_name")) or "",
        profile_image_url=_text(raw.get("profile_image_url")),
        profile_completed=bool(raw.get("profile_completed", False)),
        created_at=_text(raw.get("created_at")) or "",
        display_name=_display_name(raw),
    )


def transform_kyc_status(raw: Any) -> KycStatus:
    raw = raw if isinstance(raw, Mapping) else {}
    status = (_text(raw.get("status")) or "not_started").lower()
    return KycStatus(
        status=status,
        is_verified=bool(raw.get("is_verified", status == "verified")),
        submitted_on=format_date(raw.get("submitted_at")),
        verified_on=format_date(raw.get("verified_at")),
    )


def transform_user(raw: Mapping[str, Any]) -> UserSummary:
    return UserSummary(
        id=_as_int(raw.get("id")),
        screen_name=_text(raw.get("screen_name")) or "",
        display_name=_display_name(raw),
        email=_text(raw.get("email")) or "",
        profile_image_url=_text(raw.get("profile_image_url")),
    )


def transform_users(raw: Any) -> List[UserSummary]:
    if isinstance(raw, Mapping):
        raw = raw.get("users", [])
    return [transform_user(u) for u in _list(raw) if isinstance(u, Mapping)]

"""Immutable dataclasses for the UI-shaped resources returned by the accessors.

Every model round-trips through plain dicts (`to_dict` / `from_dict`) so the
cache only ever stores JSON-serialisable payloads.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Literal, Mapping, Optional


KeyType = Literal["sent", "received"]
KeyStatus = Literal["active", "revoked", "viewed_out"]


@dataclass(frozen=True)
class ShareableKey:
    """A key shared by or with the current user.

    Field groups:
    - Identity: id, title, key_type, counterpart
    - Lifecycle: status, is_new, created_on, expires_on
    - Views: views (display text), views_used, views_allowed, views_remaining
    - Content: information_types, notes
    """

    id: int
    title: str
    key_type: KeyType
    counterpart: str
    status: KeyStatus

    views: str
    views_used: int
    views_allowed: int
    views_remaining: int
    is_new: bool

    created_on: str = "Unknown"
    expires_on: str = "Unknown"
    information_types: List[str] = field(default_factory=list)
    notes: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ShareableKey":
        return cls(**data)


@dataclass(frozen=True)
class KeyCollection:
    sent: List[ShareableKey] = field(default_factory=list)
    received: List[ShareableKey] = field(default_factory=list)

    @property
    def new_count(self) -> int:
        return sum(1 for k in self.received if k.is_new)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "KeyCollection":
        return cls(
            sent=[ShareableKey.from_dict(k) for k in data.get("sent", [])],
            received=[ShareableKey.from_dict(k) for k in data.get("received", [])],
        )


@dataclass(frozen=True)
class KeyDetails:
    key: ShareableKey
    shared_data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "KeyDetails":
        return cls(
            key=ShareableKey.from_dict(data["key"]),
            shared_data=dict(data.get("shared_data") or {}),
        )


@dataclass(frozen=True)
class VerificationRequest:
    id: int
    title: str
    request_type: KeyType
    counterpart: str
    status: str
    information_types: List[str] = field(default_factory=list)
    notes: str = ""
    sent_on: str = "Unknown"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "VerificationRequest":
        return cls(**data)


@dataclass(frozen=True)
class RequestCollection:
    sent: List[VerificationRequest] = field(default_factory=list)
    received: List[VerificationRequest] = field(default_factory=list)

    @property
    def pending_count(self) -> int:
        return sum(1 for r in self.received if r.status == "pending")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RequestCollection":
        return cls(
            sent=[VerificationRequest.from_dict(r) for r in data.get("sent", [])],
            received=[VerificationRequest.from_dict(r) for r in data.get("received", [])],
        )


@dataclass(frozen=True)
class Profile:
    id: int
    email: str
    first_name: str = ""
    last_name: str = ""
    screen_name: str = ""
    profile_image_url: Optional[str] = None
    profile_completed: bool = False
    created_at: str = ""
    display_name: str = "Unknown"

    @classmethod
    def empty(cls) -> "Profile":
        return cls(id=0, email="")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Profile":
        return cls(**data)


@dataclass(frozen=True)
class KycStatus:
    status: str
    is_verified: bool
    submitted_on: str = "Unknown"
    verified_on: str = "Unknown"

    @classmethod
    def default(cls) -> "KycStatus":
        return cls(status="not_started", is_verified=False)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "KycStatus":
        return cls(**data)


@dataclass(frozen=True)
class UserSummary:
    id: int
    screen_name: str
    display_name: str
    email: str = ""
    profile_image_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UserSummary":
        return cls(**data)

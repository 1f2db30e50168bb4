"""Cache key namespace for the resource accessors.

Related keys share a literal prefix so one `invalidate_pattern(prefix)`
call retires a whole resource family.
"""

from __future__ import annotations

KEYS_PREFIX = "keys_"
REQUESTS_PREFIX = "requests_"
PROFILE_PREFIX = "profile_"
KYC_PREFIX = "kyc_"
USERS_PREFIX = "users_"

ALL_KEYS = f"{KEYS_PREFIX}all"
ALL_REQUESTS = f"{REQUESTS_PREFIX}all"
PROFILE = f"{PROFILE_PREFIX}me"
KYC_STATUS = f"{KYC_PREFIX}status"


def key_detail(key_id: int) -> str:
    return f"{KEYS_PREFIX}detail_{key_id}"


def request_detail(request_id: int) -> str:
    return f"{REQUESTS_PREFIX}detail_{request_id}"


def user_search(query: str) -> str:
    return f"{USERS_PREFIX}search_{query}"


def user_detail(user_id: int) -> str:
    return f"{USERS_PREFIX}detail_{user_id}"

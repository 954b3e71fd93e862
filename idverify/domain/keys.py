# idverify/domain/keys.py
import re

# Object keys are opaque, but always scoped under a per-user namespace:
#   users/<userId>/...      uploaded documents and images
#   liveness/<userId>/...   liveness session output (reference + audit images)
DOCUMENTS_ROOT = "users"
LIVENESS_ROOT = "liveness"

# A user id is a single key segment: no "/", no dot-only names.
_USER_ID = re.compile(r"^[A-Za-z0-9_@.-]{1,128}$")


def is_valid_user_id(user_id: str) -> bool:
    return bool(user_id) and bool(_USER_ID.match(user_id)) and user_id.strip(".") != ""


def user_prefix(user_id: str) -> str:
    return f"{DOCUMENTS_ROOT}/{user_id}/"


def liveness_prefix(user_id: str) -> str:
    return f"{LIVENESS_ROOT}/{user_id}/"


def _is_under(key: str, prefix: str) -> bool:
    return bool(key) and key.startswith(prefix) and ".." not in key.split("/")


def is_user_scoped(key: str, user_id: str) -> bool:
    if not is_valid_user_id(user_id):
        return False
    return _is_under(key, user_prefix(user_id)) or _is_under(key, liveness_prefix(user_id))


def is_liveness_scoped(key: str, user_id: str) -> bool:
    return is_valid_user_id(user_id) and _is_under(key, liveness_prefix(user_id))


def request_token(user_id: str, epoch_ms: int) -> str:
    """Idempotency token for a liveness session: [A-Za-z0-9_-], at most 64 chars."""
    suffix = f"-{epoch_ms}"
    safe_user = re.sub(r"[^A-Za-z0-9_-]", "_", user_id)
    return safe_user[: 64 - len(suffix)] + suffix

"""System identity and ownership metadata."""

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

SYSTEM_ID_KEY = "x-manage-system-id"
TEMPLATE_KEY = "x-manage-template"
VERSION_KEY = "x-manage-version"
CREATED_AT_KEY = "x-manage-created-at"

USERNAME_KEY = "x-manage-username"
PASSWORD_KEY = "x-manage-password"
CREDENTIAL_TYPE_KEY = "x-manage-credential-type"

UNNAMED_PREFIX = "unnamed"
QUEUE_PREFIX_PARAMETER = "queue_prefix"
VHOST_PARAMETER = "vhost"

_SYSTEM_ID_PATTERN = re.compile(r"^([^@]+)@([^:]+):(.+)$")


class RemovalReason(str, Enum):
    """Why an exchange survived teardown."""

    HAS_BINDINGS = "has_bindings"
    ORPHANED_EXCHANGE = "orphaned_exchange"


class ParsedSystemId(BaseModel):
    """Components of a system identity token."""

    model_config = ConfigDict(frozen=True)

    template: str
    vhost: str
    queue_prefix: str


def derive_system_id(template_name: str, vhost: str, prefix: Optional[str] = None) -> str:
    """Build the identity token ``{template}@{vhost}:{prefix}``."""
    return f"{template_name}@{vhost}:{prefix or UNNAMED_PREFIX}"


def parse_system_id(system_id: str) -> Optional[ParsedSystemId]:
    """Split an identity token into its parts, or None if it is malformed."""
    match = _SYSTEM_ID_PATTERN.match(system_id or "")
    if not match:
        return None
    return ParsedSystemId(template=match.group(1), vhost=match.group(2), queue_prefix=match.group(3))


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_metadata(
    system_id: str,
    template_name: str,
    template_version: str,
    now: Optional[datetime] = None,
) -> dict[str, str]:
    """Ownership arguments embedded in every resource created for a system."""
    return {
        SYSTEM_ID_KEY: system_id,
        TEMPLATE_KEY: template_name,
        VERSION_KEY: template_version,
        CREATED_AT_KEY: utc_timestamp(now),
    }

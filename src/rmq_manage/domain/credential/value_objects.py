"""Credential records stored in credential-registry bindings."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class CredentialKind(str, Enum):
    """Credential slots a system can hold."""

    PRIMARY = "primary"
    SECONDARY = "secondary"


class Credential(BaseModel):
    """A username/password pair issued to a system."""

    model_config = ConfigDict(frozen=True)

    username: str
    password: str
    created_at: str
    kind: CredentialKind


class SystemCredentials(BaseModel):
    """Primary and secondary credentials of one system."""

    primary: Optional[Credential] = None
    secondary: Optional[Credential] = None

    def has_any(self) -> bool:
        return self.primary is not None or self.secondary is not None

    def default(self) -> Optional[Credential]:
        """Primary credential when present, otherwise secondary."""
        return self.primary or self.secondary

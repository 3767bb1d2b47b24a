"""Pydantic models for identities and access rules.

Hierarchy:
  Principal   — the authenticated subject of a request.
  Actor       — optional delegated identity acting on behalf of the Principal.
  AccessRule  — backend-neutral predicate compiled from a Principal/Actor pair.
"""

from pydantic import BaseModel, ConfigDict

from shared.models.chunk import Chunk

ROLE_ADMINISTRATOR = "Administrator"
ROLE_MANAGER = "Manager"
ROLE_WORKER = "Worker"
IDENTITY_TYPE_AGENT = "agent"


class Principal(BaseModel):
    """Authenticated subject, assembled once at the authentication boundary.

    Attributes:
        scope:        Granted capability string (e.g. "Files.Read").
        roles:        Role names of the subject.
        organization: Tenant of the subject. May be empty.
        project:      Project of the subject. May be empty.
    """

    model_config = ConfigDict(frozen=True)

    scope: str = ""
    roles: frozenset[str] = frozenset()
    organization: str = ""
    project: str = ""


class Actor(BaseModel):
    """Delegated identity (e.g. an automated agent invoked by a human)."""

    model_config = ConfigDict(frozen=True)

    organization: str = ""
    identity_type: str = ""

    def is_agent(self) -> bool:
        return self.identity_type == IDENTITY_TYPE_AGENT


class AccessRule(BaseModel):
    """Conjunction of chunk constraints, or an unconditional deny.

    A field set to None places no constraint on the chunk. Stores may
    translate the rule into a native query; matches() is the reference
    predicate both paths must agree with.

    Attributes:
        allow:        False means no chunk is visible.
        organization: Chunk organization must equal this value.
        any_of_roles: Chunk required_roles must share at least one entry.
        project:      Chunk project must equal this value.
        reason:       Short label of the gate that produced the rule (for logs).
    """

    model_config = ConfigDict(frozen=True)

    allow: bool
    organization: str | None = None
    any_of_roles: frozenset[str] | None = None
    project: str | None = None
    reason: str = ""

    @classmethod
    def deny(cls, reason: str) -> "AccessRule":
        return cls(allow=False, reason=reason)

    def is_unrestricted(self) -> bool:
        return self.allow and self.organization is None and self.any_of_roles is None and self.project is None

    def matches(self, chunk: Chunk) -> bool:
        if not self.allow:
            return False
        if self.organization is not None and chunk.organization != self.organization:
            return False
        if self.any_of_roles is not None and not (chunk.required_roles & self.any_of_roles):
            return False
        if self.project is not None and chunk.project != self.project:
            return False
        return True

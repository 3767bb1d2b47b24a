"""Translates decoded token claims into Principal / Actor values.

The token itself is validated upstream; this class only knows claim names.
Unknown or malformed claim values collapse to empty values, which the
access policy treats as a deny.
"""

import json
from typing import Any

from shared.helper.HelperConfig import HelperConfig
from shared.models.access import Actor, Principal

CLAIM_SCOPE = "scope"
CLAIM_ROLES = ("roles", "role", "http://schemas.microsoft.com/ws/2008/06/identity/claims/role")
CLAIM_ORGANIZATION = "organization"
CLAIM_PROJECT = "project"
CLAIM_ACTOR = "act"
CLAIM_IDENTITY_TYPE = ("identitytype", "identity_type")


class ClaimsMapper:
    """Builds the typed identity values the access policy works on."""

    def __init__(self, helper_config: HelperConfig) -> None:
        self.logging = helper_config.get_logger()

    def to_principal(self, claims: dict[str, Any]) -> Principal:
        """Map subject claims to a Principal.

        Args:
            claims (dict[str, Any]): Decoded token claims.

        Returns:
            Principal: The subject. Missing claims become empty values.
        """
        roles: set[str] = set()
        for key in CLAIM_ROLES:
            roles.update(self._as_list(claims.get(key)))
        return Principal(
            scope=self._as_string(claims.get(CLAIM_SCOPE)),
            roles=frozenset(roles),
            organization=self._as_string(claims.get(CLAIM_ORGANIZATION)),
            project=self._as_string(claims.get(CLAIM_PROJECT)),
        )

    def to_actor(self, claims: dict[str, Any]) -> Actor | None:
        """Map the delegation claim ("act") to an Actor.

        Args:
            claims (dict[str, Any]): Decoded token claims.

        Returns:
            Actor | None: The actor, or None when no delegation occurred.
        """
        raw = claims.get(CLAIM_ACTOR)
        if raw is None:
            return None
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except json.JSONDecodeError:
                self.logging.warning("Ignoring undecodable 'act' claim; treating actor as unknown.")
                raw = {}
        if not isinstance(raw, dict):
            raw = {}

        identity_type = ""
        for key in CLAIM_IDENTITY_TYPE:
            if key in raw:
                identity_type = self._as_string(raw[key])
                break
        # an undecodable delegation still counts as delegated; it just carries no org
        return Actor(organization=self._as_string(raw.get(CLAIM_ORGANIZATION)), identity_type=identity_type)

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _as_string(self, value: Any) -> str:
        """First value of a claim, verbatim. Scope is compared exactly by the access gate."""
        if isinstance(value, list):
            value = value[0] if value else ""
        return value if isinstance(value, str) else ""

    def _as_list(self, value: Any) -> list[str]:
        """Accept both comma-joined role strings and JSON lists."""
        if isinstance(value, str):
            items = value.split(",")
        elif isinstance(value, list):
            items = [item for item in value if isinstance(item, str)]
        else:
            return []
        return [item.strip() for item in items if item.strip()]

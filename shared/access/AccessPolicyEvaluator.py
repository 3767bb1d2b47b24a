"""Access policy evaluator: decides which chunks a principal/actor pair may see.

AuthZ happens close to the resource and follows these business rules:
  - Agents don't have access to special (project-scoped) material.
  - Administrators have access to everything, in their and other orgs.
  - Workers, Managers (and their delegated agents) don't have cross-org access.

Every disallowed condition degrades to an empty result, never an exception,
so malformed or ambiguous claims fail closed.
"""

from typing import Sequence

from shared.helper.HelperConfig import HelperConfig
from shared.models.access import (
    ROLE_ADMINISTRATOR,
    ROLE_MANAGER,
    ROLE_WORKER,
    AccessRule,
    Actor,
    Principal,
)
from shared.models.chunk import Chunk
from shared.models.config import RetrievalSettings

# chunks with an empty project are general material
GENERAL_PROJECT = ""


class AccessPolicyEvaluator:
    """Compiles principal/actor pairs into access rules and applies them to a corpus."""

    def __init__(self, helper_config: HelperConfig, settings: RetrievalSettings) -> None:
        self.logging = helper_config.get_logger()
        self._required_scope = settings.required_scope

    ##########################################
    ################ CORE ####################
    ##########################################

    def build_rule(self, principal: Principal, actor: Actor | None) -> AccessRule:
        """Evaluate the ordered access gates. The first failing gate denies.

        Args:
            principal (Principal): The authenticated subject.
            actor (Actor | None): The delegated identity, if any.

        Returns:
            AccessRule: A deny rule, or the constraints a visible chunk must meet.
        """
        actor = actor or Actor()
        self.logging.info(
            "Scope:%r Roles:%r SubjectOrg:%r SubjectProject:%r ActorOrg:%r ActorIdentityType:%r",
            principal.scope,
            sorted(principal.roles),
            principal.organization,
            principal.project,
            actor.organization,
            actor.identity_type,
        )

        if principal.scope != self._required_scope:
            return self._deny("insufficient scope")

        # actor and subject from different organizations (broken trust invariant)
        if principal.organization and actor.organization and principal.organization != actor.organization:
            return self._deny("tenant mismatch")

        if ROLE_ADMINISTRATOR in principal.roles:
            if actor.is_agent():
                return AccessRule(allow=True, project=GENERAL_PROJECT, reason="administrator via agent")
            return AccessRule(allow=True, reason="administrator")

        if ROLE_MANAGER not in principal.roles and ROLE_WORKER not in principal.roles:
            return self._deny("unrecognized role")

        if actor.is_agent():
            project = GENERAL_PROJECT
        elif ROLE_MANAGER in principal.roles:
            # managers see every project of their organization
            project = None
        else:
            project = principal.project

        return AccessRule(
            allow=True,
            organization=principal.organization,
            any_of_roles=principal.roles,
            project=project,
            reason="standard",
        )

    def evaluate(self, principal: Principal, actor: Actor | None, corpus: Sequence[Chunk]) -> list[Chunk]:
        """Return the subset of the corpus visible to the principal/actor pair.

        Args:
            principal (Principal): The authenticated subject.
            actor (Actor | None): The delegated identity, if any.
            corpus (Sequence[Chunk]): Candidate chunks.

        Returns:
            list[Chunk]: Visible chunks, in corpus order.
        """
        return self.apply_rule(self.build_rule(principal, actor), corpus)

    def apply_rule(self, rule: AccessRule, corpus: Sequence[Chunk]) -> list[Chunk]:
        """Filter a corpus in memory with an already compiled rule.

        Args:
            rule (AccessRule): Output of build_rule().
            corpus (Sequence[Chunk]): Candidate chunks.

        Returns:
            list[Chunk]: Matching chunks, in corpus order.
        """
        if not rule.allow:
            return []
        visible = [chunk for chunk in corpus if rule.matches(chunk)]
        self.logging.debug("Access rule %r admitted %d of %d chunk(s).", rule.reason, len(visible), len(corpus))
        return visible

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _deny(self, reason: str) -> AccessRule:
        self.logging.info("Access denied: %s.", reason)
        return AccessRule.deny(reason)

"""
Member directory -- the narrow interface to membership management.

Membership (who lives in which household) is owned by another part of the
application.  The kernel only reads it, through ``MemberDirectory``.  Hosts
pass an adapter over their own user store; tests and single-process hosts
use ``InMemoryMemberDirectory``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol
from uuid import UUID, uuid4

from household_kernel.exceptions import (
    HouseholdMismatchError,
    HouseholdNotFoundError,
    MemberNotFoundError,
)


@dataclass(frozen=True)
class MemberInfo:
    """A household member as seen by the ledger."""

    id: UUID
    display_name: str
    household_id: UUID


@dataclass(frozen=True)
class HouseholdInfo:
    """A household and the ids of its members."""

    id: UUID
    member_ids: tuple[UUID, ...] = field(default_factory=tuple)


class MemberDirectory(Protocol):
    """Read-only lookups into the membership store."""

    def get_member(self, member_id: UUID) -> MemberInfo:
        """Return the member.  Raises MemberNotFoundError."""
        ...

    def list_members(self, household_id: UUID) -> list[MemberInfo]:
        """Members of a household, possibly empty."""
        ...

    def get_household(self, household_id: UUID) -> HouseholdInfo:
        """Return the household.  Raises HouseholdNotFoundError."""
        ...


def require_same_household(
    directory: MemberDirectory,
    household_id: UUID,
    member_ids: list[UUID] | tuple[UUID, ...],
) -> list[MemberInfo]:
    """
    Look up every member and check that each belongs to ``household_id``.

    Raises:
        MemberNotFoundError: Unknown member id.
        HouseholdMismatchError: Member of another household.
    """
    members = []
    for member_id in member_ids:
        member = directory.get_member(member_id)
        if member.household_id != household_id:
            raise HouseholdMismatchError(str(member_id), str(household_id))
        members.append(member)
    return members


class InMemoryMemberDirectory:
    """Dictionary-backed MemberDirectory."""

    def __init__(self) -> None:
        self._members: dict[UUID, MemberInfo] = {}
        self._households: dict[UUID, list[UUID]] = {}

    def add_household(self, household_id: UUID | None = None) -> UUID:
        household_id = household_id or uuid4()
        self._households.setdefault(household_id, [])
        return household_id

    def add_member(
        self,
        display_name: str,
        household_id: UUID,
        member_id: UUID | None = None,
    ) -> MemberInfo:
        self.add_household(household_id)
        member = MemberInfo(
            id=member_id or uuid4(),
            display_name=display_name,
            household_id=household_id,
        )
        self._members[member.id] = member
        self._households[household_id].append(member.id)
        return member

    def remove_member(self, member_id: UUID) -> None:
        """Drop a member who left; their past entries stay in the ledger."""
        member = self.get_member(member_id)
        del self._members[member_id]
        self._households[member.household_id].remove(member_id)

    def get_member(self, member_id: UUID) -> MemberInfo:
        member = self._members.get(member_id)
        if member is None:
            raise MemberNotFoundError(str(member_id))
        return member

    def list_members(self, household_id: UUID) -> list[MemberInfo]:
        return [self._members[m] for m in self._households.get(household_id, [])]

    def get_household(self, household_id: UUID) -> HouseholdInfo:
        if household_id not in self._households:
            raise HouseholdNotFoundError(str(household_id))
        return HouseholdInfo(
            id=household_id,
            member_ids=tuple(self._households[household_id]),
        )

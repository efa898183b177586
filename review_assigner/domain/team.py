"""Team aggregate.

A team is a materialized view over users sharing a ``team_name``. It is
rebuilt from storage on every read and never cached, so the member list is
a snapshot valid for the enclosing transaction only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from review_assigner.core.exceptions import NotFoundError, ValidationError
from review_assigner.domain.user import User


@dataclass(frozen=True)
class Team:
    name: str
    members: tuple[User, ...] = field(default_factory=tuple)

    @classmethod
    def create(cls, name: str, members: Iterable[User] | None = None) -> Team:
        """Build a team, dropping any member whose ``team_name`` differs."""
        if not name:
            raise ValidationError("empty team_name", details={"team_name": "required"})
        owned = tuple(m for m in (members or ()) if m.team_name == name)
        return cls(name=name, members=owned)

    def active_members(self) -> list[User]:
        return [m for m in self.members if m.is_active]

    def find_member(self, user_id: str) -> User | None:
        """Return the member with ``user_id``, or None.

        The returned ``User`` is immutable. To change a member, use
        ``with_member_activity`` and persist the resulting team explicitly.
        """
        for m in self.members:
            if m.id == user_id:
                return m
        return None

    def has_member(self, user_id: str) -> bool:
        return self.find_member(user_id) is not None

    def with_member_activity(self, user_id: str, is_active: bool) -> Team:
        """Return a copy of the team with one member's activity flag changed.

        Raises:
            NotFoundError: If ``user_id`` is not a member of this team.
        """
        if not self.has_member(user_id):
            raise NotFoundError("TeamMember", user_id)
        updated = tuple(
            m.with_active(is_active) if m.id == user_id else m
            for m in self.members
        )
        return Team(name=self.name, members=updated)

    def to_dict(self) -> dict:
        return {
            "team_name": self.name,
            "members": [
                {"user_id": m.id, "username": m.name, "is_active": m.is_active}
                for m in self.members
            ],
        }

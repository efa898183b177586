"""User entity."""

from __future__ import annotations

from dataclasses import dataclass

from review_assigner.core.exceptions import ValidationError


@dataclass(frozen=True)
class User:
    """A team member who can author or review pull requests.

    Users are never deleted, only deactivated. Instances are immutable; an
    activity change produces a new value (see ``with_active``).
    """

    id: str
    name: str
    team_name: str
    is_active: bool = True

    @classmethod
    def create(cls, user_id: str, name: str, team_name: str, is_active: bool = True) -> User:
        missing = [
            field for field, value in (
                ("user_id", user_id), ("username", name), ("team_name", team_name),
            )
            if not value
        ]
        if missing:
            raise ValidationError(
                f"empty parameter: {', '.join(missing)}",
                details={field: "required" for field in missing},
            )
        return cls(id=user_id, name=name, team_name=team_name, is_active=bool(is_active))

    def with_active(self, is_active: bool) -> User:
        return User(id=self.id, name=self.name, team_name=self.team_name, is_active=is_active)

    def to_dict(self) -> dict:
        return {
            "user_id": self.id,
            "username": self.name,
            "team_name": self.team_name,
            "is_active": self.is_active,
        }

"""
Review Assigner
Team and user persistence models.

Models:
    - TeamRecord: unique team name
    - UserRecord: team member; membership is the ``team_name`` column

Architecture:
    TeamRecord ──1:N──▶ UserRecord   (by team_name)
"""

from datetime import datetime, timezone

from review_assigner.models import db


class TeamRecord(db.Model):
    __tablename__ = "teams"

    team_name = db.Column(db.String(255), primary_key=True)
    created_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )


class UserRecord(db.Model):
    __tablename__ = "users"
    __table_args__ = (
        db.Index("idx_users_team_name", "team_name"),
        db.Index("idx_users_team_active", "team_name", "is_active"),
    )

    user_id = db.Column(db.String(255), primary_key=True)
    username = db.Column(db.String(255), nullable=False)
    team_name = db.Column(
        db.String(255),
        db.ForeignKey("teams.team_name", ondelete="RESTRICT"),
        nullable=False,
    )
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

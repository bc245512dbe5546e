"""
Idea Box
Notification domain model.

Models:
    - Notification: in-app notification record with read tracking
"""

from datetime import datetime, timezone

from ideabox.models import db


# ── Constants ────────────────────────────────────────────────────────────────

NOTIFICATION_TYPES = {
    "SUGGESTION_STATUS_UPDATED",
    "SUGGESTION_APPROVED",
    "SUGGESTION_REJECTED",
    "SUGGESTION_CLASSIFIED",
    "SYSTEM",
}
NOTIFICATION_CHANNELS = {"IN_APP", "EMAIL", "PUSH"}


class Notification(db.Model):
    """
    In-app notification entity.

    One record per recipient per event.
    """

    __tablename__ = "notifications"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True,
    )
    title = db.Column(db.String(300), nullable=False)
    message = db.Column(db.Text, default="")
    type = db.Column(db.String(40), default="SYSTEM", index=True)
    channel = db.Column(db.String(20), default="IN_APP")

    # Link to source entity
    entity_type = db.Column(db.String(30), default="", comment="suggestion/...")
    entity_id = db.Column(db.Integer, nullable=True)
    action_url = db.Column(db.String(500), nullable=True)

    # Read tracking
    is_read = db.Column(db.Boolean, default=False)
    read_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def mark_read(self):
        self.is_read = True
        self.read_at = datetime.now(timezone.utc)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "message": self.message,
            "type": self.type,
            "channel": self.channel,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "action_url": self.action_url,
            "is_read": self.is_read,
            "read_at": self.read_at.isoformat() if self.read_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Notification {self.id}: {self.title[:40]}>"

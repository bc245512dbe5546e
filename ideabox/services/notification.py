"""
Idea Box
Notification Service.

Central service for creating and querying in-app notifications. The
workflow never calls this directly: it emits NotifySubmitter intents which
the side-effect dispatcher hands to ``NotificationService.create``.
"""

from datetime import datetime, timezone

from ideabox.models import db
from ideabox.models.notification import Notification


class NotificationService:
    """Stateless service class for notification operations."""

    # ── Create ────────────────────────────────────────────────────────────

    @staticmethod
    def create(*, title, message="", type="SYSTEM", channel="IN_APP",
               user_id=None, entity_type="", entity_id=None, action_url=None):
        """
        Create a single notification record.

        Returns:
            The created Notification instance (already committed).
        """
        notif = Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            channel=channel,
            entity_type=entity_type,
            entity_id=entity_id,
            action_url=action_url,
        )
        db.session.add(notif)
        db.session.commit()
        return notif

    # ── Query ─────────────────────────────────────────────────────────────

    @staticmethod
    def list_for_user(user_id, *, unread_only=False, type=None, limit=50, offset=0):
        """
        Retrieve notifications for a user, newest first.
        """
        q = Notification.query.filter_by(user_id=user_id)
        if unread_only:
            q = q.filter_by(is_read=False)
        if type:
            q = q.filter_by(type=type)
        total = q.count()
        items = q.order_by(Notification.created_at.desc(), Notification.id.desc()) \
            .offset(offset).limit(limit).all()
        return items, total

    @staticmethod
    def unread_count(user_id):
        """Return count of unread notifications."""
        return Notification.query.filter_by(user_id=user_id, is_read=False).count()

    # ── Actions ───────────────────────────────────────────────────────────

    @staticmethod
    def mark_read(notification_id, user_id):
        """Mark a single notification as read; None when it is not the user's."""
        notif = db.session.get(Notification, notification_id)
        if not notif or notif.user_id != user_id:
            return None
        notif.mark_read()
        db.session.commit()
        return notif

    @staticmethod
    def mark_all_read(user_id):
        """Mark all notifications for a user as read."""
        q = Notification.query.filter_by(user_id=user_id, is_read=False)
        now = datetime.now(timezone.utc)
        count = q.update({"is_read": True, "read_at": now}, synchronize_session="fetch")
        db.session.commit()
        return count

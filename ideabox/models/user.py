"""
Idea Box
User directory model.

Identity is owned by the external identity provider; this table is the
read-only projection the workflow needs: display names, the submitter's
e-mail address and the admin flag.
"""

from datetime import datetime, timezone

from ideabox.models import db

USER_ROLES = {"ADMIN", "USER"}


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    first_name = db.Column(db.String(100), nullable=True)
    last_name = db.Column(db.String(100), nullable=True)
    sector = db.Column(db.String(100), nullable=True, comment="Setor / department")
    role = db.Column(db.String(20), nullable=False, default="USER", comment="ADMIN | USER")
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    @property
    def is_admin(self):
        return self.role == "ADMIN"

    @property
    def display_name(self):
        """Full name when both parts are known, otherwise the e-mail."""
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.email

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "sector": self.sector,
            "role": self.role,
        }

    def __repr__(self):
        return f"<User {self.id}: {self.email}>"

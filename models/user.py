from datetime import datetime
from models.db import db

class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)

    username = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    # flipped by the login guard after too many failures, reactivated manually
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    auth_logs = db.relationship(
        "AuthLog",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="dynamic",
    )

    @classmethod
    def find_by_login_name(cls, login_name: str):
        return cls.query.filter_by(username=login_name).first()

    @property
    def auth_log(self):
        """Auth log tracker bound to this user, created on first access."""
        tracker = getattr(self, "_auth_log_tracker", None)
        if tracker is None:
            from security.auth_log import AuthLogIdentity
            tracker = AuthLogIdentity(self)
            self._auth_log_tracker = tracker
        return tracker

    def deactivate(self) -> bool:
        if not self.is_active:
            return False
        self.is_active = False
        db.session.commit()
        return True

    def activate(self) -> bool:
        self.is_active = True
        db.session.commit()
        return True

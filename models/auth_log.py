from models.db import db

class AuthLog(db.Model):
    __tablename__ = "auth_logs"
    __table_args__ = (
        db.Index("ix_auth_logs_user_id_date", "user_id", "date"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    # epoch seconds; ties are broken by id
    date = db.Column(db.Integer, nullable=False)

    # NULL (or the configured default) marks a successful attempt
    error = db.Column(db.String(255), nullable=True)

    ip = db.Column(db.String(64), nullable=True)
    host = db.Column(db.String(255), nullable=True)
    url = db.Column(db.String(255), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)

    cookie_based = db.Column(db.Boolean, nullable=True)
    duration = db.Column(db.Integer, nullable=True)

    user = db.relationship("User", back_populates="auth_logs")

    @classmethod
    def column_names(cls) -> set:
        return set(cls.__table__.columns.keys())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "error": self.error,
            "ip": self.ip,
            "host": self.host,
            "url": self.url,
            "user_agent": self.user_agent,
            "cookie_based": self.cookie_based,
            "duration": self.duration,
        }

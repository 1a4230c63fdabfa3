import logging

from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.auth_log import AuthLog
from security.errors import AuthLogStoreError
from security.sequence import coerce_token

logger = logging.getLogger(__name__)

# "no filter" marker for the error column, distinct from None (= IS NULL)
ANY = object()


class AuthLogStore:
    """
    Append / query / prune access to the auth log table, always scoped to a
    single user. Queries are ordered newest first: date DESC, id DESC.
    """

    def __init__(self, session=None, model=AuthLog):
        self.session = session if session is not None else db.session
        self.model = model

    def _scoped(self, user_id, error=ANY):
        q = self.session.query(self.model).filter(self.model.user_id == user_id)
        if error is not ANY:
            token = coerce_token(error)
            if token is None:
                q = q.filter(self.model.error.is_(None))
            else:
                q = q.filter(self.model.error == token)
        return q

    def _ordered(self, q):
        return q.order_by(self.model.date.desc(), self.model.id.desc())

    def _fail(self, action: str, exc: SQLAlchemyError):
        self.session.rollback()
        logger.error("Auth log %s failed: %s", action, exc)
        raise AuthLogStoreError(f"Unable to {action} auth log") from exc

    def append(self, user_id, values: dict):
        columns = self.model.column_names()
        row = self.model(user_id=user_id)
        for name, value in values.items():
            if name in ("id", "user_id") or name not in columns:
                continue
            if name == "error":
                value = coerce_token(value)
            setattr(row, name, value)

        try:
            self.session.add(row)
            self.session.commit()
        except SQLAlchemyError as exc:
            self._fail("write", exc)
        return row

    def recent(self, user_id, limit: int, offset: int = 0, error=ANY):
        try:
            return (
                self._ordered(self._scoped(user_id, error))
                .offset(offset)
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as exc:
            self._fail("query", exc)

    def find_one(self, user_id, offset: int = 0, error=ANY):
        rows = self.recent(user_id, limit=1, offset=offset, error=error)
        return rows[0] if rows else None

    def count(self, user_id) -> int:
        try:
            return self._scoped(user_id).count()
        except SQLAlchemyError as exc:
            self._fail("count", exc)

    def delete_through(self, user_id, date) -> int:
        """Deletes every row of the user dated at or before ``date``."""
        try:
            deleted = (
                self._scoped(user_id)
                .filter(self.model.date <= date)
                .delete(synchronize_session=False)
            )
            self.session.commit()
        except SQLAlchemyError as exc:
            self._fail("delete", exc)
        return deleted

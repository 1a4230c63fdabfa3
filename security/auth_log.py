import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Union

from flask import current_app

from security.auth_log_store import AuthLogStore
from security.errors import AuthLogStoreError
from security.retention import RetentionPolicy
from security.sequence import is_failure_run, record_date
from utils.audit import request_auth_log_data
from utils.values import resolve_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthLogSettings:
    # value stored in the error column for successful attempts
    error_default: Any = None
    # None means "now"; otherwise a value or a callback taking the identity
    date_default: Any = None
    # extra columns to store with every entry: mapping or callback taking the identity
    default_data: Union[Mapping, Callable, None] = None
    gc_probability: int = 100000
    gc_limit: int = 1000

    @classmethod
    def from_config(cls, config) -> "AuthLogSettings":
        return cls(
            error_default=config.get("AUTH_LOG_ERROR_DEFAULT"),
            date_default=config.get("AUTH_LOG_DATE_DEFAULT"),
            default_data=config.get("AUTH_LOG_DEFAULT_DATA", request_auth_log_data),
            gc_probability=int(config.get("AUTH_LOG_GC_PROBABILITY", 100000)),
            gc_limit=int(config.get("AUTH_LOG_GC_LIMIT", 1000)),
        )


class AuthLogIdentity:
    """
    Auth log access for one identity (user): writing attempts, login
    statistics, failure sequence checks and garbage collection.
    """

    def __init__(self, identity, store=None, settings: Optional[AuthLogSettings] = None, retention=None):
        self.identity = identity
        self.store = store if store is not None else AuthLogStore()
        self.settings = settings if settings is not None else AuthLogSettings.from_config(current_app.config)
        self.retention = retention if retention is not None else RetentionPolicy(
            self.store,
            limit=self.settings.gc_limit,
            probability=self.settings.gc_probability,
        )
        # skip -> record (or None); a missing key means "not looked up yet"
        self._successful = {}

    @property
    def identity_id(self):
        return self.identity.id

    # Writing :

    def compose_default_data(self) -> dict:
        if self.settings.date_default is None:
            date = int(time.time())
        else:
            date = resolve_value(self.settings.date_default, self.identity)

        data = {
            "error": self.settings.error_default,
            "date": date,
        }
        if self.settings.default_data is not None:
            data.update(resolve_value(self.settings.default_data, self.identity) or {})
        return data

    def write_auth_log(self, data: Optional[Mapping] = None):
        values = self.compose_default_data()
        values.update(data or {})
        row = self.store.append(self.identity_id, values)
        self._successful.clear()
        return row

    def log_auth(self, data: Optional[Mapping] = None):
        """Writes an entry and lets the garbage collector run."""
        row = self.write_auth_log(data)
        self.gc_auth_logs()
        return row

    def log_auth_error(self, error, data: Optional[Mapping] = None):
        data = dict(data or {})
        data["error"] = error
        logger.debug("Auth failure for user %s: %s", self.identity_id, error)
        return self.log_auth(data)

    def gc_auth_logs(self, force: bool = False) -> int:
        return self.retention.collect(self.identity_id, force=force)

    # Statistics :

    def find_successful_auth_log(self, skip: int = 0):
        return self.store.find_one(
            self.identity_id,
            offset=skip,
            error=self.settings.error_default,
        )

    def _cached_successful_auth_log(self, skip: int, refresh: bool):
        if refresh or skip not in self._successful:
            try:
                self._successful[skip] = self.find_successful_auth_log(skip)
            except AuthLogStoreError:
                logger.warning("Unable to look up successful auth log of user %s", self.identity_id)
                return None
        return self._successful[skip]

    def get_last_successful_auth_log(self, refresh: bool = False):
        return self._cached_successful_auth_log(0, refresh)

    def get_pre_last_successful_auth_log(self, refresh: bool = False):
        return self._cached_successful_auth_log(1, refresh)

    def login_date(self, skip: int = 0):
        return record_date(self.find_successful_auth_log(skip))

    def get_last_login_date(self, refresh: bool = False):
        return record_date(self.get_last_successful_auth_log(refresh))

    def get_pre_last_login_date(self, refresh: bool = False):
        return record_date(self.get_pre_last_successful_auth_log(refresh))

    def has_failed_login_sequence(self, length: int) -> bool:
        """
        Checks whether the latest ``length`` entries are all failures.
        """
        if length < 1:
            return False
        records = self.store.recent(self.identity_id, limit=length)
        return is_failure_run(records, length, self.settings.error_default)

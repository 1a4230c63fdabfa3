"""
Pure checks over auth log records ordered newest first.

Success or failure is decided only by comparing a record's error token with
the configured "no error" value.
"""


def coerce_token(value):
    # tokens are stored as text, so compare them the same way
    if value is None:
        return None
    return str(value)


def is_success(record, error_default=None) -> bool:
    return coerce_token(record.error) == coerce_token(error_default)


def is_failure_run(records, length: int, error_default=None) -> bool:
    """
    True if there are at least ``length`` records and none of them succeeded.
    Fewer records cannot prove a run of that length.
    """
    if length < 1:
        return False
    records = list(records)
    if len(records) < length:
        return False
    return not any(is_success(r, error_default) for r in records[:length])


def record_date(record):
    if record is None:
        return None
    return record.date

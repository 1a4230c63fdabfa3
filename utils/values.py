def resolve_value(value, *args):
    """
    Settings such as the default log date or extra log data may be either a
    plain value or a callback. Callbacks are invoked with the given context.
    """
    if callable(value):
        return value(*args)
    return value

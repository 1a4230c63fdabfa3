class AuthLogError(Exception):
    pass


class ConfigurationError(AuthLogError):
    pass


class AuthLogStoreError(AuthLogError):
    pass

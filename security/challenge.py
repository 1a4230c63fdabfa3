"""
Robot verification rules used by the login guard once a user has a run of
failed logins. A rule checks one field of a form and reports a failure as a
field error on that form.
"""
import hmac

from flask import session

from security.errors import ConfigurationError


class ChallengeRule:
    message = "The verification code is incorrect."

    def __init__(self, message: str = None):
        if message is not None:
            self.message = message

    def check(self, form, field: str) -> bool:
        raise NotImplementedError

    def validate(self, form, field: str) -> bool:
        if self.check(form, field):
            return True
        form.add_error(field, self.message.format(label=form.label(field)))
        return False


class RequiredRule(ChallengeRule):
    message = "{label} cannot be blank."

    def check(self, form, field: str) -> bool:
        value = getattr(form, field, None)
        if value is None:
            return False
        if isinstance(value, str):
            return bool(value.strip())
        return True


class CaptchaRule(ChallengeRule):
    """
    Compares the submitted code with the one issued to the client session
    (stored under ``session_key`` when the CAPTCHA image was rendered).
    """

    def __init__(self, session_key: str = "captcha_code", case_sensitive: bool = False,
                 single_use: bool = True, code_provider=None, message: str = None):
        super().__init__(message)
        self.session_key = session_key
        self.case_sensitive = case_sensitive
        self.single_use = single_use
        self.code_provider = code_provider

    def expected_code(self):
        if self.code_provider is not None:
            return self.code_provider()
        if self.single_use:
            return session.pop(self.session_key, None)
        return session.get(self.session_key)

    def check(self, form, field: str) -> bool:
        value = getattr(form, field, None)
        expected = self.expected_code()
        if not value or not expected:
            return False

        value, expected = str(value).strip(), str(expected)
        if not self.case_sensitive:
            value, expected = value.lower(), expected.lower()
        return hmac.compare_digest(value.encode("utf-8"), expected.encode("utf-8"))


class PredicateRule(ChallengeRule):
    def __init__(self, predicate, message: str = None):
        super().__init__(message)
        self.predicate = predicate

    def check(self, form, field: str) -> bool:
        return bool(self.predicate(getattr(form, field, None)))


BUILTIN_RULES = {
    "required": RequiredRule,
    "captcha": CaptchaRule,
}


def _invalid_rule():
    return ConfigurationError("Invalid validation rule: a rule must specify validator type.")


def create_rule(spec) -> ChallengeRule:
    """
    Builds a rule from its configuration:

    - a ``ChallengeRule`` instance is used as is
    - ``"captcha"`` or ``("captcha", {"case_sensitive": True})``: a built-in rule by name
    - ``(RuleClass, {...})``: a rule class with options
    - any other callable: predicate receiving the field value
    """
    if isinstance(spec, ChallengeRule):
        return spec
    if isinstance(spec, str):
        spec = (spec,)

    if isinstance(spec, (list, tuple)):
        if not spec:
            raise _invalid_rule()
        kind = spec[0]
        options = spec[1] if len(spec) > 1 else {}
        if not isinstance(options, dict):
            raise _invalid_rule()

        if isinstance(kind, str):
            if kind not in BUILTIN_RULES:
                raise ConfigurationError(f"Unknown validation rule: {kind!r}.")
            return BUILTIN_RULES[kind](**options)
        if isinstance(kind, type) and issubclass(kind, ChallengeRule):
            return kind(**options)
        if callable(kind):
            return PredicateRule(kind, **options)
        raise _invalid_rule()

    if callable(spec):
        return PredicateRule(spec)

    raise _invalid_rule()

from collections.abc import Mapping


class Form:
    """
    Minimal form model: holds submitted values as attributes and collects
    per-field validation errors.
    """

    fields = ()

    def __init__(self, data=None):
        # anything but an object (a JSON list, a string) submits no values
        if not isinstance(data, Mapping):
            data = {}
        for name in self.fields:
            setattr(self, name, data.get(name))
        self.errors = {}

    def add_error(self, field: str, message: str):
        self.errors.setdefault(field, []).append(message)

    def has_errors(self, field: str = None) -> bool:
        if field is None:
            return any(self.errors.values())
        return bool(self.errors.get(field))

    def clear_errors(self):
        self.errors = {}

    def first_errors(self) -> dict:
        return {field: messages[0] for field, messages in self.errors.items() if messages}

    def label(self, field: str) -> str:
        return field.replace("_", " ").capitalize()

    def validate(self) -> bool:
        raise NotImplementedError

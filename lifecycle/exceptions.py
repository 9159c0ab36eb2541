"""Exceptions raised by the lifecycle engine."""


class InvalidInputError(ValueError):
    """A mandatory field is missing and no default can stand in for it."""

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Missing required field: {field_name}")

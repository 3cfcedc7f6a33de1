from typing import Iterable


class ValidationError(ValueError):
    """Malformed scenario input, out-of-domain value or unknown identifier.

    ``errors`` keeps every problem found so callers can report them at once.
    """

    def __init__(self, errors, prefix: str = ""):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        message = ", ".join(self.errors)
        super().__init__(f"{prefix}{message}" if prefix else message)


def missing_fields(fields: Iterable[str]) -> ValidationError:
    return ValidationError(list(fields), prefix="Please provide: ")

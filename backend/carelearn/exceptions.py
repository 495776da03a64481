from typing import Optional


class RequestError(Exception):
    """Base class for failures that map onto an HTTP-style status."""

    def __init__(self, status_code: int, message: str, errors: Optional[dict[str, list[str]]] = None):
        self.status_code = status_code
        self.message = message
        self.errors = errors
        super().__init__(message)


class ValidationError(RequestError):
    def __init__(self, field_errors: dict[str, list[str]], message: Optional[str] = None):
        self.field_errors = field_errors
        super().__init__(400, message or format_field_errors(field_errors), field_errors)


class UnauthorizedError(RequestError):
    """No resolvable identity."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(401, message)


class ForbiddenError(RequestError):
    """Identity present but wrong or missing role."""

    def __init__(self, message: str = "Forbidden"):
        super().__init__(403, message)


class NotFoundError(RequestError):
    def __init__(self, resource: str):
        super().__init__(404, f"{resource} not found")


class ConflictError(RequestError):
    """Business-rule refusal, e.g. deleting a program that still has enrollments."""

    def __init__(self, message: str, errors: Optional[dict[str, list[str]]] = None):
        super().__init__(400, message, errors)


class RedirectRequired(Exception):
    """Raised by page-mode guards; turned into a 303 by the app's exception handler.

    Not a RequestError: inside an action it surfaces as an unexpected failure.
    """

    def __init__(self, location: str):
        self.location = location
        super().__init__(f"redirect to {location}")


def format_field_errors(errors: dict[str, list[str]]) -> str:
    messages = []
    for field, field_messages in errors.items():
        field_name = field[:1].upper() + field[1:]
        if field_messages and field_messages[0] == "Field required":
            messages.append(f"{field_name} is required")
        else:
            messages.append(f"{field_name}: " + " and ".join(field_messages))
    return ", ".join(messages)

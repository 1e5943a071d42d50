# harada/core/errors.py
"""Domain errors raised by the services and mapped to HTTP responses in main."""


class HaradaError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotAuthenticated(HaradaError):
    status_code = 401


class NotFound(HaradaError):
    status_code = 404


class ValidationError(HaradaError):
    status_code = 422


class InvalidTransition(ValidationError):
    """A cycle was asked to move to a state it cannot reach from its current one."""
    status_code = 409


class StoreFault(HaradaError):
    status_code = 503

"""Errors raised by the forest service, each carrying its HTTP status."""


class ForestError(Exception):
    status_code = 500
    message = 'An internal server error occurred.'

    def __init__(self, message=None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class ValidationError(ForestError):
    status_code = 400
    message = 'Tree type and growth duration are required.'


class InsufficientFundsError(ForestError):
    status_code = 400
    message = 'Not enough coins.'


class AuthError(ForestError):
    status_code = 401
    message = 'Authentication Required'


class NotFoundError(ForestError):
    status_code = 404
    message = 'User state not found. Please log in to the main app first.'


class ConflictError(ForestError):
    status_code = 409
    message = 'Coin balance changed during purchase, please retry.'


class UpstreamStoreError(ForestError):
    status_code = 500

class ReloadRageError(Exception):
    """Base class for errors raised by the view tracker."""

    message = 'Something went wrong'

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.message = message or self.message


class ValidationError(ReloadRageError):
    message = 'Username and password are required'


class DuplicateUsernameError(ReloadRageError):
    message = 'Username already exists'


class InvalidCredentialsError(ReloadRageError):
    # Same text whether the username or the password was wrong
    message = 'Invalid username or password'


class UserNotFoundError(ReloadRageError):
    message = 'User not found'


class StoreError(ReloadRageError):
    message = 'Database error'

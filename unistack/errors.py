# Domain errors raised by action handlers
# Every failure is rendered as {success: false, message, error: kind}


class ActionError(Exception):
    """Base error carrying a stable machine-readable kind and a user-facing message"""

    kind = 'internal_error'

    def __init__(self, message):
        self.message = message
        super().__init__(message)

    def to_dict(self):
        return {
            'success': False,
            'message': self.message,
            'error': self.kind,
        }


class ValidationError(ActionError):
    kind = 'validation_error'


class Unauthenticated(ActionError):
    kind = 'unauthenticated'


class NotFound(ActionError):
    kind = 'not_found'


class Forbidden(ActionError):
    kind = 'forbidden'


class Conflict(ActionError):
    kind = 'conflict'


class InvalidAction(ActionError):
    kind = 'invalid_action'


class InternalError(ActionError):
    kind = 'internal_error'

    def __init__(self, message='Internal server error'):
        super().__init__(message)

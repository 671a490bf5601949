# Per-request state handed to every action handler

from unistack.errors import NotFound, Unauthenticated, ValidationError
from unistack.ownership import coerce_id, parse_int


class ActionContext:
    """Store, config, request payload and resolved caller identity for one request"""

    def __init__(self, store, config, payload, caller_id=None):
        self.store = store
        self.config = config
        self.payload = payload or {}
        self.caller_id = coerce_id(caller_id)

    def get(self, name, default=None):
        return self.payload.get(name, default)

    def text(self, name):
        value = self.payload.get(name)
        if value is None:
            return ''
        return str(value).strip()

    def require_id(self, name, label):
        value = coerce_id(self.payload.get(name))
        if value is None:
            # A well-formed number outside the id range cannot match any row
            if parse_int(self.payload.get(name)) is not None:
                raise NotFound(f'{label} not found')
            raise ValidationError(f'{label} ID is required')
        return value

    def require_caller(self):
        if self.caller_id is None:
            raise Unauthenticated('User ID is required')
        return self.caller_id

"""Request-terminal error types.

Each subclasses a werkzeug HTTPException so the unified handler in
``create_app`` renders it; none of them is retried.
"""
from __future__ import annotations
from werkzeug.exceptions import BadRequest, Forbidden as _Forbidden, Unauthorized


class Unauthenticated(Unauthorized):
    description = 'Unauthorized'

    def __init__(self, description: str | None = None):
        super().__init__(description=description or self.description)


class Forbidden(_Forbidden):
    description = 'Access denied'

    def __init__(self, description: str | None = None):
        super().__init__(description=description or self.description)


class ValidationError(BadRequest):
    description = 'Invalid request'

    def __init__(self, description: str | None = None):
        super().__init__(description=description or self.description)


__all__ = ['Unauthenticated', 'Forbidden', 'ValidationError']

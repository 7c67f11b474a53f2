from __future__ import annotations

import uuid
from functools import wraps

from flask import request, g, abort, current_app

from models import storage
from utils.token_builder import TokenError


def parse_uuid(value: str, message: str = "invalid request") -> str:
    """Canonical string form of a path UUID, 400 when malformed."""
    try:
        return str(uuid.UUID(str(value)))
    except ValueError:
        abort(400, description=message)


def jwt_required():
    """Only access tokens pass; refresh tokens are turned away."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            auth = request.headers.get("Authorization", "")
            if not auth:
                abort(401, description="authorization header is not provided")
            fields = auth.split()
            if len(fields) < 2:
                abort(401, description="invalid authorization header format")
            if fields[0].lower() != "bearer":
                abort(401, description="authorization header is not supported")

            token_builder = current_app.extensions["token_builder"]
            try:
                payload = token_builder.verify_token(fields[1])
            except TokenError as e:
                abort(401, description=str(e))

            if not payload.is_access_token():
                abort(401, description="invalid session token")

            g.token_payload = payload
            g.current_username = payload.username
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def budget_owner_required():
    """
    The authorization boundary of every budget-scoped route.
    Loads the budget from the `budget_id` path argument filtered by the caller's
    username; absent and foreign budgets get the same 404.
    """
    def decorator(fn):
        @wraps(fn)
        @jwt_required()
        def wrapper(*args, **kwargs):
            budget_id = parse_uuid(kwargs.get("budget_id"))
            budget = storage.get_budget(budget_id, g.current_username)
            if not budget:
                abort(404, description="budget not found or user has no permission")
            g.budget = budget
            g.budget_id = budget.id
            kwargs["budget_id"] = budget.id
            return fn(*args, **kwargs)

        return wrapper

    return decorator

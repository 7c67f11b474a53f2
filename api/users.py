"""
User account blueprint:
- POST   /user  (public)  sign up; a verification email follows
- PUT    /user  (auth)    change email and/or password
- DELETE /user  (auth)    delete the account and everything it owns

Emails are never sent from inside the request. Each operation records an
outbox event in its own database transaction and the worker enqueues it once
committed.
"""
from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, g, abort
from sqlalchemy.exc import IntegrityError

from models import storage
from models.base_model import utc_now
from models.user import User
from models.schemas.user import UserCreateSchema, UserUpdateSchema, UserOutSchema
from utils.decorators import jwt_required
from utils.security import hash_password, verify_password
from worker.outbox import record_email_event
from worker.tasks import TASK_SEND_ACCOUNT_DELETED_EMAIL, TASK_SEND_VERIFY_EMAIL, SendEmailPayload

logger = logging.getLogger(__name__)

bp = Blueprint("users", __name__)

user_create_schema = UserCreateSchema()
user_update_schema = UserUpdateSchema()
user_out_schema = UserOutSchema()


def _queue_verification(session, user):
    record_email_event(session, TASK_SEND_VERIFY_EMAIL, SendEmailPayload(username=user.username, email=user.email))


def _current_user() -> User:
    user = storage.get_user_by_username(g.current_username)
    if not user:
        abort(404, description="user is not valid")
    return user


@bp.post("/user")
def create_user():
    """
    Create a user account; a verification email is sent
    ---
    tags:
      - User
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            username: { type: string }
            email: { type: string }
            password: { type: string }
    responses:
      201:
        description: Created
      409:
        description: User already exists
      400:
        description: Invalid input
    """
    data = user_create_schema.load(request.get_json(silent=True) or {})

    if storage.get_user_by_username(data["username"]):
        abort(409, description="user already exists")

    user = User(
        username=data["username"],
        email=data["email"],
        password_hash=hash_password(data["password"]),
        last_password_change=utc_now(),
    )
    try:
        storage.create_user_tx(user, _queue_verification)
    except IntegrityError:
        # lost a race with a concurrent sign-up
        abort(409, description="user already exists")

    logger.info("Created new user %s", user.username)
    return jsonify({"data": user_out_schema.dump(user)}), 201


@bp.put("/user")
@jwt_required()
def update_user():
    """
    Update the authenticated user's email and/or password
    ---
    tags:
      - User
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            email: { type: string }
            password: { type: string }
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    user = _current_user()
    data = user_update_schema.load(request.get_json(silent=True) or {})

    changes = {}
    if "email" in data and data["email"] != user.email:
        changes["email"] = data["email"]
        changes["email_verified"] = False
    if "password" in data and not verify_password(data["password"], user.password_hash):
        changes["password_hash"] = hash_password(data["password"])
        changes["last_password_change"] = utc_now()

    if changes:
        storage.update_user_tx(user, changes, _queue_verification)

    return jsonify({"data": user_out_schema.dump(user)}), 200


@bp.delete("/user")
@jwt_required()
def delete_user():
    """
    Delete the authenticated user's account with all budgets and sessions
    ---
    tags:
      - User
    security:
      - Bearer: []
    responses:
      200:
        description: User deleted
      401:
        description: Unauthorized
      500:
        description: Deletion rolled back
    """
    user = _current_user()
    budget_ids = [b.id for b in storage.get_budgets(user.username)]

    def after_delete(session, deleted):
        record_email_event(
            session,
            TASK_SEND_ACCOUNT_DELETED_EMAIL,
            SendEmailPayload(username=deleted["username"], email=deleted["email"]),
        )

    storage.delete_user_tx(user, budget_ids, after_delete)
    logger.info("Deleted user %s with %s budget(s)", g.current_username, len(budget_ids))
    return jsonify({"message": "user has been deleted"}), 200

"""
Authentication blueprint:
- POST /login         -> access + refresh token, session row
- POST /renew_token   -> new access token from a refresh token
- GET  /verify_email  -> confirm an email address with the emailed code

Access tokens are short lived. The refresh token's jti is the primary key of
the Session row, which is how a refresh token can be blocked server side.
Refresh tokens are not rotated; they stay valid until they expire or their
session is blocked.
"""
from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, abort, current_app

from models import storage
from models.base_model import as_utc, utc_now
from models.session import Session
from models.verify_email import VerifyEmail
from models.schemas.auth import RenewTokenSchema, VerifyEmailQuerySchema
from models.schemas.user import UserLoginSchema, UserOutSchema
from utils.security import verify_password
from utils.token_builder import TokenError, TokenKind
from worker.tasks import TASK_SEND_VERIFY_EMAIL, SendEmailPayload

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__)

user_login_schema = UserLoginSchema()
renew_token_schema = RenewTokenSchema()
verify_email_query_schema = VerifyEmailQuerySchema()
user_out_schema = UserOutSchema()

INVALID_CREDENTIALS = "invalid username or password"


@bp.post("/login")
def login():
    """
    Login: return access_token and refresh_token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             username: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Email not verified
      404:
        description: Invalid username or password
    """
    data = user_login_schema.load(request.get_json(silent=True) or {})

    # Unknown user and wrong password answer the same
    user = storage.get_user_by_username(data["username"])
    if not user or not verify_password(data["password"], user.password_hash):
        abort(404, description=INVALID_CREDENTIALS)

    if not user.email_verified:
        if not storage.get_pending_verify_emails(user.username):
            distributor = current_app.extensions["task_distributor"]
            distributor.distribute_send_email(
                SendEmailPayload(username=user.username, email=user.email), TASK_SEND_VERIFY_EMAIL
            )
            abort(401, description="email not verified, verification email resent")
        abort(401, description="email not verified, please check the verification email")

    token_builder = current_app.extensions["token_builder"]
    access_token, access_payload = token_builder.create_token(
        user.username, current_app.config["ACCESS_TOKEN_DURATION"], TokenKind.ACCESS
    )
    refresh_token, refresh_payload = token_builder.create_token(
        user.username, current_app.config["REFRESH_TOKEN_DURATION"], TokenKind.REFRESH
    )

    session = Session(
        id=refresh_payload.id,
        username=user.username,
        refresh_token=refresh_token,
        user_agent=request.headers.get("User-Agent", ""),
        client_ip=request.remote_addr or "",
        expires_at=refresh_payload.expires_at,
    )
    storage.new(session)
    storage.save()

    user_view = user_out_schema.dump(user)
    return jsonify(
        {
            "session_id": session.id,
            "access_token": access_token,
            "access_token_expires_at": access_payload.expires_at.isoformat(),
            "refresh_token": refresh_token,
            "refresh_token_expires_at": refresh_payload.expires_at.isoformat(),
            "id": user.id,
            "username": user.username,
            "email": user.email,
            "created_at": user_view.get("created_at"),
            "last_password_change": user_view.get("last_password_change"),
        }
    ), 200


@bp.post("/renew_token")
def renew_token():
    """
    Renew access token using a refresh token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refresh_token: { type: string }
    responses:
      200:
        description: OK (returns a new access token)
      401:
        description: Invalid, expired or blocked refresh token
    """
    data = renew_token_schema.load(request.get_json(silent=True) or {})

    token_builder = current_app.extensions["token_builder"]
    try:
        refresh_payload = token_builder.verify_token(data["refresh_token"])
    except TokenError as e:
        abort(401, description=str(e))

    if not refresh_payload.is_refresh_token():
        abort(401, description="invalid refresh token")

    session = storage.get(Session, refresh_payload.id)
    if not session:
        abort(401, description=f"cannot find session with ID {refresh_payload.id}")
    if session.is_blocked:
        abort(401, description="token is blocked")

    access_token, access_payload = token_builder.create_token(
        refresh_payload.username, current_app.config["ACCESS_TOKEN_DURATION"], TokenKind.ACCESS
    )
    logger.info("successfully renewed token for session %s", session.id)

    return jsonify(
        {
            "session_id": session.id,
            "access_token": access_token,
            "access_token_expires_at": access_payload.expires_at.isoformat(),
        }
    ), 200


@bp.get("/verify_email")
def verify_email():
    """
    Verify an email address with the code sent by email
    ---
    tags:
      - Auth
    parameters:
      - in: query
        name: id
        type: string
        required: true
      - in: query
        name: code
        type: string
        required: true
    responses:
      200:
        description: Email verified
      400:
        description: Invalid, expired or used code
    """
    errors = verify_email_query_schema.validate(request.args)
    if errors:
        abort(400, description="invalid request")

    db = storage.get_session()
    record = db.query(VerifyEmail).filter(
        VerifyEmail.id == request.args["id"], VerifyEmail.code == request.args["code"]
    ).first()
    if not record:
        abort(400, description="invalid code")

    user = storage.get_user_by_username(record.username)
    if not user:
        # the user was deleted between signing up and following the link
        abort(400, description="invalid user")
    if user.email_verified:
        abort(400, description="email is already verified")
    if utc_now() > as_utc(record.expires_at):
        abort(400, description="code is expired, please login again to resend verification email")
    if record.used:
        abort(400, description="code was already used")

    with storage.transaction():
        user.email_verified = True
        record.used = True

    return jsonify({"data": user_out_schema.dump(user)}), 200

from __future__ import annotations

import logging
import secrets
from urllib.parse import urlencode

import jwt
import requests
from flask import Blueprint, current_app, g, jsonify, make_response, redirect, request

from ...auth.tokens import authenticate, issue_token
from ...errors import AuthFailure
from ...extensions import db
from ...lib.utils import commit_with_retry, text_field
from ...models import ChannelMember, User
from ..middleware import json_body, require_auth

users_bp = Blueprint("users", __name__, url_prefix="/api/user")

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"


def _issue_user_token(user: User) -> str:
    return issue_token(
        user.id,
        current_app.config["JWT_SECRET"],
        current_app.config["ACCESS_TOKEN_EXPIRES"],
        name=user.name,
    )


def _google_redirect_uri() -> str:
    return f"{current_app.config['BACKEND_BASE_URL']}/api/user/auth/google/callback"


# Passwords are taken verbatim; only their type is checked
def _password_field(data: dict, key: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else ""


@users_bp.post("/signup")
def signup():
    data = json_body()
    name = text_field(data, "name")
    email = text_field(data, "email").lower()
    password = _password_field(data, "password")
    if not email or not password:
        return jsonify({"message": "Email and password are required"}), 400

    if User.query.filter_by(email=email).first():
        logging.info("signup: email already registered (%s)", email)
        return jsonify({"message": "User Already Exist"}), 400

    user = User(name=name, email=email, auth_method="local")
    user.set_password(password)
    db.session.add(user)
    commit_with_retry(db.session)
    logging.info("signup: created user %s", user.id)
    return jsonify(
        {"message": "User Created Successfully!", "token": _issue_user_token(user), "id": user.id}
    )


@users_bp.post("/signin")
def signin():
    data = json_body()
    email = text_field(data, "email").lower()
    password = _password_field(data, "password")

    user = User.query.filter_by(email=email).first() if email else None
    if not user:
        return jsonify({"message": "User not found"}), 400
    if not user.check_password(password):
        return jsonify({"message": "Invalid Credentials"}), 400
    return jsonify({"message": "Signin Successful", "token": _issue_user_token(user), "id": user.id})


@users_bp.put("/change-password")
@require_auth
def change_password():
    data = json_body()
    current_password = _password_field(data, "currentPassword")
    new_password = _password_field(data, "newPassword")
    if not current_password or not new_password:
        return jsonify({"message": "Current password and new password are required"}), 400

    user = db.session.get(User, g.identity.user_id)
    if not user:
        return jsonify({"message": "User not found"}), 404
    if not user.check_password(current_password):
        return jsonify({"message": "Current password is incorrect"}), 400

    user.set_password(new_password)
    commit_with_retry(db.session)
    return jsonify({"message": "Password updated successfully"})


@users_bp.get("/getuser")
@require_auth
def get_user():
    user = db.session.get(User, g.identity.user_id)
    if not user:
        return jsonify({"message": "User not found"}), 404
    return jsonify(user.to_dict())


# Profile fields a user may change; absent keys are left untouched
EDITABLE_FIELDS = ("name", "email", "location", "picture")


@users_bp.put("/edit")
@require_auth
def edit_user():
    data = json_body()
    user = db.session.get(User, g.identity.user_id)
    if not user:
        return jsonify({"message": "User not found"}), 404

    updates = {}
    for field in EDITABLE_FIELDS:
        if field not in data:
            continue
        if not isinstance(data[field], str):
            return jsonify({"message": f"Invalid value for {field}"}), 400
        updates[field] = text_field(data, field)

    if "email" in updates:
        email = updates["email"] = updates["email"].lower()
        if not email:
            return jsonify({"message": "Email cannot be empty"}), 400
        if User.query.filter(User.email == email, User.id != user.id).first():
            return jsonify({"message": "Email already in use"}), 400

    for field, value in updates.items():
        setattr(user, field, value)
    commit_with_retry(db.session)
    logging.info("edit_user: updated profile of %s", user.id)
    return jsonify(user.to_dict())


@users_bp.delete("/delete")
@require_auth
def delete_user():
    user = db.session.get(User, g.identity.user_id)
    if not user:
        return jsonify({"message": "User not found"}), 404
    # Messages stay in channel history; memberships go with the account
    ChannelMember.query.filter_by(user_id=user.id).delete(synchronize_session="fetch")
    db.session.delete(user)
    commit_with_retry(db.session)
    logging.info("delete_user: deleted account %s", g.identity.user_id)
    return jsonify({"message": "Account deleted successfully"})


# Minimal Google OAuth dance (Authorization Code flow)
@users_bp.get("/auth/google")
def google_start():
    client_id = current_app.config["GOOGLE_CLIENT_ID"]
    if not client_id:
        return jsonify({"message": "Google sign-in is not configured"}), 500
    state = secrets.token_urlsafe(16)
    query = urlencode(
        {
            "response_type": "code",
            "client_id": client_id,
            "redirect_uri": _google_redirect_uri(),
            "scope": "openid email profile",
            "state": state,
        }
    )
    resp = make_response(redirect(f"{GOOGLE_AUTH_URL}?{query}"))
    resp.set_cookie("oauth_state", state, max_age=300, httponly=True, samesite="Lax")
    return resp


@users_bp.get("/auth/google/callback")
def google_callback():
    state_cookie = request.cookies.get("oauth_state")
    state = request.args.get("state")
    if not state_cookie or state_cookie != state:
        return jsonify({"message": "Invalid OAuth state"}), 400
    code = request.args.get("code")
    if not code:
        return jsonify({"message": "Missing authorization code"}), 400

    try:
        token_res = requests.post(
            GOOGLE_TOKEN_URL,
            data={
                "code": code,
                "client_id": current_app.config["GOOGLE_CLIENT_ID"],
                "client_secret": current_app.config["GOOGLE_CLIENT_SECRET"],
                "redirect_uri": _google_redirect_uri(),
                "grant_type": "authorization_code",
            },
            timeout=10,
        )
    except requests.RequestException:
        logging.exception("google_callback: token exchange request failed")
        return jsonify({"message": "Token exchange failed"}), 502
    if token_res.status_code != 200:
        logging.warning("google_callback: token exchange returned %s", token_res.status_code)
        return jsonify({"message": "Token exchange failed"}), 400

    id_token = token_res.json().get("id_token")
    try:
        # id_token comes straight from Google's token endpoint over TLS
        claims = jwt.decode(id_token, options={"verify_signature": False, "verify_aud": False})
    except jwt.InvalidTokenError:
        return jsonify({"message": "Invalid id token"}), 400

    google_sub = claims.get("sub")
    if not google_sub:
        return jsonify({"message": "Invalid Google profile"}), 400
    email = (claims.get("email") or "").strip().lower() or None

    user = User.query.filter_by(google_sub=google_sub).first()
    if not user and email:
        # link Google to an existing local account with the same email
        user = User.query.filter_by(email=email).first()
        if user:
            user.google_sub = google_sub
            user.auth_method = "google"
    if not user:
        user = User(
            google_sub=google_sub,
            email=email,
            name=claims.get("name"),
            picture=claims.get("picture") or "",
            auth_method="google",
        )
        db.session.add(user)
    commit_with_retry(db.session)

    query = urlencode({"token": _issue_user_token(user), "id": user.id})
    return redirect(f"{current_app.config['FRONTEND_URL']}/auth-success?{query}")


@users_bp.get("/auth/success")
def google_success():
    token = request.args.get("token")
    user_id = request.args.get("id")
    if not token or not user_id:
        return jsonify({"message": "Missing authentication data"}), 400
    try:
        identity = authenticate(token, current_app.config["JWT_SECRET"])
    except AuthFailure as exc:
        logging.warning("auth/success: %s (%s)", type(exc).__name__, exc.detail)
        return jsonify({"message": "Invalid authentication"}), 401
    if identity.user_id != user_id:
        return jsonify({"message": "Invalid authentication"}), 401

    user = db.session.get(User, user_id)
    if not user:
        return jsonify({"message": "User not found"}), 404
    return jsonify({"message": "Signin Successful", "token": token, "id": user.id})

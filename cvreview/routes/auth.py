from __future__ import annotations
from flask import Blueprint, request, jsonify, current_app
from flask_login import login_user, logout_user, current_user
from supabase_auth.errors import AuthApiError

from ..extensions import User
from ..services.users import (
    create_user_row, find_user_by_email, get_or_bootstrap_user, public_user,
)

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _as_dict(user) -> dict:
    if user is None:
        return {}
    return user if isinstance(user, dict) else user.model_dump()


def _credentials(data: dict):
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    return email, password


@auth_bp.post("/signup")
def signup():
    data = request.get_json(silent=True) or {}
    name = (data.get("name") or "").strip()
    email, password = _credentials(data)

    if not name or not email or not password:
        return jsonify(error="Please provide name, email, and password"), 400

    db = current_app.config["DATABASE"]
    try:
        if find_user_by_email(db, email):
            return jsonify(error="User with this email already exists"), 400

        resp = db.auth.sign_up({
            "email": email,
            "password": password,
            "options": {"data": {"name": name}},
        })
        ud = _as_dict(getattr(resp, "user", None))
        if not ud.get("id"):
            return jsonify(error="Signup failed."), 400

        row = create_user_row(db, ud["id"], email, name)
        return jsonify(message="User created successfully", user=public_user(row)), 201

    except AuthApiError as e:
        current_app.logger.info("signup rejected for %s: %s", email, e)
        return jsonify(error=str(e) or "Signup failed."), 400
    except Exception:
        current_app.logger.exception("Signup error")
        return jsonify(error="Internal server error"), 500


@auth_bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    email, password = _credentials(data)

    if not email or not password:
        return jsonify(error="Please provide email and password"), 400

    db = current_app.config["DATABASE"]
    try:
        resp = db.auth.sign_in_with_password({"email": email, "password": password})
        ud = _as_dict(getattr(resp, "user", None))
        if not ud.get("id"):
            return jsonify(error="Invalid credentials"), 401

        row = get_or_bootstrap_user(db, ud["id"], ud.get("email") or email)
        login_user(User(**row), remember=True)
        return jsonify(message="Login successful", user=public_user(row)), 200

    except AuthApiError:
        current_app.logger.info("login rejected for %s", email)
        return jsonify(error="Invalid credentials"), 401
    except Exception:
        current_app.logger.exception("Login error")
        return jsonify(error="Internal server error"), 500


@auth_bp.post("/logout")
def logout():
    logout_user()
    return jsonify(message="Logged out successfully")


@auth_bp.get("/me")
def me():
    if not current_user.is_authenticated:
        return jsonify(authenticated=False), 401
    return jsonify(authenticated=True, user={
        "_id": current_user.id,
        "name": current_user.name,
        "email": current_user.email,
        "createdAt": current_user.created_at,
    })

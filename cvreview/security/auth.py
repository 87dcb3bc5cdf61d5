# cvreview/security/auth.py
from __future__ import annotations
from functools import wraps
from flask import jsonify
from flask_login import current_user


def api_login_required(view):
    """
    Like flask_login.login_required, but answers 401 JSON instead of
    redirecting, so the browser client never has to parse HTML.
    """
    @wraps(view)
    def wrapped(*args, **kwargs):
        if current_user.is_authenticated:
            return view(*args, **kwargs)
        return jsonify(error="Authentication required"), 401
    return wrapped

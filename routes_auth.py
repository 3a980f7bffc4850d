# routes_auth.py
import re
from datetime import datetime, timedelta
from functools import wraps
from flask import Blueprint, request, jsonify, current_app, g
import jwt

from extensions import db
from models_auth import User, PROFILE_FIELDS

bp_auth = Blueprint("auth", __name__)

EMAIL_RE    = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
USERNAME_RE = re.compile(r"^[A-Za-z0-9_.-]{3,64}$")
MIN_PASSWORD = 6


# ---------- JWT helpers ----------
def make_jwt(user: User) -> str:
    now = datetime.utcnow()
    payload = {
        "sub": f"user:{user.id}",
        "uid": user.id,
        "role": user.role,
        "exp": now + timedelta(minutes=int(current_app.config["JWT_TTL_MIN"])),
        "iat": now,
        "iss": "excel-analytics",
    }
    return jwt.encode(payload, current_app.config["JWT_SECRET"], algorithm="HS256")


def _bearer() -> str:
    h = request.headers.get("Authorization") or ""
    if h.lower().startswith("bearer "):
        return h[7:].strip()
    return ""


def auth_required(fn):
    """Resolves the bearer token into g.user or answers 401/403."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        token = _bearer()
        if not token:
            return jsonify(ok=False, error="missing_token", message="Access token required"), 401
        try:
            payload = jwt.decode(token, current_app.config["JWT_SECRET"], algorithms=["HS256"],
                                 issuer="excel-analytics")
        except jwt.ExpiredSignatureError:
            return jsonify(ok=False, error="token_expired", message="Token expired"), 401
        except jwt.InvalidTokenError:
            return jsonify(ok=False, error="invalid_token", message="Invalid token"), 401
        user = db.session.get(User, payload.get("uid"))
        if not user:
            return jsonify(ok=False, error="invalid_token", message="Invalid token"), 401
        if not user.is_active:
            return jsonify(ok=False, error="user_inactive", message="Account is deactivated"), 403
        g.user = user
        return fn(*args, **kwargs)
    return wrapper


# ---------- Endpoints ----------
@bp_auth.post("/api/auth/register")
def register():
    data = request.get_json(silent=True) or {}
    username = (data.get("username") or "").strip()
    email    = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""

    if not USERNAME_RE.match(username):
        return jsonify(ok=False, error="bad_username", message="Username must be 3-64 letters, digits, . _ or -"), 400
    if not EMAIL_RE.match(email):
        return jsonify(ok=False, error="bad_email", message="Invalid email"), 400
    if len(password) < MIN_PASSWORD:
        return jsonify(ok=False, error="weak_password", message=f"Password needs at least {MIN_PASSWORD} characters"), 400
    if User.query.filter((User.username == username) | (User.email == email)).first():
        return jsonify(ok=False, error="user_exists", message="Username or email already registered"), 409

    u = User(username=username, email=email, role="user")
    u.set_password(password)
    db.session.add(u); db.session.commit()
    current_app.logger.info("[auth] registered user %s", u.id)
    return jsonify(ok=True, token=make_jwt(u), user=u.to_dict()), 201


@bp_auth.post("/api/auth/login")
def login():
    data = request.get_json(silent=True) or {}
    ident    = (data.get("email") or data.get("username") or "").strip()
    password = data.get("password") or ""
    if not ident or not password:
        return jsonify(ok=False, error="missing_fields", message="Email and password are required"), 400

    u = User.query.filter((User.email == ident.lower()) | (User.username == ident)).first()
    if not u or not u.check_password(password):
        return jsonify(ok=False, error="bad_credentials", message="Invalid credentials"), 401
    if not u.is_active:
        return jsonify(ok=False, error="user_inactive", message="Account is deactivated"), 403
    return jsonify(ok=True, token=make_jwt(u), user=u.to_dict())


@bp_auth.get("/api/auth/me")
@auth_required
def me():
    return jsonify(ok=True, user=g.user.to_dict())


@bp_auth.put("/api/auth/profile")
@auth_required
def update_profile():
    data = request.get_json(silent=True) or {}
    profile = data.get("profile") if isinstance(data.get("profile"), dict) else data
    camel = {"first_name": "firstName", "last_name": "lastName"}
    u = g.user
    for f in PROFILE_FIELDS:
        key = camel.get(f, f)
        if key in profile:
            setattr(u, f, (str(profile.get(key) or "").strip() or None))
    if "email" in data:
        email = (data.get("email") or "").strip().lower()
        if not EMAIL_RE.match(email):
            return jsonify(ok=False, error="bad_email", message="Invalid email"), 400
        if User.query.filter(User.email == email, User.id != u.id).first():
            return jsonify(ok=False, error="user_exists", message="Email already registered"), 409
        u.email = email
    db.session.commit()
    return jsonify(ok=True, user=u.to_dict())


@bp_auth.put("/api/auth/password")
@auth_required
def change_password():
    data = request.get_json(silent=True) or {}
    current = data.get("currentPassword") or ""
    new     = data.get("newPassword") or ""
    if not g.user.check_password(current):
        return jsonify(ok=False, error="bad_credentials", message="Current password is incorrect"), 400
    if len(new) < MIN_PASSWORD:
        return jsonify(ok=False, error="weak_password", message=f"Password needs at least {MIN_PASSWORD} characters"), 400
    g.user.set_password(new)
    db.session.commit()
    return jsonify(ok=True, message="Password updated")

# models_auth.py
from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash
from extensions import db

PROFILE_FIELDS = ("first_name", "last_name", "phone", "department", "company")


class User(db.Model):
    __tablename__ = "auth_user"
    id            = db.Column(db.Integer, primary_key=True)
    created_at    = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at    = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    username      = db.Column(db.String(64), unique=True, index=True, nullable=False)
    email         = db.Column(db.String(200), unique=True, index=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    role          = db.Column(db.String(16), default="user", nullable=False)  # user|admin
    is_active     = db.Column(db.Boolean, default=True, nullable=False)

    first_name    = db.Column(db.String(100))
    last_name     = db.Column(db.String(100))
    phone         = db.Column(db.String(40))
    department    = db.Column(db.String(120))
    company       = db.Column(db.String(200))

    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password or "")

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
            "isActive": self.is_active,
            "profile": {
                "firstName": self.first_name,
                "lastName": self.last_name,
                "phone": self.phone,
                "department": self.department,
                "company": self.company,
            },
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

"""User model definition."""

from werkzeug.security import check_password_hash, generate_password_hash

from . import db, isoformat, utcnow


USER_ROLES = ("user", "admin", "super_admin")
ADMIN_ROLES = ("admin", "super_admin")
LANGUAGES = ("en", "fr", "ar")


class User(db.Model):
    """Represents a platform account together with its profile."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(255), nullable=False, default="")
    phone = db.Column(db.String(64), nullable=True)
    nationality = db.Column(db.String(120), nullable=True)
    preferred_language = db.Column(
        db.String(2),
        nullable=False,
        default="en",
        server_default=db.text("'en'"),
    )
    role = db.Column(db.String(32), nullable=False, default="user")
    is_active = db.Column(
        db.Boolean,
        nullable=False,
        default=True,
        server_default=db.text("true"),
    )
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    def set_password(self, password: str) -> None:
        """Hash and store the password."""

        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Verify a password against the stored hash."""

        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "phone": self.phone,
            "nationality": self.nationality,
            "preferred_language": self.preferred_language,
            "role": self.role,
            "is_active": self.is_active,
            "created_at": isoformat(self.created_at),
        }

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<User {self.email}>"

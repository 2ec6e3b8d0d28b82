"""Create or reset the super administrator account."""

import os

from app import create_app
from models import db
from models.user import User


def seed_super_admin(email: str, password: str, full_name: str = "Administrator") -> str:
    """Ensure ``email`` is an active super_admin with ``password``."""

    user = User.query.filter_by(email=email).first()
    action = "updated"
    if user is None:
        user = User(email=email, full_name=full_name)
        db.session.add(user)
        action = "created"
    user.role = "super_admin"
    user.is_active = True
    user.set_password(password)
    db.session.commit()
    return action


def main() -> None:
    email = os.getenv("ADMIN_EMAIL", "admin@example.com")
    password = os.getenv("ADMIN_PASSWORD", "AdminPass123")
    app = create_app()
    with app.app_context():
        action = seed_super_admin(email, password)
    print(f"Super admin {action}: {email}")


if __name__ == "__main__":
    main()

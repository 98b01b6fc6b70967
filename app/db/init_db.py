"""
Database initialization and seeding.
"""
from sqlalchemy.orm import Session

from app.core.security import get_password_hash
from app.models.user import User

DEFAULT_ADMIN_EMAIL = "admin@example.com"
DEFAULT_ADMIN_PASSWORD = "admin123"


def init_db(db: Session) -> User:
    """
    Seed the default administrator account if it does not exist yet.

    Args:
        db: Database session

    Returns:
        The administrator user
    """
    admin = db.query(User).filter(User.email == DEFAULT_ADMIN_EMAIL).first()
    if not admin:
        admin = User(
            email=DEFAULT_ADMIN_EMAIL,
            full_name="System Administrator",
            hashed_password=get_password_hash(DEFAULT_ADMIN_PASSWORD),
            is_admin=True,
            is_active=True,
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)
        print(f"Admin user {DEFAULT_ADMIN_EMAIL} created (change the password)")
    elif not admin.is_admin:  # type: ignore
        admin.is_admin = True  # type: ignore
        db.commit()
    return admin

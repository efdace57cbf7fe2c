import os

from loguru import logger
from sqlmodel import Session, select
from app.db.core import engine
from app.db.schema import Admin
from app.services.password import get_password_hash


# Initial platform operators. Passwords come from the environment so the
# repository never holds real credentials.
DEFAULT_ADMINS = [
    {
        "name": "Admin1",
        "email": "admin1@wastetrack.in",
        "password_env": "ADMIN1_PASSWORD",
    },
    {
        "name": "Admin2",
        "email": "admin2@wastetrack.in",
        "password_env": "ADMIN2_PASSWORD",
    },
]


def seed_admins(session: Session, admins=DEFAULT_ADMINS) -> int:
    """Creates admins that don't exist yet. Returns how many were created."""
    logger.info("--- Seeding Admins ---")
    created = 0

    for admin_data in admins:
        email = admin_data["email"].lower()
        existing = session.exec(select(Admin).where(Admin.email == email)).first()
        if existing:
            logger.info(f"Existing Admin: {email}")
            continue

        password = os.getenv(admin_data["password_env"])
        if not password:
            logger.warning(
                f"Skipping {email}: {admin_data['password_env']} is not set")
            continue

        session.add(Admin(
            name=admin_data["name"],
            email=email,
            hashed_password=get_password_hash(password)
        ))
        created += 1
        logger.info(f"Created Admin: {email}")

    return created


def main():
    with Session(engine) as session:
        try:
            seed_admins(session)
            session.commit()
            logger.info("Database seeding completed successfully.")

        except Exception as e:
            session.rollback()
            logger.error(f"Seeding failed: {e}")
            raise e


if __name__ == "__main__":
    main()

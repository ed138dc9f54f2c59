"""
Bootstrap script creating the first platform manager.

Platform managers can only be granted by another platform manager, so a
fresh database needs one created out of band. The script creates the user
if the email is unknown, then adds them to the platform manager set.

Usage:
    python -m scripts.bootstrap_manager --email admin@example.com --name Admin --password secret123
"""
import argparse
import asyncio
from sqlalchemy import select

from incident_desk.core import config
from incident_desk.core.database.engine import AsyncSessionLocal, init_db
from incident_desk.features.teams.models import PlatformManager
from incident_desk.features.users.auth import hash_password
from incident_desk.features.users.models import User
from incident_desk.utils import get_logger


log = get_logger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create the first platform manager")
    parser.add_argument("--email", required=True)
    parser.add_argument("--name", default="Platform Manager")
    parser.add_argument("--password", help="Required when the user does not exist yet")
    return parser.parse_args(argv)


async def bootstrap(email: str, name: str, password: str | None) -> User:
    """
    Ensure a user with this email exists and is a platform manager.

    Raises:
        ValueError: if the user must be created and no usable password was given
    """
    await init_db()

    async with AsyncSessionLocal() as db:
        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if user is None:
            if not password or len(password) < config.MIN_PASSWORD_LENGTH:
                raise ValueError(
                    f"A password of at least {config.MIN_PASSWORD_LENGTH} characters is required"
                )
            user = User(email=email, name=name, pwd_hash=hash_password(password))
            db.add(user)
            await db.commit()
            await db.refresh(user)
            log.info(f"Created user {user.id} <{email}>")
        else:
            log.debug(f"User <{email}> already exists, skipping creation")

        if await db.get(PlatformManager, user.id) is None:
            db.add(PlatformManager(user_id=user.id))
            await db.commit()
            log.info(f"User {user.id} is now a platform manager")
        else:
            log.info(f"User {user.id} is already a platform manager")

        return user


def main(argv=None):
    args = parse_args(argv)
    try:
        asyncio.run(bootstrap(args.email, args.name, args.password))
    except Exception as e:
        log.error(f"Bootstrap failed: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    main()

import sys
import asyncio
from sqlalchemy.future import select
from app.core.security import hash_password
from app.core.enums import UserRole
from app.db.session import AsyncSessionLocal, engine
from app.models.base import Base
from app.models.user import User
import app.models.quote  # noqa: F401  registers the quotes table


async def create_admin_user(username: str, password: str) -> bool:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        res = await db.execute(select(User).where(User.username == username))
        if res.scalars().first():
            print(f"Error: User '{username}' already exists")
            return False

        user = User(username=username, password_hash=hash_password(password), role=UserRole.ADMIN)
        db.add(user)
        await db.commit()
        await db.refresh(user)

        print(f"Admin user '{username}' created successfully")
        print(f"User ID: {user.id}")
        print(f"Role: {user.role}")
        return True


async def _run(username: str, password: str) -> bool:
    try:
        return await create_admin_user(username, password)
    except Exception as e:
        print(f"Error creating admin user: {e}")
        return False
    finally:
        await engine.dispose()


def main():
    if len(sys.argv) < 3:
        print("Usage: python create_admin.py <username> <password>")
        sys.exit(1)

    username = sys.argv[1]
    password = sys.argv[2]

    if not username or not password:
        print("Error: username and password cannot be empty")
        sys.exit(1)

    success = asyncio.run(_run(username, password))
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from src.models.basic_authentication_models import UserModel
from src.models.basic_authentication_schemas import Base, UserTable


class CredentialStore:
    """Persistence of registered users."""

    def __init__(self, Session: async_sessionmaker):
        self.Session: async_sessionmaker = Session

    @staticmethod
    async def create_table(engine: AsyncEngine) -> None:
        """Create table if not exists"""
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def find_by_identity(self, username: str) -> UserModel | None:
        """Read user data to get salt and password hash

        Args:
            username (str): username of the user

        Returns:
            UserModel | None: username, password hash and salt, None if the user does not exist
        """
        async with self.Session() as session:
            stmt = select(UserTable).where(UserTable.username == username)
            result = await session.execute(stmt)
            result = result.scalars().first()
            if result is None:
                return None
            return UserModel(
                username=result.username,
                hash_password=result.hash_password,
                salt=result.salt,
            )

    async def create(self, username: str, hash_password: str, salt: str) -> bool:
        """Create user data to authenticate the user

        Args:
            username (str): unique username
            hash_password (str): salted and peppered password hash
            salt (str): salt used for the hash

        Returns:
            bool: True if the user was created, False if the username is taken
        """
        async with self.Session() as session:
            try:
                session.add(
                    UserTable(username=username, hash_password=hash_password, salt=salt)
                )
                await session.commit()
            except IntegrityError:
                await session.rollback()
                logging.warning(f"User already exists: {username}")
                return False
        return True

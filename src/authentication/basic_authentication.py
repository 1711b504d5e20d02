import argparse
import asyncio
import hashlib
import logging
import secrets

from fastapi import HTTPException, status

from src.authentication.basic_authentication_crud import CredentialStore
from src.authentication.token_issuer import TokenIssuer
from src.create_sqlite_engine import engine, ensure_database_directory
from src.db import Session
from src.load_secrets import jwt_secret, pepper_data, sqlite_url, token_expire_hours

INVALID_CREDENTIALS = "Invalid username or password"


def hash_password(password: str, salt: str, pepper: str = pepper_data) -> str:
    return hashlib.sha256((password + salt + pepper).encode()).hexdigest()


class AccountService:
    def __init__(self, credential_store: CredentialStore, token_issuer: TokenIssuer):
        self.credential_store = credential_store
        self.token_issuer = token_issuer

    async def register(self, username: str | None, password: str | None) -> None:
        """Create a new account

        Args:
            username (str | None): requested username
            password (str | None): plain password, only its hash is stored

        Raises:
            HTTPException: 400 if username or password is missing
            HTTPException: 409 if the username is taken
        """
        if not username or not password:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Username and password required",
            )

        if await self.credential_store.find_by_identity(username) is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Username already exists",
            )

        salt = secrets.token_hex(8)
        created = await self.credential_store.create(
            username, hash_password(password, salt), salt
        )
        # Lost a race with a concurrent registration of the same name
        if not created:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Username already exists",
            )
        logging.info(f"New user registered: {username}")

    async def login(self, username: str | None, password: str | None) -> str:
        """Check the credentials and issue a token

        Raises:
            HTTPException: 401 for an unknown user or a wrong password

        Returns:
            str: signed token
        """
        user_data = None
        if username and password is not None:
            user_data = await self.credential_store.find_by_identity(username)
        if user_data is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS
            )

        hashed_password = hash_password(password, user_data.salt)
        if not secrets.compare_digest(hashed_password, user_data.hash_password):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS
            )

        logging.info(f"User logged in: {username}")
        return self.token_issuer.issue(username)


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create a canvas user")
    parser.add_argument("--username", type=str, help="Username", required=True)
    parser.add_argument("--password", type=str, help="Password", required=True)
    return parser


async def main(user_name: str, password: str):
    ensure_database_directory(sqlite_url)
    await CredentialStore.create_table(engine)
    account_service = AccountService(
        CredentialStore(Session), TokenIssuer(jwt_secret, token_expire_hours)
    )
    try:
        await account_service.register(user_name, password)
        print(f"Created user {user_name}")
    except HTTPException as e:
        print(e.detail)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    parser = get_parser()
    args = parser.parse_args()
    asyncio.run(main(args.username, args.password))

from typing import Optional

from pydantic import BaseModel


class UserModel(BaseModel):
    """This class is used to create a user model for basic authentication."""
    username: str
    hash_password: str
    salt: str


class CredentialsModel(BaseModel):
    """Body of the register and login requests. Presence is checked by the routes."""
    username: Optional[str] = None
    password: Optional[str] = None


class TokenModel(BaseModel):
    token: str


class MessageModel(BaseModel):
    message: str

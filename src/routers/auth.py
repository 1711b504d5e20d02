from fastapi import APIRouter, Depends, Request

from src.authentication.basic_authentication import AccountService
from src.models.basic_authentication_models import CredentialsModel, MessageModel, TokenModel

auth_router = APIRouter()


def get_account_service(request: Request) -> AccountService:
    return request.app.state.account_service


class HealthAPI:
    @staticmethod
    @auth_router.get("/api", response_model=MessageModel)
    async def health():
        return MessageModel(message="Hello from the backend!")


class AccountAPI:
    @staticmethod
    @auth_router.post("/register", response_model=MessageModel)
    async def register(
        credentials: CredentialsModel,
        account_service: AccountService = Depends(get_account_service),
    ):
        await account_service.register(credentials.username, credentials.password)
        return MessageModel(message="User registered successfully")

    @staticmethod
    @auth_router.post("/login", response_model=TokenModel)
    async def login(
        credentials: CredentialsModel,
        account_service: AccountService = Depends(get_account_service),
    ):
        token = await account_service.login(credentials.username, credentials.password)
        return TokenModel(token=token)

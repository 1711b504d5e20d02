import pathlib

from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import create_async_engine

from src.load_secrets import sqlite_url


def ensure_database_directory(url: str | URL) -> None:
    """Create the parent directory of a file based sqlite database if it is missing"""
    database = make_url(url).database
    if database and database != ":memory:":
        pathlib.Path(database).parent.mkdir(parents=True, exist_ok=True)


engine = create_async_engine(url=sqlite_url, echo=False)

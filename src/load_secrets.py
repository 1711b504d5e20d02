import os
from dotenv import load_dotenv

load_dotenv()

pepper_data = os.getenv("PEPPER_DATA", "")
jwt_secret = os.getenv("JWT_SECRET", "secretkey")
token_expire_hours = float(os.getenv("TOKEN_EXPIRE_HOURS", "1"))
sqlite_url = os.getenv("SQLITE_URL", "sqlite+aiosqlite:///./data/database.sqlite")
host = os.getenv("HOST", "0.0.0.0")
port = int(os.getenv("PORT", "5000"))
outbox_size = int(os.getenv("OUTBOX_SIZE", "256"))
log_level = os.getenv("LOG_LEVEL", "INFO").upper()

if __name__ == "__main__":
    print(sqlite_url, host, port, log_level, token_expire_hours)

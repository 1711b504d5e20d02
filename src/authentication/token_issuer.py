from datetime import datetime, timedelta, timezone

import jwt


class TokenIssuer:
    """Issues signed, time-limited tokens carrying the username."""

    algorithm = "HS256"

    def __init__(self, secret: str, expire_hours: float = 1):
        self.secret = secret
        self.expire_hours = expire_hours

    def issue(self, username: str) -> str:
        payload = {
            "username": username,
            "exp": datetime.now(timezone.utc) + timedelta(hours=self.expire_hours),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

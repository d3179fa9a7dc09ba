from typing import Optional

import bcrypt
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from config import get_settings


class AuthenticationError(ValueError):
    pass


def _serializer() -> URLSafeTimedSerializer:
    settings = get_settings()
    return URLSafeTimedSerializer(settings.secret_key, salt="session-token")


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))


def issue_token(email: str) -> str:
    return _serializer().dumps({"email": email})


def read_token(token: str, max_age_secs: Optional[int] = None) -> str:
    """Return the email a token was issued for.

    Raises AuthenticationError when the signature is wrong or the token is
    older than ``max_age_secs`` (the configured session length by default).
    """
    if max_age_secs is None:
        max_age_secs = get_settings().token_max_age_secs
    try:
        data = _serializer().loads(token, max_age=max_age_secs)
    except SignatureExpired as exc:
        raise AuthenticationError("Token expired") from exc
    except BadSignature as exc:
        raise AuthenticationError("Invalid token") from exc

    email = data.get("email") if isinstance(data, dict) else None
    if not email:
        raise AuthenticationError("Invalid token")
    return email


def bearer_token(header_value: Optional[str]) -> Optional[str]:
    parts = (header_value or "").split(" ")
    if len(parts) == 2 and parts[0] == "Bearer" and parts[1]:
        return parts[1]
    return None

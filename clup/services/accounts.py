# clup/services/accounts.py
# Login by phone number: SMS verification codes and account tokens.
import logging
import re
import secrets
import uuid
from datetime import timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext

from clup.core.clock import utc_now
from clup.core.config import settings
from clup.core.errors import InvalidTokenError, ValidationError
from clup.db.queries import QueryInterface
from clup.services.sms import SmsSender

logger = logging.getLogger(__name__)

# codes are short-lived and numeric, pbkdf2 keeps them out of the table in clear
code_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

PHONE_RE = re.compile(r"^\+?[0-9]{8,15}$")


def normalize_phone_number(phone_number: str | None) -> str:
    """Strips spaces and checks the format; raises ValidationError if invalid."""
    phone = (phone_number or "").replace(" ", "")
    if not PHONE_RE.match(phone):
        raise ValidationError("Format is invalid")
    return phone


def generate_code() -> str:
    return "".join(str(secrets.randbelow(10)) for _ in range(settings.VERIFICATION_CODE_LENGTH))


def login_with_phone_number(queries: QueryInterface, phone_number: str, sender: SmsSender) -> None:
    """
    Starts a login: registers the phone number if new, stores a fresh
    verification code and sends it by SMS.
    """
    phone = normalize_phone_number(phone_number)
    if queries.get_user(phone) is None:
        queries.create_user(phone)
        logger.info(f"New user registered: {phone}")

    code = generate_code()
    expires_at = utc_now() + timedelta(minutes=settings.VERIFICATION_CODE_EXPIRE_MINUTES)
    queries.add_verification_code(phone, code_context.hash(code), expires_at)
    sender.send(phone, f"Your CLup code is {code}")


def verify_phone_number(queries: QueryInterface, phone_number: str, code: str) -> None:
    """Consumes the latest unexpired code for the phone; ValidationError if it does not match."""
    phone = normalize_phone_number(phone_number)
    stored = queries.get_latest_verification_code(phone, utc_now())
    if stored is None or not code or not code_context.verify(code, stored.code_hash):
        raise ValidationError("Invalid verification code")
    if not queries.consume_verification_code(stored.id):
        raise ValidationError("Invalid verification code")


def get_account_token(queries: QueryInterface, phone_number: str) -> str:
    """Issues a new token for the user; the previous one stops working."""
    phone = normalize_phone_number(phone_number)
    expires_at = utc_now() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {"sub": phone, "exp": expires_at, "jti": uuid.uuid4().hex}
    token = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    queries.replace_user_token(phone, token, expires_at)
    return token


def validate_token(queries: QueryInterface, token: str | None) -> str:
    """Returns the user id the token belongs to, or raises InvalidTokenError."""
    if not token:
        raise InvalidTokenError("Invalid auth token")
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise InvalidTokenError("Invalid auth token")

    stored = queries.get_token(token)
    if stored is None or stored.user_id != payload.get("sub") or stored.expires_at <= utc_now():
        raise InvalidTokenError("Invalid auth token")
    return stored.user_id


def is_totem(queries: QueryInterface, user_id: str) -> bool:
    return queries.is_totem(user_id)

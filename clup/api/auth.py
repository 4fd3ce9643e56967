# clup/api/auth.py
# Login routes: request an SMS code, exchange it for an auth token.
import logging

from fastapi import APIRouter, Depends

from clup import schemas
from clup.core.security import get_queries
from clup.db.queries import QueryInterface
from clup.services import accounts
from clup.services.sms import SmsSender, get_sms_sender

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=schemas.Message)
def login(body: schemas.LoginRequest,
          queries: QueryInterface = Depends(get_queries),
          sender: SmsSender = Depends(get_sms_sender)):
    """Sends a verification code to the phone number; 400 if its format is invalid."""
    logger.info(f"/api/auth/login <-- phoneNumber={body.phone_number}")
    accounts.login_with_phone_number(queries, body.phone_number, sender)
    return {"message": "OK - phoneNumber received"}


@router.post("/code", response_model=schemas.AuthToken)
def verify_code(body: schemas.CodeRequest, queries: QueryInterface = Depends(get_queries)):
    """Consumes the SMS code and returns a fresh auth token."""
    logger.info(f"/api/auth/code <-- phoneNumber={body.phone_number}")
    accounts.verify_phone_number(queries, body.phone_number, body.sms_code)
    token = accounts.get_account_token(queries, body.phone_number)
    return schemas.AuthToken(auth_token=token)

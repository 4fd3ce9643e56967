# clup/services/sms.py
# SMS delivery. Real provider integration is out of scope: the default sender only logs.
import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class SmsSender(ABC):
    """Interface of the SMS collaborator used by the account manager."""

    @abstractmethod
    def send(self, phone_number: str, message: str) -> None:
        ...


class LoggingSmsSender(SmsSender):

    def send(self, phone_number: str, message: str) -> None:
        logger.info(f"SMS to {phone_number}: {message}")


def get_sms_sender() -> SmsSender:
    """FastAPI dependency, overridden in tests to capture codes."""
    return LoggingSmsSender()

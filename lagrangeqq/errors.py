"""Client errors, login results and the disconnect notification."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ClientError(Exception):
    """Base class of client state errors."""

    default_message = "client error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class AlreadyOnlineError(ClientError):
    default_message = "already online"


class NotOnlineError(ClientError):
    default_message = "not online"


class MemberNotFoundError(ClientError):
    default_message = "member not found"


class NotExistsError(ClientError):
    default_message = "not exists"


@dataclass
class DisconnectedEvent:
    """Raised to subscribers when the connection is lost."""

    message: str = ""


class LoginError(IntEnum):
    NEED_CAPTCHA = 1
    OTHER = 3
    UNSAFE_DEVICE = 4
    SMS_NEEDED = 5
    TOO_MANY_SMS_REQUEST = 6
    SMS_OR_VERIFY_NEEDED = 7
    SLIDER_NEEDED = 8
    UNKNOWN = -1


@dataclass
class LoginResponse:
    """Outcome of a login attempt."""

    success: bool = False
    code: int = 0
    error: LoginError | None = None

    captcha_image: bytes = b""
    captcha_sign: bytes = b""

    verify_url: str = ""

    sms_phone: str = ""

    error_message: str = ""
from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum, auto
from typing import Protocol


@dataclass(frozen=True, slots=True)
class Update:
    latest_version: str


class UpdateGatewayCause(StrEnum):
    @staticmethod
    def _generate_next_value_(
        name: str, start: int, count: int, last_values: list[str]
    ) -> str:
        return name.lower()

    TOO_MANY_REQUESTS = auto()
    FORBIDDEN = auto()
    NOT_FOUND = auto()
    REQUEST_FAILED = auto()
    ERROR_RESPONSE = auto()
    INVALID_RESPONSE = auto()
    UNKNOWN = auto()


DEFAULT_GATEWAY_MESSAGES: dict[UpdateGatewayCause, str] = {
    UpdateGatewayCause.TOO_MANY_REQUESTS: "Registry rate limit exceeded while looking up the latest version.",
    UpdateGatewayCause.FORBIDDEN: "Registry refused the latest version lookup.",
    UpdateGatewayCause.NOT_FOUND: "Package is not published on the registry.",
    UpdateGatewayCause.REQUEST_FAILED: "Network error while looking up the latest version.",
    UpdateGatewayCause.ERROR_RESPONSE: "Registry returned an unexpected response.",
    UpdateGatewayCause.INVALID_RESPONSE: "Registry returned an invalid response.",
    UpdateGatewayCause.UNKNOWN: "Unable to determine the latest published version.",
}


class UpdateGatewayError(Exception):
    def __init__(
        self, *, cause: UpdateGatewayCause, message: str | None = None
    ) -> None:
        self.cause = cause
        self.user_message = message
        detail = message or DEFAULT_GATEWAY_MESSAGES.get(
            cause, DEFAULT_GATEWAY_MESSAGES[UpdateGatewayCause.UNKNOWN]
        )
        super().__init__(detail)


class UpdateGateway(Protocol):
    async def fetch_update(self, package_name: str) -> Update | None: ...

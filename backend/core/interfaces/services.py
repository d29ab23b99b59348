"""Service interfaces for external integrations."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class PushMessage:
    """Payload delivered to one recipient's push channel."""

    token: str
    title: str
    body: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "to": self.token,
            "sound": "default",
            "title": self.title,
            "body": self.body,
            "data": self.data,
        }


class PushService(ABC):
    """Abstract fire-and-forget push delivery endpoint."""

    @abstractmethod
    async def send(self, message: PushMessage) -> None:
        """Send one message; raise ``RecipientDispatchFailure`` on rejection."""
        ...

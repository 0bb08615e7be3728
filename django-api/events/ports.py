"""Outbound ports the services talk to.

Implementations live in events/adapters.py and are chosen by the container.
Every port is best-effort from the caller's point of view: services log
failures and carry on.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import IO, Any


@dataclass(frozen=True)
class Upload:
    """A file received with a request, before it is stored."""

    name: str
    content_type: str
    size: int
    file: IO[bytes]

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith("image/")


class NotificationSink(ABC):
    @abstractmethod
    def send(self, to_address: str, subject: str, body: str) -> None:
        ...


class FileStorage(ABC):
    @abstractmethod
    def store(self, upload: Upload, folder: str) -> str:
        """Persist the upload and return its storage path."""
        ...

    @abstractmethod
    def delete(self, path: str) -> None:
        ...


class WebhookSink(ABC):
    @abstractmethod
    def post(self, url: str, payload: dict[str, Any]) -> None:
        ...

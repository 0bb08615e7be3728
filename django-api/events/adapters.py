"""Port implementations backed by Django's mail and storage layers and httpx."""

import uuid

import httpx
import structlog
from django.conf import settings
from django.core.files import File
from django.core.files.storage import default_storage
from django.core.mail import EmailMessage

from events.ports import FileStorage, NotificationSink, Upload, WebhookSink

logger = structlog.get_logger(__name__)


class ConsoleNotificationSink(NotificationSink):
    """Writes outgoing mail to the log instead of delivering it."""

    def send(self, to_address: str, subject: str, body: str) -> None:
        logger.info("notification_logged", to=to_address, subject=subject, body=body)


class EmailNotificationSink(NotificationSink):
    """Delivers mail through the configured Django email backend."""

    def send(self, to_address: str, subject: str, body: str) -> None:
        message = EmailMessage(
            subject=subject,
            body=body,
            from_email=settings.DEFAULT_FROM_EMAIL,
            to=[to_address],
        )
        message.send(fail_silently=False)
        logger.info("notification_sent", to=to_address, subject=subject)


class DjangoFileStorage(FileStorage):
    """Stores uploads through Django's default storage backend."""

    def store(self, upload: Upload, folder: str) -> str:
        name = default_storage.get_valid_name(upload.name or "upload")
        path = default_storage.save(f"{folder}/{uuid.uuid4().hex}-{name}", File(upload.file, name=name))
        logger.info("file_stored", path=path, size=upload.size)
        return path

    def delete(self, path: str) -> None:
        if path:
            default_storage.delete(path)


class HttpxWebhookSink(WebhookSink):
    """Posts JSON to an external webhook with a bounded timeout."""

    def __init__(self, timeout: float | None = None) -> None:
        self._timeout = timeout if timeout is not None else settings.WEBHOOK_TIMEOUT

    def post(self, url: str, payload: dict) -> None:
        response = httpx.post(url, json=payload, timeout=self._timeout)
        response.raise_for_status()

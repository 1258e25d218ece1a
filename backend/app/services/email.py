"""Outbound email: SES sender behind a bounded fire-and-forget queue.

Business operations only ever enqueue. A single worker task drains the
queue and performs the blocking SES call in a thread. Failures are logged
and dropped; nothing is retried and nothing reaches the caller.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

import boto3
from botocore.config import Config

from app.core.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    html: str
    text: str
    template: str


Sender = Callable[[EmailMessage], None]


class SesEmailSender:
    """Send through Amazon SES (or LocalStack when SES_ENDPOINT_URL is set)."""

    def __init__(self) -> None:
        kwargs: dict = {
            "service_name": "ses",
            "region_name": settings.AWS_REGION,
            "config": Config(retries={"max_attempts": 1}),
        }
        if settings.SES_ENDPOINT_URL:
            kwargs["endpoint_url"] = settings.SES_ENDPOINT_URL
        if settings.AWS_ACCESS_KEY_ID and settings.AWS_SECRET_ACCESS_KEY:
            kwargs["aws_access_key_id"] = settings.AWS_ACCESS_KEY_ID
            kwargs["aws_secret_access_key"] = settings.AWS_SECRET_ACCESS_KEY
        self._client = boto3.client(**kwargs)

    def __call__(self, message: EmailMessage) -> None:
        self._client.send_email(
            Source=settings.EMAIL_SENDER,
            Destination={"ToAddresses": [message.to]},
            Message={
                "Subject": {"Data": message.subject, "Charset": "UTF-8"},
                "Body": {
                    "Html": {"Data": message.html, "Charset": "UTF-8"},
                    "Text": {"Data": message.text, "Charset": "UTF-8"},
                },
            },
        )


def log_email_sender(message: EmailMessage) -> None:
    """Development sender: write the message to the log instead of SES."""
    logger.info(
        "[EMAIL-LOG] '%s' to '%s': %s", message.template, message.to, message.text
    )


def build_sender() -> Sender:
    if settings.EMAIL_BACKEND == "ses":
        return SesEmailSender()
    return log_email_sender


class EmailDispatcher:
    def __init__(self, sender: Sender | None = None, maxsize: int | None = None) -> None:
        self._sender = sender
        self._queue: asyncio.Queue[EmailMessage] = asyncio.Queue(
            maxsize=maxsize if maxsize is not None else settings.EMAIL_QUEUE_MAXSIZE
        )
        self._worker: asyncio.Task | None = None

    # -- lifecycle ----------------------------------------------------------

    async def start(self) -> None:
        if self._worker is not None:
            return
        if self._sender is None:
            self._sender = build_sender()
        self._worker = asyncio.create_task(self._run(), name="email-dispatcher")

    async def stop(self) -> None:
        if self._worker is None:
            return
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None

    async def drain(self) -> None:
        """Wait until every queued message has been attempted."""
        await self._queue.join()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    # -- queue --------------------------------------------------------------

    def enqueue(self, message: EmailMessage) -> None:
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.error(
                "[EMAIL-DROPPED] Queue full, dropping '%s' to '%s'", message.template, message.to
            )

    async def _run(self) -> None:
        while True:
            message = await self._queue.get()
            try:
                logger.info(
                    "[EMAIL-ACTION] Attempting to send '%s' to '%s'", message.template, message.to
                )
                await asyncio.to_thread(self._sender, message)
                logger.info("[EMAIL-SUCCESS] Sent '%s' to '%s'", message.template, message.to)
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "[EMAIL-FAILURE] Failed to send '%s' to '%s': %s",
                    message.template,
                    message.to,
                    exc,
                )
            finally:
                self._queue.task_done()

    # -- messages -----------------------------------------------------------

    def send_team_invitation_email(self, to: str, team_name: str, token: str) -> None:
        url = f"{settings.BASE_URL}/api/v1/teams/accept-invite?token={token}"
        self.enqueue(
            EmailMessage(
                to=to,
                subject="Teamwork - Team Invitation",
                html=(
                    f"<p>You have been invited to join the team <b>{team_name}</b>.</p>"
                    f'<p><a href="{url}">Accept invitation</a> (valid for '
                    f"{settings.INVITATION_TOKEN_TTL_HOURS} hours)</p>"
                ),
                text=f"You have been invited to join the team {team_name}: {url}",
                template="team-invitation-email",
            )
        )

    def send_project_invitation_email(self, to: str, project_name: str, token: str) -> None:
        url = f"{settings.BASE_URL}/api/v1/projects/accept-invite?token={token}"
        self.enqueue(
            EmailMessage(
                to=to,
                subject="Teamwork - Project Invitation",
                html=(
                    f"<p>You have been invited to join the project <b>{project_name}</b>.</p>"
                    f'<p><a href="{url}">Accept invitation</a> (valid for '
                    f"{settings.INVITATION_TOKEN_TTL_HOURS} hours)</p>"
                ),
                text=f"You have been invited to join the project {project_name}: {url}",
                template="project-invitation-email",
            )
        )

    def send_password_reset_email(self, to: str, token: str) -> None:
        url = f"{settings.BASE_URL}/api/v1/auth/reset-password?token={token}"
        self.enqueue(
            EmailMessage(
                to=to,
                subject="Teamwork - Password Reset Request",
                html=f'<p><a href="{url}">Reset your password</a></p>',
                text=f"Reset your password: {url}",
                template="password-reset-email",
            )
        )

    def send_verification_email(self, to: str, token: str) -> None:
        url = f"{settings.BASE_URL}/api/v1/auth/verify?token={token}"
        self.enqueue(
            EmailMessage(
                to=to,
                subject="Teamwork - Confirm your account",
                html=f'<p><a href="{url}">Confirm your account</a></p>',
                text=f"Confirm your account: {url}",
                template="verification-email",
            )
        )

"""Outbound notifications - mail transports and a bounded dispatcher."""

import smtplib
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from email.message import EmailMessage
from typing import Optional, Protocol

import httpx

from chainheart.config import Config
from chainheart.errors import ExternalDependencyError
from chainheart.log import get_logger

logger = get_logger(__name__)


class Notifier(Protocol):
    """Anything that can deliver a message to an address."""

    def send(self, to_address: str, subject: str, body: str) -> None:
        ...


class SmtpNotifier:
    """Sends plain-text mail over SMTP."""

    def __init__(
        self,
        host: str,
        port: int,
        user: str = "",
        password: str = "",
        use_tls: bool = True,
        mail_from: str = "no-reply@chainheart.local",
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.use_tls = use_tls
        self.mail_from = mail_from
        self.timeout = timeout

    def send(self, to_address: str, subject: str, body: str) -> None:
        """Send one message.

        Raises:
            ExternalDependencyError: If the SMTP exchange fails
        """
        message = EmailMessage()
        message["From"] = self.mail_from
        message["To"] = to_address
        message["Subject"] = subject
        message.set_content(body)

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.user:
                    smtp.login(self.user, self.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP delivery to {to_address} failed: {e}")
            raise ExternalDependencyError(f"SMTP delivery to {to_address} failed") from e


class WebhookNotifier:
    """Posts messages to an HTTP mail relay as JSON.

    Example usage:
        notifier = WebhookNotifier("https://relay.example.org/send")
        notifier.send("ops@example.org", "Hello", "Body")
    """

    def __init__(self, url: str, timeout: float = 10.0, client: Optional[httpx.Client] = None):
        """Initialize the webhook notifier.

        Args:
            url: Relay endpoint accepting ``{"to", "subject", "body"}``
            timeout: Request timeout in seconds
            client: Optional preconfigured httpx client
        """
        self.url = url
        self.timeout = timeout
        self._client = client

    def send(self, to_address: str, subject: str, body: str) -> None:
        """Post one message to the relay.

        Raises:
            ExternalDependencyError: If the relay times out or rejects the message
        """
        payload = {"to": to_address, "subject": subject, "body": body}
        client = self._client or httpx.Client(timeout=self.timeout)
        try:
            response = client.post(self.url, json=payload)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.error(f"Timeout posting notification to {self.url}")
            raise ExternalDependencyError(f"Timeout posting notification to {self.url}") from e
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error posting notification: {e.response.status_code}")
            raise ExternalDependencyError(
                f"HTTP {e.response.status_code} posting notification to {self.url}"
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Error posting notification: {e}")
            raise ExternalDependencyError(f"Failed to post notification to {self.url}") from e
        finally:
            if self._client is None:
                client.close()


class LoggingNotifier:
    """Writes messages to the log instead of delivering them."""

    def send(self, to_address: str, subject: str, body: str) -> None:
        logger.info(f"Notification to {to_address}: {subject} - {body}")


class NotificationDispatcher:
    """Runs a notifier with a per-attempt timeout and bounded retries.

    Delivery failures never propagate: ``dispatch`` reports the outcome as
    a boolean and logs every failed attempt.
    """

    def __init__(
        self,
        notifier: Notifier,
        timeout_seconds: float = 10.0,
        max_retries: int = 2,
        max_workers: int = 4,
    ):
        """Initialize the dispatcher.

        Args:
            notifier: Transport used to deliver messages
            timeout_seconds: How long one attempt may take
            max_retries: Extra attempts after the first one fails
            max_workers: Size of the delivery thread pool
        """
        self.notifier = notifier
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="notify")

    def dispatch(self, to_address: str, subject: str, body: str) -> bool:
        """Deliver a message, retrying failed or slow attempts.

        Returns:
            True if an attempt succeeded, False once all attempts are spent
        """
        attempts = self.max_retries + 1
        for attempt in range(1, attempts + 1):
            future = self._executor.submit(self.notifier.send, to_address, subject, body)
            try:
                future.result(timeout=self.timeout_seconds)
                logger.info(f"Notification sent to {to_address}: {subject}")
                return True
            except FutureTimeoutError:
                future.cancel()
                logger.warning(
                    f"Notification to {to_address} timed out after {self.timeout_seconds}s "
                    f"(attempt {attempt}/{attempts})"
                )
            except Exception as e:
                logger.warning(f"Notification to {to_address} failed (attempt {attempt}/{attempts}): {e}")

        logger.warning(f"Giving up on notification to {to_address} after {attempts} attempts")
        return False

    def shutdown(self) -> None:
        """Stop accepting work; attempts still running are abandoned."""
        self._executor.shutdown(wait=False)


def build_notifier(config: Config) -> Notifier:
    """Create the notifier selected by ``config.notifier``."""
    if config.notifier == "smtp":
        return SmtpNotifier(
            **config.get_smtp_params(),
            mail_from=config.mail_from,
            timeout=config.notify_timeout_seconds,
        )
    if config.notifier == "webhook":
        return WebhookNotifier(config.notify_webhook_url, timeout=config.notify_timeout_seconds)
    return LoggingNotifier()


def build_dispatcher(config: Config, notifier: Optional[Notifier] = None) -> NotificationDispatcher:
    """Create a dispatcher using the configured timeout and retry budget."""
    return NotificationDispatcher(
        notifier or build_notifier(config),
        timeout_seconds=config.notify_timeout_seconds,
        max_retries=config.notify_max_retries,
    )

"""
通知送信モジュール

構築済みのダイジェストをメールまたはWebhookで1件の通知として送信する
"""

import logging
import smtplib
from email.message import EmailMessage
from typing import Protocol

import requests

from src.config import DigestConfig
from src.error_messages import get_configuration_error, handle_digest_error

logger = logging.getLogger(__name__)


class NotificationTransport(Protocol):
    """通知トランスポートのプロトコル"""

    def send(self, subject: str, text_body: str, html_body: str) -> None:
        """通知を送信（失敗時はDeliveryErrorを送出）"""
        ...


class SmtpTransport:
    """SMTPメール送信"""

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        recipients: list[str],
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        timeout: int = 30,
    ):
        self.host = host
        self.port = port
        self.sender = sender
        self.recipients = recipients
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def build_message(self, subject: str, text_body: str, html_body: str) -> EmailMessage:
        """テキスト本文とHTML本文を持つマルチパートメッセージを作成"""
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.sender
        message["To"] = ", ".join(self.recipients)
        message.set_content(text_body)
        message.add_alternative(html_body, subtype="html")
        return message

    def send(self, subject: str, text_body: str, html_body: str) -> None:
        message = self.build_message(subject, text_body, html_body)
        logger.info(
            f"Sending digest mail to {len(self.recipients)} recipients via {self.host}:{self.port}"
        )
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password)
                smtp.send_message(message)
        except Exception as e:
            logger.error(f"Failed to send digest mail: {str(e)}")
            raise handle_digest_error(e, "deliver") from e
        logger.info("Digest mail sent")


class WebhookTransport:
    """Webhook送信（JSONをPOST）"""

    def __init__(self, url: str, timeout: int = 30):
        self.url = url
        self.timeout = timeout

    def send(self, subject: str, text_body: str, html_body: str) -> None:
        payload = {"subject": subject, "text": text_body, "html": html_body}
        logger.info("Posting digest to webhook")
        try:
            response = requests.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except Exception as e:
            logger.error(f"Failed to post digest to webhook: {str(e)}")
            raise handle_digest_error(e, "deliver") from e
        logger.info(f"Webhook responded with status {response.status_code}")


def create_transport(config: DigestConfig) -> NotificationTransport:
    """設定に応じたトランスポートを作成"""
    if config.is_smtp_transport:
        return SmtpTransport(
            host=config.smtp_host,
            port=config.smtp_port,
            sender=config.sender,
            recipients=config.recipients,
            username=config.smtp_username,
            password=config.smtp_password,
            use_tls=config.smtp_use_tls,
        )
    if config.is_webhook_transport:
        return WebhookTransport(config.webhook_url)
    raise get_configuration_error(
        ValueError(f"Invalid DIGEST_TRANSPORT: {config.transport}")
    )

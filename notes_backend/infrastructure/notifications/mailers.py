# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Outbound email delivery for verification codes."""

from __future__ import annotations

import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from notes_backend.domain.users.exceptions import DeliveryError
from notes_backend.domain.users.repositories import NotificationSender
from notes_backend.shared.config.settings import EmailConfig
from notes_backend.shared.logging import logger


class SmtpNotificationSender(NotificationSender):
    def __init__(self, config: EmailConfig) -> None:
        self._config = config

    @property
    def configured(self) -> bool:
        return bool(self._config.smtp_user and self._config.smtp_password)

    def send(self, address: str, subject: str, body: str, *, html: str | None = None) -> None:
        if not self.configured:
            logger.error("email.smtp: SMTP credentials are not configured")
            raise DeliveryError(context={"reason": "not_configured"})

        cfg = self._config
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{cfg.app_name} <{cfg.sender}>"
        msg["To"] = address
        msg.attach(MIMEText(body, "plain", "utf-8"))
        if html:
            msg.attach(MIMEText(html, "html", "utf-8"))

        try:
            with smtplib.SMTP(cfg.smtp_host, cfg.smtp_port, timeout=cfg.smtp_timeout) as server:
                if cfg.smtp_use_tls:
                    server.starttls()
                server.login(cfg.smtp_user, cfg.smtp_password)
                server.sendmail(cfg.sender, [address], msg.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            # socket timeouts surface as OSError subclasses
            logger.warning(f"email.smtp: delivery to {address} failed: {type(exc).__name__}")
            raise DeliveryError() from exc

        logger.info(f"email.smtp: sent to {address} subject={subject!r}")


class ConsoleNotificationSender(NotificationSender):
    """Development sender that only logs the outgoing message."""

    def send(self, address: str, subject: str, body: str, *, html: str | None = None) -> None:
        logger.info(f"email.console: would send to {address} subject={subject!r}")
        logger.debug(f"email.console: body\n{body}")


def build_notification_sender(config: EmailConfig) -> NotificationSender:
    if config.backend == "smtp":
        return SmtpNotificationSender(config)
    return ConsoleNotificationSender()


__all__ = [
    "ConsoleNotificationSender",
    "SmtpNotificationSender",
    "build_notification_sender",
]

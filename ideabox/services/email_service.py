"""
Idea Box
Email Service.

Sends the submitter-facing e-mails (today: the rejection notice). Delivery
goes over SMTP when MAIL_SERVER is set; without it the message is only
logged and its EmailLog row is marked sent, which is the mode used in
development and tests.

Every attempt leaves one EmailLog row (queued → sent | failed) linked to the
suggestion. SMTP errors are recorded on that row instead of being raised, so
callers read ``log.status`` to learn whether the message went out.

Configuration: MAIL_SERVER, MAIL_PORT, MAIL_USE_TLS, MAIL_USERNAME,
MAIL_PASSWORD, MAIL_DEFAULT_SENDER (see ideabox.config).
"""

from __future__ import annotations

import html
import logging
import smtplib
from datetime import datetime, timezone
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from flask import current_app

from ideabox.models import db
from ideabox.models.email_log import EmailLog

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
#  Templates ({placeholders} are filled with HTML-escaped values)
# ═══════════════════════════════════════════════════════════════════════════

_TEMPLATES: dict[str, dict[str, str]] = {
    "suggestion_rejected": {
        "subject": "Sua sugestão #{idea_number} foi avaliada",
        "html": """
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <div style="background: #1e293b; color: white; padding: 16px 24px; border-radius: 8px 8px 0 0;">
                <h2 style="margin: 0; font-size: 18px;">Caixa de Sugestões</h2>
            </div>
            <div style="background: #f8fafc; padding: 24px; border: 1px solid #e2e8f0; border-top: none;">
                <p style="color: #1e293b;">Olá, {submitter_name}.</p>
                <p style="color: #64748b; line-height: 1.6;">
                    A sua sugestão <strong>#{idea_number}</strong> foi avaliada por
                    <strong>{analyst_name}</strong> e recebeu o status
                    <strong>{status_label}</strong>.
                </p>
                <div style="background: white; border-left: 4px solid #ef4444; padding: 12px 16px; margin: 16px 0;">
                    <p style="margin: 0 0 4px; font-size: 12px; color: #94a3b8; text-transform: uppercase;">Justificativa</p>
                    <p style="margin: 0; color: #1e293b;">{reason}</p>
                </div>
                <p style="color: #64748b; line-height: 1.6;">
                    Agradecemos a sua contribuição e incentivamos o envio de novas ideias.
                </p>
            </div>
            <div style="background: #f1f5f9; padding: 12px 24px; border-radius: 0 0 8px 8px;
                        border: 1px solid #e2e8f0; border-top: none; text-align: center;">
                <p style="color: #94a3b8; font-size: 12px; margin: 0;">
                    Mensagem automática — não responda este e-mail.
                </p>
            </div>
        </div>
        """,
    },
}


class EmailService:
    """Stateless e-mail sender; every method flushes but never commits."""

    @staticmethod
    def is_configured() -> bool:
        return bool(current_app.config.get("MAIL_SERVER"))

    @staticmethod
    def render(template_name: str, context: dict) -> tuple[str, str]:
        """(subject, html body) for a template; values are escaped in the body.

        Raises:
            KeyError: unknown template name.
        """
        template = _TEMPLATES[template_name]
        subject = template["subject"].format(**context)
        escaped = {key: html.escape(str(value)) for key, value in context.items()}
        return subject, template["html"].format(**escaped)

    @classmethod
    def send(
        cls,
        *,
        to_email: str,
        to_name: str | None,
        subject: str,
        html_body: str,
        template_name: str,
        category: str,
        entity_type: str,
        entity_id: int | None,
    ) -> EmailLog:
        """Deliver one message and return its EmailLog row (status sent or failed)."""
        log = EmailLog(
            recipient_email=to_email,
            recipient_name=to_name,
            subject=subject,
            template_name=template_name,
            category=category,
            status="queued",
            entity_type=entity_type,
            entity_id=entity_id,
        )
        db.session.add(log)
        db.session.flush()

        if not cls.is_configured():
            log.status = "sent"
            log.sent_at = datetime.now(timezone.utc)
            logger.info("Email logged (no MAIL_SERVER): to=%s subject='%s'", to_email, subject)
            return log

        try:
            cls._send_smtp(to_email=to_email, to_name=to_name, subject=subject, html_body=html_body)
        except (smtplib.SMTPException, OSError) as exc:
            log.status = "failed"
            log.error_message = str(exc)[:1000]
            logger.error("Email failed: to=%s %s=%s error=%s", to_email, entity_type, entity_id, exc)
            return log

        log.status = "sent"
        log.sent_at = datetime.now(timezone.utc)
        logger.info("Email sent: to=%s subject='%s'", to_email, subject)
        return log

    @classmethod
    def send_rejection(
        cls,
        *,
        to_email: str,
        to_name: str | None,
        suggestion_id: int,
        idea_number: int,
        analyst_name: str,
        status_label: str,
        reason: str,
    ) -> EmailLog:
        """Rejection notice for a suggestion moved to NOT_IMPLEMENTED."""
        subject, html_body = cls.render("suggestion_rejected", {
            "submitter_name": to_name or to_email,
            "idea_number": idea_number,
            "analyst_name": analyst_name,
            "status_label": status_label,
            "reason": reason,
        })
        return cls.send(
            to_email=to_email,
            to_name=to_name,
            subject=subject,
            html_body=html_body,
            template_name="suggestion_rejected",
            category="suggestion_rejected",
            entity_type="suggestion",
            entity_id=suggestion_id,
        )

    @staticmethod
    def _send_smtp(*, to_email: str, to_name: str | None, subject: str, html_body: str) -> None:
        cfg = current_app.config
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = cfg.get("MAIL_DEFAULT_SENDER") or f"noreply@{cfg['MAIL_SERVER']}"
        msg["To"] = f"{to_name} <{to_email}>" if to_name else to_email
        msg.attach(MIMEText(html_body, "html"))

        with smtplib.SMTP(cfg["MAIL_SERVER"], cfg.get("MAIL_PORT", 587), timeout=30) as smtp:
            if cfg.get("MAIL_USE_TLS", True):
                smtp.starttls()
            if cfg.get("MAIL_USERNAME") and cfg.get("MAIL_PASSWORD"):
                smtp.login(cfg["MAIL_USERNAME"], cfg["MAIL_PASSWORD"])
            smtp.send_message(msg)

# mail.py
import smtplib
from email.message import EmailMessage
from email.utils import parseaddr, formataddr

import requests

from core import config

RESEND_URL = "https://api.resend.com/emails"


def _via_console(to, subject, text, html):
    print(f"[mail][console] to={to} subject={subject!r}\n{text or ''}\n{html or ''}", flush=True)
    return True, "console"


def _via_resend(to, subject, text, html):
    if not config.RESEND_API_KEY:
        return False, "missing RESEND_API_KEY"

    payload = {"from": config.MAIL_FROM, "to": to, "subject": subject, "text": text or ""}
    if html:
        payload["html"] = html
    if config.MAIL_REPLY_TO:
        payload["reply_to"] = config.MAIL_REPLY_TO

    r = requests.post(
        RESEND_URL,
        headers={"Authorization": f"Bearer {config.RESEND_API_KEY}"},
        json=payload,
        timeout=15,
    )
    if not 200 <= r.status_code < 300:
        print("[mail][resend]", r.status_code, r.text, flush=True)
    return 200 <= r.status_code < 300, str(r.status_code)


def _via_smtp(to, subject, text, html):
    missing = [
        name
        for name in ("SMTP_HOST", "SMTP_USER", "SMTP_PASS")
        if not getattr(config, name)
    ]
    if missing:
        return False, f"missing smtp config: {', '.join(missing)}"

    display_name, _ = parseaddr(config.MAIL_FROM or "")
    msg = EmailMessage()
    msg["From"] = formataddr((display_name or "Blog", config.SMTP_USER))
    msg["To"] = to
    msg["Subject"] = subject
    msg.set_content(text or "")
    if html:
        msg.add_alternative(html, subtype="html")

    smtp_cls = smtplib.SMTP if config.SMTP_USE_TLS else smtplib.SMTP_SSL
    try:
        with smtp_cls(config.SMTP_HOST, config.SMTP_PORT, timeout=20) as conn:
            if config.SMTP_USE_TLS:
                conn.starttls()
            conn.login(config.SMTP_USER, config.SMTP_PASS)
            conn.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        print("[mail][smtp] failed:", repr(e), flush=True)
        return False, repr(e)
    return True, "smtp"


PROVIDERS = {
    "console": _via_console,
    "resend": _via_resend,
    "smtp": _via_smtp,
}


def send_mail(to: str, subject: str, text: str | None = None, html: str | None = None):
    """
    Verschickt eine Mail über ``MAIL_PROVIDER``.

    Gibt (ok, reason) zurück; bei ``EMAILS_ENABLED=false`` wird nichts
    verschickt und (True, "disabled") gemeldet.
    """
    if not config.EMAILS_ENABLED:
        print(f"[mail] disabled, skipped subject={subject!r} to={to}", flush=True)
        return True, "disabled"

    provider = (config.MAIL_PROVIDER or "console").strip().lower()
    send = PROVIDERS.get(provider)
    if send is None:
        return False, f"unknown provider '{provider}'"

    try:
        return send(to, subject, text, html)
    except requests.RequestException as e:
        print(f"[mail][{provider}] request failed:", repr(e), flush=True)
        return False, repr(e)


def send_verification_mail(to: str, code: int):
    ttl = config.VALIDATION_CODE_TTL_MINUTES
    text = f"Welcome!\n\nYour verification code is: {code}\n\nThe code expires in {ttl} minutes.\n"
    html = (
        f"<p>Welcome!</p><p>Your verification code is: <strong>{code}</strong></p>"
        f"<p>The code expires in {ttl} minutes.</p>"
    )
    return send_mail(to, "Your verification code", text=text, html=html)

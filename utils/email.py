"""
Outgoing email over SMTP.

EmailSender is the interface the task processor depends on; GmailSender
authenticates against smtp.gmail.com with STARTTLS, LocalSender talks to an
unauthenticated server such as MailHog.
"""
from __future__ import annotations

import mimetypes
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from email.utils import formataddr
from pathlib import Path
from typing import Optional, Sequence

GMAIL_SUBMISSION_HOST = "smtp.gmail.com"
GMAIL_SUBMISSION_PORT = 587


class EmailSender(ABC):
    @abstractmethod
    def send_email(
        self,
        subject: str,
        content: str,
        to: Sequence[str],
        cc: Optional[Sequence[str]] = None,
        bcc: Optional[Sequence[str]] = None,
        attach_files: Optional[Sequence[str]] = None,
    ) -> None:
        """Send an HTML email. Raises on any transport failure."""


def build_message(sender: str, subject: str, content: str, to, cc=None, bcc=None, attach_files=None) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = sender
    msg["Subject"] = subject
    msg["To"] = ", ".join(to)
    if cc:
        msg["Cc"] = ", ".join(cc)
    if bcc:
        msg["Bcc"] = ", ".join(bcc)
    msg.set_content("This message requires an HTML capable email client.")
    msg.add_alternative(content, subtype="html")

    for path in attach_files or []:
        file_path = Path(path)
        try:
            data = file_path.read_bytes()
        except OSError as exc:
            raise ValueError(f"cannot attach file {path}: {exc}") from exc
        ctype, _ = mimetypes.guess_type(file_path.name)
        maintype, subtype = (ctype or "application/octet-stream").split("/", 1)
        msg.add_attachment(data, maintype=maintype, subtype=subtype, filename=file_path.name)
    return msg


class GmailSender(EmailSender):
    def __init__(self, name: str, address: str, password: str):
        self.name = name
        self.address = address
        self.password = password

    def send_email(self, subject, content, to, cc=None, bcc=None, attach_files=None) -> None:
        msg = build_message(formataddr((self.name, self.address)), subject, content, to, cc, bcc, attach_files)
        with smtplib.SMTP(GMAIL_SUBMISSION_HOST, GMAIL_SUBMISSION_PORT, timeout=30) as smtp:
            smtp.starttls()
            smtp.login(self.address, self.password)
            smtp.send_message(msg)


class LocalSender(EmailSender):
    def __init__(self, name: str, address: str, smtp_server: str):
        self.name = name
        self.address = address
        host, _, port = smtp_server.partition(":")
        self.host = host
        self.port = int(port or 25)

    def send_email(self, subject, content, to, cc=None, bcc=None, attach_files=None) -> None:
        msg = build_message(formataddr((self.name, self.address)), subject, content, to, cc, bcc, attach_files)
        with smtplib.SMTP(self.host, self.port, timeout=30) as smtp:
            smtp.send_message(msg)

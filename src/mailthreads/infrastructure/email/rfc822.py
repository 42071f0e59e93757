from __future__ import annotations

import re
from datetime import datetime
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser
from email.utils import getaddresses, parseaddr
from typing import Optional

from loguru import logger

from mailthreads.domain.entities.raw_message import RawMessage

_MSG_ID = re.compile(r"<([^<>\s]+)>")


def normalize_message_id(value: Optional[str]) -> Optional[str]:
    """'<abc@host> (comment)' -> 'abc@host'. Blank values become None."""
    if value is None:
        return None
    value = str(value).strip()
    if not value:
        return None
    match = _MSG_ID.search(value)
    if match:
        return match.group(1)
    # Bare ids without brackets: take the first token
    return value.split()[0].strip("<>") or None


def _as_text(msg: EmailMessage) -> str:
    # Prefer text/plain; fallback to HTML
    if msg.is_multipart():
        for p in msg.walk():
            if p.get_content_type() == "text/plain":
                return _content(p)
        for p in msg.walk():
            if p.get_content_type() == "text/html":
                return _content(p)
        return ""
    return _content(msg)


def _content(part: EmailMessage) -> str:
    try:
        return part.get_content().strip()
    except LookupError:
        # Unknown charset
        payload = part.get_payload(decode=True) or b""
        return payload.decode("utf-8", errors="replace").strip()


def _sent_at(em: EmailMessage) -> Optional[datetime]:
    try:
        header = em.get("Date")
        return header.datetime if header is not None else None
    except (AttributeError, TypeError, ValueError):
        return None


def rfc822_to_raw_message(rfc822_bytes: bytes) -> Optional[RawMessage]:
    """Parse an RFC822 message. Returns None when it has no Message-ID."""
    em = BytesParser(policy=policy.default).parsebytes(rfc822_bytes)

    universal_id = normalize_message_id(em.get("Message-ID"))
    if universal_id is None:
        logger.warning(f"Skipping message without Message-ID: {(em.get('Subject') or '')[:50]}")
        return None

    sender_name, sender_address = parseaddr(str(em.get("From") or ""))
    recipients = getaddresses(
        [str(h) for h in (em.get_all("To") or [])] + [str(h) for h in (em.get_all("Cc") or [])]
    )

    return RawMessage(
        universal_id=universal_id,
        in_reply_to=normalize_message_id(em.get("In-Reply-To")),
        subject=str(em.get("Subject") or "").strip(),
        sender_address=sender_address.strip().lower(),
        sender_name=sender_name or None,
        recipients=tuple(addr.lower() for _, addr in recipients if addr),
        sent_at=_sent_at(em),
        text=_as_text(em),
    )

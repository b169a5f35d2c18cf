"""Header and body parsing for fetched messages."""

import email
import html
import re
from datetime import datetime
from email.header import decode_header, make_header
from email.message import Message
from email.utils import getaddresses, parsedate_to_datetime
from typing import Any, Dict, Optional

from rutt.utils.errors import MessageParseError
from rutt.utils.logging import get_logger

logger = get_logger(__name__)

NO_SUBJECT = "(no subject)"
UNKNOWN_SENDER = "(unknown)"
NO_BODY = "(No body content)"

_TAG_RE = re.compile(r"<[^>]+>")
_BLOCK_RE = re.compile(r"(?is)<(script|style)\b.*?</\1>")
_BREAK_RE = re.compile(r"(?i)<br\s*/?>|</p\s*>|</div\s*>|</tr\s*>")
_BLANK_RUN_RE = re.compile(r"\n{3,}")


class EmailParser:
    """Parse RFC 822 headers and bodies into the fields the list needs."""

    @staticmethod
    def decode_header_value(value: Optional[str]) -> str:
        """Decode an RFC 2047 encoded header into plain text."""
        if not value:
            return ""

        try:
            return str(make_header(decode_header(value))).strip()
        except (LookupError, UnicodeDecodeError, ValueError):
            # Unknown charset: keep whatever ASCII survived.
            return str(value).strip()

    @staticmethod
    def parse_date(value: Optional[str]) -> datetime:
        """Parse an RFC 2822 date to local time, falling back to now."""
        if value:
            try:
                # Naive dates are taken as local time.
                return parsedate_to_datetime(value).astimezone()
            except (TypeError, ValueError, IndexError):
                logger.debug(f"Unparsable Date header: {value!r}")
        return datetime.now().astimezone()

    @staticmethod
    def format_addresses(value: Optional[str]) -> Optional[str]:
        """Render an address header as ``Name <addr>, addr`` or None if empty."""
        decoded = EmailParser.decode_header_value(value)
        if not decoded:
            return None

        rendered = []
        for name, address in getaddresses([decoded]):
            if name and address:
                rendered.append(f"{name} <{address}>")
            elif address:
                rendered.append(address)
            elif name:
                rendered.append(name)

        return ", ".join(rendered) or None

    @staticmethod
    def parse_headers(raw_headers: bytes) -> Dict[str, Any]:
        """Parse a header block into summary fields.

        Returns a dict with ``subject``, ``sender``, ``to``, ``cc``, ``bcc`` and
        ``date`` keys. Missing subject and sender get display placeholders.
        """
        try:
            message = email.message_from_bytes(raw_headers)
        except (TypeError, ValueError) as e:
            raise MessageParseError("Failed to parse message headers") from e

        return {
            "subject": EmailParser.decode_header_value(message.get("Subject")) or NO_SUBJECT,
            "sender": EmailParser.format_addresses(message.get("From")) or UNKNOWN_SENDER,
            "to": EmailParser.format_addresses(message.get("To")),
            "cc": EmailParser.format_addresses(message.get("Cc")),
            "bcc": EmailParser.format_addresses(message.get("Bcc")),
            "date": EmailParser.parse_date(message.get("Date")),
        }

    @staticmethod
    def extract_body(raw_message: bytes) -> str:
        """Return the readable text of a full RFC 822 message.

        The first ``text/plain`` part that is not an attachment wins. Without
        one, the first ``text/html`` part is reduced to text.
        """
        try:
            message = email.message_from_bytes(raw_message)
        except (TypeError, ValueError) as e:
            raise MessageParseError("Failed to parse message body") from e

        html_fallback = None
        for part in message.walk():
            if part.is_multipart() or _is_attachment(part):
                continue

            content_type = part.get_content_type()
            if content_type == "text/plain":
                text = _decode_payload(part)
                if text is not None:
                    return text
            elif content_type == "text/html" and html_fallback is None:
                html_fallback = _decode_payload(part)

        if html_fallback:
            return EmailParser.strip_html(html_fallback)
        return NO_BODY

    @staticmethod
    def strip_html(markup: str) -> str:
        """Crude HTML to text: drop scripts and tags, keep line breaks."""
        text = _BLOCK_RE.sub("", markup)
        text = _BREAK_RE.sub("\n", text)
        text = html.unescape(_TAG_RE.sub("", text))
        lines = [line.rstrip() for line in text.splitlines()]
        return _BLANK_RUN_RE.sub("\n\n", "\n".join(lines)).strip() or NO_BODY


def _is_attachment(part: Message) -> bool:
    disposition = str(part.get("Content-Disposition", "")).lower()
    return "attachment" in disposition


def _decode_payload(part: Message) -> Optional[str]:
    payload = part.get_payload(decode=True)
    if payload is None:
        return None

    charset = part.get_content_charset() or "utf-8"
    try:
        return payload.decode(charset, errors="replace")
    except LookupError:
        return payload.decode("utf-8", errors="replace")


"""Message parsing and IMAP access.

Fetch the mailbox listing and bodies:
    >>> from rutt.core.email.imap import IMAPMailSource
    >>>
    >>> source = IMAPMailSource(config_manager)
    >>> records = await source.initial_records()
    >>> body = await source.fetch_detail(records[0].uid)

Parse a header block:
    >>> from rutt.core.email.parser import EmailParser
    >>>
    >>> fields = EmailParser.parse_headers(raw_headers)
    >>> print(fields["subject"])
"""

from .parser import EmailParser

__all__ = ["EmailParser"]

"""IMAP constants and configuration values."""


class IMAPResponse:
    """Standard IMAP response codes."""

    OK = "OK"
    NO = "NO"
    BAD = "BAD"


class Timeouts:
    """Timeout values for IMAP operations (in seconds)."""

    IMAP_CONNECT = 30.0
    IMAP_LOGIN = 30.0
    IMAP_EXAMINE = 10.0
    IMAP_FETCH = 30.0  # per FETCH command
    IMAP_NOOP = 5.0
    IMAP_LOGOUT = 5.0


class IMAPFlags:
    """Standard IMAP flags."""

    SEEN = "\\Seen"


# Only the headers the list and detail header block show.
HEADER_FIELDS = "DATE FROM TO CC BCC SUBJECT"
SUMMARY_FETCH = f"(UID FLAGS BODY.PEEK[HEADER.FIELDS ({HEADER_FIELDS})])"
BODY_FETCH = "(BODY.PEEK[])"

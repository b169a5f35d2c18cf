"""
Tests for header and body parsing

Tests cover:
- RFC 2047 header decoding
- RFC 2822 date parsing and fallback
- Address formatting
- Body extraction from plain, multipart and HTML messages
"""
from datetime import datetime, timedelta, timezone
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from rutt.core.email.parser import NO_BODY, NO_SUBJECT, UNKNOWN_SENDER, EmailParser
from .test_helpers import IMAPTestHelper


class TestHeaderDecoding:
    """Tests for header values"""

    def test_plain_header(self):
        assert EmailParser.decode_header_value("Hello") == "Hello"

    def test_encoded_word(self):
        assert EmailParser.decode_header_value("=?utf-8?b?SGVsbG8gd8O2cmxk?=") == "Hello wörld"

    def test_empty_header(self):
        assert EmailParser.decode_header_value(None) == ""

    def test_unknown_charset_falls_back(self):
        value = "=?x-unknown?q?abc?="
        assert EmailParser.decode_header_value(value) == value


class TestDateParsing:
    """Tests for Date headers"""

    def test_rfc2822_date(self):
        parsed = EmailParser.parse_date("Thu, 02 Oct 2025 10:30:00 +0200")
        assert parsed == datetime(2025, 10, 2, 8, 30, tzinfo=timezone.utc)
        assert parsed.tzinfo is not None

    def test_invalid_date_falls_back_to_now(self):
        parsed = EmailParser.parse_date("not a date")
        assert abs(datetime.now().astimezone() - parsed) < timedelta(minutes=1)

    def test_missing_date_falls_back_to_now(self):
        parsed = EmailParser.parse_date(None)
        assert abs(datetime.now().astimezone() - parsed) < timedelta(minutes=1)


class TestAddresses:
    """Tests for address formatting"""

    def test_name_and_address(self):
        assert EmailParser.format_addresses("Alice <alice@example.com>") == "Alice <alice@example.com>"

    def test_quoted_name(self):
        assert (
            EmailParser.format_addresses('"Smith, Bob" <bob@example.com>')
            == "Smith, Bob <bob@example.com>"
        )

    def test_multiple_addresses(self):
        value = "a@example.com, Bee <b@example.com>"
        assert EmailParser.format_addresses(value) == "a@example.com, Bee <b@example.com>"

    def test_empty(self):
        assert EmailParser.format_addresses("") is None


class TestParseHeaders:
    """Tests for summary header blocks"""

    def test_full_block(self):
        raw = IMAPTestHelper.header_block(subject="Status", cc="c@example.com")
        fields = EmailParser.parse_headers(raw)

        assert fields["subject"] == "Status"
        assert fields["sender"] == "Alice <alice@example.com>"
        assert fields["cc"] == "c@example.com"
        assert fields["to"] is None
        assert fields["date"] == datetime(2025, 10, 2, 10, 30, tzinfo=timezone.utc)

    def test_missing_subject_and_sender(self):
        fields = EmailParser.parse_headers(b"Date: Thu, 02 Oct 2025 10:30:00 +0000\r\n\r\n")
        assert fields["subject"] == NO_SUBJECT
        assert fields["sender"] == UNKNOWN_SENDER


class TestBodyExtraction:
    """Tests for readable body text"""

    def test_plain_message(self):
        message = MIMEText("Hello there", "plain", "utf-8")
        assert EmailParser.extract_body(message.as_bytes()) == "Hello there"

    def test_multipart_prefers_plain(self):
        message = MIMEMultipart("alternative")
        message.attach(MIMEText("<p>Rich</p>", "html"))
        message.attach(MIMEText("Plain", "plain"))
        assert EmailParser.extract_body(message.as_bytes()) == "Plain"

    def test_html_only_is_stripped(self):
        html = "<html><style>p {}</style><body><p>One &amp; two</p><p>Three<br>Four</p></body></html>"
        message = MIMEText(html, "html")
        assert EmailParser.extract_body(message.as_bytes()) == "One & two\nThree\nFour"

    def test_text_attachment_skipped(self):
        message = MIMEMultipart()
        attachment = MIMEText("attached notes", "plain")
        attachment.add_header("Content-Disposition", "attachment", filename="notes.txt")
        message.attach(attachment)
        message.attach(MIMEText("Actual body", "plain"))
        assert EmailParser.extract_body(message.as_bytes()) == "Actual body"

    def test_no_text_part(self):
        message = MIMEMultipart()
        message.attach(MIMEApplication(b"\x00\x01", Name="blob.bin"))
        assert EmailParser.extract_body(message.as_bytes()) == NO_BODY

    def test_undecodable_bytes_are_replaced(self):
        raw = (
            b"Content-Type: text/plain; charset=utf-8\r\n"
            b"Content-Transfer-Encoding: 8bit\r\n\r\n"
            b"caf\xff"
        )
        assert EmailParser.extract_body(raw) == "caf�"

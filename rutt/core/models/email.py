"""Email domain models"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


## Detail State


@dataclass(frozen=True)
class NotFetched:
    """The message body has not been requested yet."""


@dataclass(frozen=True)
class Fetching:
    """A body request is in flight."""

    request_id: int


@dataclass(frozen=True)
class Fetched:
    """The message body has been retrieved. Terminal state."""

    body: str


@dataclass(frozen=True)
class Unavailable:
    """The last body request failed; the next visit asks again."""

    reason: str


DetailState = NotFetched | Fetching | Fetched | Unavailable


@dataclass
class Email:
    """One message header in the mailbox listing.

    Summary fields are fixed once the mail source produces the record. Only
    ``detail`` moves, through :meth:`mark_fetching`, :meth:`set_body`,
    :meth:`set_unavailable` and :meth:`cancel_fetch`.
    """

    uid: int
    subject: str
    sender: str
    date: datetime
    is_read: bool = False
    to: Optional[str] = None
    cc: Optional[str] = None
    bcc: Optional[str] = None
    detail: DetailState = field(default_factory=NotFetched)

    @property
    def body(self) -> Optional[str]:
        """The fetched body, or None until it arrives."""
        if isinstance(self.detail, Fetched):
            return self.detail.body
        return None

    @property
    def needs_fetch(self) -> bool:
        """Whether opening this record should request its body."""
        return isinstance(self.detail, (NotFetched, Unavailable))

    def mark_fetching(self, request_id: int) -> None:
        if isinstance(self.detail, Fetched):
            raise ValueError(f"Body for message {self.uid} is already fetched")
        self.detail = Fetching(request_id)

    def is_fetching(self, request_id: int) -> bool:
        return self.detail == Fetching(request_id)

    def set_body(self, body: str) -> None:
        """Store the fetched body. Only the first body sticks."""
        if not isinstance(self.detail, Fetched):
            self.detail = Fetched(body)

    def set_unavailable(self, reason: str) -> None:
        if not isinstance(self.detail, Fetched):
            self.detail = Unavailable(reason)

    def cancel_fetch(self) -> None:
        """Forget an in-flight request so the next visit starts a new one."""
        if isinstance(self.detail, Fetching):
            self.detail = NotFetched()

"""Mail sources: where the record list and message bodies come from."""

import asyncio
import random
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Protocol, runtime_checkable

from rutt.core.models.email import Email
from rutt.utils.errors import FetchError
from rutt.utils.logging import get_logger

logger = get_logger(__name__)


@runtime_checkable
class MailSource(Protocol):
    """Supplies the initial record list and, on demand, message bodies.

    ``fetch_detail`` raises a :class:`~rutt.utils.errors.RuttError` (usually
    :class:`~rutt.utils.errors.FetchError`) when the body cannot be produced.
    """

    async def initial_records(self) -> List[Email]: ...

    async def fetch_detail(self, uid: int) -> str: ...

    async def close(self) -> None: ...


_SENDERS = [
    "Alice Martin <alice@example.com>",
    "Bob Stone <bob@example.org>",
    "GitHub <noreply@github.com>",
    "Carol Diaz <carol@example.net>",
    "Newsletter <news@example.com>",
    "dave@example.com",
]

_SUBJECTS = [
    "Project update",
    "Lunch tomorrow?",
    "Your receipt",
    "Re: Meeting notes",
    "[rutt] New issue opened",
    "Weekly digest",
    "Invoice for October",
    "Quick question about the release",
]

_BODY_LINES = [
    "Hi,",
    "Quick update: milestones are on track and we review next steps on Monday.",
    "Let me know if the attached numbers look right to you.",
    "Thanks for sending over the notes.",
    "The build is green again after the last fix.",
    "Talk soon,",
]


class DemoMailSource:
    """Offline mail source producing a deterministic mailbox.

    Useful for trying the interface without an IMAP account. Bodies are
    produced after ``latency`` seconds; UIDs listed in ``fail_uids`` fail with
    :class:`FetchError` so the unavailable placeholder can be exercised.
    """

    def __init__(
        self,
        count: int = 200,
        seed: int = 0,
        latency: float = 0.0,
        fail_uids: Optional[Iterable[int]] = None,
    ):
        self.count = max(0, count)
        self.seed = seed
        self.latency = latency
        self.fail_uids = set(fail_uids or ())
        self.fetch_calls: List[int] = []

    async def initial_records(self) -> List[Email]:
        rng = random.Random(self.seed)
        now = datetime.now(timezone.utc).replace(microsecond=0)
        records = []

        for uid in range(1, self.count + 1):
            records.append(
                Email(
                    uid=uid,
                    subject=f"{rng.choice(_SUBJECTS)} #{uid}",
                    sender=rng.choice(_SENDERS),
                    to="you@example.com",
                    cc="team@example.com" if uid % 7 == 0 else None,
                    date=now - timedelta(hours=(self.count - uid) * 3),
                    is_read=rng.random() < 0.6,
                )
            )

        records.sort(key=lambda email: email.date, reverse=True)
        logger.debug(f"Generated {len(records)} demo records")
        return records

    async def fetch_detail(self, uid: int) -> str:
        self.fetch_calls.append(uid)
        if self.latency:
            await asyncio.sleep(self.latency)

        if uid in self.fail_uids:
            raise FetchError(f"Demo fetch failed for message {uid}", details={"uid": uid})

        rng = random.Random(self.seed * 100_003 + uid)
        paragraphs = rng.randint(3, 12)
        return "\n\n".join(rng.choice(_BODY_LINES) for _ in range(paragraphs))

    async def close(self) -> None:
        return None

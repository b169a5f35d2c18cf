"""
Tests for the Textual interface

Tests cover:
- Key handling in list and detail mode
- Background body loading and failure placeholders
- Cancelling an in-flight fetch when leaving a message
- Resizing the list to the pane height
- Keeping one screen line per record in a narrow pane
"""
from datetime import timedelta

import pytest

from rutt.core.mail_source import DemoMailSource
from rutt.core.models.email import Fetched, NotFetched, Unavailable
from rutt.core.navigation import DetailMode, ListMode
from rutt.tui import RuttApp
from rutt.utils.errors import FetchError
from .test_helpers import EmailTestHelper, FakeMailSource


async def settle(app, pilot):
    await pilot.pause()
    await app.workers.wait_for_complete()
    await pilot.pause()


class TestListNavigation:
    """Tests for moving through the mailbox"""

    @pytest.mark.asyncio
    async def test_list_height_follows_pane(self, test_emails, fake_source):
        app = RuttApp(test_emails, fake_source)
        async with app.run_test(size=(100, 20)) as pilot:
            await pilot.pause()
            assert app.controller.list.visible_height == app.mail_view.content_size.height

    @pytest.mark.asyncio
    async def test_move_down_and_up(self, test_emails, fake_source):
        app = RuttApp(test_emails, fake_source)
        async with app.run_test() as pilot:
            await pilot.press("j", "j", "down", "k")
            assert app.controller.list.selected == 2

    @pytest.mark.asyncio
    async def test_page_bottom_uppercase(self, test_emails, fake_source):
        app = RuttApp(test_emails, fake_source)
        async with app.run_test(size=(100, 20)) as pilot:
            await pilot.pause()
            await pilot.press("L")
            viewport = app.controller.list
            assert viewport.selected == viewport.scroll_offset + viewport.visible_height - 1

    @pytest.mark.asyncio
    async def test_cursor_on_screen_with_long_subjects(self):
        records = [
            EmailTestHelper.create_email(
                uid=40 - i,
                subject=f"ROW{i:02d} " + "x" * 85,
                date=EmailTestHelper.BASE_DATE - timedelta(hours=i),
            )
            for i in range(40)
        ]
        app = RuttApp(records, FakeMailSource(records))
        async with app.run_test(size=(80, 24)) as pilot:
            await pilot.pause()
            await pilot.press("L")
            await pilot.pause()

            viewport = app.controller.list
            height = app.mail_view.content_size.height
            screen = [app.mail_view.render_line(y).text for y in range(height)]
            rows = [line for line in screen if line.strip()]
            cursor = [line for line in rows if line.startswith("> ")]

            assert viewport.visible_height == height
            assert len(rows) == viewport.visible_height
            assert len(cursor) == 1
            assert f"ROW{viewport.selected:02d}" in cursor[0]

    @pytest.mark.asyncio
    async def test_unbound_key_ignored(self, test_emails, fake_source):
        app = RuttApp(test_emails, fake_source)
        async with app.run_test() as pilot:
            await pilot.press("x")
            assert app.controller.list.selected == 0
            assert app.controller.running

    @pytest.mark.asyncio
    async def test_quit(self, test_emails, fake_source):
        app = RuttApp(test_emails, fake_source)
        async with app.run_test() as pilot:
            await pilot.press("q")
        assert app.controller.running is False
        assert app.return_code == 0

    @pytest.mark.asyncio
    async def test_empty_mailbox(self):
        app = RuttApp([], FakeMailSource())
        async with app.run_test() as pilot:
            await pilot.press("j", "enter")
            assert app.controller.mode == ListMode()
            assert app.controller.list.selected is None


class TestDetailView:
    """Tests for opening messages"""

    @pytest.mark.asyncio
    async def test_enter_loads_body(self, test_emails, fake_source):
        app = RuttApp(test_emails, fake_source)
        async with app.run_test() as pilot:
            await pilot.press("j", "enter")
            await settle(app, pilot)

            assert app.controller.mode == DetailMode(1)
            assert fake_source.fetch_calls == [test_emails[1].uid]
            assert test_emails[1].detail == Fetched(f"Body of message {test_emails[1].uid}")

    @pytest.mark.asyncio
    async def test_body_fetched_once(self, test_emails, fake_source):
        app = RuttApp(test_emails, fake_source)
        async with app.run_test() as pilot:
            await pilot.press("enter")
            await settle(app, pilot)
            await pilot.press("escape", "enter")
            await settle(app, pilot)

            assert fake_source.fetch_calls == [test_emails[0].uid]

    @pytest.mark.asyncio
    async def test_escape_returns_to_list(self, test_emails, fake_source):
        app = RuttApp(test_emails, fake_source)
        async with app.run_test() as pilot:
            await pilot.press("j", "j", "enter")
            await settle(app, pilot)
            await pilot.press("escape")

            assert app.controller.mode == ListMode()
            assert app.controller.list.selected == 2
            assert app.controller.running

    @pytest.mark.asyncio
    async def test_failed_fetch_shows_placeholder(self, test_emails):
        uid = test_emails[0].uid
        source = FakeMailSource(records=test_emails, errors={uid: FetchError("server said no")})
        app = RuttApp(test_emails, source)
        async with app.run_test() as pilot:
            await pilot.press("enter")
            await settle(app, pilot)

            assert test_emails[0].detail == Unavailable("server said no")

    @pytest.mark.asyncio
    async def test_leaving_cancels_fetch(self, test_emails):
        source = DemoMailSource(latency=30)
        app = RuttApp(test_emails, source)
        async with app.run_test() as pilot:
            await pilot.press("enter")
            await pilot.pause()
            await pilot.press("q")
            await settle(app, pilot)

            assert app.controller.mode == ListMode()
            assert test_emails[0].detail == NotFetched()
            assert app.controller.running

    @pytest.mark.asyncio
    async def test_scroll_long_body(self, test_emails):
        uid = test_emails[0].uid
        source = FakeMailSource(
            records=test_emails,
            bodies={uid: "\n".join(f"line {i}" for i in range(200))},
        )
        app = RuttApp(test_emails, source)
        async with app.run_test() as pilot:
            await pilot.press("enter")
            await settle(app, pilot)
            await pilot.press("j", "j", "j", "k")

            assert app.controller.detail.offset == 2

    @pytest.mark.asyncio
    async def test_scroll_stops_at_end(self, test_emails, fake_source):
        app = RuttApp(test_emails, fake_source)
        async with app.run_test() as pilot:
            await pilot.press("enter")
            await settle(app, pilot)
            await pilot.press(*["j"] * 50)

            assert app.controller.detail.offset == 0

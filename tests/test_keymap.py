"""
Tests for key bindings
"""
import pytest

from rutt.core.navigation import Command, DetailMode, ListMode
from rutt.tui.keymap import DETAIL_KEYMAP, LIST_KEYMAP, command_for


class TestListKeys:
    """Tests for list-mode bindings"""

    @pytest.mark.parametrize(
        "key,command",
        [
            ("j", Command.NEXT),
            ("down", Command.NEXT),
            ("ctrl+n", Command.NEXT),
            ("k", Command.PREVIOUS),
            ("up", Command.PREVIOUS),
            ("ctrl+p", Command.PREVIOUS),
            ("ctrl+f", Command.PAGE_FORWARD),
            ("ctrl+b", Command.PAGE_BACKWARD),
            ("ctrl+d", Command.HALF_PAGE_FORWARD),
            ("ctrl+u", Command.HALF_PAGE_BACKWARD),
            ("ctrl+e", Command.LINE_FORWARD),
            ("ctrl+y", Command.LINE_BACKWARD),
            ("H", Command.PAGE_TOP),
            ("M", Command.PAGE_MIDDLE),
            ("L", Command.PAGE_BOTTOM),
            ("enter", Command.ENTER_DETAIL),
            ("q", Command.QUIT),
            ("escape", Command.QUIT),
        ],
    )
    def test_binding(self, key, command):
        assert command_for(ListMode(), key) is command

    def test_shifted_letter_matched_by_character(self):
        assert command_for(ListMode(), "shift+h", "H") is Command.PAGE_TOP

    def test_lowercase_h_is_unbound(self):
        assert command_for(ListMode(), "h", "h") is None

    def test_unknown_key(self):
        assert command_for(ListMode(), "x", "x") is None


class TestDetailKeys:
    """Tests for detail-mode bindings"""

    @pytest.mark.parametrize("key", ["j", "down", "ctrl+n", "ctrl+e"])
    def test_scroll_down(self, key):
        assert command_for(DetailMode(0), key) is Command.SCROLL_DOWN

    @pytest.mark.parametrize("key", ["k", "up", "ctrl+p", "ctrl+y"])
    def test_scroll_up(self, key):
        assert command_for(DetailMode(3), key) is Command.SCROLL_UP

    @pytest.mark.parametrize("key", ["q", "escape", "backspace"])
    def test_back_to_list(self, key):
        assert command_for(DetailMode(0), key) is Command.EXIT_DETAIL

    def test_list_motions_unbound(self):
        assert command_for(DetailMode(0), "enter") is None
        assert command_for(DetailMode(0), "ctrl+f") is None

    def test_keymaps_do_not_share_quit(self):
        assert Command.QUIT not in DETAIL_KEYMAP.values()
        assert Command.EXIT_DETAIL not in LIST_KEYMAP.values()

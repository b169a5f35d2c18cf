"""Key bindings for each view mode, using Textual key names."""

from typing import Dict, Optional, assert_never

from rutt.core.navigation import Command, DetailMode, ListMode, ViewMode

LIST_KEYMAP: Dict[str, Command] = {
    "j": Command.NEXT,
    "down": Command.NEXT,
    "ctrl+n": Command.NEXT,
    "k": Command.PREVIOUS,
    "up": Command.PREVIOUS,
    "ctrl+p": Command.PREVIOUS,
    "ctrl+f": Command.PAGE_FORWARD,
    "ctrl+b": Command.PAGE_BACKWARD,
    "ctrl+d": Command.HALF_PAGE_FORWARD,
    "ctrl+u": Command.HALF_PAGE_BACKWARD,
    "ctrl+e": Command.LINE_FORWARD,
    "ctrl+y": Command.LINE_BACKWARD,
    "H": Command.PAGE_TOP,
    "M": Command.PAGE_MIDDLE,
    "L": Command.PAGE_BOTTOM,
    "enter": Command.ENTER_DETAIL,
    "q": Command.QUIT,
    "escape": Command.QUIT,
}

DETAIL_KEYMAP: Dict[str, Command] = {
    "j": Command.SCROLL_DOWN,
    "down": Command.SCROLL_DOWN,
    "ctrl+n": Command.SCROLL_DOWN,
    "ctrl+e": Command.SCROLL_DOWN,
    "k": Command.SCROLL_UP,
    "up": Command.SCROLL_UP,
    "ctrl+p": Command.SCROLL_UP,
    "ctrl+y": Command.SCROLL_UP,
    "q": Command.EXIT_DETAIL,
    "escape": Command.EXIT_DETAIL,
    "backspace": Command.EXIT_DETAIL,
}


def keymap_for(mode: ViewMode) -> Dict[str, Command]:
    match mode:
        case ListMode():
            return LIST_KEYMAP
        case DetailMode():
            return DETAIL_KEYMAP
        case _:
            assert_never(mode)


def command_for(mode: ViewMode, key: str, character: Optional[str] = None) -> Optional[Command]:
    """Look up the command bound to ``key`` in ``mode``.

    Shifted letters are reported differently across terminals, so the
    printable ``character`` is tried when the key name has no binding.
    """
    keymap = keymap_for(mode)
    command = keymap.get(key)
    if command is None and character and character.isupper():
        command = keymap.get(character)
    return command

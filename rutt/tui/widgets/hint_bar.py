from rich.text import Text
from textual.widgets import Static


class HintBar(Static):
    """Displays the keyboard shortcuts for the current mode."""

    def __init__(self):
        super().__init__("", id="hint-bar")

    def show_hints(self, hints: Text) -> None:
        self.update(hints)

from textual import events
from textual.message import Message
from textual.widgets import Static


class MailView(Static):
    """The main pane: either the mailbox list or the open message."""

    class Resized(Message):
        """Posted whenever the pane changes size."""

        def __init__(self, width: int, height: int):
            super().__init__()
            self.width = width
            self.height = height

    def __init__(self):
        super().__init__("", id="mail-view")

    def on_resize(self, event: events.Resize) -> None:
        size = self.content_size
        self.post_message(self.Resized(size.width, size.height))

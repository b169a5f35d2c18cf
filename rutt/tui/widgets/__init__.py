from .hint_bar import HintBar
from .mail_view import MailView

__all__ = ["HintBar", "MailView"]

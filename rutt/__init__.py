"""rutt - a terminal mailbox browser with vim-style navigation."""

__version__ = "0.1.0"

from .email import DetailState, Email, Fetched, Fetching, NotFetched, Unavailable

__all__ = ["DetailState", "Email", "Fetched", "Fetching", "NotFetched", "Unavailable"]

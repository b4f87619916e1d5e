"""Network clients for the assistant service."""

from .talk_client import ReplyPayload, TalkClient, TalkClientConfig

__all__ = ["ReplyPayload", "TalkClient", "TalkClientConfig"]

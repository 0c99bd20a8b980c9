from .bot import feed_update, get_bot, get_dispatcher
from .handlers import router

__all__ = [
    "feed_update",
    "get_bot",
    "get_dispatcher",
    "router",
]

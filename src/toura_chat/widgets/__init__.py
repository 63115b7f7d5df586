"""Widget exports for the Toura chat UI."""

from .activity_bar import ActivityBar
from .compose_bar import ComposeBar
from .conversation import ConversationView
from .message import MessageBubble, MessageRow, bubble_text
from .style import BubbleStyle

__all__ = [
    "ActivityBar",
    "BubbleStyle",
    "ComposeBar",
    "ConversationView",
    "MessageBubble",
    "MessageRow",
    "bubble_text",
]

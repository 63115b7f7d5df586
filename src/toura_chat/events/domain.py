"""Names of the events the chat session publishes."""

from __future__ import annotations

# data: {"message": Message, "index": int}
MESSAGE_APPENDED = "session.message.appended"

# data: {"messages": tuple[Message, ...]}
MESSAGES_REFRESH = "session.messages.refresh"

# data: {"previous": SessionState, "current": SessionState}
STATE_CHANGED = "session.state.changed"

# data: {"error": Exception}
REPLY_FAILED = "session.reply.failed"

# data: {"message": Message, "kept": bool}
SUBMISSION_REJECTED = "session.submission.rejected"

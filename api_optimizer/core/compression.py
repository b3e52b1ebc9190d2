"""
Prompt compression.

Pure transform over a message list. Not part of the default pipeline; only
applied when a caller asks for it.
"""

from typing import List, Optional, Sequence

from .request import Message

MAX_SYSTEM_LENGTH = 1000
TRUNCATION_MARKER = "... [truncated]"


def compress_prompt(messages: Sequence[Message]) -> List[Message]:
    """Compress a message list.

    - Drops a message whose content equals the previous message's content
    - Truncates system messages longer than 1000 characters

    Order and all other messages are preserved.

    Args:
        messages: Messages to compress

    Returns:
        New list of messages
    """
    compressed: List[Message] = []
    previous_content: Optional[str] = None
    first = True

    for message in messages:
        if not first and message.content == previous_content:
            continue
        first = False
        previous_content = message.content

        content = message.content or ""
        if message.role == "system" and len(content) > MAX_SYSTEM_LENGTH:
            compressed.append(Message(
                role=message.role,
                content=content[:MAX_SYSTEM_LENGTH] + TRUNCATION_MARKER
            ))
        else:
            compressed.append(message)

    return compressed

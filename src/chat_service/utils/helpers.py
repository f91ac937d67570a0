"""
Helper functions for the chat_service.
"""


def to_camel(string: str) -> str:
    """
    Convert a snake_case string to camelCase.

    Example:
        >>> to_camel("last_message_at")
        'lastMessageAt'
    """
    first, *others = string.split("_")
    return first + "".join(word.capitalize() for word in others)


def flatten_history(messages) -> str:
    """Render turns as "role: content" lines, oldest first."""
    return "\n".join(f"{m.role}: {m.content}" for m in messages)

"""Conversational chat service: conversations, message history and LLM replies."""

__version__ = "0.1.0"

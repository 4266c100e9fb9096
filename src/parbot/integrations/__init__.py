"""Conversation backend integrations."""

from parbot.integrations.republic_client import LLMConversation, LLMSession, build_llm

__all__ = ["LLMConversation", "LLMSession", "build_llm"]

"""
LLM layer -- provider-agnostic client plus the accessibility assistant built on it.

Supports Anthropic (Claude), OpenAI (GPT), and Google (Gemini).

Usage:
    from .llm import create_assistant

    assistant = create_assistant()  # None when no API key is configured
    text = await assistant.explain_issue(violation)
"""

from .client import LLMCallError, LLMClient, LLMResponse, Prompt, create_client
from .assistant import AccessibilityAssistant, create_assistant

"""LLM providers.

Concrete providers import their vendor SDKs; import them explicitly:
    from transbot.services.llm.gemini import GeminiProvider
"""

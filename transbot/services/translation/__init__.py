"""Translation pipeline services.

Imports are intentionally NOT eagerly loaded here to avoid pulling in heavy
third-party SDKs during test collection. Use explicit imports:
    from transbot.services.translation.orchestrator import TranslationOrchestrator
"""

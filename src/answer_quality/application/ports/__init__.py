"""Application ports (interfaces) used by the application layer."""

from .answer_store_port import AnswerStore, MetadataStore, ScoreStore, ValidationResultStore
from .provider_port import GenerationOptions, ProviderClient, ProviderCompletion

__all__ = [
    "AnswerStore",
    "MetadataStore",
    "ScoreStore",
    "ValidationResultStore",
    "GenerationOptions",
    "ProviderClient",
    "ProviderCompletion",
]

"""ProviderClient: text generation capability consumed by the generator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, runtime_checkable


@dataclass
class GenerationOptions:
    provider: str
    max_tokens: int
    temperature: float


@dataclass
class ProviderCompletion:
    text: str
    provider: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class ProviderClient(Protocol):
    """Opaque text-generation backend.

    Implementations own transport, retries and timeouts; errors raised here
    surface to the caller as generation failures.
    """

    def complete(self, prompt: str, options: GenerationOptions) -> ProviderCompletion: ...

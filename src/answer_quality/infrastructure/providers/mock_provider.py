"""Offline provider used by the CLI and tests; no network access."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from answer_quality.application.ports import GenerationOptions, ProviderCompletion


class MockProviderClient:
    """Deterministic stand-in for a text-generation backend.

    Returns a templated answer for the query unless canned ``responses`` are
    given, in which case they are served in order and the last one repeats.
    Every call is recorded in ``calls`` for inspection.
    """

    def __init__(
        self,
        responses: Optional[Sequence[str]] = None,
        *,
        model: str = "mock-model",
        citations: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        self._responses = list(responses or [])
        self.model = model
        self.citations = (
            list(citations)
            if citations is not None
            else [
                {
                    "source": "Mock Source 1",
                    "text": "This is a mock citation",
                    "url": "https://example.com/source1",
                    "authority": 0.8,
                }
            ]
        )
        self.calls: List[Dict[str, Any]] = []

    def complete(self, prompt: str, options: GenerationOptions) -> ProviderCompletion:
        self.calls.append(
            {
                "prompt": prompt,
                "provider": options.provider,
                "max_tokens": options.max_tokens,
                "temperature": options.temperature,
            }
        )
        text = self._next_response(prompt)
        return ProviderCompletion(
            text=text,
            provider=options.provider,
            metadata={
                "model": self.model,
                "tokens": max(1, len(text.split())),
                "temperature": options.temperature,
                "citations": [dict(c) for c in self.citations],
            },
        )

    def _next_response(self, prompt: str) -> str:
        if not self._responses:
            return f'This is a mock answer for the query: "{prompt}"'
        index = min(len(self.calls) - 1, len(self._responses) - 1)
        return self._responses[index]

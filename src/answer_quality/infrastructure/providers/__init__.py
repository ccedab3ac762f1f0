from answer_quality.infrastructure.providers.mock_provider import MockProviderClient

__all__ = ["MockProviderClient"]

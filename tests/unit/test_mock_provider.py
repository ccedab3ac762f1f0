from answer_quality.application.ports import GenerationOptions, ProviderClient
from answer_quality.infrastructure.providers import MockProviderClient


def _options(temperature=0.7):
    return GenerationOptions(provider="mock", max_tokens=100, temperature=temperature)


def test_mock_provider_templates_answer_and_records_calls():
    provider = MockProviderClient()

    completion = provider.complete("What is DNA?", _options(0.3))

    assert isinstance(provider, ProviderClient)
    assert completion.text == 'This is a mock answer for the query: "What is DNA?"'
    assert completion.provider == "mock"
    assert completion.metadata["temperature"] == 0.3
    assert completion.metadata["citations"][0]["url"] == "https://example.com/source1"
    assert provider.calls == [{"prompt": "What is DNA?", "provider": "mock", "max_tokens": 100, "temperature": 0.3}]


def test_mock_provider_serves_canned_responses_and_repeats_last():
    provider = MockProviderClient(["first", "second"], citations=[])

    texts = [provider.complete("q", _options()).text for _ in range(3)]

    assert texts == ["first", "second", "second"]
    assert provider.complete("q", _options()).metadata["citations"] == []

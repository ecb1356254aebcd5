import pytest
from pydantic import ValidationError

from utils.config import Settings


def test_defaults_match_observed_lookup_cap() -> None:
    settings = Settings()

    assert settings.ENRICH_CONCURRENCY_LIMIT == 10
    assert settings.ENRICH_REFETCH_EXISTING is False
    assert settings.LINK_SERVICE_TIMEOUT > 0


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("ENRICH_CONCURRENCY_LIMIT", "3")
    monkeypatch.setenv("ENRICH_REFETCH_EXISTING", "true")
    monkeypatch.setenv("LINK_SERVICE_BASE_URL", "http://links.internal")

    settings = Settings()

    assert settings.ENRICH_CONCURRENCY_LIMIT == 3
    assert settings.ENRICH_REFETCH_EXISTING is True
    assert settings.LINK_SERVICE_BASE_URL == "http://links.internal"


@pytest.mark.parametrize(
    "overrides",
    [{"ENRICH_CONCURRENCY_LIMIT": 0}, {"ENRICH_DEADLINE_SECONDS": 0}, {"LINK_SERVICE_TIMEOUT": -1}],
)
def test_invalid_values_are_rejected(overrides: dict) -> None:
    with pytest.raises(ValidationError):
        Settings(**overrides)

"""Shared fixtures for the İşletme Bulucu test suite.

Provides an isolated local store, sample businesses and a scripted fake
LLM provider that streams canned NDJSON chunks.
"""

from typing import Any, Dict, Iterator, List, Optional, Union

import pytest

from core.providers.base import LLMConfig, LLMProvider, LLMResponse
from core.storage import LocalStore
from src.config.locations import LocationCatalog, get_catalog
from src.config.models import Business, SearchCriteria


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------

API_KEY_VARS = ["GOOGLE_API_KEY", "API_KEY", "ANTHROPIC_API_KEY", "OPENAI_API_KEY"]


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point the default store at tmp_path and hide real API keys."""
    monkeypatch.setenv("ISLETME_BULUCU_HOME", str(tmp_path / "home"))
    monkeypatch.delenv("ISLETME_BULUCU_LOCATIONS", raising=False)
    for var in API_KEY_VARS:
        monkeypatch.delenv(var, raising=False)
    get_catalog.cache_clear()
    yield
    get_catalog.cache_clear()


@pytest.fixture
def store(tmp_path):
    """Return a LocalStore backed by a file in tmp_path."""
    return LocalStore(tmp_path / "storage.json")


@pytest.fixture
def catalog():
    """Return the built-in location catalog."""
    return LocationCatalog.builtin()


# ---------------------------------------------------------------------------
# Criteria / business fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def moda_cafe_criteria():
    """Single neighborhood, single sub-category: exactly one task."""
    return SearchCriteria(
        province="istanbul",
        district="kadikoy",
        neighborhood="moda",
        main_category="yeme-icme",
        sub_category="kafe",
    )


@pytest.fixture
def sample_businesses():
    """Return a list of sample Business instances."""
    return [
        Business(
            business_name="Moda Kahve Evi",
            main_category="Yeme & İçme",
            sub_category="Kafe",
            phone="0216 123 45 67",
            district="Kadıköy",
            neighborhood="Caferağa (Moda)",
            address="Moda Cad. No:12",
            google_rating=4.6,
            google_maps_link="https://maps.google.com/?cid=111",
            google_place_id="ChIJ111",
            coordinates="40.98,29.02",
        ),
        Business(
            business_name="Sahil Fırını",
            main_category="Yeme & İçme",
            sub_category="Fırın",
            district="Kadıköy",
            neighborhood="Caferağa (Moda)",
            address="Bahariye Cad. No:3",
            google_maps_link="https://maps.google.com/?cid=222",
        ),
    ]


# ---------------------------------------------------------------------------
# Fake provider
# ---------------------------------------------------------------------------

Script = Union[List[str], Exception]


class FakeProvider(LLMProvider):
    """Streams scripted chunks; one script entry per ``stream_text`` call.

    A script entry that is an exception is raised instead of streaming.
    """

    provider_name = "fake"
    default_model = "fake-model"

    def __init__(self, scripts: List[Script]):
        self.scripts = list(scripts)
        self.calls: List[Dict[str, Any]] = []

    def generate_json(self, system_prompt, user_prompt, *, config=None, schema_hint=None):
        return LLMResponse(raw_text="[]", parsed_json=[], provider=self.provider_name)

    def stream_text(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        config: Optional[LLMConfig] = None,
    ) -> Iterator[str]:
        self.calls.append({"system": system_prompt, "user": user_prompt, "config": config})
        script = self.scripts.pop(0) if self.scripts else []
        if isinstance(script, Exception):
            raise script
        for chunk in script:
            yield chunk


@pytest.fixture
def make_provider():
    """Factory fixture: ``make_provider([chunks, error, ...])``."""
    return FakeProvider

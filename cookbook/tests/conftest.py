from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest

from cookbook.catalog.models import LoadedCatalog, Recipe
from cookbook.catalog.taxonomy import extract_taxonomy
from cookbook.config import AppConfig
from cookbook.context import build_context
from cookbook.engagement.storage import MemoryStore

# Mid-June: outside every seasonal window
START = datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)


class ManualHandle:
    def __init__(self, when: datetime, seq: int, callback: Callable[[], None]) -> None:
        self.when = when
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Deterministic scheduler: time only moves when a test calls ``advance``."""

    def __init__(self, start: datetime = START) -> None:
        self.current = start
        self._queue: list[ManualHandle] = []
        self._seq = 0

    def now(self) -> datetime:
        return self.current

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle(self.current + timedelta(seconds=delay), self._seq, callback)
        self._seq += 1
        self._queue.append(handle)
        return handle

    def pending(self) -> list[ManualHandle]:
        return [h for h in self._queue if not h.cancelled]

    def advance(self, seconds: float = 0.0) -> None:
        target = self.current + timedelta(seconds=seconds)
        while True:
            due = [h for h in self._queue if not h.cancelled and h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: (h.when, h.seq))
            self._queue.remove(handle)
            self.current = max(self.current, handle.when)
            handle.callback()
        self.current = target
        self._queue = [h for h in self._queue if not h.cancelled]

    def run_pending(self) -> None:
        """Run everything due now (the "next tick")."""
        self.advance(0)


def make_recipe(recipe_id: str, title: str, **fields) -> Recipe:
    return Recipe.model_validate({"id": recipe_id, "title": title, **fields})


SAMPLE_RECIPES = [
    make_recipe(
        "a1", "Sjokoladekake",
        category="Kaker", meal="Dessert", cuisine="Norsk", pageNumber=5,
        ingredients=["200 g sjokolade", "3 egg"],
    ),
    make_recipe(
        "a2", "Eplekake",
        category="Kaker", meal="Dessert", cuisine="Norsk", pageNumber=2,
        ingredients=[{"title": "Bunn", "items": ["200 g mel", "4 epler"]}],
    ),
    make_recipe(
        "b1", "Fiskesuppe",
        category="Supper", meal="Middag", cuisine="Norsk", pageNumber=8,
        ingredients=["500 g torsk", "3 dl fløte"],
    ),
    make_recipe(
        "b2", "Pasta carbonara",
        category="Pasta", meal="Middag", cuisine="Italiensk",
        ingredients=["400 g spaghetti", "2 egg", "bacon"],
    ),
    make_recipe(
        "c1", "Pepperkaker",
        category="Julekaker", meal="Dessert", cuisine="Norsk", pageNumber=1,
        ingredients=["250 g smør", "ingefær"],
    ),
    make_recipe(
        "d1", "Partering av lam",
        category="Slakteveiledning", pageNumber=30,
    ),
]


def make_catalog(recipes: list[Recipe], language: str = "no") -> LoadedCatalog:
    return LoadedCatalog(
        language=language,
        ui_text={"title": "Kokebok"},
        recipes=recipes,
        taxonomy=extract_taxonomy(recipes),
    )


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(collation_locale="", default_language="no", supported_languages=("no", "pb"))


@pytest.fixture
def storage() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def loaded_catalog() -> LoadedCatalog:
    return make_catalog(SAMPLE_RECIPES)


@pytest.fixture
def ctx(config, scheduler, storage, loaded_catalog):
    return build_context(
        config=config, scheduler=scheduler, storage=storage, catalog=loaded_catalog
    )


@pytest.fixture
def recipe_factory():
    return make_recipe


@pytest.fixture
def context_factory(config, scheduler):
    """Build a context over custom recipes and optional preloaded user data."""

    def _build(recipes: list[Recipe], storage: MemoryStore | None = None, location: str = ""):
        return build_context(
            config=config,
            scheduler=scheduler,
            storage=storage if storage is not None else MemoryStore(),
            location=location,
            catalog=make_catalog(recipes),
        )

    return _build

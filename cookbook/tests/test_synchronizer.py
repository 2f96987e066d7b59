from __future__ import annotations

import logging

import pytest

from cookbook.catalog.models import LoadedCatalog
from cookbook.catalog.taxonomy import extract_taxonomy
from cookbook.navigation.models import HistoryEntry, SyncMode


# ── Outbound ─────────────────────────────────────────────────────────────


class TestOutbound:
    def test_burst_of_changes_pushes_one_entry(self, ctx, scheduler):
        ctx.filters.activate_filter("category", "Kaker")
        ctx.filters.set_search("kake")
        assert ctx.sync.has_pending_write()
        assert len(ctx.history.entries) == 1

        scheduler.run_pending()
        assert len(ctx.history.entries) == 2
        assert ctx.history.location == "?filter=category:kaker&search=kake"
        assert ctx.history.state == HistoryEntry(
            filters=[("category:Kaker", True)], search="kake", recipe_id=None
        )

    def test_replace_does_not_add_entry(self, ctx, scheduler):
        ctx.filters.replace_state([("meal:Dessert", True)], "")
        ctx.sync.update_location(use_replace=True)
        scheduler.run_pending()
        assert len(ctx.history.entries) == 1
        assert ctx.history.location == "?filter=meal:dessert"

    def test_clearing_everything_writes_empty_location(self, ctx, scheduler):
        ctx.filters.activate_filter("meal", "Middag")
        scheduler.run_pending()
        ctx.filters.clear_all_filters()
        scheduler.run_pending()
        assert ctx.history.location == ""
        assert len(ctx.history.entries) == 3

    def test_open_recipe_is_written(self, ctx, scheduler):
        ctx.viewer.show_recipe("b1")
        scheduler.run_pending()
        assert ctx.history.location == "?recipe=b1"

    def test_activating_filter_from_open_recipe_closes_it(self, ctx, scheduler):
        ctx.viewer.show_recipe("a1")
        ctx.activate_filter("meal", "Dessert")
        assert ctx.viewer.current_recipe_id is None
        scheduler.run_pending()
        assert len(ctx.history.entries) == 2
        assert ctx.history.location == "?filter=meal:dessert"


# ── Inbound ──────────────────────────────────────────────────────────────


class TestInitializeFromLocation:
    def test_state_restored_without_writing(self, context_factory, loaded_catalog):
        location = "?filter=category:kaker&recipe=b1"
        ctx = context_factory(loaded_catalog.recipes, location=location)
        assert ctx.filters.active_filters == {"category:Kaker": True}
        assert ctx.viewer.current_recipe_id == "b1"
        assert ctx.rendered_ids == ["a2", "a1"]
        assert not ctx.sync.has_pending_write()
        assert ctx.sync.mode is SyncMode.idle
        # Baseline entry carries the filters but not the recipe
        assert ctx.history.entries == [
            (HistoryEntry(filters=[("category:Kaker", True)], search="", recipe_id=None), location)
        ]
        assert ctx.engagement.pending_views() == {"b1"}

    def test_mode_is_replaying_while_state_is_applied(self, ctx):
        modes: list[SyncMode] = []
        ctx.filters.set_renderer(lambda ids: modes.append(ctx.sync.mode))
        ctx.sync.initialize_from_location("?search=kake")
        assert modes == [SyncMode.replaying]
        assert ctx.sync.mode is SyncMode.idle
        assert not ctx.sync.has_pending_write()

    def test_mode_reset_when_replay_fails(self, ctx):
        def broken(ids):
            raise RuntimeError("render failed")

        ctx.filters.set_renderer(broken)
        with pytest.raises(RuntimeError):
            ctx.sync.initialize_from_location("?search=kake")
        assert ctx.sync.mode is SyncMode.idle

    def test_recipe_resolved_by_title(self, ctx):
        ctx.sync.initialize_from_location("?recipe=Pasta%20carbonara")
        assert ctx.viewer.current_recipe_id == "b2"

    def test_unknown_recipe_is_ignored(self, ctx, caplog):
        with caplog.at_level(logging.INFO):
            ctx.sync.initialize_from_location("?recipe=zzz&filter=meal:middag")
        assert ctx.viewer.current_recipe_id is None
        assert set(ctx.rendered_ids) == {"b1", "b2"}
        assert "unknown recipe zzz" in caplog.text

    def test_replay_cancels_pending_write(self, ctx, scheduler):
        ctx.filters.activate_filter("meal", "Middag")
        assert ctx.sync.has_pending_write()
        ctx.sync.initialize_from_location("?filter=meal:dessert")
        assert not ctx.sync.has_pending_write()
        scheduler.run_pending()
        assert len(ctx.history.entries) == 1

    def test_replay_without_recipe_closes_open_one(self, ctx, scheduler):
        ctx.viewer.show_recipe("b1")
        scheduler.run_pending()
        assert ctx.history.location == "?recipe=b1"

        ctx.sync.initialize_from_location("?filter=meal:dessert")
        assert ctx.viewer.current_recipe_id is None
        assert ctx.history.location == "?filter=meal:dessert"
        assert ctx.history.state == HistoryEntry(
            filters=[("meal:Dessert", True)], search="", recipe_id=None
        )
        assert len(ctx.history.entries) == 2
        assert not ctx.sync.has_pending_write()

    def test_replay_with_unknown_recipe_closes_open_one(self, ctx):
        ctx.viewer.show_recipe("b1")
        ctx.sync.initialize_from_location("?recipe=zzz")
        assert ctx.viewer.current_recipe_id is None
        assert ctx.history.location == ""


class TestHistoryPop:
    def _navigate(self, ctx, scheduler):
        ctx.filters.activate_filter("category", "Kaker")
        scheduler.run_pending()
        ctx.viewer.show_recipe("a1")
        scheduler.run_pending()
        assert len(ctx.history.entries) == 3

    def test_back_and_forward_replay_entries(self, ctx, scheduler):
        self._navigate(ctx, scheduler)

        ctx.history.back()
        assert ctx.viewer.current_recipe_id is None
        assert ctx.filters.active_filters == {"category:Kaker": True}

        ctx.history.back()
        assert ctx.filters.active_filters == {}
        assert set(ctx.rendered_ids) == {"a1", "a2", "b1", "b2", "c1", "d1"}

        ctx.history.forward()
        ctx.history.forward()
        assert ctx.viewer.current_recipe_id == "a1"
        assert ctx.filters.active_filters == {"category:Kaker": True}

        scheduler.run_pending()
        assert len(ctx.history.entries) == 3
        assert ctx.history.index == 2
        assert not ctx.sync.has_pending_write()

    def test_push_after_back_drops_forward_steps(self, ctx, scheduler):
        self._navigate(ctx, scheduler)
        ctx.history.back()
        ctx.filters.set_search("eple")
        scheduler.run_pending()
        assert len(ctx.history.entries) == 3
        assert not ctx.history.can_go_forward()
        assert ctx.history.location == "?filter=category:kaker&search=eple"

    def test_missing_state_clears_everything(self, ctx, scheduler):
        ctx.filters.activate_filter("meal", "Middag")
        ctx.filters.set_search("fisk")
        ctx.viewer.show_recipe("b1")
        ctx.sync.on_history_pop(None, "")
        assert ctx.filters.active_filters == {}
        assert ctx.filters.search_query == ""
        assert ctx.viewer.current_recipe_id is None
        assert not ctx.sync.has_pending_write()


# ── Sharing ──────────────────────────────────────────────────────────────


def _portuguese(recipe_factory) -> LoadedCatalog:
    recipes = [
        recipe_factory("a1", "Bolo de chocolate", category="Kaker", meal="Sobremesa", pageNumber=5),
        recipe_factory("b1", "Sopa de peixe", category="Supper", meal="Jantar", pageNumber=8),
    ]
    return LoadedCatalog(language="pb", recipes=recipes, taxonomy=extract_taxonomy(recipes))


class TestSharing:
    def test_shareable_url_mirrors_state(self, ctx):
        ctx.filters.activate_filter("meal", "Dessert")
        ctx.viewer.show_recipe("a1")
        assert ctx.sync.get_shareable_url() == f"{ctx.config.base_url}?filter=meal:dessert&recipe=a1"

    def test_shareable_url_for_default_state(self, ctx):
        assert ctx.sync.get_shareable_url() == ctx.config.base_url

    def test_recipe_url(self, ctx):
        assert ctx.sync.get_recipe_url("a1") == f"{ctx.config.base_url}?recipe=a1"

    def test_urls_carry_non_default_language(self, ctx, recipe_factory):
        ctx.catalog.replace(_portuguese(recipe_factory))
        ctx.filters.replace_state([("category:Kaker", True)], "")
        assert ctx.sync.current_query() == "?lang=pb&filter=category:kaker"
        assert ctx.sync.get_recipe_url("b1") == f"{ctx.config.base_url}?lang=pb&recipe=b1"

    def test_copy_to_clipboard(self, ctx):
        copied: list[str] = []
        assert ctx.sync.copy_to_clipboard("https://example.org/?recipe=a1", copied.append) is True
        assert copied == ["https://example.org/?recipe=a1"]

    def test_clipboard_failure_is_logged(self, ctx, caplog):
        def denied(url):
            raise PermissionError("clipboard blocked")

        with caplog.at_level(logging.WARNING):
            assert ctx.sync.copy_to_clipboard("https://example.org/", denied) is False
        assert "Failed to copy URL" in caplog.text

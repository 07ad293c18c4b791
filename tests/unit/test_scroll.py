"""Tests for mosaic.ui.scroll — infinite-scroll triggers."""

from mosaic.ui.scroll import (
    IntersectionWatcher,
    ScrollPollWatcher,
    create_scroll_watcher,
)


class Counter:
    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1


class TestIntersectionWatcher:
    def test_fires_inside_expanded_viewport(self):
        """The sentinel counts as visible 600px before it scrolls into view."""
        counter = Counter()
        watcher = IntersectionWatcher(counter)

        assert watcher.observe(sentinel_top=1500, viewport_top=0, viewport_height=900) is True
        assert counter.calls == 1

    def test_boundary_is_inclusive(self):
        counter = Counter()
        watcher = IntersectionWatcher(counter)
        assert watcher.observe(sentinel_top=1500, viewport_top=0, viewport_height=900) is True
        assert watcher.observe(sentinel_top=1501, viewport_top=0, viewport_height=900) is False
        assert counter.calls == 1

    def test_does_not_fire_when_far_away(self):
        counter = Counter()
        watcher = IntersectionWatcher(counter)
        assert watcher.observe(sentinel_top=5000, viewport_top=0, viewport_height=900) is False
        assert counter.calls == 0

    def test_fires_on_every_intersecting_observation(self):
        counter = Counter()
        watcher = IntersectionWatcher(counter)
        watcher.observe(1000, 0, 900)
        watcher.observe(1000, 100, 900)
        assert counter.calls == 2

    def test_custom_margin(self):
        counter = Counter()
        watcher = IntersectionWatcher(counter, root_margin=0)
        assert watcher.observe(1000, 0, 900) is False

    def test_disconnected_watcher_is_silent(self):
        counter = Counter()
        watcher = IntersectionWatcher(counter)
        watcher.disconnect()
        assert watcher.observe(100, 0, 900) is False
        assert counter.calls == 0


class TestScrollPollWatcher:
    def test_fires_near_bottom(self):
        """vh + scrollY >= documentHeight - 800 triggers loading."""
        counter = Counter()
        watcher = ScrollPollWatcher(counter)

        assert watcher.on_scroll(viewport_height=800, scroll_y=1400, document_height=3000) is True
        assert watcher.on_scroll(viewport_height=800, scroll_y=1399, document_height=3000) is False
        assert counter.calls == 1

    def test_short_document_fires_immediately(self):
        counter = Counter()
        assert ScrollPollWatcher(counter).on_scroll(900, 0, 1200) is True

    def test_disconnected_watcher_is_silent(self):
        counter = Counter()
        watcher = ScrollPollWatcher(counter)
        watcher.disconnect()
        assert watcher.on_scroll(900, 10_000, 1000) is False
        assert counter.calls == 0


class TestCreateScrollWatcher:
    def test_prefers_intersection(self):
        assert isinstance(create_scroll_watcher(Counter()), IntersectionWatcher)

    def test_falls_back_to_polling(self):
        watcher = create_scroll_watcher(Counter(), supports_intersection=False)
        assert isinstance(watcher, ScrollPollWatcher)

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT))

from tastegraph.config.categories import CategoryConfig, load_category_configs  # noqa: E402
from tastegraph.models.vibe import Season, TimeOfDay, VibeContext  # noqa: E402
from tastegraph.services.prioritizer import CategoryPrioritizer, get_dynamic_tabs  # noqa: E402


def _assert_single_active_max(tabs):
    active = [tab for tab in tabs if tab.is_active]
    assert len(active) == 1
    assert active[0].priority == max(tab.priority for tab in tabs)
    assert 1 <= len(tabs) <= 5


def test_empty_context_falls_back_to_base_priority():
    tabs = get_dynamic_tabs(VibeContext())

    assert [tab.category_key for tab in tabs] == ["place", "artist", "movie"]
    assert [tab.priority for tab in tabs] == pytest.approx([1.0, 0.7, 0.6])
    assert tabs[0].id == "tab_place"
    assert tabs[0].is_active
    assert tabs[0].estimated_count == 15
    _assert_single_active_max(tabs)


def test_indoor_context_with_relevance_ranks_books_over_destinations():
    context = VibeContext(is_indoor=True, is_outdoor=False, entity_relevance={"book": 0.9, "place": 0.5})
    tabs = CategoryPrioritizer().compute_tabs(context)
    keys = [tab.category_key for tab in tabs]

    assert len(tabs) == 5
    assert keys[0] == "place"
    assert "book" in keys
    assert "destination" not in keys
    by_key = {tab.category_key: tab for tab in tabs}
    assert by_key["place"].priority == pytest.approx(1.35)
    assert by_key["book"].priority == pytest.approx(1.25)
    assert "AI Entity: +0.45" in by_key["book"].scoring_details
    assert "Indoor: +0.40" in by_key["book"].scoring_details
    _assert_single_active_max(tabs)


def test_destination_scores_below_book_when_indoor():
    prioritizer = CategoryPrioritizer()
    context = VibeContext(is_indoor=True, entity_relevance={"book": 0.9, "place": 0.5})
    configs = {config.category_key: config for config in prioritizer.configs}

    book = prioritizer.score_category(configs["book"], context)
    destination = prioritizer.score_category(configs["destination"], context)

    assert book.total > destination.total
    assert destination.total == pytest.approx(0.3)


def test_confidence_dampens_scores():
    context = VibeContext(confidence_score=0.6)
    tabs = get_dynamic_tabs(context)

    assert tabs[0].category_key == "place"
    assert tabs[0].priority == pytest.approx(0.8)
    assert "Confidence: ×0.80" in tabs[0].scoring_details


def test_time_and_season_adjustments_are_recorded():
    context = VibeContext(time_of_day=TimeOfDay.EVENING, season=Season.SUMMER)
    tabs = get_dynamic_tabs(context)
    by_key = {tab.category_key: tab for tab in tabs}

    assert by_key["artist"].priority == pytest.approx(0.7 + 0.3 + 0.3)
    assert "evening: +0.30" in by_key["artist"].scoring_details
    assert "summer: +0.30" in by_key["artist"].scoring_details


def test_priority_is_clamped_to_two():
    context = VibeContext(
        is_outdoor=True,
        time_of_day=TimeOfDay.EVENING,
        season=Season.SUMMER,
        entity_relevance={"place": 1.0},
    )
    tabs = get_dynamic_tabs(context)

    assert tabs[0].category_key == "place"
    assert tabs[0].priority == 2.0


def test_estimated_count_scales_with_relevance_and_clamps():
    context = VibeContext(entity_relevance={"book": 0.9, "place": 0.5})
    prioritizer = CategoryPrioritizer()
    configs = {config.category_key: config for config in prioritizer.configs}

    assert prioritizer.estimate_count(configs["book"], context) == 11
    assert prioritizer.estimate_count(configs["place"], context) == 11
    assert prioritizer.estimate_count(configs["movie"], context) == 4
    assert prioritizer.estimate_count(configs["videogame"], context) == 3
    assert prioritizer.estimate_count(configs["destination"], VibeContext()) == 5


def test_ties_keep_configuration_order():
    configs = [
        CategoryConfig(category_key="podcast", display_name="Podcasts", icon="🎧", base_priority=3),
        CategoryConfig(category_key="videogame", display_name="Games", icon="🎮", base_priority=3),
    ]
    tabs = CategoryPrioritizer(configs=configs).compute_tabs(VibeContext())

    assert [tab.category_key for tab in tabs] == ["podcast", "videogame"]
    assert tabs[0].is_active and not tabs[1].is_active


def test_yaml_overrides_replace_base_priority(tmp_path):
    override_file = tmp_path / "categories.yaml"
    override_file.write_text(
        """
        categories:
          - category_key: place
            base_priority: 2
          - category_key: book
            query_tags: ["urn:tag:genre:book:poetry"]
          - category_key: unknown
            base_priority: 9
        """
    )

    configs = load_category_configs(str(override_file))
    by_key = {config.category_key: config for config in configs}

    assert len(configs) == 8
    assert by_key["place"].base_priority == 2
    assert by_key["place"].display_name == "Places"
    assert by_key["book"].query_tags == ("urn:tag:genre:book:poetry",)

    tabs = CategoryPrioritizer(configs=configs).compute_tabs(VibeContext())
    assert [tab.category_key for tab in tabs] == ["artist", "movie", "tv_show"]

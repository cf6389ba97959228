from __future__ import annotations

from adapters.mention_linker import (
    LINKED_BOOST,
    CategoryIndex,
    DetectorConfig,
    MentionDetector,
    find_links,
    format_link,
    linked_ids_in,
    name_key,
    resolve_overlaps,
)
from adapters.mention_linker.spans import compile_name_patterns, extract_candidates
from config import Settings
from contracts import Element, Mention


def _el(id: str, name: str, category: str) -> Element:
    return Element(id=id, name=name, category=category)


_ALICE = _el("c-1", "Alice", "character")
_BOB = _el("c-2", "Bob", "character")
_SQUARE = _el("l-1", "Town Square", "location")


def _detector(*elements: Element, config: DetectorConfig | None = None) -> MentionDetector:
    return MentionDetector.from_elements(list(elements), config)


def test_detects_known_names():
    mentions = _detector(_ALICE, _BOB, _SQUARE).detect("Alice walked to Town Square.")

    assert [(m.text, m.start, m.end, m.element_id, m.category) for m in mentions] == [
        ("Alice", 0, 5, "c-1", "character"),
        ("Town Square", 16, 27, "l-1", "location"),
    ]
    assert all(m.confidence == 1.0 for m in mentions)
    assert not any(m.is_linked for m in mentions)


def test_detect_is_idempotent():
    detector = _detector(_ALICE, _BOB, _SQUARE)
    text = "Bob met Alice near Town Square, and Alice waved."
    assert detector.detect(text) == detector.detect(text)


def test_name_scan_ignores_capitalization():
    mentions = _detector(_ALICE).detect("they said alice would come")
    assert [(m.text, m.start) for m in mentions] == [("alice", 10)]


def test_overlapping_candidates_keep_the_best_match():
    smith = _el("c-3", "Alice Smith", "character")
    mentions = _detector(_ALICE, smith).detect("Alice Smith arrived.")

    assert len(mentions) == 1
    assert mentions[0].element_id == "c-3"
    assert (mentions[0].start, mentions[0].end) == (0, 11)


def test_full_name_beats_trailing_sub_name_of_another_element():
    full = _el("c-3", "Alice Smith", "character")
    family = _el("f-1", "Smith", "family")
    mentions = _detector(full, family).detect("Alice Smith arrived.")

    assert [(m.text, m.start, m.end, m.element_id) for m in mentions] == [
        ("Alice Smith", 0, 11, "c-3"),
    ]
    assert mentions[0].confidence == 1.0


def test_trailing_sub_name_wins_when_it_matches_better():
    fuzzy = _el("c-4", "Alicia Smith", "character")
    family = _el("f-1", "Smith", "family")
    mentions = _detector(fuzzy, family).detect("Alice Smith arrived.")

    assert [(m.text, m.start, m.end, m.element_id, m.category) for m in mentions] == [
        ("Smith", 6, 11, "f-1", "family"),
    ]
    assert mentions[0].confidence == 1.0


def test_spans_inside_markup_are_skipped():
    text = "[Alice](character:c-1) met Alice."
    mentions = _detector(_ALICE).detect(text)

    assert len(mentions) == 1
    assert mentions[0].start == text.rindex("Alice")
    assert mentions[0].is_linked


def test_linked_boost_lifts_candidates_over_the_threshold():
    alicia = _el("c-9", "Alicia", "character")
    config = DetectorConfig(category_thresholds={"character": 0.8})
    detector = _detector(alicia, config=config)

    assert detector.detect("Alice smiled.") == []

    mentions = detector.detect("Alice smiled.", linked_ids={"c-9"})
    assert len(mentions) == 1
    assert mentions[0].is_linked
    assert 0.8 <= mentions[0].confidence < 0.9


def test_linked_boost_is_capped():
    mentions = _detector(_ALICE).detect("Alice smiled.", linked_ids={"c-1"})
    assert LINKED_BOOST == 0.1
    assert mentions[0].confidence == 1.0
    assert mentions[0].is_linked


def test_events_need_a_closer_match():
    text = "Alice smiled."
    as_character = _detector(_el("x-1", "Alicia", "character")).detect(text)
    as_event = _detector(_el("x-1", "Alicia", "event")).detect(text)

    assert [m.element_id for m in as_character] == ["x-1"]
    assert as_event == []


def test_short_spans_and_nameless_elements_are_ignored():
    detector = _detector(_el("c-5", "Al", "character"), _el("c-6", "", "character"))
    assert detector.detect("Al went home.") == []
    assert detector.categories == ["character"]


def test_empty_inputs():
    assert _detector().detect("Alice walked.") == []
    assert _detector(_ALICE).detect("") == []


def test_search_is_deduplicated_and_best_first():
    square_market = _el("l-2", "Square Market", "location")
    detector = _detector(_ALICE, _SQUARE, square_market)

    results = detector.search("Town Sq")
    assert results[0][0].id == "l-1"
    assert len({el.id for el, _score in results}) == len(results)

    assert detector.search("Town Sq", category="character") == []
    assert detector.search("Town Sq", category="nope") == []


def test_rebuild_returns_a_new_detector():
    detector = _detector(_ALICE)
    rebuilt = detector.rebuild([_ALICE, _BOB])

    assert rebuilt is not detector
    assert rebuilt.config == detector.config
    assert [m.element_id for m in rebuilt.detect("Bob and Alice")] == ["c-2", "c-1"]
    assert [m.element_id for m in detector.detect("Bob and Alice")] == ["c-1"]


def test_config_from_settings():
    settings = Settings(category_thresholds={"event": 0.9}, linked_boost=0.05)
    config = DetectorConfig.from_settings(settings)

    assert config.threshold_for("event") == 0.9
    assert config.threshold_for("character") == 0.7
    assert config.linked_boost == 0.05


def test_resolve_overlaps_prefers_longer_span_on_ties():
    short = Mention(text="Alice", start=0, end=5, confidence=0.9, element=_ALICE, category="character")
    long = Mention(text="Alice Smith", start=0, end=11, confidence=0.9, element=_BOB, category="character")
    other = Mention(text="Bob", start=20, end=23, confidence=0.75, element=_BOB, category="character")

    assert resolve_overlaps([other, short, long]) == [long, other]


def test_candidate_extraction():
    text = "[Bob](character:c-2) saw Old Town at dawn; old town slept. McGuffin"
    spans = extract_candidates(text, compile_name_patterns(["Old Town", "old town", ""]))

    assert [(c.text, c.start) for c in spans] == [
        ("Old Town", 25),
        ("old town", 43),
    ]


def test_markup_helpers():
    text = "Met [Alice](character:c-1) at [Town Square](location:l-1)."
    links = find_links(text)

    assert [(link.display, link.category, link.element_id) for link in links] == [
        ("Alice", "character", "c-1"),
        ("Town Square", "location", "l-1"),
    ]
    assert text[links[0].start:links[0].end] == "[Alice](character:c-1)"
    assert linked_ids_in(text) == {"c-1", "l-1"}
    assert format_link("Alice", "character", "c-1") == "[Alice](character:c-1)"
    assert find_links(format_link("The [Old] Keep", "location", "l-9"))[0].element_id == "l-9"


def test_category_index_matches_typographic_variants():
    oneil = _el("c-7", "Jean-Luc O'Neil", "character")
    index = CategoryIndex("character", [oneil, _el("c-8", " ", "character")], threshold=0.7)

    assert name_key("  Jean\u2010Luc  O\u2019Neil ") == "jean-luc o'neil"
    assert len(index) == 1
    assert index.search("JEAN\u2011LUC O\u2019NEIL") == [(oneil, 1.0)]
    assert index.search("   ") == []

# tests/test_auto_linker.py
from services.knowledge.auto_linker import (
    AutoLinker,
    auto_link,
    extract_links,
    normalize_markdown_links,
)


def test_links_known_terms_preserving_case():
    text = "Stars collapse and emit Hawking radiation."
    linked = auto_link(text, ["hawking radiation", "Stars"])
    assert linked == "[[Stars]] collapse and emit [[Hawking radiation]]."


def test_latin_keywords_respect_word_boundaries():
    assert auto_link("Black holes are dark.", ["black hole"]) == "Black holes are dark."
    assert auto_link("Starlight is old.", ["star"]) == "Starlight is old."


def test_longest_keyword_wins():
    linked = auto_link("A neutron star is a star.", ["star", "neutron star"])
    assert linked == "A [[neutron star]] is a [[star]]."


def test_existing_links_are_untouched():
    text = "The [[Event Horizon]] of a black hole hides the horizon."
    linked = auto_link(text, ["black hole", "event horizon", "horizon"])
    assert linked == "The [[Event Horizon]] of a [[black hole]] hides the [[horizon]]."


def test_linking_is_idempotent():
    linker = AutoLinker(["black hole", "event horizon", "블랙홀", "hole"])
    text = "A black hole has an event horizon. 블랙홀의 사건의 지평선."
    once = linker.link(text)
    assert linker.link(once) == once
    assert once.count("[[") == 3


def test_korean_keywords_link_before_particles():
    linked = auto_link("블랙홀의 중력은 매우 강하다.", ["블랙홀"])
    assert linked == "[[블랙홀]]의 중력은 매우 강하다."


def test_latin_keywords_link_before_korean_particles():
    linker = AutoLinker(["NASA", "Outer Wilds"])
    text = "NASA의 탐사선은 Outer Wilds는 게임이다."
    once = linker.link(text)
    assert once == "[[NASA]]의 탐사선은 [[Outer Wilds]]는 게임이다."
    assert linker.link(once) == once
    # ASCII neighbours still block a match
    assert linker.link("NASAs and Outer Wildsy") == "NASAs and Outer Wildsy"


def test_short_and_blank_keywords_are_ignored():
    linker = AutoLinker(["a", "", None, "  ", "Io"])
    assert len(linker) == 1
    assert linker.link("a moon called Io") == "a moon called [[Io]]"


def test_empty_text_passes_through():
    assert auto_link("", ["star"]) == ""
    assert auto_link(None, ["star"]) is None


def test_markdown_links_become_wiki_links():
    text = "See [Quasar](https://example.org/quasar) and [[Pulsar]]."
    assert normalize_markdown_links(text) == "See [[Quasar]] and [[Pulsar]]."
    assert normalize_markdown_links(None) == ""


def test_extract_links():
    assert extract_links("[[Quasar]] near [[ Pulsar ]] and [[]]") == ["Quasar", "Pulsar"]

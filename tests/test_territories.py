# tests/test_territories.py

import pytest

from services.territories import TerritoryResolver, normalize_text


@pytest.mark.parametrize("name,key", [
    ("Castellón", "castellon"),
    ("castellon", "castellon"),
    ("Castelló", "castellon"),
    ("ALACANT", "alicante"),
    ("València", "valencia"),
    ("Comunidad Valenciana", "comunitat_valenciana"),
    ("España", "espana"),
])
def test_resolve_aliases(territories, name, key):
    assert territories.resolve(name).key == key


def test_resolve_unknown_is_none(territories):
    assert territories.resolve("Narnia") is None
    assert territories.resolve("") is None


def test_decomposed_accents_resolve(territories):
    # "o" + combining acute accent
    assert territories.resolve("Castello\u0301n").key == "castellon"


def test_find_in_text_prefers_region_over_city(territories):
    assert territories.find_in_text("índice de la comunitat valenciana").key == "comunitat_valenciana"


def test_find_in_text_earliest_mention(territories):
    assert territories.find_in_text("compara alicante con valencia").key == "alicante"


def test_find_in_text_whole_words_only(territories):
    # "cv" must not match inside another word
    assert territories.find_in_text("curriculum cvs") is None


def test_store_values_and_default(territories):
    assert territories.store_values("castellon") == ["Castellón", "Castellon"]
    assert territories.default.key == "comunitat_valenciana"
    assert {t.key for t in territories.provinces()} == {"valencia", "alicante", "castellon"}


def test_normalize_text():
    assert normalize_text("  Comunitat   Valenciana ") == "comunitat valenciana"
    assert normalize_text(None) == ""


def test_custom_default():
    assert TerritoryResolver(default_key="espana").default.display == "España"

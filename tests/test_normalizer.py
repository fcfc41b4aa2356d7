"""Tests for text normalization and misspelling correction."""

import pytest

from order_engine.tools.normalizer import (
    COMMON_CORRECTIONS,
    apply_corrections,
    normalize_query,
    normalize_text,
)


class TestNormalizeText:
    def test_lowercases_and_strips_accents(self):
        assert normalize_text("Churú ATÚN") == "churu atun"

    def test_keeps_enye(self):
        assert normalize_text("Razas Pequeñas") == "razas pequeñas"

    def test_uppercase_enye_is_kept(self):
        assert normalize_text("PEQUEÑAS") == "pequeñas"

    def test_symbols_become_spaces(self):
        assert normalize_text("Hill's/Science-Diet!!") == "hill s science diet"

    def test_collapses_whitespace(self):
        assert normalize_text("  dos \t churu \n atun  ") == "dos churu atun"

    def test_none_is_empty(self):
        assert normalize_text(None) == ""

    def test_non_string_is_converted(self):
        assert normalize_text(12000) == "12000"

    @pytest.mark.parametrize("raw", [
        "Quiero 2 Churú Atún!!",
        "Itagüí, Antioquia",
        "¿Tienen arena para gato?",
        "Dirección: Cra 45 # 52-10",
    ])
    def test_idempotent(self, raw):
        once = normalize_text(raw)
        assert normalize_text(once) == once


class TestCorrections:
    def test_known_misspelling_is_fixed(self):
        assert apply_corrections("quiero dogumet adulto") == "quiero dogurmet adulto"

    def test_every_correction_maps_to_canonical(self):
        for wrong, right in COMMON_CORRECTIONS.items():
            assert apply_corrections(wrong) == right

    def test_only_whole_words_are_corrected(self):
        assert apply_corrections("churrumbel") == "churrumbel"

    def test_correction_inside_longer_text(self):
        assert apply_corrections("2 churru y un hilz") == "2 churu y un hills"


class TestNormalizeQuery:
    def test_normalizes_then_corrects(self):
        assert normalize_query("DOGUERMET Adulto!") == "dogurmet adulto"

    def test_empty(self):
        assert normalize_query("   ") == ""

"""Tests for weight/dimension extraction and pt-BR number parsing."""

import pytest

from app.services.measurements import (
    extract_measurements,
    extract_weight,
    normalize_text,
    parse_number,
)


class TestParseNumber:
    @pytest.mark.parametrize(
        "token, expected",
        [
            ("12.345,67", 12345.67),
            ("7,5", 7.5),
            ("1.500", 1500.0),
            ("1.5", 1.5),
            ("42", 42.0),
        ],
    )
    def test_parses_locale_formats(self, token, expected):
        assert parse_number(token) == pytest.approx(expected)

    @pytest.mark.parametrize("token", ["abc", "", "1,2,3", "nan", "inf", "--1", None])
    def test_unparseable_yields_none(self, token):
        assert parse_number(token) is None


class TestExtractMeasurements:
    def test_weight_and_combined_dimensions(self):
        m = extract_measurements("o produto pesa 1,5 kg e mede 10 x 20 x 30 cm")

        assert m.weight_kg == pytest.approx(1.5)
        assert m.height_cm == 10
        assert m.width_cm == 20
        assert m.length_cm == 30

    def test_dimensions_assigned_by_size_not_position(self):
        m = extract_measurements("Caixa: 30 × 10 × 20 cm")

        assert (m.height_cm, m.width_cm, m.length_cm) == (10, 20, 30)

    def test_grams_converted_to_kg(self):
        assert extract_measurements("peso 500g").weight_kg == pytest.approx(0.5)

    def test_grams_rounded_to_three_places(self):
        assert extract_weight("peso líquido 1234,5678 gramas") == pytest.approx(1.235)

    def test_kilograms_win_over_grams(self):
        assert extract_weight("embalagem 500g, produto 2kg") == pytest.approx(2.0)

    def test_labeled_fallback_fields_are_independent(self):
        m = extract_measurements("Altura: 12,5 cm | Comprimento - 40 cm")

        assert m.height_cm == pytest.approx(12.5)
        assert m.length_cm == 40
        assert m.width_cm is None
        assert m.weight_kg is None

    def test_label_window_is_bounded(self):
        m = extract_measurements("largura do produto em centimetros aproximados 15")

        assert m.width_cm is None

    def test_no_measurements(self):
        m = extract_measurements("Boneca articulada com acessórios")

        assert m.weight_kg is None
        assert m.width_cm is None
        assert m.height_cm is None
        assert m.length_cm is None

    def test_unit_must_be_a_whole_word(self):
        assert extract_weight("memória de 64 gb") is None


def test_normalize_text_collapses_whitespace():
    assert normalize_text("  Peso\n\t 2 KG  ") == "peso 2 kg"

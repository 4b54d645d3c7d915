import logging

import pytest
from reportlab.pdfbase import pdfmetrics

from docsign.fonts import DEFAULT_LABEL, FontAsset, FontRegistry, build_font_registry, normalize_font_label


@pytest.mark.parametrize(
    "label,expected",
    [
        ('"Great Vibes", cursive', "Great Vibes"),
        ("'Dancing Script'", "Dancing Script"),
        ("  Pacifico , serif", "Pacifico"),
        (None, DEFAULT_LABEL),
        ("", DEFAULT_LABEL),
        ('""', DEFAULT_LABEL),
    ],
)
def test_normalize_font_label(label, expected):
    assert normalize_font_label(label) == expected


def test_missing_font_files_are_warnings(tmp_path, caplog):
    with caplog.at_level(logging.WARNING, logger="docsign.fonts"):
        registry = build_font_registry(str(tmp_path))
    assert registry.assets == {}
    assert "Could not load font Great Vibes" in caplog.text


def test_resolve_falls_back_to_builtin_font_when_nothing_loaded(tmp_path):
    registry = build_font_registry(str(tmp_path))
    asset = registry.resolve("'Satisfy', cursive")
    assert asset.font_name == "Times-Italic"
    assert asset.ascent(20) == pytest.approx(pdfmetrics.getAscent("Times-Italic", 20))


def test_unsupported_font_uses_default_label():
    default = FontAsset(label=DEFAULT_LABEL, font_name="Helvetica")
    caveat = FontAsset(label="Caveat", font_name="Courier")
    registry = FontRegistry(assets={DEFAULT_LABEL: default, "Caveat": caveat})
    assert registry.resolve("Caveat, cursive") is caveat
    assert registry.resolve("Comic Sans") is default


def test_non_standard_fallback_is_replaced(tmp_path):
    registry = build_font_registry(str(tmp_path), fallback_font="NoSuchFont")
    assert registry.fallback.font_name == "Times-Italic"

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Mapping

from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont

from .config import FALLBACK_FONT, FONTS_DIR

logger = logging.getLogger(__name__)

DEFAULT_LABEL = "Great Vibes"

_BASE14_FONTS = {
    "Courier", "Courier-Bold", "Courier-Oblique", "Courier-BoldOblique",
    "Helvetica", "Helvetica-Bold", "Helvetica-Oblique", "Helvetica-BoldOblique",
    "Times-Roman", "Times-Bold", "Times-Italic", "Times-BoldItalic",
    "Symbol", "ZapfDingbats",
}

# label shown in the signing UI -> font file under FONTS_DIR
SIGNATURE_FONTS: Mapping[str, str] = {
    "Great Vibes": "GreatVibes-Regular.ttf",
    "Dancing Script": "DancingScript-VariableFont_wght.ttf",
    "Pacifico": "Pacifico-Regular.ttf",
    "Satisfy": "Satisfy-Regular.ttf",
    "Shadows Into Light": "ShadowsIntoLight-Regular.ttf",
    "Caveat": "Caveat-VariableFont_wght.ttf",
    "Homemade Apple": "HomemadeApple-Regular.ttf",
    "Indie Flower": "IndieFlower-Regular.ttf",
}


@dataclass(frozen=True)
class FontAsset:
    label: str
    font_name: str  # name registered with reportlab.pdfbase.pdfmetrics

    def ascent(self, size: float) -> float:
        return pdfmetrics.getAscent(self.font_name, size)


def normalize_font_label(label) -> str:
    """``"'Great Vibes', cursive"`` -> ``Great Vibes``."""
    if not label:
        return DEFAULT_LABEL
    cleaned = str(label).replace('"', "").replace("'", "").split(",")[0].strip()
    return cleaned or DEFAULT_LABEL


@dataclass(frozen=True)
class FontRegistry:
    assets: Mapping[str, FontAsset] = field(default_factory=dict)
    fallback: FontAsset = field(default_factory=lambda: FontAsset(label=FALLBACK_FONT, font_name=FALLBACK_FONT))

    def resolve(self, label) -> FontAsset:
        name = normalize_font_label(label)
        asset = self.assets.get(name)
        if asset is not None:
            return asset
        if name not in SIGNATURE_FONTS:
            logger.warning("Unsupported signature font %r, using default", name)
        return self.assets.get(DEFAULT_LABEL) or self.fallback


def build_font_registry(fonts_dir: str = FONTS_DIR, fallback_font: str = FALLBACK_FONT) -> FontRegistry:
    """Load every supported signature font found in ``fonts_dir``.

    Fonts that fail to load are skipped with a warning; signatures using them
    are drawn with the default font instead.
    """
    assets: Dict[str, FontAsset] = {}
    for label, filename in SIGNATURE_FONTS.items():
        path = os.path.join(fonts_dir, filename)
        font_name = "Sig-" + label.replace(" ", "")
        try:
            pdfmetrics.registerFont(TTFont(font_name, path))
        except Exception as exc:
            logger.warning("Could not load font %s from %s: %s", label, path, exc)
            continue
        assets[label] = FontAsset(label=label, font_name=font_name)
    if fallback_font not in _BASE14_FONTS:
        logger.warning("Fallback font %s is not a standard PDF font, using Times-Italic", fallback_font)
        fallback_font = "Times-Italic"
    logger.info("Loaded %d of %d signature fonts from %s", len(assets), len(SIGNATURE_FONTS), fonts_dir)
    return FontRegistry(assets=assets, fallback=FontAsset(label=fallback_font, font_name=fallback_font))

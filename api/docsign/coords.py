"""
Viewport <-> PDF user-space coordinate mapping.

Browsers report clicks in pixels with a top-left origin on a page rendered at
some zoom level. PDF user space is measured in points with a bottom-left
origin. Placement and finalization must both go through ``browser_to_pdf`` /
``project`` so a signature lands where the signer clicked.
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from .errors import OutOfBoundsError, ValidationError


@dataclass(frozen=True)
class PdfPoint:
    pdf_x: float
    pdf_y: float
    width_scale: float
    height_scale: float


def _finite(name: str, value) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be numeric", {"field": name, "value": value})
    if not math.isfinite(number):
        raise ValidationError(f"{name} must be finite", {"field": name, "value": value})
    return number


def scale_factors(
    pdf_page_width: float,
    pdf_page_height: float,
    rendered_height: Optional[float],
    rendered_width: Optional[float] = None,
) -> Tuple[float, float]:
    """Return ``(width_scale, height_scale)`` in points per rendered pixel.

    Without a rendered width the zoom is assumed uniform and the height
    scale is reused for the x axis.
    """
    if rendered_height is None:
        raise ValidationError("renderedPageHeight is required", {"field": "renderedPageHeight"})
    rendered_height = _finite("renderedPageHeight", rendered_height)
    if rendered_height <= 0:
        raise ValidationError("renderedPageHeight must be positive", {"field": "renderedPageHeight"})
    height_scale = pdf_page_height / rendered_height
    width_scale = height_scale
    if rendered_width:
        rendered_width = _finite("renderedPageWidth", rendered_width)
        if rendered_width < 0:
            raise ValidationError("renderedPageWidth must be positive", {"field": "renderedPageWidth"})
        width_scale = pdf_page_width / rendered_width
    return width_scale, height_scale


def project(
    pdf_page_width: float,
    pdf_page_height: float,
    browser_x: float,
    browser_y: float,
    width_scale: float,
    height_scale: float,
) -> PdfPoint:
    """Apply known scale factors and flip the y axis. Rejects points off the page."""
    browser_x = _finite("xCoordinate", browser_x)
    browser_y = _finite("yCoordinate", browser_y)
    pdf_x = browser_x * width_scale
    pdf_y = pdf_page_height - browser_y * height_scale
    if pdf_x < 0 or pdf_x > pdf_page_width or pdf_y < 0 or pdf_y > pdf_page_height:
        raise OutOfBoundsError(
            "Signature position outside page bounds",
            {
                "bounds": {
                    "x": {"min": 0, "max": pdf_page_width, "value": pdf_x},
                    "y": {"min": 0, "max": pdf_page_height, "value": pdf_y},
                }
            },
        )
    return PdfPoint(pdf_x=pdf_x, pdf_y=pdf_y, width_scale=width_scale, height_scale=height_scale)


def browser_to_pdf(
    pdf_page_width: float,
    pdf_page_height: float,
    rendered_height: Optional[float],
    rendered_width: Optional[float],
    browser_x: float,
    browser_y: float,
) -> PdfPoint:
    width_scale, height_scale = scale_factors(pdf_page_width, pdf_page_height, rendered_height, rendered_width)
    return project(pdf_page_width, pdf_page_height, browser_x, browser_y, width_scale, height_scale)


def pdf_to_browser(
    pdf_page_height: float,
    pdf_x: float,
    pdf_y: float,
    width_scale: float,
    height_scale: float,
) -> Tuple[float, float]:
    """Inverse of ``project``: PDF points back to rendered pixels."""
    return pdf_x / width_scale, (pdf_page_height - pdf_y) / height_scale

"""
SVG badge rendering: the count is substituted into template.svg.
"""

from functools import lru_cache
from pathlib import Path

TEMPLATE_PATH = Path(__file__).with_name("template.svg")
PLACEHOLDER = "{count}"
UNKNOWN = "-"


@lru_cache(maxsize=1)
def svg_badge_template() -> str:
    return TEMPLATE_PATH.read_text(encoding="utf-8")


def make_badge(count: int | None = 1) -> str:
    """
    Badge XML with `count` filled in; None renders the "-" placeholder.
    """
    value = UNKNOWN if count is None else str(count)
    return svg_badge_template().replace(PLACEHOLDER, value)

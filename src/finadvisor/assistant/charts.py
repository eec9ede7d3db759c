"""Chart payload adaptation.

Structural validation only: a function result's chart specification
becomes a RenderableChart when its labels and series line up.
"""

import logging
from typing import Any

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


class ChartSeries(BaseModel):
    name: str = ""
    data: list[float]


class RenderableChart(BaseModel):
    """Chart data contract consumed by renderers."""

    type: str = "bar"
    title: str | None = None
    labels: list[str]
    series: list[ChartSeries] = Field(min_length=1)
    currency: str | None = None


def adapt_chart(spec: dict[str, Any] | None) -> RenderableChart | None:
    """Return a renderable chart, or None when ``spec`` is absent or malformed."""
    if not spec or not isinstance(spec, dict):
        return None
    try:
        chart = RenderableChart.model_validate(spec)
    except ValidationError:
        logger.warning("Discarding malformed chart specification", exc_info=True)
        return None
    if any(len(series.data) != len(chart.labels) for series in chart.series):
        logger.warning("Discarding chart whose series do not match its labels")
        return None
    return chart

"""Unit tests for chart adaptation."""
from finadvisor.assistant import RenderableChart, adapt_chart


class TestAdaptChart:
    """Tests for adapt_chart."""

    def test_valid_spec(self):
        """Test that a well-formed spec becomes a RenderableChart."""
        chart = adapt_chart({
            "type": "pie",
            "title": "Spending",
            "labels": ["Food & Dining", "Transportation"],
            "series": [{"name": "Spending", "data": [120.5, 40]}],
            "currency": "USD",
        })

        assert isinstance(chart, RenderableChart)
        assert chart.type == "pie"
        assert chart.series[0].data == [120.5, 40.0]

    def test_missing_spec(self):
        """Test that an absent spec yields None."""
        assert adapt_chart(None) is None
        assert adapt_chart({}) is None

    def test_mismatched_series(self):
        """Test that a series whose length differs from the labels is dropped."""
        spec = {"labels": ["a", "b"], "series": [{"data": [1.0]}]}
        assert adapt_chart(spec) is None

    def test_malformed_spec(self):
        """Test that a spec without labels or series yields None."""
        assert adapt_chart({"type": "bar"}) is None
        assert adapt_chart({"labels": ["a"], "series": []}) is None
        assert adapt_chart({"labels": ["a"], "series": [{"data": ["x"]}]}) is None

    def test_dump_round_trip(self):
        """Test that a dumped chart adapts to an equal chart."""
        chart = adapt_chart({"labels": ["a"], "series": [{"name": "s", "data": [2]}]})
        assert adapt_chart(chart.model_dump()) == chart

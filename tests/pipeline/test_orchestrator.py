"""Tests for DataPipeline: registration, execution modes, post-processing."""

import asyncio

import pytest

from reportflow.core.errors import (
    AggregationError,
    DuplicateFetcherError,
    FetcherNotFoundError,
    SourceNotFoundError,
)
from reportflow.pipeline.fetcher import FetchUnit
from reportflow.pipeline.orchestrator import DataPipeline, paginate, sort_records
from reportflow.pipeline.types import FetcherConfig, SortConfig


class ConcurrencyTracker:
    """Raw fetch factory that records how many fetches overlap."""

    def __init__(self, delay: float = 0.02):
        self.delay = delay
        self.active = 0
        self.max_active = 0
        self.overlaps: list[set[str]] = []
        self._running: set[str] = set()

    def fetch_for(self, fetcher_id: str, value):
        async def raw_fetch(source, resources):
            self._running.add(fetcher_id)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            self.overlaps.append(set(self._running))
            await asyncio.sleep(self.delay)
            self.active -= 1
            self._running.discard(fetcher_id)
            return value

        return raw_fetch


def tracked_pipeline(tracker: ConcurrencyTracker, ids: list[str]) -> DataPipeline:
    pipeline = DataPipeline()
    for i, fid in enumerate(ids):
        config = FetcherConfig.model_validate(
            {"id": fid, "source": {"type": "inline", "value": None}}
        )
        pipeline.register_unit(FetchUnit(config, raw_fetch=tracker.fetch_for(fid, [i])))
    return pipeline


class TestRegistration:
    def test_duplicate_id(self, make_inline):
        """A second fetcher with the same id is rejected."""
        pipeline = DataPipeline()
        pipeline.register_fetcher(make_inline("a", 1))
        with pytest.raises(DuplicateFetcherError):
            pipeline.register_fetcher(make_inline("a", 2))
        assert pipeline.fetcher_ids() == ["a"]

    def test_register_from_dict(self):
        """A plain mapping registers as a fetcher config."""
        pipeline = DataPipeline()
        pipeline.register_fetcher({"id": "a", "source": {"type": "inline", "value": 1}})
        assert "a" in pipeline
        assert len(pipeline) == 1

    @pytest.mark.asyncio
    async def test_unknown_fetcher(self):
        """Executing an unknown id raises FetcherNotFoundError."""
        with pytest.raises(FetcherNotFoundError):
            await DataPipeline().execute_fetcher("missing")

    @pytest.mark.asyncio
    async def test_unknown_id_fails_before_any_fetch(self):
        """Ids are checked before any fetch starts."""
        tracker = ConcurrencyTracker()
        pipeline = tracked_pipeline(tracker, ["a"])
        with pytest.raises(FetcherNotFoundError):
            await pipeline.execute_aggregate({"fetchers": ["a", "ghost"]})
        assert tracker.overlaps == []


class TestConcat:
    @pytest.mark.asyncio
    async def test_concat_flattens(self, make_inline):
        """concat joins results under the aggregate id."""
        pipeline = DataPipeline()
        pipeline.register_fetcher(make_inline("a", [1, 2]))
        pipeline.register_fetcher(make_inline("b", 3))
        result = await pipeline.execute_aggregate({"fetchers": ["a", "b"], "strategy": "concat"})
        assert result.success
        assert result.data == [1, 2, 3]
        assert result.metadata.fetcher_id == "aggregate"

    @pytest.mark.asyncio
    async def test_merge(self, make_inline):
        """merge combines mapping results."""
        pipeline = DataPipeline()
        pipeline.register_fetcher(make_inline("a", {"x": 1, "y": 1}))
        pipeline.register_fetcher(make_inline("b", {"y": 2}))
        result = await pipeline.execute_aggregate({"fetchers": ["a", "b"], "strategy": "merge"})
        assert result.data == {"x": 1, "y": 2}


class TestParallel:
    @pytest.mark.asyncio
    async def test_windows_of_two(self):
        """Fetches run in windows of maxParallel, results in input order."""
        tracker = ConcurrencyTracker()
        pipeline = tracked_pipeline(tracker, ["a", "b", "c", "d", "e"])
        result = await pipeline.execute_aggregate(
            {"fetchers": ["a", "b", "c", "d", "e"], "parallel": True, "maxParallel": 2}
        )
        assert tracker.max_active == 2
        # no fetch from a later window overlaps one from an earlier window
        for running in tracker.overlaps:
            assert running <= {"a", "b"} or running <= {"c", "d"} or running <= {"e"}
        # input order, not completion order
        assert result.data == [0, 1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_default_window(self):
        """Without maxParallel the pipeline default applies."""
        tracker = ConcurrencyTracker()
        ids = [f"f{i}" for i in range(7)]
        pipeline = tracked_pipeline(tracker, ids)
        pipeline.default_max_parallel = 3
        await pipeline.execute_aggregate({"fetchers": ids, "parallel": True})
        assert tracker.max_active == 3

    @pytest.mark.asyncio
    async def test_sequential_never_overlaps(self):
        """Sequential mode runs one fetch at a time."""
        tracker = ConcurrencyTracker(delay=0.005)
        pipeline = tracked_pipeline(tracker, ["a", "b", "c"])
        await pipeline.execute_aggregate({"fetchers": ["a", "b", "c"]})
        assert tracker.max_active == 1


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_inline_skip_inline_sorted(self, tmp_path, make_inline):
        """A skipped failure is recorded while the rest aggregates and sorts."""
        pipeline = DataPipeline()
        pipeline.register_fetcher(make_inline("first", [{"id": 3}, {"id": 1}]))
        pipeline.register_fetcher(
            {
                "id": "broken",
                "source": {"type": "file", "path": str(tmp_path / "missing.json")},
                "process": {"error": {"strategy": "skip", "logError": False}},
            }
        )
        pipeline.register_fetcher(make_inline("second", [{"id": 2}]))

        result = await pipeline.execute_aggregate(
            {
                "fetchers": ["first", "broken", "second"],
                "strategy": "concat",
                "postProcess": {"sort": {"field": "id", "order": "asc"}},
            }
        )

        assert result.data == [{"id": 1}, {"id": 2}, {"id": 3}]
        assert result.success is False
        assert len(result.errors) == 1
        assert isinstance(result.errors[0], SourceNotFoundError)

    @pytest.mark.asyncio
    async def test_thrown_error_is_collected_when_data_exists(self, tmp_path, make_inline):
        """A thrown error is collected when other fetchers return data."""
        pipeline = DataPipeline()
        pipeline.register_fetcher(make_inline("ok", [1]))
        pipeline.register_fetcher(
            {"id": "bad", "source": {"type": "file", "path": str(tmp_path / "nope")}}
        )
        for parallel in (False, True):
            result = await pipeline.execute_aggregate({"fetchers": ["ok", "bad"], "parallel": parallel})
            assert result.data == [1]
            assert result.success is False
            assert isinstance(result.errors[0], SourceNotFoundError)

    @pytest.mark.asyncio
    async def test_no_data_raises_first_error(self, tmp_path):
        """With no data at all the first error is raised."""
        pipeline = DataPipeline()
        pipeline.register_fetcher(
            {"id": "bad", "source": {"type": "file", "path": str(tmp_path / "nope")}}
        )
        with pytest.raises(SourceNotFoundError):
            await pipeline.execute_aggregate({"fetchers": ["bad"]})

    @pytest.mark.asyncio
    async def test_no_data_with_default_policy(self, tmp_path):
        """A default post-process policy supplies fallback data."""
        pipeline = DataPipeline()
        pipeline.register_fetcher(
            {"id": "bad", "source": {"type": "file", "path": str(tmp_path / "nope")}}
        )
        result = await pipeline.execute_aggregate(
            {
                "fetchers": ["bad"],
                "postProcess": {"error": {"strategy": "default", "defaultValue": ["fallback"]}},
            }
        )
        assert result.success is True
        assert result.data == ["fallback"]
        assert len(result.errors) == 1

    @pytest.mark.asyncio
    async def test_no_data_with_skip_policy(self, tmp_path):
        """A skip post-process policy returns no data."""
        pipeline = DataPipeline()
        pipeline.register_fetcher(
            {"id": "bad", "source": {"type": "file", "path": str(tmp_path / "nope")}}
        )
        result = await pipeline.execute_aggregate(
            {"fetchers": ["bad"], "postProcess": {"error": {"strategy": "skip"}}}
        )
        assert result.success is False
        assert result.data is None

    @pytest.mark.asyncio
    async def test_custom_aggregate_failure_is_collected(self, functions, make_inline):
        """A failing custom aggregate raises AggregationError."""
        def broken(results):
            raise RuntimeError("nope")

        functions.register("aggregate", "broken", broken)
        pipeline = DataPipeline(functions=functions)
        pipeline.register_fetcher(make_inline("a", [1]))
        with pytest.raises(AggregationError):
            await pipeline.execute_aggregate(
                {"fetchers": ["a"], "strategy": "custom", "customFn": "broken"}
            )


class TestPostProcess:
    @pytest.mark.asyncio
    async def test_filter_sort_paginate(self, make_inline):
        """Post-processing filters, sorts then paginates."""
        pipeline = DataPipeline()
        rows = [{"id": i, "even": i % 2 == 0} for i in range(1, 9)]
        pipeline.register_fetcher(make_inline("rows", rows))
        result = await pipeline.execute_aggregate(
            {
                "fetchers": ["rows"],
                "postProcess": {
                    "filter": {"rules": [{"field": "even", "operator": "eq", "value": True}]},
                    "sort": {"field": "id", "order": "desc"},
                    "offset": 1,
                    "limit": 2,
                },
            }
        )
        assert [r["id"] for r in result.data] == [6, 4]

    def test_sort_is_stable_and_missing_last(self):
        """Sorting is stable and puts missing or None keys last."""
        data = [
            {"k": 2, "n": "a"},
            {"n": "missing"},
            {"k": 1, "n": "b"},
            {"k": 2, "n": "c"},
            {"k": None, "n": "none"},
        ]
        asc = sort_records(data, SortConfig(field="k"))
        assert [d["n"] for d in asc] == ["b", "a", "c", "missing", "none"]
        desc = sort_records(data, SortConfig(field="k", order="desc"))
        assert [d["n"] for d in desc] == ["a", "c", "b", "missing", "none"]

    def test_sort_mixed_kinds(self):
        """Numbers sort before strings."""
        data = [{"k": "b"}, {"k": 2}, {"k": "a"}, {"k": 1}]
        assert [d["k"] for d in sort_records(data, SortConfig(field="k"))] == [1, 2, "a", "b"]

    def test_paginate(self):
        """offset and limit slice the records."""
        assert paginate([1, 2, 3, 4], 1, 2) == [2, 3]
        assert paginate([1, 2, 3], None, None) == [1, 2, 3]
        assert paginate([1, 2, 3], 5, None) == []

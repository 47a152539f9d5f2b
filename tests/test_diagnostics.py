"""Tests for allocation events, the default logging sink, and sink isolation.

Verifies:
- One event per first-time allocation, in allocation order
- The ``CREATED ...`` line shape for leaves, lists, and nodes
- Reuse emits nothing
- The default sink logs at DEBUG on ``ast_canon.labeler``
- A failing sink (or describe) never changes labeling results
- ``log_allocations=False`` silences the sink
- Summaries are whitespace-collapsed and shortened to ``summary_width``
"""

from __future__ import annotations

import logging
from typing import Any

import pytest

from ast_canon.config import LabelerConfig
from ast_canon.labeler import UNAVAILABLE_SUMMARY, AllocationEvent, Canonicalizer
from ast_canon.tree.keys import ShapeTag, StructuralKey


def _sample(n: Any) -> Any:
    # f=2, Var=3, 1=4, Num=5, list=6, Call=7
    return n("Call", func=n("Var", name="f"), args=[n("Num", value=1)])


class TestAllocationEvents:
    def test_one_event_per_allocation(
        self, canon: Canonicalizer, n: Any, events: list[AllocationEvent]
    ) -> None:
        canon.label(_sample(n))
        assert [e.id for e in events] == [2, 3, 4, 5, 6, 7]
        assert [e.kind for e in events] == ["leaf", "Var", "leaf", "Num", "list", "Call"]

    def test_reuse_emits_nothing(
        self, canon: Canonicalizer, n: Any, events: list[AllocationEvent]
    ) -> None:
        canon.label(_sample(n))
        count = len(events)
        canon.label(_sample(n))
        assert len(events) == count

    def test_leaf_event_format(
        self, canon: Canonicalizer, n: Any, events: list[AllocationEvent]
    ) -> None:
        canon.label(_sample(n))
        assert events[0].key is None
        assert events[0].format() == "CREATED leaf id=2, value=f"

    def test_node_event_format(
        self, canon: Canonicalizer, n: Any, events: list[AllocationEvent]
    ) -> None:
        canon.label(_sample(n))
        assert events[1].key == StructuralKey(ShapeTag.NODE, "Var", (2,))
        assert events[1].format() == "CREATED Var id=3, key={Var:2;}, value=<Var>"

    def test_list_event_format(
        self, canon: Canonicalizer, n: Any, events: list[AllocationEvent]
    ) -> None:
        canon.label(_sample(n))
        assert events[4].format() == "CREATED list id=6, key={[list]:5;}, value=<Num>"

    def test_list_event_summarizes_absent_elements(
        self, canon: Canonicalizer, n: Any, events: list[AllocationEvent]
    ) -> None:
        canon.label(n("Block", stmts=[None, n("Num", value=1)]))
        list_event = next(e for e in events if e.kind == "list")
        assert list_event.value == "<null>, Num"

    def test_null_leaf_event(
        self, canon: Canonicalizer, n: Any, events: list[AllocationEvent]
    ) -> None:
        canon.label(n("Var", name=None))
        assert events[0].format() == "CREATED leaf id=2, value=<null>"


class TestDefaultSink:
    def test_logs_at_debug(
        self, toy_accessor: Any, n: Any, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.DEBUG, logger="ast_canon.labeler"):
            Canonicalizer(toy_accessor).label(_sample(n))
        assert "CREATED leaf id=2, value=f" in caplog.messages
        assert "CREATED Call id=7, key={Call:3;6;}, value=<Call>" in caplog.messages
        assert all(r.levelno == logging.DEBUG for r in caplog.records)

    def test_silent_above_debug(
        self, toy_accessor: Any, n: Any, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO, logger="ast_canon.labeler"):
            Canonicalizer(toy_accessor).label(_sample(n))
        assert caplog.records == []


class TestSinkIsolation:
    def test_failing_sink_does_not_change_ids(
        self, toy_accessor: Any, n: Any, caplog: pytest.LogCaptureFixture
    ) -> None:
        def broken_sink(event: AllocationEvent) -> None:
            raise OSError("log device unavailable")

        reference = Canonicalizer(toy_accessor, sink=lambda e: None).label(_sample(n))
        with caplog.at_level(logging.ERROR, logger="ast_canon.labeler"):
            canon = Canonicalizer(toy_accessor, sink=broken_sink)
            tree = canon.label(_sample(n))

        assert tree == reference
        assert canon.next_available_id() == 8
        assert "Allocation sink failed" in caplog.text
        assert len(caplog.records) == 6

    def test_failing_describe_still_emits_every_event(
        self,
        toy_accessor: Any,
        n: Any,
        events: list[AllocationEvent],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        class BrokenDescribe(type(toy_accessor)):  # type: ignore[misc]
            def describe(self, node: Any) -> str:
                raise RuntimeError("cannot summarize")

        accessor = BrokenDescribe(toy_accessor._grammar)
        canon = Canonicalizer(accessor, sink=events.append)
        with caplog.at_level(logging.ERROR, logger="ast_canon.labeler"):
            tree = canon.label(_sample(n))

        assert tree.label == "7"
        assert [e.id for e in events] == [2, 3, 4, 5, 6, 7]
        assert [e.kind for e in events] == ["leaf", "Var", "leaf", "Num", "list", "Call"]
        structural = [e for e in events if e.key is not None]
        assert all(e.value == UNAVAILABLE_SUMMARY for e in structural)
        assert events[1].format() == "CREATED Var id=3, key={Var:2;}, value=<<unavailable>>"
        assert len(caplog.records) == 4
        assert "Source summary failed" in caplog.text

    def test_unavailable_summary_is_not_shortened(
        self, toy_accessor: Any, n: Any, events: list[AllocationEvent]
    ) -> None:
        class BrokenDescribe(type(toy_accessor)):  # type: ignore[misc]
            def describe(self, node: Any) -> str:
                raise RuntimeError("cannot summarize")

        canon = Canonicalizer(
            BrokenDescribe(toy_accessor._grammar),
            LabelerConfig(summary_width=10),
            sink=events.append,
        )
        canon.label(n("Var", name="x"))
        assert events[1].value == "<unavailable>"

    def test_log_allocations_disabled(self, toy_accessor: Any, n: Any) -> None:
        calls: list[AllocationEvent] = []
        canon = Canonicalizer(
            toy_accessor, LabelerConfig(log_allocations=False), sink=calls.append
        )
        tree = canon.label(_sample(n))
        assert tree.label == "7"
        assert calls == []


class TestSummaries:
    def test_whitespace_collapsed_and_shortened(
        self, toy_accessor: Any, n: Any, events: list[AllocationEvent]
    ) -> None:
        class Wordy(type(toy_accessor)):  # type: ignore[misc]
            def describe(self, node: Any) -> str:
                return "word \n\t " * 20

        canon = Canonicalizer(
            Wordy(toy_accessor._grammar), LabelerConfig(summary_width=12), sink=events.append
        )
        canon.label(n("Var", name="x"))
        node_event = events[1]
        assert node_event.value == "word word..."
        assert len(node_event.value) == 12

    def test_short_summary_untouched(
        self, toy_accessor: Any, n: Any, events: list[AllocationEvent]
    ) -> None:
        canon = Canonicalizer(toy_accessor, sink=events.append)
        canon.label(n("Var", name="x"))
        assert events[1].value == "Var"

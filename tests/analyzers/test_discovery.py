"""Tests for workspace analyzer discovery."""

from __future__ import annotations

import pytest

from monodep.analyzers import (
    ConsistencyAnalyzer,
    InternalReferenceAnalyzer,
    PeerAnalyzer,
    discover_analyzers,
)


def test_discover_analyzers_returns_blocking_analyzers_in_order() -> None:
    analyzers = discover_analyzers()

    assert [type(analyzer) for analyzer in analyzers] == [
        ConsistencyAnalyzer,
        InternalReferenceAnalyzer,
        PeerAnalyzer,
    ]
    assert [analyzer.name for analyzer in analyzers] == ["consistency", "internal", "peers"]


def test_discover_analyzers_respects_enabled_filter() -> None:
    analyzers = discover_analyzers(["Internal"])

    assert len(analyzers) == 1
    assert isinstance(analyzers[0], InternalReferenceAnalyzer)


def test_discover_analyzers_raises_for_unknown_name() -> None:
    with pytest.raises(ValueError):
        discover_analyzers(["ownership", "does-not-exist"])

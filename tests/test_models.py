"""Tests for data models."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from dep_inventory.models import (
    AggregateReport,
    DependencyMetadata,
    ManifestDependencies,
    ResolutionFailure,
)


class TestDependencyMetadata:
    def test_ignores_extra_fields(self):
        meta = DependencyMetadata.model_validate({
            "name": "express",
            "version": "4.18.2",
            "description": "Fast web framework",
            "license": "MIT",
            "dependencies": {"accepts": "~1.3.8"},
        })
        assert meta.name == "express"
        assert not hasattr(meta, "license")

    def test_description_optional(self):
        assert DependencyMetadata(name="a", version="1").description is None

    def test_version_required(self):
        with pytest.raises(ValidationError):
            DependencyMetadata.model_validate({"name": "a"})


class TestManifestDependencies:
    def test_defaults(self):
        deps = ManifestDependencies()
        assert deps.internal_dependencies == []
        assert deps.other_dependencies == []
        assert deps.all_dependencies == {}


class TestAggregateReport:
    def test_empty(self):
        report = AggregateReport()
        assert report.total == 0
        assert not report.is_partial
        assert list(report.rows()) == []

    def test_rows(self):
        report = AggregateReport(
            dependencies=["b", "a"],
            names={"a": "a", "b": "b"},
            versions={"a": "1.0.0", "b": "2.0.0"},
            descriptions={"a": "first", "b": None},
        )
        assert list(report.rows()) == [("b", "2.0.0", ""), ("a", "1.0.0", "first")]
        assert report.total == 2

    def test_partial(self):
        report = AggregateReport(
            failures=[ResolutionFailure(application=Path("/app"), error="boom")]
        )
        assert report.is_partial
        assert report.failures[0].identifier is None

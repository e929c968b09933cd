"""Tests for path group glob matching."""

from __future__ import annotations

import pytest

from prosebuild.dsl import group
from prosebuild.patterns import expand_braces, static_base


class TestExpandBraces:
    def test_no_braces(self) -> None:
        assert expand_braces("app/*.js") == ["app/*.js"]

    def test_whitespace_around_alternatives_ignored(self) -> None:
        assert expand_braces("test/**/*.{js, json}") == ["test/**/*.js", "test/**/*.json"]

    def test_nested(self) -> None:
        assert expand_braces("a.{b,{c,d}}") == ["a.b", "a.c", "a.d"]


class TestPathGroup:
    @pytest.mark.parametrize(
        "path, expected",
        [
            ("app/boot.js", True),
            ("app/views/app.js", True),
            ("app/views/deep/nested/x.js", True),
            ("./app/boot.js", True),
            ("app/boot.css", False),
            ("vendor/app/boot.js", False),
        ],
    )
    def test_double_star(self, path: str, expected: bool) -> None:
        assert group("app", "app/**/**/*.js").matches(path) is expected

    def test_negation_excludes_built_file(self) -> None:
        tests = group("tests", "test/**/*.{js, json}", "test/index.html", "!test/lib/index.js")
        assert tests.matches("test/index.js")
        assert tests.matches("test/fixtures/data.json")
        assert tests.matches("test/index.html")
        assert not tests.matches("test/lib/index.js")
        assert not tests.matches("test/other.html")

    def test_single_star_does_not_cross_directories(self) -> None:
        css = group("css", "style/*.css")
        assert css.matches("style/style.css")
        assert not css.matches("style/components/button.css")

    def test_windows_separators(self) -> None:
        assert group("css", "style/**/*.css").matches("style\\components\\button.css")


class TestStaticBase:
    @pytest.mark.parametrize(
        "pattern, expected",
        [
            ("app/**/**/*.js", "app"),
            ("test/**/*.{js, json}", "test"),
            ("test/index.html", "test"),
            ("!test/lib/index.js", "test/lib"),
            ("style/components/*.css", "style/components"),
            ("*.css", ""),
            ("./templates/**/*.html", "templates"),
        ],
    )
    def test_static_base(self, pattern: str, expected: str) -> None:
        assert static_base(pattern) == expected

    def test_group_bases_skip_exclusions(self) -> None:
        tests = group("tests", "test/**/*.{js, json}", "test/index.html", "!test/lib/index.js")
        assert tests.bases() == ["test"]

#!/usr/bin/env python3
# ****************************************************************************************************************************************************
# * BSD 3-Clause License
# *
# * Copyright (c) 2025, Mana Battery
# * All rights reserved.
# *
# * Redistribution and use in source and binary forms, with or without modification, are permitted provided that the following conditions are met:
# *
# * 1. Redistributions of source code must retain the above copyright notice, this list of conditions and the following disclaimer.
# * 2. Redistributions in binary form must reproduce the above copyright notice, this list of conditions and the following disclaimer in the
# *    documentation and/or other materials provided with the distribution.
# * 3. Neither the name of the copyright holder nor the names of its contributors may be used to endorse or promote products derived from this
# *    software without specific prior written permission.
# *
# * THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO,
# * THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR
# * CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO,
# * PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
# * LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE,
# * EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
# ****************************************************************************************************************************************************
"""Tests for impactlib.ignore_utils module"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))
from impactlib.constants import DEFAULT_IGNORE_PATTERNS
from impactlib.ignore_utils import IgnoreFilter, parse_ignore_patterns, unit_path


class TestParseIgnorePatterns:
    """Test the parse_ignore_patterns function."""

    def test_single_pattern(self) -> None:
        assert parse_ignore_patterns(".checkout_git") == [".checkout_git"]

    def test_comma_separated(self) -> None:
        assert parse_ignore_patterns(".checkout_git,vendor/,third_party") == [".checkout_git", "vendor/", "third_party"]

    def test_whitespace_and_empty_items_dropped(self) -> None:
        assert parse_ignore_patterns(" vendor , ,build ,") == ["vendor", "build"]

    @pytest.mark.parametrize("value", ["", None])
    def test_empty_disables(self, value: str) -> None:
        assert parse_ignore_patterns(value) == []

    def test_default_is_checkout_staging(self) -> None:
        assert parse_ignore_patterns(DEFAULT_IGNORE_PATTERNS) == [".checkout_git"]


class TestIgnoreFilter:
    """Test the IgnoreFilter class."""

    def test_substring_match_on_paths(self) -> None:
        ignore_filter = IgnoreFilter([".checkout_git"])

        assert ignore_filter.is_ignored("/repo/.checkout_git/pkg/module.py")
        assert not ignore_filter.is_ignored("/repo/pkg/module.py")

    def test_substring_match_on_import_paths(self) -> None:
        ignore_filter = IgnoreFilter(["vendor"])

        assert ignore_filter.is_ignored("app.vendor.requests")
        assert ignore_filter.is_ignored("vendored")
        assert not ignore_filter.is_ignored("app.core")

    def test_any_pattern_matches(self) -> None:
        ignore_filter = IgnoreFilter(["gen_", "vendor"])

        assert ignore_filter.is_ignored("pkg.gen_protos")
        assert ignore_filter.is_ignored("pkg.vendor")
        assert ignore_filter.matching_pattern("pkg.vendor") == "vendor"
        assert ignore_filter.matching_pattern("pkg.core") is None

    def test_no_patterns_ignores_nothing(self) -> None:
        ignore_filter = IgnoreFilter([])

        assert not ignore_filter
        assert not ignore_filter.is_ignored("")
        assert not ignore_filter.is_ignored("anything.at.all")

    def test_empty_pattern_discarded(self) -> None:
        ignore_filter = IgnoreFilter(["", "vendor"])

        assert ignore_filter.patterns == ("vendor",)
        assert not ignore_filter.is_ignored("app.core")

    def test_filter_is_independent_of_source_list(self) -> None:
        patterns = ["vendor"]
        ignore_filter = IgnoreFilter(patterns)

        patterns.append("core")

        assert not ignore_filter.is_ignored("app.core")

    def test_partition_keeps_order(self) -> None:
        ignore_filter = IgnoreFilter(["vendor", "gen_"])

        kept, ignored = ignore_filter.partition(["a", "vendor.x", "b", "gen_y", "c"])

        assert kept == ["a", "b", "c"]
        assert ignored == ["vendor.x", "gen_y"]

    def test_repr_lists_patterns(self) -> None:
        assert repr(IgnoreFilter(["vendor"])) == "IgnoreFilter(['vendor'])"


class TestUnitIgnore:
    """Test unit_path and IgnoreFilter.is_unit_ignored."""

    def test_unit_path(self) -> None:
        assert unit_path("tools") == "/tools/"
        assert unit_path("shop.checkout.api") == "/shop/checkout/api/"

    def test_hidden_directory_pattern_does_not_hit_similar_package(self) -> None:
        ignore_filter = IgnoreFilter([".checkout_git"])

        assert not ignore_filter.is_unit_ignored("shop.checkout_github")
        assert not ignore_filter.is_unit_ignored("checkout_git")

    def test_directory_pattern_matches_unit_and_subunits(self) -> None:
        ignore_filter = IgnoreFilter(["vendor/"])

        assert ignore_filter.is_unit_ignored("vendor")
        assert ignore_filter.is_unit_ignored("vendor.lib")
        assert ignore_filter.is_unit_ignored("app.vendor.requests")
        assert not ignore_filter.is_unit_ignored("vendored")

    def test_unit_and_its_files_agree(self) -> None:
        ignore_filter = IgnoreFilter(["vendor/", "/generated/"])

        for import_path, file_path in [("vendor.lib", "/repo/vendor/lib/x.py"), ("pkg.generated", "/repo/pkg/generated/y.py"), ("core", "/repo/core/z.py")]:
            assert ignore_filter.is_unit_ignored(import_path) == ignore_filter.is_ignored(file_path)

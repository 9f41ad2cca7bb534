#!/usr/bin/env python3
# -*- coding: utf-8 -*-
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
"""Substring based ignore filtering for file paths and import paths."""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)


def parse_ignore_patterns(value: Optional[str]) -> List[str]:
    """Split a comma-separated pattern option into a list of patterns.

    Args:
        value: Raw option value (e.g. ".checkout_git,vendor/")

    Returns:
        List of non-empty patterns. An empty string disables ignoring.
    """
    if not value:
        return []
    return [pattern.strip() for pattern in value.split(",") if pattern.strip()]


def unit_path(import_path: str) -> str:
    """Return the directory form of a unit import path.

    Example:
        >>> unit_path("shop.checkout")
        '/shop/checkout/'
    """
    return "/" + import_path.replace(".", "/") + "/"


class IgnoreFilter:
    """Predicate telling whether a path or unit matches any ignore pattern.

    A match is a plain substring match. Changed files are checked by their
    filesystem path, units by their directory form (see unit_path), so a
    directory pattern such as "vendor/" or ".checkout_git" hits a unit exactly
    when it hits the files below it.
    """

    def __init__(self, patterns: Iterable[str] = ()):
        # An empty pattern is a substring of everything
        self._patterns: Tuple[str, ...] = tuple(p for p in patterns if p)

    @property
    def patterns(self) -> Tuple[str, ...]:
        return self._patterns

    def __bool__(self) -> bool:
        return bool(self._patterns)

    def __repr__(self) -> str:
        return f"IgnoreFilter({list(self._patterns)!r})"

    def matching_pattern(self, identifier: str) -> Optional[str]:
        """Return the first pattern contained in identifier, or None."""
        for pattern in self._patterns:
            if pattern in identifier:
                return pattern
        return None

    def is_ignored(self, identifier: str) -> bool:
        return self.matching_pattern(identifier) is not None

    def is_unit_ignored(self, import_path: str) -> bool:
        """Check a unit by the directory form of its import path."""
        return self.is_ignored(unit_path(import_path))

    def partition(self, identifiers: Iterable[str]) -> Tuple[List[str], List[str]]:
        """Split identifiers into kept and ignored lists, preserving order.

        Args:
            identifiers: Paths or import paths to check

        Returns:
            Tuple of (kept, ignored)
        """
        kept: List[str] = []
        ignored: List[str] = []
        pattern_match_counts: Dict[str, int] = {pattern: 0 for pattern in self._patterns}

        for identifier in identifiers:
            pattern = self.matching_pattern(identifier)
            if pattern is None:
                kept.append(identifier)
            else:
                pattern_match_counts[pattern] += 1
                ignored.append(identifier)

        for pattern, count in pattern_match_counts.items():
            logger.debug("Ignore pattern '%s' matched %s entries", pattern, count)

        return kept, ignored

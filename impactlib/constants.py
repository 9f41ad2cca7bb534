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
"""Shared constants for the change impact tool.

This module provides centralized defaults, exit codes and the exception
hierarchy used by the driver and the library modules.
"""

# =============================================================================
# Exit Codes
# =============================================================================

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_KEYBOARD_INTERRUPT = 130

# =============================================================================
# Defaults
# =============================================================================

# Local checkout-staging directories are never part of the analysis
DEFAULT_IGNORE_PATTERNS = ".checkout_git"

DEFAULT_LOG_LEVEL = "WARNING"

# Source files that make up a build unit
SOURCE_EXTENSION = ".py"

# Directories that are never build units
PRUNED_DIRECTORY_NAMES = frozenset({"__pycache__"})

# =============================================================================
# Exception Classes
# =============================================================================


class ImpactCheckError(Exception):
    """Base exception for all change impact errors.

    Every exception carries an exit_code attribute that indicates what exit
    code the program should use when this error reaches the entry point.
    """

    def __init__(self, message: str, exit_code: int = EXIT_FAILURE):
        super().__init__(message)
        self.exit_code = exit_code


class ArgumentError(ImpactCheckError):
    """Raised when command-line arguments are invalid."""


class GitRepositoryError(ImpactCheckError):
    """Raised when the git repository root cannot be determined."""


class ChangedFilesError(ImpactCheckError):
    """Raised when the list of changed files cannot be obtained from git."""


class UnitNotFoundError(ImpactCheckError):
    """Raised when a file path does not belong to any build unit."""


class NoSourcesError(ImpactCheckError):
    """Raised when a candidate unit directory holds no source files.

    Not a failure: the scanner skips such directories silently.
    """


class ScanError(ImpactCheckError):
    """Raised when a single build unit cannot be read or parsed."""

    def __init__(self, import_path: str, message: str):
        super().__init__(f"{import_path}: {message}")
        self.import_path = import_path


class ScanAbortedError(ImpactCheckError):
    """Raised when the repository scan reported hard errors."""

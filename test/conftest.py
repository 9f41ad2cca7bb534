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
"""Pytest configuration and shared fixtures for change impact tests.

Fixture overview:
- temp_dir: isolated scratch directory
- write_tree: factory writing a {relative path: content} mapping to disk
- python_tree: small multi-package source tree with known import edges
- git_repo: python_tree committed twice (second commit touches core/util)
- fake_scanner / fake_resolver: in-memory collaborators with fixed ordering

Import edges of python_tree (importer -> imported):
    tools     -> frontend
    frontend  -> core, argparse
    core      -> core.util
    core.util -> core, os
"""

import os
import sys
import tempfile
import shutil
from pathlib import Path
from typing import Callable, Dict, Generator, Iterable, List, Sequence, Tuple

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from impactlib.constants import ScanError, UnitNotFoundError
from impactlib.unit_utils import BuildUnit, ScanResult

PYTHON_TREE: Dict[str, str] = {
    "tools.py": "import frontend.cli\n",
    "frontend/__init__.py": "from core import models\n",
    "frontend/cli.py": "import argparse\nfrom frontend import views\n",
    "frontend/views.py": "",
    "core/__init__.py": "",
    "core/models.py": "from .util import helpers\n",
    "core/util/__init__.py": "",
    "core/util/helpers.py": "import os\n\n\ndef helper():\n    return os.sep\n",
    "docs/guide.md": "# Guide\n",
}


@pytest.fixture
def temp_dir() -> Generator[str, None, None]:
    """Create a temporary directory for tests."""
    tmpdir = tempfile.mkdtemp(prefix="change_impact_test_")
    yield tmpdir
    shutil.rmtree(tmpdir, ignore_errors=True)


def _write_tree(root: str, files: Dict[str, str]) -> str:
    for rel_path, content in files.items():
        path = Path(root) / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def write_tree() -> Callable[[str, Dict[str, str]], str]:
    """Factory writing a mapping of relative paths to file contents below a root."""
    return _write_tree


@pytest.fixture
def python_tree(temp_dir: str) -> str:
    """Create the sample source tree described in the module docstring."""
    return _write_tree(temp_dir, PYTHON_TREE)


@pytest.fixture
def git_repo(python_tree: str) -> str:
    """Commit python_tree, then commit a change to core/util/helpers.py.

    Requires: git command available
    """
    from git import Repo

    repo = Repo.init(python_tree)
    with repo.config_writer() as config:
        config.set_value("user", "name", "Test User")
        config.set_value("user", "email", "test@example.com")
        config.set_value("commit", "gpgsign", "false")

    repo.git.add(A=True)
    repo.git.commit(m="Initial commit")

    helpers = Path(python_tree) / "core" / "util" / "helpers.py"
    helpers.write_text(helpers.read_text(encoding="utf-8") + "\n\ndef other():\n    return 1\n", encoding="utf-8")
    repo.git.add(A=True)
    repo.git.commit(m="Change helpers")

    return python_tree


class FakeScanner:
    """Scanner yielding a fixed relation, then fixed errors."""

    def __init__(self, relation: Sequence[Tuple[str, Sequence[str]]], errors: Iterable[Tuple[str, str]] = ()):
        self.relation = relation
        self.errors = list(errors)
        self.scan_count = 0

    def scan(self) -> Generator[ScanResult, None, None]:
        self.scan_count += 1
        for import_path, imports in self.relation:
            yield ScanResult(import_path=import_path, imports=list(imports))
        for import_path, message in self.errors:
            yield ScanResult(import_path=import_path, error=ScanError(import_path, message))


class FakeResolver:
    """Resolver backed by a file -> import path mapping."""

    def __init__(self, files: Dict[str, str], standard: Iterable[str] = ()):
        self.files = files
        self.standard = set(standard)
        self.calls: List[str] = []

    def resolve(self, file_path: str, cwd: str) -> BuildUnit:
        self.calls.append(file_path)
        if file_path not in self.files:
            raise UnitNotFoundError(f"can't find unit containing {file_path}")
        import_path = self.files[file_path]
        return BuildUnit(import_path=import_path, directory=os.path.dirname(file_path), is_standard=import_path in self.standard)


@pytest.fixture
def fake_scanner() -> type:
    """The FakeScanner class, for building scanners inside tests."""
    return FakeScanner


@pytest.fixture
def fake_resolver() -> type:
    """The FakeResolver class, for building resolvers inside tests."""
    return FakeResolver

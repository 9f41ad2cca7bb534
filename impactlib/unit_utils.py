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
"""Build unit resolution and repository scanning for Python source trees.

A build unit is either a package directory below the source root (import path
``a.b`` for ``<root>/a/b/``) or a top-level module directly in the source root
(import path ``tool`` for ``<root>/tool.py``). Every file inside a package
directory belongs to that package unit, whatever its extension.
"""

import os
import ast
import keyword
import logging
import sysconfig
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Set, Tuple

from .constants import SOURCE_EXTENSION, PRUNED_DIRECTORY_NAMES, NoSourcesError, ScanError, UnitNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class BuildUnit:
    """A single build unit.

    Attributes:
        import_path: Dotted import path identifying the unit
        directory: Directory holding the unit's source files
        is_standard: True if the unit belongs to the Python standard library
    """

    import_path: str
    directory: str
    is_standard: bool = False


@dataclass
class ScanResult:
    """Outcome of scanning one unit: its imports, or the error that stopped it."""

    import_path: str
    imports: List[str] = field(default_factory=list)
    error: Optional[ScanError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class UnitCandidate:
    """A directory or top-level module that may form a build unit."""

    import_path: str
    directory: str
    files: List[str] = field(default_factory=list)
    is_package: bool = True
    error: Optional[str] = None


def is_package_name(name: str) -> bool:
    """Check whether a directory or module name can be imported."""
    return name.isidentifier() and not keyword.iskeyword(name)


def is_within(path: str, directory: str) -> bool:
    """Check whether path lies inside directory (or is the directory itself)."""
    try:
        rel_path = os.path.relpath(path, directory)
    except ValueError:
        # Different drives on Windows
        return False
    return rel_path != os.pardir and not rel_path.startswith(os.pardir + os.sep)


def default_stdlib_dirs() -> List[str]:
    """Return the standard-library directories of the running interpreter."""
    paths = sysconfig.get_paths()
    dirs = {os.path.abspath(paths[key]) for key in ("stdlib", "platstdlib") if paths.get(key)}
    return sorted(dirs)


def default_site_dirs() -> List[str]:
    """Return the third-party install directories (nested inside stdlib on POSIX)."""
    paths = sysconfig.get_paths()
    dirs = {os.path.abspath(paths[key]) for key in ("purelib", "platlib") if paths.get(key)}
    return sorted(dirs)


class UnitResolver:
    """Map file paths to the build unit that owns them."""

    def __init__(self, source_root: str, stdlib_dirs: Optional[Iterable[str]] = None, site_dirs: Optional[Iterable[str]] = None):
        self.source_root = os.path.abspath(source_root)
        self.stdlib_dirs = [os.path.abspath(d) for d in (default_stdlib_dirs() if stdlib_dirs is None else stdlib_dirs)]
        self.site_dirs = [os.path.abspath(d) for d in (default_site_dirs() if site_dirs is None else site_dirs)]

    def is_standard_path(self, path: str) -> bool:
        """Check whether a path belongs to the standard library installation."""
        if any(is_within(path, site_dir) for site_dir in self.site_dirs):
            return False
        return any(is_within(path, stdlib_dir) for stdlib_dir in self.stdlib_dirs)

    def _import_path_below(self, path: str, root: str, file_path: str) -> Tuple[str, str]:
        """Return (import path, directory) of the unit owning path below root."""
        directory = os.path.dirname(path)
        rel_dir = os.path.relpath(directory, root)

        if rel_dir == os.curdir:
            name, ext = os.path.splitext(os.path.basename(path))
            if ext != SOURCE_EXTENSION or not is_package_name(name) or name == "__init__":
                raise UnitNotFoundError(f"can't find unit containing {file_path}: not a module in {root}")
            return name, directory

        parts = rel_dir.split(os.sep)
        if not all(is_package_name(part) for part in parts):
            raise UnitNotFoundError(f"can't find unit containing {file_path}: '{rel_dir}' is not an importable package path")
        return ".".join(parts), directory

    def resolve(self, file_path: str, cwd: str) -> BuildUnit:
        """Find the build unit containing file_path.

        The file does not need to exist, so deleted files still resolve.
        Standard-library files resolve relative to the standard-library
        directory holding them, wherever the source root is.

        Args:
            file_path: Absolute path, or path relative to cwd
            cwd: Working directory used for relative paths

        Returns:
            The owning BuildUnit

        Raises:
            UnitNotFoundError: If no unit contains the file
        """
        path = os.path.normpath(os.path.join(cwd, file_path))

        if self.is_standard_path(path):
            stdlib_dir = next(d for d in self.stdlib_dirs if is_within(path, d))
            import_path, directory = self._import_path_below(path, stdlib_dir, file_path)
            return BuildUnit(import_path=import_path, directory=directory, is_standard=True)

        if not is_within(path, self.source_root) or path == self.source_root:
            raise UnitNotFoundError(f"can't find unit containing {file_path}: outside source root {self.source_root}")

        import_path, directory = self._import_path_below(path, self.source_root, file_path)
        return BuildUnit(import_path=import_path, directory=directory)


class _ImportCollector(ast.NodeVisitor):
    """Collect imported dotted names in source order."""

    def __init__(self, package: str):
        self.package = package
        self.targets: List[str] = []

    def visit_Import(self, node: ast.Import) -> None:
        for alias in node.names:
            self.targets.append(alias.name)

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        base = node.module or ""
        if node.level:
            package_parts = self.package.split(".") if self.package else []
            if node.level > len(package_parts):
                logger.debug("Relative import beyond top-level package in %s (line %s)", self.package or "<root>", node.lineno)
                return
            anchor = package_parts[: len(package_parts) - (node.level - 1)]
            base = ".".join(anchor + ([base] if base else []))
        if not base:
            return
        for alias in node.names:
            if alias.name == "*":
                self.targets.append(base)
            else:
                self.targets.append(f"{base}.{alias.name}")


def extract_imports(source: bytes, filename: str, package: str) -> List[str]:
    """Parse Python source and return the dotted names it imports.

    Args:
        source: Raw file content (encoding declarations are honored)
        filename: File name used in syntax error messages
        package: Package the file lives in, used to anchor relative imports

    Returns:
        Imported dotted names in source order (may contain duplicates)

    Raises:
        SyntaxError: If the source cannot be parsed
        ValueError: If the source contains null bytes
    """
    tree = ast.parse(source, filename=filename)
    collector = _ImportCollector(package)
    collector.visit(tree)
    return collector.targets


def resolve_import(target: str, known_units: Set[str]) -> str:
    """Map an imported dotted name to the unit providing it.

    The longest dotted prefix that is a known unit wins. Names from outside the
    repository map to their top-level name.
    """
    parts = target.split(".")
    for i in range(len(parts), 0, -1):
        candidate = ".".join(parts[:i])
        if candidate in known_units:
            return candidate
    return parts[0]


class RepositoryScanner:
    """Enumerate every build unit below a source root together with its imports.

    Per-unit failures are reported as ScanResult entries carrying an error.
    Directories without source files are skipped silently.
    """

    def __init__(self, source_root: str, stop_on_error: bool = False):
        self.source_root = os.path.abspath(source_root)
        self.stop_on_error = stop_on_error

    def discover_units(self) -> List[UnitCandidate]:
        """Walk the source root in sorted order and list candidate units."""
        candidates: List[UnitCandidate] = []

        def on_walk_error(error: OSError) -> None:
            failed_dir = error.filename if error.filename else self.source_root
            rel_dir = os.path.relpath(failed_dir, self.source_root)
            import_path = rel_dir.replace(os.sep, ".") if rel_dir != os.curdir else "<root>"
            candidates.append(UnitCandidate(import_path=import_path, directory=failed_dir, error=f"cannot read directory: {error.strerror or error}"))

        for dirpath, dirnames, filenames in os.walk(self.source_root, onerror=on_walk_error):
            dirnames[:] = sorted(d for d in dirnames if not d.startswith(".") and d not in PRUNED_DIRECTORY_NAMES and is_package_name(d))
            sources = sorted(f for f in filenames if f.endswith(SOURCE_EXTENSION))
            rel_dir = os.path.relpath(dirpath, self.source_root)

            if rel_dir == os.curdir:
                for filename in sources:
                    name = filename[: -len(SOURCE_EXTENSION)]
                    if not is_package_name(name) or name == "__init__":
                        continue
                    if name in dirnames:
                        logger.debug("Module %s is shadowed by package directory of the same name", filename)
                        continue
                    candidates.append(UnitCandidate(import_path=name, directory=dirpath, files=[os.path.join(dirpath, filename)], is_package=False))
                continue

            import_path = rel_dir.replace(os.sep, ".")
            candidates.append(UnitCandidate(import_path=import_path, directory=dirpath, files=[os.path.join(dirpath, f) for f in sources]))

        return candidates

    def read_unit_imports(self, candidate: UnitCandidate, known_units: Set[str]) -> List[str]:
        """Return the unit import paths a candidate directly depends on.

        Raises:
            NoSourcesError: If the candidate has no source files
            ScanError: If a source file cannot be read or parsed
        """
        if candidate.error:
            raise ScanError(candidate.import_path, candidate.error)
        if not candidate.files:
            raise NoSourcesError(f"no Python source files in {candidate.directory}")

        package = candidate.import_path if candidate.is_package else ""
        imports: List[str] = []
        seen: Set[str] = {candidate.import_path}

        # Importing a subpackage executes its parent package first
        if candidate.is_package and "." in candidate.import_path:
            parent = candidate.import_path.rsplit(".", 1)[0]
            if parent in known_units:
                imports.append(parent)
                seen.add(parent)

        for file_path in candidate.files:
            try:
                with open(file_path, "rb") as f:
                    source = f.read()
            except OSError as e:
                raise ScanError(candidate.import_path, f"cannot read {file_path}: {e}") from e

            try:
                targets = extract_imports(source, file_path, package)
            except (SyntaxError, ValueError) as e:
                raise ScanError(candidate.import_path, f"cannot parse {file_path}: {e}") from e

            for target in targets:
                unit = resolve_import(target, known_units)
                if unit not in seen:
                    seen.add(unit)
                    imports.append(unit)

        return imports

    def scan(self) -> Iterator[ScanResult]:
        """Yield a ScanResult for every unit below the source root.

        Results come in sorted walk order, so the recorded edge order is
        deterministic for a given tree.
        """
        candidates = self.discover_units()
        known_units = {c.import_path for c in candidates if c.files and not c.error}
        logger.info("Scanning %s candidate units below %s", len(candidates), self.source_root)

        for candidate in candidates:
            try:
                imports = self.read_unit_imports(candidate, known_units)
            except NoSourcesError as e:
                logger.debug("Skipping %s: %s", candidate.import_path, e)
                continue
            except ScanError as e:
                yield ScanResult(import_path=candidate.import_path, error=e)
                if self.stop_on_error:
                    return
                continue

            yield ScanResult(import_path=candidate.import_path, imports=imports)

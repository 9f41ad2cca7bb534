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
"""List the build units affected by the changes in a git revision range.

PURPOSE:
    Restrict CI test/build runs to the packages that can observe a change.
    A package is affected when it contains a changed file or when it imports,
    directly or transitively, a package that is affected.

WHAT IT DOES:
    - Runs 'git diff --name-only RANGE' to get the changed files
    - Maps every changed file to the build unit (package or top-level module) owning it
    - Scans every unit below the source root and records its imports
    - Inverts the import graph and closes the changed units over "is imported by"
    - Prints the affected import paths, one per line

USE CASES:
    - "Which test suites must run for this pull request?"
    - Skip building/testing packages no change can reach
    - Feed the affected list into pytest, tox or a build matrix

METHOD:
    1. Resolve changed files to units (skipping standard library and ignored units)
    2. Scan the repository; any unreadable or unparsable unit aborts the run, since
       an incomplete graph would silently under-report the impact
    3. Build the reverse-dependency index and compute the closure round by round

OUTPUT:
    - stdout: affected import paths, changed units first, then each propagation round
    - stderr: diagnostics for skipped files and scan errors
    - Nothing at all (exit code 0) when no unit is affected

REQUIREMENTS:
    - Python 3.9+
    - git repository
    - GitPython, networkx, colorama

EXAMPLES:
    # Units affected by the last commit
    ./changeImpact.py HEAD~1..HEAD

    # Units affected by a branch, ignoring vendored code
    ./changeImpact.py origin/main...HEAD --ignore-dirs .checkout_git,vendor

    # Only consider packages below src/ and export the import graph
    ./changeImpact.py v2.0.0..HEAD --source-root src --graphml impact.graphml
"""
import os
import sys
import argparse
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from impactlib.constants import (
    DEFAULT_IGNORE_PATTERNS,
    DEFAULT_LOG_LEVEL,
    EXIT_FAILURE,
    EXIT_KEYBOARD_INTERRUPT,
    EXIT_SUCCESS,
    ArgumentError,
    ChangedFilesError,
    GitRepositoryError,
    ImpactCheckError,
    ScanAbortedError,
    UnitNotFoundError,
)
from impactlib.color_utils import Colors, print_error, print_warning, should_use_color
from impactlib.git_utils import get_changed_files_in_range, get_repository_root
from impactlib.graph_utils import build_import_graph, build_reverse_dependency_index, compute_affected_units, export_graph_to_graphml
from impactlib.ignore_utils import IgnoreFilter, parse_ignore_patterns
from impactlib.unit_utils import RepositoryScanner, UnitResolver


@dataclass
class ImpactResult:
    """Result of change impact analysis.

    Attributes:
        seeds: Units directly containing a changed file, in change order
        affected: Seeds followed by every unit reached through imports
        unresolved_files: Changed files that belong to no unit
        standard_files: Changed files that belong to standard library units
    """

    seeds: List[str]
    affected: List[str]
    unresolved_files: List[str] = field(default_factory=list)
    standard_files: List[str] = field(default_factory=list)


def create_parser() -> argparse.ArgumentParser:
    """Create the command line parser."""
    parser = argparse.ArgumentParser(
        description="List the build units affected by the changes in a git revision range.",
        prog="changeImpact.py",
        epilog="""
Prints one import path per line: the packages containing a changed file, then
every package that imports one of them, directly or transitively.

Examples:
  # Units affected by the last commit
  %(prog)s HEAD~1..HEAD

  # Units affected by a branch
  %(prog)s origin/main...HEAD

  # Disable the default ignore pattern
  %(prog)s HEAD~3..HEAD --ignore-dirs ""

Requires: git, GitPython, networkx, colorama
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Validated by hand so a wrong count exits with 1, not argparse's 2
    parser.add_argument("commit_range", metavar="RANGE", nargs="*", help="Revision range understood by 'git diff' (e.g. HEAD~1..HEAD)")

    parser.add_argument(
        "--ignore-dirs",
        metavar="PATTERNS",
        default=DEFAULT_IGNORE_PATTERNS,
        help=f"Comma-separated substrings; matching paths and units are ignored (default: {DEFAULT_IGNORE_PATTERNS}, empty disables)",
    )

    parser.add_argument("--source-root", metavar="DIR", default=None, help="Directory holding the top-level packages, relative to the repository root (default: repository root)")

    parser.add_argument("--graphml", metavar="FILE", default=None, help="Write the import graph with seed/affected node attributes to FILE")

    parser.add_argument("--no-color", action="store_true", help="Disable colored diagnostics")

    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output (same as --log-level DEBUG)")

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=DEFAULT_LOG_LEVEL,
        help=f"Set logging level (default: {DEFAULT_LOG_LEVEL})",
    )

    return parser


def setup_logging(log_level_str: str) -> None:
    """Configure logging settings.

    Args:
        log_level_str: Logging level as string (DEBUG, INFO, etc.)
    """
    log_level = getattr(logging, log_level_str)
    logging.basicConfig(level=log_level, format="%(levelname)s: %(message)s", stream=sys.stderr)


def resolve_source_root(repo_dir: str, source_root: Optional[str]) -> str:
    """Return the absolute source root, defaulting to the repository root.

    Raises:
        ArgumentError: If the directory does not exist
    """
    if not source_root:
        return repo_dir
    path = os.path.normpath(os.path.join(repo_dir, source_root))
    if not os.path.isdir(path):
        raise ArgumentError(f"Source root is not a directory: {path}")
    return path


def resolve_seed_units(changed_files: Sequence[str], resolver: UnitResolver, ignore_filter: IgnoreFilter, cwd: str) -> ImpactResult:
    """Map changed files to the de-duplicated list of units they touch.

    Files that belong to no unit are reported and skipped; they never stop the run.

    Returns:
        ImpactResult whose affected list is still empty
    """
    result = ImpactResult(seeds=[], affected=[])
    seen = set()

    kept_files, ignored_files = ignore_filter.partition(changed_files)
    if ignored_files:
        logging.debug("Ignoring %s changed files: %s", len(ignored_files), ", ".join(ignored_files))

    for file_path in kept_files:
        try:
            unit = resolver.resolve(file_path, cwd)
        except UnitNotFoundError as e:
            print_warning(f"Error finding unit for file {file_path}: {e}", prefix=False)
            result.unresolved_files.append(file_path)
            continue

        if unit.is_standard:
            print_warning(f"Ignoring standard library file {file_path}", prefix=False)
            result.standard_files.append(file_path)
            continue

        if ignore_filter.is_unit_ignored(unit.import_path):
            logging.debug("Ignoring unit %s of file %s", unit.import_path, file_path)
            continue

        if unit.import_path in seen:
            continue

        seen.add(unit.import_path)
        result.seeds.append(unit.import_path)

    logging.info("%s changed files touch %s units", len(changed_files), len(result.seeds))
    return result


def collect_import_relation(scanner: RepositoryScanner, ignore_filter: IgnoreFilter) -> List[Tuple[str, List[str]]]:
    """Run the repository scan and return the (import path, imports) relation.

    Ignored units are dropped before their result is inspected, so a broken
    ignored unit is not an error. Every other failure is reported.

    Raises:
        ScanAbortedError: If any unit could not be scanned
    """
    relation: List[Tuple[str, List[str]]] = []
    error_count = 0

    for scan_result in scanner.scan():
        if ignore_filter.is_unit_ignored(scan_result.import_path):
            continue
        if not scan_result.ok:
            print_error(f"Could not read unit {scan_result.error}", prefix=False)
            error_count += 1
            continue
        relation.append((scan_result.import_path, scan_result.imports))

    if error_count:
        raise ScanAbortedError(f"Unit scan incomplete ({error_count} units failed), aborting")

    logging.info("Scanned %s units", len(relation))
    return relation


def run_impact_analysis(
    changed_files: Sequence[str],
    resolver: UnitResolver,
    scanner: RepositoryScanner,
    ignore_filter: IgnoreFilter,
    cwd: str,
    graphml_path: Optional[str] = None,
) -> ImpactResult:
    """Compute the affected units for a list of changed files.

    Args:
        changed_files: Changed file paths (absolute, or relative to cwd)
        resolver: Maps a file to its owning unit
        scanner: Enumerates every unit and its imports
        ignore_filter: Applied to changed files, seeds and scanned units
        cwd: Working directory for relative paths
        graphml_path: Optional GraphML output path for the import graph

    Returns:
        ImpactResult with seeds and affected units

    Raises:
        ScanAbortedError: If the repository scan reported errors
        ImpactCheckError: If the graph could not be exported
    """
    result = resolve_seed_units(changed_files, resolver, ignore_filter, cwd)

    relation = collect_import_relation(scanner, ignore_filter)
    reverse_index = build_reverse_dependency_index(relation, ignore_filter)
    result.affected = compute_affected_units(result.seeds, reverse_index, ignore_filter)

    if graphml_path:
        graph = build_import_graph(relation, ignore_filter)
        if not export_graph_to_graphml(graph, graphml_path, result.seeds, result.affected):
            raise ImpactCheckError(f"Could not write import graph to {graphml_path}")

    return result


def print_affected_units(affected: Sequence[str]) -> None:
    """Print affected import paths to stdout, one per line."""
    if affected:
        print("\n".join(affected))


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the script.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging("DEBUG" if args.verbose else args.log_level)
    if not should_use_color(no_color=args.no_color):
        Colors.disable()

    if len(args.commit_range) != 1:
        parser.print_usage(sys.stderr)
        print_error(f"expected exactly one revision range such as HEAD~1..HEAD, got {len(args.commit_range)} arguments")
        return EXIT_FAILURE

    commit_range = args.commit_range[0]
    cwd = os.getcwd()

    try:
        repo_dir = get_repository_root(cwd)
        changed_files = get_changed_files_in_range(repo_dir, commit_range)
    except (GitRepositoryError, ChangedFilesError) as e:
        print_error(str(e))
        return e.exit_code

    try:
        source_root = resolve_source_root(repo_dir, args.source_root)
    except ArgumentError as e:
        print_error(str(e))
        return e.exit_code

    ignore_filter = IgnoreFilter(parse_ignore_patterns(args.ignore_dirs))
    logging.debug("Repository root: %s, source root: %s, %r", repo_dir, source_root, ignore_filter)

    try:
        result = run_impact_analysis(
            changed_files,
            UnitResolver(source_root),
            RepositoryScanner(source_root),
            ignore_filter,
            cwd,
            graphml_path=args.graphml,
        )
    except ImpactCheckError as e:
        print_error(str(e))
        return e.exit_code

    print_affected_units(result.affected)
    return EXIT_SUCCESS


def run() -> None:
    """Console entry point: run main() and map failures to exit codes."""
    try:
        exit_code = main()
        sys.exit(exit_code)
    except KeyboardInterrupt:
        print_warning("\nOperation cancelled by user", prefix=False)
        sys.exit(EXIT_KEYBOARD_INTERRUPT)
    except Exception as e:
        logging.error("Unexpected error: %s", e)
        if logging.getLogger().level == logging.DEBUG:
            import traceback

            traceback.print_exc()
        sys.exit(EXIT_FAILURE)


if __name__ == "__main__":
    run()

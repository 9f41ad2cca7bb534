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
"""Utilities for Git operations."""

import os
import logging
from typing import List, Optional

from git import Repo, GitCommandError, InvalidGitRepositoryError, NoSuchPathError
from git.exc import GitError

from .constants import ChangedFilesError, GitRepositoryError

logger = logging.getLogger(__name__)


def find_git_repo(start_path: str) -> Optional[str]:
    """Find the git repository root by searching upward from start_path.

    Args:
        start_path: Directory to start searching from

    Returns:
        Absolute path to git repository root, or None if not found
    """
    try:
        repo = Repo(start_path, search_parent_directories=True)
        repo_root = repo.working_dir
        if repo_root is not None:
            logger.debug("Found git repository at: %s", repo_root)
            return str(repo_root)
    except (InvalidGitRepositoryError, NoSuchPathError, GitError):
        pass
    return None


def get_repository_root(start_path: str) -> str:
    """Return the repository root containing start_path.

    Raises:
        GitRepositoryError: If start_path is not inside a git work tree
    """
    repo_root = find_git_repo(start_path)
    if repo_root is None:
        raise GitRepositoryError(f"Could not find git root from {start_path}")
    return repo_root


def parse_name_only_output(output: str, repo_dir: str) -> List[str]:
    """Turn 'git diff --name-only -z' output into absolute paths.

    Paths are NUL-terminated and unquoted, so non-ASCII names come through
    verbatim. Empty entries are dropped; order is kept as git printed it.
    """
    changed_files = []
    for relative_path in output.split("\0"):
        if not relative_path:
            continue
        changed_files.append(os.path.join(repo_dir, relative_path))
    return changed_files


def get_changed_files_in_range(repo_dir: str, commit_range: str) -> List[str]:
    """List the files changed in a revision range.

    Deleted files are included; they still identify the unit they belonged to.

    Args:
        repo_dir: Path to the git repository root
        commit_range: Anything 'git diff' accepts (e.g. 'HEAD~5..HEAD', 'origin/main...HEAD')

    Returns:
        Absolute paths of the changed files, in git's output order

    Raises:
        ChangedFilesError: If the diff cannot be computed
    """
    try:
        repo = Repo(repo_dir)
    except (InvalidGitRepositoryError, NoSuchPathError) as e:
        raise ChangedFilesError(f"Not a git repository: {repo_dir}") from e

    try:
        # Paths relative to the repository root regardless of where git is run
        output = repo.git.diff("--name-only", "-z", "--no-renames", commit_range, "--")
    except GitCommandError as e:
        stderr = e.stderr.strip() if isinstance(e.stderr, str) else e.stderr
        raise ChangedFilesError(f"Could not run git diff for {commit_range}: {stderr}") from e

    changed_files = parse_name_only_output(output, repo_dir)
    logger.info("Found %s changed files in %s", len(changed_files), commit_range)
    return changed_files

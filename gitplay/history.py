"""Reading the commit log and managing local branches."""

from __future__ import annotations

import re

from .repository import GitError, Repository

_BAD_NAME = re.compile(r"[\x00-\x20\x7f~^:?*\[\\]|\.\.|@\{|//")


def _check_branch_name(name: str) -> None:
    if (
        not name
        or name == "@"
        or name.startswith(("-", "/", "."))
        or name.endswith(("/", ".", ".lock"))
        or "/." in name
        or _BAD_NAME.search(name)
    ):
        raise GitError(f"'{name}' is not a valid branch name")


def git_log(workdir=".") -> list[str]:
    """Return 'oid: summary' for every commit reachable from HEAD, newest first."""
    repo = Repository.open(workdir)
    return [f"{commit.oid}: {commit.summary}" for commit in repo.walk(repo.head_target())]


def git_show_branch(workdir=".") -> list[tuple[str, bool]]:
    """Print the local branches, marking the checked-out one.

    Returns (name, is_current) pairs in the printed order.
    """
    repo = Repository.open(workdir)
    head_name = repo.head_shorthand()
    listing = [(name, name == head_name) for name in repo.branches()]
    print("Branch 목록:")
    for name, current in listing:
        print(f"* {name}" if current else f"  {name}")
    return listing


def git_create_branch(branch_name: str, workdir=".") -> str:
    """Create a branch at the HEAD commit; fails if it already exists."""
    repo = Repository.open(workdir)
    _check_branch_name(branch_name)
    commit = repo.find_commit(repo.head_target())
    if branch_name in repo.branches():
        raise GitError(f"a branch named '{branch_name}' already exists")
    repo.set_reference(f"refs/heads/{branch_name}", commit.oid)
    print(f"branch '{branch_name}' created")
    return commit.oid


def git_delete_branch(branch_name: str, workdir=".") -> None:
    """Delete a local branch other than the checked-out one."""
    repo = Repository.open(workdir)
    if repo.head_shorthand() == branch_name:
        raise GitError("현재 체크아웃 된 브랜치는 삭제 불가")
    if branch_name not in repo.branches():
        raise GitError(f"cannot locate local branch '{branch_name}'")
    repo.delete_reference(f"refs/heads/{branch_name}")
    print(f"branch '{branch_name}' deleted")
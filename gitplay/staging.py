"""Creating a repository, staging files and recording commits."""

from __future__ import annotations

from .repository import GitError, Repository


def git_init(workdir=".") -> Repository:
    """Create a repository in workdir, or reopen the one already there."""
    repo = Repository.init(workdir)
    print("repo init success.")
    return repo


def git_add(path: str, workdir=".") -> list[str]:
    """Stage one file, or every file when path is '.'; return the staged paths."""
    repo = Repository.open(workdir)
    if path == ".":
        added = repo.add_all()
        print("all added.")
        return added
    entry = repo.add_path(path)
    print(f"{path} added.")
    return [entry.path]


def git_commit(message: str, workdir=".") -> str:
    """Record the index as a new commit on HEAD and return its id."""
    repo = Repository.open(workdir)
    tree = repo.write_tree()
    try:
        parents = [repo.find_commit(repo.head_target()).oid]
    except GitError:
        parents = []
    oid = repo.create_commit(message, tree, parents)
    print(f"commit created: {oid}")
    return oid
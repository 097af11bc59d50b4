"""Switching branches, restoring files and reverting commits."""

from __future__ import annotations

import re

from .repository import GitError, IndexEntry, Repository

_OID_RE = re.compile(r"^[0-9a-fA-F]{1,40}$")


def git_checkout(branch: str, workdir=".") -> str:
    """Force the working tree to a branch or commit and point HEAD at it.

    A local branch is checked out symbolically; anything else detaches HEAD.
    Returns the id of the checked-out commit.
    """
    repo = Repository.open(workdir)
    oid, refname = repo.revparse(branch)
    commit = repo.find_commit(oid)
    repo.checkout_tree(commit.tree)
    if refname is not None and refname.startswith("refs/heads/"):
        repo.set_head(refname)
    else:
        repo.set_head_detached(commit.oid)
    return commit.oid


def git_restore(path: str, workdir=".") -> None:
    """Overwrite one path in the working tree and index with its HEAD version."""
    repo = Repository.open(workdir)
    commit = repo.find_commit(repo.head_target())
    repo.checkout_tree(commit.tree, [path])


def _remove_file(repo: Repository, path: str) -> None:
    workdir = repo.workdir
    full = workdir / path
    if full.is_file():
        full.unlink()
        parent = full.parent
        while parent != workdir and not any(parent.iterdir()):
            parent.rmdir()
            parent = parent.parent


def git_revert(commit_id: str, workdir=".") -> str:
    """Record a new commit that undoes the changes of the given commit.

    The reverse of the commit's diff against its first parent is applied to
    the index and working tree; the new commit's id is returned.
    """
    if not _OID_RE.match(commit_id):
        raise GitError(f"unable to parse OID - contains invalid characters: '{commit_id}'")
    repo = Repository.open(workdir)
    if repo.workdir is None:
        raise GitError("cannot revert in a bare repository")

    target = repo.find_commit(commit_id.lower())
    if not target.parents:
        raise GitError("parent 0 does not exist")
    parent = repo.find_commit(target.parents[0])

    before = repo.flatten_tree(target.tree)
    after = repo.flatten_tree(parent.tree)
    changed = sorted(p for p in before.keys() | after.keys() if before.get(p) != after.get(p))

    entries = repo.read_index()
    for path in changed:
        if any((path, stage) in entries for stage in (1, 2, 3)):
            raise GitError(f"'{path}' has unresolved conflicts in the index")
        current = entries.get((path, 0))
        preimage = before.get(path)
        if preimage is None:
            if current is not None:
                raise GitError(f"'{path}' already exists in index")
        elif current is None or current.oid != preimage[1]:
            raise GitError(f"patch does not apply to '{path}'")
        postimage = after.get(path)
        if postimage is None:
            entries.pop((path, 0), None)
        else:
            mode, oid = postimage
            entries[(path, 0)] = IndexEntry(path=path, oid=oid, mode=mode)
    repo.write_index(entries)
    tree = repo.write_tree()

    for path in changed:
        if path not in after:
            _remove_file(repo, path)
    restored = [p for p in changed if p in after]
    if restored:
        repo.checkout_tree(tree, restored)

    head = repo.find_commit(repo.head_target())
    message = f'Revert "{target.summary}"'
    oid = repo.create_commit(message, tree, [head.oid])
    print(f"Revert commit created: {message}")
    return oid
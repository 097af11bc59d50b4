"""Pushing commits to a remote repository on the local filesystem."""

from __future__ import annotations

import re

from .repository import MODE_TREE, GitError, Repository

_MODE_GITLINK = 0o160000


def _local_path(url: str) -> str:
    if url.startswith("file://"):
        return url[len("file://"):]
    if "://" in url or re.match(r"^[\w.-]+@[\w.-]+:", url):
        raise GitError(f"unsupported URL protocol: '{url}'")
    return url


def _parse_refspec(refspec: str) -> tuple[bool, str, str]:
    force = refspec.startswith("+")
    spec = refspec[1:] if force else refspec
    src, _, dst = spec.partition(":")
    if not src and not dst:
        raise GitError(f"invalid refspec '{refspec}'")
    if dst and not dst.startswith("refs/"):
        dst = f"refs/heads/{dst}"
    return force, src, dst


def _has(repo: Repository, oid: str) -> bool:
    try:
        repo.read_object(oid)
    except GitError:
        return False
    return True


def _tree_children(data: bytes):
    pos = 0
    while pos < len(data):
        space = data.index(b" ", pos)
        nul = data.index(b"\0", space)
        yield int(data[pos:space], 8), data[nul + 1:nul + 21].hex()
        pos = nul + 21


def _copy_tree(source: Repository, target: Repository, oid: str) -> None:
    if _has(target, oid):
        return
    kind, data = source.read_object(oid)
    for mode, child in _tree_children(data):
        if mode == MODE_TREE:
            _copy_tree(source, target, child)
        elif mode != _MODE_GITLINK and not _has(target, child):
            target.write_object(*source.read_object(child))
    target.write_object(kind, data)


def _copy_commits(source: Repository, target: Repository, oid: str) -> None:
    pending = [oid]
    while pending:
        current = pending.pop()
        if _has(target, current):
            continue
        commit = source.find_commit(current)
        _copy_tree(source, target, commit.tree)
        target.write_object(*source.read_object(current))
        pending.extend(commit.parents)


def _ensure_fast_forward(repo: Repository, remote: Repository, dst: str, new: str) -> None:
    try:
        old = remote.resolve_reference(dst)
    except GitError:
        return
    if old != new and not any(commit.oid == old for commit in repo.walk(new)):
        raise GitError("cannot push non-fastforwardable reference")


def git_push(remote_name: str, refspec: str, workdir=".") -> str | None:
    """Send the commit named by refspec to a remote and update its reference.

    A leading '+' allows non-fast-forward updates and an empty source deletes
    the remote reference. Returns the pushed commit id, or None on deletion.
    """
    repo = Repository.open(workdir)
    remote = Repository.open(_local_path(repo.remote_url(remote_name)))
    force, src, dst = _parse_refspec(refspec)

    pushed = None
    if not src:
        remote.delete_reference(dst)
    else:
        oid, refname = repo.revparse(src)
        if not dst:
            if refname is None or not refname.startswith("refs/"):
                raise GitError(f"cannot infer the destination of '{src}'")
            dst = refname
        commit = repo.find_commit(oid)
        if not force:
            _ensure_fast_forward(repo, remote, dst, commit.oid)
        _copy_commits(repo, remote, commit.oid)
        remote.set_reference(dst, commit.oid)
        pushed = commit.oid
    print(f"push complete to remote: {remote_name}")
    return pushed
"""Three-way merging of a local branch into the checked-out one."""

from __future__ import annotations

import hashlib
from difflib import SequenceMatcher
from pathlib import Path

from .repository import MODE_EXEC, GitError, IndexEntry, Repository


def _merge_base(repo: Repository, ours: str, theirs: str) -> str | None:
    ancestors = {commit.oid for commit in repo.walk(ours)}
    for commit in repo.walk(theirs):
        if commit.oid in ancestors:
            return commit.oid
    return None


def _hunks(base: list[bytes], other: list[bytes]) -> list[tuple[int, int, list[bytes]]]:
    matcher = SequenceMatcher(None, base, other, autojunk=False)
    return [
        (i1, i2, other[j1:j2])
        for tag, i1, i2, j1, j2 in matcher.get_opcodes()
        if tag != "equal"
    ]


def _apply(base: list[bytes], hunks, lo: int, hi: int) -> list[bytes]:
    out, pos = [], lo
    for start, end, lines in hunks:
        out += base[pos:start]
        out += lines
        pos = end
    out += base[pos:hi]
    return out


def _terminated(lines: list[bytes]) -> list[bytes]:
    if lines and not lines[-1].endswith(b"\n"):
        return lines[:-1] + [lines[-1] + b"\n"]
    return lines


def _merge_lines(base: bytes, ours: bytes, theirs: bytes, label: str) -> tuple[bytes, bool]:
    """Merge two descendants of base line by line; return (content, conflicted)."""
    base_lines = base.splitlines(keepends=True)
    mine = _hunks(base_lines, ours.splitlines(keepends=True))
    yours = _hunks(base_lines, theirs.splitlines(keepends=True))
    out: list[bytes] = []
    pos, i, j, conflicted = 0, 0, 0, False
    while i < len(mine) or j < len(yours):
        lo = hi = min(h[0] for h in mine[i:i + 1] + yours[j:j + 1])
        ours_part, theirs_part = [], []
        grew = True
        while grew:
            grew = False
            while i < len(mine) and mine[i][0] <= hi:
                ours_part.append(mine[i])
                hi = max(hi, mine[i][1])
                i += 1
                grew = True
            while j < len(yours) and yours[j][0] <= hi:
                theirs_part.append(yours[j])
                hi = max(hi, yours[j][1])
                j += 1
                grew = True
        out += base_lines[pos:lo]
        side_a = _apply(base_lines, ours_part, lo, hi)
        side_b = _apply(base_lines, theirs_part, lo, hi)
        if not theirs_part or side_a == side_b:
            out += side_a
        elif not ours_part:
            out += side_b
        else:
            conflicted = True
            out.append(b"<<<<<<< HEAD\n")
            out += _terminated(side_a)
            out.append(b"=======\n")
            out += _terminated(side_b)
            out.append(f">>>>>>> {label}\n".encode())
        pos = hi
    out += base_lines[pos:]
    return b"".join(out), conflicted


def _blob_id(data: bytes) -> str:
    return hashlib.sha1(b"blob %d\0" % len(data) + data).hexdigest()


def _write_file(full: Path, data: bytes, mode: int) -> None:
    full.parent.mkdir(parents=True, exist_ok=True)
    full.write_bytes(data)
    full.chmod(0o755 if mode == MODE_EXEC else 0o644)


def _check_clean(repo: Repository, entries: dict, ours: dict, paths) -> None:
    for path in sorted(paths):
        expected = ours.get(path)
        expected_oid = expected[1] if expected else None
        staged = entries.get((path, 0))
        full = repo.workdir / path
        on_disk = _blob_id(full.read_bytes()) if full.is_file() else None
        if (staged.oid if staged else None) != expected_oid or on_disk != expected_oid:
            raise GitError(f"uncommitted changes to '{path}' would be overwritten by merge")


def _record_conflicts(repo, entries, result, changed, conflicts, theirs_oid) -> None:
    workdir = repo.workdir
    for path in changed:
        entries.pop((path, 0), None)
        value = result.get(path)
        full = workdir / path
        if value is None:
            if full.is_file():
                full.unlink()
        else:
            mode, oid = value
            _write_file(full, repo.read_object(oid)[1], mode)
            entries[(path, 0)] = IndexEntry(path=path, oid=oid, mode=mode)
    for path, (base, ours, theirs, data) in conflicts.items():
        entries.pop((path, 0), None)
        for stage, side in ((1, base), (2, ours), (3, theirs)):
            if side is not None:
                entries[(path, stage)] = IndexEntry(path=path, oid=side[1], mode=side[0],
                                                    stage=stage)
        present = ours if ours is not None else theirs
        if data is None:
            data = repo.read_object(present[1])[1]
        _write_file(workdir / path, data, present[0])
    repo.write_index(entries)
    for path in sorted(changed):
        if path in result:
            repo.add_path(path)
    (repo.gitdir / "MERGE_HEAD").write_text(theirs_oid + "\n", encoding="utf-8")


def _report_conflicts(workdir: Path, conflicts: dict) -> None:
    print("충돌 파일 목록:")
    for path, (_, ours, _, _) in conflicts.items():
        if ours is None:
            continue
        print(f"* {path}")
        try:
            text = (workdir / path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            print("파일 읽기 실패")
            continue
        for line_no, line in enumerate(text.splitlines()):
            print(f"{line_no}: {line}")


def git_merge(branch: str, workdir=".") -> str:
    """Merge a local branch into HEAD and record a merge commit.

    On conflicts the index holds the conflicting stages, the working files
    hold conflict markers, and GitError is raised. Returns the merge commit id.
    """
    repo = Repository.open(workdir)
    if repo.workdir is None:
        raise GitError("cannot merge in a bare repository")
    if branch not in repo.branches():
        raise GitError(f"cannot locate local branch '{branch}'")

    theirs_commit = repo.find_commit(repo.resolve_reference(f"refs/heads/{branch}"))
    head_commit = repo.find_commit(repo.head_target())
    entries = repo.read_index()
    if any(stage for _, stage in entries):
        raise GitError("index has unresolved conflicts")

    base_oid = _merge_base(repo, head_commit.oid, theirs_commit.oid)
    base = repo.flatten_tree(repo.find_commit(base_oid).tree) if base_oid else {}
    ours = repo.flatten_tree(head_commit.tree)
    theirs = repo.flatten_tree(theirs_commit.tree)

    result = {e.path: (e.mode, e.oid) for e in entries.values()}
    changed: set[str] = set()
    conflicts: dict = {}
    for path in sorted(base.keys() | ours.keys() | theirs.keys()):
        b, o, t = base.get(path), ours.get(path), theirs.get(path)
        if o == t or b == t:
            continue
        if b == o:
            changed.add(path)
            if t is None:
                result.pop(path, None)
            else:
                result[path] = t
            continue
        if o is None or t is None:
            conflicts[path] = (b, o, t, None)
            continue
        base_data = repo.read_object(b[1])[1] if b else b""
        merged, conflicted = _merge_lines(
            base_data, repo.read_object(o[1])[1], repo.read_object(t[1])[1], branch)
        if conflicted:
            conflicts[path] = (b, o, t, merged)
            continue
        base_mode = b[0] if b else o[0]
        mode = t[0] if o[0] == base_mode else o[0]
        result[path] = (mode, repo.write_object("blob", merged))
        changed.add(path)

    _check_clean(repo, entries, ours, changed | conflicts.keys())

    if conflicts:
        _record_conflicts(repo, entries, result, changed, conflicts, theirs_commit.oid)
        _report_conflicts(repo.workdir, conflicts)
        raise GitError("머지 충돌 발생")

    tree = repo.write_tree_from(result)
    oid = repo.create_commit("Merge commit", tree, [head_commit.oid, theirs_commit.oid])
    if changed:
        repo.checkout_tree(tree, sorted(changed))
    return oid
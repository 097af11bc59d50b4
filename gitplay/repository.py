"""A small on-disk Git repository: objects, index, references and config."""

from __future__ import annotations

import hashlib
import heapq
import os
import re
import struct
import time
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Mapping

MODE_FILE = 0o100644
MODE_EXEC = 0o100755
MODE_TREE = 0o40000


class GitError(Exception):
    """Raised when a repository operation cannot be carried out."""


@dataclass(frozen=True)
class Signature:
    """Name, e-mail and timestamp of an author or committer."""

    name: str
    email: str
    time: int
    offset: int = 0  # minutes east of UTC

    def format(self) -> str:
        sign = "-" if self.offset < 0 else "+"
        hours, minutes = divmod(abs(self.offset), 60)
        return f"{self.name} <{self.email}> {self.time} {sign}{hours:02d}{minutes:02d}"

    @classmethod
    def parse(cls, text: str) -> "Signature":
        match = re.match(r"^(.*) <(.*)> (\d+) ([+-])(\d{2})(\d{2})$", text)
        if not match:
            raise GitError(f"malformed signature: {text!r}")
        name, email, stamp, sign, hours, minutes = match.groups()
        offset = int(hours) * 60 + int(minutes)
        return cls(name, email, int(stamp), -offset if sign == "-" else offset)


@dataclass(frozen=True)
class Commit:
    """A parsed commit object."""

    oid: str
    tree: str
    parents: tuple[str, ...]
    author: Signature
    committer: Signature
    message: str

    @property
    def summary(self) -> str:
        """The first paragraph of the message on one line."""
        first = self.message.lstrip().split("\n\n", 1)[0]
        return first.replace("\n", " ").rstrip()


@dataclass(frozen=True)
class TreeEntry:
    """One entry of a tree object."""

    mode: int
    name: str
    oid: str


@dataclass(frozen=True)
class IndexEntry:
    """One entry of the staging area."""

    path: str
    oid: str
    mode: int = MODE_FILE
    size: int = 0
    stage: int = 0


def _read_config(path: Path) -> dict:
    sections: dict = {}
    if not path.is_file():
        return sections
    current = None
    for raw in path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line[0] in "#;":
            continue
        header = re.match(r'^\[([^\s\]"]+)(?:\s+"(.*)")?\]$', line)
        if header:
            current = sections.setdefault((header.group(1).lower(), header.group(2)), {})
        elif current is not None:
            key, _, value = line.partition("=")
            current[key.strip().lower()] = value.strip().strip('"')
    return sections


def _write_config(path: Path, sections: dict) -> None:
    lines = []
    for (name, sub), values in sections.items():
        lines.append(f'[{name} "{sub}"]' if sub is not None else f"[{name}]")
        lines.extend(f"\t{key} = {value}" for key, value in values.items())
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def _in_paths(path: str, paths) -> bool:
    return paths is None or any(
        path == p or path.startswith(p.rstrip("/") + "/") for p in paths
    )


def _padded(length: int) -> int:
    return (length + 8) // 8 * 8


class Repository:
    """A repository with an optional working directory."""

    def __init__(self, gitdir: Path, workdir: Path | None) -> None:
        self.gitdir = gitdir
        self.workdir = workdir

    @classmethod
    def init(cls, path) -> "Repository":
        """Create (or reopen) a repository with a working directory at path."""
        workdir = Path(path).resolve()
        gitdir = workdir / ".git"
        for sub in ("objects", "refs/heads"):
            (gitdir / sub).mkdir(parents=True, exist_ok=True)
        if not (gitdir / "HEAD").exists():
            (gitdir / "HEAD").write_text("ref: refs/heads/main\n", encoding="utf-8")
        if not (gitdir / "config").exists():
            _write_config(gitdir / "config", {("core", None): {"bare": "false"}})
        return cls(gitdir, workdir)

    @classmethod
    def open(cls, path) -> "Repository":
        """Open the repository at path, with a working tree or bare."""
        root = Path(path).resolve()
        if (root / ".git" / "HEAD").is_file():
            return cls(root / ".git", root)
        if (root / "HEAD").is_file() and (root / "objects").is_dir():
            return cls(root, None)
        raise GitError(f"could not find repository at '{root}'")

    def _require_workdir(self) -> Path:
        if self.workdir is None:
            raise GitError("cannot operate on a bare repository")
        return self.workdir

    def _object_path(self, oid: str) -> Path:
        return self.gitdir / "objects" / oid[:2] / oid[2:]

    def write_object(self, kind: str, data: bytes) -> str:
        raw = f"{kind} {len(data)}".encode() + b"\0" + data
        oid = hashlib.sha1(raw).hexdigest()
        target = self._object_path(oid)
        if not target.exists():
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(zlib.compress(raw))
        return oid

    def read_object(self, oid: str) -> tuple[str, bytes]:
        target = self._object_path(oid)
        if len(oid) != 40 or not target.is_file():
            raise GitError(f"object not found: {oid}")
        header, _, data = zlib.decompress(target.read_bytes()).partition(b"\0")
        return header.decode().partition(" ")[0], data

    def read_index(self) -> dict[tuple[str, int], IndexEntry]:
        """Return index entries keyed by (path, stage)."""
        path = self.gitdir / "index"
        if not path.is_file():
            return {}
        data = path.read_bytes()
        if data[:4] != b"DIRC" or hashlib.sha1(data[:-20]).digest() != data[-20:]:
            raise GitError("invalid index file")
        (count,) = struct.unpack(">I", data[8:12])
        pos = 12
        entries: dict[tuple[str, int], IndexEntry] = {}
        for _ in range(count):
            fields = struct.unpack(">10I20sH", data[pos:pos + 62])
            end = data.index(b"\0", pos + 62)
            name = data[pos + 62:end].decode("utf-8")
            stage = (fields[11] >> 12) & 3
            entries[(name, stage)] = IndexEntry(name, fields[10].hex(), fields[6],
                                                fields[9], stage)
            pos += _padded(end - pos)
        return entries

    def write_index(self, entries) -> None:
        if isinstance(entries, Mapping):
            entries = entries.values()
        ordered = sorted(entries, key=lambda e: (e.path.encode(), e.stage))
        body = bytearray(b"DIRC" + struct.pack(">II", 2, len(ordered)))
        for e in ordered:
            name = e.path.encode("utf-8")
            flags = min(len(name), 0xFFF) | (e.stage << 12)
            body += struct.pack(">10I20sH", 0, 0, 0, 0, 0, 0, e.mode, 0, 0,
                                e.size & 0xFFFFFFFF, bytes.fromhex(e.oid), flags)
            body += name + b"\0" * (_padded(62 + len(name)) - 62 - len(name))
        body += hashlib.sha1(body).digest()
        (self.gitdir / "index").write_bytes(bytes(body))

    def _stage_file(self, rel: str, entries: dict) -> IndexEntry:
        full = self._require_workdir() / rel
        if not full.is_file():
            raise GitError(f"could not find '{rel}' to stat")
        data = full.read_bytes()
        entry = IndexEntry(rel, self.write_object("blob", data), MODE_FILE, len(data))
        for stage in (1, 2, 3):
            entries.pop((rel, stage), None)
        entries[(rel, 0)] = entry
        return entry

    def add_path(self, path) -> IndexEntry:
        """Stage one file, given relative to the working directory."""
        rel = Path(path).as_posix()
        if rel.startswith("/") or rel.split("/")[0] == ".git":
            raise GitError(f"invalid path '{rel}'")
        entries = self.read_index()
        entry = self._stage_file(rel, entries)
        self.write_index(entries)
        return entry

    def add_all(self) -> list[str]:
        """Stage every file of the working directory; return the staged paths."""
        workdir = self._require_workdir()
        entries = self.read_index()
        added = []
        for root, dirs, files in os.walk(workdir):
            dirs[:] = sorted(d for d in dirs if d != ".git")
            for name in sorted(files):
                rel = (Path(root) / name).relative_to(workdir).as_posix()
                self._stage_file(rel, entries)
                added.append(rel)
        self.write_index(entries)
        return added

    def write_tree(self) -> str:
        """Write the index as a tree; fails while conflicts remain."""
        entries = self.read_index()
        if any(stage for _, stage in entries):
            raise GitError("cannot create a tree from a not fully merged index")
        return self.write_tree_from({e.path: (e.mode, e.oid) for e in entries.values()})

    def write_tree_from(self, entries) -> str:
        """Write a tree from a mapping of path to (mode, oid)."""
        root: dict = {}
        for path, value in entries.items():
            *dirs, name = path.split("/")
            node = root
            for part in dirs:
                node = node.setdefault(part, {})
            node[name] = value
        return self._write_node(root)

    def _write_node(self, node: dict) -> str:
        body = bytearray()
        for name, value in sorted(
            node.items(), key=lambda item: item[0] + "/" if isinstance(item[1], dict) else item[0]
        ):
            mode, oid = (MODE_TREE, self._write_node(value)) if isinstance(value, dict) else value
            body += f"{mode:o} {name}".encode() + b"\0" + bytes.fromhex(oid)
        return self.write_object("tree", bytes(body))

    def _read_tree(self, oid: str) -> Iterator[TreeEntry]:
        kind, data = self.read_object(oid)
        if kind != "tree":
            raise GitError(f"object {oid} is not a tree")
        pos = 0
        while pos < len(data):
            space = data.index(b" ", pos)
            nul = data.index(b"\0", space)
            yield TreeEntry(int(data[pos:space], 8), data[space + 1:nul].decode(),
                            data[nul + 1:nul + 21].hex())
            pos = nul + 21

    def flatten_tree(self, oid: str) -> dict[str, tuple[int, str]]:
        """Map every file path below a tree to its (mode, oid)."""
        result: dict[str, tuple[int, str]] = {}
        for entry in self._read_tree(oid):
            if entry.mode == MODE_TREE:
                for sub, value in self.flatten_tree(entry.oid).items():
                    result[f"{entry.name}/{sub}"] = value
            else:
                result[entry.name] = (entry.mode, entry.oid)
        return result

    def find_commit(self, oid: str) -> Commit:
        kind, data = self.read_object(oid)
        if kind != "commit":
            raise GitError(f"object {oid} is not a commit")
        head, _, message = data.decode("utf-8").partition("\n\n")
        fields: dict[str, list[str]] = {}
        for line in head.split("\n"):
            key, _, value = line.partition(" ")
            fields.setdefault(key, []).append(value)
        try:
            return Commit(oid, fields["tree"][0], tuple(fields.get("parent", ())),
                          Signature.parse(fields["author"][0]),
                          Signature.parse(fields["committer"][0]), message)
        except KeyError as exc:
            raise GitError(f"malformed commit {oid}") from exc

    def create_commit(self, message: str, tree: str, parents) -> str:
        """Write a commit and move HEAD (or the branch it names) to it."""
        sig = self.signature().format()
        lines = [f"tree {tree}", *(f"parent {p}" for p in parents),
                 f"author {sig}", f"committer {sig}"]
        oid = self.write_object("commit", ("\n".join(lines) + "\n\n" + message).encode("utf-8"))
        symbolic = self._symbolic_target("HEAD")
        if symbolic is None:
            self.set_head_detached(oid)
        else:
            self.set_reference(symbolic, oid)
        return oid

    def _read_ref(self, name: str) -> str | None:
        path = self.gitdir / name
        return path.read_text(encoding="utf-8").strip() if path.is_file() else None

    def _symbolic_target(self, name: str) -> str | None:
        value = self._read_ref(name)
        return value[5:] if value and value.startswith("ref: ") else None

    def resolve_reference(self, name: str) -> str:
        for _ in range(10):
            value = self._read_ref(name)
            if value is None:
                raise GitError(f"reference '{name}' not found")
            if not value.startswith("ref: "):
                return value
            name = value[5:]
        raise GitError("reference chain too deep")

    def set_reference(self, name: str, oid: str) -> None:
        path = self.gitdir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(oid + "\n", encoding="utf-8")

    def delete_reference(self, name: str) -> None:
        path = self.gitdir / name
        if not path.is_file():
            raise GitError(f"reference '{name}' not found")
        path.unlink()

    def head_target(self) -> str:
        """The commit HEAD points to; fails on an unborn branch."""
        return self.resolve_reference("HEAD")

    def head_shorthand(self) -> str:
        """The checked-out branch name, or 'HEAD' when detached."""
        self.head_target()
        symbolic = self._symbolic_target("HEAD")
        return "HEAD" if symbolic is None else symbolic.removeprefix("refs/heads/")

    def set_head(self, refname: str) -> None:
        if not refname.startswith("refs/"):
            raise GitError(f"invalid reference name '{refname}'")
        (self.gitdir / "HEAD").write_text(f"ref: {refname}\n", encoding="utf-8")

    def set_head_detached(self, oid: str) -> None:
        (self.gitdir / "HEAD").write_text(oid + "\n", encoding="utf-8")

    def branches(self) -> list[str]:
        """Names of the local branches, sorted."""
        heads = self.gitdir / "refs" / "heads"
        return sorted(p.relative_to(heads).as_posix() for p in heads.rglob("*") if p.is_file())

    def revparse(self, spec: str) -> tuple[str, str | None]:
        """Resolve spec to (oid, reference name or None)."""
        for name in (spec, f"refs/{spec}", f"refs/tags/{spec}",
                     f"refs/heads/{spec}", f"refs/remotes/{spec}"):
            if self._read_ref(name) is not None:
                return self.resolve_reference(name), name
        prefix = spec.lower()
        folder = self.gitdir / "objects" / prefix[:2]
        if re.fullmatch(r"[0-9a-f]{4,40}", prefix) and folder.is_dir():
            matches = [prefix[:2] + f.name for f in folder.iterdir()
                       if (prefix[:2] + f.name).startswith(prefix)]
            if len(matches) == 1:
                return matches[0], None
        raise GitError(f"revspec '{spec}' not found")

    def walk(self, oid: str) -> Iterator[Commit]:
        """Yield commits reachable from oid, newest first."""
        seen = {oid}
        first = self.find_commit(oid)
        heap = [(-first.committer.time, 0, first)]
        counter = 1
        while heap:
            commit = heapq.heappop(heap)[2]
            yield commit
            for parent in commit.parents:
                if parent not in seen:
                    seen.add(parent)
                    found = self.find_commit(parent)
                    heapq.heappush(heap, (-found.committer.time, counter, found))
                    counter += 1

    def signature(self) -> Signature:
        """The identity to record, from the environment or configuration."""
        user = {}
        for path in (Path.home() / ".gitconfig", self.gitdir / "config"):
            user.update(_read_config(path).get(("user", None), {}))
        name = os.environ.get("GIT_AUTHOR_NAME") or user.get("name")
        email = os.environ.get("GIT_AUTHOR_EMAIL") or user.get("email")
        if not name:
            raise GitError("config value 'user.name' was not found")
        if not email:
            raise GitError("config value 'user.email' was not found")
        offset = -(time.altzone if time.localtime().tm_isdst > 0 else time.timezone) // 60
        return Signature(name, email, int(time.time()), offset)

    def add_remote(self, name: str, url: str) -> None:
        path = self.gitdir / "config"
        sections = _read_config(path)
        if ("remote", name) in sections:
            raise GitError(f"remote '{name}' already exists")
        sections[("remote", name)] = {
            "url": url,
            "fetch": f"+refs/heads/*:refs/remotes/{name}/*",
        }
        _write_config(path, sections)

    def remote_url(self, name: str) -> str:
        url = _read_config(self.gitdir / "config").get(("remote", name), {}).get("url")
        if url is None:
            raise GitError(f"remote '{name}' does not exist")
        return url

    def checkout_tree(self, tree_oid: str, paths=None) -> None:
        """Force the working tree and index to match a tree (or commit)."""
        workdir = self._require_workdir()
        if self.read_object(tree_oid)[0] == "commit":
            tree_oid = self.find_commit(tree_oid).tree
        target = self.flatten_tree(tree_oid)
        paths = None if paths is None else [Path(p).as_posix() for p in paths]
        entries = self.read_index()
        for path, stage in list(entries):
            if _in_paths(path, paths) and (stage != 0 or path not in target):
                del entries[(path, stage)]
                full = workdir / path
                if path not in target and full.is_file():
                    full.unlink()
                    parent = full.parent
                    while parent != workdir and not any(parent.iterdir()):
                        parent.rmdir()
                        parent = parent.parent
        for path, (mode, oid) in target.items():
            if _in_paths(path, paths):
                data = self.read_object(oid)[1]
                full = workdir / path
                full.parent.mkdir(parents=True, exist_ok=True)
                full.write_bytes(data)
                entries[(path, 0)] = IndexEntry(path, oid, mode, len(data))
        self.write_index(entries)
import pytest

from gitplay.repository import GitError, Repository
from gitplay.staging import git_add, git_commit, git_init

EMPTY_BLOB = "e69de29bb2d1d6434b8b29ae775ad8c2e48c5391"


@pytest.fixture
def identity(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Tester")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "tester@example.com")


@pytest.fixture
def repo_dir(tmp_path, identity):
    work = tmp_path / "work"
    work.mkdir()
    git_init(work)
    return work


def test_git_init_creates_git_dir(tmp_path, capsys):
    git_init(tmp_path)
    assert (tmp_path / ".git").is_dir()
    assert (tmp_path / ".git" / "HEAD").read_text() == "ref: refs/heads/main\n"
    assert "repo init success." in capsys.readouterr().out


def test_git_init_twice_keeps_head(tmp_path):
    git_init(tmp_path)
    (tmp_path / ".git" / "HEAD").write_text("ref: refs/heads/other\n")
    git_init(tmp_path)
    assert (tmp_path / ".git" / "HEAD").read_text() == "ref: refs/heads/other\n"


def test_git_add_specific_file(repo_dir, capsys):
    (repo_dir / "hello.txt").write_bytes(b"")
    assert git_add("hello.txt", repo_dir) == ["hello.txt"]
    index = Repository.open(repo_dir).read_index()
    matches = [e for e in index.values() if e.path == "hello.txt"]
    assert len(matches) == 1
    assert matches[0].oid == EMPTY_BLOB
    assert "hello.txt added." in capsys.readouterr().out


def test_git_add_all_files(repo_dir, capsys):
    (repo_dir / "bye.txt").write_bytes(b"")
    (repo_dir / "sub").mkdir()
    (repo_dir / "sub" / "x.txt").write_text("x")
    added = git_add(".", repo_dir)
    assert sorted(added) == ["bye.txt", "sub/x.txt"]
    index = Repository.open(repo_dir).read_index()
    assert {path for path, _ in index} == {"bye.txt", "sub/x.txt"}
    assert "all added." in capsys.readouterr().out


def test_git_add_missing_file_raises(repo_dir):
    with pytest.raises(GitError):
        git_add("nope.txt", repo_dir)


def test_git_add_outside_repository_raises(tmp_path):
    (tmp_path / "a.txt").write_text("a")
    with pytest.raises(GitError):
        git_add("a.txt", tmp_path)


def test_git_commit(repo_dir):
    (repo_dir / "hello.txt").write_bytes(b"")
    git_add("hello.txt", repo_dir)
    oid = git_commit("test commit msg", repo_dir)
    repo = Repository.open(repo_dir)
    assert repo.head_target() == oid
    commit = repo.find_commit(oid)
    assert commit.message == "test commit msg"
    assert commit.parents == ()
    assert repo.flatten_tree(commit.tree) == {"hello.txt": (0o100644, EMPTY_BLOB)}


def test_second_commit_has_parent(repo_dir):
    (repo_dir / "a.txt").write_text("one")
    git_add("a.txt", repo_dir)
    first = git_commit("first", repo_dir)
    (repo_dir / "a.txt").write_text("two")
    git_add("a.txt", repo_dir)
    second = git_commit("second", repo_dir)
    commit = Repository.open(repo_dir).find_commit(second)
    assert commit.parents == (first,)
    assert commit.author.email == "tester@example.com"


def test_commit_prints_oid(repo_dir, capsys):
    (repo_dir / "a.txt").write_text("x")
    git_add("a.txt", repo_dir)
    oid = git_commit("msg", repo_dir)
    assert f"commit created: {oid}" in capsys.readouterr().out


def test_commit_without_identity_raises(repo_dir, monkeypatch):
    monkeypatch.delenv("GIT_AUTHOR_NAME")
    monkeypatch.delenv("GIT_AUTHOR_EMAIL")
    (repo_dir / "a.txt").write_text("x")
    git_add("a.txt", repo_dir)
    with pytest.raises(GitError):
        git_commit("msg", repo_dir)
import pytest

from gitplay.repository import GitError, Repository
from gitplay.staging import git_add, git_commit, git_init
from gitplay.worktree import git_checkout, git_restore, git_revert


@pytest.fixture(autouse=True)
def identity(monkeypatch, tmp_path):
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test User")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "tester@example.com")
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


@pytest.fixture
def workdir(tmp_path):
    path = tmp_path / "work"
    path.mkdir()
    git_init(path)
    return path


def commit_file(workdir, name, content, message):
    (workdir / name).write_text(content, encoding="utf-8")
    git_add(name, workdir)
    return git_commit(message, workdir)


def read(workdir, name):
    return (workdir / name).read_text(encoding="utf-8")


def test_git_checkout(workdir):
    commit_file(workdir, "dummy.txt", "initial commit", "initial commit")
    repo = Repository.open(workdir)
    repo.set_reference("refs/heads/test_branch", repo.head_target())

    git_checkout("test_branch", workdir)

    assert Repository.open(workdir).head_shorthand() == "test_branch"


def test_checkout_updates_files(workdir):
    commit_file(workdir, "a.txt", "one", "first")
    repo = Repository.open(workdir)
    repo.set_reference("refs/heads/other", repo.head_target())
    git_checkout("other", workdir)
    commit_file(workdir, "a.txt", "two", "second")

    git_checkout("main", workdir)
    assert read(workdir, "a.txt") == "one"
    git_checkout("other", workdir)
    assert read(workdir, "a.txt") == "two"


def test_checkout_commit_id_detaches_head(workdir):
    first = commit_file(workdir, "a.txt", "one", "first")
    commit_file(workdir, "a.txt", "two", "second")

    assert git_checkout(first, workdir) == first

    repo = Repository.open(workdir)
    assert repo.head_shorthand() == "HEAD"
    assert repo.head_target() == first
    assert read(workdir, "a.txt") == "one"


def test_checkout_unknown_name_fails(workdir):
    commit_file(workdir, "a.txt", "one", "first")
    with pytest.raises(GitError):
        git_checkout("no_such_branch", workdir)


def test_git_restore(workdir):
    commit_file(workdir, "dummy.txt", "initial commit", "initial commit")
    commit_file(workdir, "restore_test_file.txt", "original content", "commit original content")

    (workdir / "restore_test_file.txt").write_text("modified content", encoding="utf-8")
    git_restore("restore_test_file.txt", workdir)

    assert read(workdir, "restore_test_file.txt") == "original content"


def test_restore_touches_only_named_path(workdir):
    (workdir / "a.txt").write_text("a", encoding="utf-8")
    (workdir / "b.txt").write_text("b", encoding="utf-8")
    git_add(".", workdir)
    git_commit("both", workdir)
    (workdir / "a.txt").write_text("changed a", encoding="utf-8")
    (workdir / "b.txt").write_text("changed b", encoding="utf-8")

    git_restore("a.txt", workdir)

    assert read(workdir, "a.txt") == "a"
    assert read(workdir, "b.txt") == "changed b"


def test_restore_without_commits_fails(workdir):
    (workdir / "a.txt").write_text("a", encoding="utf-8")
    with pytest.raises(GitError):
        git_restore("a.txt", workdir)


def test_git_revert(workdir):
    commit_file(workdir, "revert.txt", "비빔밥", "비빔밥 먹고싶다.")
    assert read(workdir, "revert.txt") == "비빔밥"

    head_commit = commit_file(workdir, "revert.txt", "국밥", "비빔밥 질렸다.")
    assert read(workdir, "revert.txt") == "국밥"

    new_oid = git_revert(head_commit, workdir)

    assert read(workdir, "revert.txt") == "비빔밥"
    repo = Repository.open(workdir)
    commit = repo.find_commit(repo.head_target())
    assert commit.oid == new_oid
    assert commit.message == 'Revert "비빔밥 질렸다."'
    assert commit.parents == (head_commit,)


def test_revert_removes_added_file(workdir):
    commit_file(workdir, "dummy.txt", "initial", "initial")
    added = commit_file(workdir, "new.txt", "new", "add new")

    git_revert(added, workdir)

    assert not (workdir / "new.txt").exists()
    repo = Repository.open(workdir)
    tree = repo.find_commit(repo.head_target()).tree
    assert set(repo.flatten_tree(tree)) == {"dummy.txt"}


def test_revert_root_commit_fails(workdir):
    root = commit_file(workdir, "a.txt", "a", "root")
    with pytest.raises(GitError, match="parent 0"):
        git_revert(root, workdir)


def test_revert_invalid_id_fails(workdir):
    commit_file(workdir, "a.txt", "a", "root")
    with pytest.raises(GitError):
        git_revert("not-an-oid", workdir)


def test_revert_fails_when_patch_does_not_apply(workdir):
    commit_file(workdir, "f.txt", "1", "one")
    middle = commit_file(workdir, "f.txt", "2", "two")
    commit_file(workdir, "f.txt", "3", "three")

    with pytest.raises(GitError, match="does not apply"):
        git_revert(middle, workdir)
    assert read(workdir, "f.txt") == "3"
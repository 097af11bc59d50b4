# gitplay

An interactive playground for the everyday Git workflow. You type commands at a
prompt and gitplay carries them out on a `.git` directory in the working folder.
Objects, the index, references and history walking are handled in pure Python,
so no external Git program is needed.

## Installation

```
pip install .
```

## Interactive use

Start the prompt from inside the directory you want to work in:

```
gitplay
```

or point it at another directory with `-C`:

```
gitplay -C path/to/folder
```

The prompt reads one command per line until `q` or the end of input:

| Command | What it does |
| --- | --- |
| `help` | List the commands |
| `init` | Create a `.git` repository here (HEAD starts on `main`) |
| `add <path>` | Stage a file; `add .` stages every file in the folder |
| `commit <msg>` | Record the staged changes; the rest of the line is the message |
| `push <remote> <refspec>` | Send a ref to a remote repository on the local filesystem |
| `revert <commit_id>` | Create a commit that undoes the given commit |
| `log` | Show `id: summary` for each commit reachable from HEAD |
| `branch` | List local branches, marking the current one with `*` |
| `branch <name>` | Create a branch at the HEAD commit |
| `branch -d <name>` | Delete a branch other than the checked-out one |
| `checkout <name>` | Switch to a branch, or detach HEAD at a commit |
| `restore <path>` | Put a file back to its content at HEAD |
| `q` | Quit |

Errors are reported on the prompt (for example `commit error: ...`) and the
prompt keeps running.

A short session:

```
git playground(도움말 help): init
repo init success.
git playground(도움말 help): add .
all added.
git playground(도움말 help): commit first version
commit created: 3f1c...
git playground(도움말 help): log
커밋 로그:
3f1c...: first version
git playground(도움말 help): q
```

## Use from Python

Each command is also a function that takes the directory to act on (the
current directory by default):

```python
from pathlib import Path

from gitplay.staging import git_init, git_add, git_commit
from gitplay.history import git_log, git_create_branch
from gitplay.worktree import git_checkout

work = Path("playground")
work.mkdir(exist_ok=True)

git_init(work)
(work / "hello.txt").write_text("hello\n")
git_add("hello.txt", work)
commit_id = git_commit("add hello", work)

git_create_branch("feature", work)
git_checkout("feature", work)
print(git_log(work))
```

- `gitplay.staging`: `git_init`, `git_add`, `git_commit` (returns the new commit id).
- `gitplay.history`: `git_log`, `git_show_branch` (also returns `(name, is_current)`
  pairs), `git_create_branch`, `git_delete_branch`.
- `gitplay.worktree`: `git_checkout`, `git_restore`, `git_revert` (returns the
  revert commit id).
- `gitplay.merge.git_merge(branch, workdir)`: three-way merges a local branch into
  the current one and records a `Merge commit`. On conflicting changes it leaves
  conflict markers in the files and the conflicting stages in the index, prints
  the conflicted files, and raises `GitError`.
- `gitplay.push.git_push(remote_name, refspec, workdir)`: copies the commits to the
  remote and updates its reference. A leading `+` forces a non-fast-forward
  update; an empty source (`:refs/heads/x`) deletes the remote reference.
- `gitplay.repository.Repository`: lower-level access to objects, the index,
  references, tree checkout and remotes (`add_remote`, `remote_url`).

Failures raise `gitplay.repository.GitError`.

## Identity

Commits record the name and e-mail from `GIT_AUTHOR_NAME` and
`GIT_AUTHOR_EMAIL`, or else from `user.name` and `user.email` in `~/.gitconfig`
or the repository's `.git/config`. Committing fails if neither is set.

## What gitplay does not do

- Merging is available from Python only; the prompt has no `merge` command.
- There is no command to add a remote; use `Repository.add_remote`. Remotes must
  be local paths (or `file://` URLs); network remotes are refused.
- There is no fetch, pull, clone, status, diff or tag command.
- Only loose objects and plain reference files are read and written; pack files
  and `packed-refs` are not supported, so repositories packed by other tools may
  not open fully.
"""Interactive prompt that drives the repository commands."""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from .history import git_create_branch, git_delete_branch, git_log, git_show_branch
from .merge import git_merge  # noqa: F401  (part of the command set)
from .push import git_push
from .repository import GitError
from .staging import git_add, git_commit, git_init
from .worktree import git_checkout, git_restore, git_revert

PROMPT = "git playground(도움말 help): "

_HELP_LINES = (
    "명령어",
    "init: .git 생성",
    "add <path>: 변경 사항을 스테이지에 올림",
    "commit <msg>: 변경 사항을 기록",
    "push <remote> <refspec>: 기록된 사항을 remote에 전송",
    "revert <commit_id>: commit된 기록을 롤백",
    "log: 로그 출력",
    "branch: 브랜치 출력",
    "checkout <name>: <name> 브랜치로 체크아웃",
    "q: 종료",
)

_ERRORS = (GitError, OSError, ValueError)


def git_help() -> None:
    """Print the list of available commands."""
    for line in _HELP_LINES:
        print(line)


def _branch(args: list[str], workdir) -> None:
    if not args:
        try:
            git_show_branch(workdir)
        except _ERRORS as e:
            print(f"branch show error: {e}")
    elif len(args) == 1:
        try:
            git_create_branch(args[0], workdir)
        except _ERRORS as e:
            print(f"create branch error: {e}")
    elif len(args) == 2 and args[0] == "-d":
        try:
            git_delete_branch(args[1], workdir)
        except _ERRORS as e:
            print(f"delete branch error: {e}")


def run_command(tokens: Sequence[str], workdir=".") -> bool:
    """Run one tokenised command line; return False when the prompt should end."""
    if not tokens:
        return True
    name, args = tokens[0], list(tokens[1:])

    if name == "q":
        return False
    if name == "help":
        git_help()
    elif name == "init":
        try:
            git_init(workdir)
        except _ERRORS as e:
            print(f"init error: {e}")
    elif name == "add":
        if not args:
            print("input file path")
        else:
            try:
                git_add(args[0], workdir)
            except _ERRORS as e:
                print(f"add error: {e}")
    elif name == "commit":
        if not args:
            print("input commit message")
        else:
            try:
                git_commit(" ".join(args), workdir)
            except _ERRORS as e:
                print(f"commit error: {e}")
    elif name == "push":
        if len(args) < 2:
            print("입력 형식: push <remote> <refspec>")
        else:
            try:
                git_push(args[0], args[1], workdir)
            except _ERRORS as e:
                print(f"push error: {e}")
    elif name == "revert":
        if not args:
            print("입력 형식: revert <commit_id>")
        else:
            try:
                git_revert(args[0], workdir)
            except _ERRORS as e:
                print(f"revert error: {e}")
    elif name == "branch":
        _branch(args, workdir)
    elif name == "checkout":
        if len(args) != 1:
            print("입력 형식: checkout <name>")
        else:
            try:
                git_checkout(args[0], workdir)
            except _ERRORS as e:
                print(f"checkout error: {e}")
            else:
                print(f"Switched to branch '{args[0]}'")
    elif name == "restore":
        if not args:
            print("복원할 파일 경로를 입력해주세요.")
        else:
            try:
                git_restore(args[0], workdir)
            except _ERRORS as e:
                print(f"restore error: {e}")
            else:
                print(f"파일 복원 완료: {args[0]}")
    elif name == "log":
        try:
            logs = git_log(workdir)
        except _ERRORS as e:
            print(f"log error: {e}")
        else:
            print("커밋 로그:")
            for line in logs:
                print(line)
    else:
        print("존재하지 않는 명령어임")
    return True


def main(argv=None) -> int:
    """Read commands from standard input until 'q' or end of input."""
    parser = argparse.ArgumentParser(prog="gitplay", description="Interactive Git playground.")
    parser.add_argument("-C", dest="workdir", default=".", help="repository directory")
    options = parser.parse_args(argv)

    while True:
        print(PROMPT, end="", flush=True)
        line = sys.stdin.readline()
        if not line:
            break
        if not run_command(line.split(), options.workdir):
            break
    return 0


if __name__ == "__main__":
    sys.exit(main())
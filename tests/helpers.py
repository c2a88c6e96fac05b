"""Shared test helpers."""

from contextlib import nullcontext
from pathlib import Path

from git import Actor, Repo

AUTHOR = Actor("Test User", "test@example.com")


class RecordingUI:
    """Stand-in for ConsoleUI that records output and answers prompts from a list."""

    def __init__(self) -> None:
        self.lines: list[tuple[str, str]] = []
        self.prompts: list[str] = []
        self.answers: list[bool] = []

    def status(self, message: str) -> nullcontext:
        self.lines.append(("status", message))
        return nullcontext()

    def success(self, message: str) -> None:
        self.lines.append(("success", message))

    def note(self, message: str) -> None:
        self.lines.append(("note", message))

    def error(self, message: str) -> None:
        self.lines.append(("error", message))

    def confirm(self, message: str) -> bool:
        self.prompts.append(message)
        return self.answers.pop(0)

    @property
    def text(self) -> str:
        return "\n".join(message for _, message in self.lines)


def configure_identity(repo: Repo) -> None:
    with repo.config_writer() as writer:
        writer.set_value("user", "name", AUTHOR.name)
        writer.set_value("user", "email", AUTHOR.email)


def commit_file(repo: Repo, name: str, content: str) -> str:
    """Write, stage and commit a file. Returns the new commit sha."""
    path = Path(repo.working_tree_dir) / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    repo.index.add([name])
    return repo.index.commit(f"Add {name}", author=AUTHOR, committer=AUTHOR).hexsha

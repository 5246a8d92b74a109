"""Thin wrapper around the ``git flow`` command-line extension.

Every operation builds the argument list for one ``git flow`` subcommand and
hands it to ``subprocess.run``. Branching, merging and tagging are all done by
git-flow itself; this module only validates names, runs the command and turns
failures into ``GitFlowError``.

Example:
    >>> flow = GitFlow(repo_path="/src/project")
    >>> flow.feature_start_command("login")
    ['git', 'flow', 'feature', 'start', 'login']
    >>> result = flow.feature_start("login")
"""
import re
import shlex
import subprocess
from dataclasses import dataclass
from typing import Callable, List, Optional

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

BRANCH_KINDS = ("feature", "release", "hotfix", "support")
_INVALID_NAME = re.compile(r"\s")


class GitFlowError(Exception):
    """A ``git flow`` command could not be run or exited non-zero."""

    def __init__(self, message: str, command: List[str], returncode: Optional[int] = None, stderr: str = ""):
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


@dataclass
class CommandResult:
    """Outcome of a finished ``git flow`` command."""
    command: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def _check_name(value: str, what: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{what} must not be empty")
    if value.startswith("-"):
        raise ValueError(f"{what} must not start with '-': {value!r}")
    if _INVALID_NAME.search(value):
        raise ValueError(f"{what} must not contain whitespace: {value!r}")
    return value


class GitFlow:
    """Build and run ``git flow`` commands in one repository.

    Args:
        repo_path: Working directory the commands run in
        git_executable: git binary (default from GIT_EXECUTABLE)
        runner: Callable with the ``subprocess.run`` signature
    """

    def __init__(
        self,
        repo_path: str = ".",
        git_executable: Optional[str] = None,
        runner: Optional[Callable[..., subprocess.CompletedProcess]] = None,
    ):
        self.repo_path = repo_path
        self.git_executable = git_executable or settings.git_executable
        self.runner = runner or subprocess.run

    def _base(self) -> List[str]:
        return [self.git_executable, "flow"]

    # -----------------
    # COMMAND BUILDERS
    # -----------------

    def init_command(self, defaults: bool = False) -> List[str]:
        command = self._base() + ["init"]
        if defaults:
            command.append("-d")
        return command

    def config_commands(self) -> List[List[str]]:
        """``git config`` calls that preset the names ``git flow init -d`` picks up."""
        values = [
            ("gitflow.branch.master", settings.gitflow_master),
            ("gitflow.branch.develop", settings.gitflow_develop),
            ("gitflow.prefix.feature", settings.gitflow_feature_prefix),
            ("gitflow.prefix.release", settings.gitflow_release_prefix),
            ("gitflow.prefix.hotfix", settings.gitflow_hotfix_prefix),
            ("gitflow.prefix.support", settings.gitflow_support_prefix),
            ("gitflow.prefix.versiontag", settings.gitflow_versiontag_prefix),
        ]
        return [[self.git_executable, "config", key, value] for key, value in values]

    def feature_start_command(self, name: str, base: Optional[str] = None) -> List[str]:
        command = self._base() + ["feature", "start", _check_name(name, "feature name")]
        if base:
            command.append(_check_name(base, "base branch"))
        return command

    def feature_finish_command(self, name: str) -> List[str]:
        return self._base() + ["feature", "finish", _check_name(name, "feature name")]

    def feature_publish_command(self, name: str) -> List[str]:
        return self._base() + ["feature", "publish", _check_name(name, "feature name")]

    def feature_pull_command(self, remote: str, name: str) -> List[str]:
        return self._base() + [
            "feature", "pull",
            _check_name(remote, "remote"),
            _check_name(name, "feature name"),
        ]

    def feature_track_command(self, name: str) -> List[str]:
        return self._base() + ["feature", "track", _check_name(name, "feature name")]

    def release_start_command(self, version: str, base: Optional[str] = None) -> List[str]:
        command = self._base() + ["release", "start", _check_name(version, "release version")]
        if base:
            command.append(_check_name(base, "base commit"))
        return command

    def release_publish_command(self, version: str) -> List[str]:
        return self._base() + ["release", "publish", _check_name(version, "release version")]

    def release_track_command(self, version: str) -> List[str]:
        return self._base() + ["release", "track", _check_name(version, "release version")]

    def release_finish_command(self, version: str, message: Optional[str] = None) -> List[str]:
        command = self._base() + ["release", "finish"]
        if message:
            command += ["-m", message]
        command.append(_check_name(version, "release version"))
        return command

    def hotfix_start_command(self, version: str, base: Optional[str] = None) -> List[str]:
        command = self._base() + ["hotfix", "start", _check_name(version, "hotfix version")]
        if base:
            command.append(_check_name(base, "base branch"))
        return command

    def hotfix_finish_command(self, version: str, message: Optional[str] = None) -> List[str]:
        command = self._base() + ["hotfix", "finish"]
        if message:
            command += ["-m", message]
        command.append(_check_name(version, "hotfix version"))
        return command

    # -----------------
    # EXECUTION
    # -----------------

    def run(self, command: List[str]) -> CommandResult:
        """Run a command in the repository.

        Raises:
            GitFlowError: If git is missing or the command exits non-zero
        """
        printable = shlex.join(command)
        logger.info(f"Running: {printable}", extra={"command": printable})

        try:
            completed = self.runner(
                command,
                cwd=self.repo_path,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            logger.error(f"git executable not found: {self.git_executable}")
            raise GitFlowError(
                f"git executable not found: {self.git_executable}",
                command=command,
            ) from e

        result = CommandResult(
            command=command,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )

        if not result.ok:
            logger.warning(
                f"Command failed: {printable}",
                extra={"command": printable, "returncode": result.returncode}
            )
            raise GitFlowError(
                f"'{printable}' exited with status {result.returncode}: {result.stderr.strip()}",
                command=command,
                returncode=result.returncode,
                stderr=result.stderr,
            )

        return result

    def is_available(self) -> bool:
        """Return True if ``git flow version`` succeeds."""
        try:
            self.run(self._base() + ["version"])
        except GitFlowError:
            return False
        return True

    def configure(self) -> List[CommandResult]:
        """Write the configured branch names and prefixes into the repo's git config."""
        return [self.run(command) for command in self.config_commands()]

    def init(self, defaults: bool = False) -> CommandResult:
        return self.run(self.init_command(defaults))

    def feature_start(self, name: str, base: Optional[str] = None) -> CommandResult:
        return self.run(self.feature_start_command(name, base))

    def feature_finish(self, name: str) -> CommandResult:
        return self.run(self.feature_finish_command(name))

    def feature_publish(self, name: str) -> CommandResult:
        return self.run(self.feature_publish_command(name))

    def feature_pull(self, remote: str, name: str) -> CommandResult:
        return self.run(self.feature_pull_command(remote, name))

    def feature_track(self, name: str) -> CommandResult:
        return self.run(self.feature_track_command(name))

    def release_start(self, version: str, base: Optional[str] = None) -> CommandResult:
        return self.run(self.release_start_command(version, base))

    def release_publish(self, version: str) -> CommandResult:
        return self.run(self.release_publish_command(version))

    def release_track(self, version: str) -> CommandResult:
        return self.run(self.release_track_command(version))

    def release_finish(self, version: str, message: Optional[str] = None) -> CommandResult:
        return self.run(self.release_finish_command(version, message))

    def hotfix_start(self, version: str, base: Optional[str] = None) -> CommandResult:
        return self.run(self.hotfix_start_command(version, base))

    def hotfix_finish(self, version: str, message: Optional[str] = None) -> CommandResult:
        return self.run(self.hotfix_finish_command(version, message))


def branch_name(kind: str, name: str) -> str:
    """Return the branch git-flow creates for ``kind``/``name``.

    Uses the prefixes from settings, e.g. ``branch_name("feature", "login")``
    gives ``feature/login``. Release and hotfix names are the version.
    """
    if kind not in BRANCH_KINDS:
        raise ValueError(f"Unknown branch kind '{kind}'. Choose from: {', '.join(BRANCH_KINDS)}")

    prefix = getattr(settings, f"gitflow_{kind}_prefix")
    return f"{prefix}{_check_name(name, f'{kind} name')}"


def tag_name(version: str) -> str:
    """Return the tag git-flow creates when finishing a release or hotfix."""
    return f"{settings.gitflow_versiontag_prefix}{_check_name(version, 'version')}"

"""Open-branch enumeration through the VCS command line.

Reading which branches are open requires the VCS itself (Mercurial computes
branch closure from the changelog), so this is the one step of an update
that spawns a process. It runs only after a change has been detected.
"""

import re
from collections.abc import Callable, Sequence
from typing import Final

from repostate.exceptions import EnumerationFailedError
from repostate.repository._models import RepositoryKind, RepositoryRoot
from repostate.utils import (
    DEFAULT_TIMEOUT_MS,
    ScriptConfig,
    ScriptResult,
    run_script,
    truncate_output,
)

# "<name> <rev>:<node> [(inactive)]"; names may contain spaces
_HG_BRANCH_LINE: Final = re.compile(r"(.+)\s+(\d+):([0-9a-f]+).*")

_MAX_STDERR_BYTES: Final = 4096

type OutputParser = Callable[[str], frozenset[str]]


def parse_hg_branches(output: str) -> frozenset[str]:
    """Parse the output of ``hg branches`` into branch names.

    Args:
        output: Plain-mode stdout of ``hg branches``.

    Returns:
        Names of the listed branches. Lines that do not match are ignored.
    """
    names: set[str] = set()
    for line in output.splitlines():
        match = _HG_BRANCH_LINE.fullmatch(line)
        if match is not None:
            names.add(match.group(1).strip())
    return frozenset(names)


def parse_ref_names(output: str) -> frozenset[str]:
    """Parse one short ref name per line, as printed by ``git for-each-ref``."""
    return frozenset(line.strip() for line in output.splitlines() if line.strip())


class CommandBranchEnumerator:
    """Collects open branch names by running a VCS command.

    Example:
        >>> enumerator = CommandBranchEnumerator.for_kind(RepositoryKind.HG)
        >>> enumerator.collect_open_branches(root)
        frozenset({'default', 'feature'})
    """

    __slots__ = ("_argv", "_env", "_parser", "_timeout_ms")

    def __init__(
        self,
        argv: Sequence[str],
        parser: OutputParser,
        *,
        env: dict[str, str] | None = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> None:
        """Initialize the enumerator.

        Args:
            argv: Command and arguments to run in the working copy.
            parser: Converts the command's stdout into branch names.
            env: Extra environment variables for the command.
            timeout_ms: Timeout after which the command is abandoned.
        """
        self._argv: tuple[str, ...] = tuple(argv)
        self._parser: OutputParser = parser
        self._env: dict[str, str] = dict(env or {})
        self._timeout_ms: int = timeout_ms

    @classmethod
    def mercurial(
        cls, command: str = "hg", *, timeout_ms: int = DEFAULT_TIMEOUT_MS
    ) -> "CommandBranchEnumerator":  # noqa: UP037
        """Create an enumerator running ``hg branches`` in plain mode."""
        return cls(
            (command, "branches"),
            parse_hg_branches,
            env={"HGPLAIN": "1"},
            timeout_ms=timeout_ms,
        )

    @classmethod
    def git(
        cls, command: str = "git", *, timeout_ms: int = DEFAULT_TIMEOUT_MS
    ) -> "CommandBranchEnumerator":  # noqa: UP037
        """Create an enumerator listing local branch refs."""
        return cls(
            (command, "for-each-ref", "--format=%(refname:short)", "refs/heads"),
            parse_ref_names,
            timeout_ms=timeout_ms,
        )

    @classmethod
    def for_kind(
        cls,
        kind: RepositoryKind,
        *,
        command: str | None = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> "CommandBranchEnumerator":  # noqa: UP037
        """Create the enumerator matching a repository kind.

        Args:
            kind: The version control system.
            command: Executable to run instead of "hg" or "git".
            timeout_ms: Command timeout in milliseconds.

        Returns:
            A configured enumerator.
        """
        if kind is RepositoryKind.HG:
            return cls.mercurial(command or "hg", timeout_ms=timeout_ms)
        return cls.git(command or "git", timeout_ms=timeout_ms)

    @property
    def argv(self) -> tuple[str, ...]:
        """Return the command that is run."""
        return self._argv

    def collect_open_branches(self, root: RepositoryRoot) -> frozenset[str]:
        """Run the query in the working copy and parse its output.

        Args:
            root: The repository to query.

        Returns:
            Names of open branches.

        Raises:
            EnumerationFailedError: If the command is missing, times out, or
                exits with a non-zero code.
        """
        config = ScriptConfig(
            argv=self._argv,
            cwd=root.path,
            env=self._env,
            timeout_ms=self._timeout_ms,
        )
        result = run_script(config)
        self._check(config, result)
        return self._parser(result.stdout)

    @staticmethod
    def _check(config: ScriptConfig, result: ScriptResult) -> None:
        command = config.describe()
        stderr = truncate_output(result.stderr, _MAX_STDERR_BYTES)

        if result.command_not_found:
            msg = f"Command not found: {config.argv[0]}"
            raise EnumerationFailedError(msg, command=command)
        if result.timed_out:
            msg = f"'{command}' timed out after {config.timeout_ms}ms"
            raise EnumerationFailedError(msg, command=command)
        if not result.success:
            msg = f"'{command}' could not be run: {result.error}"
            raise EnumerationFailedError(msg, command=command)
        if result.exit_code != 0:
            msg = f"'{command}' exited with code {result.exit_code}"
            raise EnumerationFailedError(
                msg, command=command, exit_code=result.exit_code, stderr=stderr
            )


class DisabledBranchEnumerator:
    """Enumerator used when open-branch queries are turned off.

    Never spawns a process; the open-branch set stays empty.
    """

    __slots__ = ()

    def collect_open_branches(self, root: RepositoryRoot) -> frozenset[str]:  # noqa: ARG002
        """Return an empty set without querying the repository."""
        return frozenset()

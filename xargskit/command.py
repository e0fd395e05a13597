"""Building and running the commands that arguments are fed into."""

from __future__ import annotations

import enum
import subprocess
import sys
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from .limits import Argument, ArgumentKind, ExhaustedCommandSpace, LimiterCollection


class CommandResult(enum.Enum):
    """Overall outcome of the commands run so far."""

    SUCCESS = "success"
    FAILURE = "failure"

    def combine(self, other: CommandResult) -> CommandResult:
        """Return the outcome after another command finished with ``other``."""
        return other if self is CommandResult.SUCCESS else self


class XargsError(Exception):
    """Any error that stops xargs."""


class ArgumentTooLargeError(XargsError):
    """A single argument does not fit into any command line."""

    def __init__(self) -> None:
        super().__init__("Argument too large")


class CommandExecutionError(XargsError):
    """Running a command went wrong in a way that stops xargs."""

    exit_code = 1


class UrgentlyFailedError(CommandExecutionError):
    """The command exited with status 255."""

    exit_code = 124

    def __init__(self) -> None:
        super().__init__("Command exited with code 255")


class KilledError(CommandExecutionError):
    """The command was terminated by a signal."""

    exit_code = 125

    def __init__(self, signal: int) -> None:
        super().__init__(f"Command was killed with signal {signal}")
        self.signal = signal


class CannotRunError(CommandExecutionError):
    """The command exists but could not be started."""

    exit_code = 126

    def __init__(self, cause: OSError) -> None:
        super().__init__(f"Command could not be run: {cause}")
        self.cause = cause


class CommandNotFoundError(CommandExecutionError):
    """The command could not be found."""

    exit_code = 127

    def __init__(self) -> None:
        super().__init__("Command not found")


class UnknownCommandError(CommandExecutionError):
    """The command ended in a way that could not be interpreted."""

    exit_code = 1

    def __init__(self) -> None:
        super().__init__("Unknown error running command")


@dataclass
class CommandBuilderOptions:
    """Everything shared by each command xargs runs.

    ``action`` is the command and its initial arguments, or ``None`` to echo
    the arguments instead.
    """

    action: list[str] | None
    env: dict[str, str]
    limiters: LimiterCollection
    replace: str | None = None
    verbose: bool = False
    close_stdin: bool = False

    @classmethod
    def create(
        cls,
        action: list[str] | None,
        env: Mapping[str, str],
        limiters: LimiterCollection,
        replace: str | None,
    ) -> CommandBuilderOptions:
        """Charge the initial arguments to ``limiters``; raise if they do not fit."""
        for initial in action if action else ["echo"]:
            limiters.try_arg(Argument(initial, ArgumentKind.INITIAL))
        return cls(action or None, dict(env), limiters, replace)


@dataclass
class _Unused:
    pass


class CommandBuilder:
    """Collects arguments for one command and runs it."""

    def __init__(self, options: CommandBuilderOptions) -> None:
        self.options = options
        self.extra_args: list[str] = []
        self._limiters = options.limiters.copy()

    def add_arg(self, arg: Argument) -> None:
        """Add ``arg``; raise :class:`ExhaustedCommandSpace` if it does not fit."""
        accepted = self._limiters.try_arg(arg)
        self.extra_args.append(accepted.arg)

    def _argv(self) -> list[str]:
        action = self.options.action
        entry, initial = ("echo", []) if action is None else (action[0], action[1:])
        replace = self.options.replace
        if replace is not None:
            replacement = self.extra_args[0] if self.extra_args else ""
            return [entry, *(arg.replace(replace, replacement) for arg in initial)]
        return [entry, *initial, *self.extra_args]

    def execute(self) -> CommandResult:
        """Run the command (or echo the arguments) and report how it went."""
        argv = self._argv()
        if self.options.verbose:
            print(" ".join(f'"{arg}"' for arg in argv), file=sys.stderr)

        if self.options.action is None:
            print(" ".join(self.extra_args))
            return CommandResult.SUCCESS

        sys.stdout.flush()
        try:
            completed = subprocess.run(
                argv,
                env=dict(self.options.env),
                stdin=subprocess.DEVNULL if self.options.close_stdin else None,
                check=False,
            )
        except FileNotFoundError:
            raise CommandNotFoundError() from None
        except OSError as error:
            raise CannotRunError(error) from error

        code = completed.returncode
        if code == 0:
            return CommandResult.SUCCESS
        if code == 255:
            raise UrgentlyFailedError()
        if code > 0:
            return CommandResult.FAILURE
        if code < 0:
            raise KilledError(-code)
        raise UnknownCommandError()


@dataclass(frozen=True)
class InputProcessOptions:
    """Settings that govern how input is split into commands."""

    exit_if_pass_char_limit: bool = False
    max_args: int | None = None
    max_lines: int | None = None
    no_run_if_empty: bool = False


def process_input(
    builder_options: CommandBuilderOptions,
    args: Iterable[Argument],
    options: InputProcessOptions,
) -> CommandResult:
    """Feed ``args`` into as many commands as needed and run them."""
    builder = CommandBuilder(builder_options)
    have_pending_command = False
    result = CommandResult.SUCCESS

    for arg in args:
        try:
            builder.add_arg(arg)
        except ExhaustedCommandSpace as exhausted:
            if (
                exhausted.out_of_chars
                and options.exit_if_pass_char_limit
                and (options.max_args is not None or options.max_lines is not None)
            ):
                raise ArgumentTooLargeError() from None
            if have_pending_command:
                result = result.combine(builder.execute())
            builder = CommandBuilder(builder_options)
            try:
                builder.add_arg(exhausted.arg)
            except ExhaustedCommandSpace:
                raise ArgumentTooLargeError() from None
        have_pending_command = True

    if not options.no_run_if_empty or have_pending_command:
        result = result.combine(builder.execute())
    return result
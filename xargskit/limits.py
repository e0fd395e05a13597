"""Limits on how large a single command line may grow."""

from __future__ import annotations

import copy
import enum
import os
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

# POSIX asks that this much room be left for the child's own environment.
_ARG_HEADROOM = 2048
# Largest command line accepted by CreateProcess.
_WINDOWS_MAX_CMDLINE = 32767


class ArgumentKind(enum.Enum):
    """How an argument came to be."""

    INITIAL = "initial"
    """Part of the command given on the command line."""
    HARD_TERMINATED = "hard"
    """Ended by a newline or a custom delimiter."""
    SOFT_TERMINATED = "soft"
    """Ended by whitespace other than a newline."""


@dataclass(frozen=True)
class Argument:
    """One argument together with the way it was terminated."""

    arg: str
    kind: ArgumentKind


class ExhaustedCommandSpace(Exception):
    """Raised when an argument does not fit into the current command."""

    def __init__(self, arg: Argument, out_of_chars: bool) -> None:
        super().__init__(f"no room left for argument {arg.arg!r}")
        self.arg = arg
        self.out_of_chars = out_of_chars


def count_exec_chars(text: str) -> int:
    """Return the space an argument takes on a command line, separator included."""
    if os.name == "nt":
        return len(text.encode("utf-16-le", errors="surrogatepass")) // 2 + 1
    return len(os.fsencode(text)) + 1


class CommandSizeLimiter(ABC):
    """One constraint on the size of a command line.

    A limiter must hand the argument to the remaining limiters before it
    updates its own state, so that every limiter agrees to the argument first.
    """

    @abstractmethod
    def try_arg(self, arg: Argument, rest: Sequence[CommandSizeLimiter]) -> Argument:
        """Accept ``arg`` or raise :class:`ExhaustedCommandSpace`."""


def try_next(arg: Argument, limiters: Sequence[CommandSizeLimiter]) -> Argument:
    """Offer ``arg`` to the first of ``limiters``, which passes it along."""
    if not limiters:
        return arg
    return limiters[0].try_arg(arg, limiters[1:])


@dataclass
class MaxCharsLimiter(CommandSizeLimiter):
    """Limits the total number of characters on a command line."""

    max_chars: int
    current_size: int = field(default=0, init=False)

    @classmethod
    def for_system(cls, env: Mapping[str, str]) -> MaxCharsLimiter:
        """Build the limiter the operating system imposes, given the environment."""
        if os.name == "nt":
            return cls(_WINDOWS_MAX_CMDLINE)
        arg_max = os.sysconf("SC_ARG_MAX")
        env_size = sum(
            count_exec_chars(name) + count_exec_chars(value) for name, value in env.items()
        )
        return cls(arg_max - _ARG_HEADROOM - env_size)

    def try_arg(self, arg: Argument, rest: Sequence[CommandSizeLimiter]) -> Argument:
        chars = count_exec_chars(arg.arg)
        if self.current_size + chars > self.max_chars:
            raise ExhaustedCommandSpace(arg, out_of_chars=True)
        arg = try_next(arg, rest)
        self.current_size += chars
        return arg


@dataclass
class MaxArgsLimiter(CommandSizeLimiter):
    """Limits how many non-initial arguments a command receives."""

    max_args: int
    current_args: int = field(default=0, init=False)

    def try_arg(self, arg: Argument, rest: Sequence[CommandSizeLimiter]) -> Argument:
        if self.current_args >= self.max_args:
            raise ExhaustedCommandSpace(arg, out_of_chars=False)
        arg = try_next(arg, rest)
        if arg.kind is not ArgumentKind.INITIAL:
            self.current_args += 1
        return arg


@dataclass
class MaxLinesLimiter(CommandSizeLimiter):
    """Limits how many hard-terminated input lines a command receives."""

    max_lines: int
    current_line: int = field(default=1, init=False)

    def try_arg(self, arg: Argument, rest: Sequence[CommandSizeLimiter]) -> Argument:
        if self.current_line > self.max_lines:
            raise ExhaustedCommandSpace(arg, out_of_chars=False)
        arg = try_next(arg, rest)
        # With a custom delimiter every delimited item counts as a "line".
        if arg.kind is ArgumentKind.HARD_TERMINATED:
            self.current_line += 1
        return arg


class LimiterCollection:
    """An ordered chain of limiters that must all accept each argument."""

    def __init__(self) -> None:
        self._limiters: list[CommandSizeLimiter] = []

    def add(self, limiter: CommandSizeLimiter) -> None:
        """Append ``limiter`` to the end of the chain."""
        self._limiters.append(limiter)

    def try_arg(self, arg: Argument) -> Argument:
        """Offer ``arg`` to every limiter; raise if any of them rejects it."""
        return try_next(arg, self._limiters)

    def copy(self) -> LimiterCollection:
        """Return a collection with independent copies of every limiter."""
        duplicate = LimiterCollection()
        duplicate._limiters = [copy.copy(limiter) for limiter in self._limiters]
        return duplicate

    def __iter__(self) -> Iterable[CommandSizeLimiter]:
        return iter(self._limiters)

    def __len__(self) -> int:
        return len(self._limiters)
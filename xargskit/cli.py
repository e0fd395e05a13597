"""Command-line entry point for xargs."""

from __future__ import annotations

import os
import sys
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from .command import (
    CommandBuilderOptions,
    CommandExecutionError,
    CommandResult,
    InputProcessOptions,
    XargsError,
    process_input,
)
from .limits import (
    ExhaustedCommandSpace,
    LimiterCollection,
    MaxArgsLimiter,
    MaxCharsLimiter,
    MaxLinesLimiter,
)
from .readers import (
    ByteDelimitedReader,
    UnterminatedQuoteError,
    WhitespaceDelimitedReader,
    parse_delimiter,
)

_VERSION = "0.7.0"
_ABOUT = "Run commands using arguments derived from standard input"

_FLAG = "flag"
_VALUE = "value"
_OPTIONAL = "optional"


def _parse_usize(text: str) -> int:
    body = text[1:] if text.startswith("+") else text
    if not text:
        raise ValueError("cannot parse integer from empty string")
    if not body or not body.isascii() or not body.isdigit():
        raise ValueError("invalid digit found in string")
    return int(body)


def parse_positive_int(text: str) -> int:
    """Parse a count that must be at least one."""
    value = _parse_usize(text)
    if value == 0:
        raise ValueError(f"Value must be > 0, not: {value}")
    return value


@dataclass(frozen=True)
class _OptionSpec:
    dest: str
    short: str | None
    long: str | None
    arity: str
    help: str
    value_name: str = ""
    convert: Callable[[str], Any] = str

    def display(self) -> str:
        name = f"--{self.long}" if self.long else f"-{self.short}"
        return f"{name} <{self.value_name or self.dest}>"


class _ParseError(Exception):
    pass


class _HelpRequested(Exception):
    pass


class _VersionRequested(Exception):
    pass


@dataclass
class _Matches:
    values: dict[str, Any] = field(default_factory=dict)
    indices: dict[str, int] = field(default_factory=dict)
    command: list[str] = field(default_factory=list)

    def __contains__(self, dest: str) -> bool:
        return dest in self.indices

    def get(self, dest: str, default: Any = None) -> Any:
        return self.values.get(dest, default)

    def index(self, dest: str) -> int:
        return self.indices.get(dest, -1)


_OVERRIDES = {"replace": "replace_i", "replace_i": "replace"}


class _Parser:
    """Parses xargs options up to the first positional argument."""

    def __init__(self, specs: Sequence[_OptionSpec]) -> None:
        self.specs = list(specs)
        self._short = {spec.short: spec for spec in specs if spec.short}
        self._long = {spec.long: spec for spec in specs if spec.long}

    def help_text(self) -> str:
        lines = [_ABOUT, "", "Usage: xargs [OPTIONS] [COMMAND]...", "", "Options:"]
        for spec in self.specs:
            names = ", ".join(
                name
                for name in (
                    f"-{spec.short}" if spec.short else None,
                    f"--{spec.long}" if spec.long else None,
                )
                if name
            )
            if spec.arity == _VALUE:
                names += f" <{spec.value_name or spec.dest}>"
            elif spec.arity == _OPTIONAL:
                names += f"[=<{spec.value_name}>]"
            lines.append(f"  {names}\n          {spec.help}")
        lines.append("  -h, --help\n          Print help")
        lines.append("  -V, --version\n          Print version")
        return "\n".join(lines) + "\n"

    def _record(self, matches: _Matches, spec: _OptionSpec, value: Any, index: int) -> None:
        if spec.arity == _VALUE or (spec.arity == _OPTIONAL and value is not None):
            try:
                value = spec.convert(value)
            except ValueError as error:
                raise _ParseError(
                    f"error: invalid value '{value}' for '{spec.display()}': {error}"
                ) from None
        rival = _OVERRIDES.get(spec.dest)
        if rival is not None:
            matches.values.pop(rival, None)
            matches.indices.pop(rival, None)
        matches.values[spec.dest] = True if spec.arity == _FLAG else value
        matches.indices[spec.dest] = index

    def _missing(self, spec: _OptionSpec) -> _ParseError:
        return _ParseError(
            f"error: a value is required for '{spec.display()}' but none was supplied"
        )

    def parse(self, args: Sequence[str]) -> _Matches:
        matches = _Matches()
        i = 0
        while i < len(args):
            arg = args[i]
            if arg == "--":
                matches.command = list(args[i + 1 :])
                break
            if arg.startswith("--"):
                name, has_eq, inline = arg[2:].partition("=")
                if name == "help":
                    raise _HelpRequested()
                if name == "version":
                    raise _VersionRequested()
                spec = self._long.get(name)
                if spec is None:
                    raise _ParseError(f"error: unexpected argument '{arg}' found")
                if spec.arity == _FLAG:
                    if has_eq:
                        raise _ParseError(f"error: unexpected value '{inline}' for '{arg}' found")
                    self._record(matches, spec, None, i)
                elif spec.arity == _OPTIONAL:
                    self._record(matches, spec, inline if has_eq else None, i)
                elif has_eq:
                    self._record(matches, spec, inline, i)
                else:
                    if i + 1 >= len(args):
                        raise self._missing(spec)
                    i += 1
                    self._record(matches, spec, args[i], i - 1)
            elif arg.startswith("-") and len(arg) > 1:
                position = 1
                while position < len(arg):
                    char = arg[position]
                    if char == "h":
                        raise _HelpRequested()
                    if char == "V":
                        raise _VersionRequested()
                    spec = self._short.get(char)
                    if spec is None:
                        raise _ParseError(f"error: unexpected argument '-{char}' found")
                    rest = arg[position + 1 :]
                    if spec.arity == _FLAG:
                        self._record(matches, spec, None, i)
                        position += 1
                        continue
                    if spec.arity == _OPTIONAL:
                        if rest.startswith("="):
                            self._record(matches, spec, rest[1:], i)
                            break
                        self._record(matches, spec, None, i)
                        position += 1
                        continue
                    value = rest[1:] if rest.startswith("=") else rest
                    if value:
                        self._record(matches, spec, value, i)
                    else:
                        if i + 1 >= len(args):
                            raise self._missing(spec)
                        i += 1
                        self._record(matches, spec, args[i], i - 1)
                    break
            else:
                matches.command = list(args[i:])
                break
            i += 1
        return matches


def build_parser() -> _Parser:
    """Return the parser for the xargs command line."""
    return _Parser(
        [
            _OptionSpec("arg_file", "a", "arg-file", _VALUE,
                        "Read arguments from the given file instead of stdin", "arg-file"),
            _OptionSpec("delimiter", "d", "delimiter", _VALUE,
                        "Use the given delimiter to split the input", "delimiter",
                        parse_delimiter),
            _OptionSpec("exit", "x", "exit", _FLAG,
                        "Exit if the number of arguments allowed by -L or -n do not fit "
                        "into the number of allowed characters"),
            _OptionSpec("max_args", "n", "max-args", _VALUE,
                        "Set the max number of arguments read from stdin to be passed to "
                        "each command invocation (mutually exclusive with -L and -I/-i)",
                        "max-args", parse_positive_int),
            _OptionSpec("max_lines", "L", "max-lines", _VALUE,
                        "Set the max number of lines from stdin to be passed to each "
                        "command invocation (mutually exclusive with -n and -I/-i)",
                        "max-lines", parse_positive_int),
            _OptionSpec("max_procs", "P", "max-procs", _VALUE,
                        "Run up to this many commands in parallel [NOT IMPLEMENTED]",
                        "max-procs", _parse_usize),
            _OptionSpec("no_run_if_empty", "r", "no-run-if-empty", _FLAG,
                        "If there are no input arguments, do not run the command at all"),
            _OptionSpec("null", "0", "null", _FLAG,
                        "Split the input by null terminators rather than whitespace"),
            _OptionSpec("max_chars", "s", "max-chars", _VALUE,
                        "Set the max number of characters to be passed to each invocation",
                        "max-chars", parse_positive_int),
            _OptionSpec("verbose", "t", "verbose", _FLAG, "Be verbose"),
            _OptionSpec("replace", "i", "replace", _OPTIONAL,
                        "If R is specified, the same as -I R; otherwise, the same as -I {}",
                        "R"),
            _OptionSpec("replace_i", "I", None, _VALUE,
                        "Replace R in initial arguments with names read from standard "
                        "input; also, the input is split at newlines only (mutually "
                        "exclusive with -L and -n)", "R"),
        ]
    )


def _normalize(matches: _Matches, replace: str | None):
    max_args = matches.get("max_args")
    max_lines = matches.get("max_lines")

    if replace is not None and max_args in (None, 1) and max_lines is None:
        max_args = 1
    elif replace is None and not (max_args is not None and max_lines is not None):
        pass
    else:
        print(
            "WARNING: -L, -n and -I/-i are mutually exclusive, but more than one were "
            "given; only the last option will be used",
            file=sys.stderr,
        )
        lines_index = matches.index("max_lines")
        args_index = matches.index("max_args")
        replace_index = max(matches.index("replace"), matches.index("replace_i"))
        if lines_index > args_index and lines_index > replace_index:
            max_args, replace = None, None
        elif args_index > lines_index and args_index > replace_index:
            max_lines, replace = None, None
        else:
            max_args, max_lines = 1, None

    delimiter = matches.get("delimiter")
    if "null" in matches:
        if delimiter is None or matches.index("null") > matches.index("delimiter"):
            delimiter = 0
    elif delimiter is None and replace is not None:
        delimiter = ord("\n")
    return max_args, max_lines, replace, delimiter


def _run(args: Sequence[str]) -> CommandResult:
    parser = build_parser()
    try:
        matches = parser.parse(args[1:])
    except _HelpRequested:
        sys.stdout.write(parser.help_text())
        return CommandResult.SUCCESS
    except _VersionRequested:
        print(f"xargs {_VERSION}")
        return CommandResult.SUCCESS
    except _ParseError as error:
        raise XargsError(str(error)) from None

    if "replace_i" in matches:
        replace = matches.get("replace_i")
    elif "replace" in matches:
        replace = matches.get("replace") or "{}"
    else:
        replace = None

    max_args, max_lines, replace, delimiter = _normalize(matches, replace)

    env = dict(os.environ)
    limiters = LimiterCollection()
    if max_args is not None:
        limiters.add(MaxArgsLimiter(max_args))
    if max_lines is not None:
        limiters.add(MaxLinesLimiter(max_lines))
    if matches.get("max_chars") is not None:
        limiters.add(MaxCharsLimiter(matches.get("max_chars")))
    limiters.add(MaxCharsLimiter.for_system(env))

    try:
        builder_options = CommandBuilderOptions.create(
            matches.command or None, env, limiters, replace
        )
    except ExhaustedCommandSpace:
        raise XargsError(
            "Base command and environment are too large to fit into one command execution"
        ) from None

    arg_file = matches.get("arg_file")
    builder_options.verbose = bool(matches.get("verbose"))
    builder_options.close_stdin = arg_file is None

    settings = InputProcessOptions(
        exit_if_pass_char_limit=bool(matches.get("exit")),
        max_args=max_args,
        max_lines=max_lines,
        no_run_if_empty=bool(matches.get("no_run_if_empty")),
    )

    def reader(stream):
        if delimiter is not None:
            return ByteDelimitedReader(stream, delimiter)
        return WhitespaceDelimitedReader(stream)

    if arg_file is not None:
        try:
            stream = open(arg_file, "rb")
        except OSError as error:
            raise XargsError(f"Failed to open {arg_file}: {error}") from None
        with stream:
            return process_input(builder_options, reader(stream), settings)
    return process_input(builder_options, reader(sys.stdin.buffer), settings)


def xargs_main(args: Sequence[str]) -> int:
    """Run xargs with ``args`` (program name first) and return the exit status."""
    try:
        result = _run(args)
    except CommandExecutionError as error:
        print(f"Error: {error}", file=sys.stderr)
        return error.exit_code
    except (XargsError, UnterminatedQuoteError, OSError) as error:
        print(f"Error: {error}", file=sys.stderr)
        return 1
    return 0 if result is CommandResult.SUCCESS else 123


def main(argv: Sequence[str] | None = None) -> int:
    """Console entry point."""
    args = list(sys.argv) if argv is None else ["xargs", *argv]
    return xargs_main(args)
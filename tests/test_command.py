import sys

import pytest

from xargskit.command import (
    ArgumentTooLargeError,
    CannotRunError,
    CommandBuilder,
    CommandBuilderOptions,
    CommandNotFoundError,
    CommandResult,
    InputProcessOptions,
    KilledError,
    UnknownCommandError,
    UrgentlyFailedError,
    process_input,
)
from xargskit.limits import (
    Argument,
    ArgumentKind,
    ExhaustedCommandSpace,
    LimiterCollection,
    MaxArgsLimiter,
    MaxCharsLimiter,
)

PRINT_ARGS = [sys.executable, "-c", "import sys; print(' '.join(sys.argv[1:]))"]


def soft(text):
    return Argument(text, ArgumentKind.SOFT_TERMINATED)


def options_with(action=None, *limiters, replace=None):
    collection = LimiterCollection()
    for limiter in limiters:
        collection.add(limiter)
    return CommandBuilderOptions.create(action, {}, collection, replace)


def test_combine_keeps_first_failure():
    assert CommandResult.SUCCESS.combine(CommandResult.FAILURE) is CommandResult.FAILURE
    assert CommandResult.FAILURE.combine(CommandResult.SUCCESS) is CommandResult.FAILURE
    assert CommandResult.SUCCESS.combine(CommandResult.SUCCESS) is CommandResult.SUCCESS


@pytest.mark.parametrize(
    "error, code",
    [
        (UrgentlyFailedError(), 124),
        (KilledError(2), 125),
        (CannotRunError(OSError("x")), 126),
        (CommandNotFoundError(), 127),
        (UnknownCommandError(), 1),
    ],
)
def test_exit_codes(error, code):
    assert error.exit_code == code


def test_error_messages():
    assert str(UrgentlyFailedError()) == "Command exited with code 255"
    assert str(CommandNotFoundError()) == "Command not found"
    assert str(ArgumentTooLargeError()) == "Argument too large"
    assert KilledError(9).signal == 9


def test_create_rejects_oversized_initial_command():
    with pytest.raises(ExhaustedCommandSpace):
        options_with(None, MaxCharsLimiter(3))


def test_echo_batches_by_max_args(capsys):
    options = options_with(None, MaxArgsLimiter(2))
    result = process_input(options, [soft("a"), soft("b"), soft("c")], InputProcessOptions())
    assert result is CommandResult.SUCCESS
    assert capsys.readouterr().out == "a b\nc\n"


def test_empty_input_runs_once_unless_told_not_to(capsys):
    process_input(options_with(), [], InputProcessOptions())
    assert capsys.readouterr().out == "\n"
    process_input(options_with(), [], InputProcessOptions(no_run_if_empty=True))
    assert capsys.readouterr().out == ""


def test_argument_too_large():
    options = options_with(None, MaxCharsLimiter(8))
    with pytest.raises(ArgumentTooLargeError):
        process_input(options, [soft("toolong")], InputProcessOptions())


def test_exit_if_pass_char_limit_with_max_args():
    options = options_with(None, MaxArgsLimiter(2), MaxCharsLimiter(11))
    settings = InputProcessOptions(exit_if_pass_char_limit=True, max_args=2)
    with pytest.raises(ArgumentTooLargeError):
        process_input(options, [soft("abcdefg"), soft("hijklmn")], settings)


def test_builders_have_independent_limiters():
    options = options_with(None, MaxArgsLimiter(1))
    first = CommandBuilder(options)
    first.add_arg(soft("a"))
    with pytest.raises(ExhaustedCommandSpace):
        first.add_arg(soft("b"))
    second = CommandBuilder(options)
    second.add_arg(soft("b"))
    assert second.extra_args == ["b"]


def test_runs_command_with_arguments(capfd):
    options = options_with(PRINT_ARGS)
    builder = CommandBuilder(options)
    builder.add_arg(soft("x"))
    builder.add_arg(soft("y"))
    assert builder.execute() is CommandResult.SUCCESS
    assert capfd.readouterr().out == "x y\n"


def test_replace_substitutes_initial_arguments(capfd):
    options = options_with([*PRINT_ARGS, "{} and {}"], replace="{}")
    builder = CommandBuilder(options)
    builder.add_arg(soft("foo"))
    builder.execute()
    assert capfd.readouterr().out == "foo and foo\n"


def test_failure_and_urgent_failure():
    failing = options_with([sys.executable, "-c", "import sys; sys.exit(2)"])
    assert CommandBuilder(failing).execute() is CommandResult.FAILURE
    urgent = options_with([sys.executable, "-c", "import sys; sys.exit(255)"])
    with pytest.raises(UrgentlyFailedError):
        CommandBuilder(urgent).execute()


def test_missing_command():
    options = options_with(["this-file-does-not-exist"])
    with pytest.raises(CommandNotFoundError):
        CommandBuilder(options).execute()
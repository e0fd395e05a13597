# xargskit

Run a command once or many times, with arguments read from standard input
or from a file.

Installing the package puts an `xargs` command on your path:

```
pip install xargskit
```

## Usage

```
xargs [OPTIONS] [COMMAND [INITIAL-ARGS...]]
```

Arguments are read from standard input and appended to `COMMAND`. With no
command, the arguments are echoed on one line.

```
$ printf 'abc\ndef g\\hi' | xargs
abc def ghi

$ printf 'ab cd ef\ngh i' | xargs -n2
ab cd
ef gh
i
```

By default input is split on whitespace. Single and double quotes group
words, and a backslash escapes the next character. An unterminated quote
is an error. With `-d` or `-0` the input is split on that one byte
instead, quotes and backslashes are taken literally, and empty items are
skipped.

### Options

| Option | Meaning |
| --- | --- |
| `-a FILE`, `--arg-file FILE` | Read arguments from FILE; the command keeps the caller's stdin |
| `-d DELIM`, `--delimiter DELIM` | Split input on one byte; `\n`, `\t`, `\x61` and `\0141` forms are accepted |
| `-0`, `--null` | Split input on NUL bytes |
| `-n N`, `--max-args N` | At most N input arguments per command |
| `-L N`, `--max-lines N` | At most N input lines per command |
| `-s N`, `--max-chars N` | At most N characters per command line |
| `-x`, `--exit` | Stop if the `-n` or `-L` arguments do not fit within the character limit |
| `-r`, `--no-run-if-empty` | Do not run the command when there is no input |
| `-I R` | Replace R in the initial arguments with each input line |
| `-i[=R]`, `--replace[=R]` | Like `-I R`; R defaults to `{}` |
| `-t`, `--verbose` | Print each command on stderr before running it |
| `-P N`, `--max-procs N` | Accepted; commands always run one at a time |
| `-h`, `--help` | Print help |
| `-V`, `--version` | Print the version |

`-L`, `-n` and `-I`/`-i` are mutually exclusive; when more than one is
given, a warning is printed and the last one wins. When both `-d` and
`-0` are given, the last one wins. Without `-a`, commands are run with
their standard input closed.

```
$ printf 'bar\nbaz' | xargs -I {} echo '{} {} foo'
bar bar foo
baz baz foo
```

### Exit status

| Code | Meaning |
| --- | --- |
| 0 | Every command succeeded |
| 123 | A command exited with a status from 1 to 254 |
| 124 | A command exited with status 255; processing stopped |
| 125 | A command was killed by a signal |
| 126 | A command could not be run |
| 127 | The command was not found |
| 1 | Any other error, such as bad options or an argument that is too large |

## Using it from Python

- `xargskit.cli.xargs_main(args)` runs xargs with a full argument list
  (program name first) and returns the exit status; `xargskit.cli.main()`
  is the console entry point.
- `xargskit.readers.WhitespaceDelimitedReader` and
  `xargskit.readers.ByteDelimitedReader` turn a binary stream into an
  iterator of `Argument` values; `parse_delimiter` parses a `-d` value.
- `xargskit.limits` holds `MaxArgsLimiter`, `MaxLinesLimiter`,
  `MaxCharsLimiter` and `LimiterCollection`, which decide when a command
  line is full.
- `xargskit.command.process_input` feeds arguments into commands built by
  `CommandBuilder` and returns a `CommandResult`.

## What it does not do

Commands are never run in parallel: `-P` is parsed and then ignored.
There is no interactive prompting and no end-of-file marker option.
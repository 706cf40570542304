# ashcore

Building blocks for a small POSIX-style command shell, plus the three
generators a shell build uses to produce its syntax tables, parse-tree node
definitions and start-up routines.

## Installing

```
pip install .
pip install ".[test]"   # with pytest, to run the test suite
```

## What is inside

| Module               | Purpose |
|----------------------|---------|
| `ashcore.mystring`   | `prefix`, `is_number`, `number`, `scopyn`, and the `ShellError` exception raised wherever the shell reports an error |
| `ashcore.options`    | Shell option flags (`Options`, `Option`), positional parameters (`ShellParams`), command-line processing (`procargs`, `parse_options`, `Invocation`), and the `set`, `shift` and `getopts` builtins (`setcmd`, `shiftcmd`, `getoptscmd`); `ArgScanner.nextopt` parses options for other builtins |
| `ashcore.input`      | `InputStack`: a stack of input sources (files, streams, strings) with pushed-back strings for alias expansion, one-character push-back (`pungetc`) and line reads (`pfgets`) |
| `ashcore.mail`       | `parse_mailpath` and `MailChecker`, whose `check` returns the messages to announce ("you have mail" by default) for mailboxes that have grown |
| `ashcore.miscbltin`  | The `read`, `umask` and `ulimit` builtins (`readcmd`, `umaskcmd`, `ulimitcmd`), with `format_symbolic_umask`, `apply_symbolic_mode` and `parse_limit_value` |
| `ashcore.mkinit`     | Collects `INIT`, `RESET` and `SHELLPROC` blocks from shell sources into one start-up file (`InitGenerator`) |
| `ashcore.mksyntax`   | Builds the character syntax tables and classification macros (`build_tables`, `SyntaxTables`) |
| `ashcore.mknodes`    | Reads a node-type description and emits the node header and source (`parse_nodetypes`, `NodeSpec`) |

## Examples

```python
from ashcore.mystring import ShellError, number, prefix

prefix("ec", "echo")          # True
number("42")                  # 42
try:
    number("4x2")
except ShellError as exc:
    print(exc)                # Illegal number: 4x2
```

```python
from ashcore.options import Options

opts = Options()
opts.set_option("x", 1)
opts.flag("x")                # 1
opts.set_by_name("noglob", 1)
print(opts.describe())        # the "Current option settings" listing
```

```python
from ashcore.input import InputStack

stack = InputStack(None)
stack.setinputstring("echo hi\nls\n", False)
stack.pfgets(100)             # "echo hi\n"
```

## Generators

Each generator is a command that writes its output files into the current
directory.

```
ashcore-mksyntax [parser.h] [--unsigned] [--nbits N]   # writes syntax.h and syntax.c
ashcore-mknodes nodetypes nodes.c.pat                  # writes nodes.h and nodes.c
ashcore-mkinit 'cc -c init.c' alias.c cd.c eval.c ...
```

`ashcore-mksyntax` reads the `CTL...` control-character definitions from
the header it is given (`parser.h` by default) and builds tables for signed
8-bit characters unless told otherwise.

`ashcore-mkinit` writes `init.c` only when its contents change, and then
runs the given command through `/bin/sh`; when nothing changed and a
non-empty `init.o` exists it touches `init.o` and exits without running the
command.

The same functions are available from Python: `ashcore.mksyntax.build_tables`,
`render_header` and `render_source`; `ashcore.mknodes.parse_nodetypes`,
`render_header` and `render_source`; and `ashcore.mkinit.InitGenerator` with
`readfile`, `feed` and `render`.

## What this package does not do

ashcore is a set of parts, not a working shell. It has no command parser,
no evaluator and no interactive command loop, so there is no shell command
to run. It also keeps no job table: there is no job control and no `jobs`,
`fg`, `bg` or `wait` builtin. The `umask` and `ulimit` builtins need a
POSIX system.
# sanesystem

`sanesystem` records a snapshot of a system's state in a sum file. Later, it
checks the live system against that snapshot. A snapshot covers three things:

- **files**: the path, size, modification time and CRC-32 of every matching
  file in each configured directory;
- **command output**: the output of each configured shell command, joined into
  one record;
- **processes**: the configured programs, plus the user-space processes that
  `ps ax` lists.

The sum file can be signed with an OpenSSL private key. Before a sum file is
verified, its signature is checked against the matching public key.

While the tool runs, it writes progress and error messages to standard error.
It also sends each message as a UDP datagram to `127.0.0.1:15390`.

## Installation

```
pip install .
```

Signing and signature checks run `/usr/bin/openssl`, so OpenSSL must be
installed there.

## Usage

To create a sum file and sign it with a private key:

```
sanesystem C sums.txt private.pem
```

This writes `sums.txt` and `sums.txt.SIG`. Any mode other than `V` creates a
snapshot. If the sum file or the key cannot be found, the tool reports an error
and does not sign.

To verify the system against a sum file with the public key:

```
sanesystem V sums.txt public.pem
```

The command exits with status 1 in three cases:

- the signature is invalid;
- a file record or a command's output differs from the snapshot;
- a running process matches no recorded one.

If the signature file or the key is missing, the signature check is skipped
and verification goes ahead.

With fewer than three arguments, the tool prints the usage line `C/V sumfile
PUB/PKEY` and exits. At the end of a run it prints the elapsed time.

## Configuration

The configuration file takes its name from the program, with a `.conf`
extension: `sanesystem.conf`. The tool looks for it next to the program first,
then in the current directory. The file uses a curly-bracket layout:

```
threads = 4;
dirs {
    /usr/bin {
        recursive = true;
        include = "*";
        exclude = *.tmp, *.log;
        what = size, time, crc;
        symlinks = false;
    }
}
cmds {
    "lsmod" { exclude = "^Module"; }
}
progs { sshd, cron }
```

### Settings

- `threads`: how many threads compute CRCs. `0` or no value means one thread
  per CPU.
- `include` and `exclude`: wildcard patterns matched against file names
  without regard to case. `*` and `?` work as usual, and `|` separates
  alternatives.
- `recursive`: descends into subdirectories.
- `symlinks`: also lists symbolic links whose target exists.
- `what`: a CRC is computed only when `crc` is listed. Without it, the CRC
  field records `00000000`. Size and time are always recorded.
- `exclude` under a command: regular expressions. The tool prints each output
  line that matches one of them as rejected. The recorded output still
  contains those lines.
- `%include = other;`: pulls in `other.conf`.

### Syntax

- `#` starts a comment.
- Double quotes keep white space.
- `\` escapes the next special character.
- A value starting with `@` refers to another node by path, for example
  `@/dirs/x[1]` or `@../y`.

## Library use

```python
from sanesystem.config import Config
from sanesystem.crc import compute, crc_file_parallel
from sanesystem.utils import match_wild

cfg = Config()
cfg.parse_text("dirs { /etc { recursive = true; } }")
print(cfg["dirs"].value(0))               # "/etc"

print(hex(compute(b"123456789")))         # 0xcbf43926
crc, size = crc_file_parallel("/etc/hostname")
print(match_wild("report.TXT", "*.txt"))  # True
```

The checkers live in `sanesystem.checkers`: `FileChecker`, `CommandChecker`
and `ProcessChecker`. Each one takes a `Config` and an optional
`sanesystem.notify.KernelNotifier`.

- `create(stream, lineno)` writes numbered records and returns the next line
  number.
- `verify(stream, lineno)` reads records back. It raises `VerificationError`
  on a mismatch.
- After `verify`, `ProcessChecker.worm` holds an unrecognised process, if
  there is one.

## What it does not do

`sanesystem` only sends its UDP messages. It includes no listener or kernel
component to receive them, and it takes no action on them.
"""Baseline checks of a system: file checksums, command output and running processes.

Each checker writes numbered records to a text stream when a baseline is
created, and compares the live system against those records when it is
verified.
"""

from __future__ import annotations

import os
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from .crc import WANT_CRC, WANT_SIZE, WANT_TIME, crc_file_parallel
from .utils import match_wild, proc_exec, split_str

PROCESS_TAG = ":process:"

_WHAT_FLAGS = {"size": WANT_SIZE, "time": WANT_TIME, "crc": WANT_CRC}
_CONTROL = "".join(map(chr, range(33)))
_LEADING_INT = re.compile(r"\s*\+?(\d+)")
_UINT64 = 1 << 64


class VerificationError(Exception):
    """The live system does not match a record of the baseline."""

    def __init__(self, message, line):
        super().__init__(f"line {line}: {message}")
        self.line = line


@dataclass
class DirectorySpec:
    """A folder to checksum and the rules for picking its files."""

    folder: str
    recursive: bool = False
    links: bool = False
    excludes: list[str] = field(default_factory=list)
    includes: str = ""
    what: int = 0

    def skips(self, name):
        """True when an entry called name is left out."""
        if self.includes and not match_wild(name, self.includes):
            return True
        return any(match_wild(name, pattern) for pattern in self.excludes)


@dataclass
class CommandSpec:
    """A shell command whose output is part of the baseline."""

    command: str
    excludes: list[str] = field(default_factory=list)


def _values(node):
    return [node.value(index) for index in range(node.count())]


def _read_line(stream):
    line = stream.readline()
    return line[:-1] if line.endswith("\n") else line


def _output_lines(output):
    lines = output.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def _trim(text):
    return text.rstrip(_CONTROL)


def _leading_int(text):
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def _scan(root, recursive):
    """Yield directory entries, each directory followed by its contents."""
    try:
        with os.scandir(root) as iterator:
            entries = list(iterator)
    except OSError:
        return
    for entry in entries:
        yield entry
        if recursive and entry.is_dir(follow_symlinks=False):
            yield from _scan(entry.path, True)


class SaneChecker(ABC):
    """Common driver: create() writes records, verify() checks them."""

    def __init__(self, cfg, notifier=None):
        self.cfg = cfg
        self.notifier = notifier

    def create(self, stream, lineno=0):
        """Write this checker's records; return the next line number."""
        return self._common(stream, True, lineno)

    def verify(self, stream, lineno=0):
        """Check records read from stream; return the next line number."""
        return self._common(stream, False, lineno)

    def _notify(self, *args):
        if self.notifier is not None:
            self.notifier.send(*args)

    @abstractmethod
    def _common(self, stream, create, lineno):
        """Write (create) or check (verify) records starting at lineno."""


class FileChecker(SaneChecker):
    """Records size, modification time and CRC-32 of files in configured folders."""

    def __init__(self, cfg, notifier=None):
        super().__init__(cfg, notifier)
        dirs = cfg["dirs"]
        self.dirs = []
        for folder in _values(dirs):
            if not folder:
                continue
            settings = dirs[folder]
            what = 0
            for item in _values(settings["what"]):
                what |= _WHAT_FLAGS.get(item, 0)
            self.dirs.append(
                DirectorySpec(
                    folder=folder,
                    recursive=settings["recursive"].value() == "true",
                    links=settings["symlinks"].value() == "true",
                    excludes=_values(settings["exclude"]),
                    includes=settings["include"].value(),
                    what=what,
                )
            )

    def find_files(self, spec):
        """List the files of a folder that the spec selects.

        Symbolic links that resolve are listed once more when the spec
        asks for links; excluded directories are still descended into.
        """
        found = []
        for entry in _scan(spec.folder, spec.recursive):
            if spec.skips(entry.name):
                continue
            if entry.is_file():
                found.append(Path(entry.path))
            if spec.links and entry.is_symlink() and os.path.exists(entry.path):
                found.append(Path(entry.path))
        return found

    def _record(self, path, lineno, spec, threads):
        mtime = path.stat().st_mtime_ns % _UINT64
        crc, size = 2, 0
        try:
            crc, size = crc_file_parallel(path, threads, spec.what)
        except (OSError, ValueError) as exc:
            self._notify("warning: line=", lineno, ", file=", path, ", what=", exc)
        return f"{lineno}:F:{path.parent}/{path.name} s:{size} t:{mtime} c:{crc:08x}"

    def _common(self, stream, create, lineno):
        threads = _leading_int(self.cfg["threads"].value())
        for spec in self.dirs:
            print(f"parsing: line=000000, folder={spec.folder}")
            for path in self.find_files(spec):
                record = self._record(path, lineno, spec, threads)
                if create:
                    stream.write(record + "\n")
                    if lineno % 100 == 0:
                        self._notify("creating: line=", lineno, ", file=", path.name)
                else:
                    line = _read_line(stream)
                    if record != line:
                        self._notify("error: line=", lineno, ", cmd=", line, ", out=", record)
                        raise VerificationError(f"file record {line!r} != {record!r}", lineno)
                    if lineno % 100 == 0:
                        self._notify("verify: line=", lineno, ", file=", record)
                lineno += 1
        return lineno


class CommandChecker(SaneChecker):
    """Records the output of configured shell commands."""

    def __init__(self, cfg, notifier=None):
        super().__init__(cfg, notifier)
        cmds = cfg["cmds"]
        self.commands = [
            CommandSpec(command, _values(cmds[command]["exclude"]))
            for command in _values(cmds)
        ]

    def _common(self, stream, create, lineno):
        for spec in self.commands:
            output = proc_exec(spec.command)
            print(spec.command)
            lines = _output_lines(output)
            for line in lines:
                # Matching lines are reported; the recorded output keeps them.
                for pattern in spec.excludes:
                    if re.search(pattern, line):
                        print(f"line: {lineno}, cmd={line} -> rejected")
            joined = "".join(lines)
            if not joined:
                continue

            record = f"{lineno}:P:{spec.command}: {joined}"
            if create:
                stream.write(record + "\n")
                detail = lines[-1]
            else:
                detail = _read_line(stream)
                if _trim(record) != _trim(detail):
                    self._notify("error: line=", lineno, ", comand=", detail)
                    raise VerificationError(f"command output {detail!r} != {record!r}", lineno)
            lineno += 1
            self._notify("doing: line=", lineno, ", cmd=", detail)
        return lineno


class ProcessChecker(SaneChecker):
    """Records configured programs and running user-space processes.

    After verify(), ``worm`` holds a running process that matched no
    recorded one, or is empty.
    """

    ps_command = "ps ax"

    def __init__(self, cfg, notifier=None):
        super().__init__(cfg, notifier)
        self.recorded = set()
        self.running = set()
        self.worm = ""

    def _programs(self):
        return _values(self.cfg["progs"])

    def _processes(self):
        for line in _output_lines(proc_exec(self.ps_command)):
            parts = split_str(line, " ")
            if len(parts) < 5 or parts[4].startswith("["):
                continue
            yield "".join(part + " " for part in parts[4:])

    def create(self, stream, lineno=0):
        for program in self._programs():
            stream.write(f"{lineno}{PROCESS_TAG}{program}\n")
            lineno += 1
        for process in self._processes():
            stream.write(f"{lineno}{PROCESS_TAG}{process}\n")
            lineno += 1
            self._notify("creating: line=", lineno, ", process=", process)
        return lineno

    def verify(self, stream, lineno=0):
        self._read(stream)
        self.worm = self._find_worm()
        if self.worm:
            self._notify("error: worm=", self.worm)
        return lineno

    def _read(self, stream):
        self.running = set(self._programs())
        self.running.update(self._processes())
        self.recorded = set()
        for raw in iter(stream.readline, ""):
            line = raw[:-1] if raw.endswith("\n") else raw
            index = line.find(PROCESS_TAG)
            if index < 0:
                break
            self.recorded.add(_trim(line[index + len(PROCESS_TAG):]))

    def _find_worm(self):
        worm = ""
        for current in sorted(self.running):
            for recorded in sorted(self.recorded):
                if recorded in current or current in recorded:
                    worm = ""
                    break
                worm = current
        return worm

    def _common(self, stream, create, lineno):
        return lineno
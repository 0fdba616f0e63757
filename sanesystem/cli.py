"""Command line entry point: create or verify a signed baseline of the system."""

from __future__ import annotations

import io
import subprocess
import sys
import time
from pathlib import Path

from .checkers import CommandChecker, FileChecker, ProcessChecker, VerificationError
from .config import Config, ConfigError
from .notify import KernelNotifier

OPENSSL = "/usr/bin/openssl"
SIGNATURE_SUFFIX = ".SIG"
USAGE = "C/V sumfile PUB/PKEY"
VERIFY_MODE = "V"


def _signature_path(sumfile):
    return Path(f"{sumfile}{SIGNATURE_SUFFIX}")


def _run_openssl(cmd):
    print(" ".join(cmd))
    try:
        return subprocess.run(cmd, check=False).returncode
    except OSError:
        return 127


def sign_file(sumfile, key):
    """Sign sumfile with the private key into ``<sumfile>.SIG``.

    Returns True when the signature file exists afterwards. Raises
    FileNotFoundError when the sum file or the key is missing.
    """
    sumfile, key = Path(sumfile), Path(key)
    if not sumfile.is_file() or not key.exists():
        raise FileNotFoundError(f"cannot find {sumfile} or {key}")
    signature = _signature_path(sumfile)
    _run_openssl(
        [OPENSSL, "dgst", "-sha256", "-sign", str(key), "-out", str(signature), str(sumfile)]
    )
    return signature.is_file()


def verify_signature(sumfile, key):
    """Check ``<sumfile>.SIG`` against sumfile with the public key.

    Returns None when the signature, the sum file or the key is missing
    (nothing to check), otherwise whether the signature is valid.
    """
    sumfile, key = Path(sumfile), Path(key)
    signature = _signature_path(sumfile)
    if not (signature.is_file() and sumfile.is_file() and key.exists()):
        return None
    code = _run_openssl(
        [OPENSSL, "dgst", "-sha256", "-verify", str(key), "-signature", str(signature), str(sumfile)]
    )
    return code == 0


def _verify(checkers, notifier, sumfile, key):
    if verify_signature(sumfile, key) is False:
        notifier.send("error: ", "signature check failed for ", sumfile)
        return 1

    files, cmds, procs = checkers
    try:
        stream = open(sumfile, encoding="utf-8", errors="replace")
    except OSError:
        stream = io.StringIO()

    with stream:
        lineno = 0
        try:
            lineno = files.verify(stream, lineno)
            lineno = cmds.verify(stream, lineno)
            procs.verify(stream, lineno)
        except VerificationError as exc:
            notifier.send("error: line:", exc.line)
            return 1
    return 1 if procs.worm else 0


def _create(checkers, notifier, sumfile, key):
    with open(sumfile, "w", encoding="utf-8") as stream:
        lineno = 0
        for checker in checkers:
            lineno = checker.create(stream, lineno)

    try:
        signed = sign_file(sumfile, key)
    except FileNotFoundError:
        notifier.send("error: cannot find ", sumfile, " or ", key)
        return 0
    if signed:
        notifier.send(sumfile, " -> Signed ", sumfile, SIGNATURE_SUFFIX)
    else:
        notifier.send("error: ", sumfile, " -> Signed ", sumfile, SIGNATURE_SUFFIX)
    return 0


def main(argv=None):
    """Run ``<program> C|V <sumfile> <key>``; argv includes the program name.

    The configuration is read from ``<program>.conf``. Any mode other than
    ``V`` creates the baseline.
    """
    argv = list(sys.argv if argv is None else argv)
    if len(argv) < 4:
        print(USAGE)
        return 0

    program, mode, sumfile, key = argv[:4]
    start = time.monotonic()

    cfg = Config()
    try:
        cfg.parse(program)
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    with KernelNotifier() as notifier:
        notifier.send(program, " ", mode, " ", sumfile, " ", key)
        checkers = (
            FileChecker(cfg, notifier),
            CommandChecker(cfg, notifier),
            ProcessChecker(cfg, notifier),
        )
        if mode == VERIFY_MODE:
            status = _verify(checkers, notifier, sumfile, key)
        else:
            status = _create(checkers, notifier, sumfile, key)

        elapsed = (time.monotonic() - start) * 1000.0
        print(f"time:{elapsed}ms ")
        notifier.send("time=", elapsed)
    return status


if __name__ == "__main__":
    sys.exit(main())
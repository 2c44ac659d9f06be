# This file is part of satellite-pe-tools. See LICENSE file for license information.
"""Run external commands (rpm, systemctl) on behalf of resources."""

import collections
import logging
import os
import subprocess
import time
from errno import ENOEXEC
from typing import List, Union

LOG = logging.getLogger(__name__)

SubpResult = collections.namedtuple("SubpResult", ["stdout", "stderr"])


class ProcessExecutionError(IOError):
    MESSAGE_TMPL = (
        "%(description)s\n"
        "Command: %(cmd)s\n"
        "Exit code: %(exit_code)s\n"
        "Reason: %(reason)s\n"
        "Stdout: %(stdout)s\n"
        "Stderr: %(stderr)s"
    )
    empty_attr = "-"

    def __init__(
        self,
        stdout=None,
        stderr=None,
        exit_code=None,
        cmd=None,
        description=None,
        reason=None,
        errno=None,
    ):
        self.cmd = cmd or self.empty_attr

        if description:
            self.description = description
        elif not exit_code and errno == ENOEXEC:
            self.description = "Exec format error. Missing #! in script?"
        else:
            self.description = "Unexpected error while running command."

        self.exit_code = (
            exit_code if isinstance(exit_code, int) else self.empty_attr
        )
        self.stderr = self._clean(stderr)
        self.stdout = self._clean(stdout)
        self.reason = reason or self.empty_attr
        if errno:
            self.errno = errno

        message = self.MESSAGE_TMPL % {
            "description": self.description,
            "cmd": self.cmd,
            "exit_code": self.exit_code,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "reason": self.reason,
        }
        IOError.__init__(self, message)

    def _clean(self, text):
        if text is None:
            return self.empty_attr
        if isinstance(text, bytes):
            text = text.decode("utf-8", "replace")
        if not text:
            return text
        # indent all but the first line so multi-line output stays readable
        return text.rstrip("\n").replace("\n", "\n" + " " * 8)


def subp(
    args: Union[str, List[str]],
    *,
    data=None,
    rcs=None,
    capture=True,
    shell=False,
    update_env=None,
    cwd=None,
    timeout=None,
) -> SubpResult:
    """Run a subprocess.

    :param args: command to run in a list. [cmd, arg1, arg2...]
    :param data: input to the command, made available on its stdin.
    :param rcs:
        a list of allowed return codes.  If subprocess exits with a value not
        in this list, a ProcessExecutionError will be raised.
    :param capture:
        boolean indicating if output should be captured.  If True, then stderr
        and stdout will be returned decoded as utf-8.
    :param shell: boolean indicating if this should be run with a shell.
    :param update_env:
        update the environment for this command with this dictionary.
    :param cwd: change the working directory to cwd before executing.
    :param timeout: maximum time for the subprocess to run.

    :return: SubpResult(stdout, stderr), (None, None) when not capturing.
    """
    if rcs is None:
        rcs = [0]

    env = os.environ.copy()
    if update_env:
        env.update(update_env)

    LOG.debug(
        "Running command %s with allowed return codes %s"
        " (shell=%s, capture=%s)",
        args,
        rcs,
        shell,
        capture,
    )

    stdout = stderr = None
    if capture:
        stdout = subprocess.PIPE
        stderr = subprocess.PIPE
    if data is None:
        stdin = subprocess.DEVNULL
    else:
        stdin = subprocess.PIPE
        if not isinstance(data, bytes):
            data = data.encode()

    try:
        before = time.monotonic()
        sp = subprocess.Popen(
            args,
            stdout=stdout,
            stderr=stderr,
            stdin=stdin,
            env=env,
            shell=shell,
            cwd=cwd,
        )
        out, err = sp.communicate(data, timeout=timeout)
        total = time.monotonic() - before
        if total > 0.1:
            LOG.debug("%s took %.3ss to run", args, total)
    except OSError as e:
        raise ProcessExecutionError(
            cmd=args, reason=e, errno=e.errno, stdout="-", stderr="-"
        ) from e

    if isinstance(out, bytes):
        out = out.decode("utf-8", "replace")
    if isinstance(err, bytes):
        err = err.decode("utf-8", "replace")

    rc = sp.returncode
    if rc not in rcs:
        raise ProcessExecutionError(
            stdout=out, stderr=err, exit_code=rc, cmd=args
        )
    return SubpResult(out, err)


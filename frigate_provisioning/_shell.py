# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import os
import shlex
import socket
import subprocess
from abc import ABCMeta
from abc import abstractmethod
from pathlib import PurePosixPath
from typing import Mapping
from typing import Optional
from typing import Sequence


class Host(metaclass=ABCMeta):
    """Machine that executes provisioning command lines.

    Command lines are run by Bash with errexit and pipefail,
    so a failure anywhere in a pipeline fails the whole command.
    Output (stdout and stderr merged) goes to the log line by line
    as it arrives and is also returned in the CompletedProcess.
    """

    def run(self, command: str, *, stdin: Optional[bytes] = None, log_output=True):
        r = self.run_still(command, stdin=stdin, log_output=log_output)
        r.check_returncode()
        return r

    def run_still(self, command: str, *, stdin: Optional[bytes] = None, log_output=True):
        args = self._build(command)
        _logger.info("%s: Run: %s", self, command)
        r = _stream(args, stdin, self._env(), log_output)
        self._check_connection(r)
        return r

    @abstractmethod
    def hostname(self) -> str:
        pass

    @abstractmethod
    def default_home_dir(self, username: str) -> PurePosixPath:
        pass

    @abstractmethod
    def _build(self, command: str) -> Sequence[str]:
        pass

    def _env(self) -> Optional[Mapping[str, str]]:
        return None

    def _check_connection(self, r: subprocess.CompletedProcess):
        pass


class LocalHost(Host):
    """This machine. The usual way: the script runs on the Pi itself."""

    def __init__(self, env: Optional[Mapping[str, str]] = None):
        self._extra_env = env or {}

    def __repr__(self):
        return f'{LocalHost.__name__}()'

    def __str__(self):
        return 'localhost'

    def hostname(self):
        return socket.gethostname()

    def default_home_dir(self, username):
        return PurePosixPath(os.path.expanduser('~'))

    def _build(self, command):
        return ['bash', '-eo', 'pipefail', '-c', command]

    def _env(self):
        if not self._extra_env:
            return None
        return {**os.environ, **self._extra_env}


class SshHost(Host):
    """Remote machine reachable with key-based SSH.

    >>> SshHost('pi@nvr.local').hostname()
    'nvr.local'
    >>> SshHost('nvr.local').default_home_dir('pi')
    PurePosixPath('/home/pi')
    >>> SshHost('nvr.local')._build('echo "$HOME"')  # doctest: +NORMALIZE_WHITESPACE
    ['ssh', '-oBatchMode=yes', 'nvr.local', 'bash -eo pipefail -c \\'echo "$HOME"\\'']
    """

    def __init__(self, address: str):
        self._address = address

    def __repr__(self):
        return f'{SshHost.__name__}({self._address!r})'

    def __str__(self):
        return self._address

    def hostname(self):
        _user, _at, hostname = self._address.rpartition('@')
        return hostname

    def default_home_dir(self, username):
        return PurePosixPath('/home', username)

    def _build(self, command):
        # In BatchMode, execution fails if interactive input is required.
        return ['ssh', '-oBatchMode=yes', self._address, 'bash -eo pipefail -c ' + shlex.quote(command)]

    def _check_connection(self, r):
        if r.returncode == 255:
            raise CannotConnect(f"Cannot connect to {self._address}")


def _stream(args: Sequence[str], stdin: Optional[bytes], env, log_output: bool):
    process = subprocess.Popen(
        args,
        stdin=subprocess.PIPE if stdin is not None else subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        env=env,
        )
    if stdin is not None:
        # Written before output is read: uploaded files are small.
        # A child that exits without reading is reported by its exit code.
        try:
            process.stdin.write(stdin)
        except BrokenPipeError:
            pass
        try:
            process.stdin.close()
        except BrokenPipeError:
            pass
    output = []
    for line in process.stdout:
        output.append(line)
        if log_output:
            _logger.info("> %s", line.decode(errors='backslashreplace').rstrip())
    process.stdout.close()
    returncode = process.wait()
    _logger.debug("Exit code %d: %s", returncode, shlex.join(args))
    return subprocess.CompletedProcess(args, returncode, b''.join(output))


class CannotConnect(Exception):
    pass


_logger = logging.getLogger(__name__)

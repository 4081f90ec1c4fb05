# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import subprocess
from pathlib import PurePosixPath
from typing import Collection
from typing import Tuple

from frigate_provisioning._shell import Host


class FakeHost(Host):
    """Record command lines instead of running them.

    Every command succeeds with empty output unless a response matches:
    a (substring, return code, output) triple, first match wins.
    """

    def __init__(self, hostname='nvr-test', responses: Collection[Tuple[str, int, bytes]] = ()):
        self._hostname = hostname
        self._responses = list(responses)
        self.commands = []
        self.uploads = {}

    def __str__(self):
        return self._hostname

    def hostname(self):
        return self._hostname

    def default_home_dir(self, username):
        return PurePosixPath('/home', username)

    def _build(self, command):
        return [command]

    def run_still(self, command, *, stdin=None, log_output=True):
        self.commands.append(command)
        if stdin is not None:
            self.uploads[command] = stdin
        for substring, returncode, output in self._responses:
            if substring in command:
                return subprocess.CompletedProcess(command, returncode, output)
        return subprocess.CompletedProcess(command, 0, b'')

    def upload_to(self, target: str) -> bytes:
        [data] = [data for command, data in self.uploads.items() if command.endswith(' ' + target)]
        return data

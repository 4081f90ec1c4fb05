# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import shlex

from frigate_provisioning._core import Command
from frigate_provisioning._core import Run


class SetValue(Run):
    """Set KEY=VALUE in place, uncommenting the line if needed.

    >>> SetValue('/etc/systemd/journald.conf', 'MaxRetentionSec', '3month')
    Run("sudo sed -i -E 's/^[# ]*MaxRetentionSec=.*/MaxRetentionSec=3month/' /etc/systemd/journald.conf")
    """

    def __init__(self, path, key, value):
        key = key.replace('/', '\\/')
        value = value.replace('/', '\\/')
        super().__init__(' '.join([
            'sudo',
            'sed', '-i', '-E',
            shlex.quote(f's/^[# ]*{key}=.*/{key}={value}/'),
            shlex.quote(str(path)),
            ]))


class AppendLineIfMissing(Command):
    """Append KEY=VALUE unless a line starting with KEY exists.

    A missing file is created. The line is preceded by an empty line
    in case the file does not end with a newline.
    """

    def __init__(self, path, key, value):
        self._path = str(path)
        self._key = key
        self._line = f'{key}={value}'

    def __repr__(self):
        return f'{AppendLineIfMissing.__name__}({self._path!r}, {self._line!r})'

    def run(self, host):
        path = shlex.quote(self._path)
        r = host.run_still(f'grep -q {shlex.quote("^" + self._key)} {path}')
        if r.returncode == 0:
            _logger.info("%s: %s: %s is already set", host, self._path, self._key)
            return
        host.run(f"printf '\\n%s\\n' {shlex.quote(self._line)} | sudo tee -a {path}")
        _logger.info("%s: %s: appended %s", host, self._path, self._line)


_logger = logging.getLogger(__name__)

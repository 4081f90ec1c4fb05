# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import shlex
from typing import Sequence

from frigate_provisioning._core import CompositeCommand
from frigate_provisioning._core import Run


class SystemCtl(Run):
    """System-wide service manager command.

    >>> SystemCtl('enable', '--now', 'tailscale-cert.timer')
    SystemCtl('enable', '--now', 'tailscale-cert.timer')
    >>> print(SystemCtl('daemon-reload')._command)
    sudo systemctl daemon-reload
    """

    def __init__(self, *command: str, ignore_failure: bool = False):
        super().__init__(f'sudo systemctl {shlex.join(command)}', ignore_failure=ignore_failure)
        self._repr = f'{SystemCtl.__name__}{command!r}'.replace(',)', ')')

    def __repr__(self):
        return self._repr


class LaunchService(CompositeCommand):
    """Enable and (re)start, so that a rerun picks up changed files."""

    def __init__(self, unit_name: str):
        super().__init__([
            SystemCtl('daemon-reload'),
            SystemCtl('enable', unit_name),
            SystemCtl('restart', unit_name),
            # Report only: a unit that exits quickly is not active, status exits 3.
            SystemCtl('status', '--no-pager', unit_name, ignore_failure=True),
            ])
        self._repr = f'{LaunchService.__name__}({unit_name!r})'

    def __repr__(self):
        return self._repr


class UnitHook:
    """Exec* line of a service unit.

    A failing best-effort hook does not prevent the unit from starting:
    systemd ignores the exit code of commands prefixed with "-".

    >>> UnitHook('ExecStartPre', '/usr/bin/true', ignore_failure=True).render()
    'ExecStartPre=-/usr/bin/true'
    >>> UnitHook('ExecStart', '/usr/bin/true').render()
    'ExecStart=/usr/bin/true'
    """

    def __init__(self, directive: str, command: str, *, ignore_failure: bool = False):
        self.directive = directive
        self.command = command
        self.ignore_failure = ignore_failure

    def render(self) -> str:
        prefix = '-' if self.ignore_failure else ''
        return f'{self.directive}={prefix}{self.command}'


def render_hooks(hooks: Sequence[UnitHook]) -> str:
    return ''.join(hook.render() + '\n' for hook in hooks)

# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import shlex

from frigate_provisioning._core import Run


class AddUserToGroup(Run):
    """Idempotent: usermod -a does nothing if the user is already in the group.

    >>> AddUserToGroup('pi', 'plugdev')
    Run('sudo usermod -aG plugdev pi')
    """

    def __init__(self, username, group):
        super().__init__(f'sudo usermod -aG {shlex.quote(group)} {shlex.quote(username)}')

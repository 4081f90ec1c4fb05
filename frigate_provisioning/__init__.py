# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
"""Raspberry Pi as a Frigate NVR: configuration in code.

The code serves as documentation for what is installed and configured:
journald retention, Coral Edge TPU driver, Docker, Frigate in Docker Compose
under a systemd template, Tailscale and weekly renewal of its certificate.
Nothing should be changed on the Pi by hand that is not reflected here.

Every action is formulated in terms of a command.
In most cases, it is a Run object or an InstallCommon/InstallSecret object.
It is desirable that commands be written in the most raw form,
so that it is clear what is being run and it is easy to copy.

Commands are grouped in steps. A step is a section in the log.
Steps run one by one; the first failing command stops the whole run.
There is no rollback. Read the log, fix the cause, run again.

Commands should be idempotent.
The second run must not "accumulate" changes.
Files are overwritten, not merged: edits made on the Pi are lost.

Commands should not be executed directly. Only via the installer.
This allows for logging and interaction with the user
and forces simpler commands that do not use results of each other,
which makes it easier to run them manually.

Configuration must be as non-invasive as possible.
Alter the defaults as little as possible.
"""
from frigate_provisioning._core import Command
from frigate_provisioning._core import CompositeCommand
from frigate_provisioning._core import InstallCommon
from frigate_provisioning._core import Installer
from frigate_provisioning._core import InstallSecret
from frigate_provisioning._core import Run
from frigate_provisioning._core import Step
from frigate_provisioning._core import StepResult
from frigate_provisioning._shell import CannotConnect
from frigate_provisioning._shell import Host
from frigate_provisioning._shell import LocalHost
from frigate_provisioning._shell import SshHost

__all__ = [
    'CannotConnect',
    'Command',
    'CompositeCommand',
    'Host',
    'InstallCommon',
    'InstallSecret',
    'Installer',
    'LocalHost',
    'Run',
    'SshHost',
    'Step',
    'StepResult',
    ]

# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
from frigate_provisioning._config_files import SetValue
from frigate_provisioning._core import Step
from frigate_provisioning.config import InstallerConfig


def configure_system(config: InstallerConfig):
    return Step("Configure System", [
        # Journal is the only record of what the NVR did; keep it for months.
        # See: https://www.freedesktop.org/software/systemd/man/latest/journald.conf.html
        SetValue(config.journald_conf, 'MaxRetentionSec', config.journal_max_retention),
        ])

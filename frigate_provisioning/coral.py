# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import shlex

from frigate_provisioning._core import Run
from frigate_provisioning._core import Step
from frigate_provisioning._users import AddUserToGroup
from frigate_provisioning.config import InstallerConfig

_repo = 'deb https://packages.cloud.google.com/apt coral-edgetpu-stable main'


def install_tpu_driver(config: InstallerConfig):
    sources_list = shlex.quote(str(config.apt_sources_dir / 'coral-edgetpu.list'))
    return Step("Install TPU Driver", [
        # See: https://coral.ai/docs/accelerator/get-started/
        Run(f'echo {shlex.quote(_repo)} | sudo tee {sources_list}'),
        Run('curl -fsSL https://packages.cloud.google.com/apt/doc/apt-key.gpg | sudo apt-key add -'),
        Run('sudo apt-get update'),
        Run('sudo apt-get install -y libedgetpu1-std'),
        # USB accelerator is accessible only to plugdev members.
        # See: https://github.com/tensorflow/tensorflow/issues/34135
        AddUserToGroup(config.username, 'plugdev'),
        ])

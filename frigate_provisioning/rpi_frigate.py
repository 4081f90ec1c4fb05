# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
from typing import Sequence

from frigate_provisioning._core import Command
from frigate_provisioning._core import Step
from frigate_provisioning.config import HOST_URI_VAR
from frigate_provisioning.config import PASSWORD_VAR
from frigate_provisioning.config import InstallerConfig
from frigate_provisioning.coral import install_tpu_driver
from frigate_provisioning.docker import install_docker
from frigate_provisioning.frigate import deploy_frigate
from frigate_provisioning.system import configure_system
from frigate_provisioning.tailscale import install_tailscale
from frigate_provisioning.tailscale import install_tailscale_cert_renewal


def frigate_pi_steps(config: InstallerConfig) -> Sequence[Step]:
    return [
        Step("Check Preconditions", [_ReportPreconditions(config)]),
        configure_system(config),
        install_tpu_driver(config),
        install_docker(config),
        deploy_frigate(config),
        install_tailscale(config),
        install_tailscale_cert_renewal(config),
        ]


class _ReportPreconditions(Command):
    """Required values are checked before the log is opened; record the outcome."""

    def __init__(self, config: InstallerConfig):
        self._config = config

    def __repr__(self):
        return f'{_ReportPreconditions.__name__}({self._config!r})'

    def run(self, host):
        _logger.info("%s: %s is set", host, PASSWORD_VAR)
        _logger.info("%s: %s=%s", host, HOST_URI_VAR, self._config.tailscale_host_uri)
        _logger.info("%s: %r", host, self._config)


_logger = logging.getLogger(__name__)

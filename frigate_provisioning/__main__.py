# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import os
import sys
from argparse import ArgumentParser
from pathlib import Path
from typing import Mapping
from typing import Sequence

from frigate_provisioning._core import Installer
from frigate_provisioning._logging import init_logging
from frigate_provisioning._shell import Host
from frigate_provisioning._shell import LocalHost
from frigate_provisioning._shell import SshHost
from frigate_provisioning.config import ConfigError
from frigate_provisioning.config import default_config_paths
from frigate_provisioning.config import load_config
from frigate_provisioning.rpi_frigate import frigate_pi_steps


def main(args):
    parser = ArgumentParser(description=(
        "provision a Raspberry Pi as a Frigate NVR; "
        "FRIGATE_RTSP_PASSWORD and TAILSCALE_HOST_URI must be set"))
    parser.add_argument('--host', help=(
        "provision over SSH, e.g. pi@nvr.local; "
        "default: this machine"))
    parser.add_argument('--config', type=Path, help=(
        "INI file with overrides; "
        f"default: {default_config_paths[-1]}"))
    parsed_args = parser.parse_args(args)
    host = SshHost(parsed_args.host) if parsed_args.host else LocalHost()
    paths = [default_config_paths[0], parsed_args.config or default_config_paths[-1]]
    return provision(host, os.environ, paths)


def provision(host: Host, environ: Mapping[str, str], config_paths: Sequence[Path]) -> int:
    try:
        config = load_config(host, environ, config_paths)
    except ConfigError as e:
        print(e, file=sys.stderr)
        return 1
    init_logging(config.log_file)
    _logger.info("Provision %s, log: %s", host, config.log_file)
    results = Installer(host, frigate_pi_steps(config)).run()
    for result in results:
        _logger.info("%r", result)
    failed = [r for r in results if not r.ok]
    if failed:
        [result] = failed
        _logger.error("Provisioning failed at %r; see %s", result.title, config.log_file)
        return result.exit_code()
    _logger.info("Provisioning finished")
    return 0


def _entry_point():
    return main(sys.argv[1:])


_logger = logging.getLogger(__name__)

if __name__ == '__main__':
    exit(main(sys.argv[1:]))

# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import shlex

from frigate_provisioning._core import Run
from frigate_provisioning._core import Step
from frigate_provisioning.config import InstallerConfig

_packages = [
    'docker-ce',
    'docker-ce-cli',
    'containerd.io',
    'docker-buildx-plugin',
    'docker-compose-plugin',
    ]


def install_docker(config: InstallerConfig):
    keyrings_dir = shlex.quote(str(config.apt_keyrings_dir))
    key = shlex.quote(str(config.apt_keyrings_dir / 'docker.asc'))
    sources_list = shlex.quote(str(config.apt_sources_dir / 'docker.list'))
    return Step("Install Docker", [
        # See: https://docs.docker.com/engine/install/debian/
        Run('sudo apt-get update'),
        Run('sudo apt-get install -y ca-certificates curl'),
        Run(f'sudo install -m 0755 -d {keyrings_dir}'),
        Run(f'sudo curl -fsSL https://download.docker.com/linux/debian/gpg -o {key}'),
        Run(f'sudo chmod a+r {key}'),
        Run(
            f'echo "deb [arch=$(dpkg --print-architecture) signed-by={key}] '
            'https://download.docker.com/linux/debian '
            '$(. /etc/os-release && echo "$VERSION_CODENAME") stable" '
            f'| sudo tee {sources_list} > /dev/null'),
        Run('sudo apt-get update'),
        Run(f'sudo apt-get install -y {" ".join(_packages)}'),
        # Smoke test. The container is removed not to accumulate them on reruns.
        Run('sudo docker run --rm hello-world'),
        ])

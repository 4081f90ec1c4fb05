# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
"""Frigate NVR in Docker Compose, started on boot by a systemd template.

The compose file and Frigate config are rendered by pure functions.
Only the commands in deploy_frigate() touch the target.
"""
import json
import shlex
from pathlib import Path

from frigate_provisioning._config_files import AppendLineIfMissing
from frigate_provisioning._core import InstallCommon
from frigate_provisioning._core import InstallSecret
from frigate_provisioning._core import Run
from frigate_provisioning._core import Step
from frigate_provisioning.config import InstallerConfig
from frigate_provisioning.systemd import LaunchService
from frigate_provisioning.systemd import UnitHook
from frigate_provisioning.systemd import render_hooks

# Instance name %i selects the compose file; one template serves many projects.
compose_template_unit_name = 'docker-compose@.service'
_compose = '/usr/bin/docker compose -f ${COMPOSE_FILE}'
_compose_hooks = [
    # Leftovers of a crashed run. Fails on the first start: nothing to tear down.
    UnitHook('ExecStartPre', f'{_compose} down --volumes', ignore_failure=True),
    UnitHook('ExecStart', f'{_compose} up'),
    UnitHook('ExecStop', f'{_compose} down --volumes'),
    ]


def deploy_frigate(config: InstallerConfig):
    project = config.compose_project
    return Step("Install Frigate", [
        Run('mkdir -p ' + ' '.join(shlex.quote(str(d)) for d in [
            config.frigate_config_dir,
            config.frigate_storage_dir,
            config.certs_dir,
            ])),
        # Hardware H.264 decoding needs more GPU memory than the default.
        AppendLineIfMissing(config.boot_config, 'gpu_mem', str(config.gpu_mem_mb)),
        # See: https://docs.frigate.video/frigate/installation/#docker
        InstallSecret(render_compose_file(config), config.compose_file(project)),
        InstallCommon(render_frigate_config(config), config.frigate_config_file),
        InstallCommon(
            render_compose_template_unit(config),
            config.compose_unit_dir / compose_template_unit_name,
            sudo=True),
        LaunchService(f'docker-compose@{project}.service'),
        ])


def render_compose_file(config: InstallerConfig) -> str:
    frigate_dir = config.frigate_dir
    return (
        'services:\n'
        '  frigate:\n'
        '    container_name: frigate\n'
        '    privileged: true # this may not be necessary for all setups\n'
        '    restart: unless-stopped\n'
        f'    image: {config.frigate_image}\n'
        '    shm_size: "128mb" # update for your cameras based on calculation in the doc\n'
        '    devices:\n'
        '      - /dev/bus/usb:/dev/bus/usb # Passes the USB Coral\n'
        '      # - /dev/apex_0:/dev/apex_0 # PCIe Coral, see https://coral.ai/docs/m2/get-started/#2a-on-linux\n'
        '      # - /dev/video11:/dev/video11 # For Raspberry Pi 4B\n'
        '    volumes:\n'
        '      - /etc/localtime:/etc/localtime:ro\n'
        f'      - {frigate_dir}/config:/config\n'
        f'      - {frigate_dir}/storage:/media/frigate\n'
        '\n'
        '      # Optional: TLS certificate issued by tailscale-cert.service.\n'
        '      # See: https://docs.frigate.video/configuration/tls\n'
        f'      # - {frigate_dir}/certs:/etc/letsencrypt/live/frigate:ro\n'
        '\n'
        '      # tmpfs reduces I/O to the SD card. 128MiB here, 1GB in the official doc.\n'
        '      - type: tmpfs\n'
        '        target: /tmp/cache\n'
        '        tmpfs:\n'
        '          size: 134217728\n'
        '    ports:\n'
        '      - "8971:8971"\n'
        '      # - "443:8971" # Uncomment after issuing a valid TLS cert to enable access via 443.\n'
        '      # - "5000:5000" # Internal unauthenticated access. Expose carefully.\n'
        '      - "8554:8554" # RTSP feeds\n'
        '      - "8555:8555/tcp" # WebRTC over tcp\n'
        '      - "8555:8555/udp" # WebRTC over udp\n'
        '    environment:\n'
        f'      FRIGATE_RTSP_PASSWORD: {_compose_string(config.rtsp_password)}\n'
        )


def render_frigate_config(config: InstallerConfig) -> str:
    # Same for every Pi: cameras are added on the Web UI afterwards.
    return _frigate_config_file.read_text(encoding='utf8')


def render_compose_template_unit(config: InstallerConfig) -> str:
    compose_file = config.compose_file('%i')
    return (
        '[Unit]\n'
        'Description=%i managed by docker-compose\n'
        'Requires=docker.service\n'
        'After=docker.service\n'
        '\n'
        '[Service]\n'
        'Type=simple\n'
        '\n'
        f'Environment=COMPOSE_FILE={compose_file}\n'
        '\n'
        f'{render_hooks(_compose_hooks)}'
        '\n'
        '[Install]\n'
        'WantedBy=multi-user.target\n'
        )


def _compose_string(value: str) -> str:
    """Quote for YAML; escape $ against Compose variable interpolation.

    >>> print(_compose_string('abc123'))
    "abc123"
    >>> print(_compose_string('p$ss: "#1"'))
    "p$$ss: \\"#1\\""
    """
    return json.dumps(value.replace('$', '$$'))


_frigate_config_file = Path(__file__).with_name('frigate.config.yml')

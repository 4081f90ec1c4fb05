# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import shlex

from frigate_provisioning._core import InstallCommon
from frigate_provisioning._core import Run
from frigate_provisioning._core import Step
from frigate_provisioning.certificates import CheckCertificate
from frigate_provisioning.config import InstallerConfig
from frigate_provisioning.systemd import SystemCtl

cert_service_name = 'tailscale-cert.service'
cert_timer_name = 'tailscale-cert.timer'


def install_tailscale(config: InstallerConfig):
    return Step("Install Tailscale", [
        # Trust is delegated to TLS and the vendor; the script is not inspected.
        # See: https://tailscale.com/kb/1031/install-linux
        Run('curl -fsSL https://tailscale.com/install.sh | sh'),
        ])


def install_tailscale_cert_renewal(config: InstallerConfig):
    return Step("Install Tailscale cert renewal", [
        InstallCommon(render_cert_service(config), config.cert_unit_dir / cert_service_name, sudo=True),
        InstallCommon(render_cert_timer(config), config.cert_unit_dir / cert_timer_name, sudo=True),
        SystemCtl('daemon-reload'),
        SystemCtl('enable', '--now', cert_timer_name),
        # Issue now instead of waiting a week.
        SystemCtl('start', cert_service_name),
        CheckCertificate(config.cert_file, config.cert_warning_days),
        ])


def render_cert_service(config: InstallerConfig) -> str:
    issue = shlex.join([
        'tailscale', 'cert',
        '--cert-file', str(config.cert_file),
        '--key-file', str(config.key_file),
        config.tailscale_host_uri,
        ])
    return (
        '[Unit]\n'
        'Description=Tailscale SSL Service Renewal\n'
        'After=network.target\n'
        'After=syslog.target\n'
        '\n'
        '[Service]\n'
        'Type=oneshot\n'
        'User=root\n'
        'Group=root\n'
        'WorkingDirectory=/etc/ssl/private/\n'
        f'ExecStart={issue}\n'
        '\n'
        '[Install]\n'
        'WantedBy=multi-user.target\n'
        )


def render_cert_timer(config: InstallerConfig) -> str:
    # Persistent: a renewal missed while powered off runs on the next boot.
    return (
        '[Unit]\n'
        'Description=Renew Tailscale cert\n'
        '\n'
        '[Timer]\n'
        'OnCalendar=weekly\n'
        f'Unit={cert_service_name}\n'
        'Persistent=true\n'
        '\n'
        '[Install]\n'
        'WantedBy=timers.target\n'
        )

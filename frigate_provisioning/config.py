# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import configparser
import fnmatch
import logging
from pathlib import Path
from pathlib import PurePosixPath
from typing import Mapping
from typing import Sequence

from frigate_provisioning._shell import Host

_logger = logging.getLogger(__name__)

PASSWORD_VAR = 'FRIGATE_RTSP_PASSWORD'
HOST_URI_VAR = 'TAILSCALE_HOST_URI'

default_config_paths = (
    Path(__file__).with_name('config.ini'),
    Path('~/.config/frigate_provisioning.ini').expanduser(),
    )


class InstallerConfig:
    """Everything the steps need. Built once, before any change is made."""

    def __init__(
            self,
            rtsp_password: str,
            tailscale_host_uri: str,
            username: str,
            home_dir: PurePosixPath,
            log_file: Path,
            settings: Mapping[str, str],
            ):
        self.rtsp_password = rtsp_password
        self.tailscale_host_uri = tailscale_host_uri
        self.username = username
        self.home_dir = home_dir
        self.log_file = log_file
        self.journald_conf = PurePosixPath(settings['journald_conf'])
        self.journal_max_retention = settings['journal_max_retention']
        self.boot_config = PurePosixPath(settings['boot_config'])
        self.gpu_mem_mb = _int(settings, 'gpu_mem_mb')
        self.apt_sources_dir = PurePosixPath(settings['apt_sources_dir'])
        self.apt_keyrings_dir = PurePosixPath(settings['apt_keyrings_dir'])
        self.compose_unit_dir = PurePosixPath(settings['compose_unit_dir'])
        self.cert_unit_dir = PurePosixPath(settings['cert_unit_dir'])
        self.frigate_image = settings['frigate_image']
        self.compose_project = settings['compose_project']
        self.cert_warning_days = _int(settings, 'cert_warning_days')

    def __repr__(self):
        # The password is never shown.
        return (
            f'{InstallerConfig.__name__}('
            f'username={self.username!r}, '
            f'home_dir={str(self.home_dir)!r}, '
            f'tailscale_host_uri={self.tailscale_host_uri!r})')

    @property
    def frigate_dir(self):
        return self.home_dir / 'frigate'

    @property
    def frigate_config_dir(self):
        return self.frigate_dir / 'config'

    @property
    def frigate_storage_dir(self):
        return self.frigate_dir / 'storage'

    @property
    def certs_dir(self):
        return self.frigate_dir / 'certs'

    @property
    def frigate_config_file(self):
        return self.frigate_config_dir / 'config.yml'

    @property
    def cert_file(self):
        return self.certs_dir / 'fullchain.pem'

    @property
    def key_file(self):
        return self.certs_dir / 'privkey.pem'

    def compose_file(self, project: str):
        return self.home_dir / f'docker-compose-{project}.yml'


def load_config(
        host: Host,
        environ: Mapping[str, str],
        paths: Sequence[Path] = default_config_paths,
        ) -> InstallerConfig:
    """Check required environment values first, then read INI files.

    Nothing is touched here: neither the target nor the log.
    """
    [rtsp_password, tailscale_host_uri] = check_environment(environ)
    try:
        settings = read_config(host.hostname(), *paths)
    except (ValueError, configparser.Error) as e:
        raise ConfigError(f"Malformed config in {[str(p) for p in paths]}: {e}")
    missing = [key for key in _known_keys if key not in settings]
    if missing:
        raise ConfigError(f"Settings are missing in {[str(p) for p in paths]}: {', '.join(missing)}")
    username = settings['username']
    if settings['home_dir']:
        home_dir = PurePosixPath(settings['home_dir'])
    else:
        home_dir = host.default_home_dir(username)
    if settings['log_file']:
        log_file = Path(settings['log_file']).expanduser()
    else:
        log_file = Path.home() / 'setup.log'
    return InstallerConfig(
        rtsp_password,
        tailscale_host_uri,
        username,
        home_dir,
        log_file,
        settings,
        )


def check_environment(environ: Mapping[str, str]):
    """Get required values; unset and empty are equally missing.

    >>> check_environment({'FRIGATE_RTSP_PASSWORD': 'abc123', 'TAILSCALE_HOST_URI': 'example.ts.net'})
    ('abc123', 'example.ts.net')
    >>> check_environment({'FRIGATE_RTSP_PASSWORD': '', 'TAILSCALE_HOST_URI': 'example.ts.net'})
    Traceback (most recent call last):
    ...
    frigate_provisioning.config.MissingSetting: Please set FRIGATE_RTSP_PASSWORD and run me again.
    >>> check_environment({'FRIGATE_RTSP_PASSWORD': 'abc123'})
    Traceback (most recent call last):
    ...
    frigate_provisioning.config.MissingSetting: Please set TAILSCALE_HOST_URI and run me again.
    Example: tailXXXXXX.ts.net
    """
    password = environ.get(PASSWORD_VAR, '')
    if not password:
        raise MissingSetting(f"Please set {PASSWORD_VAR} and run me again.")
    host_uri = environ.get(HOST_URI_VAR, '')
    if not host_uri:
        raise MissingSetting(
            f"Please set {HOST_URI_VAR} and run me again.\n"
            "Example: tailXXXXXX.ts.net")
    return password, host_uri


def read_config(hostname: str, *paths: Path) -> Mapping[str, str]:
    """Read and resolve overrides according to versions.

    Optionally add ";v123" to sections like "[nvr-*;v45]".
    If not specified, "v0" is assumed.
    Higher versions override lower versions.
    Sections are matched against the target hostname.
    """
    config_parts = []
    for path_i, path in enumerate(paths):
        config_parser = configparser.ConfigParser(interpolation=None)
        if not config_parser.read(path):
            _logger.debug("Config %s: not found", path)
            continue
        for section_i, section in enumerate(config_parser.sections()):
            mask, version = _parse_section_header(section)
            if fnmatch.fnmatch(hostname, mask):
                _logger.debug("Config %s: section %s: read", path, section)
                items = config_parser.items(section)
                config_parts.append((version, path_i, section_i, items))
            else:
                _logger.debug("Config %s: section %s: skip", path, section)
    config_parts.sort(key=lambda part: part[:3])
    config = {}
    for _version, _path_i, _section_i, items in config_parts:
        config.update(items)
    return config


def _parse_section_header(section):
    """Split host mask and version.

    >>> _parse_section_header('defaults')
    ('*', 0)
    >>> _parse_section_header('nvr-*;v2')
    ('nvr-*', 2)
    >>> _parse_section_header('nvr-*;x')
    Traceback (most recent call last):
    ...
    ValueError: Unknown x in nvr-*;x
    """
    if section == 'defaults':
        return '*', 0
    else:
        mask, _semicolon, extra = section.partition(';')
        if not extra:
            return mask, 0
        elif extra.startswith('v'):
            try:
                return mask, int(extra[1:])
            except ValueError:
                raise ValueError(f"Cannot parse {extra} in {section}")
        else:
            raise ValueError(f"Unknown {extra} in {section}")


def _int(settings: Mapping[str, str], key: str) -> int:
    try:
        return int(settings[key])
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {settings[key]!r}")


_known_keys = (
    'username',
    'home_dir',
    'log_file',
    'journald_conf',
    'journal_max_retention',
    'boot_config',
    'gpu_mem_mb',
    'apt_sources_dir',
    'apt_keyrings_dir',
    'compose_unit_dir',
    'cert_unit_dir',
    'frigate_image',
    'compose_project',
    'cert_warning_days',
    )


class ConfigError(Exception):
    pass


class MissingSetting(ConfigError):
    pass

# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import io
import logging
import shutil
import tempfile
import unittest
from contextlib import redirect_stderr
from pathlib import Path
from pathlib import PurePosixPath

from frigate_provisioning.__main__ import provision
from frigate_provisioning.config import ConfigError
from frigate_provisioning.config import MissingSetting
from frigate_provisioning.config import default_config_paths
from frigate_provisioning.config import load_config
from frigate_provisioning.config import read_config
from frigate_provisioning.tests._fake_host import FakeHost

_environ = {
    'FRIGATE_RTSP_PASSWORD': 'abc123',
    'TAILSCALE_HOST_URI': 'example.ts.net',
    }


class TestLoadConfig(unittest.TestCase):

    def setUp(self):
        self._dir = Path(tempfile.mkdtemp())
        self.addCleanup(shutil.rmtree, self._dir)
        self._packaged = default_config_paths[0]

    def _write(self, name, text):
        path = self._dir / name
        path.write_text(text)
        return path

    def test_defaults(self):
        config = load_config(FakeHost(), _environ, [self._packaged])
        self.assertEqual(config.username, 'pi')
        self.assertEqual(config.home_dir, PurePosixPath('/home/pi'))
        self.assertEqual(config.compose_file('frigate'), PurePosixPath('/home/pi/docker-compose-frigate.yml'))
        self.assertEqual(config.frigate_config_file, PurePosixPath('/home/pi/frigate/config/config.yml'))
        self.assertEqual(config.cert_file, PurePosixPath('/home/pi/frigate/certs/fullchain.pem'))
        self.assertEqual(config.key_file, PurePosixPath('/home/pi/frigate/certs/privkey.pem'))
        self.assertEqual(config.boot_config, PurePosixPath('/boot/firmware/config.txt'))
        self.assertEqual(config.gpu_mem_mb, 128)
        self.assertEqual(config.journal_max_retention, '3month')
        self.assertEqual(config.log_file, Path.home() / 'setup.log')

    def test_password_not_in_repr(self):
        config = load_config(FakeHost(), _environ, [self._packaged])
        self.assertNotIn('abc123', repr(config))
        self.assertIn('example.ts.net', repr(config))

    def test_user_override(self):
        override = self._write('override.ini', (
            '[defaults]\n'
            'username = nvr\n'
            ))
        config = load_config(FakeHost(), _environ, [self._packaged, override])
        self.assertEqual(config.username, 'nvr')
        self.assertEqual(config.home_dir, PurePosixPath('/home/nvr'))

    def test_home_dir_override(self):
        override = self._write('override.ini', '[defaults]\nhome_dir = /srv/nvr\n')
        config = load_config(FakeHost(), _environ, [self._packaged, override])
        self.assertEqual(config.frigate_dir, PurePosixPath('/srv/nvr/frigate'))

    def test_missing_override_file_ignored(self):
        config = load_config(FakeHost(), _environ, [self._packaged, self._dir / 'absent.ini'])
        self.assertEqual(config.username, 'pi')

    def test_not_an_integer(self):
        override = self._write('override.ini', '[defaults]\ngpu_mem_mb = lots\n')
        with self.assertRaises(ConfigError):
            load_config(FakeHost(), _environ, [self._packaged, override])

    def test_missing_key(self):
        partial = self._write('partial.ini', '[defaults]\nusername = pi\n')
        with self.assertRaises(ConfigError):
            load_config(FakeHost(), _environ, [partial])

    def test_environment_checked_first(self):
        # Broken INI files do not matter if the environment is incomplete.
        partial = self._write('partial.ini', '[defaults]\ngpu_mem_mb = lots\n')
        for environ in [
                {},
                {'FRIGATE_RTSP_PASSWORD': 'abc123'},
                {'TAILSCALE_HOST_URI': 'example.ts.net'},
                {'FRIGATE_RTSP_PASSWORD': '', 'TAILSCALE_HOST_URI': 'example.ts.net'},
                {'FRIGATE_RTSP_PASSWORD': 'abc123', 'TAILSCALE_HOST_URI': ''},
                ]:
            with self.subTest(environ=environ):
                with self.assertRaises(MissingSetting):
                    load_config(FakeHost(), environ, [partial])

    def test_bad_section_version(self):
        for header in ['[nvr-*;x]', '[nvr-*;vX]']:
            with self.subTest(header=header):
                override = self._write('override.ini', f'{header}\nusername = a\n')
                with self.assertRaises(ConfigError):
                    load_config(FakeHost(), _environ, [self._packaged, override])

    def test_unparsable_file(self):
        override = self._write('override.ini', 'username = a\n')
        with self.assertRaises(ConfigError):
            load_config(FakeHost(), _environ, [self._packaged, override])

    def test_duplicate_option(self):
        override = self._write('override.ini', '[defaults]\nusername = a\nusername = b\n')
        with self.assertRaises(ConfigError):
            load_config(FakeHost(), _environ, [self._packaged, override])

    def test_malformed_file_exits_cleanly(self):
        override = self._write('override.ini', '[nvr-*;x]\nusername = a\n')
        host = FakeHost()
        stderr = io.StringIO()
        with redirect_stderr(stderr):
            exit_code = provision(host, _environ, [self._packaged, override])
        self.assertEqual(exit_code, 1)
        self.assertIn(str(override), stderr.getvalue())
        self.assertEqual(host.commands, [])


class TestReadConfig(unittest.TestCase):

    def setUp(self):
        self._dir = Path(tempfile.mkdtemp())
        self.addCleanup(shutil.rmtree, self._dir)

    def test_host_sections_and_versions(self):
        path = self._dir / 'hosts.ini'
        path.write_text(
            '[defaults]\n'
            'gpu_mem_mb = 128\n'
            'username = pi\n'
            '\n'
            '[nvr-*;v2]\n'
            'gpu_mem_mb = 256\n'
            '\n'
            '[nvr-garage]\n'
            'gpu_mem_mb = 192\n'
            'username = garage\n'
            '\n'
            '[other-*]\n'
            'username = other\n'
            )
        self.assertEqual(read_config('nvr-garage', path), {'gpu_mem_mb': '256', 'username': 'garage'})
        self.assertEqual(read_config('nvr-porch', path), {'gpu_mem_mb': '256', 'username': 'pi'})
        self.assertEqual(read_config('raspberrypi', path), {'gpu_mem_mb': '128', 'username': 'pi'})

    def test_later_file_overrides(self):
        first = self._dir / 'first.ini'
        first.write_text('[defaults]\nusername = pi\n')
        second = self._dir / 'second.ini'
        second.write_text('[defaults]\nusername = nvr\n')
        self.assertEqual(read_config('any', first, second), {'username': 'nvr'})


if __name__ == '__main__':
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s %(levelname)7s %(name)s %(message).5000s",
        )
    unittest.main()

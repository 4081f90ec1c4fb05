# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import shlex
from datetime import datetime
from datetime import timezone
from typing import Optional

from cryptography import x509

from frigate_provisioning._core import Command


class CheckCertificate(Command):
    """Report what the renewal service left in place.

    A missing or broken certificate is not a failure of provisioning:
    the timer retries weekly, and the old files stay until then.
    """

    def __init__(self, cert_file, warning_days: int):
        self._cert_file = str(cert_file)
        self._warning_days = warning_days

    def __repr__(self):
        return f'{CheckCertificate.__name__}({self._cert_file!r}, {self._warning_days!r})'

    def run(self, host):
        r = host.run_still(f'sudo cat {shlex.quote(self._cert_file)}', log_output=False)
        if r.returncode != 0:
            _logger.warning("%s: %s: no certificate yet", host, self._cert_file)
            return
        try:
            status = CertificateStatus.from_pem(r.stdout)
        except ValueError as e:
            _logger.warning("%s: %s: cannot parse certificate: %s", host, self._cert_file, e)
            return
        if status.expires_within(self._warning_days):
            _logger.warning("%s: %s: %s", host, self._cert_file, status)
        else:
            _logger.info("%s: %s: %s", host, self._cert_file, status)


class CertificateStatus:

    def __init__(self, subject: str, not_after: datetime, now: Optional[datetime] = None):
        self.subject = subject
        self.not_after = not_after
        self._now = now or datetime.now(timezone.utc)

    @classmethod
    def from_pem(cls, data: bytes, now: Optional[datetime] = None):
        # The first certificate of a chain is the leaf one.
        cert = x509.load_pem_x509_certificate(data)
        return cls(cert.subject.rfc4514_string(), cert.not_valid_after_utc, now)

    def __str__(self):
        expiry = self.not_after.isoformat(timespec='seconds')
        return f"{self.subject}: expires {expiry}, {self.days_left()} days left"

    def days_left(self) -> int:
        return (self.not_after - self._now).days

    def expires_within(self, days: int) -> bool:
        return self.days_left() < days


_logger = logging.getLogger(__name__)

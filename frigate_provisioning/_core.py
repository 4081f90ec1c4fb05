# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import os
import shlex
import subprocess
from abc import ABCMeta
from abc import abstractmethod
from typing import Optional
from typing import Sequence
from typing import Union

from frigate_provisioning._shell import CannotConnect
from frigate_provisioning._shell import Host


class Command(metaclass=ABCMeta):

    @abstractmethod
    def run(self, host: Host):
        pass


class Run(Command):
    """Single command line.

    >>> Run('sudo apt-get update')
    Run('sudo apt-get update')
    >>> Run('docker compose down', ignore_failure=True)
    Run('docker compose down', ignore_failure=True)
    """

    def __init__(self, command: str, *, ignore_failure: bool = False):
        self._command = command
        self._ignore_failure = ignore_failure

    def __repr__(self):
        if self._ignore_failure:
            return f'{Run.__name__}({self._command!r}, ignore_failure=True)'
        return f'{Run.__name__}({self._command!r})'

    def run(self, host):
        if not self._ignore_failure:
            host.run(self._command)
            return
        r = host.run_still(self._command)
        if r.returncode != 0:
            _logger.warning("%s: Failure ignored, exit code %d: %s", host, r.returncode, self._command)


class _Install(Command):
    """Upload text to a file. Set permissions. Make dirs.

    Text goes through stdin so that secrets never appear on a command line.

    >>> print(InstallCommon('x', '/etc/apt/sources.list.d/a b.list', sudo=True)._command)
    sudo install -D -m u=rw,go=r /dev/stdin '/etc/apt/sources.list.d/a b.list'
    >>> print(InstallSecret('x', '/home/pi/docker-compose-frigate.yml')._command)
    install -D -m u=rw,go= /dev/stdin /home/pi/docker-compose-frigate.yml
    >>> InstallSecret('x', 'relative/path') # doctest: +IGNORE_EXCEPTION_DETAIL
    Traceback (most recent call last):
    ...
    ValueError: Target must be an absolute path, got 'relative/path'
    """

    def __init__(self, text: str, target: Union[str, os.PathLike], mode: str, sudo: bool):
        target = str(target)
        if not target.startswith('/'):
            raise ValueError(f"Target must be an absolute path, got {target!r}")
        self._text = text
        self._target = target
        prefix = 'sudo ' if sudo else ''
        self._command = f'{prefix}install -D -m {mode} /dev/stdin {shlex.quote(target)}'

    def __repr__(self):
        return f'{self.__class__.__name__}({self._target!r})'

    def run(self, host):
        host.run(self._command, stdin=self._text.encode('utf8'))


class InstallCommon(_Install):

    def __init__(self, text: str, target: Union[str, os.PathLike], *, sudo: bool = False):
        super().__init__(text, target, 'u=rw,go=r', sudo)


class InstallSecret(_Install):

    def __init__(self, text: str, target: Union[str, os.PathLike], *, sudo: bool = False):
        super().__init__(text, target, 'u=rw,go=', sudo)


class CompositeCommand(Command):

    def __init__(self, commands: Sequence[Command]):
        self._commands: Sequence[Command] = commands

    def __repr__(self):
        return f'<{self.__class__.__name__} with {len(self._commands)} commands>'

    def run(self, host):
        for command in self._commands:
            command.run(host)


class StepResult:

    def __init__(self, title: str, error: Optional[Exception] = None):
        self.title = title
        self.error = error

    def __repr__(self):
        if self.error is None:
            return f'<{StepResult.__name__} {self.title!r}: ok>'
        return f'<{StepResult.__name__} {self.title!r}: {self.error}>'

    @property
    def ok(self) -> bool:
        return self.error is None

    def exit_code(self) -> int:
        if self.error is None:
            return 0
        if isinstance(self.error, subprocess.CalledProcessError):
            return self.error.returncode or 1
        if isinstance(self.error, CannotConnect):
            return 255
        return 1


class Step:
    """Named section of provisioning: a header in the log and a list of commands.

    The first failing command stops the step.
    The failure is returned, not raised, so that the installer decides.
    """

    def __init__(self, title: str, commands: Sequence[Command]):
        self.title = title
        self._commands = commands

    def __repr__(self):
        return f'<{Step.__name__} {self.title!r} with {len(self._commands)} commands>'

    def run(self, host: Host) -> StepResult:
        log_section(self.title)
        for command in self._commands:
            _logger.debug("Command %r", command)
            try:
                command.run(host)
            except (subprocess.CalledProcessError, CannotConnect) as e:
                _logger.error("%s: %s: %r failed: %s", host, self.title, command, e)
                output = getattr(e, 'output', None)
                if output:
                    _logger.error("Last output:\n%s", _tail(output))
                return StepResult(self.title, e)
        return StepResult(self.title)


class Installer:
    """Run steps one by one on a host; stop at the first failure or decline."""

    def __init__(self, host: Host, steps: Sequence[Step]):
        self._host = host
        self._steps = steps

    def run(self) -> Sequence[StepResult]:
        results = []
        questionnaire = Questionnaire("Run")
        for step in self._steps:
            if not questionnaire.user_agrees_with(f"{step.title!r} on {self._host}"):
                # Later steps need this one; none runs without it.
                _logger.error("%s: Declined by operator; remaining steps are not run", step.title)
                results.append(StepResult(step.title, Declined(f"{step.title!r} declined by operator")))
                break
            result = step.run(self._host)
            results.append(result)
            if not result.ok:
                _logger.error("%s: Failed; remaining steps are not run", step.title)
                break
        return results


class Declined(Exception):
    pass


def log_section(title: str):
    _logger.info(
        "\n"
        "----------------------------------------\n"
        "%s\n"
        "----------------------------------------",
        title)


def _tail(output: bytes, lines: int = 20) -> str:
    """Last lines of command output.

    >>> print(_tail(b'a\\nb\\nc\\n', lines=2))
    b
    c
    """
    return '\n'.join(output.decode(errors='backslashreplace').splitlines()[-lines:])


class Questionnaire:

    def __init__(self, prompt):
        self._user_agrees = None
        self._should_ask_user = True
        self._prompt = prompt

    def user_agrees_with(self, question):
        if not os.getenv('FRIGATE_PROVISIONING_ASK_FOR_CONFIRMATION', ''):
            return True
        prompt = f"{self._prompt} {question} [y,n,a,d]? "
        if self._should_ask_user:
            while True:
                answer = input(prompt)
                answer = answer[:1]
                answer = answer.lower()
                if answer == 'y':
                    self._user_agrees = True
                    self._should_ask_user = True
                elif answer == 'n':
                    self._user_agrees = False
                    self._should_ask_user = True
                elif answer == 'a':
                    self._user_agrees = True
                    self._should_ask_user = False
                elif answer == 'd':
                    self._user_agrees = False
                    self._should_ask_user = False
                else:
                    self._user_agrees = None
                if self._user_agrees is not None:
                    break
        else:
            assert self._user_agrees is not None
            answer = 'a' if self._user_agrees else 'd'
            print(prompt + answer, flush=True)
        return self._user_agrees


_logger = logging.getLogger(__name__)

"""
This module runs the command lines that are assembled by the executors as local child processes.
"""

import logging
import os
import re
import shlex
import subprocess

from .errors import CommandStartError, CommandTimeout, ConfigurationError


class ExecutionResult:
    """
    The captured outcome of one child process.
    """

    def __init__(self, stdout, stderr, exit_status):
        self._stdout = stdout
        self._stderr = stderr
        self._exit_status = exit_status


    @property
    def stdout(self):
        return self._stdout


    @property
    def stderr(self):
        return self._stderr


    @property
    def exit_status(self):
        return self._exit_status


    def succeeded(self):
        return self._exit_status == 0


    def __eq__(self, other):
        if not isinstance(other, ExecutionResult):
            return NotImplemented
        return (self.stdout, self.stderr, self.exit_status) == (other.stdout, other.stderr, other.exit_status)


    def __repr__(self):
        return 'ExecutionResult(exit_status={0!r}, stdout={1!r}, stderr={2!r})'.format(
            self.exit_status, self.stdout, self.stderr)


class Argument(str):
    """
    A token that reaches the program as exactly one argument, whatever it contains.
    """


class CommandInvocation:
    """
    The tokens of a fully assembled command line plus the options for running it.

    A plain token can hold more than one word, e.g. '-u "root"'. It is split with
    the quoting rules of a posix shell, but no shell is started. Argument tokens
    are passed on unchanged.
    """

    OPTION_NAMES = ('environment', 'cwd', 'timeout', 'input')

    def __init__(self, tokens, options=None):
        self.tokens = [token if isinstance(token, Argument) else str(token) for token in tokens]
        self.options = dict(options or {})
        unknown = set(self.options) - set(self.OPTION_NAMES)
        if unknown:
            raise ConfigurationError('Unknown command options: {0}'.format(', '.join(sorted(unknown))))


    def command_line(self):
        return ' '.join(shlex.quote(token) if isinstance(token, Argument) else token for token in self.tokens)


    def argv(self):
        argv = []
        for token in self.tokens:
            if isinstance(token, Argument):
                argv.append(str(token))
            else:
                argv.extend(shlex.split(token))
        return argv


    def printable(self):
        """
        Returns the command line with passwords replaced by stars.
        """
        return _AUTH_PASSWORD_RE.sub(r'\g<1>****', self.command_line())


class CommandRunner:
    """
    Starts a child process for a command invocation and waits for it.
    The exit status is not interpreted here.
    """

    def run(self, invocation):
        options = invocation.options
        environment = None
        if options.get('environment'):
            environment = dict(os.environ)
            environment.update({key: str(value) for key, value in options['environment'].items()})

        try:
            argv = invocation.argv()
        except ValueError as err:
            raise CommandStartError(
                'Command "{0}" can not be parsed: {1}'.format(invocation.printable(), err),
                command=invocation.printable(),
                )

        input_text = options.get('input')
        _logger.info("Run: %s", invocation.printable())
        try:
            process = subprocess.run(
                argv,
                input=input_text,
                # Without input the child must not wait for a terminal.
                stdin=None if input_text is not None else subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=environment,
                cwd=options.get('cwd'),
                timeout=options.get('timeout'),
                universal_newlines=True,
                # Output that is not valid text must not break best effort callers.
                errors='replace',
                )
        except subprocess.TimeoutExpired as err:
            raise CommandTimeout(
                'Command "{0}" did not finish within {1} seconds.'.format(invocation.printable(), err.timeout),
                command=invocation.printable(),
                stdout=_as_text(err.stdout),
                stderr=_as_text(err.stderr),
                )
        except OSError as err:
            raise CommandStartError(
                'Command "{0}" could not be started: {1}'.format(invocation.printable(), err),
                command=invocation.printable(),
                )
        _logger.debug("Exit status %d for: %s", process.returncode, invocation.printable())
        return ExecutionResult(process.stdout, process.stderr, process.returncode)


def _as_text(output):
    if output is None:
        return ''
    if isinstance(output, bytes):
        return output.decode(errors='replace')
    return output


_AUTH_PASSWORD_RE = re.compile(r'(-auth\s+(")?[^\s":]*:)(?(2)[^"]*|[^\s"]*)')

_logger = logging.getLogger(__name__)

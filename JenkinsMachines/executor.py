"""
This module holds the base class of the objects that execute administrative commands
on a jenkins master. The subclasses only decide how the command line looks like.
Running the command, retrying after transient failures and waiting for the master
to come online is done here.
"""

import copy
import enum
import logging
import time
from abc import ABCMeta, abstractmethod

from .command_runner import Argument, CommandInvocation, CommandRunner
from .errors import (CommandFailure, ConfigurationError, ExecutorError, ReadinessTimeout,
                     TransientTransportFailure)


class ExecutorOptions:
    """
    The settings of an executor.

    Every option has a default value that is replaced by the keyword arguments
    given to the constructor. ssh_options is a mapping of ssh option names in snake
    case to their values, e.g. {'strict_host_key_checking': 'no'}.
    """

    DEFAULTS = {
        # ssh transport
        'ssh': '/usr/bin/ssh',
        # Not 22, to stay away from an sshd that is configured differently on the same machine.
        'ssh_port': 33591,
        'ssh_options': {},
        'cli_user': None,
        'key': None,
        'host': None,
        # local jenkins-cli.jar
        'java': 'java',
        'jvm_options': None,
        'cli': None,
        'endpoint': None,
        'cli_username': None,
        'cli_password': None,
        'protocol': None,
        'proxy': None,
        # seconds
        'timeout': 60,
    }

    def __init__(self, **overrides):
        unknown = set(overrides) - set(self.DEFAULTS)
        if unknown:
            raise TypeError('Unknown executor options: {0}'.format(', '.join(sorted(unknown))))
        for name, default in self.DEFAULTS.items():
            value = overrides[name] if name in overrides else copy.copy(default)
            setattr(self, name, value)


    def update(self, **overrides):
        """
        Returns a copy of the options with the given values replaced.
        """
        values = self.as_dict()
        values.update(overrides)
        return ExecutorOptions(**values)


    def as_dict(self):
        return {name: getattr(self, name) for name in self.DEFAULTS}


    def __eq__(self, other):
        if not isinstance(other, ExecutorOptions):
            return NotImplemented
        return self.as_dict() == other.as_dict()


    def __repr__(self):
        changed = ['{0}={1!r}'.format(name, value) for name, value in self.as_dict().items()
                   if value != self.DEFAULTS[name]]
        return 'ExecutorOptions({0})'.format(', '.join(changed))


class FailureKind(enum.Enum):
    SUCCESS = 'success'
    SSH_AUTH_FAILURE = 'ssh-auth-failure'
    REMOTE_EOF = 'remote-eof'
    GENERIC_FAILURE = 'generic-failure'


_SSH_CONNECTION_ERROR_STATUS = 255
_AUTHENTICATION_FAILED = 'Authentication failed'
_REMOTE_EOF = 'java.io.EOFException'


def classify(result):
    """
    Sorts the outcome of a command into one of the FailureKind values.
    """
    if result.exit_status == 0:
        return FailureKind.SUCCESS
    if result.exit_status == _SSH_CONNECTION_ERROR_STATUS and _AUTHENTICATION_FAILED in result.stderr:
        return FailureKind.SSH_AUTH_FAILURE
    if _REMOTE_EOF in result.stderr:
        return FailureKind.REMOTE_EOF
    return FailureKind.GENERIC_FAILURE


class RetryState:
    """
    Counts the attempts of a single command execution.
    """

    def __init__(self, max_attempts):
        self.max_attempts = max_attempts
        self.attempts = 0
        self.last_failure = None


    def record(self, kind):
        self.attempts += 1
        if kind is not FailureKind.SUCCESS:
            self.last_failure = kind


    def is_transient(self, kind):
        # A freshly registered key is not always known to the master when the
        # first connection is made.
        if kind is FailureKind.SSH_AUTH_FAILURE:
            return self.attempts == 1
        return kind is FailureKind.REMOTE_EOF


    def exhausted(self):
        return self.attempts >= self.max_attempts


class Executor(metaclass=ABCMeta):
    """
    Runs administrative commands against a jenkins master.

    execute_strict() raises when a command fails, execute() returns None instead.
    """

    MAX_ATTEMPTS = 3
    RETRY_DELAY = 1
    READINESS_INTERVAL = 1
    DEFAULT_PROBE = ('version',)

    def __init__(self, runner=None, **options):
        self.options = ExecutorOptions(**options)
        self._runner = runner or CommandRunner()


    def execute(self, *pieces, options=None):
        """
        Same as execute_strict() but failures are only logged and None is returned.
        """
        try:
            return self.execute_strict(*pieces, options=options)
        except ExecutorError as err:
            _logger.debug("Ignored failure of %r: %s", pieces, err)
            return None


    def execute_strict(self, *pieces, options=None):
        """
        Runs the command given by pieces and returns its stripped standard output.

        A dictionary as last piece is not part of the command. It holds options for
        running the command: environment, cwd, timeout or input.
        Each piece reaches the master as one argument, even if it contains spaces or quotes.
        """
        pieces = list(pieces)
        command_options = dict(options or {})
        if pieces and isinstance(pieces[-1], dict):
            command_options = dict(pieces.pop(), **command_options)

        self._check_options()
        command = self._build_command([Argument(piece) for piece in pieces])
        return self._execute_command(command, command_options)


    def groovy_strict(self, script):
        """
        Runs a groovy script on the master. The script is passed on standard input.
        """
        return self.execute_strict('groovy', '=', {'input': script})


    def groovy(self, script):
        try:
            return self.groovy_strict(script)
        except ExecutorError as err:
            _logger.debug("Ignored failure of groovy script: %s", err)
            return None


    def wait_until_ready(self, max_wait=None, probe=None, interval=None):
        """
        Returns when the probe command succeeds on the master.
        Raises ReadinessTimeout when that does not happen within max_wait seconds.
        """
        if max_wait is None:
            max_wait = self.options.timeout
        probe = tuple(probe or self.DEFAULT_PROBE)
        interval = interval or self.READINESS_INTERVAL

        # A missing option would only make every probe fail.
        self._check_options()

        _logger.info("Wait up to %s seconds for jenkins to accept commands", max_wait)
        started = time.monotonic()
        while True:
            waited = time.monotonic() - started
            remaining = max(max_wait - waited, 0)
            # The probe must not outlive the deadline.
            probe_timeout = max(min(remaining, self.options.timeout), 1)
            if self.execute(*probe, {'timeout': probe_timeout}) is not None:
                return
            waited = time.monotonic() - started
            if waited >= max_wait:
                raise ReadinessTimeout(waited)
            time.sleep(min(interval, max_wait - waited))


    def ensure_cli_present(self):
        """
        Makes sure the local command line tool exists. Only the local cli executor needs one.
        """


    @abstractmethod
    def _check_options(self):
        """
        Raises ConfigurationError if an option that is needed to build the command is missing.
        """


    @abstractmethod
    def _build_command(self, pieces):
        """
        Returns the list of command line tokens that runs the pieces on the master.
        """


    def _execute_command(self, command, command_options):
        run_options = dict(command_options)
        run_options.setdefault('timeout', self.options.timeout)
        invocation = CommandInvocation(command, run_options)

        retry_state = RetryState(self.MAX_ATTEMPTS)
        while True:
            result = self._runner.run(invocation)
            kind = classify(result)
            retry_state.record(kind)

            if kind is FailureKind.SUCCESS:
                return result.stdout.strip()

            if not retry_state.is_transient(kind):
                raise CommandFailure(
                    'Command "{0}" returned error code {1}.'.format(invocation.printable(), result.exit_status),
                    command=invocation.printable(),
                    exit_status=result.exit_status,
                    stdout=result.stdout,
                    stderr=result.stderr,
                    )

            if retry_state.exhausted():
                raise TransientTransportFailure(
                    'Command "{0}" still failed with {1} after {2} attempts.'.format(
                        invocation.printable(), kind.value, retry_state.attempts),
                    command=invocation.printable(),
                    exit_status=result.exit_status,
                    stdout=result.stdout,
                    stderr=result.stderr,
                    )

            _logger.warning(
                "Attempt %d of %d failed with %s, trying again",
                retry_state.attempts, retry_state.max_attempts, kind.value)
            time.sleep(self.RETRY_DELAY)


def require_option(options, name, message):
    """
    Raises a ConfigurationError with the given message if the option has no value.
    """
    if not getattr(options, name):
        raise ConfigurationError(message)


_logger = logging.getLogger(__name__)

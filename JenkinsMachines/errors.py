"""
The exceptions that are raised by the command executors.
"""


class ExecutorError(Exception):
    """
    Base class of all errors raised by this package.
    """


class ConfigurationError(ExecutorError):
    """
    A required option is missing or invalid. This is never retried.
    """


class CommandFailure(ExecutorError):
    """
    An administrative command could not be executed or returned a non zero exit status.
    """

    def __init__(self, message, command=None, exit_status=None, stdout='', stderr=''):
        if stderr:
            message = '{0}\n{1}'.format(message, stderr.rstrip())
        super().__init__(message)
        self.command = command
        self.exit_status = exit_status
        self.stdout = stdout
        self.stderr = stderr


class TransientTransportFailure(CommandFailure):
    """
    A failure that is usually fixed by trying again, raised when all retries are used up.
    """


class CommandTimeout(CommandFailure):
    """
    The child process did not finish in time and was killed.
    """


class CommandStartError(CommandFailure):
    """
    The child process could not be started at all.
    """


class ReadinessTimeout(ExecutorError, TimeoutError):
    """
    The jenkins master did not accept commands within the maximum waiting time.
    """

    def __init__(self, waited):
        super().__init__("Timeout while waiting for jenkins to get ready. Waited {0:.0f} seconds.".format(waited))
        self.waited = waited


class CliDownloadError(ExecutorError):
    """
    The jenkins-cli.jar could not be fetched from the master.
    """

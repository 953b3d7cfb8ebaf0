"""
This module provides the executor that runs commands with a local copy of the jenkins-cli.jar.
"""

import logging
import os

from requests.utils import requote_uri

from . import fileutil
from .errors import ConfigurationError
from .executor import Executor, require_option


CLI_JAR_URL_PATH = 'jnlpJars/jenkins-cli.jar'


def cli_jar_url(endpoint):
    """
    Returns the url under which the master serves its jenkins-cli.jar.

    >>> cli_jar_url('http://jenkins.local:8080/')
    'http://jenkins.local:8080/jnlpJars/jenkins-cli.jar'
    """
    return '{0}/{1}'.format(endpoint.rstrip('/'), CLI_JAR_URL_PATH)


class LocalCliExecutor(Executor):
    """
    Runs commands with the jenkins-cli.jar, e.g.

        "java" -jar "/var/cache/jenkins-cli.jar" -s http://jenkins.local:8080 -auth "admin:secret" online-node agent-1

    The jar is downloaded from the master when it is missing.
    """

    # Paths of jars that are known to exist. Shared by all instances of the process.
    _present_cli_jars = set()

    def __init__(self, runner=None, fetcher=None, **options):
        super().__init__(runner, **options)
        self._fetcher = fetcher or fileutil.download_file


    def ensure_cli_present(self):
        """
        Downloads the jenkins-cli.jar from the master if there is no local copy.
        The check is only done once per jar path.
        """
        require_option(self.options, 'cli', 'Path of the jenkins-cli.jar unspecified')
        cli = str(self.options.cli)
        if cli in LocalCliExecutor._present_cli_jars:
            return

        if not os.path.isfile(cli):
            if not self.options.endpoint:
                raise ConfigurationError(
                    'Can not download the missing {0} because the jenkins endpoint is unspecified'.format(cli))
            _logger.info("The jenkins-cli.jar is missing at %s", cli)
            self._fetcher(cli_jar_url(self.options.endpoint), cli)

        LocalCliExecutor._present_cli_jars.add(cli)


    def _check_options(self):
        require_option(self.options, 'cli', 'Path of the jenkins-cli.jar unspecified')


    def _build_command(self, pieces):
        command = ['"{0}"'.format(self.options.java)]
        if self.options.jvm_options:
            command.append(str(self.options.jvm_options))
        command.append('-jar "{0}"'.format(self.options.cli))
        if self.options.endpoint:
            command.append('-s {0}'.format(requote_uri(self.options.endpoint)))
        if self.options.protocol:
            command.append('-{0}'.format(self.options.protocol))
        if self.options.cli_username and self.options.cli_password:
            command.append('-auth "{0}:{1}"'.format(self.options.cli_username, self.options.cli_password))
        if self.options.key:
            command.append('-i "{0}"'.format(self.options.key))
        if self.options.proxy:
            command.append('-p {0}'.format(self.options.proxy))
        command.extend(pieces)
        return command


_logger = logging.getLogger(__name__)

"""
This module provides the executor that runs jenkins cli commands over the ssh
server that is built into the jenkins master.
"""

from collections.abc import Mapping

from .executor import Executor, require_option


class SshExecutor(Executor):
    """
    Runs commands with the ssh client, e.g.

        "/usr/bin/ssh" -oStrictHostKeyChecking=no -u "admin" -i "/root/.ssh/id_rsa" -p 33591 jenkins.local online-node agent-1

    Receivers are picky about the order of the flags, so it must not be changed.
    """

    def _check_options(self):
        require_option(self.options, 'host', 'Jenkins host unspecified')


    def _build_command(self, pieces):
        command = ['"{0}"'.format(self.options.ssh)]
        if isinstance(self.options.ssh_options, Mapping):
            for key, value in self.options.ssh_options.items():
                command.append('-o{0}={1}'.format(ssh_flag_name(key), value))
        if self.options.cli_user:
            command.append('-u "{0}"'.format(self.options.cli_user))
        if self.options.key:
            command.append('-i "{0}"'.format(self.options.key))
        if self.options.ssh_port:
            command.append('-p {0}'.format(self.options.ssh_port))
        command.append(self.options.host)
        command.extend(pieces)
        return command


def ssh_flag_name(option_name):
    """
    Converts a snake case option name into the name of the ssh option.

    >>> ssh_flag_name('strict_host_key_checking')
    'StrictHostKeyChecking'
    >>> ssh_flag_name('log_level')
    'LogLevel'
    """
    return ''.join(part.capitalize() for part in str(option_name).split('_'))

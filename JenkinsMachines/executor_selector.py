"""
This module decides which executor is used to talk to the jenkins master.
"""

import logging

from .cli_executor import LocalCliExecutor
from .ssh_executor import SshExecutor


class ExecutorSelector:
    """
    Creates the executor that is described by the config data.
    The executor is created once and then returned by all later calls of executor().
    """

    def __init__(self, config, run_state, runner=None, fetcher=None):
        self._executor_config = config.executor_config
        self._run_state = run_state
        self._runner = runner
        self._fetcher = fetcher
        self._executor = None


    def executor(self):
        """
        Returns an executor for a master that accepts commands.
        """
        if self._executor is None:
            config = self._executor_config
            if config.use_remote_shell_client:
                executor = self._create_ssh_executor()
            else:
                executor = self._create_cli_executor()
                executor.ensure_cli_present()
            executor.wait_until_ready(config.max_wait, config.readiness_probe)
            self._executor = executor
        return self._executor


    def _create_ssh_executor(self):
        config = self._executor_config
        _logger.info("Use the ssh client to run commands on %s", config.host)
        return SshExecutor(
            runner=self._runner,
            host=config.host,
            cli_user=config.cli_user,
            key=self._run_state.private_key_path(),
            ssh=config.ssh,
            ssh_port=config.ssh_port,
            ssh_options=config.ssh_options,
            timeout=config.timeout,
        )


    def _create_cli_executor(self):
        config = self._executor_config
        _logger.info("Use %s to run commands on %s", config.cli_jar, config.endpoint)
        return LocalCliExecutor(
            runner=self._runner,
            fetcher=self._fetcher,
            java=config.java,
            jvm_options=config.jvm_options,
            cli=config.cli_jar,
            endpoint=config.endpoint,
            protocol=config.protocol,
            cli_username=self._run_state.cli_username,
            cli_password=self._run_state.cli_password,
            key=self._run_state.private_key_path(),
            timeout=config.timeout,
        )


_logger = logging.getLogger(__name__)

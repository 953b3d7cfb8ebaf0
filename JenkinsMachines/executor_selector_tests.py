#!/usr/bin/env python3
"""
This module contains automated tests for the executor_selector module.
"""

import unittest
from unittest import mock

from .executor_selector import *
from . import config_data


class TestExecutorSelector(unittest.TestCase):
    """
    Fixture class for testing the ExecutorSelector class.
    """
    def setUp(self):
        self.config_dict = config_data.get_example_config_dict()
        self.run_state = mock.Mock()
        self.run_state.private_key_path.return_value = '/root/.ssh/id_rsa'
        self.run_state.cli_username = 'fritz'
        self.run_state.cli_password = '1234password'
        self.runner = mock.Mock()

        ssh_patcher = mock.patch('JenkinsMachines.executor_selector.SshExecutor')
        self.ssh_executor_class = ssh_patcher.start()
        self.addCleanup(ssh_patcher.stop)
        cli_patcher = mock.patch('JenkinsMachines.executor_selector.LocalCliExecutor')
        self.cli_executor_class = cli_patcher.start()
        self.addCleanup(cli_patcher.stop)


    def _create_sut(self):
        config = config_data.ConfigData(self.config_dict)
        return ExecutorSelector(config, self.run_state, runner=self.runner)


    def test_remote_shell_client_selects_the_ssh_executor(self):
        sut = self._create_sut()

        executor = sut.executor()

        self.assertIs( executor, self.ssh_executor_class.return_value )
        self.cli_executor_class.assert_not_called()
        self.ssh_executor_class.assert_called_once_with(
            runner=self.runner,
            host='jenkins-server.com',
            cli_user='root',
            key='/root/.ssh/id_rsa',
            ssh='/usr/bin/ssh',
            ssh_port=33592,
            ssh_options=mock.ANY,
            timeout=60,
        )
        ssh_options = self.ssh_executor_class.call_args[1]['ssh_options']
        self.assertEqual( list(ssh_options.items()), [
            ('user_known_hosts_file', '/dev/null'),
            ('strict_host_key_checking', 'no'),
        ])
        executor.ensure_cli_present.assert_not_called()
        executor.wait_until_ready.assert_called_once_with(120, ['version'])


    def test_local_cli_is_selected_without_remote_shell_client(self):
        self.config_dict[config_data.KEY_EXECUTOR][config_data.KEY_USE_REMOTE_SHELL_CLIENT] = False
        self.config_dict[config_data.KEY_EXECUTOR][config_data.KEY_CLI_JAR] = '/var/cache/jenkins-cli.jar'
        sut = self._create_sut()

        executor = sut.executor()

        self.assertIs( executor, self.cli_executor_class.return_value )
        self.ssh_executor_class.assert_not_called()
        kwargs = self.cli_executor_class.call_args[1]
        self.assertEqual( kwargs['cli'], '/var/cache/jenkins-cli.jar' )
        self.assertEqual( kwargs['endpoint'], 'http://jenkins-server.com:8080' )
        self.assertEqual( kwargs['cli_username'], 'fritz' )
        self.assertEqual( kwargs['cli_password'], '1234password' )
        self.assertEqual( kwargs['key'], '/root/.ssh/id_rsa' )
        self.assertEqual( kwargs['java'], 'java' )
        executor.ensure_cli_present.assert_called_once_with()
        executor.wait_until_ready.assert_called_once_with(120, ['version'])


    def test_executor_is_created_once(self):
        sut = self._create_sut()

        first = sut.executor()
        second = sut.executor()

        self.assertIs( first, second )
        self.assertEqual( self.ssh_executor_class.call_count, 1 )
        first.wait_until_ready.assert_called_once_with(120, ['version'])


    def test_failed_readiness_check_is_not_remembered(self):
        self.ssh_executor_class.return_value.wait_until_ready.side_effect = [TimeoutError('not ready'), None]
        sut = self._create_sut()

        with self.assertRaises(TimeoutError):
            sut.executor()
        sut.executor()

        self.assertEqual( self.ssh_executor_class.call_count, 2 )


if __name__ == '__main__':
    unittest.main()

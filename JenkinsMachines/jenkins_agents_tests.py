#!/usr/bin/env python3
"""
This module contains automated tests for the jenkins_agents module.
"""

import unittest
from unittest import mock

from .jenkins_agents import *
from . import config_data


def _jnlp_agent():
    agent_config = config_data.AgentConfig()
    agent_config.name = 'linux-agent-0'
    agent_config.description = 'Debian & friends'
    agent_config.remote_fs = '/home/jenkins'
    agent_config.executors = 2
    agent_config.labels = ['Debian', 'linux']
    return agent_config


def _ssh_agent():
    agent_config = _jnlp_agent()
    agent_config.name = 'linux-agent-1'
    agent_config.launcher = config_data.LAUNCHER_SSH
    agent_config.host = '192.168.0.5'
    agent_config.port = 2222
    agent_config.credentials_id = 'jenkins-agent-key'
    return agent_config


class TestNodeXml(unittest.TestCase):
    """
    Fixture class for testing the rendering of the node config.xml.
    """
    def test_jnlp_agent(self):
        xml = node_xml(_jnlp_agent())

        self.assertIn( '<name>linux-agent-0</name>', xml )
        self.assertIn( '<description>Debian &amp; friends</description>', xml )
        self.assertIn( '<remoteFS>/home/jenkins</remoteFS>', xml )
        self.assertIn( '<numExecutors>2</numExecutors>', xml )
        self.assertIn( '<mode>NORMAL</mode>', xml )
        self.assertIn( '<label>Debian linux</label>', xml )
        self.assertIn( '<launcher class="hudson.slaves.JNLPLauncher"/>', xml )
        self.assertIn( 'hudson.slaves.RetentionStrategy$Always', xml )
        self.assertNotIn( '$', xml.replace('RetentionStrategy$Always', '') )


    def test_ssh_agent(self):
        xml = node_xml(_ssh_agent())

        self.assertIn( 'hudson.plugins.sshslaves.SSHLauncher', xml )
        self.assertIn( '<host>192.168.0.5</host>', xml )
        self.assertIn( '<port>2222</port>', xml )
        self.assertIn( '<credentialsId>jenkins-agent-key</credentialsId>', xml )


class TestConfigureText(unittest.TestCase):

    def test_placeholders_are_replaced_once(self):
        text = configure_text('$A and $B and $C', {'A' : '$B', 'B' : 'b'})

        self.assertEqual( text, '$B and b and $C' )


class TestAgentManager(unittest.TestCase):
    """
    Fixture class for testing the AgentManager class.
    """
    def setUp(self):
        self.executor = mock.Mock()
        self.sut = AgentManager(self.executor)


    def test_exists_uses_a_best_effort_command(self):
        self.executor.execute.return_value = '<slave/>'
        self.assertTrue( self.sut.exists('linux-agent-0') )

        self.executor.execute.return_value = None
        self.assertFalse( self.sut.exists('linux-agent-0') )

        self.executor.execute.assert_called_with('get-node', 'linux-agent-0')


    def test_create_new_node(self):
        self.executor.execute.return_value = None
        agent_config = _jnlp_agent()

        self.assertTrue( self.sut.create(agent_config) )

        self.executor.execute_strict.assert_called_once_with(
            'create-node', 'linux-agent-0', {'input' : node_xml(agent_config)})


    def test_create_updates_an_existing_node(self):
        self.executor.execute.return_value = '<slave/>'
        agent_config = _ssh_agent()

        self.assertFalse( self.sut.create(agent_config) )

        self.executor.execute_strict.assert_called_once_with(
            'update-node', 'linux-agent-1', {'input' : node_xml(agent_config)})


    def test_delete_existing_node(self):
        self.executor.execute.return_value = '<slave/>'

        self.assertTrue( self.sut.delete('linux-agent-0') )

        self.executor.execute_strict.assert_called_once_with('delete-node', 'linux-agent-0')


    def test_delete_missing_node_does_nothing(self):
        self.executor.execute.return_value = None

        self.assertFalse( self.sut.delete('linux-agent-0') )

        self.executor.execute_strict.assert_not_called()


    def test_connect_and_online(self):
        self.sut.connect('linux-agent-0')
        self.sut.online('linux-agent-0')

        self.assertEqual( self.executor.execute_strict.call_args_list, [
            mock.call('connect-node', 'linux-agent-0'),
            mock.call('online-node', 'linux-agent-0'),
        ])


    def test_offline_and_disconnect_pass_the_message(self):
        self.sut.offline('linux-agent-0', 'disk full')
        self.sut.disconnect('linux-agent-0')

        self.assertEqual( self.executor.execute_strict.call_args_list, [
            mock.call('offline-node', 'linux-agent-0', '-m', 'disk full'),
            mock.call('disconnect-node', 'linux-agent-0'),
        ])


    def test_names_are_passed_unchanged(self):
        self.sut.connect("Fritz's agent")

        self.executor.execute_strict.assert_called_once_with('connect-node', "Fritz's agent")


class TestJnlpSecrets(unittest.TestCase):
    """
    Fixture class for testing the JnlpSecrets class.
    """
    def setUp(self):
        self.executor = mock.Mock()
        self.sut = JnlpSecrets(self.executor, 'linux-agent-0')


    def test_secret_is_read_once(self):
        self.executor.groovy_strict.return_value = '{"secret":"6f1a0c"}'

        self.assertEqual( self.sut.secret, '6f1a0c' )
        self.assertEqual( self.sut.secret, '6f1a0c' )

        self.executor.groovy_strict.assert_called_once_with(mock.ANY)
        script = self.executor.groovy_strict.call_args[0][0]
        self.assertIn( "SLAVE_SECRET.mac('linux-agent-0')", script )


    def test_values_are_independent(self):
        self.executor.groovy_strict.side_effect = ['50000', '10.0.0.2']

        self.assertEqual( self.sut.direct_port, 50000 )
        self.assertEqual( self.sut.direct_host, '10.0.0.2' )
        self.assertEqual( self.sut.direct_port, 50000 )
        self.assertEqual( self.sut.direct_host, '10.0.0.2' )

        self.assertEqual( self.executor.groovy_strict.call_count, 2 )


    def test_instance_identity_is_read_once(self):
        self.executor.groovy_strict.return_value = 'MIIBIjANBgkq'

        self.assertEqual( self.sut.instance_identity, 'MIIBIjANBgkq' )
        self.assertEqual( self.sut.instance_identity, 'MIIBIjANBgkq' )

        self.assertEqual( self.executor.groovy_strict.call_count, 1 )


    def test_failed_lookup_is_tried_again(self):
        self.executor.groovy_strict.side_effect = [RuntimeError('master gone'), '50000']

        with self.assertRaises(RuntimeError):
            self.sut.direct_port
        self.assertEqual( self.sut.direct_port, 50000 )


    def test_urls(self):
        sut = JnlpSecrets(self.executor, 'my agent')

        self.assertEqual( sut.jnlp_url('http://jenkins.local:8080/'),
                          'http://jenkins.local:8080/computer/my%20agent/slave-agent.jnlp' )
        self.assertEqual( JnlpSecrets.agent_jar_url('http://jenkins.local:8080'),
                          'http://jenkins.local:8080/jnlpJars/slave.jar' )
        self.executor.groovy_strict.assert_not_called()


class TestGroovyString(unittest.TestCase):

    def test_quotes_and_backslashes_are_escaped(self):
        self.assertEqual( groovy_string("it's"), "it\\'s" )
        self.assertEqual( groovy_string('C:\\jenkins'), 'C:\\\\jenkins' )


if __name__ == '__main__':
    unittest.main()

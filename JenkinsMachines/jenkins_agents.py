"""
This module provides functionality to create, delete, connect and disconnect the build agents of a jenkins master.
All work is done by jenkins cli commands that are run with an executor.
"""

import json
import logging
import re
from urllib.parse import quote
from xml.sax.saxutils import escape

from . import config_data


_NODE_CONFIG_TEMPLATE = """<?xml version='1.1' encoding='UTF-8'?>
<slave>
  <name>$NAME</name>
  <description>$DESCRIPTION</description>
  <remoteFS>$REMOTE_FS</remoteFS>
  <numExecutors>$EXECUTORS</numExecutors>
  <mode>$MODE</mode>
  <retentionStrategy class="hudson.slaves.RetentionStrategy$Always"/>
  $LAUNCHER
  <label>$LABELS</label>
  <nodeProperties/>
</slave>
"""

_JNLP_LAUNCHER_TEMPLATE = '<launcher class="hudson.slaves.JNLPLauncher"/>'

_SSH_LAUNCHER_TEMPLATE = (
    '<launcher class="hudson.plugins.sshslaves.SSHLauncher" plugin="ssh-slaves">'
    '<host>$HOST</host>'
    '<port>$PORT</port>'
    '<credentialsId>$CREDENTIALS_ID</credentialsId>'
    '</launcher>'
)

_PLACEHOLDER_RE = re.compile(r'\$([A-Z_]+)')


def configure_text(template, replacement_dictionary):
    """
    Replaces the $KEYS in template with the values from replacement_dictionary.
    Placeholders without a value are left alone.
    """
    def _replace(match):
        return replacement_dictionary.get(match.group(1), match.group(0))
    return _PLACEHOLDER_RE.sub(_replace, template)


def node_xml(agent_config):
    """
    Returns the config.xml of the jenkins node that is described by agent_config.
    """
    if agent_config.launcher == config_data.LAUNCHER_SSH:
        launcher = configure_text(_SSH_LAUNCHER_TEMPLATE, {
            'HOST' : escape(str(agent_config.host)),
            'PORT' : str(agent_config.port),
            'CREDENTIALS_ID' : escape(agent_config.credentials_id),
        })
    else:
        launcher = _JNLP_LAUNCHER_TEMPLATE

    return configure_text(_NODE_CONFIG_TEMPLATE, {
        'NAME' : escape(agent_config.name),
        'DESCRIPTION' : escape(agent_config.description),
        'REMOTE_FS' : escape(agent_config.remote_fs),
        'EXECUTORS' : str(agent_config.executors),
        'MODE' : agent_config.usage_mode,
        'LAUNCHER' : launcher,
        'LABELS' : escape(' '.join(agent_config.labels)),
    })


class AgentManager:
    """
    Runs the jenkins cli commands that manage the nodes of the master.
    """

    def __init__(self, executor):
        self._executor = executor


    def exists(self, name):
        return self._executor.execute('get-node', name) is not None


    def create(self, agent_config):
        """
        Creates the node or updates the configuration of an existing node.
        Returns True if a new node was created.
        """
        xml = node_xml(agent_config)
        if self.exists(agent_config.name):
            _logger.info("Update the configuration of agent %s", agent_config.name)
            self._executor.execute_strict('update-node', agent_config.name, {'input': xml})
            return False

        _logger.info("Create agent %s", agent_config.name)
        self._executor.execute_strict('create-node', agent_config.name, {'input': xml})
        return True


    def delete(self, name):
        """
        Deletes the node. Returns False if there was no such node.
        """
        if not self.exists(name):
            return False
        _logger.info("Delete agent %s", name)
        self._executor.execute_strict('delete-node', name)
        return True


    def connect(self, name):
        _logger.info("Connect agent %s", name)
        self._executor.execute_strict('connect-node', name)


    def disconnect(self, name, message=None):
        _logger.info("Disconnect agent %s", name)
        self._executor.execute_strict('disconnect-node', name, *_message_args(message))


    def online(self, name):
        _logger.info("Bring agent %s online", name)
        self._executor.execute_strict('online-node', name)


    def offline(self, name, message=None):
        _logger.info("Take agent %s offline", name)
        self._executor.execute_strict('offline-node', name, *_message_args(message))


class JnlpSecrets:
    """
    The values a JNLP agent needs to connect to the master.

    Each value is asked from the master when it is read the first time and
    remembered afterwards.
    """

    def __init__(self, executor, agent_name):
        self._executor = executor
        self._agent_name = agent_name
        self._cache = {}


    @property
    def secret(self):
        return self._cached('secret', self._read_secret)


    @property
    def instance_identity(self):
        return self._cached('instance_identity', lambda: self._executor.groovy_strict(
            'println(hudson.remoting.Base64.encode(org.jenkinsci.main.modules.instance_identity.InstanceIdentity.get().getPublic().getEncoded()))'))


    @property
    def direct_host(self):
        return self._cached('direct_host', lambda: self._executor.groovy_strict(
            'println(System.getProperty("container.host.ip", InetAddress.localHost.hostAddress))'))


    @property
    def direct_port(self):
        return self._cached('direct_port', lambda: int(self._executor.groovy_strict(
            'println(jenkins.model.Jenkins.instance.getSlaveAgentPort().toString())')))


    def jnlp_url(self, endpoint):
        return '{0}/computer/{1}/slave-agent.jnlp'.format(endpoint.rstrip('/'), quote(self._agent_name, safe=''))


    @staticmethod
    def agent_jar_url(endpoint):
        return '{0}/jnlpJars/slave.jar'.format(endpoint.rstrip('/'))


    def _cached(self, name, compute):
        if name not in self._cache:
            self._cache[name] = compute()
        return self._cache[name]


    def _read_secret(self):
        script = (
            "output = [\n"
            "  secret:jenkins.slaves.JnlpSlaveAgentProtocol.SLAVE_SECRET.mac('{0}')\n"
            "]\n"
            "\n"
            "builder = new groovy.json.JsonBuilder(output)\n"
            "println(builder)\n"
        ).format(groovy_string(self._agent_name))
        return json.loads(self._executor.groovy_strict(script))['secret']


def groovy_string(value):
    """
    Escapes a value for use inside a single quoted groovy string.
    """
    return str(value).replace('\\', '\\\\').replace("'", "\\'")


def _message_args(message):
    if message:
        return ['-m', message]
    return []


_logger = logging.getLogger(__name__)

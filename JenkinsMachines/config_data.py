#!/usr/bin/env python3
"""
This module defines the structure of the config file that is used by the manage_agents script.
It also offers utilities to create example config files and read the contents of the file into
python classes.
"""

import collections
import json
import os
import tempfile

from . import jenkinsmachines_version
from .errors import ConfigurationError
from .executor import ExecutorOptions

# define config file keys
KEY_VERSION = 'JenkinsMachinesVersion'

KEY_JENKINS_MASTER = 'JenkinsMaster'
KEY_HOST = 'HostNameOrIP'
KEY_ENDPOINT = 'Endpoint'

KEY_EXECUTOR = 'Executor'
KEY_USE_REMOTE_SHELL_CLIENT = 'UseRemoteShellClient'
KEY_CLI_USER = 'CliUser'
KEY_KEY_PATH = 'KeyPath'
KEY_SSH_PATH = 'SshPath'
KEY_SSH_PORT = 'SshPort'
KEY_SSH_OPTIONS = 'SshOptions'
KEY_JAVA = 'Java'
KEY_JVM_OPTIONS = 'JvmOptions'
KEY_CLI_JAR = 'CliJar'
KEY_PROTOCOL = 'Protocol'
KEY_TIMEOUT = 'Timeout'
KEY_READINESS_PROBE = 'ReadinessProbe'
KEY_MAX_WAIT = 'MaxWait'

KEY_CREDENTIALS = 'Credentials'
KEY_USER = 'User'
KEY_PASSWORD = 'Password'
KEY_PRIVATE_KEY = 'PrivateKey'

KEY_AGENTS = 'Agents'
KEY_NAME = 'Name'
KEY_DESCRIPTION = 'Description'
KEY_REMOTE_FS = 'RemoteFS'
KEY_EXECUTORS = 'Executors'
KEY_LABELS = 'Labels'
KEY_USAGE_MODE = 'UsageMode'
KEY_LAUNCHER = 'Launcher'
KEY_AGENT_HOST = 'AgentHost'
KEY_AGENT_PORT = 'AgentPort'
KEY_CREDENTIALS_ID = 'CredentialsId'

LAUNCHER_JNLP = 'jnlp'
LAUNCHER_SSH = 'ssh'
USAGE_MODES = ('NORMAL', 'EXCLUSIVE')

_DEFAULT_JENKINS_PORT = 8080
_DEFAULT_CLI_JAR = os.path.join(tempfile.gettempdir(), 'jenkins-cli.jar')


class ConfigError(ConfigurationError):
    """
    The config file is incomplete or contains invalid values.
    """


class ConfigData:
    """
    This class holds all the information from a JenkinsMachines config file.
    """

    def __init__(self, config_dict):
        # objects that contain the config data
        self.file_version = ''
        self.jenkins_master_config = JenkinsMasterConfig()
        self.executor_config = ExecutorConfig()
        self.credentials = CredentialsConfig()
        self.agent_configs = []

        # internal
        self._config_file_dict = config_dict

        # fill data members and check validity
        self._import_config_data()
        self._check_data_validity()


    def get_agent_config(self, name):
        return next((x for x in self.agent_configs if x.name == name), None)


    def _import_config_data(self):
        """
        Fills the object with data from the file and derived values.
        """
        self.file_version = get_checked_value(self._config_file_dict, KEY_VERSION)
        self._read_jenkins_master_config()
        self._read_executor_config()
        self._read_credentials()
        self._read_agent_configs()


    def _read_jenkins_master_config(self):
        """
        Reads the information under the KEY_JENKINS_MASTER key.
        """
        config_dict = get_checked_value(self._config_file_dict, KEY_JENKINS_MASTER)
        self.jenkins_master_config.host_name = get_checked_value(config_dict, KEY_HOST)
        # The endpoint is optional
        if KEY_ENDPOINT in config_dict:
            self.jenkins_master_config.endpoint = get_checked_value(config_dict, KEY_ENDPOINT)
        else:
            self.jenkins_master_config.endpoint = 'http://{0}:{1}'.format(
                self.jenkins_master_config.host_name, _DEFAULT_JENKINS_PORT)


    def _read_executor_config(self):
        """
        Reads the information under the KEY_EXECUTOR key. All values are optional.
        """
        config_dict = get_checked_value(self._config_file_dict, KEY_EXECUTOR)
        config = self.executor_config

        config.host = self.jenkins_master_config.host_name
        config.endpoint = self.jenkins_master_config.endpoint
        config.use_remote_shell_client = bool(config_dict.get(KEY_USE_REMOTE_SHELL_CLIENT, config.use_remote_shell_client))
        config.cli_user = config_dict.get(KEY_CLI_USER, config.cli_user)
        config.key_path = config_dict.get(KEY_KEY_PATH, config.key_path)
        config.ssh = config_dict.get(KEY_SSH_PATH, config.ssh)
        config.ssh_port = config_dict.get(KEY_SSH_PORT, config.ssh_port)
        ssh_options = config_dict.get(KEY_SSH_OPTIONS) or config.ssh_options
        if not isinstance(ssh_options, dict):
            raise ConfigError("Config file Error! The value of {0} must be an object but is \"{1}\".".format(KEY_SSH_OPTIONS, ssh_options))
        config.ssh_options = collections.OrderedDict(ssh_options)
        config.java = config_dict.get(KEY_JAVA, config.java)
        config.jvm_options = config_dict.get(KEY_JVM_OPTIONS, config.jvm_options)
        config.cli_jar = config_dict.get(KEY_CLI_JAR, config.cli_jar)
        config.protocol = config_dict.get(KEY_PROTOCOL, config.protocol)
        config.timeout = config_dict.get(KEY_TIMEOUT, config.timeout)
        probe = config_dict.get(KEY_READINESS_PROBE, config.readiness_probe)
        config.readiness_probe = probe.split() if isinstance(probe, str) else list(probe)
        config.max_wait = config_dict.get(KEY_MAX_WAIT, config.max_wait)


    def _read_credentials(self):
        """
        Reads the information under the optional KEY_CREDENTIALS key.
        """
        config_dict = self._config_file_dict.get(KEY_CREDENTIALS, {})
        self.credentials.user = config_dict.get(KEY_USER)
        self.credentials.password = config_dict.get(KEY_PASSWORD)
        self.credentials.private_key = config_dict.get(KEY_PRIVATE_KEY)
        self.credentials.private_key_path = self.executor_config.key_path


    def _read_agent_configs(self):
        """
        Reads the information under the optional KEY_AGENTS key.
        """
        for config_dict in self._config_file_dict.get(KEY_AGENTS, []):
            agent_config = AgentConfig()
            agent_config.name = get_checked_value(config_dict, KEY_NAME)
            agent_config.remote_fs = get_checked_value(config_dict, KEY_REMOTE_FS)
            agent_config.launcher = config_dict.get(KEY_LAUNCHER, agent_config.launcher)
            agent_config.description = config_dict.get(KEY_DESCRIPTION, agent_config.description)
            agent_config.executors = config_dict.get(KEY_EXECUTORS, agent_config.executors)
            agent_config.labels = list(config_dict.get(KEY_LABELS, agent_config.labels))
            agent_config.usage_mode = config_dict.get(KEY_USAGE_MODE, agent_config.usage_mode)

            # ssh launched agents need an address to connect to
            if agent_config.launcher == LAUNCHER_SSH:
                agent_config.host = get_checked_value(config_dict, KEY_AGENT_HOST)
                agent_config.port = config_dict.get(KEY_AGENT_PORT, agent_config.port)
                agent_config.credentials_id = config_dict.get(KEY_CREDENTIALS_ID, agent_config.credentials_id)

            self.agent_configs.append(agent_config)


    def _check_data_validity(self):
        """
        Checks if the data from the config file makes sense.
        """
        self._check_file_version()
        self._check_executor_values()
        self._check_agent_names_are_unique()
        self._check_agent_values()


    def _check_file_version(self):
        """
        Checks that the version of the file and the version of the library are the same.
        """
        if not self.file_version == jenkinsmachines_version.JENKINSMACHINES_VERSION:
            raise ConfigError("Config file Error! The version of the config file ({0}) does not fit the version of the JenkinsMachines package ({1})."
                              .format(self.file_version, jenkinsmachines_version.JENKINSMACHINES_VERSION))


    def _check_executor_values(self):
        config = self.executor_config
        _check_port(config.ssh_port, KEY_SSH_PORT)
        _check_positive_number(config.timeout, KEY_TIMEOUT)
        _check_positive_number(config.max_wait, KEY_MAX_WAIT)
        if not config.readiness_probe or not all(isinstance(x, str) for x in config.readiness_probe):
            raise ConfigError("Config file Error! The value of {0} must be a non empty list of strings.".format(KEY_READINESS_PROBE))
        if not all(isinstance(x, str) for x in config.ssh_options.values()):
            raise ConfigError("Config file Error! The values under {0} must be strings.".format(KEY_SSH_OPTIONS))


    def _check_agent_names_are_unique(self):
        names = [agent_config.name for agent_config in self.agent_configs]
        duplicates = sorted(set(name for name in names if names.count(name) > 1))
        if duplicates:
            raise ConfigError("Config file Error! The agent names {0} are used more than once.".format(', '.join(duplicates)))


    def _check_agent_values(self):
        for agent_config in self.agent_configs:
            if agent_config.launcher not in (LAUNCHER_JNLP, LAUNCHER_SSH):
                raise ConfigError("Config file Error! Agent \"{0}\" has the unknown launcher \"{1}\"."
                                  .format(agent_config.name, agent_config.launcher))
            if agent_config.usage_mode not in USAGE_MODES:
                raise ConfigError("Config file Error! Agent \"{0}\" has the unknown usage mode \"{1}\"."
                                  .format(agent_config.name, agent_config.usage_mode))
            if not isinstance(agent_config.executors, int) or agent_config.executors < 1:
                raise ConfigError("Config file Error! Agent \"{0}\" needs at least one executor.".format(agent_config.name))
            if agent_config.launcher == LAUNCHER_SSH:
                _check_port(agent_config.port, KEY_AGENT_PORT)


class JenkinsMasterConfig:
    """
    Data class that holds the address of the jenkins master.
    """
    def __init__(self):
        self.host_name = ''
        self.endpoint = ''


class ExecutorConfig:
    """
    Data class that holds the information from the KEY_EXECUTOR config file entry.
    """
    def __init__(self):
        defaults = ExecutorOptions.DEFAULTS
        self.use_remote_shell_client = False
        self.host = None
        self.endpoint = None
        self.cli_user = None
        self.key_path = None
        self.ssh = defaults['ssh']
        self.ssh_port = defaults['ssh_port']
        self.ssh_options = collections.OrderedDict()
        self.java = defaults['java']
        self.jvm_options = None
        self.cli_jar = _DEFAULT_CLI_JAR
        self.protocol = None
        self.timeout = defaults['timeout']
        self.readiness_probe = ['version']
        self.max_wait = 120


class CredentialsConfig:
    """
    Data class that holds the login data for the jenkins master.
    """
    def __init__(self):
        self.user = None
        self.password = None
        self.private_key = None
        self.private_key_path = None


class AgentConfig:
    """
    Data class that holds the description of one build agent.
    """
    def __init__(self):
        self.name = ''
        self.description = ''
        self.remote_fs = ''
        self.executors = 1
        self.labels = []
        self.usage_mode = 'NORMAL'
        self.launcher = LAUNCHER_JNLP
        # only used by ssh launched agents
        self.host = None
        self.port = 22
        self.credentials_id = ''


def _check_port(port, key):
    if not isinstance(port, int) or isinstance(port, bool) or not 0 < port < 65536:
        raise ConfigError("Config file Error! The value of {0} must be a port number but is \"{1}\".".format(key, port))


def _check_positive_number(value, key):
    if not isinstance(value, (int, float)) or isinstance(value, bool) or value <= 0:
        raise ConfigError("Config file Error! The value of {0} must be a positive number but is \"{1}\".".format(key, value))


def get_example_config_dict():
    """
    Returns a dictionary that contains the data of a valid example configuration.
    """
    config_dict = {
        KEY_VERSION : jenkinsmachines_version.JENKINSMACHINES_VERSION,
        KEY_JENKINS_MASTER : {
            KEY_HOST : 'jenkins-server.com',
            KEY_ENDPOINT : 'http://jenkins-server.com:8080',
        },
        KEY_EXECUTOR : {
            KEY_USE_REMOTE_SHELL_CLIENT : True,
            KEY_CLI_USER : 'root',
            KEY_KEY_PATH : '/root/.ssh/id_rsa',
            KEY_SSH_PORT : 33592,
            KEY_SSH_OPTIONS : {
                'user_known_hosts_file' : '/dev/null',
                'strict_host_key_checking' : 'no',
            },
            KEY_TIMEOUT : 60,
            KEY_READINESS_PROBE : ['version'],
            KEY_MAX_WAIT : 120,
        },
        KEY_CREDENTIALS : {
            KEY_USER : 'fritz',
            KEY_PASSWORD : '1234password',
        },
        KEY_AGENTS : [
            {
                KEY_NAME : 'linux-agent-0',
                KEY_DESCRIPTION : 'A Debian build agent that connects over JNLP.',
                KEY_REMOTE_FS : '/home/jenkins',
                KEY_EXECUTORS : 2,
                KEY_LABELS : ['Debian', 'linux'],
                KEY_LAUNCHER : LAUNCHER_JNLP,
            },
            {
                KEY_NAME : 'linux-agent-1',
                KEY_DESCRIPTION : 'A Debian build agent that is started over ssh.',
                KEY_REMOTE_FS : '/home/jenkins',
                KEY_LAUNCHER : LAUNCHER_SSH,
                KEY_AGENT_HOST : '192.168.0.5',
                KEY_AGENT_PORT : 22,
                KEY_CREDENTIALS_ID : 'jenkins-agent-key',
            },
        ],
    }

    return config_dict


def read_json_file(file_path):
    """
    Returns the content of a json file as dictionary.
    """
    with open(str(file_path)) as file:
        try:
            return json.load(file, object_pairs_hook=collections.OrderedDict)
        except ValueError as err:
            raise ConfigError("Config file Error! {0} is not a valid json file: {1}".format(file_path, err))


def write_json_file(config_dict, file_path):
    """
    Writes a dictionary to .json file.
    """
    config_values = collections.OrderedDict(sorted(config_dict.items(), key=lambda t: t[0]))

    with open(str(file_path), 'w') as file:
        json.dump(config_values, file, indent=2)


def get_checked_value(dictionary, key):
    """
    Checks that the given key exists in the dictionary and that
    it has a non empty value.
    """
    if key in dictionary:
        value = dictionary[key]
        value_string = str(value)
        if value_string: # we check the string to prevent problems when the value is False
            return value
        else:
            raise ConfigError("The config file is missing a value for key {0}".format(key))

    raise ConfigError("The config file is missing an entry with key {0}".format(key))

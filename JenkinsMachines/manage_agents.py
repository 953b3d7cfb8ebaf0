#!/usr/bin/env python3
"""
This script runs administrative commands for the build agents of a jenkins master.

Arguments:
1. - The path to a configuration json file.
2. - The action: create, delete, connect, disconnect, online, offline, show-jnlp or authorize-key
3. - Optional names of agents. Without names the action is done for all agents in the config file.
"""

import argparse
import logging
import sys

from . import config_data
from .executor_selector import ExecutorSelector
from .jenkins_agents import AgentManager, JnlpSecrets
from .jenkins_users import authorize_public_key
from .run_state import RunState


ACTIONS = ('create', 'delete', 'connect', 'disconnect', 'online', 'offline', 'show-jnlp', 'authorize-key')


def main(argv=None):
    """
    Entry point of the script.
    """
    args = _parse_arguments(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(name)s %(levelname)s %(message)s')

    # read configuration file
    print('----- Read configuration file ' + args.config_file)
    config = config_data.ConfigData(config_data.read_json_file(args.config_file))
    run_state = RunState.from_credentials(config.credentials)

    print('----- Wait for jenkins at {0} to accept commands'.format(config.jenkins_master_config.host_name))
    executor = ExecutorSelector(config, run_state).executor()

    if args.action == 'authorize-key':
        _authorize_key(executor, config, run_state)
        return 0

    names = args.agent_names or [agent_config.name for agent_config in config.agent_configs]
    if not names:
        print('The config file contains no agents.')
        return 0

    manager = AgentManager(executor)
    for name in names:
        print('----- {0} agent {1}'.format(args.action, name))
        if args.action == 'create':
            manager.create(_get_agent_config(config, name))
        elif args.action == 'delete':
            if not manager.delete(name):
                print('Agent {0} does not exist.'.format(name))
        elif args.action == 'connect':
            manager.connect(name)
        elif args.action == 'disconnect':
            manager.disconnect(name, args.message)
        elif args.action == 'online':
            manager.online(name)
        elif args.action == 'offline':
            manager.offline(name, args.message)
        elif args.action == 'show-jnlp':
            _print_jnlp_secrets(executor, config, name)

    print('Successfully finished {0} for {1} agent(s).'.format(args.action, len(names)))
    return 0


def _parse_arguments(argv):
    parser = argparse.ArgumentParser(description='Manage the build agents of a jenkins master.')
    parser.add_argument('config_file', help='The path to a JenkinsMachines configuration json file.')
    parser.add_argument('action', choices=ACTIONS)
    parser.add_argument('agent_names', nargs='*', help='The agents to work on. Default: all configured agents.')
    parser.add_argument('-m', '--message', help='The reason for disconnect and offline actions.')
    parser.add_argument('-v', '--verbose', action='store_true', help='Print the executed command lines.')
    return parser.parse_args(argv)


def _get_agent_config(config, name):
    agent_config = config.get_agent_config(name)
    if agent_config is None:
        raise config_data.ConfigError('The config file contains no agent with name {0}.'.format(name))
    return agent_config


def _print_jnlp_secrets(executor, config, name):
    endpoint = config.jenkins_master_config.endpoint
    secrets = JnlpSecrets(executor, name)
    print('JNLP url:          ' + secrets.jnlp_url(endpoint))
    print('Agent jar:         ' + secrets.agent_jar_url(endpoint))
    print('Secret:            ' + secrets.secret)
    print('Direct connection: {0}:{1}'.format(secrets.direct_host, secrets.direct_port))
    print('Instance identity: ' + secrets.instance_identity)


def _authorize_key(executor, config, run_state):
    user = config.executor_config.cli_user or config.credentials.user
    if not user:
        raise config_data.ConfigError('The config file contains no user for the public key.')
    print('----- Authorize the public key of jenkins user ' + user)
    authorize_public_key(executor, user, run_state.public_key())


if __name__ == '__main__':
    sys.exit(main())

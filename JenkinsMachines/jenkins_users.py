"""
This module provides functionality to manage the accounts on the jenkins master.
"""

import logging

from .jenkins_agents import groovy_string


def authorize_public_key(executor, user_id, public_key):
    """
    Stores the public key in the account of the given user, so the user can run
    cli commands over ssh with the matching private key.
    The master may need a moment before the key is accepted.
    """
    script = (
        "user = hudson.model.User.get('{0}')\n"
        "keys = new org.jenkinsci.main.modules.cli.auth.ssh.UserPropertyImpl('{1}')\n"
        "user.addProperty(keys)\n"
        "user.save()\n"
    ).format(groovy_string(user_id), groovy_string(public_key))
    _logger.info("Authorize public key for jenkins user %s", user_id)
    executor.groovy_strict(script)


_logger = logging.getLogger(__name__)

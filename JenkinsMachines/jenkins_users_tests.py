#!/usr/bin/env python3
"""
This module contains automated tests for the jenkins_users module.
"""

import unittest
from unittest import mock

from .jenkins_users import *


class TestAuthorizePublicKey(unittest.TestCase):

    def test_key_is_added_to_the_user(self):
        executor = mock.Mock()

        authorize_public_key(executor, 'root', 'ssh-rsa AAAAB3NzaC1yc2E')

        script = executor.groovy_strict.call_args[0][0]
        self.assertIn( "hudson.model.User.get('root')", script )
        self.assertIn( "UserPropertyImpl('ssh-rsa AAAAB3NzaC1yc2E')", script )
        self.assertIn( 'user.save()', script )


    def test_failures_propagate(self):
        executor = mock.Mock()
        executor.groovy_strict.side_effect = RuntimeError('no such plugin')

        with self.assertRaises(RuntimeError):
            authorize_public_key(executor, 'root', 'ssh-rsa AAAA')


if __name__ == '__main__':
    unittest.main()

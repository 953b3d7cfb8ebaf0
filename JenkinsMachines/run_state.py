"""
This module holds the secrets that are needed to talk to the jenkins master.
"""

import io
import os
import tempfile

import paramiko

from . import fileutil
from .errors import ConfigurationError


_KEY_FILE_NAME = 'jenkins_private_key'
_KEY_CLASSES = (paramiko.RSAKey, paramiko.ECDSAKey, paramiko.Ed25519Key)


class RunState:
    """
    Holds the credentials of one run.

    The private key can be given as a path to a key file or as the content of the key.
    In the second case the key is written to a file in key_dir when its path is
    needed the first time.
    """

    def __init__(self, private_key=None, private_key_path=None, cli_username=None, cli_password=None, key_dir=None):
        self.cli_username = cli_username
        self.cli_password = cli_password
        self._private_key = private_key
        self._private_key_path = str(private_key_path) if private_key_path else None
        self._key_dir = str(key_dir) if key_dir else os.path.join(tempfile.gettempdir(), 'jenkins-machines')
        self._loaded_key = None


    @classmethod
    def from_credentials(cls, credentials, key_dir=None):
        """
        Creates the run state from the CredentialsConfig of a config file.
        """
        return cls(
            private_key=credentials.private_key,
            private_key_path=credentials.private_key_path,
            cli_username=credentials.user,
            cli_password=credentials.password,
            key_dir=key_dir,
        )


    def has_private_key(self):
        return bool(self._private_key or self._private_key_path)


    def private_key_path(self):
        """
        Returns the path of the private key file or None if there is no key.
        """
        if self._private_key_path:
            return self._private_key_path
        if not self._private_key:
            return None

        # check the key before it is written
        self.load_private_key()
        path = os.path.join(self._key_dir, _KEY_FILE_NAME)
        fileutil.write_secret_file(path, self._private_key)
        self._private_key_path = path
        return path


    def load_private_key(self):
        """
        Returns the paramiko key object of the private key.
        """
        if self._loaded_key is None:
            if self._private_key:
                self._loaded_key = load_private_key(self._private_key)
            elif self._private_key_path:
                with open(self._private_key_path) as file:
                    self._loaded_key = load_private_key(file.read())
            else:
                raise ConfigurationError('No private key was provided.')
        return self._loaded_key


    def public_key(self):
        """
        Returns the public key in the format of an authorized_keys line, e.g. 'ssh-rsa AAAA...'.
        """
        key = self.load_private_key()
        return '{0} {1}'.format(key.get_name(), key.get_base64())


def load_private_key(key_text):
    """
    Parses a private key in PEM or openssh format.
    Raises a ConfigurationError if the text holds no supported unencrypted key.
    """
    for key_class in _KEY_CLASSES:
        try:
            return key_class.from_private_key(io.StringIO(key_text))
        except paramiko.PasswordRequiredException:
            raise ConfigurationError('Encrypted private keys are not supported.')
        except (paramiko.SSHException, ValueError):
            continue
    raise ConfigurationError('The private key has an unknown format.')

"""
Contains functions for fetching files from the jenkins master and for storing secrets on the local machine.
"""

import logging
import os
import tempfile

import requests

from .errors import CliDownloadError


_DOWNLOAD_TIMEOUT = 60
_CHUNK_SIZE = 64 * 1024


def download_file(url, target_path, auth=None):
    """
    Downloads the file at url to target_path.
    The file is written to a temporary file first, so an interrupted download
    never leaves a broken file under target_path.
    """
    target_dir = os.path.dirname(os.path.abspath(str(target_path)))
    os.makedirs(target_dir, exist_ok=True)

    _logger.info("Download %s to %s", url, target_path)
    file_descriptor, temp_path = tempfile.mkstemp(dir=target_dir, suffix='.part')
    try:
        with os.fdopen(file_descriptor, 'wb') as file:
            try:
                with requests.get(url, auth=auth, stream=True, timeout=_DOWNLOAD_TIMEOUT) as response:
                    response.raise_for_status()
                    for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
                        file.write(chunk)
            except requests.RequestException as err:
                raise CliDownloadError('Failed to download {0}: {1}'.format(url, err))
        os.replace(temp_path, str(target_path))
    finally:
        if os.path.exists(temp_path):
            os.remove(temp_path)


def write_secret_file(path, content):
    """
    Writes content to a file that only the current user can read.
    """
    path = str(path)
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    file_descriptor = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(file_descriptor, 'w') as file:
        file.write(content)
    # O_CREAT does not change the mode of an existing file.
    os.chmod(path, 0o600)


_logger = logging.getLogger(__name__)

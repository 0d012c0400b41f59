"""Shared pytest fixtures for all tests."""

import logging

import pytest

from filestore_client.client import FileStoreClient
from filestore_client.transport import BaseTransport

SERVICE_SECRET = 'testServiceSecret'
SERVICE_TOKEN = 'testServiceToken'
SERVICE_SLUG = 'testServiceSlug'
USER_FILESTORE_URL = 'https://userfilestore'

USER_ID = 'testUserId'
USER_TOKEN = 'testUserToken'
FINGERPRINT = '31d-x9323s39amdsa'
ENCRYPTED_IDENTITY = 'mock encrypted user id and token'


class RecordingTransport(BaseTransport):
    """
    Test double that records every call and answers with canned responses.

    Set ``error`` to make both send methods raise it.
    """

    def __init__(self, get_response=None, post_response=None):
        super().__init__(SERVICE_SECRET, SERVICE_TOKEN, USER_FILESTORE_URL)
        self.get_response = get_response if get_response is not None else {}
        self.post_response = post_response if post_response is not None else {}
        self.error = None
        self.calls = []
        self.encrypt_calls = []
        self.closed = False

    def encrypt_user_id_and_token(self, user_id, user_token):
        self.encrypt_calls.append((user_id, user_token))
        return ENCRYPTED_IDENTITY

    async def send_get(self, url, context, payload=None, logger=None):
        self.calls.append({'method': 'GET', 'url': url, 'context': context, 'payload': payload, 'logger': logger})
        if self.error:
            raise self.error
        return self.get_response

    async def send_post(self, url, context, payload=None, logger=None):
        self.calls.append({'method': 'POST', 'url': url, 'context': context, 'payload': payload, 'logger': logger})
        if self.error:
            raise self.error
        return self.post_response

    async def close(self):
        self.closed = True


@pytest.fixture
def recording_transport():
    """
    Create a recording transport double.

    Returns:
        RecordingTransport with empty canned responses
    """
    return RecordingTransport()


@pytest.fixture
def client(recording_transport):
    """
    Create FileStoreClient wired to the recording transport.

    Args:
        recording_transport: Recording transport fixture

    Returns:
        FileStoreClient instance
    """
    return FileStoreClient(
        SERVICE_SECRET,
        SERVICE_TOKEN,
        SERVICE_SLUG,
        USER_FILESTORE_URL,
        transport=recording_transport
    )


@pytest.fixture
def request_logger():
    """Logger handed to client operations."""
    return logging.getLogger('tests.request')


@pytest.fixture
def sample_file(tmp_path):
    """
    Create a sample file for upload tests.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to test file
    """
    file_path = tmp_path / 'test-file'
    file_path.write_bytes(b'testFileContents')
    return file_path

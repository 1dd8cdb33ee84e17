"""Tests for the health and root endpoints."""

import unittest
from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient

from api.main import app, SERVICE_NAME, VERSION
from api.dependencies import get_upload_storage
from adapter.fake.upload_storage import FakeUploadStorage


class TestHealth(unittest.TestCase):

    def setUp(self):
        self.storage = FakeUploadStorage()
        app.dependency_overrides[get_upload_storage] = lambda: self.storage
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    @patch('api.routes.health.get_mongodb_client')
    def test_healthy(self, mock_get_client):
        mock_get_client.return_value = MagicMock()

        response = self.client.get('/health')

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body['status'], 'healthy')
        self.assertEqual(body['services']['mongodb']['status'], 'healthy')
        self.assertEqual(body['services']['uploads']['status'], 'healthy')

    @patch('api.routes.health.get_mongodb_client')
    def test_degraded_without_mongodb(self, mock_get_client):
        mock_get_client.return_value = None

        response = self.client.get('/health')

        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()['status'], 'degraded')
        self.assertEqual(response.json()['services']['mongodb']['status'], 'unhealthy')

    @patch('api.routes.health.get_mongodb_client')
    def test_degraded_when_uploads_not_writable(self, mock_get_client):
        mock_get_client.return_value = MagicMock()
        self.storage.ping = lambda: False

        response = self.client.get('/health')

        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()['services']['uploads']['status'], 'unhealthy')


class TestRoot(unittest.TestCase):

    def test_root(self):
        response = TestClient(app).get('/')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'service': SERVICE_NAME, 'version': VERSION, 'status': 'running'})


if __name__ == '__main__':
    unittest.main()

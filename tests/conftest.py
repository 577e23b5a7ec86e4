"""
Shared pytest fixtures for the Amara backend function tests.
"""

import os
import sys

import boto3
import pytest
from moto import mock_aws

# Add functions directory to Python path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "functions"))

PROFILES_TABLE = "amara-user-profiles"
DEVICES_TABLE = "amara-anonymous-devices"
VOICE_NOTES_BUCKET = "amara-voice-notes"
PAYSTACK_SECRET = "sk_test_paystack_secret"
ELEVENLABS_KEY = "xi_test_key"


def pytest_configure(config):
    """Set AWS credentials before test collection.

    This runs before test collection starts, ensuring boto3 resource
    creation during imports doesn't fail with NoRegionError.
    """
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
    os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
    os.environ.setdefault("AWS_REGION", "us-east-1")

    # Handler tests don't assert on CloudWatch; test_metrics.py re-enables it
    os.environ["METRICS_ENABLED"] = "false"


@pytest.fixture(autouse=True)
def aws_credentials():
    """Set fake AWS credentials for all tests."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
    os.environ["AWS_REGION"] = "us-east-1"


@pytest.fixture(autouse=True)
def clean_config_env(monkeypatch):
    """Start every test without credentials or overrides in the environment."""
    for name in (
        "ELEVENLABS_API_KEY",
        "ELEVENLABS_SECRET_ARN",
        "PAYSTACK_SECRET_KEY",
        "PAYSTACK_SECRET_ARN",
        "PLAN_LIMITS_JSON",
        "VOICE_NOTES_BUCKET",
        "VOICE_NOTES_PREFIX",
        "VOICE_NOTES_PUBLIC_BASE_URL",
        "USER_PROFILES_TABLE",
        "ANONYMOUS_DEVICES_TABLE",
        "DEFAULT_VOICE_ID",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_caches():
    """Reset shared AWS client and settings singletons between tests."""
    yield
    from shared.aws_clients import reset_clients
    from shared.config import reset_settings

    reset_clients()
    reset_settings()


def create_profiles_table(dynamodb):
    """Create the user profiles table with its email GSI."""
    return dynamodb.create_table(
        TableName=PROFILES_TABLE,
        KeySchema=[{"AttributeName": "id", "KeyType": "HASH"}],
        AttributeDefinitions=[
            {"AttributeName": "id", "AttributeType": "S"},
            {"AttributeName": "email", "AttributeType": "S"},
        ],
        GlobalSecondaryIndexes=[
            {
                "IndexName": "email-index",
                "KeySchema": [{"AttributeName": "email", "KeyType": "HASH"}],
                "Projection": {"ProjectionType": "ALL"},
            },
        ],
        BillingMode="PAY_PER_REQUEST",
    )


def create_devices_table(dynamodb):
    """Create the anonymous devices table."""
    return dynamodb.create_table(
        TableName=DEVICES_TABLE,
        KeySchema=[{"AttributeName": "device_id", "KeyType": "HASH"}],
        AttributeDefinitions=[{"AttributeName": "device_id", "AttributeType": "S"}],
        BillingMode="PAY_PER_REQUEST",
    )


@pytest.fixture
def mock_dynamodb():
    """Provide mocked DynamoDB with the profiles and devices tables."""
    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name="us-east-1")
        create_profiles_table(dynamodb)
        create_devices_table(dynamodb)
        yield dynamodb


@pytest.fixture
def profiles_table(mock_dynamodb):
    """Profiles table seeded with a trial user."""
    table = mock_dynamodb.Table(PROFILES_TABLE)
    table.put_item(
        Item={
            "id": "user_trial123",
            "email": "ada@example.com",
            "current_plan": "monthly_trial",
            "is_premium": False,
            "trial_end_date": "2026-11-01T00:00:00+00:00",
        }
    )
    return table


@pytest.fixture
def devices_table(mock_dynamodb):
    """Empty anonymous devices table."""
    return mock_dynamodb.Table(DEVICES_TABLE)


@pytest.fixture
def voice_notes_bucket():
    """Mocked S3 bucket for voice notes."""
    with mock_aws():
        s3 = boto3.client("s3", region_name="us-east-1")
        s3.create_bucket(Bucket=VOICE_NOTES_BUCKET)
        yield s3


@pytest.fixture
def settings():
    """Fully configured settings."""
    from shared.config import Settings

    return Settings(
        elevenlabs_api_key=ELEVENLABS_KEY,
        paystack_secret_key=PAYSTACK_SECRET,
        voice_notes_bucket=VOICE_NOTES_BUCKET,
        user_profiles_table=PROFILES_TABLE,
        anonymous_devices_table=DEVICES_TABLE,
    )


@pytest.fixture
def api_gateway_event():
    """Base API Gateway proxy event."""
    return {
        "httpMethod": "POST",
        "headers": {"Content-Type": "application/json"},
        "pathParameters": None,
        "queryStringParameters": None,
        "body": None,
        "isBase64Encoded": False,
        "requestContext": {"requestId": "req-test-123"},
    }


class FakeSynthesizer:
    """In-memory speech provider that records its calls."""

    def __init__(self, audio: bytes = b"ID3fake-mp3", error: Exception = None, transcript: str = "hello amara"):
        self.audio = audio
        self.error = error
        self.transcript = transcript
        self.calls = []
        self.transcribe_calls = []

    def synthesize(self, text, voice_id):
        self.calls.append((text, voice_id))
        if self.error:
            raise self.error
        return self.audio

    def transcribe(self, audio, filename="audio.webm", content_type="audio/webm"):
        self.transcribe_calls.append((audio, filename, content_type))
        if self.error:
            raise self.error
        return self.transcript


class FakeArtifactStore:
    """In-memory write-once object store."""

    def __init__(self, error: Exception = None):
        self.objects = {}
        self.uploads = []
        self.error = error

    def upload(self, key, data, content_type):
        from shared.errors import StorageError

        self.uploads.append((key, data, content_type))
        if self.error:
            raise self.error
        if key in self.objects:
            raise StorageError("Failed to upload audio file")
        self.objects[key] = data
        return f"https://cdn.test/{key}"

    def download(self, key):
        from shared.errors import StorageError

        if self.error:
            raise self.error
        if key not in self.objects:
            raise StorageError("Failed to download audio file")
        return self.objects[key]


@pytest.fixture
def fake_synthesizer():
    return FakeSynthesizer()


@pytest.fixture
def fake_store():
    return FakeArtifactStore()

from types import SimpleNamespace

import pytest

from pagehub.config import FunctionsConfig
from pagehub.functions import create_functions_app
from pagehub.secret_accessor import SecretAccessor, SecretNotFoundError


class FakeSecretManager:
    def __init__(self, *payloads):
        self.payloads = list(payloads)
        self.requested = []

    def access_secret_version(self, *, name):
        self.requested.append(name)
        data = self.payloads.pop(0)
        payload = None if data is None else SimpleNamespace(data=data)
        return SimpleNamespace(payload=payload)


def test_get_secret_reads_latest_version():
    client = FakeSecretManager(b"s3cret")
    accessor = SecretAccessor(project_id="growmar", client=client)

    assert accessor.get_secret("IMAGEN_API_KEY") == "s3cret"
    assert client.requested == ["projects/growmar/secrets/IMAGEN_API_KEY/versions/latest"]


def test_every_call_fetches_again():
    client = FakeSecretManager(b"first", b"second")
    accessor = SecretAccessor(project_id="growmar", client=client)

    assert accessor.get_secret("TOKEN") == "first"
    assert accessor.get_secret("TOKEN") == "second"
    assert len(client.requested) == 2


@pytest.mark.parametrize("data", [None, b""])
def test_missing_or_empty_payload_raises(data):
    accessor = SecretAccessor(project_id="growmar", client=FakeSecretManager(data))

    with pytest.raises(SecretNotFoundError, match="Secret 'TOKEN' not found or empty."):
        accessor.get_secret("TOKEN")


def test_missing_project_id_is_reported():
    client = FakeSecretManager(b"value")
    accessor = SecretAccessor(project_id=None, client=client)

    with pytest.raises(ValueError, match="project ID is not configured"):
        accessor.get_secret("TOKEN")

    assert client.requested == []


def test_functions_app_carries_project_secret_accessor():
    app = create_functions_app(FunctionsConfig(project_id="growmar"), verifier=object())

    assert isinstance(app.state.secrets, SecretAccessor)
    assert app.state.secrets.secret_path("IMAGEN_API_KEY") == (
        "projects/growmar/secrets/IMAGEN_API_KEY/versions/latest"
    )

import pytest

from prbot.secrets import SecretDoesNotExistError, SecretManager


class FakeSecretsAPI:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get_secret_value(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


def test_returns_read_secret():
    api = FakeSecretsAPI({"SecretString": "secret"})
    assert SecretManager(api).get_secret("key1") == "secret"
    assert api.calls == [{"SecretId": "key1"}]


@pytest.mark.parametrize("response", [{}, {"SecretString": ""}, None])
def test_error_when_secret_missing_or_empty(response):
    api = FakeSecretsAPI(response)
    with pytest.raises(SecretDoesNotExistError, match="secret does not exist"):
        SecretManager(api).get_secret("key1")
    assert api.calls == [{"SecretId": "key1"}]


def test_error_when_api_call_fails():
    err = TimeoutError("timed out")
    with pytest.raises(TimeoutError) as info:
        SecretManager(FakeSecretsAPI(error=err)).get_secret("key1")
    assert info.value is err
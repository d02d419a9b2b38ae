import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

from pathlib import Path

import pytest

from brokerauth.auth.passwords import CredentialRecord, PasswordHasher
from brokerauth.auth.users import Identity, InMemoryIdentityStore, YamlIdentityStore

FAST_ITERATIONS = 1000


@pytest.fixture()
def fixed_random():
    """Deterministic stand-in for the secure random source."""
    calls = []

    def _random(n: int) -> bytes:
        calls.append(n)
        return bytes(range(n))

    _random.calls = calls
    return _random


@pytest.fixture()
def identity_digest():
    """Digest provider whose derivation just concatenates its inputs."""
    resolved = []

    def _provider(name: str):
        resolved.append(name)

        def _derive(password: bytes, salt: bytes, iterations: int, length: int) -> bytes:
            raw = password + salt + iterations.to_bytes(4, "big")
            return raw.ljust(length, b"\0")[:length]

        return _derive

    _provider.resolved = resolved
    return _provider


@pytest.fixture()
def hasher() -> PasswordHasher:
    # Real PBKDF2-SHA512 with a low iteration count to keep the suite fast
    return PasswordHasher(iterations=FAST_ITERATIONS)


@pytest.fixture()
def bob_credential(hasher) -> CredentialRecord:
    _, record = hasher.hash("correct", CredentialRecord.empty(), True)
    return record


@pytest.fixture()
def store(bob_credential) -> InMemoryIdentityStore:
    s = InMemoryIdentityStore()
    s.add(Identity(username="bob", credential=bob_credential))
    s.add(Identity(username="carol", disabled=True, credential=bob_credential))
    s.add(Identity(username="dave", bound_client_id="dev1", credential=bob_credential))
    s.add(Identity(username="erin"))
    return s


@pytest.fixture()
def users_file(tmp_path: Path, monkeypatch) -> Path:
    """Empty location for a YAML users file, also exported as the default path."""
    path = tmp_path / "data" / "users.yml"
    monkeypatch.setenv("BROKERAUTH_USERS_PATH", str(path))
    return path


@pytest.fixture()
def yaml_store(users_file: Path) -> YamlIdentityStore:
    return YamlIdentityStore(users_file)

"""Tests for the artifact publisher: signing, overwrite and retry semantics."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

import pytest

from shipwright.bridge.crypto_bridge import verify_data
from shipwright.core import publisher as publisher_module
from shipwright.core.hasher import checksum
from shipwright.core.publisher import ArtifactPublisher, PublishError
from shipwright.hosts import FatalHostError, TransientHostError
from shipwright.models.artifacts import BuildArtifact
from shipwright.models.targets import ArtifactKind


class FlakyHost:
    """Wraps a host; the first ``failures`` uploads raise ``error``."""

    def __init__(self, inner, failures: int, error: Exception) -> None:
        self._inner = inner
        self._failures = failures
        self._error = error
        self.attempts = 0

    @property
    def host_name(self) -> str:
        return "flaky"

    def upload(self, name, data, release_id, *, content_type="application/octet-stream"):
        self.attempts += 1
        if self.attempts <= self._failures:
            raise self._error
        return self._inner.upload(name, data, release_id, content_type=content_type)


@pytest.fixture
def no_sleep(monkeypatch):
    sleeps: list[float] = []
    monkeypatch.setattr(publisher_module.time, "sleep", lambda s: sleeps.append(s))
    return sleeps


def _artifact(make_target, tmp_path, name="app.tar.gz", data=b"bundle", signature=None):
    path = tmp_path / name
    path.write_bytes(data)
    return BuildArtifact(
        target=make_target(), path=path, kind=ArtifactKind.UPDATE_BUNDLE, signature=signature
    )


class TestPublish:
    def test_signs_and_uploads_signature_sibling(
        self, publisher, host, context, make_target, tmp_path, keypair
    ):
        record = publisher.publish(_artifact(make_target, tmp_path), context)

        assert record.name == "app.tar.gz"
        assert record.size == len(b"bundle")
        assert record.checksum.startswith("sha256:")
        assert verify_data(b"bundle", record.signature, keypair[1])
        stored_sig = host.read("app.tar.gz.sig", context.release_id).decode()
        assert stored_sig == record.signature

    def test_builder_signature_is_kept(self, publisher, context, make_target, tmp_path):
        record = publisher.publish(
            _artifact(make_target, tmp_path, signature="prebuilt-sig"), context
        )
        assert record.signature == "prebuilt-sig"

    def test_last_write_wins(self, publisher, host, context):
        publisher.publish_bytes("latest.json", b"first", context)
        second = publisher.publish_bytes("latest.json", b"second", context)

        assert second.checksum == checksum(b"second")
        served = Path(url2pathname(urlparse(second.download_url).path)).read_bytes()
        assert served == b"second"
        assert checksum(served) == second.checksum

        assert host.read("latest.json", context.release_id) == b"second"
        assert [a.name for a in host.list_assets(context.release_id)] == ["latest.json"]

    def test_empty_artifact_is_rejected(self, publisher, context, make_target, tmp_path):
        with pytest.raises(PublishError, match="empty") as exc_info:
            publisher.publish(_artifact(make_target, tmp_path, data=b""), context)
        assert exc_info.value.transient is False

    def test_missing_artifact_is_rejected(self, publisher, context, make_target, tmp_path):
        artifact = _artifact(make_target, tmp_path)
        artifact.path.unlink()
        with pytest.raises(PublishError, match="Cannot read"):
            publisher.publish(artifact, context)


class TestRetry:
    def test_transient_errors_are_retried(self, host, signer, context, no_sleep):
        flaky = FlakyHost(host, failures=2, error=TransientHostError("503"))
        publisher = ArtifactPublisher(flaky, signer, max_attempts=4, base_delay=1.0, max_delay=8.0)

        record = publisher.publish_bytes("a.zip", b"x", context)

        assert record.name == "a.zip"
        assert flaky.attempts == 3
        assert len(no_sleep) == 2
        # Backoff 1s then 2s, each plus up to the same amount of jitter
        assert 1.0 <= no_sleep[0] <= 2.0
        assert 2.0 <= no_sleep[1] <= 4.0

    def test_retries_are_bounded(self, host, signer, context, no_sleep):
        flaky = FlakyHost(host, failures=10, error=TransientHostError("timeout"))
        publisher = ArtifactPublisher(flaky, signer, max_attempts=3, base_delay=0.5)

        with pytest.raises(PublishError, match="after 3 attempts") as exc_info:
            publisher.publish_bytes("a.zip", b"x", context)

        assert exc_info.value.transient is True
        assert flaky.attempts == 3
        assert len(no_sleep) == 2

    def test_fatal_errors_are_not_retried(self, host, signer, context, no_sleep):
        flaky = FlakyHost(host, failures=1, error=FatalHostError("401 bad credentials"))
        publisher = ArtifactPublisher(flaky, signer, max_attempts=4)

        with pytest.raises(PublishError, match="rejected"):
            publisher.publish_bytes("a.zip", b"x", context)

        assert flaky.attempts == 1
        assert no_sleep == []

    def test_unexpected_host_errors_are_fatal(self, host, signer, context, no_sleep):
        flaky = FlakyHost(host, failures=1, error=KeyError("id"))
        publisher = ArtifactPublisher(flaky, signer, max_attempts=4)

        with pytest.raises(PublishError, match="KeyError") as exc_info:
            publisher.publish_bytes("latest.json", b"{}", context)

        assert exc_info.value.transient is False
        assert flaky.attempts == 1
        assert no_sleep == []

"""Tests for the update manifest generator."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from shipwright.core.manifest import ManifestPreconditionError, UpdateManifestGenerator
from shipwright.models.artifacts import PublishedAssetRecord
from shipwright.models.outcomes import BuildStep, TargetOutcome
from shipwright.models.release import ReleaseContext
from shipwright.models.targets import TargetOS


def _record(name: str) -> PublishedAssetRecord:
    return PublishedAssetRecord(
        name=name,
        download_url=f"https://dl.test/{name}",
        checksum="sha256:00",
        size=123,
        signature=f"sig-{name}",
    )


def _ok(target, name):
    record = _record(name)
    return TargetOutcome.success(target, [], [record], record)


@pytest.fixture
def generator(publisher):
    return UpdateManifestGenerator(publisher)


class TestBuild:
    def test_one_entry_per_successful_target(self, generator, context, make_target):
        linux, windows = make_target(), make_target(os=TargetOS.WINDOWS)
        manifest = generator.build(
            context, [_ok(linux, "a.AppImage.tar.gz"), _ok(windows, "a.nsis.zip")]
        )

        assert manifest.version == "1.2.0"
        assert manifest.notes == "Bug fixes."
        assert set(manifest.platforms) == {"linux-x86_64", "windows-x86_64"}
        entry = manifest.platforms["windows-x86_64"]
        assert entry.url == "https://dl.test/a.nsis.zip"
        assert entry.signature == "sig-a.nsis.zip"
        assert entry.size == 123

    def test_required_failure_withholds_manifest(self, generator, context, make_target):
        linux, windows = make_target(), make_target(os=TargetOS.WINDOWS)
        failed = TargetOutcome.failure(windows, BuildStep.BUILD, "compiler error")

        with pytest.raises(ManifestPreconditionError, match="windows/x86_64/all") as exc_info:
            generator.build(context, [_ok(linux, "a.tar.gz"), failed])

        assert exc_info.value.failed == [failed]

    def test_optional_failure_is_omitted(self, generator, context, make_target):
        linux = make_target()
        optional = make_target(os=TargetOS.MACOS, arch="aarch64", required=False)
        manifest = generator.build(
            context,
            [_ok(linux, "a.tar.gz"), TargetOutcome.failure(optional, BuildStep.BUILD, "x")],
        )
        assert set(manifest.platforms) == {"linux-x86_64"}

    def test_duplicate_platform_key_rejected(self, generator, context, make_target):
        a = make_target(category="all")
        b = make_target(category="other")
        with pytest.raises(ManifestPreconditionError, match="Duplicate"):
            generator.build(context, [_ok(a, "a.tar.gz"), _ok(b, "b.tar.gz")])

    def test_pub_date_from_release(self, generator, make_target):
        published = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        ctx = ReleaseContext(release_id="1", tag="1.2.0", published_at=published)
        manifest = generator.build(ctx, [_ok(make_target(), "a.tar.gz")])
        assert json.loads(manifest.to_bytes())["pub_date"].startswith("2024-05-01T12:00:00")

    def test_render_is_deterministic(self, generator, context, make_target):
        outcomes = [_ok(make_target(), "a.tar.gz"), _ok(make_target(os=TargetOS.WINDOWS), "b.zip")]
        first = generator.render(generator.build(context, outcomes))
        second = generator.render(generator.build(context, list(reversed(outcomes))))
        assert first == second


class TestPublish:
    def test_publish_replaces_previous_manifest(self, generator, host, context, make_target):
        host.upload("latest.json", b"{}", context.release_id)
        manifest = generator.build(context, [_ok(make_target(), "a.tar.gz")])

        record = generator.publish(context, manifest)

        assert record.name == "latest.json"
        stored = json.loads(host.read("latest.json", context.release_id))
        assert stored["version"] == "1.2.0"
        assert list(stored["platforms"]) == ["linux-x86_64"]

    def test_custom_asset_name(self, publisher, host, context, make_target):
        generator = UpdateManifestGenerator(publisher, asset_name="update.json")
        generator.publish(context, generator.build(context, [_ok(make_target(), "a.tar.gz")]))
        assert host.read("update.json", context.release_id)

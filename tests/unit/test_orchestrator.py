"""Tests for the release orchestrator's status rules."""

from __future__ import annotations

import json

import pytest

from shipwright.config import ProdConfig
from shipwright.core.orchestrator import ReleaseOrchestrator
from shipwright.core.production_guard import ProductionConfigError
from shipwright.hosts import FatalHostError
from shipwright.hosts.local import LocalReleaseHost
from shipwright.models.outcomes import BuildStep, PipelineStatus
from shipwright.models.targets import TargetOS


class SelectiveFailHost:
    """Delegates to a local host; fails deletes or one asset upload on request."""

    def __init__(self, inner, *, fail_delete=False, fail_upload_of=None, upload_error=None):
        self._inner = inner
        self._fail_delete = fail_delete
        self._fail_upload_of = fail_upload_of
        self._upload_error = upload_error

    @property
    def host_name(self):
        return "selective"

    def check(self, release_id):
        self._inner.check(release_id)

    def list_assets(self, release_id):
        return self._inner.list_assets(release_id)

    def upload(self, name, data, release_id, *, content_type="application/octet-stream"):
        if name == self._fail_upload_of:
            raise self._upload_error or FatalHostError(f"upload of {name} refused")
        return self._inner.upload(name, data, release_id, content_type=content_type)

    def delete(self, pattern, release_id):
        if self._fail_delete:
            raise FatalHostError("delete refused")
        return self._inner.delete(pattern, release_id)


@pytest.fixture
def config(tmp_path) -> ProdConfig:
    return ProdConfig(
        _env_file=None,
        workdir=tmp_path / "work",
        publish_base_delay_seconds=0.0,
        publish_max_delay_seconds=0.0,
        repository="LibNyanpasu/clash-nyanpasu",
    )


@pytest.fixture
def targets(make_target):
    return (make_target(clean_stale_assets=True), make_target(os=TargetOS.WINDOWS))


def _orchestrator(config, targets, builder, host, signer, channels=()):
    return ReleaseOrchestrator(
        config, targets=targets, builder=builder, host=host, channels=channels, signer=signer
    )


class TestReleaseOrchestrator:
    def test_complete_release(self, config, targets, fake_builder, host, signer, context, make_channel):
        channel = make_channel("telegram")
        report = _orchestrator(config, targets, fake_builder, host, signer, [channel]).run(context)

        assert report.status is PipelineStatus.COMPLETE
        assert report.exit_code == 0
        assert len(report.records) == 2
        assert report.manifest_record.name == "latest.json"
        stored = json.loads(host.read("latest.json", context.release_id))
        assert set(stored["platforms"]) == {"linux-x86_64", "windows-x86_64"}
        assert [d.delivered for d in report.deliveries] == [True]
        assert "v1.2.0" in channel.sent[0]

    def test_unreachable_host_aborts_before_building(
        self, config, targets, fake_builder, signer, context, tmp_path
    ):
        host = LocalReleaseHost(tmp_path / "strict", create_releases=False)
        report = _orchestrator(config, targets, fake_builder, host, signer).run(context)

        assert report.status is PipelineStatus.ABORTED
        assert report.exit_code == 1
        assert fake_builder.calls == []
        assert report.outcomes == ()

    def test_required_failure_withholds_manifest_and_announcements(
        self, config, targets, make_builder, host, signer, context, make_channel
    ):
        builder = make_builder(fail={targets[1].label: "build"})
        channel = make_channel("twitter")

        report = _orchestrator(config, targets, builder, host, signer, [channel]).run(context)

        assert report.status is PipelineStatus.PARTIALLY_COMPLETE
        assert report.exit_code == 2
        assert report.manifest is None
        assert [o.failed_step for o in report.failed_targets] == [BuildStep.BUILD]
        assert "latest.json" not in {a.name for a in host.list_assets(context.release_id)}
        assert channel.sent == []
        # The other platform's assets remain published
        assert len(report.records) == 1

    def test_optional_failure_still_completes(
        self, config, make_target, make_builder, host, signer, context
    ):
        optional = make_target(os=TargetOS.MACOS, arch="aarch64", required=False)
        targets = (make_target(clean_stale_assets=True), optional)
        builder = make_builder(fail={optional.label: "environment"})

        report = _orchestrator(config, targets, builder, host, signer).run(context)

        assert report.status is PipelineStatus.COMPLETE
        assert list(report.manifest.platforms) == ["linux-x86_64"]

    def test_cleanup_failure_aborts(self, config, targets, fake_builder, host, signer, context):
        broken = SelectiveFailHost(host, fail_delete=True)
        report = _orchestrator(config, targets, fake_builder, broken, signer).run(context)

        assert report.status is PipelineStatus.ABORTED
        assert "cleanup" in report.reason
        assert host.list_assets(context.release_id) == []

    def test_manifest_upload_failure_aborts(
        self, config, targets, fake_builder, host, signer, context, make_channel
    ):
        broken = SelectiveFailHost(host, fail_upload_of="latest.json")
        channel = make_channel("email")

        report = _orchestrator(config, targets, fake_builder, broken, signer, [channel]).run(context)

        assert report.status is PipelineStatus.ABORTED
        assert report.manifest is not None
        assert channel.sent == []

    def test_malformed_host_reply_on_manifest_upload_aborts(
        self, config, targets, fake_builder, host, signer, context, make_channel
    ):
        broken = SelectiveFailHost(
            host, fail_upload_of="latest.json", upload_error=ValueError("malformed JSON body")
        )
        channel = make_channel("telegram")

        report = _orchestrator(config, targets, fake_builder, broken, signer, [channel]).run(context)

        assert report.status is PipelineStatus.ABORTED
        assert "manifest upload failed" in report.reason
        assert "malformed JSON body" in report.reason
        assert channel.sent == []

    @pytest.mark.parametrize("problem", ["empty", "duplicate", "two_cleaners"])
    def test_bad_target_set_is_rejected_at_construction(
        self, config, make_target, fake_builder, host, signer, problem
    ):
        linux = make_target()
        sets = {
            "empty": [],
            "duplicate": [linux, linux],
            "two_cleaners": [
                make_target(clean_stale_assets=True),
                make_target(os=TargetOS.WINDOWS, clean_stale_assets=True),
            ],
        }
        with pytest.raises(ValueError):
            _orchestrator(config, sets[problem], fake_builder, host, signer)

    def test_channel_failure_does_not_change_status(
        self, config, targets, fake_builder, host, signer, context, make_channel
    ):
        channels = [make_channel("telegram", fail=True), make_channel("email")]
        report = _orchestrator(config, targets, fake_builder, host, signer, channels).run(context)

        assert report.status is PipelineStatus.COMPLETE
        assert [(d.channel, d.delivered) for d in report.deliveries] == [
            ("telegram", False), ("email", True),
        ]

    def test_rerun_is_idempotent(self, config, targets, fake_builder, host, signer, context):
        orchestrator = _orchestrator(config, targets, fake_builder, host, signer)
        orchestrator.run(context)
        first = sorted(a.name for a in host.list_assets(context.release_id))

        report = orchestrator.run(context)

        assert report.status is PipelineStatus.COMPLETE
        assert sorted(a.name for a in host.list_assets(context.release_id)) == first

    def test_production_guard_runs_at_construction(self, targets, fake_builder, host, signer):
        config = ProdConfig(_env_file=None, environment="production")
        with pytest.raises(ProductionConfigError):
            _orchestrator(config, targets, fake_builder, host, signer)

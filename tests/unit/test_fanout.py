"""Tests for notification fanout and announcement rendering."""

from __future__ import annotations

import pytest

from shipwright.channels._formatting import TWEET_LIMIT, AnnouncementRenderer
from shipwright.core.fanout import NotificationFanout
from shipwright.models.manifest import PlatformEntry, UpdateManifest
from shipwright.models.release import ReleaseContext


@pytest.fixture
def renderer() -> AnnouncementRenderer:
    return AnnouncementRenderer(
        "Clash Nyanpasu",
        "https://github.com/{repository}/releases/tag/v{version}",
        "LibNyanpasu/clash-nyanpasu",
    )


@pytest.fixture
def manifest() -> UpdateManifest:
    return UpdateManifest(
        version="1.2.0",
        platforms={
            "linux-x86_64": PlatformEntry(url="https://dl.test/l", signature="s", size=1),
            "windows-x86_64": PlatformEntry(url="https://dl.test/w", signature="s", size=1),
        },
    )


class TestNotificationFanout:
    def test_failing_channel_does_not_block_others(self, renderer, context, manifest, make_channel):
        a, b, c = make_channel("a"), make_channel("b", fail=True), make_channel("c")
        fanout = NotificationFanout([a, b, c], renderer=renderer)

        results = fanout.announce(context, manifest)

        assert [(r.channel, r.delivered) for r in results] == [
            ("a", True), ("b", False), ("c", True),
        ]
        assert "b is down" in results[1].error
        assert len(a.sent) == 1 and len(c.sent) == 1

    def test_one_attempt_per_channel(self, renderer, context, make_channel):
        flaky = make_channel("flaky", fail=True)
        NotificationFanout([flaky], renderer=renderer).announce(context)
        assert flaky.sent == []

    def test_register_is_idempotent(self, renderer, make_channel):
        channel = make_channel("a")
        fanout = NotificationFanout(renderer=renderer)
        fanout.register_channel(channel)
        fanout.register_channel(channel)
        assert fanout.channels == [channel]

    def test_no_channels(self, renderer, context):
        assert NotificationFanout(renderer=renderer).announce(context) == []


class TestAnnouncementRenderer:
    def test_tweet_shape(self, renderer):
        ctx = ReleaseContext(release_id="1", tag="v1.2.0")
        text = renderer.render("twitter", ctx).text
        assert text == (
            "Clash Nyanpasu v1.2.0 Released!\n\n"
            "Download Link: https://github.com/LibNyanpasu/clash-nyanpasu/releases/tag/v1.2.0"
        )

    def test_release_page_url_wins(self, renderer):
        ctx = ReleaseContext(release_id="1", tag="v1.2.0", html_url="https://example.test/r/1")
        assert renderer.download_link(ctx) == "https://example.test/r/1"

    def test_tweet_is_truncated(self, renderer):
        ctx = ReleaseContext(release_id="1", tag="v" + "9" * 400)
        assert len(renderer.render("twitter", ctx).text) == TWEET_LIMIT

    def test_telegram_escapes_html(self, renderer, manifest):
        ctx = ReleaseContext(release_id="1", tag="v1.2.0", body="fix <script> & more")
        text = renderer.render("telegram", ctx, manifest).text
        assert "&lt;script&gt; &amp; more" in text
        assert "linux-x86_64, windows-x86_64" in text

    def test_plain_lists_platform_urls(self, renderer, context, manifest):
        text = renderer.render("email", context, manifest).text
        assert text.splitlines()[0] == "Clash Nyanpasu v1.2.0 Released!"
        assert "windows-x86_64: https://dl.test/w" in text

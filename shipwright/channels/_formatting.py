"""Announcement rendering shared by all channels.

Each channel gets text shaped for it: Telegram takes HTML with the release
notes, Twitter a short status with the download link, email plain text.
Unknown channels get the plain-text form.
"""

from __future__ import annotations

import html

from shipwright.models.manifest import UpdateManifest
from shipwright.models.outcomes import NotificationMessage
from shipwright.models.release import ReleaseContext

TWEET_LIMIT = 280


class AnnouncementRenderer:
    """Renders one ``NotificationMessage`` per channel.

    Parameters
    ----------
    product_name:
        Shown in every announcement.
    release_page_template:
        ``str.format`` template with ``{repository}`` and ``{version}`` for
        the download link.  A release event's ``html_url`` takes precedence.
    repository:
        ``"owner/name"`` substituted into the template.
    """

    def __init__(self, product_name: str, release_page_template: str = "", repository: str = "") -> None:
        self._product = product_name
        self._template = release_page_template
        self._repository = repository

    def download_link(self, context: ReleaseContext) -> str:
        if context.html_url:
            return context.html_url
        if not self._template:
            return ""
        return self._template.format(repository=self._repository, version=context.version)

    def render(
        self,
        channel: str,
        context: ReleaseContext,
        manifest: UpdateManifest | None = None,
    ) -> NotificationMessage:
        if channel == "telegram":
            text = self._telegram(context, manifest)
        elif channel == "twitter":
            text = self._tweet(context)
        else:
            text = self._plain(context, manifest)
        return NotificationMessage(channel=channel, text=text)

    # ------------------------------------------------------------------
    # Channel shapes
    # ------------------------------------------------------------------

    def _headline(self, context: ReleaseContext) -> str:
        return f"{self._product} {context.tag} Released!"

    def _telegram(self, context: ReleaseContext, manifest: UpdateManifest | None) -> str:
        lines = [f"<b>{html.escape(self._headline(context))}</b>", ""]
        if context.body.strip():
            lines.extend([html.escape(context.body.strip()), ""])
        if manifest is not None and manifest.platforms:
            platforms = ", ".join(sorted(manifest.platforms))
            lines.append(f"Platforms: <code>{html.escape(platforms)}</code>")
        link = self.download_link(context)
        if link:
            lines.append(f'<a href="{html.escape(link, quote=True)}">Download</a>')
        return "\n".join(lines).strip()

    def _tweet(self, context: ReleaseContext) -> str:
        link = self.download_link(context)
        text = self._headline(context)
        if link:
            text = f"{text}\n\nDownload Link: {link}"
        if len(text) > TWEET_LIMIT:
            text = text[: TWEET_LIMIT - 1] + "…"
        return text

    def _plain(self, context: ReleaseContext, manifest: UpdateManifest | None) -> str:
        lines = [self._headline(context), "=" * 40, ""]
        if context.body.strip():
            lines.extend([context.body.strip(), ""])
        if manifest is not None:
            for key in sorted(manifest.platforms):
                lines.append(f"{key}: {manifest.platforms[key].url}")
            lines.append("")
        link = self.download_link(context)
        if link:
            lines.append(f"Download: {link}")
        return "\n".join(lines).strip()

"""Twitter/X channel — posts a status via the v2 ``POST /2/tweets`` endpoint.

Authenticates with an OAuth 2.0 user-context bearer token that carries the
``tweet.write`` scope.
"""

from __future__ import annotations

import logging

import requests

from shipwright.channels import ChannelDeliveryError
from shipwright.channels._formatting import TWEET_LIMIT

logger = logging.getLogger(__name__)

TWEETS_URL = "https://api.twitter.com/2/tweets"


class TwitterChannel:
    """Posts the release announcement as a tweet."""

    def __init__(self, bearer_token: str, *, timeout: float = 30.0, url: str = TWEETS_URL) -> None:
        if not bearer_token:
            raise ValueError("TwitterChannel needs a bearer token")
        self._token = bearer_token
        self._timeout = timeout
        self._url = url

    @property
    def channel_name(self) -> str:
        return "twitter"

    def send(self, text: str) -> None:
        if len(text) > TWEET_LIMIT:
            text = text[: TWEET_LIMIT - 1] + "…"
        try:
            response = requests.post(
                self._url,
                json={"text": text},
                headers={"Authorization": f"Bearer {self._token}"},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise ChannelDeliveryError(f"Twitter request failed: {exc}") from exc

        if response.status_code >= 400:
            raise ChannelDeliveryError(
                f"Twitter rejected status: HTTP {response.status_code} {response.text[:200]}"
            )
        tweet_id = response.json().get("data", {}).get("id", "?")
        logger.debug("Tweet posted (id=%s)", tweet_id)

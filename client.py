"""
Python client for the generation endpoint.

Mirrors the browser page: checks the daily quota, POSTs to
/api/generate-episode, keeps the latest episode, and offers share/copy.
Run it directly for a terminal version of the page.
"""

import argparse
import logging
import sys
import webbrowser
from urllib.parse import quote

import requests

from quota import JsonFileStore, QuotaExceeded, UsageQuota, USAGE_FILE

GENERATE_PATH = "/api/generate-episode"
QUOTA_PATH = "/api/quota"
SHARE_INTENT_URL = "https://twitter.com/intent/tweet?text="
DEFAULT_HASHTAG = "今日のひとこと"
GENERIC_ERROR = "ひとことの生成に失敗しました"
COPIED_MESSAGE = "ひとことをクリップボードにコピーしました"


def build_share_url(episode, hashtag=DEFAULT_HASHTAG):
    text = f"今日のひとこと：\n\n{episode}\n\n#{hashtag}"
    return SHARE_INTENT_URL + quote(text, safe="")


def fetch_daily_limit(base_url, session=None):
    resp = (session or requests).get(base_url.rstrip("/") + QUOTA_PATH)
    resp.raise_for_status()
    return int(resp.json()["limit"])


class EpisodeClient:
    def __init__(self, base_url, quota, session=None, hashtag=DEFAULT_HASHTAG,
                 open_url=None, clipboard=None, notify=None):
        self.base_url = base_url.rstrip("/")
        self.quota = quota
        self.session = session or requests.Session()
        self.hashtag = hashtag
        self.open_url = open_url or (lambda url: webbrowser.open(url, new=2))
        self.clipboard = clipboard
        self.notify = notify or print
        self.episode = ""
        self.error = ""
        self.is_loading = False
        self.quota.load()

    @property
    def can_generate(self):
        return not self.is_loading and not self.quota.exhausted

    def generate(self):
        """Fetch a new episode. Returns it, or None when refused or failed."""
        if self.is_loading:
            return None
        try:
            self.quota.check()
        except QuotaExceeded as e:
            self.error = str(e)
            return None

        self.is_loading = True
        self.error = ""
        try:
            resp = self.session.post(
                self.base_url + GENERATE_PATH,
                headers={"Content-Type": "application/json"},
            )
            if not resp.ok:
                raise requests.HTTPError(f"status {resp.status_code}", response=resp)
            episode = resp.json()["episode"]
            if not isinstance(episode, str):
                raise ValueError("episode is not a string")
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            logging.warning("Generation request failed: %s", e)
            self.error = GENERIC_ERROR
            return None
        finally:
            self.is_loading = False

        self.episode = episode
        self.quota.record_success()
        return episode

    def share_url(self):
        if not self.episode:
            return None
        return build_share_url(self.episode, self.hashtag)

    def share_to_twitter(self):
        url = self.share_url()
        if url is None:
            return False
        self.open_url(url)
        return True

    def copy_to_clipboard(self):
        if not self.episode or self.clipboard is None:
            return False
        self.clipboard(self.episode)
        self.notify(COPIED_MESSAGE)
        return True


def main(argv=None):
    parser = argparse.ArgumentParser(description="今日のひとこと terminal client")
    parser.add_argument("--url", default="http://localhost:5001", help="Base URL of the server")
    parser.add_argument("--usage-file", default=USAGE_FILE, help="Where the daily usage record is kept")
    parser.add_argument("--limit", type=int, default=None, help="Daily limit (default: ask the server)")
    parser.add_argument("--share", action="store_true", help="Open the share intent in a browser")
    args = parser.parse_args(argv)

    limit = args.limit
    if limit is None:
        try:
            limit = fetch_daily_limit(args.url)
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            print(f"Could not read the daily limit from {args.url}: {e}", file=sys.stderr)
            return 2

    client = EpisodeClient(args.url, UsageQuota(JsonFileStore(args.usage_file), limit))
    episode = client.generate()
    if episode is None:
        print(client.error, file=sys.stderr)
        return 1
    print(episode)
    print(f"今日の残り回数: {client.quota.remaining}/{limit}")
    if args.share:
        client.share_to_twitter()
    return 0


if __name__ == "__main__":
    sys.exit(main())

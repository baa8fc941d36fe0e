"""
Bitbucket Cloud REST API access: authenticated GETs, repository name
normalization and workspace repository listing
"""

import base64
import json
import re
import threading
import time
from urllib.parse import quote

import requests

from .errors import (
    ApiError,
    RepositoryListingError,
    RequestTimeout,
    ResponseParseError,
    ServerError,
    TransportError,
)

API_HOST = "https://api.bitbucket.org"
USER_AGENT = "BitbucketAnalyzer/1.0"
REQUEST_TIMEOUT = 30
CHUNK_SIZE = 8192

# Page sizes tried in order when listing; None means no pagelen parameter
REPOSITORY_PAGE_SIZES = (100, 50, None)


def normalize_repo_name(name):
    """
    Convert a repository display name into the slug used in API paths

    "My Project (Version 2)" -> "my-project-version-2"
    """
    slug = re.sub(r"\s+", "-", name.lower())
    slug = slug.replace("(", "").replace(")", "")
    return quote(slug, safe="")


def encode_workspace(workspace):
    return quote(workspace.lower(), safe="")


def with_pagelen(endpoint, pagelen):
    if pagelen is None:
        return endpoint
    separator = "&" if "?" in endpoint else "?"
    return f"{endpoint}{separator}pagelen={pagelen}"


class BitbucketClient:
    """Issues Basic-auth GET requests and returns parsed JSON bodies"""

    def __init__(self, username, app_password, session=None, timeout=REQUEST_TIMEOUT):
        token = base64.b64encode(f"{username}:{app_password}".encode("utf-8")).decode("ascii")
        self.headers = {
            "Authorization": f"Basic {token}",
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
        }
        self._session = session
        self._local = threading.local()
        self.timeout = timeout

    @property
    def session(self):
        # requests.Session isn't thread-safe, so each worker thread gets its own
        if self._session is not None:
            return self._session
        if not hasattr(self._local, "session"):
            self._local.session = requests.Session()
        return self._local.session

    def url_for(self, endpoint):
        # Pagination links come back as absolute URLs
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        return API_HOST + endpoint

    def _read_text(self, resp, endpoint, deadline):
        # requests' timeout is per socket read; this caps the whole download
        chunks = []
        try:
            for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                if time.monotonic() > deadline:
                    resp.close()
                    raise RequestTimeout(endpoint)
                chunks.append(chunk)
        except requests.Timeout:
            raise RequestTimeout(endpoint)
        except requests.RequestException as e:
            raise TransportError(endpoint, str(e))
        return b"".join(chunks).decode(resp.encoding or "utf-8", errors="replace")

    def get(self, endpoint):
        deadline = time.monotonic() + self.timeout
        try:
            resp = self.session.get(self.url_for(endpoint), headers=self.headers, timeout=self.timeout, stream=True)
        except requests.Timeout:
            raise RequestTimeout(endpoint)
        except requests.RequestException as e:
            raise TransportError(endpoint, str(e))

        text = self._read_text(resp, endpoint, deadline)
        if resp.status_code != 200:
            raise ServerError(endpoint, resp.status_code, text)

        try:
            body = json.loads(text)
        except ValueError as e:
            raise ResponseParseError(endpoint, str(e))
        if not isinstance(body, dict):
            raise ResponseParseError(endpoint, "expected a JSON object")
        return body

    def get_first(self, endpoints, parse=None):
        """
        Try each endpoint in order and return the first usable result

        `parse` turns a body into the caller's result; a body it can't handle
        counts as a failed attempt. Only the error from the last endpoint is raised.
        """
        last_error = None
        for endpoint in endpoints:
            try:
                body = self.get(endpoint)
                if parse is None:
                    return body
                try:
                    return parse(body)
                except (TypeError, AttributeError, KeyError) as e:
                    raise ResponseParseError(endpoint, f"unexpected response shape ({e!r})")
            except ApiError as e:
                last_error = e
        raise last_error


def list_repositories(client, workspace):
    """
    Return the names of every repository in the workspace, in API order

    The first page size that works is kept and its `next` links are followed
    until the listing is exhausted.
    """
    base = f"/2.0/repositories/{encode_workspace(workspace)}"
    endpoints = [with_pagelen(base, size) for size in REPOSITORY_PAGE_SIZES]

    try:
        page = client.get_first(endpoints)
        names = [repo["name"] for repo in page.get("values", [])]

        seen = set()
        next_url = page.get("next")
        while next_url and next_url not in seen:
            seen.add(next_url)
            page = client.get(next_url)
            names.extend(repo["name"] for repo in page.get("values", []))
            next_url = page.get("next")
    except (ApiError, KeyError, TypeError) as e:
        raise RepositoryListingError(f"Failed to fetch repositories: {e}") from e

    return names

"""
Collect commits and merged pull requests for a repository within a date range
"""

import sys
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from .client import normalize_repo_name, encode_workspace, with_pagelen
from .errors import ApiError

COMMIT_PAGE_SIZES = (50, None)
PULL_REQUEST_PAGE_SIZES = (50, 25, None)
REPORT_DAYS = 7


def parse_timestamp(value):
    """Parse an API timestamp into an aware datetime; None when it can't be read"""
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class DateRange:
    start: datetime
    end: datetime

    @classmethod
    def last_week(cls, now=None):
        now = now or datetime.now(timezone.utc)
        return cls(start=now - timedelta(days=REPORT_DAYS), end=now)

    def contains(self, timestamp):
        moment = parse_timestamp(timestamp) if isinstance(timestamp, str) else timestamp
        if moment is None:
            return False
        return self.start <= moment <= self.end


@dataclass(frozen=True)
class CommitRecord:
    author: str
    repo: str
    hash: str
    message: str
    date: str


@dataclass(frozen=True)
class PullRequestRecord:
    author: str
    repo: str
    id: int
    title: str
    state: str
    created: str
    merged: str


def commit_author_key(author):
    # "Jane Doe <jane@example.com>" -> "Jane Doe"
    author = author or {}
    name = author.get("raw") or (author.get("user") or {}).get("display_name") or "Unknown"
    return name.split("<")[0].strip()


def pull_request_author_key(author):
    # Not stripped like commit authors, so the same person can show up under two keys
    author = author or {}
    return author.get("display_name") or author.get("username") or "Unknown"


@dataclass
class Stats:
    """Per-contributor accumulation for one run; insertion order is kept"""

    commits: dict = field(default_factory=lambda: defaultdict(list))
    pull_requests: dict = field(default_factory=lambda: defaultdict(list))
    repositories: list = field(default_factory=list)

    def add_repository(self, name):
        self.repositories.append(name)

    def add_commits(self, records):
        for record in records:
            self.commits[record.author].append(record)

    def add_pull_requests(self, records):
        for record in records:
            self.pull_requests[record.author].append(record)

    @property
    def total_commits(self):
        return sum(len(commits) for commits in self.commits.values())

    @property
    def total_pull_requests(self):
        return sum(len(prs) for prs in self.pull_requests.values())

    @property
    def contributors(self):
        return set(self.commits) | set(self.pull_requests)


def _repo_base(workspace, repo_name):
    return f"/2.0/repositories/{encode_workspace(workspace)}/{normalize_repo_name(repo_name)}"


def _commit_records(response, repo_name, date_range):
    records = []
    for commit in response["values"]:
        if not date_range.contains(commit.get("date")):
            continue
        records.append(CommitRecord(
            author=commit_author_key(commit.get("author")),
            repo=repo_name,
            hash=(commit.get("hash") or "")[:7],
            message=(commit.get("message") or "").split("\n")[0],
            date=commit["date"],
        ))
    return records


def _pull_request_records(response, repo_name, date_range):
    records = []
    for pr in response["values"]:
        if not date_range.contains(pr.get("created_on")):
            continue
        records.append(PullRequestRecord(
            author=pull_request_author_key(pr.get("author")),
            repo=repo_name,
            id=pr.get("id"),
            title=pr.get("title") or "",
            state=pr.get("state") or "",
            created=pr["created_on"],
            merged=pr.get("updated_on") or "",
        ))
    return records


def collect_commits(client, workspace, repo_name, date_range):
    """
    Fetch commits for one repository and keep those inside the date range

    A failed fetch or a response that can't be read is reported as a warning
    and yields no commits.
    """
    base = f"{_repo_base(workspace, repo_name)}/commits"
    endpoints = [with_pagelen(base, size) for size in COMMIT_PAGE_SIZES]

    try:
        return client.get_first(endpoints, parse=lambda body: _commit_records(body, repo_name, date_range))
    except ApiError as e:
        print(f"⚠️  Could not fetch commits for {repo_name}: {e}", file=sys.stderr)
        return []


def collect_pull_requests(client, workspace, repo_name, date_range):
    """Fetch merged pull requests for one repository created inside the date range"""
    base = f"{_repo_base(workspace, repo_name)}/pullrequests?state=MERGED"
    endpoints = [with_pagelen(base, size) for size in PULL_REQUEST_PAGE_SIZES]

    try:
        return client.get_first(endpoints, parse=lambda body: _pull_request_records(body, repo_name, date_range))
    except ApiError as e:
        print(f"⚠️  Could not fetch PRs for {repo_name}: {e}", file=sys.stderr)
        return []

from __future__ import annotations

import pytest

from bitbucket_report.client import encode_workspace, normalize_repo_name, with_pagelen


@pytest.mark.parametrize(
    "name, expected",
    [
        ("TheSourceV2", "thesourcev2"),
        ("The Source", "the-source"),
        ("Composite (Archived)", "composite-archived"),
        ("repo_with_underscores", "repo_with_underscores"),
        ("My Project (Version 2)", "my-project-version-2"),
        ("Tabs\tand   spaces", "tabs-and-spaces"),
        ("", ""),
    ],
)
def test_normalize_repo_name(name: str, expected: str) -> None:
    assert normalize_repo_name(name) == expected


@pytest.mark.parametrize(
    "name",
    ["The Source", "Composite (Archived)", "a_b-c", "X (Y) Z 9", "  lead and trail  "],
)
def test_normalize_is_idempotent(name: str) -> None:
    once = normalize_repo_name(name)
    assert normalize_repo_name(once) == once


def test_normalize_percent_encodes_unsafe_characters() -> None:
    assert normalize_repo_name("a/b&c") == "a%2Fb%26c"
    assert normalize_repo_name("Café") == "caf%C3%A9"


def test_workspace_is_lowercased_and_encoded_without_stripping() -> None:
    assert encode_workspace("My Team (EU)") == "my%20team%20%28eu%29"
    assert encode_workspace("Acme") == "acme"


def test_with_pagelen() -> None:
    assert with_pagelen("/x", 50) == "/x?pagelen=50"
    assert with_pagelen("/x?state=MERGED", 25) == "/x?state=MERGED&pagelen=25"
    assert with_pagelen("/x?state=MERGED", None) == "/x?state=MERGED"

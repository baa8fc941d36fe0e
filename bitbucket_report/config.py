import json
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigurationMissing

CONFIG_FILENAME = "bitbucket-config.json"

SAMPLE_CONFIG = {
    "workspace": "your-workspace-name",
    "username": "your-username",
    "appPassword": "your-app-password",
    "excludeRepos": ["repo-to-exclude"],
}


@dataclass(frozen=True)
class Config:
    workspace: str
    username: str
    app_password: str
    exclude_repos: frozenset = field(default_factory=frozenset)


def _config_from_file(path):
    """Read bitbucket-config.json; None if it is absent or incomplete"""
    if not path.exists():
        return None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        print(f"Error reading config file: {e}", file=sys.stderr)
        return None

    if not isinstance(data, dict):
        print("Error reading config file: expected a JSON object", file=sys.stderr)
        return None

    workspace = data.get("workspace")
    username = data.get("username")
    app_password = data.get("appPassword")
    if not (workspace and username and app_password):
        print(f"⚠️  {path.name} is missing workspace, username or appPassword", file=sys.stderr)
        return None

    exclude_repos = data.get("excludeRepos") or []
    if not isinstance(exclude_repos, list) or not all(isinstance(name, str) for name in exclude_repos):
        print("Error reading config file: excludeRepos must be a list of repository names", file=sys.stderr)
        return None

    return Config(
        workspace=workspace,
        username=username,
        app_password=app_password,
        exclude_repos=frozenset(exclude_repos),
    )


def _config_from_env():
    username = os.getenv("BITBUCKET_USERNAME")
    app_password = os.getenv("BITBUCKET_APP_PASSWORD")
    workspace = os.getenv("BITBUCKET_WORKSPACE")
    if not (username and app_password and workspace):
        return None

    excluded = os.getenv("BITBUCKET_EXCLUDE_REPOS", "")
    return Config(
        workspace=workspace,
        username=username,
        app_password=app_password,
        exclude_repos=frozenset(name.strip() for name in excluded.split(",") if name.strip()),
    )


def load_config(path=None):
    """
    Load configuration from the config file, falling back to environment variables

    Priority: bitbucket-config.json > BITBUCKET_* environment variables (.env included)
    """
    # Load environment variables from .env file
    load_dotenv(Path.cwd() / ".env")

    config_path = Path(path) if path else Path.cwd() / CONFIG_FILENAME
    config = _config_from_file(config_path) or _config_from_env()
    if config is None:
        raise ConfigurationMissing("Configuration not found!")
    return config


def create_sample_config(path=None):
    config_path = Path(path) if path else Path.cwd() / CONFIG_FILENAME
    config_path.write_text(json.dumps(SAMPLE_CONFIG, indent=2), encoding="utf-8")
    return config_path

import argparse
import sys
import time
from concurrent.futures import ThreadPoolExecutor

from .activity import DateRange, Stats, collect_commits, collect_pull_requests
from .client import BitbucketClient, list_repositories
from .config import CONFIG_FILENAME, create_sample_config, load_config
from .errors import BitbucketReportError, ConfigurationMissing
from .export import create_trend_chart, save_csv
from .report import render_report

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_MISSING = 2

# Pause between repositories to go easy on the API rate limit
REPO_PAUSE_SECONDS = 0.1


def parse_arguments(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        prog="bitbucket-report",
        description="Summarize Bitbucket commits and merged pull requests from the last 7 days",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Configuration:
  Create a {CONFIG_FILENAME} file with:
  {{
    "workspace": "your-workspace-name",
    "username": "your-username",
    "appPassword": "your-app-password"
  }}

  Or set environment variables (a .env file works too):
  - BITBUCKET_USERNAME
  - BITBUCKET_APP_PASSWORD
  - BITBUCKET_WORKSPACE

Bitbucket app password:
  1. Go to Bitbucket Settings > Personal Settings > App passwords
  2. Create new app password with 'Repositories: Read' permission
  3. Use this password in your configuration

Examples:
  python main.py
  python main.py --verbose
  python main.py --create-config
  python main.py --csv activity.csv --chart activity.png
        """
    )

    parser.add_argument(
        '--create-config',
        action='store_true',
        help=f'Create a sample {CONFIG_FILENAME} and exit'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Show detailed commit and PR information'
    )
    parser.add_argument(
        '--csv',
        metavar='FILE',
        help='Also save every commit and pull request to a CSV file'
    )
    parser.add_argument(
        '--chart',
        metavar='FILE',
        help='Also save a daily commit trend chart (PNG)'
    )

    return parser.parse_args(argv)


def select_repositories(repos, exclude_repos):
    skipped = [repo for repo in repos if repo in exclude_repos]
    if skipped:
        print(f"🚫 Excluding {len(skipped)} repositories: {', '.join(skipped)}")
    return [repo for repo in repos if repo not in exclude_repos]


def run(config, client, date_range, pause=REPO_PAUSE_SECONDS):
    """
    Collect activity for every repository in the workspace

    Repositories are processed one at a time; commits and pull requests for a
    repository are fetched in parallel and added to the stats once both finish.
    """
    print('🔍 Fetching repositories...')
    repos = list_repositories(client, config.workspace)
    print(f"📁 Found {len(repos)} repositories")
    repos = select_repositories(repos, config.exclude_repos)

    print(f"📅 Date range: {date_range.start.date()} to {date_range.end.date()}")
    print('\n📊 Processing repositories...')

    stats = Stats()
    with ThreadPoolExecutor(max_workers=2) as executor:
        for repo in repos:
            print(f"📁 {repo}... ", end="", flush=True)

            commits_future = executor.submit(collect_commits, client, config.workspace, repo, date_range)
            prs_future = executor.submit(collect_pull_requests, client, config.workspace, repo, date_range)
            commits = commits_future.result()
            prs = prs_future.result()

            stats.add_repository(repo)
            stats.add_commits(commits)
            stats.add_pull_requests(prs)
            print(f"{len(commits)} commits, {len(prs)} PRs")

            time.sleep(pause)

    return stats


def main(argv=None):
    args = parse_arguments(argv)

    if args.create_config:
        path = create_sample_config()
        print(f"📝 Created sample config file: {path.name}")
        print('Please edit it with your Bitbucket credentials and workspace info.')
        return EXIT_OK

    print('🚀 Bitbucket Activity Analyzer Starting...\n')

    try:
        config = load_config()
    except ConfigurationMissing as e:
        print(f"❌ {e}", file=sys.stderr)
        print('Please either:', file=sys.stderr)
        print('1. Create a config file: python main.py --create-config', file=sys.stderr)
        print('2. Set environment variables: BITBUCKET_USERNAME, BITBUCKET_APP_PASSWORD, BITBUCKET_WORKSPACE',
              file=sys.stderr)
        return EXIT_CONFIG_MISSING

    print(f"🏢 Analyzing workspace: {config.workspace}")

    client = BitbucketClient(config.username, config.app_password)
    date_range = DateRange.last_week()
    try:
        stats = run(config, client, date_range)
    except BitbucketReportError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    print(render_report(stats, verbose=args.verbose))

    # ==== Optional exports ====
    try:
        if args.csv:
            save_csv(stats, args.csv)
            print(f"\n✅ Saved detailed activity to '{args.csv}'")
        if args.chart:
            create_trend_chart(stats, date_range, args.chart)
            print(f"✅ Generated commit trend chart: '{args.chart}'")
    except OSError as e:
        print(f"❌ Error writing output: {e}", file=sys.stderr)
        return EXIT_FAILURE

    return EXIT_OK

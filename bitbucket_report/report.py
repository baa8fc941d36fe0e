def _by_count(activity):
    # sorted() is stable, so ties keep the order contributors were first seen
    return sorted(activity.items(), key=lambda item: len(item[1]), reverse=True)


def render_report(stats, verbose=False):
    """Render the weekly activity report for the collected stats as text"""
    lines = [
        "",
        "📊 BITBUCKET ACTIVITY REPORT - LAST 7 DAYS",
        "=" * 60,
    ]

    # ==== Commits ====
    lines += ["", "🚀 COMMITS SUMMARY", "-" * 40]
    if not stats.commits:
        lines.append("No commits found in the last 7 days.")
    for author, commits in _by_count(stats.commits):
        lines.append(f"📝 {author}: {len(commits)} commits")
        if verbose:
            lines += [f"    {c.hash} - {c.message} ({c.repo})" for c in commits]

    # ==== Pull requests ====
    lines += ["", "🔄 PULL REQUESTS SUMMARY", "-" * 40]
    if not stats.pull_requests:
        lines.append("No pull requests found in the last 7 days.")
    for author, prs in _by_count(stats.pull_requests):
        lines.append(f"🔀 {author}: {len(prs)} pull requests")
        if verbose:
            lines += [f"    #{pr.id} - {pr.title} ({pr.repo})" for pr in prs]

    # ==== Totals ====
    lines += [
        "",
        "📈 OVERALL STATS",
        "-" * 40,
        f"Total Commits: {stats.total_commits}",
        f"Total Pull Requests: {stats.total_pull_requests}",
        f"Active Contributors: {len(stats.contributors)}",
        f"Repositories Analyzed: {len(stats.repositories)}",
    ]
    return "\n".join(lines)

"""
Optional file outputs: detailed CSV and a daily commit trend chart
"""

import csv
from collections import defaultdict
from datetime import timedelta

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

from .activity import parse_timestamp

CSV_FIELDS = ["kind", "contributor", "repo", "id", "summary", "date"]


def save_csv(stats, filename):
    with open(filename, mode="w", newline="", encoding="utf-8") as csvfile:
        writer = csv.DictWriter(csvfile, fieldnames=CSV_FIELDS)
        writer.writeheader()

        for author, commits in stats.commits.items():
            for commit in commits:
                writer.writerow({
                    "kind": "commit",
                    "contributor": author,
                    "repo": commit.repo,
                    "id": commit.hash,
                    "summary": commit.message,
                    "date": commit.date,
                })

        for author, prs in stats.pull_requests.items():
            for pr in prs:
                writer.writerow({
                    "kind": "pull_request",
                    "contributor": author,
                    "repo": pr.repo,
                    "id": pr.id,
                    "summary": pr.title,
                    "date": pr.created,
                })


def daily_commit_counts(stats, date_range):
    """Commits per contributor for each calendar day (UTC) of the range"""
    first = date_range.start.date()
    days = [first + timedelta(days=i) for i in range((date_range.end.date() - first).days + 1)]
    index = {day: i for i, day in enumerate(days)}

    counts = defaultdict(lambda: [0] * len(days))
    for author, commits in stats.commits.items():
        for commit in commits:
            moment = parse_timestamp(commit.date)
            if moment is None:
                continue
            day = moment.astimezone(date_range.start.tzinfo).date()
            if day in index:
                counts[author][index[day]] += 1
    return days, dict(counts)


def create_trend_chart(stats, date_range, filename):
    days, counts = daily_commit_counts(stats, date_range)
    labels = [day.strftime("%a %m-%d") for day in days]

    plt.figure(figsize=(15, 8))

    # Different colors/markers for each contributor
    colors = ['#1f77b4', '#ff7f0e', '#2ca02c', '#d62728', '#9467bd', '#8c564b']
    markers = ['o', 's', '^', 'D', 'p', '*']

    for i, (author, daily) in enumerate(counts.items()):
        plt.plot(labels,
                 daily,
                 label=author,
                 color=colors[i % len(colors)],
                 marker=markers[i % len(markers)],
                 linewidth=2,
                 markersize=8)

    # Add total commits for each day
    for day_idx in range(len(days)):
        total = sum(daily[day_idx] for daily in counts.values())
        if total > 0:
            plt.text(day_idx, total + 0.5, f"Total: {total}",
                     ha='center', va='bottom',
                     fontweight='bold',
                     bbox=dict(facecolor='white', alpha=0.7, edgecolor='none'))

    plt.title(f'{days[0]} to {days[-1]} Daily Commit Activity', pad=20)
    plt.xlabel('Day')
    plt.ylabel('Number of Commits')
    plt.xticks(rotation=45)
    plt.grid(True, linestyle='--', alpha=0.7)
    if counts:
        plt.legend(title="Contributors", bbox_to_anchor=(1.05, 1), loc='upper left')
    plt.ylim(bottom=0)

    # Adjust layout to prevent label cutoff
    plt.tight_layout()
    plt.savefig(filename, dpi=150, bbox_inches='tight')
    plt.close()

"""
Tests for relative time formatting on the dashboard.
"""

from datetime import datetime, timedelta

from cyberbiz.api.routers.stats import time_ago

NOW = datetime(2024, 6, 1, 12, 0, 0)


def test_just_now():
    assert time_ago(NOW, NOW) == "just now"
    assert time_ago(NOW + timedelta(minutes=5), NOW) == "just now"


def test_singular_and_plural_units():
    assert time_ago(NOW - timedelta(seconds=1), NOW) == "1 second ago"
    assert time_ago(NOW - timedelta(seconds=45), NOW) == "45 seconds ago"
    assert time_ago(NOW - timedelta(minutes=1), NOW) == "1 minute ago"
    assert time_ago(NOW - timedelta(hours=2), NOW) == "2 hours ago"
    assert time_ago(NOW - timedelta(days=3), NOW) == "3 days ago"


def test_large_units():
    assert time_ago(NOW - timedelta(days=14), NOW) == "2 weeks ago"
    assert time_ago(NOW - timedelta(days=65), NOW) == "2 months ago"
    assert time_ago(NOW - timedelta(days=400), NOW) == "1 year ago"

"""Tests for route classification and rate limit rules."""

from datetime import timedelta

import pytest

from issue_tracker.rate_limit.types import RouteClass
from issue_tracker.security.middleware import classify_route, rate_limit_rules


@pytest.mark.unit
@pytest.mark.parametrize(
    ("method", "path", "expected"),
    [
        ("GET", "/health", []),
        ("GET", "/api/v1/health", []),
        ("POST", "/api/v1/auth/login", [RouteClass.AUTH, RouteClass.GENERAL]),
        ("POST", "/auth/register", [RouteClass.AUTH, RouteClass.GENERAL]),
        ("POST", "/api/v1/auth/refresh/", [RouteClass.AUTH, RouteClass.GENERAL]),
        ("POST", "/api/v1/auth/logout", [RouteClass.GENERAL]),
        ("POST", "/api/v1/issues", [RouteClass.CREATE, RouteClass.GENERAL]),
        ("GET", "/api/v1/issues", [RouteClass.GENERAL]),
        ("PATCH", "/issues/abc/triage", [RouteClass.GENERAL]),
    ],
)
def test_classify_route(method, path, expected):
    assert classify_route(method, path, "/api/v1") == expected


@pytest.mark.unit
def test_default_rules(test_settings):
    rules = rate_limit_rules(test_settings)

    assert rules[RouteClass.AUTH].limit == 10
    assert rules[RouteClass.AUTH].window == timedelta(minutes=15)
    assert rules[RouteClass.CREATE].limit == 100
    assert rules[RouteClass.CREATE].window == timedelta(hours=1)
    assert rules[RouteClass.GENERAL].limit == 1000
    assert rules[RouteClass.GENERAL].window == timedelta(hours=1)


@pytest.mark.unit
def test_development_general_limit_is_higher(test_settings):
    dev = test_settings.model_copy(update={"app_env": "development"})
    assert rate_limit_rules(dev)[RouteClass.GENERAL].limit == 2000

from __future__ import annotations

import pytest

from errors import ProviderError
from providers.selectors import AWSSelector, GitHubSelector, GoogleSelector


def _aws(ip: str, service: str = "AMAZON", region: str = "GLOBAL", nbg: str = "GLOBAL") -> dict:
    return {"ip_prefix": ip, "service": service, "region": region, "network_border_group": nbg}


def test_google_extracts_ipv4_and_ipv6_and_skips_junk() -> None:
    data = {
        "prefixes": [
            {"ipv4Prefix": "8.8.8.0/24"},
            {"ipv6Prefix": "2001:4860::/32"},
            {"ipv4Prefix": "  "},
            "invalid",
            None,
            {"ipv4Prefix": " 8.8.4.0/24 "},
        ]
    }
    assert GoogleSelector()(data) == ["8.8.8.0/24", "2001:4860::/32", "8.8.4.0/24"]


def test_google_scope_filter_is_case_insensitive() -> None:
    data = {
        "prefixes": [
            {"ipv4Prefix": "34.1.0.0/16", "scope": "us-central1"},
            {"ipv4Prefix": "34.2.0.0/16", "scope": "europe-west1"},
            {"ipv4Prefix": "34.3.0.0/16"},
        ]
    }
    assert GoogleSelector(scopes=["US-Central1"])(data) == ["34.1.0.0/16"]


@pytest.mark.parametrize("data", [{}, {"prefixes": "not an array"}])
def test_google_requires_prefixes_array(data) -> None:
    with pytest.raises(ProviderError, match="missing prefixes"):
        GoogleSelector()(data)


def test_aws_defaults_keep_amazon_services_in_global_and_us_east_1() -> None:
    data = {
        "prefixes": [
            _aws("52.94.76.0/24"),
            _aws("54.239.0.0/16", region="us-east-1"),
            _aws("52.119.224.0/20", service="AMAZON_CONNECT"),
            _aws("3.0.0.0/15", service="EC2", region="us-east-1"),
            _aws("13.248.0.0/16", region="eu-west-1"),
        ]
    }
    assert AWSSelector.with_defaults()(data) == ["52.94.76.0/24", "54.239.0.0/16", "52.119.224.0/20"]


def test_aws_without_filters_passes_everything() -> None:
    data = {
        "prefixes": [
            _aws("3.0.0.0/15", service="EC2", region="us-east-1"),
            _aws("13.248.0.0/16", region="eu-west-1"),
            _aws("  ", region="eu-west-1"),
        ]
    }
    assert AWSSelector()(data) == ["3.0.0.0/15", "13.248.0.0/16"]


def test_aws_filters_are_anded() -> None:
    data = {
        "prefixes": [
            _aws("54.239.0.0/16", region="us-east-1", nbg="us-east-1-mia-1"),
            _aws("3.5.0.0/18", region="us-east-1", nbg="us-east-1"),
            _aws("3.6.0.0/18", service="S3", region="us-east-1", nbg="us-east-1"),
        ]
    }
    sel = AWSSelector(services=["amazon"], regions=["US-EAST-1"], network_border_groups=["us-east-1"])
    assert sel(data) == ["3.5.0.0/18"]


def test_github_defaults_to_hooks_and_skips_non_strings() -> None:
    data = {"hooks": ["192.30.252.0/22", 123, None, " ", "185.199.108.0/22"], "actions": ["1.2.3.0/24"]}
    assert GitHubSelector()(data) == ["192.30.252.0/22", "185.199.108.0/22"]


def test_github_multiple_roles_and_missing_roles_are_skipped() -> None:
    data = {"hooks": ["192.30.252.0/22"], "Actions": ["x"], "actions": ["4.175.0.0/16"]}
    assert GitHubSelector(roles=["Actions", "hooks", "pages"])(data) == ["4.175.0.0/16", "192.30.252.0/22"]


def test_github_empty_hooks_is_tolerated_for_default_role_only() -> None:
    assert GitHubSelector()({"hooks": []}) == []
    with pytest.raises(ProviderError, match="no CIDRs found"):
        GitHubSelector(roles=["hooks"])({"hooks": []})


@pytest.mark.parametrize("data", [{}, {"hooks": "not an array"}])
def test_github_without_hooks_fails(data) -> None:
    with pytest.raises(ProviderError):
        GitHubSelector()(data)

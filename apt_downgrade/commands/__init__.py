"""CLI subcommands for apt-downgrade."""

from __future__ import annotations

from typing import Optional

from apt_downgrade.config import AptDowngradeConfig
from apt_downgrade.utils.http import HTTPClient
from apt_downgrade.core.apt import AptQuery
from apt_downgrade.core.remote_index import RemoteIndex
from apt_downgrade.core.candidates import CandidateAggregator
from apt_downgrade.models import ResolutionEnvironment


def build_aggregator(
    config: Optional[AptDowngradeConfig],
    env: ResolutionEnvironment,
    apt: AptQuery,
    http: HTTPClient,
) -> CandidateAggregator:
    """Wire the candidate aggregator from configuration.

    Remote pool lookups are skipped entirely when ``remote_lookup`` is off.
    """
    config = config or AptDowngradeConfig()
    remote = None
    if config.remote_lookup:
        remote = RemoteIndex(
            http,
            env,
            mirror_url=config.mirror_url,
            search_url=config.search_url,
            suite=config.suite,
        )
    return CandidateAggregator(env, apt.list_local, remote)

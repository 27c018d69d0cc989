"""API-layer dependency functions.

Re-exports all dependency factories from ``reading_room.dependencies`` so
that endpoint modules only need to import from ``reading_room.api.deps``.
"""

from reading_room.dependencies import (
    # Repository factories
    get_visitor_repo,
    get_activity_repo,
    get_scoring_rule_repo,
    get_threshold_repo,
    get_template_repo,
    get_content_link_repo,
    get_prospect_repo,
    # Service factories
    get_scoring_service,
    get_scoring_config_service,
    get_session_factory,
    get_template_resolver,
    get_generation_rate_limiter,
    get_text_generator,
    get_outreach_email_service,
    # Redis
    get_redis_client,
    get_cache_service,
)

__all__ = [
    "get_visitor_repo",
    "get_activity_repo",
    "get_scoring_rule_repo",
    "get_threshold_repo",
    "get_template_repo",
    "get_content_link_repo",
    "get_prospect_repo",
    "get_scoring_service",
    "get_scoring_config_service",
    "get_session_factory",
    "get_template_resolver",
    "get_generation_rate_limiter",
    "get_text_generator",
    "get_outreach_email_service",
    "get_redis_client",
    "get_cache_service",
]

from __future__ import annotations

import logging

from applyflow.core.dedup import deduplicate
from applyflow.core.scoring import score_posting
from applyflow.core.throttle import DiscoveryThrottle
from applyflow.db.repositories import Repository
from applyflow.sources.base import PostingSource
from applyflow.types import DiscoveryResult, JobPosting, JobPreferences

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "Software Engineer"


class MissingPreferencesError(Exception):
    pass


def roles_to_search(preferences: JobPreferences, *, limit: int = 3, default: str = DEFAULT_ROLE) -> list[str]:
    roles: list[str] = []
    for role in preferences.role_list:
        if role not in roles:
            roles.append(role)
        if len(roles) == limit:
            break
    return roles or [default]


class DiscoveryOrchestrator:
    def __init__(self, source: PostingSource, *, max_roles: int = 3, default_role: str = DEFAULT_ROLE):
        self.source = source
        self.max_roles = max_roles
        self.default_role = default_role

    def discover(self, preferences: JobPreferences | None) -> list[JobPosting]:
        if preferences is None:
            raise MissingPreferencesError("preferences are required")

        candidates: list[JobPosting] = []
        for role in roles_to_search(preferences, limit=self.max_roles, default=self.default_role):
            try:
                postings = self.source.search(
                    role,
                    location=preferences.location,
                    keywords=preferences.keyword_list,
                )
            except Exception as exc:
                logger.warning("Job search failed source=%s role=%r error=%s", self.source.source_name, role, exc)
                continue
            candidates.extend(postings)

        unique = deduplicate(candidates)
        logger.info(
            "Discovery collected %d postings (%d unique) source=%s",
            len(candidates),
            len(unique),
            self.source.source_name,
        )
        return unique


class UpsertGate:
    def __init__(self, repo: Repository):
        self.repo = repo

    def persist(self, user_id: str, candidates: list[JobPosting], preferences: JobPreferences) -> DiscoveryResult:
        inserted = 0
        for candidate in candidates:
            if self.repo.get_job_by_url(user_id, candidate.apply_url):
                continue

            scored = candidate.model_copy(update={"match_score": score_posting(candidate, preferences)})
            if self.repo.insert_job(user_id, scored) is not None:
                inserted += 1

        return DiscoveryResult(inserted_count=inserted, total_candidates=len(candidates))


class JobDiscoveryService:
    def __init__(
        self,
        *,
        repo: Repository,
        source: PostingSource,
        throttle: DiscoveryThrottle,
        max_roles: int = 3,
        default_role: str = DEFAULT_ROLE,
    ):
        self.throttle = throttle
        self.orchestrator = DiscoveryOrchestrator(source, max_roles=max_roles, default_role=default_role)
        self.gate = UpsertGate(repo)

    def run(self, user_id: str, preferences: JobPreferences | None) -> DiscoveryResult:
        self.throttle.check(user_id)
        candidates = self.orchestrator.discover(preferences)
        result = self.gate.persist(user_id, candidates, preferences)
        self.throttle.record(user_id)
        logger.info(
            "Discovery finished user_id=%s inserted=%d total=%d",
            user_id,
            result.inserted_count,
            result.total_candidates,
        )
        return result

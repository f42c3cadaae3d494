from __future__ import annotations

from applyflow.types import JobPosting, JobPreferences

BASE_SCORE = 50
ROLE_BONUS = 20
TECH_BONUS = 5
TECH_BONUS_CAP = 20
KEYWORD_BONUS = 5
LOCATION_BONUS = 10
REMOTE_BONUS = 5


def score_posting(posting: JobPosting, preferences: JobPreferences) -> int:
    score = BASE_SCORE
    corpus = f"{posting.title} {posting.company} {posting.description_snippet}".casefold()

    for role in preferences.role_list:
        if role.casefold() in corpus:
            score += ROLE_BONUS
            break

    tech_matches = sum(1 for tech in set(_folded(preferences.tech_stack_list)) if tech in corpus)
    score += min(tech_matches * TECH_BONUS, TECH_BONUS_CAP)

    # Every matching keyword counts, unlike roles which only count once.
    for keyword in _folded(preferences.keyword_list):
        if keyword in corpus:
            score += KEYWORD_BONUS

    posting_location = posting.location.casefold()
    preferred_location = preferences.location.casefold()
    if posting_location and preferred_location:
        preferred_city = preferred_location.split(",")[0].strip()
        if preferred_city and preferred_city in posting_location:
            score += LOCATION_BONUS
        if "remote" in posting_location:
            score += REMOTE_BONUS

    return max(0, min(100, score))


def _folded(terms: list[str]) -> list[str]:
    return [term.casefold() for term in terms]

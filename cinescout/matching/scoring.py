import datetime
from dataclasses import dataclass
from typing import List, Optional, Sequence

from cinescout.core.logger import logger
from cinescout.matching.models import ExternalMatchCandidate
from cinescout.matching.normalize import canonical_title
from cinescout.providers.models import LanguageType

CONFIDENCE_THRESHOLD = 60
SOLE_CANDIDATE_BONUS = 15
REGIONAL_LANGUAGES = ("ta", "te", "ml", "kn")

MATCH_QUALITY_LEVELS = (
    (90, "excellent"),
    (75, "good"),
    (60, "fair"),
    (40, "poor"),
)


@dataclass(frozen=True)
class ScoredCandidate:
    candidate: ExternalMatchCandidate
    score: int


def _year_number(year) -> Optional[int]:
    if year is None:
        return None
    year = str(year).strip()
    return int(year) if year.isdigit() and len(year) == 4 else None


def title_similarity(first: str, second: str) -> float:
    """Word-overlap ratio, with a character-position ratio for one-word titles."""
    if not first or not second:
        return 0.0
    if first == second:
        return 1.0

    first_words = first.split(" ")
    second_words = second.split(" ")
    matches = sum(1 for word in first_words if word and word in second_words)
    similarity = matches / max(len(first_words), len(second_words))

    if len(first_words) == 1 and len(second_words) == 1:
        shorter = min(len(first), len(second))
        same_position = sum(1 for a, b in zip(first, second) if a == b)
        similarity = max(similarity, same_position / shorter)

    return similarity


def title_points(candidate_title: str, raw_title: str) -> int:
    candidate_title = canonical_title(candidate_title)
    raw_title = canonical_title(raw_title)

    if candidate_title and raw_title:
        if candidate_title == raw_title:
            return 40
        if candidate_title in raw_title or raw_title in candidate_title:
            return 30
        similarity = title_similarity(candidate_title, raw_title)
        if similarity > 0.8:
            return 25
        if similarity > 0.6:
            return 15
        return 0

    # Regional-script catalog titles normalize to nothing.
    if raw_title:
        return 20
    return 0


def score_candidate(
    candidate: ExternalMatchCandidate,
    raw_title: str,
    raw_year: Optional[str],
    language_type: LanguageType = LanguageType.UNKNOWN,
    native_language: str = "ta",
    current_year: Optional[int] = None,
) -> int:
    """Additive confidence score for one candidate. Pure: same inputs, same score."""
    current_year = current_year or datetime.date.today().year
    candidate_year = _year_number(candidate.release_year)
    wanted_year = _year_number(raw_year)

    score = title_points(candidate.title or candidate.original_title or "", raw_title)

    if wanted_year is None:
        score += 5
    elif candidate_year == wanted_year:
        score += 25
    elif candidate_year is not None and abs(candidate_year - wanted_year) == 1:
        score += 12

    if candidate.original_language == native_language:
        score += 20
    elif language_type == LanguageType.TAMIL_DUBBED:
        score += 15
    elif candidate.original_language in REGIONAL_LANGUAGES:
        score += 12

    if candidate.vote_count > 100:
        score += 5

    if candidate_year is not None and candidate_year >= current_year - 1:
        score += 5

    if candidate.vote_average > 6.0:
        score += 2

    return score


def rank_candidates(
    candidates: Sequence[ExternalMatchCandidate],
    raw_title: str,
    raw_year: Optional[str],
    language_type: LanguageType = LanguageType.UNKNOWN,
    native_language: str = "ta",
    current_year: Optional[int] = None,
) -> List[ScoredCandidate]:
    """Score every candidate, best first, dropping anything under the threshold.

    Equal scores keep catalog order.
    """
    wanted_year = _year_number(raw_year)
    scored = []

    for candidate in candidates:
        score = score_candidate(
            candidate,
            raw_title,
            raw_year,
            language_type,
            native_language=native_language,
            current_year=current_year,
        )

        # Known precision risk: applies however weak the title match is.
        if (
            len(candidates) == 1
            and wanted_year is not None
            and _year_number(candidate.release_year) == wanted_year
        ):
            score += SOLE_CANDIDATE_BONUS

        scored.append(ScoredCandidate(candidate, score))

    scored.sort(key=lambda item: item.score, reverse=True)
    return [item for item in scored if item.score >= CONFIDENCE_THRESHOLD]


def select_best_match(
    candidates: Sequence[ExternalMatchCandidate],
    raw_title: str,
    raw_year: Optional[str],
    language_type: LanguageType = LanguageType.UNKNOWN,
    native_language: str = "ta",
    current_year: Optional[int] = None,
) -> Optional[ScoredCandidate]:
    qualified = rank_candidates(
        candidates,
        raw_title,
        raw_year,
        language_type,
        native_language=native_language,
        current_year=current_year,
    )
    if not qualified:
        logger.log(
            "MATCHER",
            f"No match with confidence >= {CONFIDENCE_THRESHOLD} for {raw_title!r} ({raw_year}) among {len(candidates)} candidates",
        )
        return None

    best = qualified[0]
    logger.log(
        "MATCHER",
        f"Selected {best.candidate.title!r} ({best.candidate.catalog_key}) for {raw_title!r} with score {best.score}",
    )
    return best


def match_quality(score: int) -> str:
    for minimum, label in MATCH_QUALITY_LEVELS:
        if score >= minimum:
            return label
    return "unreliable"

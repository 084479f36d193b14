import re
import unicodedata
from typing import Any, Dict, Iterable, List, Set, Tuple

from schemas import AtsScoreResponse

COMBINING_MARKS_RE = re.compile("[\u0300-\u036f]")
NON_WORD_RE = re.compile(r"[^\w\s]")
WHITESPACE_RE = re.compile(r"\s+")

MIN_KEYWORD_LENGTH = 3
PASSING_SCORE = 80

SUGGESTION_TEMPLATES = {
    "es": 'Menciona "{keyword}" donde refleje tu experiencia real.',
    "en": 'Mention "{keyword}" where it reflects your real experience.',
}

# Spanish and English function words
STOPWORDS = frozenset({
    # es
    "el", "la", "los", "las", "un", "una", "unos", "unas", "y", "e", "o", "u", "pero", "mas", "sino",
    "de", "a", "en", "con", "por", "para", "si", "no", "mi", "tu", "su", "este", "esta", "estos", "estas",
    "aquel", "aquella", "aquellos", "aquellas", "que", "como", "cuando", "donde", "quien", "cual", "cuanto",
    "ser", "estar", "tener", "hacer", "poder", "decir", "ver", "ir", "dar", "saber", "querer", "llegar",
    # en
    "the", "a", "an", "and", "or", "but", "if", "then", "else", "for", "with", "by", "at", "from", "to", "in",
    "on", "of", "up", "down", "out", "is", "are", "was", "were", "be", "been", "being", "have", "has", "had",
    "do", "does", "did", "will", "shall", "should", "would", "can", "could", "may", "might", "must", "i",
    "you", "he", "she", "it", "we", "they", "my", "your", "his", "her", "its", "our", "their", "this", "that",
    "these", "those", "who", "whom", "whose", "which", "what", "where", "when", "why", "how",
})


def normalize_text(text: str) -> str:
    """Lowercase, drop accents and punctuation, collapse whitespace."""
    t = unicodedata.normalize("NFD", text.lower())
    t = COMBINING_MARKS_RE.sub("", t)
    t = NON_WORD_RE.sub(" ", t)
    t = WHITESPACE_RE.sub(" ", t)
    return t.strip()


def extract_keywords(text: str) -> Set[str]:
    words = normalize_text(text).split(" ")
    return {w for w in words if len(w) >= MIN_KEYWORD_LENGTH and w not in STOPWORDS}


def keyword_overlap(cv_text: str, vacancy_text: str) -> Tuple[List[str], List[str]]:
    cv_set = extract_keywords(cv_text)
    vacancy_set = extract_keywords(vacancy_text)
    matched = sorted(cv_set & vacancy_set)
    missing = sorted(vacancy_set - cv_set)
    return matched, missing


def _walk_strings(value: Any) -> Iterable[str]:
    if isinstance(value, str):
        yield value
    elif isinstance(value, dict):
        for v in value.values():
            yield from _walk_strings(v)
    elif isinstance(value, (list, tuple)):
        for v in value:
            yield from _walk_strings(v)


def cv_content_to_text(cv_content: Dict[str, Any]) -> str:
    """Flatten every string in a CV document into one block of text."""
    return "\n".join(s for s in _walk_strings(cv_content) if s)


def local_ats_report(
    cv_content: Dict[str, Any],
    job_description: str,
    language: str = "en"
) -> AtsScoreResponse:
    """
    Keyword-overlap report computed without the generation service.

    The score is the share of vacancy keywords present in the CV. Below the
    passing score, the first missing keywords are turned into suggestions
    written in `language` ("es" or "en", unknown codes fall back to English).
    """
    matched, missing = keyword_overlap(cv_content_to_text(cv_content), job_description)
    total = len(matched) + len(missing)
    score = int(round(100 * len(matched) / total)) if total else 0

    suggestions: List[str] = []
    if score < PASSING_SCORE:
        template = SUGGESTION_TEMPLATES.get(language, SUGGESTION_TEMPLATES["en"])
        suggestions = [template.format(keyword=kw) for kw in missing[:3]]

    return AtsScoreResponse(
        score=score,
        matchedKeywords=matched,
        missingKeywords=missing,
        suggestions=suggestions,
    )

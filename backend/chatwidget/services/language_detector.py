"""
Heuristic language detection for user questions.

Distinguishes Malagasy, French and English by counting whole-word keyword
matches. Malagasy gets an extra structural signal (embedded apostrophes and a
few particles). Input with no signal falls back to French.
"""

import re
from dataclasses import dataclass

from chatwidget.core.logger import setup_logger
from chatwidget.models.enums import Language

logger = setup_logger(__name__)


MALAGASY_KEYWORDS: tuple[str, ...] = (
    "misaotra", "veloma", "manao ahoana", "salama", "miarahaba", "tsara", "ratsy",
    "misy", "tsy misy", "mandeha", "mipetraka", "mihinana", "misotro", "matory",
    "mifoha", "trano", "olona", "zavatra", "andro", "volana", "taona", "fotoana",
    "eto", "any", "ao", "izay", "izao", "izany", "izareo",
    "an'ny", "amin'ny", "ho an'ny", "noho ny",
    "fa", "ary", "na", "sa", "raha", "raha tsy", "satria", "noho",
    "dia", "kosa", "indray", "avy", "hatrany", "mandra-pahatongany",
    "mba", "mba tsy", "mba ho", "mba hitranga", "mba hatao",
    "toy", "toy ny", "tahaka", "tahaka ny", "karazana", "karazany",
    "be", "kely", "lehibe", "maro", "vitsy", "rehetra", "tsirairay", "tompoko",
    "aiza", "ahoana", "anareo", "ianao", "kay", "ve",
    "fomba", "manao", "mametraka", "mampiasa",
)

FRENCH_KEYWORDS: tuple[str, ...] = (
    "bonjour", "bonsoir", "salut", "merci", "de rien", "excusez-moi", "pardon",
    "oui", "non", "peut-être", "bien", "mal", "bon", "mauvais", "grand", "petit",
    "beaucoup", "peu", "trop", "assez", "très", "plutôt", "vraiment", "sûrement",
    "je", "tu", "il", "elle", "nous", "vous", "ils", "elles", "te", "se",
    "mon", "ton", "son", "ma", "ta", "mes", "tes", "ses", "notre", "votre",
    "leur", "nos", "vos", "leurs", "ce", "cette", "ces", "cet", "un", "une", "des",
    "le", "la", "les", "du", "de la", "au", "aux", "dans", "sur", "sous",
    "avec", "sans", "pour", "par", "vers", "chez", "entre", "parmi", "devant",
    "derrière", "à côté", "loin", "près", "ici", "là", "où", "quand", "comment",
    "pourquoi", "qui", "que", "quoi", "dont", "lequel", "laquelle", "lesquels",
    "lesquelles", "et", "ou", "mais", "donc", "or", "ni", "car", "puisque",
    "parce que", "afin que", "bien que", "quoique", "si", "comme", "ainsi",
    "alors", "ensuite", "puis", "après", "avant", "pendant", "depuis",
    "jusqu'à", "environ", "presque", "tout", "tous", "toute", "toutes",
)

ENGLISH_KEYWORDS: tuple[str, ...] = (
    "hello", "hi", "good morning", "good afternoon", "good evening", "good night",
    "thank you", "thanks", "you're welcome", "excuse me", "sorry",
    "yes", "no", "maybe", "well", "bad", "good", "big", "small", "large", "little",
    "much", "many", "few", "too", "enough", "very", "really", "surely",
    "i", "you", "he", "she", "it", "we", "they", "me", "him", "her", "us", "them",
    "my", "your", "his", "its", "our", "their", "mine", "yours", "hers",
    "ours", "theirs", "this", "that", "these", "those", "a", "an", "the",
    "in", "on", "at", "by", "for", "with", "without", "to", "from", "of", "about",
    "under", "over", "above", "below", "between", "among", "through", "during",
    "before", "after", "since", "until", "while", "where", "when", "why", "how",
    "who", "what", "which", "whose", "whom", "and", "but", "so", "yet",
    "because", "if", "unless", "although", "though", "as", "like", "than",
    "then", "now", "here", "there", "everywhere", "somewhere", "anywhere",
    "all", "some", "every", "each", "both", "either", "neither",
)

# Extra Malagasy particles and pronouns. Matches already counted by the
# keyword pass, plus "tsy" which only counts inside its phrases, are skipped.
MALAGASY_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r"\b(ny|no|kay|ve)\b"),
    re.compile(r"\b(aiza|ahoana|anareo|izareo|ianao)\b"),
    re.compile(r"\b(misy|tsy)\b"),
)

_EMBEDDED_APOSTROPHE = re.compile(r"(?<=[^\W\d_])'(?=[^\W\d_])")


def _compile_keywords(keywords: tuple[str, ...]) -> list[re.Pattern]:
    # Lookarounds instead of \b: keywords may start or end with a
    # non-word character (jusqu'à, peut-être).
    return [
        re.compile(r"(?<!\w)" + re.escape(keyword) + r"(?!\w)", re.IGNORECASE)
        for keyword in dict.fromkeys(keywords)
    ]


_MALAGASY_RE = _compile_keywords(MALAGASY_KEYWORDS)
_FRENCH_RE = _compile_keywords(FRENCH_KEYWORDS)
_ENGLISH_RE = _compile_keywords(ENGLISH_KEYWORDS)
_PATTERN_SKIP = frozenset(MALAGASY_KEYWORDS) | {"tsy"}


@dataclass(frozen=True)
class LanguageScores:
    """Keyword scores computed for one text."""

    malagasy: int
    french: int
    english: int
    apostrophes: int


def _normalize(text: str) -> str:
    return (text or "").replace("’", "'").replace("‘", "'").lower().strip()


def _count(patterns: list[re.Pattern], text: str) -> int:
    return sum(len(pattern.findall(text)) for pattern in patterns)


def score_language(text: str) -> LanguageScores:
    """Compute per-language scores; the apostrophe count is included in `malagasy`."""
    clean = _normalize(text)

    malagasy = _count(_MALAGASY_RE, clean)
    french = _count(_FRENCH_RE, clean)
    english = _count(_ENGLISH_RE, clean)

    apostrophes = len(_EMBEDDED_APOSTROPHE.findall(clean))
    malagasy += apostrophes

    for pattern in MALAGASY_PATTERNS:
        malagasy += sum(1 for match in pattern.findall(clean) if match not in _PATTERN_SKIP)

    return LanguageScores(
        malagasy=malagasy,
        french=french,
        english=english,
        apostrophes=apostrophes,
    )


def detect_language(text: str) -> Language:
    """
    Detect the language of a question.

    Never fails; always returns one of the three supported languages.
    """
    scores = score_language(text)
    logger.debug(
        "Language scores for %r: malagasy=%s french=%s english=%s",
        text,
        scores.malagasy,
        scores.french,
        scores.english,
    )

    if scores.malagasy > scores.french and scores.malagasy > scores.english:
        return Language.MALAGASY
    if scores.french > scores.english:
        return Language.FRENCH
    if scores.english > 0:
        return Language.ENGLISH
    if scores.apostrophes > 0:
        return Language.MALAGASY
    return Language.FRENCH

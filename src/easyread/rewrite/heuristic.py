"""Easy-read rewrite heuristic built from fixed lexical substitutions."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence
from functools import reduce

from easyread.config import RewriteConfig
from easyread.store.document_store import collapse_whitespace

Replacement = str | Callable[[re.Match[str]], str]
Substitution = tuple[re.Pattern[str], Replacement]


def _rule(pattern: str, replacement: str) -> Substitution:
    return re.compile(pattern, flags=re.IGNORECASE), replacement


def _verb(forms: dict[str, str]) -> Substitution:
    """One rule covering every listed inflection, each mapped to its plain form."""
    alternatives = "|".join(sorted(forms, key=len, reverse=True))
    pattern = re.compile(rf"\b({alternatives})\b", flags=re.IGNORECASE)
    return pattern, lambda match: forms[match.group(0).lower()]


# Order matters: longer forms precede their stems.
SUBSTITUTIONS: tuple[Substitution, ...] = (
    _rule(r"\butili[sz]ations?\b", "use"),
    _verb(
        {
            "utilise": "use", "utilises": "uses", "utilised": "used", "utilising": "using",
            "utilize": "use", "utilizes": "uses", "utilized": "used", "utilizing": "using",
        }
    ),
    _verb({"commence": "start", "commences": "starts", "commenced": "started", "commencing": "starting"}),
    _rule(r"\bapproximately\b", "about"),
    _rule(r"\bassistance\b", "help"),
    _verb({"assist": "help", "assists": "helps", "assisted": "helped", "assisting": "helping"}),
    _verb({"inform": "tell", "informs": "tells", "informed": "told", "informing": "telling"}),
    _rule(r"\bindividuals?\b", "people"),
    _verb({"purchase": "buy", "purchases": "buys", "purchased": "bought", "purchasing": "buying"}),
    _verb({"terminate": "end", "terminates": "ends", "terminated": "ended", "terminating": "ending"}),
    _rule(r"\bprior\s+to\b", "before"),
    _rule(r"\bsubsequent\s+to\b", "after"),
    _rule(r"\brequirement(s?)\b", r"need\1"),
    _rule(r"\bmandatory\b", "required"),
    _verb(
        {
            "endeavour": "try", "endeavours": "tries", "endeavoured": "tried", "endeavouring": "trying",
            "endeavor": "try", "endeavors": "tries", "endeavored": "tried", "endeavoring": "trying",
        }
    ),
    _verb({"obtain": "get", "obtains": "gets", "obtained": "got", "obtaining": "getting"}),
    _verb({"attempt": "try", "attempts": "tries", "attempted": "tried", "attempting": "trying"}),
    _verb({"proceed": "go", "proceeds": "goes", "proceeded": "went", "proceeding": "going"}),
    _rule(r"\bshall\b", "must"),
    _rule(r"\bfailure\s+to\b", "not"),
)

CONTRACTIONS: tuple[Substitution, ...] = (
    _rule(r"\bthey are\b", "they're"),
    _rule(r"\bdoes not\b", "doesn't"),
)

_WHICH_CLAUSE = re.compile(r", which", flags=re.IGNORECASE)


def apply_substitutions(text: str, rules: Iterable[Substitution]) -> str:
    return reduce(lambda acc, rule: rule[0].sub(rule[1], acc), rules, text)


def simplify(sentence: str) -> str:
    return collapse_whitespace(apply_substitutions(sentence, SUBSTITUTIONS))


def ensure_keep_terms(text: str, keep_terms: Sequence[str]) -> str:
    """Append a note naming any keep term the text no longer contains."""
    lowered = text.lower()
    missing = [term for term in keep_terms if term.lower() not in lowered]
    if not missing:
        return text
    return f"{text} ({', '.join(missing)} stay the same.)"


class EasyReadRewriter:
    """Produces up to `max_candidates` simplified variants of one sentence.

    Variants, in order of production:
    - simplified: the substitution table applied to the sentence.
    - shorter: as above, after splitting ", which" clauses into a new sentence.
    - plain: the original with a few contractions.

    Candidates are deduplicated case-insensitively; the first production keeps
    its position and wording.
    """

    def __init__(self, config: RewriteConfig | None = None) -> None:
        self.config = config or RewriteConfig()

    def variants(self, sentence: str) -> list[str]:
        return [
            simplify(sentence),
            simplify(_WHICH_CLAUSE.sub(". This", sentence)),
            apply_substitutions(collapse_whitespace(sentence), CONTRACTIONS),
        ]

    def rewrite(self, sentence: str, keep_terms: Sequence[str] | None = None) -> list[str]:
        keep_list = [term.strip() for term in keep_terms or [] if term and term.strip()]

        candidates: dict[str, str] = {}
        for variant in self.variants(sentence):
            if not variant.strip():
                continue
            with_keeps = ensure_keep_terms(variant, keep_list)
            candidates.setdefault(with_keeps.lower(), with_keeps)

        if not candidates:
            fallback = ensure_keep_terms(sentence, keep_list)
            candidates[fallback.lower()] = fallback

        return list(candidates.values())[: self.config.max_candidates]

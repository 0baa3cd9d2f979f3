"""NER probability providers for the scoring engine.

The provider is chosen once at composition time. `ZeroSignalProvider` is the safe
default when no NER capability is available; `HeuristicSignalProvider` estimates
org/person probabilities from lexicon hits and name shape.
"""

from __future__ import annotations

from typing import override

from ..exceptions import NerProviderError
from ..protocols import NerSignalProvider
from .features import tokenize
from .lexicons import BUSINESS_KEYWORDS, BUSINESS_SUFFIXES, FIRST_NAMES
from .scoring import LibrarySimulation

_GOVERNMENT_PREFIXES = ("CITY OF ", "COUNTY OF ", "STATE OF ", "DEPARTMENT OF ", "OFFICE OF ")
_ORG_PROBABILITY = 0.90
_PERSON_PROBABILITY = 0.85
_BASELINE_PROBABILITY = 0.10


class ZeroSignalProvider(NerSignalProvider):
    """Provider used when no NER capability is configured."""

    @override
    def signals(self, normalized: str) -> LibrarySimulation:
        return LibrarySimulation(spacy_org_prob=0.0, spacy_person_prob=0.0)


class HeuristicSignalProvider(NerSignalProvider):
    """Lexicon-driven stand-in for an ORG/PERSON entity recognizer."""

    @override
    def signals(self, normalized: str) -> LibrarySimulation:
        tokens = tokenize(normalized)
        if not tokens:
            return LibrarySimulation()

        token_set = set(tokens)
        looks_like_org = (
            bool(token_set & BUSINESS_SUFFIXES)
            or bool(token_set & BUSINESS_KEYWORDS)
            or normalized.startswith(_GOVERNMENT_PREFIXES)
        )
        looks_like_person = tokens[0] in FIRST_NAMES and 2 <= len(tokens) <= 4

        return LibrarySimulation(
            spacy_org_prob=_ORG_PROBABILITY if looks_like_org else _BASELINE_PROBABILITY,
            spacy_person_prob=_PERSON_PROBABILITY if looks_like_person else _BASELINE_PROBABILITY,
        )


def build_signal_provider(name: str) -> NerSignalProvider:
    """Return the provider registered under `name` (`none` or `heuristic`)."""
    providers: dict[str, type[NerSignalProvider]] = {
        "none": ZeroSignalProvider,
        "heuristic": HeuristicSignalProvider,
    }
    key = name.strip().lower()
    if key not in providers:
        raise NerProviderError(name)
    return providers[key]()

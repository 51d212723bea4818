"""Fuzzy product lookup: free text → one catalog entry.

"amul milk", "amul mlik" and "8901262150019" all find "Amul Milk 500ml".
Text is compared against each product's name and code with
difflib.SequenceMatcher; the best entry wins if it clears the threshold.

The name score looks at runs of name words about as long as the query, so a
short query isn't penalized for everything else in the product name, plus a
small share of the whole-name ratio so "milk" prefers "Milk" over
"Amul Milk 500ml". When two products score exactly the same, the one earlier
in the catalog wins.

Aliases are resolved before text ever gets here; this module does no synonym
lookups.
"""

from dataclasses import dataclass
from difflib import SequenceMatcher

DEFAULT_THRESHOLD = 0.6

_WINDOW_WEIGHT = 0.85
_WHOLE_WEIGHT = 0.15


@dataclass(frozen=True)
class ProductMatch:
    product: object
    score: float
    index: int


class _NotFound:
    """Sentinel for "nothing close enough". Falsy, distinct from None."""

    def __bool__(self):
        return False

    def __repr__(self):
        return "NOT_FOUND"


NOT_FOUND = _NotFound()


def _ratio(a, b):
    return SequenceMatcher(None, a, b).ratio()


def _name_score(query, name):
    name = name.lower()
    q_words = query.split()
    n_words = name.split()
    if not q_words or not n_words:
        return 0.0
    best_window = 0.0
    n = len(q_words)
    for size in range(max(1, n - 1), n + 2):
        if size > len(n_words):
            break
        for start in range(len(n_words) - size + 1):
            window = " ".join(n_words[start:start + size])
            best_window = max(best_window, _ratio(query, window))
    if len(n_words) < max(1, n - 1):
        best_window = _ratio(query, name)
    return _WINDOW_WEIGHT * best_window + _WHOLE_WEIGHT * _ratio(query, name)


def score_product(query, product):
    """Similarity between query and a product, 0.0–1.0."""
    q = " ".join(query.lower().split())
    if not q:
        return 0.0
    name_score = _name_score(q, getattr(product, "name", "") or "")
    code = (getattr(product, "code", "") or "").lower()
    code_score = _ratio(q, code) if code else 0.0
    return max(name_score, code_score)


class ProductResolver:
    def __init__(self, threshold=DEFAULT_THRESHOLD):
        self.threshold = threshold

    def resolve(self, text, catalog):
        """Return the best ProductMatch in catalog for text, or NOT_FOUND."""
        best = None
        for index, product in enumerate(catalog):
            score = score_product(text, product)
            if score < self.threshold:
                continue
            # strict > keeps the earliest entry on ties
            if best is None or score > best.score:
                best = ProductMatch(product, score, index)
        return best if best is not None else NOT_FOUND

"""
Search module for guide lookup.

Provides fuzzy matching, keyword expansion, relevance scoring,
candidate indexing and highlighting.
"""
from .fuzzy_matcher import FuzzyMatcher, levenshtein_distance
from .highlighter import Highlighter, merge_spans
from .relevance_scorer import RelevanceScorer, normalize_query
from .search_index import SearchIndex
from .thesaurus import KeywordThesaurus, Suggestion, get_thesaurus

__all__ = [
    "FuzzyMatcher",
    "Highlighter",
    "KeywordThesaurus",
    "RelevanceScorer",
    "SearchIndex",
    "Suggestion",
    "get_thesaurus",
    "levenshtein_distance",
    "merge_spans",
    "normalize_query",
]

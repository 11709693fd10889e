"""File type identification by magic signatures."""

from mediathumb.mime.classifier import classify, detect_mime, read_prefix
from mediathumb.mime.matchers import (
    BUILTIN_MATCHERS,
    PREFIX_SIZE,
    ExactSignature,
    FuncMatcher,
    MaskedSignature,
    Matcher,
    MatcherRegistry,
    get_matcher_registry,
    register_matcher,
)

__all__ = [
    "BUILTIN_MATCHERS",
    "PREFIX_SIZE",
    "ExactSignature",
    "FuncMatcher",
    "MaskedSignature",
    "Matcher",
    "MatcherRegistry",
    "classify",
    "detect_mime",
    "get_matcher_registry",
    "read_prefix",
    "register_matcher",
]

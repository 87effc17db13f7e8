"""Pattern matchers used to decide which instances receive an event."""

import fnmatch
import re
from abc import ABC, abstractmethod
from collections.abc import Callable

from hal_router.core.errors import InvalidPatternError

# A compiled pattern: takes an event body, returns whether it matches
CompiledPattern = Callable[[str], bool]


class PatternMatcher(ABC):
    """Compiles pattern source strings into match functions.

    Matching must be a pure function of (pattern, text).
    """

    name: str = ""

    @abstractmethod
    def compile(self, pattern: str) -> CompiledPattern:
        """Compile a pattern.

        Args:
            pattern: Pattern source

        Returns:
            A function returning True when a body matches

        Raises:
            InvalidPatternError: If the pattern is malformed
        """


class RegexMatcher(PatternMatcher):
    """Regular expression matching, anywhere in the body (``re.search``)."""

    name = "regex"

    def compile(self, pattern: str) -> CompiledPattern:
        try:
            regex = re.compile(pattern)
        except re.error as e:
            raise InvalidPatternError(pattern, str(e)) from e
        return lambda text: regex.search(text) is not None


class GlobMatcher(PatternMatcher):
    """Shell-style wildcard matching against the whole body."""

    name = "glob"

    def compile(self, pattern: str) -> CompiledPattern:
        # fnmatch translates to a regex, so bracket errors surface here
        try:
            regex = re.compile(fnmatch.translate(pattern))
        except re.error as e:
            raise InvalidPatternError(pattern, str(e)) from e
        return lambda text: regex.match(text) is not None


class ExactMatcher(PatternMatcher):
    """Literal comparison; an empty pattern matches every body."""

    name = "exact"

    def compile(self, pattern: str) -> CompiledPattern:
        if not pattern:
            return lambda text: True
        return lambda text: text == pattern


MATCHERS: dict[str, type[PatternMatcher]] = {
    RegexMatcher.name: RegexMatcher,
    GlobMatcher.name: GlobMatcher,
    ExactMatcher.name: ExactMatcher,
}


def get_matcher(name: str) -> PatternMatcher:
    """Create a matcher by name ("regex", "glob" or "exact").

    Raises:
        ValueError: If the name is unknown
    """
    try:
        return MATCHERS[name]()
    except KeyError:
        choices = ", ".join(sorted(MATCHERS))
        raise ValueError(f"Unknown matcher '{name}' (expected one of: {choices})")

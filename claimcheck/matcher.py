import logging
from typing import Iterable, List, Optional

from claimcheck.engine_config import MatcherSettings
from claimcheck.models import RawMatch, Rule

logger = logging.getLogger(__name__)


class ViolationMatcher:
    def __init__(self, settings: Optional[MatcherSettings] = None):
        self.settings = settings or MatcherSettings()

    def match(self, text: str, rules: Iterable[Rule]) -> List[RawMatch]:
        """
        Scan text against every rule and return all raw matches.

        Output keeps rule order, then occurrence order within a rule.
        Overlaps across rules are left in place for the segment resolver.
        """
        if not text:
            return []

        matches = []
        for rule in rules:
            matches.extend(self._match_rule(rule, text))

        logger.debug("Matched %s occurrence(s) over %s chars", len(matches), len(text))
        return matches

    def _match_rule(self, rule: Rule, text: str) -> List[RawMatch]:
        found = []
        for m in rule.compiled.finditer(text):
            matched_text = m.group(0)
            if not matched_text:
                continue
            start, end = m.start(), m.end()
            found.append(RawMatch(
                rule=rule,
                matched_text=matched_text,
                start=start,
                end=end,
                context=self._context(text, start, end),
                confidence=self.compute_confidence(matched_text, rule.pattern),
            ))
        return found

    def compute_confidence(self, matched_text: str, pattern: str) -> float:
        s = self.settings
        confidence = s.base_confidence

        if len(matched_text) < s.short_match_length:
            confidence -= s.short_match_penalty
        elif len(matched_text) > s.long_match_length:
            confidence += s.long_match_bonus

        # literal hit rather than one assembled from groups and wildcards
        if matched_text in pattern:
            confidence += s.verbatim_bonus

        return round(max(s.min_confidence, min(s.max_confidence, confidence)), 6)

    def _context(self, text: str, start: int, end: int) -> str:
        window = self.settings.context_window
        return text[max(0, start - window):min(len(text), end + window)]


def match(text: str, rules: Iterable[Rule], settings: Optional[MatcherSettings] = None) -> List[RawMatch]:
    return ViolationMatcher(settings).match(text, rules)

import logging
from typing import Iterable, List, Optional, Sequence, Union

from claimcheck.alignment import ContentAlignmentAnalyzer
from claimcheck.config import ENGINE_CONFIG_PATH, RULES_PATH
from claimcheck.engine_config import EngineConfig
from claimcheck.matcher import ViolationMatcher
from claimcheck.models import AlignmentResult, Brief, CheckResult, HighlightSegment, RawMatch, Rule, Storyboard
from claimcheck.risk import aggregate, detect_product_categories, format_check_result
from claimcheck.rule_repository import RuleRepository
from claimcheck.segments import resolve_segments

logger = logging.getLogger(__name__)


class ComplianceEngine:
    """Entry point bundling the rule set and configuration the checks run with.

    Holds no mutable state, so one instance can serve concurrent callers.
    """

    def __init__(self, rules: Union[RuleRepository, Iterable[Rule]], config: Optional[EngineConfig] = None):
        self.repository = rules if isinstance(rules, RuleRepository) else RuleRepository(rules)
        self.config = config or EngineConfig()
        self._matcher = ViolationMatcher(self.config.matcher)
        self._analyzer = ContentAlignmentAnalyzer(self.check_violations, self.config.alignment)

    @classmethod
    def from_config(cls, rules_path: Optional[str] = None, config_path: Optional[str] = None) -> "ComplianceEngine":
        repository = RuleRepository.from_file(rules_path or RULES_PATH)
        config = EngineConfig.load(config_path if config_path is not None else ENGINE_CONFIG_PATH)
        return cls(repository, config)

    def check_violations(self, text: str) -> CheckResult:
        text = text or ""
        matches = sorted(self._matcher.match(text, self.repository.rules), key=lambda m: m.start)
        assessment = aggregate(matches, self.config.recommendations)
        return CheckResult(
            has_violations=bool(matches),
            matches=matches,
            risk_score=assessment.risk_score,
            summary=assessment.summary,
            recommendations=assessment.recommendations,
        )

    def resolve_segments(self, text: str, matches: Sequence[RawMatch]) -> List[HighlightSegment]:
        return resolve_segments(text, matches)

    def analyze_alignment(self, brief: Brief, storyboard: Union[Storyboard, str]) -> AlignmentResult:
        return self._analyzer.analyze(brief, storyboard)

    def detect_product_categories(self, text: str) -> List[str]:
        return detect_product_categories(text, self.config.recommendations)

    def format_report(self, text: str) -> str:
        return format_check_result(self.check_violations(text))

import logging
from typing import Callable, List, Optional, Tuple, Union

from claimcheck.engine_config import AlignmentSettings
from claimcheck.models import (
    AlignmentIssue,
    AlignmentResult,
    Brief,
    CheckResult,
    ClaimInfo,
    Storyboard,
)
from claimcheck.storyboard import extract_storyboard

logger = logging.getLogger(__name__)

CheckFn = Callable[[str], CheckResult]


class ContentAlignmentAnalyzer:
    """
    Cross-checks a submitted storyboard against its campaign brief.

    Restricted-claim findings come from the injected check function; the
    structural checks (theme, key messages, scene fit, duration, tone) each
    run only when the storyboard carries the field they need.
    """

    def __init__(self, check: CheckFn, settings: Optional[AlignmentSettings] = None):
        self._check = check
        self.settings = settings or AlignmentSettings()

    def analyze(self, brief: Brief, storyboard: Union[Storyboard, str]) -> AlignmentResult:
        if brief is None:
            raise ValueError("brief is required for alignment analysis")
        if isinstance(storyboard, str):
            storyboard = extract_storyboard(storyboard)

        logger.info("Alignment check started: brief=%s theme=%s", brief.id, storyboard.overall_theme)

        check_result = self._check(storyboard.scannable_text())
        issues = self._claim_issues(check_result)
        if check_result.has_violations:
            logger.info("Restricted-claim check found %s match(es)", len(check_result.matches))

        messages = brief.messages_to_convey
        issues.extend(self._check_theme(brief, storyboard, messages))
        issues.extend(self._check_key_messages(storyboard, messages))
        issues.extend(self._check_scenes(brief, storyboard))
        issues.extend(self._check_duration(brief, storyboard))
        issues.extend(self._check_tone(brief, storyboard))

        overall, confidence = self.classify(issues)
        result = AlignmentResult(
            overall_alignment=overall,
            issues=issues,
            confidence=confidence,
            check_result=check_result,
        )
        logger.info(
            "Alignment check finished: brief=%s result=%s issues=%s confidence=%s",
            brief.id, overall, len(issues), confidence,
        )
        return result

    def classify(self, issues: List[AlignmentIssue]) -> Tuple[str, int]:
        s = self.settings
        high = sum(1 for issue in issues if issue.severity == "high")
        medium = sum(1 for issue in issues if issue.severity == "medium")
        low = sum(1 for issue in issues if issue.severity == "low")

        confidence = s.base_confidence
        if high > 0:
            overall = "major_issues"
            confidence -= high * s.high_penalty
        elif medium > 1:
            overall = "major_issues"
            confidence -= medium * s.major_medium_penalty
        elif medium > 0 or low > 2:
            overall = "minor_issues"
            confidence -= medium * s.minor_medium_penalty + low * s.minor_low_penalty
        else:
            overall = "aligned"

        return overall, max(s.min_confidence, confidence)

    def resolve_category(self, category: str) -> str:
        key = (category or "").strip()
        tables = self.settings.theme_keywords.keys() | self.settings.off_topic_keywords.keys()
        if key in tables:
            return key
        if key.lower() in tables:
            return key.lower()
        aliases = self.settings.category_aliases
        return aliases.get(key) or aliases.get(key.lower(), key.lower())

    def _claim_issues(self, check_result: CheckResult) -> List[AlignmentIssue]:
        issues = []
        for index, m in enumerate(check_result.matches):
            rule = m.rule
            issues.append(AlignmentIssue(
                id=f"claim-{rule.id}-{index}",
                category="restricted_claim",
                severity=rule.severity,
                title="Possible restricted claim",
                description=f'"{m.matched_text}" may fall under: {rule.description}.',
                affected_element="claim_content",
                suggestion=f"Appropriate wording example: {rule.example}" if rule.example else "Review this expression.",
                claim=ClaimInfo(
                    violated_text=m.matched_text,
                    legal_reference=rule.legal_reference,
                    risk_weight=rule.risk_weight,
                ),
            ))
        return issues

    def _check_theme(self, brief: Brief, storyboard: Storyboard, messages: List[str]) -> List[AlignmentIssue]:
        if not storyboard.overall_theme:
            return []

        min_len = self.settings.min_keyword_length
        words = (
            brief.campaign_objective.lower().split()
            + " ".join(messages).lower().split()
            + (brief.product_features or "").lower().split()
        )
        keywords = [w for w in words if len(w) >= min_len]
        category = self.resolve_category(brief.category)
        keywords.extend(k.lower() for k in self.settings.theme_keywords.get(category, []))

        theme = storyboard.overall_theme.lower()
        if any(keyword in theme for keyword in keywords):
            return []

        return [AlignmentIssue(
            id="theme-mismatch-1",
            category="theme",
            severity="high",
            title="Theme does not match the campaign",
            description=f'The storyboard theme "{storyboard.overall_theme}" does not reflect the campaign brief.',
            affected_element="overall_theme",
            suggestion=(
                f'Rework the theme around the objective of "{brief.title}": '
                f"{brief.campaign_objective}"
            ),
        )]

    def _check_key_messages(self, storyboard: Storyboard, messages: List[str]) -> List[AlignmentIssue]:
        if not storyboard.key_messages:
            return []

        lowered = [m.lower() for m in messages]
        leading = [m.split()[0] for m in lowered if m.split()]

        aligned = 0
        for key_message in storyboard.key_messages:
            words = key_message.lower().split()
            if any(word in msg for word in words for msg in lowered) or any(
                lead in word for word in words for lead in leading
            ):
                aligned += 1

        ratio = aligned / len(storyboard.key_messages)
        if ratio >= self.settings.message_alignment_threshold:
            return []

        wanted = '", "'.join(messages)
        return [AlignmentIssue(
            id="message-mismatch-1",
            category="message",
            severity="medium",
            title="Key messages miss the brief",
            description=(
                "The storyboard key messages do not cover what the campaign wants to convey. "
                f"Alignment: {round(ratio * 100)}%"
            ),
            affected_element="key_message",
            suggestion=f'Work the brief\'s messages ("{wanted}") into the key messages.' if messages
            else "Align the key messages with the campaign brief.",
        )]

    def _check_scenes(self, brief: Brief, storyboard: Storyboard) -> List[AlignmentIssue]:
        if not storyboard.scenes:
            return []

        category = self.resolve_category(brief.category)
        off_topic = [k.lower() for k in self.settings.off_topic_keywords.get(category, [])]
        if not off_topic:
            return []

        mismatched = [
            scene for scene in storyboard.scenes
            if any(keyword in scene.description.lower() for keyword in off_topic)
        ]
        if not mismatched:
            return []

        return [AlignmentIssue(
            id="scene-category-mismatch-1",
            category="scene_content",
            severity="medium",
            title="Scenes do not fit the campaign category",
            description=(
                f'The campaign category is "{brief.category}", but {len(mismatched)} '
                "scene(s) contain content outside that category."
            ),
            affected_element="scene",
            suggestion=(
                f'Build the scenes around "{brief.category}", centred on how the product '
                "is actually used."
            ),
        )]

    def _check_duration(self, brief: Brief, storyboard: Storyboard) -> List[AlignmentIssue]:
        timed = [scene for scene in storyboard.scenes or [] if scene.duration]
        if not timed:
            return []

        total = sum(scene.duration for scene in timed)
        limits = {name.upper(): limit for name, limit in self.settings.platform_duration_limits.items()}

        issues = []
        seen = set()
        for platform in brief.target_platforms:
            if platform.upper() in seen:
                continue
            seen.add(platform.upper())
            limit = limits.get(platform.upper())
            if limit is None or total <= limit.max_seconds:
                continue
            issues.append(AlignmentIssue(
                id=f"duration-{platform.lower()}-1",
                category="duration",
                severity="medium",
                title=f"Video too long for {platform}",
                description=f"Targeting {platform}, but the total runtime of {total}s exceeds the recommended length.",
                affected_element="duration",
                suggestion=(
                    f"{platform} performs best at {limit.recommended}. "
                    "Shorten scenes or focus on the key moments."
                ),
            ))
        return issues

    def _check_tone(self, brief: Brief, storyboard: Storyboard) -> List[AlignmentIssue]:
        text = storyboard.message_content
        if not text:
            return []

        s = self.settings
        target = brief.campaign_target.lower()
        is_young = any(marker.lower() in target for marker in s.young_audience_markers)
        is_formal = any(marker.lower() in text.lower() for marker in s.formal_register_markers)
        if not (is_young and is_formal and len(text) > s.tone_min_length):
            return []

        return [AlignmentIssue(
            id="target-mismatch-1",
            category="target_audience",
            severity="low",
            title="Tone may not suit the audience",
            description="The campaign targets a young audience, but the wording reads as formal.",
            affected_element="target_content",
            suggestion="A friendlier, casual tone tends to land better with younger viewers.",
        )]

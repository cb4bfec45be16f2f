"""
Conflict Resolver.

Aggregates occurrences of the same clinical term across sections and
reduces them to one resolved finding per term. Contradictions are settled
by specialist credibility, then by visit recency; anything left undecided
is surfaced as a ConflictRecord instead of being guessed.
"""

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime

from config.engine_config import EngineSettings, get_engine_settings
from config.logging_config import get_logger
from models.analysis_models import ConflictRecord, ConflictSource, DetectedFinding

logger = get_logger(__name__)

PRESENT_ASSESSMENT = "Present"
ABSENT_ASSESSMENT = "Absent/Denied"


def subtract_months(value: date, months: int) -> date:
    """Shift a date back by whole calendar months, clamping the day."""
    month_index = value.year * 12 + (value.month - 1) - months
    year, month_zero = divmod(month_index, 12)
    month = month_zero + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


@dataclass
class ResolutionResult:
    """One resolved finding per term identity plus unresolved contradictions."""
    resolved: list[DetectedFinding] = field(default_factory=list)
    conflicts: list[ConflictRecord] = field(default_factory=list)


class ConflictResolver:
    """Resolves contradictory findings by specialist priority and recency."""

    def __init__(self, settings: EngineSettings | None = None):
        self.settings = settings or get_engine_settings()

    def priority_of(self, finding: DetectedFinding) -> int:
        if finding.specialist is None:
            return self.settings.unknown_specialist_priority
        return finding.specialist.priority

    def most_credible(self, findings: list[DetectedFinding]) -> DetectedFinding:
        """Lowest priority number wins; the earliest finding wins a tie."""
        return min(findings, key=self.priority_of)

    def pick_winner(
        self,
        present: DetectedFinding,
        absent: DetectedFinding,
        recency_cutoff: date,
    ) -> DetectedFinding | None:
        """
        Settle a present-versus-absent pair.

        Returns the winning finding, or None when neither credibility nor
        dates distinguish the two.
        """
        present_priority = self.priority_of(present)
        absent_priority = self.priority_of(absent)
        if present_priority != absent_priority:
            return present if present_priority < absent_priority else absent

        if present.date is None or absent.date is None:
            return None

        present_recent = present.date >= recency_cutoff
        absent_recent = absent.date >= recency_cutoff
        if present_recent != absent_recent:
            return present if present_recent else absent

        if present.date != absent.date:
            return present if present.date > absent.date else absent

        return None

    def resolve(
        self,
        findings: list[DetectedFinding],
        as_of: date | datetime | None = None,
    ) -> ResolutionResult:
        """
        Resolve findings to one per term identity.

        Args:
            findings: Findings in section order, then vocabulary table order
            as_of: Reference date for the recency window (defaults to today)
        """
        if as_of is None:
            as_of = date.today()
        elif isinstance(as_of, datetime):
            as_of = as_of.date()
        recency_cutoff = subtract_months(as_of, self.settings.recency_window_months)

        # Group by term identity, in first-seen order
        groups: dict[str, list[DetectedFinding]] = {}
        for finding in findings:
            groups.setdefault(finding.term.term, []).append(finding)

        result = ResolutionResult()

        for term_name, group in groups.items():
            present = [f for f in group if f.is_present]
            absent = [f for f in group if not f.is_present]

            if present and absent:
                best_present = self.most_credible(present)
                best_absent = self.most_credible(absent)
                winner = self.pick_winner(best_present, best_absent, recency_cutoff)

                if winner is not None:
                    result.resolved.append(winner)
                    continue

                result.conflicts.append(
                    ConflictRecord(
                        finding=term_name,
                        sources=[
                            ConflictSource(
                                specialty=best_present.specialty,
                                assessment=PRESENT_ASSESSMENT,
                                date=best_present.date_string,
                            ),
                            ConflictSource(
                                specialty=best_absent.specialty,
                                assessment=ABSENT_ASSESSMENT,
                                date=best_absent.date_string,
                            ),
                        ],
                    )
                )
                # Kept provisionally; the conflict is reported as a caveat
                result.resolved.append(best_present)
            else:
                result.resolved.append(self.most_credible(present or absent))

        logger.info(
            "Resolved findings",
            term_count=len(groups),
            resolved_count=len(result.resolved),
            conflict_count=len(result.conflicts),
            as_of=as_of.isoformat(),
        )
        return result

import logging
from typing import Dict, Optional

from healthai.config import (
    CONFIDENCE_PRESENTATION, DISCLAIMER, NO_CONDITIONS_MESSAGE, NO_CONDITIONS_TITLE, RESULTS_MESSAGE, RESULTS_TITLE,
)
from healthai.models import (
    AnalyzeSymptomsOutput, ConfidenceTier, DiagnosisReport, RenderedDiagnosis, ReportStatus,
)

logger = logging.getLogger(__name__)


class ResultRenderer:
    """
    Turns inference output into a display-ready report.

    Responsibilities:
    1. Parse each free-form confidence label into a closed ConfidenceTier, falling back to Unknown.
    2. Attach the tier's visual treatment (severity, color hint, icon, badge) from config.
    3. Keep the gateway's ranking as-is; the renderer never re-sorts or mutates its input.
    4. Produce the informational "no conditions" state for an empty or absent result.
    """

    def parse_confidence(self, label: Optional[str]) -> ConfidenceTier:
        normalized = (label or "").strip().lower()
        for tier in ConfidenceTier:
            if tier is not ConfidenceTier.UNKNOWN and tier.value.lower() == normalized:
                return tier
        return ConfidenceTier.UNKNOWN

    def presentation(self, tier: ConfidenceTier) -> Dict[str, str]:
        return CONFIDENCE_PRESENTATION.get(tier.value, CONFIDENCE_PRESENTATION[ConfidenceTier.UNKNOWN.value])

    def render(self, output: Optional[AnalyzeSymptomsOutput]) -> DiagnosisReport:
        if output is None or not output.diagnoses:
            return self._empty_report()

        items = []
        for rank, diagnosis in enumerate(output.diagnoses, start=1):
            tier = self.parse_confidence(diagnosis.confidence)
            if tier is ConfidenceTier.UNKNOWN:
                logger.info(f"Unrecognized confidence label {diagnosis.confidence!r} for {diagnosis.condition!r}")
            items.append(RenderedDiagnosis(
                rank=rank,
                condition=diagnosis.condition,
                confidence=diagnosis.confidence,
                tier=tier,
                **self.presentation(tier),
            ))

        return DiagnosisReport(
            status=ReportStatus.RESULTS,
            title=RESULTS_TITLE,
            message=RESULTS_MESSAGE,
            items=items,
            disclaimer=DISCLAIMER,
        )

    def _empty_report(self) -> DiagnosisReport:
        return DiagnosisReport(
            status=ReportStatus.NO_CONDITIONS,
            title=NO_CONDITIONS_TITLE,
            message=NO_CONDITIONS_MESSAGE,
            items=[],
            disclaimer=DISCLAIMER,
        )


# Global singleton instance
result_renderer = ResultRenderer()

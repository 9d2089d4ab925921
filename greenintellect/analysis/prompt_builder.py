from dataclasses import asdict
from pathlib import Path

from greenintellect.analysis.models import CompanyScores
from greenintellect.analysis.prompt_loader import load_prompt_template


def risk_level(overall_score: int) -> str:
    """Greenwashing risk band for an overall score (higher score, lower risk)."""
    if overall_score >= 70:
        return "LOW"
    if overall_score >= 40:
        return "MODERATE"
    return "HIGH"


class PromptBuilder:
    """Renders the greenwashing analysis prompt for one company."""

    def __init__(self, template_path: Path | None = None) -> None:
        self._template = load_prompt_template(template_path)

    def build(self, scores: CompanyScores) -> str:
        return self._template.format(**asdict(scores), risk_level=risk_level(scores.overall_score))

    def build_for_upload(self, company_name: str, report_year: int | None) -> str:
        """Prompt for an uploaded report whose scores are not known yet."""
        year = report_year if report_year is not None else "unknown year"
        return (
            f"Please provide a comprehensive greenwashing analysis of the {year} "
            f"sustainability report published by {company_name}. Assess the clarity of its "
            "environmental focus, the verifiability of its environmental claims, and the real "
            "actions taken toward its stated goals. Classify the overall greenwashing risk as "
            "LOW, MODERATE or HIGH and list specific red flags or positive indicators."
        )

"""Logic for the ``clinicaltrials_create_link`` tool."""

from clinicaltrials_mcp.constants import STUDY_LINK_BASE_URL
from clinicaltrials_mcp.models.model_clinical_trials import CreateLinkInput


def create_link_logic(params: CreateLinkInput) -> dict[str, str]:
    return {"url": f"{STUDY_LINK_BASE_URL}{params.nct_id.upper()}"}

"""Logic for the ``clinicaltrials_get_study`` tool."""

from __future__ import annotations

import asyncio
import logging

from clinicaltrials_mcp.data_sources.base_client import DataSourceError
from clinicaltrials_mcp.data_sources.clinical_trials import ClinicalTrialsClient
from clinicaltrials_mcp.models.model_clinical_trials import (
    GetStudyInput,
    GetStudyResult,
    Study,
    StudyLookupError,
    StudySummary,
)
from clinicaltrials_mcp.utils.json_cleaner import clean_study

logger = logging.getLogger(__name__)


def create_study_summary(study: Study) -> StudySummary:
    """Pick the handful of fields a caller needs to recognise a study."""
    proto = study.get("protocolSection") or {}
    ident = proto.get("identificationModule") or {}
    interventions = (proto.get("armsInterventionsModule") or {}).get("interventions")
    return StudySummary(
        nct_id=ident.get("nctId"),
        title=ident.get("officialTitle"),
        brief_summary=(proto.get("descriptionModule") or {}).get("briefSummary"),
        overall_status=(proto.get("statusModule") or {}).get("overallStatus"),
        conditions=(proto.get("conditionsModule") or {}).get("conditions"),
        interventions=(
            [{"name": i.get("name"), "type": i.get("type")} for i in interventions]
            if interventions is not None
            else None
        ),
        lead_sponsor=(
            (proto.get("sponsorCollaboratorsModule") or {}).get("leadSponsor") or {}
        ).get("name"),
    )


async def get_study_logic(
    client: ClinicalTrialsClient, params: GetStudyInput
) -> GetStudyResult:
    """Fetch up to five studies concurrently.

    A study that cannot be fetched is reported in ``errors`` rather than
    failing the whole call; ``errors`` is None when every lookup succeeded.
    """
    logger.debug("Fetching studies %s", ", ".join(params.nct_ids))

    async def fetch_one(nct_id: str) -> Study | StudySummary | StudyLookupError:
        try:
            study = await client.fetch_study(
                nct_id, fields=params.fields, markup_format=params.markup_format
            )
        except DataSourceError as e:
            logger.warning("Failed to fetch study %s: %s", nct_id, e)
            return StudyLookupError(nct_id=nct_id, error=str(e))
        if not study:
            return StudyLookupError(
                nct_id=nct_id, error=f"Study with NCT ID '{nct_id}' not found."
            )

        logger.info("Successfully fetched study %s", nct_id)
        cleaned = clean_study(study)
        return create_study_summary(cleaned) if params.summary_only else cleaned

    outcomes = await asyncio.gather(*(fetch_one(n) for n in params.nct_ids))

    studies = [o for o in outcomes if not isinstance(o, StudyLookupError)]
    errors = [o for o in outcomes if isinstance(o, StudyLookupError)]
    return GetStudyResult(studies=studies, errors=errors or None)

"""Pytest configuration and fixtures."""

import pytest

from clinicaltrials_mcp.models.model_clinical_trials import PagedStudies


def make_study(
    status: str | None = None,
    countries: list[str] | None = None,
    sponsor_class: str | None = None,
    phases: list[str] | None = None,
    nct_id: str = "NCT00000000",
) -> dict:
    """Build a minimal v2 study document with the fields trend analysis reads."""
    proto: dict = {"identificationModule": {"nctId": nct_id}}
    if status is not None:
        proto["statusModule"] = {"overallStatus": status}
    if countries is not None:
        proto["contactsLocationsModule"] = {
            "locations": [{"country": c} for c in countries]
        }
    if sponsor_class is not None:
        proto["sponsorCollaboratorsModule"] = {
            "leadSponsor": {"name": "Sponsor", "class": sponsor_class}
        }
    if phases is not None:
        proto["designModule"] = {"phases": phases}
    return {"protocolSection": proto}


@pytest.fixture
def sample_studies() -> list[dict]:
    """Three studies covering two statuses, two countries, two sponsor classes."""
    return [
        make_study("COMPLETED", ["USA"], "INDUSTRY", ["PHASE3"], "NCT00000001"),
        make_study(
            "RECRUITING", ["USA", "Canada"], "INDUSTRY", ["PHASE2"], "NCT00000002"
        ),
        make_study("COMPLETED", ["Canada"], "NIH", ["PHASE3"], "NCT00000003"),
    ]


class FakeStudySource:
    """Scripted stand-in for ClinicalTrialsClient.list_studies.

    ``pages`` are returned in order for bulk requests; the probe request
    (page_size=1) always answers with ``total``. Every call is recorded.
    """

    def __init__(
        self,
        total: int,
        pages: list[PagedStudies] | None = None,
        fail_on_page: int | None = None,
        error: Exception | None = None,
    ):
        self.total = total
        self.pages = list(pages or [])
        self.fail_on_page = fail_on_page
        self.error = error
        self.calls: list[dict] = []
        self.closed = False

    async def list_studies(
        self, spec=None, *, page_size=None, page_token=None, count_total=False
    ) -> PagedStudies:
        self.calls.append(
            {
                "spec": spec,
                "page_size": page_size,
                "page_token": page_token,
                "count_total": count_total,
            }
        )
        if page_size == 1 and count_total:
            return PagedStudies(studies=[], total_count=self.total)

        page_index = len(self.calls) - 2
        if self.fail_on_page is not None and page_index == self.fail_on_page:
            raise self.error
        return self.pages[page_index]

    async def close(self) -> None:
        self.closed = True

    @property
    def bulk_calls(self) -> list[dict]:
        return self.calls[1:]


def paginate(studies: list[dict], page_size: int) -> list[PagedStudies]:
    """Split studies into pages linked by tokens ``token1``, ``token2``..."""
    chunks = [studies[i : i + page_size] for i in range(0, len(studies), page_size)]
    return [
        PagedStudies(
            studies=chunk,
            next_page_token=f"token{i + 1}" if i + 1 < len(chunks) else None,
            total_count=len(studies),
        )
        for i, chunk in enumerate(chunks)
    ]

"""Project-wide constants."""

# -- Base client defaults ---------------------------------------------------
DEFAULT_TIMEOUT: float = 15.0
DEFAULT_MAX_RETRIES: int = 3

# -- ClinicalTrials.gov -----------------------------------------------------
CLINICAL_TRIALS_BASE_URL: str = "https://clinicaltrials.gov/api/v2"
STUDY_LINK_BASE_URL: str = "https://clinicaltrials.gov/ct2/show/"

SEARCH_DEFAULT_PAGE_SIZE: int = 10
SEARCH_MAX_PAGE_SIZE: int = 200
MAX_NCT_IDS_PER_REQUEST: int = 5

# -- Trend analysis ---------------------------------------------------------
# Hard cap checked against the probed total before any bulk page is fetched.
MAX_STUDIES_FOR_ANALYSIS: int = 5000
ANALYSIS_PAGE_SIZE: int = 1000
API_CALL_DELAY_SECONDS: float = 0.25

UNKNOWN_LABEL: str = "Unknown"

# -- Stats endpoints (ClinicalTrials.gov) -----------------------------------
STATS_ENDPOINTS: dict[str, str] = {
    "studySize": "size",
    "fieldValues": "field/values",
    "listFieldSizes": "list/sizes",
}

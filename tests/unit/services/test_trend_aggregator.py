"""Unit tests for trend tallies over raw study documents."""

import pytest

from clinicaltrials_mcp.models.model_clinical_trials import AnalysisType
from clinicaltrials_mcp.services.trend_aggregator import (
    assemble,
    extract_countries,
    extract_phases,
    extract_sponsor_class,
    extract_status,
    labels_for,
    tally,
)
from conftest import make_study


class TestExtractors:
    def test_extract_status(self):
        assert extract_status(make_study("RECRUITING")) == "RECRUITING"
        assert extract_status(make_study()) is None

    def test_extract_sponsor_class(self):
        assert extract_sponsor_class(make_study(sponsor_class="NIH")) == "NIH"
        assert extract_sponsor_class(make_study()) is None

    def test_extract_countries_one_per_location(self):
        study = make_study(countries=["USA", "USA", "France"])
        assert extract_countries(study) == ["USA", "USA", "France"]

    def test_extract_countries_missing_country_is_unknown(self):
        study = {
            "protocolSection": {
                "contactsLocationsModule": {"locations": [{"city": "Lyon"}]}
            }
        }
        assert extract_countries(study) == ["Unknown"]

    def test_extract_countries_no_locations(self):
        assert extract_countries(make_study()) == []

    def test_extract_phases(self):
        assert extract_phases(make_study(phases=["PHASE1", "PHASE2"])) == [
            "PHASE1",
            "PHASE2",
        ]
        assert extract_phases(make_study()) == []

    def test_empty_document(self):
        assert extract_status({}) is None
        assert extract_countries({}) == []


class TestLabelsFor:
    def test_status_unknown_when_missing(self):
        assert labels_for(make_study(), AnalysisType.COUNT_BY_STATUS) == ["Unknown"]

    def test_sponsor_unknown_when_missing(self):
        assert labels_for(make_study(), AnalysisType.COUNT_BY_SPONSOR_TYPE) == [
            "Unknown"
        ]

    def test_phase_unknown_when_none_listed(self):
        assert labels_for(make_study(phases=[]), AnalysisType.COUNT_BY_PHASE) == [
            "Unknown"
        ]

    def test_country_contributes_nothing_without_locations(self):
        assert labels_for(make_study(), AnalysisType.COUNT_BY_COUNTRY) == []


class TestTally:
    def test_count_by_status(self, sample_studies):
        assert tally(sample_studies, AnalysisType.COUNT_BY_STATUS) == {
            "COMPLETED": 2,
            "RECRUITING": 1,
        }

    def test_count_by_country_multi_location(self, sample_studies):
        assert tally(sample_studies, AnalysisType.COUNT_BY_COUNTRY) == {
            "USA": 2,
            "Canada": 2,
        }

    def test_count_by_sponsor_type(self, sample_studies):
        assert tally(sample_studies, AnalysisType.COUNT_BY_SPONSOR_TYPE) == {
            "INDUSTRY": 2,
            "NIH": 1,
        }

    def test_count_by_phase(self, sample_studies):
        assert tally(sample_studies, AnalysisType.COUNT_BY_PHASE) == {
            "PHASE3": 2,
            "PHASE2": 1,
        }

    def test_multi_phase_study_counts_each_phase(self):
        studies = [make_study(phases=["PHASE1", "PHASE2"]), make_study(phases=[])]
        assert tally(studies, AnalysisType.COUNT_BY_PHASE) == {
            "PHASE1": 1,
            "PHASE2": 1,
            "Unknown": 1,
        }

    def test_repeated_country_not_deduplicated(self):
        studies = [make_study(countries=["USA", "USA"])]
        assert tally(studies, AnalysisType.COUNT_BY_COUNTRY) == {"USA": 2}

    def test_country_sum_may_be_below_study_count(self):
        studies = [make_study(countries=["USA"]), make_study(), make_study()]
        counts = tally(studies, AnalysisType.COUNT_BY_COUNTRY)
        assert counts == {"USA": 1}
        assert sum(counts.values()) < len(studies)

    @pytest.mark.parametrize(
        "kind", [AnalysisType.COUNT_BY_STATUS, AnalysisType.COUNT_BY_SPONSOR_TYPE]
    )
    def test_single_valued_kinds_sum_to_study_count(self, sample_studies, kind):
        studies = sample_studies + [make_study()]
        assert sum(tally(studies, kind).values()) == len(studies)

    def test_empty_input(self):
        assert tally([], AnalysisType.COUNT_BY_STATUS) == {}


class TestAssemble:
    def test_one_result_per_kind_in_request_order(self, sample_studies):
        kinds = [AnalysisType.COUNT_BY_PHASE, AnalysisType.COUNT_BY_STATUS]

        result = assemble(sample_studies, kinds)

        assert [a.analysis_type for a in result.analysis] == kinds
        assert all(a.total_studies == 3 for a in result.analysis)

    def test_empty_study_set(self):
        result = assemble([], [AnalysisType.COUNT_BY_COUNTRY])

        assert len(result.analysis) == 1
        assert result.analysis[0].total_studies == 0
        assert result.analysis[0].results == {}

    def test_wire_shape_is_camel_case(self, sample_studies):
        result = assemble(sample_studies, [AnalysisType.COUNT_BY_STATUS])

        dumped = result.model_dump(mode="json", by_alias=True)

        assert dumped == {
            "analysis": [
                {
                    "analysisType": "countByStatus",
                    "totalStudies": 3,
                    "results": {"COMPLETED": 2, "RECRUITING": 1},
                }
            ]
        }

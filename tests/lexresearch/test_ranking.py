"""Tests for deduplication and composite ranking."""

from datetime import date, timedelta

import pytest

from lexresearch.models import AuthorityLevel, LegalJurisdiction, SemanticSearchOptions, WeightFactors
from lexresearch.tools.ranking import (
    DocumentRanker,
    authority_score,
    composite_score,
    deduplicate,
    jurisdiction_bonus,
    recency_score,
)

from conftest import make_document, make_request

TODAY = date(2025, 6, 1)


class TestDeduplicate:

    def test_case_and_whitespace_insensitive(self):
        first = make_document("a", title="Data Protection Act 2023")
        second = make_document("b", title="  data   protection act 2023 ")

        unique = deduplicate([first, second])

        assert [doc.id for doc in unique] == ["a"]

    def test_same_title_different_jurisdiction_kept(self):
        ng = make_document("a", title="Companies Act", jurisdiction=LegalJurisdiction.NIGERIA)
        ke = make_document("b", title="Companies Act", jurisdiction=LegalJurisdiction.KENYA)

        assert len(deduplicate([ng, ke])) == 2

    def test_first_occurrence_wins_without_merge(self):
        first = make_document("a", title="Act", relevance=0.1)
        second = make_document("b", title="ACT", relevance=0.9)

        unique = deduplicate([first, second])

        assert unique[0].relevance_score == 0.1

    def test_empty(self):
        assert deduplicate([]) == []


class TestScoringFactors:

    def test_recency_today_is_one(self):
        assert recency_score(TODAY, TODAY) == 1.0

    def test_recency_ten_years_is_zero(self):
        assert recency_score(TODAY - timedelta(days=3650), TODAY) == 0.0

    def test_recency_older_clamps_to_zero(self):
        assert recency_score(TODAY - timedelta(days=365 * 30), TODAY) == 0.0

    def test_recency_future_clamps_to_one(self):
        assert recency_score(TODAY + timedelta(days=30), TODAY) == 1.0

    def test_recency_halfway(self):
        assert recency_score(TODAY - timedelta(days=1825), TODAY) == pytest.approx(0.5)

    @pytest.mark.parametrize(
        "level,score",
        [
            (AuthorityLevel.SUPREME_COURT, 1.0),
            (AuthorityLevel.APPELLATE_COURT, 0.8),
            (AuthorityLevel.TRIAL_COURT, 0.6),
            (AuthorityLevel.ADMINISTRATIVE, 0.5),
            (AuthorityLevel.ACADEMIC, 0.4),
            (AuthorityLevel.PRACTITIONER, 0.3),
            (AuthorityLevel.UNKNOWN, 0.2),
        ],
    )
    def test_authority_lookup(self, level, score):
        assert authority_score(level) == score

    def test_jurisdiction_bonus(self):
        requested = [LegalJurisdiction.NIGERIA]
        assert jurisdiction_bonus(LegalJurisdiction.NIGERIA, requested) == 1.0
        assert jurisdiction_bonus(LegalJurisdiction.INTERNATIONAL, requested) == 0.5

    def test_composite_with_default_weights(self):
        doc = make_document("a", relevance=1.0, published=TODAY, authority=AuthorityLevel.SUPREME_COURT)
        assert composite_score(doc, [LegalJurisdiction.NIGERIA], WeightFactors(), TODAY) == pytest.approx(1.0)

    def test_weights_are_normalised(self):
        doc = make_document("a", relevance=0.5, published=TODAY - timedelta(days=3650))
        doubled = WeightFactors(relevance=0.8, recency=0.6, authority=0.4, jurisdiction=0.2)

        assert composite_score(doc, [LegalJurisdiction.NIGERIA], doubled, TODAY) == pytest.approx(
            composite_score(doc, [LegalJurisdiction.NIGERIA], WeightFactors(), TODAY)
        )

    def test_zero_weights_rejected(self):
        with pytest.raises(ValueError):
            WeightFactors(relevance=0, recency=0, authority=0, jurisdiction=0)


class TestDocumentRanker:

    def test_supreme_court_outranks_unknown(self):
        ranker = DocumentRanker(now=TODAY)
        low = make_document("low", authority=AuthorityLevel.UNKNOWN, published=TODAY)
        high = make_document("high", authority=AuthorityLevel.SUPREME_COURT, published=TODAY)

        ranked = ranker.rank([low, high], make_request(), SemanticSearchOptions())

        assert [doc.id for doc in ranked] == ["high", "low"]

    def test_truncates_to_max_results(self):
        ranker = DocumentRanker(now=TODAY)
        documents = [make_document(str(i), relevance=i / 10) for i in range(8)]

        ranked = ranker.rank(documents, make_request(max_results=3), SemanticSearchOptions())

        assert [doc.id for doc in ranked] == ["7", "6", "5"]

    def test_scores_non_increasing(self):
        ranker = DocumentRanker(now=TODAY)
        documents = [
            make_document("a", relevance=0.3, published=TODAY - timedelta(days=800)),
            make_document("b", relevance=0.9, authority=AuthorityLevel.TRIAL_COURT),
            make_document("c", relevance=0.6, jurisdiction=LegalJurisdiction.INTERNATIONAL),
        ]

        scored = ranker.rank_with_scores(documents, make_request(), SemanticSearchOptions())
        scores = [score for _, score in scored]

        assert scores == sorted(scores, reverse=True)
        assert all(0.0 <= s <= 1.0 for s in scores)

    def test_ties_keep_input_order(self):
        ranker = DocumentRanker(now=TODAY)
        documents = [make_document(doc_id, published=TODAY) for doc_id in ("x", "y", "z")]

        ranked = ranker.rank(documents, make_request(), SemanticSearchOptions())

        assert [doc.id for doc in ranked] == ["x", "y", "z"]

# tests/unit/rag/test_retrieve_hierarchical.py
"""Unit tests for two-phase hierarchical retrieval."""

from unittest.mock import MagicMock

import pytest

from health_plan_rag.rag.retrieve_hierarchical import (
    combine_with_weights,
    extract_operators_from_docs,
    filter_by_types,
    normalize_operator_name,
    retrieve_hierarchical,
    retrieve_hierarchical_with_query,
)


@pytest.fixture
def phased_search(make_doc):
    """Vector search mock returning general docs first, then specific docs."""
    general = [
        make_doc("g1", "Comparativo: Amil e SulAmérica lideram em SP", score=0.9, document_type="general"),
        make_doc("p-wrong-phase", "Produto Bradesco", score=0.85, document_type="product"),
        make_doc("legacy", "Documento antigo sem metadados", score=0.5),
    ]
    specific = [
        make_doc("s1", "Plano Amil S450", score=0.8, document_type="product", operator="Amil"),
        make_doc("s2", "Plano Hapvida Mix", score=0.9, document_type="operator", operator="Hapvida"),
        make_doc("g-wrong-phase", "Guia geral", score=0.95, document_type="general"),
    ]
    search = MagicMock()
    search.search = MagicMock(side_effect=[general, specific])
    return search


class TestOperatorExtraction:
    """Tests for operator extraction and normalization."""

    def test_normalize_accent_variants(self):
        """Test spelling and accent variants collapse to one name."""
        assert normalize_operator_name("SulAmérica") == "sulamerica"
        assert normalize_operator_name("Notre Dame") == "notredame"
        assert normalize_operator_name("Intermédica") == "intermedica"
        assert normalize_operator_name("São Cristóvão") == "sao cristovao"
        assert normalize_operator_name("Amil") == "amil"

    def test_extract_from_metadata_and_content(self, make_doc):
        """Test operators come from metadata and known names in the content."""
        docs = [
            make_doc("d1", "Rede credenciada ampla", operator="Unimed"),
            make_doc("d2", "Comparamos NotreDame Intermédica e Amil"),
        ]

        operators = extract_operators_from_docs(docs)

        assert operators == ["unimed", "amil", "notredame", "intermedica"]

    def test_extract_deduplicates(self, make_doc):
        """Test variants of the same operator are reported once."""
        docs = [make_doc("d1", "SulAmérica e sulamerica", operator="SulAmérica")]

        assert extract_operators_from_docs(docs) == ["sulamerica"]

    def test_no_operators(self, make_doc):
        assert extract_operators_from_docs([make_doc("d1", "Texto sem operadora")]) == []


class TestFilterByTypes:
    """Tests for local document type filtering."""

    def test_untyped_documents_always_kept(self, make_doc):
        """Test documents without document_type survive any type filter."""
        docs = [make_doc("a", document_type="product"), make_doc("b"), make_doc("c", document_type="general")]

        result = filter_by_types(docs, ["general"], top_k=5)

        assert [d.id for d in result] == ["b", "c"]

    def test_type_match_is_case_insensitive(self, make_doc):
        docs = [make_doc("a", document_type="Product")]

        assert [d.id for d in filter_by_types(docs, ["operator", "product"], top_k=5)] == ["a"]

    def test_truncates_after_filtering(self, make_doc):
        docs = [make_doc(f"d{i}", document_type="general") for i in range(10)]

        assert len(filter_by_types(docs, ["general"], top_k=3)) == 3


class TestCombineWithWeights:
    """Tests for the weighted combine step."""

    def test_weights_and_operator_boost(self, make_doc):
        """Test general weight, specific weight and the priority operator boost."""
        general = [make_doc("g1", score=1.0, document_type="general")]
        specific = [
            make_doc("s1", score=1.0, document_type="product", operator="Amil"),
            make_doc("s2", score=1.0, document_type="product", operator="Unimed"),
        ]

        combined = combine_with_weights(
            general,
            specific,
            general_weight=0.3,
            specific_weight=0.7,
            priority_operators=["amil"],
            operator_boost=1.2,
        )
        by_id = {d.id: d for d in combined}

        assert by_id["g1"].hierarchical_score == pytest.approx(0.3)
        assert by_id["g1"].hierarchy_level == "general"
        assert by_id["s1"].hierarchical_score == pytest.approx(0.84)
        assert by_id["s1"].operator_prioritized is True
        assert by_id["s2"].hierarchical_score == pytest.approx(0.7)
        assert by_id["s2"].operator_prioritized is False
        assert [d.id for d in combined] == ["s1", "s2", "g1"]

    def test_boost_uses_normalized_operator(self, make_doc):
        """Test an accented operator in metadata matches its normalized priority name."""
        specific = [make_doc("s1", score=1.0, document_type="product", operator="SulAmérica")]

        combined = combine_with_weights(
            [], specific, general_weight=0.3, specific_weight=0.7, priority_operators=["sulamerica"], operator_boost=1.2
        )

        assert combined[0].operator_prioritized is True

    def test_duplicate_keeps_first_inserted_score(self, make_doc):
        """Test a doc found in both phases keeps its general-phase entry even if lower."""
        general = [make_doc("dup", score=0.5)]
        specific = [make_doc("dup", score=0.9, operator="Amil")]

        combined = combine_with_weights(
            general, specific, general_weight=0.3, specific_weight=0.7, priority_operators=["amil"], operator_boost=1.2
        )

        assert len(combined) == 1
        assert combined[0].hierarchy_level == "general"
        assert combined[0].hierarchical_score == pytest.approx(0.15)

    def test_missing_score_counts_as_zero(self, make_doc):
        combined = combine_with_weights(
            [make_doc("g1", score=None)], [], general_weight=0.3, specific_weight=0.7, priority_operators=[], operator_boost=1.2
        )

        assert combined[0].hierarchical_score == 0.0

    def test_sort_is_stable_for_ties(self, make_doc):
        general = [make_doc("a", score=0.5), make_doc("b", score=0.5)]

        combined = combine_with_weights(
            general, [], general_weight=0.3, specific_weight=0.7, priority_operators=[], operator_boost=1.2
        )

        assert [d.id for d in combined] == ["a", "b"]


class TestRetrieveHierarchical:
    """Tests for the full two-phase search."""

    def test_two_phases(self, phased_search, config):
        """Test phase filters, overfetch and the combined ordering."""
        result = retrieve_hierarchical(
            query_embedding=[0.1, 0.2], file_ids=["file-1"], vector_search=phased_search, config=config
        )

        assert phased_search.search.call_count == 2
        first, second = phased_search.search.call_args_list
        assert first.kwargs["document_types"] == ["general"]
        assert first.kwargs["top_k"] == config.general_top_k * config.search_overfetch
        assert second.kwargs["document_types"] == ["operator", "product"]
        assert second.kwargs["top_k"] == config.specific_top_k * config.search_overfetch

        assert [d.id for d in result.general_docs] == ["g1", "legacy"]
        assert [d.id for d in result.specific_docs] == ["s1", "s2"]
        assert result.extracted_operators == ["amil", "sulamerica"]

        by_id = {d.id: d for d in result.documents}
        assert by_id["s1"].operator_prioritized is True
        assert by_id["s2"].operator_prioritized is False
        assert [d.id for d in result.documents] == ["s1", "s2", "g1", "legacy"]
        assert result.metadata.general_docs_count == 2
        assert result.metadata.specific_docs_count == 2
        assert result.metadata.total_docs_count == 4
        assert result.metadata.operators_extracted == 2

    def test_caller_priority_operators(self, make_doc, config):
        """Test operators supplied by the caller are boosted too."""
        search = MagicMock()
        search.search = MagicMock(
            side_effect=[[], [make_doc("s1", score=0.5, document_type="operator", operator="Hapvida")]]
        )

        result = retrieve_hierarchical(
            query_embedding=[0.1],
            file_ids=["file-1"],
            vector_search=search,
            priority_operators=["Hapvida"],
            config=config,
        )

        assert result.documents[0].operator_prioritized is True
        assert result.extracted_operators == []

    def test_phase_error_yields_empty_phase(self, make_doc, config):
        """Test a backend error in one phase does not abort the other."""
        search = MagicMock()
        search.search = MagicMock(
            side_effect=[RuntimeError("db down"), [make_doc("s1", score=0.5, document_type="product")]]
        )

        result = retrieve_hierarchical(query_embedding=[0.1], file_ids=["file-1"], vector_search=search, config=config)

        assert result.general_docs == []
        assert [d.id for d in result.documents] == ["s1"]

    def test_no_file_ids_skips_backend(self, config):
        search = MagicMock()

        result = retrieve_hierarchical(query_embedding=[0.1], file_ids=[], vector_search=search, config=config)

        assert result.documents == []
        search.search.assert_not_called()

    def test_with_query_embeds_first(self, phased_search, config):
        """Test the query string is embedded and the embedding is searched."""
        embedder = MagicMock()
        embedder.embed_query = MagicMock(return_value=[0.3, 0.4])

        result = retrieve_hierarchical_with_query(
            "plano de saúde SP",
            file_ids=["file-1"],
            vector_search=phased_search,
            embedder=embedder,
            config=config,
        )

        embedder.embed_query.assert_called_once_with("plano de saúde SP")
        assert phased_search.search.call_args_list[0].kwargs["query_embedding"] == [0.3, 0.4]
        assert len(result.documents) == 4

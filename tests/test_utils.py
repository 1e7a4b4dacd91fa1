import pytest

from schemas import ChunkFindings, GlossaryTerm, RiskFinding
from utils import (
    chunk_text, extract_json_object, find_balanced_object, merge_chunk_results,
    parse_json_response, strip_code_fences, truncate_text, validate_key_points,
    validate_risks, validate_terms,
)

EMPTY = {"risks": [], "terms": [], "keyPoints": []}


@pytest.mark.parametrize("wrapped", [
    '```json\n{"risks":[]}\n```',
    '```JSON {"risks":[]} ```',
    '```\n{"risks":[]}\n```',
    '  {"risks":[]}  ',
])
def test_code_fences_parse_like_plain_json(wrapped):
    assert parse_json_response(wrapped) == parse_json_response('{"risks":[]}') == {"risks": []}


def test_object_is_extracted_from_prose():
    response = 'Sure! Here is the analysis: {"keyPoints": ["a", "b"]} Let me know if you need more.'
    assert parse_json_response(response) == {"keyPoints": ["a", "b"]}


def test_first_balanced_region_ignores_braces_in_strings():
    response = 'Result: {"terms": [{"term": "a}b", "definition": "x{y"}]} and then {"other": 1}'
    parsed, error = extract_json_object(response)

    assert error == ""
    assert parsed == {"terms": [{"term": "a}b", "definition": "x{y"}]}


def test_find_balanced_object_handles_escapes_and_unbalanced_input():
    assert find_balanced_object('x {"a": "quote \\" }"} y') == '{"a": "quote \\" }"}'
    assert find_balanced_object('{"a": {"b": 1}') is None
    assert find_balanced_object("no braces") is None


@pytest.mark.parametrize("response", [
    "I cannot help with that.",
    '{"risks": [',
    "[1, 2, 3]",
    "42",
    "",
    None,
])
def test_invalid_output_falls_back_to_empty_structure(response):
    parsed, error = extract_json_object(response)
    assert parsed is None
    assert error

    assert parse_json_response(response) == EMPTY


def test_fallback_structure_is_not_shared():
    first = parse_json_response("nope")
    first["risks"].append("x")
    assert parse_json_response("nope") == EMPTY


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'


def test_validate_risks_drops_malformed_items():
    items = [
        {"severity": "high", "clause": "Arbitration", "issue": "Binding", "explanation": "No court"},
        {"severity": "low", "clause": "Notice", "issue": "Short notice"},
        {"severity": "critical", "clause": "X", "issue": "Y"},
        {"severity": "medium", "clause": 3, "issue": "Y"},
        {"severity": "medium", "issue": "No clause"},
        "not a dict",
        None,
    ]
    risks = validate_risks(items)

    assert [r.clause for r in risks] == ["Arbitration", "Notice"]
    assert risks[1].explanation == ""
    assert validate_risks("not a list") == []
    assert validate_risks(None) == []


def test_validate_terms_drops_malformed_items():
    items = [
        {"term": "Indemnify", "definition": "Cover someone's losses"},
        {"term": "Tort"},
        {"term": ["x"], "definition": "y"},
        42,
    ]
    assert validate_terms(items) == [GlossaryTerm(term="Indemnify", definition="Cover someone's losses")]


def test_validate_key_points():
    assert validate_key_points(["One", "  ", 3, None, " Two "]) == ["One", "Two"]
    assert validate_key_points({"a": 1}) == []


def test_truncate_text():
    text = "a" * 10050
    truncated, was_truncated = truncate_text(text, 10000)

    assert was_truncated
    assert truncated == "a" * 10000 + "..."
    assert truncate_text("short", 10000) == ("short", False)


def test_chunk_text_respects_size_and_sentences():
    text = "".join(f"This is sentence number {i}. " for i in range(100))
    chunks = chunk_text(text, chunk_size=200)

    assert len(chunks) > 1
    assert all(len(chunk) <= 200 for chunk in chunks)
    assert all(chunk.endswith(".") for chunk in chunks)
    assert " ".join(chunks).split() == text.split()


def test_chunk_text_small_and_empty_input():
    assert chunk_text("One sentence.", chunk_size=200) == ["One sentence."]
    assert chunk_text("   ") == []
    assert chunk_text("") == []


def test_merge_chunk_results_deduplicates():
    first = ChunkFindings(
        risks=[RiskFinding(severity="high", clause="Arbitration", issue="a")],
        terms=[GlossaryTerm(term="Tort", definition="A wrong")],
        key_points=["Data is shared", "Arbitration applies"],
    )
    second = ChunkFindings(
        risks=[
            RiskFinding(severity="low", clause="Arbitration", issue="duplicate"),
            RiskFinding(severity="medium", clause="Renewal", issue="b"),
        ],
        terms=[GlossaryTerm(term="Tort", definition="Again"), GlossaryTerm(term="Lien", definition="A claim")],
        key_points=["Arbitration applies", "Renews yearly"],
    )

    merged = merge_chunk_results([first, second])

    assert [(r.clause, r.severity) for r in merged.risks] == [("Arbitration", "high"), ("Renewal", "medium")]
    assert [t.term for t in merged.terms] == ["Tort", "Lien"]
    assert merged.key_points == ["Data is shared", "Arbitration applies", "Renews yearly"]
    assert merge_chunk_results([]) == ChunkFindings()


def test_null_explanation_is_kept_as_empty():
    risks = validate_risks([
        {"severity": "medium", "clause": "Renewal", "issue": "Auto renews", "explanation": None},
    ])

    assert [r.clause for r in risks] == ["Renewal"]
    assert risks[0].explanation == ""
    assert RiskFinding(severity="low", clause="c", issue="i", explanation=None).explanation == ""

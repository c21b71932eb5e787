import pytest

from analyzer.schemas import AnalyzeResponse, ContractAnalysis, TokenUsage
from analyzer.storage import get_preference, init_db, load_analysis, load_last_analysis, save_analysis, set_preference


@pytest.fixture
def db(tmp_path):
    path = str(tmp_path / "test.db")
    init_db(path)
    return path


def make_response(payload):
    return AnalyzeResponse(
        analysis=ContractAnalysis.model_validate(payload),
        processing_time_ms=1234,
        tokens_used=TokenUsage(input=10, output=5, total=15),
        model_used="gpt-4o-mini",
        estimated_cost=0.0001,
    )


def test_save_and_load_analysis(db, analysis_payload):
    response = make_response(analysis_payload)
    save_analysis("abc", "contract text", response, db_path=db)

    text, analysis = load_analysis("abc", db_path=db)
    assert text == "contract text"
    assert analysis == response.analysis


def test_load_missing_analysis(db):
    assert load_analysis("nope", db_path=db) is None
    assert load_last_analysis(db_path=db) is None


def test_last_analysis_is_most_recent(db, analysis_payload):
    save_analysis("first", "one", make_response(analysis_payload), db_path=db)
    save_analysis("second", "two", make_response(analysis_payload), db_path=db)

    contract_id, text, _ = load_last_analysis(db_path=db)
    assert (contract_id, text) == ("second", "two")


def test_preferences(db):
    assert get_preference("preferred_model", "gpt-4o-mini", db_path=db) == "gpt-4o-mini"
    set_preference("preferred_model", "gpt-4o", db_path=db)
    set_preference("preferred_model", "gpt-4-turbo", db_path=db)
    assert get_preference("preferred_model", db_path=db) == "gpt-4-turbo"

import pytest

from sightguard.analysis.score_extractor import extract_advanced, extract_scores


def full_response():
    return {
        "status": "success",
        "media": {"id": "med_1", "uri": "https://cdn.example/cat.png"},
        "nudity": {
            "sexual_activity": 0.1,
            "sexual_display": 0.7,
            "erotica": 0.3,
            "very_suggestive": 0.3,
            "suggestive": 0.6,
            "mildly_suggestive": 0.9,
            "none": 0.05,
            "context": {"sea_lake_pool": 0.2},
        },
        "offensive": {"nazi": 0.05, "confederate": 0.4, "supremacist": 0.01},
        "type": {"ai_generated": 0.8},
    }


def test_extract_scores_aggregates_categories():
    scores = extract_scores(full_response())

    assert scores.nudity_explicit == pytest.approx(0.7)
    assert scores.nudity_suggestive == pytest.approx(0.6)
    assert scores.offensive == pytest.approx(0.4)
    assert scores.ai_generated == pytest.approx(0.8)
    assert scores.media_uri == "https://cdn.example/cat.png"


def test_suggestive_mean_uses_fixed_divisor():
    scores = extract_scores({"nudity": {"suggestive": 0.9}})

    assert scores.nudity_suggestive == pytest.approx(0.3)
    assert scores.nudity_explicit == 0.0


@pytest.mark.parametrize("document", [{}, None, [], "oops", 42, {"nudity": "bad", "type": [1, 2]}])
def test_malformed_documents_yield_zero_scores(document):
    scores = extract_scores(document)

    assert scores.nudity_explicit == 0.0
    assert scores.nudity_suggestive == 0.0
    assert scores.offensive == 0.0
    assert scores.ai_generated == 0.0
    assert scores.media_uri == ""


def test_non_numeric_fields_read_as_zero():
    scores = extract_scores(
        {
            "nudity": {"sexual_activity": "0.9", "erotica": True, "sexual_display": None},
            "type": {"ai_generated": False},
        }
    )

    assert scores.nudity_explicit == 0.0
    assert scores.ai_generated == 0.0


def test_max_aggregation_floors_at_zero():
    scores = extract_scores({"nudity": {"sexual_activity": -0.5}, "offensive": {"nazi": -1}})

    assert scores.nudity_explicit == 0.0
    assert scores.offensive == 0.0


def test_integer_scores_are_accepted():
    scores = extract_scores({"offensive": {"terrorist": 1}})

    assert scores.offensive == 1.0


def test_extract_advanced_keeps_numeric_leaves_only():
    advanced = extract_advanced(full_response())

    assert set(advanced.categories) == {"nudity", "offensive", "type"}
    assert "context" not in advanced.categories["nudity"]
    assert advanced.categories["nudity"]["none"] == pytest.approx(0.05)
    assert advanced.categories["offensive"] == {"nazi": 0.05, "confederate": 0.4, "supremacist": 0.01}
    assert advanced.media_uri == "https://cdn.example/cat.png"


def test_extract_advanced_omits_empty_categories():
    advanced = extract_advanced({"nudity": {"context": {"x": 0.1}}, "type": {"ai_generated": 0.2}})

    assert advanced.categories == {"type": {"ai_generated": 0.2}}


def test_extract_advanced_of_garbage_is_empty():
    advanced = extract_advanced("not json")

    assert advanced.categories == {}
    assert advanced.media_uri == ""

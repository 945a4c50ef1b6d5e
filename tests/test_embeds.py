from datetime import datetime, timezone

from sightguard.configuration.app_configuration import app_config
from sightguard.datatypes.analysis_datatypes import AdvancedAnalysis, Analysis, ReasonTag, Scores
from sightguard.datatypes.threshold_datatypes import ThresholdChange, Thresholds
from sightguard.ui import embeds


def make_change(i, actor_id="42"):
    return ThresholdChange(
        name="Offensive",
        old_value=None if i == 0 else i / 100,
        new_value=(i + 1) / 100,
        actor_id=actor_id,
        tenant_id="guild-1",
        timestamp=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


def test_analysis_embed_shows_verdict_and_scores():
    analysis = Analysis(
        allowed=False,
        reasons=[ReasonTag.NUDITY_EXPLICIT, ReasonTag.AI_GENERATED_HIGH],
        scores=Scores(nudity_explicit=0.42, ai_generated=0.9),
    )

    embed = embeds.build_analysis_embed("https://img.example/a.png", analysis)

    fields = {field.name: field.value for field in embed.fields}
    assert fields["Safe Image"] == "false"
    assert fields["Flagged For"] == "nudity_explicit, ai_generated_high"
    assert "Nudity (Explicit): 42%" in fields["Results"]
    assert "AI Generated: 90%" in fields["Results"]
    assert embed.footer.text == app_config.footer_text


def test_allowed_analysis_has_no_flag_field():
    embed = embeds.build_analysis_embed("u", Analysis(allowed=True, reasons=[], scores=Scores()))

    assert [field.name for field in embed.fields] == ["Safe Image", "Results"]


def test_advanced_embed_without_scores():
    embed = embeds.build_advanced_embed("u", AdvancedAnalysis())

    assert embed.fields[0].value == "No scores returned."


def test_thresholds_embed_lists_all_four():
    embed = embeds.build_thresholds_embed(Thresholds.defaults(), "this server")

    assert [field.value for field in embed.fields] == ["25%", "75%", "25%", "60%"]


def test_history_embed_marks_unknown_actor_and_unset_value():
    embed = embeds.build_history_embed([make_change(0, actor_id=None)], "this server")

    value = embed.fields[0].value
    assert "unset" in value
    assert "unknown" in value
    assert "1%" in value


def test_history_embed_splits_long_output():
    embed = embeds.build_history_embed([make_change(i) for i in range(100)], "this server")

    assert len(embed.fields) > 1
    assert all(len(field.value) <= embeds.MAX_FIELD_LENGTH for field in embed.fields)


def test_empty_history_embed():
    embed = embeds.build_history_embed([], "this server")

    assert embed.fields[0].value == "No threshold changes recorded."

"""Violation Enricher -- field fallbacks, defaults, WCAG filtering, totality."""

from conftest import raw_violation

from allycheck.audit.enricher import enrich_violations, extract_wcag_tags, normalize_impact


class TestFieldNormalization:
    """Raw scanner records map onto the canonical violation shape."""

    def test_axe_record_maps_directly(self):
        [v] = enrich_violations([raw_violation("image-alt", "critical")])
        assert v.id == "image-alt"
        assert v.impact == "critical"
        assert v.description == "image-alt description"
        assert v.nodes == [{"html": "<img src='x.png'>", "target": ["img"]}]
        assert v.position == 0

    def test_alternate_field_names(self):
        [v] = enrich_violations(
            [{"ruleId": "label", "severity": "serious", "help": "Form elements need labels", "targets": ["#q"]}]
        )
        assert v.id == "label"
        assert v.impact == "serious"
        assert v.description == "Form elements need labels"
        assert v.nodes == ["#q"]

    def test_primary_field_wins_over_fallback(self):
        [v] = enrich_violations([{"id": "a", "ruleId": "b", "impact": "minor", "severity": "critical"}])
        assert v.id == "a"
        assert v.impact == "minor"

    def test_missing_impact_defaults_to_moderate(self):
        [v] = enrich_violations([{"id": "region"}])
        assert v.impact == "moderate"
        assert v.nodes == []
        assert v.wcag == []

    def test_unknown_impact_defaults_to_moderate(self):
        assert normalize_impact("catastrophic") == "moderate"
        assert normalize_impact(" Critical ") == "critical"

    def test_missing_id_gets_positional_id(self):
        enriched = enrich_violations([{"id": "ok"}, {"impact": "minor"}])
        assert enriched[1].id == "violation-1"

    def test_raw_record_is_kept(self):
        record = raw_violation("image-alt", extra_field="kept")
        [v] = enrich_violations([record])
        assert v.raw is record


class TestWcagTags:
    """Only tags starting with 'wcag' (any case) are kept."""

    def test_filters_non_wcag_tags(self):
        assert extract_wcag_tags(["wcag2a", "cat.text", "section508", "WCAG412"]) == ["wcag2a", "WCAG412"]

    def test_keeps_order_and_drops_duplicates(self):
        assert extract_wcag_tags(["wcag111", "wcag2a", "wcag111"]) == ["wcag111", "wcag2a"]

    def test_ignores_non_string_tags(self):
        assert extract_wcag_tags([None, 3, "wcag2aa"]) == ["wcag2aa"]


class TestTotality:
    """The enricher never fails the batch."""

    def test_output_length_and_order_match_input(self, sample_violations):
        enriched = enrich_violations(sample_violations)
        assert [v.id for v in enriched] == ["image-alt", "region", "label"]
        assert [v.position for v in enriched] == [0, 1, 2]

    def test_malformed_items_degrade_to_minimal(self):
        enriched = enrich_violations(["not a record", None, 42, {"id": "fine"}])
        assert len(enriched) == 4
        assert [v.id for v in enriched] == ["violation-0", "violation-1", "violation-2", "fine"]
        assert enriched[0].raw == "not a record"
        assert enriched[0].impact == "moderate"

    def test_empty_and_none_inputs(self):
        assert enrich_violations([]) == []
        assert enrich_violations(None) == []

    def test_nested_values_are_not_used_as_text(self):
        [v] = enrich_violations([{"id": {"nested": True}, "ruleId": "color-contrast"}])
        assert v.id == "color-contrast"

"""Tests for the scoring engine and the built-in checks."""

import math

import pytest

from sbomqs._licenses import License, LicenseSource, lookup_expression
from sbomqs._scoring import (
    Category,
    Check,
    CheckRegistry,
    Outcome,
    ScoreFilter,
    create_default_registry,
    normalize_feature,
    score_document,
)
from sbomqs._scoring.checks import bsi, ntia, quality, semantic, sharing, structural
from sbomqs.models import (
    Author,
    Checksum,
    Component,
    FileFormat,
    Party,
    PrimaryComponent,
    Relationship,
    Signature,
    Spec,
    SpecType,
    Tool,
    Vulnerability,
)
from sbomqs.sbom import parse_sbom


def _spec(**overrides):
    values = {"spec_type": SpecType.CYCLONEDX, "version": "1.6", "file_format": FileFormat.JSON}
    values.update(overrides)
    return Spec(**values)


# =============================================================================
# Engine
# =============================================================================


class TestOutcome:
    def test_ratio(self):
        outcome = Outcome.ratio(2, 4, "have names")
        assert outcome.score == 5.0
        assert outcome.description == "2/4 have names"
        assert not outcome.ignored

    def test_ratio_without_total_is_ignored(self):
        outcome = Outcome.ratio(0, 0, "have names")
        assert outcome.score == 0.0
        assert outcome.ignored


class TestCheckRegistry:
    def _registry(self, *checks):
        registry = CheckRegistry()
        for check in checks:
            registry.register(check)
        return registry

    def test_duplicate_registration(self):
        check = Check(Category.NTIA, "comp_with_name", "names", ntia.comp_with_name)
        registry = self._registry(check)
        with pytest.raises(ValueError):
            registry.register(check)

    def test_same_key_in_other_category(self):
        registry = self._registry(
            Check(Category.NTIA, "comp_with_name", "names", ntia.comp_with_name),
            Check(Category.BSI_V1_1, "comp_with_name", "names", ntia.comp_with_name),
        )
        assert len(registry.checks) == 2
        assert registry.get("comp_with_name", Category.BSI_V1_1).category == Category.BSI_V1_1
        assert registry.get("comp_with_name").category == Category.NTIA

    def test_raising_check_is_isolated(self, make_document):
        def boom(doc):
            raise RuntimeError("boom")

        registry = self._registry(
            Check(Category.NTIA, "broken", "raises", boom),
            Check(Category.NTIA, "comp_with_name", "names", ntia.comp_with_name),
        )
        scores = score_document(make_document(["a", "b"]), registry=registry)
        assert scores.count == 2
        broken, names = scores.results
        assert broken.error == "boom"
        assert broken.ignored
        assert names.score == 10.0
        assert scores.avg_score == 10.0
        assert scores.errors == [broken]

    def test_list_checks(self):
        registry = self._registry(
            Check(Category.SHARING, "sbom_sharable", "Doc shareable license", sharing.sbom_sharable)
        )
        assert registry.list_checks() == [
            {"category": "Sharing", "feature": "sbom_sharable", "description": "Doc shareable license"}
        ]


class TestDefaultRegistry:
    def test_categories_in_report_order(self):
        assert create_default_registry().categories == list(Category)

    def test_bsi_repeats_ntia_keys(self):
        registry = create_default_registry()
        keys = {c.qualified_key for c in registry.checks}
        assert "NTIA-minimum-elements:comp_with_name" in keys
        assert "bsi-v1.1:comp_with_name" in keys
        assert "bsi-v2.0:comp_with_name" in keys


class TestScoreFilter:
    def test_empty_selects_all(self):
        registry = create_default_registry()
        assert ScoreFilter().mode == "all"
        assert len(registry.select(ScoreFilter())) == len(registry.checks)

    def test_category_is_case_insensitive(self):
        selected = create_default_registry().select(ScoreFilter.create(categories=["ntia-MINIMUM-elements"]))
        assert {c.category for c in selected} == {Category.NTIA}
        assert len(selected) == 7

    def test_feature_wins_over_category(self):
        score_filter = ScoreFilter.create(categories=["Structural"], features=["comp_with_name"])
        assert score_filter.mode == "feature"
        selected = create_default_registry().select(score_filter)
        assert {c.key for c in selected} == {"comp_with_name"}
        assert {c.category for c in selected} == {Category.NTIA, Category.BSI_V1_1, Category.BSI_V2_0}

    def test_qualified_feature(self):
        selected = create_default_registry().select(ScoreFilter.create(features=["bsi-v2.0:comp_with_name"]))
        assert [c.qualified_key for c in selected] == ["bsi-v2.0:comp_with_name"]

    def test_comma_separated_and_legacy_alias(self):
        score_filter = ScoreFilter.create(features=["comp-name,doc-license"])
        assert score_filter.features == frozenset({"comp_with_name", "sbom_sharable"})

    def test_normalize_feature(self):
        assert normalize_feature(" spec-parsable ") == "sbom_parsable"
        assert normalize_feature("comp_with_name") == "comp_with_name"

    def test_no_match_warns(self, caplog):
        registry = create_default_registry()
        with caplog.at_level("WARNING", logger="sbomqs"):
            assert registry.select(ScoreFilter.create(features=["no_such_check"])) == []
        assert "No checks matched" in caplog.text


class TestScores:
    def test_no_components_never_nan(self, make_document):
        scores = score_document(make_document([]), ScoreFilter.create(categories=["NTIA-minimum-elements"]))
        assert not math.isnan(scores.avg_score)
        by_key = {r.feature: r for r in scores.results}
        assert by_key["comp_with_name"].ignored
        assert by_key["comp_with_name"].score == 0.0

    def test_all_ignored_averages_zero(self, make_document):
        scores = score_document(make_document([]), ScoreFilter.create(features=["comp_with_name", "comp_with_version"]))
        assert scores.avg_score == 0.0

    def test_category_scores(self, make_document):
        doc = make_document(["a", ""])
        scores = score_document(doc, ScoreFilter.create(features=["NTIA-minimum-elements:comp_with_name", "sbom_spec"]))
        assert scores.category_scores() == {"Structural": 10.0, "NTIA-minimum-elements": 5.0}

    def test_to_dict(self, make_document):
        scores = score_document(make_document(["a"]), ScoreFilter.create(features=["sbom_spec"]))
        data = scores.to_dict()
        assert data["count"] == 1
        assert data["average_score"] == 10.0
        assert data["scores"][0]["feature"] == "sbom_spec"
        assert data["scores"][0]["max_score"] == 10.0


# =============================================================================
# Checks
# =============================================================================


class TestNtiaChecks:
    def test_comp_with_name(self, make_document):
        outcome = ntia.comp_with_name(make_document(["a", "", "  ", "d"]))
        assert outcome.score == 5.0
        assert not outcome.ignored

    def test_comp_with_supplier(self, make_document):
        doc = make_document([Component(id="a", supplier=Party(name="Acme")), Component(id="b")])
        assert ntia.comp_with_supplier(doc).score == 5.0

    def test_uniq_ids(self, make_document):
        doc = make_document(
            [
                Component(id="a", purls=("pkg:npm/a@1",)),
                Component(id="b", purls=("pkg:npm/a@1",)),
                Component(id="c", cpes=("cpe:2.3:a:x:c:1:*:*:*:*:*:*:*",)),
                Component(id="d"),
            ]
        )
        assert ntia.comp_with_uniq_ids(doc).score == 5.0

    def test_authors_counts_tools(self, make_document):
        assert ntia.sbom_authors(make_document(tools=(Tool("syft", "1.0"),))).score == 10.0
        assert ntia.sbom_authors(make_document(authors=(Author(),))).score == 0.0

    def test_dependencies(self, make_document):
        doc = make_document(relationships=(Relationship("a", "b", "depends_on"),))
        assert ntia.sbom_dependencies(doc).description == "doc has 1 relationships"

    def test_timestamp(self, make_document):
        doc = make_document(spec=_spec(creation_timestamp="2024-01-01T00:00:00Z"))
        assert ntia.sbom_creation_timestamp(doc).score == 10.0
        assert ntia.sbom_creation_timestamp(make_document()).score == 0.0


class TestStructuralChecks:
    def test_supported_spec(self, make_document):
        doc = make_document()
        assert structural.sbom_spec(doc).score == 10.0
        assert structural.sbom_spec_version(doc).score == 10.0
        assert structural.sbom_spec_file_format(doc).score == 10.0

    def test_unsupported_version_and_format(self, make_document):
        doc = make_document(spec=_spec(version="0.9", file_format=FileFormat.TAG_VALUE))
        assert structural.sbom_spec_version(doc).score == 0.0
        assert structural.sbom_spec_file_format(doc).score == 0.0

    def test_schema_validity(self, make_document):
        assert structural.sbom_schema_valid(make_document()).ignored
        assert structural.sbom_schema_valid(make_document(schema_valid=False)).score == 0.0
        assert structural.sbom_schema_valid(make_document(schema_valid=True)).score == 10.0


class TestSemanticChecks:
    def test_required_fields_blend(self, make_document):
        doc = make_document(
            [Component(id="a", required_fields=True), Component(id="b")],
            spec=_spec(required_fields=True),
        )
        outcome = semantic.sbom_required_fields(doc)
        assert outcome.score == 7.5
        assert outcome.description == "Doc Fields:true Pkg Fields:false"

    def test_required_fields_incomplete_doc(self, make_document):
        doc = make_document([Component(id="a", required_fields=True)])
        assert semantic.sbom_required_fields(doc).score == 0.0

    def test_checksums(self, make_document):
        doc = make_document([Component(id="a", checksums=(Checksum("SHA-1", "x"),)), Component(id="b")])
        assert semantic.comp_with_checksums(doc).score == 5.0


class TestQualityChecks:
    def test_valid_licenses_average_share(self, make_document):
        doc = make_document(
            [
                Component(id="a", licenses=tuple(lookup_expression("MIT"))),
                Component(id="b", licenses=tuple(lookup_expression("MIT AND LicenseRef-custom"))),
            ]
        )
        assert quality.comp_valid_licenses(doc).score == pytest.approx(7.5)

    def test_deprecated_and_restrictive(self, make_document):
        doc = make_document(
            [
                Component(id="a", licenses=tuple(lookup_expression("GPL-2.0"))),
                Component(id="b", licenses=tuple(lookup_expression("MIT"))),
            ]
        )
        assert quality.comp_with_deprecated_licenses(doc).score == 5.0
        assert quality.comp_with_restrictive_licenses(doc).score == 5.0

    def test_restrictive_flag(self, make_document):
        restrictive = License("Custom-Copyleft", "Custom-Copyleft", LicenseSource.SPDX, restrictive=True)
        doc = make_document([Component(id="a", licenses=(restrictive,))])
        assert quality.comp_with_restrictive_licenses(doc).score == 0.0
        assert quality.comp_with_deprecated_licenses(doc).score == 10.0

    def test_no_licenses_at_all(self, make_document):
        outcome = quality.comp_with_deprecated_licenses(make_document(["a"]))
        assert outcome.score == 0.0
        assert outcome.description == "no licenses found"

    def test_primary_purpose_vocabulary(self, make_document):
        doc = make_document(
            [Component(id="a", primary_purpose="library"), Component(id="b", primary_purpose="install")]
        )
        assert quality.comp_with_primary_purpose(doc).score == 5.0

    def test_lookup_ids(self, make_document):
        doc = make_document(
            [
                Component(id="a", purls=("pkg:npm/a@1",), cpes=("cpe:2.3:a:x:a:1:*:*:*:*:*:*:*",)),
                Component(id="b", purls=("pkg:npm/b@1",)),
            ]
        )
        assert quality.comp_with_any_vuln_lookup_id(doc).score == 10.0
        assert quality.comp_with_multi_vuln_lookup_id(doc).score == 5.0

    def test_creator_and_version(self, make_document):
        doc = make_document(tools=(Tool("syft", "1.0"), Tool("custom")))
        assert quality.sbom_with_creator_and_version(doc).score == 5.0

    def test_primary_component(self, make_document):
        doc = make_document(primary_component=PrimaryComponent(present=True))
        assert quality.sbom_with_primary_component(doc).score == 10.0
        assert quality.sbom_with_primary_component(make_document()).score == 0.0


class TestSharingCheck:
    def test_cc0_is_sharable(self, make_document):
        doc = make_document(spec=_spec(licenses=tuple(lookup_expression("CC0-1.0"))))
        assert sharing.sbom_sharable(doc).score == 10.0

    def test_no_license(self, make_document):
        assert sharing.sbom_sharable(make_document()).score == 0.0


class TestBsiChecks:
    def test_spec_version_compliance(self, make_document):
        check_v11 = bsi._spec_with_version_compliant(Category.BSI_V1_1)
        check_v20 = bsi._spec_with_version_compliant(Category.BSI_V2_0)
        doc = make_document(spec=_spec(version="1.4"))
        assert check_v11(doc).score == 10.0
        assert check_v20(doc).score == 5.0
        assert check_v11(make_document(spec=_spec(spec_type=SpecType.UNKNOWN))).score == 0.0

    def test_spdx_skips_source_code_uri(self, make_document):
        doc = make_document(["a"], spec=_spec(spec_type=SpecType.SPDX, version="SPDX-2.3"))
        assert bsi.comp_with_source_code_uri(doc).ignored
        assert bsi.sbom_with_vuln(doc).score == 10.0

    def test_vulnerabilities_lower_the_score(self, make_document):
        doc = make_document(vulnerabilities=(Vulnerability("CVE-2024-0001"),))
        outcome = bsi.sbom_with_vuln(doc)
        assert outcome.score == 0.0
        assert "CVE-2024-0001" in outcome.description

    def test_build_lifecycle(self, make_document):
        assert bsi.sbom_build_process(make_document(lifecycles=("build",))).score == 10.0
        assert bsi.sbom_build_process(make_document(lifecycles=("design",))).score == 0.0

    def test_signature_states(self, make_document):
        assert bsi.sbom_with_signature(make_document()).ignored
        no_key = make_document(signature=Signature(algorithm="RS256", value="abc"))
        assert bsi.sbom_with_signature(no_key).score == 0.0

    def test_sha256(self, make_document):
        doc = make_document(
            [
                Component(id="a", checksums=(Checksum("SHA256", "x"),)),
                Component(id="b", checksums=(Checksum("MD5", "y"),)),
            ]
        )
        assert bsi.comp_with_sha256(doc).score == 5.0

    def test_bomlinks(self, make_document):
        doc = make_document(spec=_spec(external_doc_refs=("urn:cdx:abc/1",)))
        assert bsi.sbom_with_bomlinks(doc).score == 10.0


class TestFixtureScores:
    def test_cyclonedx_fixture(self, read_fixture):
        doc = parse_sbom(read_fixture("cdx-1.6-app.json"), validate=False)
        scores = score_document(doc)
        by_key = {(r.category, r.feature): r for r in scores.results}
        assert by_key[("NTIA-minimum-elements", "comp_with_name")].score == 10.0
        assert by_key[("Structural", "sbom_spec")].score == 10.0
        assert by_key[("bsi-v2.0", "sbom_with_vuln")].score == 0.0
        assert 0.0 < scores.avg_score <= 10.0

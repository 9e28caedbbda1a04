"""Tests for SCVS maturity level scoring."""

import unittest

from sbomqs._licenses import lookup_expression
from sbomqs._scvs import LEVELS, SCVS_FEATURES, score_scvs
from sbomqs._scvs import features as f
from sbomqs.models import (
    Checksum,
    Component,
    Document,
    FileFormat,
    PrimaryComponent,
    Signature,
    Spec,
    SpecType,
    Tool,
)


def _doc(components=(), **kwargs):
    spec = kwargs.pop(
        "spec",
        Spec(
            spec_type=SpecType.CYCLONEDX,
            version="1.6",
            file_format=FileFormat.JSON,
            namespace="urn:uuid:1",
            creation_timestamp="2024-01-01T00:00:00Z",
        ),
    )
    return Document(spec=spec, components=tuple(components), **kwargs)


def _complete_component(name):
    return Component(
        id=name,
        name=name,
        purls=(f"pkg:npm/{name}@1.0.0",),
        licenses=tuple(lookup_expression("MIT")),
        checksums=(Checksum("SHA-256", "abc"),),
        copyright="Copyright Acme",
    )


class TestFeatureTable(unittest.TestCase):
    def test_keys_unique(self):
        keys = [feature.key for feature in SCVS_FEATURES]
        self.assertEqual(len(keys), len(set(keys)))

    def test_every_feature_required_by_l3(self):
        self.assertTrue(all(feature.levels[2] for feature in SCVS_FEATURES))


class TestPredicates(unittest.TestCase):
    def test_machine_readable(self):
        self.assertTrue(f.is_machine_readable(_doc()))
        unknown = Spec(spec_type=SpecType.UNKNOWN, version="", file_format=FileFormat.UNKNOWN)
        self.assertFalse(f.is_machine_readable(_doc(spec=unknown)))

    def test_creation_automated_needs_tool_version(self):
        self.assertTrue(f.is_creation_automated(_doc(tools=(Tool("syft", "1.0"),))))
        self.assertFalse(f.is_creation_automated(_doc(tools=(Tool("syft"),))))

    def test_signature_predicates_without_key(self):
        doc = _doc(signature=Signature(algorithm="RS256", value="abc"))
        self.assertTrue(f.has_signature(doc))
        self.assertFalse(f.is_signature_correct(doc))
        self.assertFalse(f.is_signature_verified(doc))

    def test_component_predicates_need_components(self):
        doc = _doc()
        self.assertFalse(f.components_have_identity(doc))
        self.assertFalse(f.components_have_licenses(doc))
        self.assertFalse(f.components_have_hash(doc))

    def test_verified_licenses_reject_custom(self):
        comp = Component(id="a", licenses=tuple(lookup_expression("LicenseRef-acme")))
        self.assertTrue(f.components_have_licenses(_doc([comp])))
        self.assertFalse(f.components_have_verified_licenses(_doc([comp])))

    def test_copyright_no_assertion(self):
        self.assertFalse(f.components_have_copyright(_doc([Component(id="a", copyright="NOASSERTION")])))

    def test_unexpressible_features_fail(self):
        doc = _doc([_complete_component("a")])
        self.assertFalse(f.is_analyzed_for_risk(doc))
        self.assertFalse(f.has_test_inventory(doc))
        self.assertFalse(f.components_have_modifications(doc))


class TestScoreScvs(unittest.TestCase):
    def test_levels_fail_on_unexpressible_features(self):
        doc = _doc(
            [_complete_component("a"), _complete_component("b")],
            tools=(Tool("syft", "1.0"),),
            primary_component=PrimaryComponent(present=True, id="a", dependency_count=1, dependencies=("b",)),
        )
        scores = score_scvs(doc)
        self.assertEqual(scores.count, len(SCVS_FEATURES))
        by_key = {r.feature: r for r in scores.results}

        self.assertTrue(by_key["comp_hash"].passed)
        self.assertIsNone(by_key["comp_hash"].l1)
        self.assertTrue(by_key["comp_hash"].l3)
        self.assertFalse(by_key["sbom_risk_analysis"].l1)
        # risk analysis is required at every level
        self.assertFalse(any(scores.level_passed(name) for name in LEVELS))

    def test_level_summary(self):
        summary = score_scvs(_doc()).level_summary()
        self.assertEqual(set(summary), set(LEVELS))
        passed, required = summary["l3"]
        self.assertEqual(required, len(SCVS_FEATURES))
        self.assertLess(passed, required)

    def test_to_dict(self):
        data = score_scvs(_doc()).to_dict()
        self.assertEqual(data["levels"], {"l1": False, "l2": False, "l3": False})
        first = data["scores"][0]
        self.assertEqual(first["feature"], "sbom_machine_readable")
        self.assertEqual((first["l1"], first["l2"], first["l3"]), (True, True, True))

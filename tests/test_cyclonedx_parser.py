"""Tests for the CycloneDX JSON and XML parsers."""

import pytest

from sbomqs._licenses import LicenseSource
from sbomqs._parsers import build_cyclonedx_document
from sbomqs._parsers.cyclonedx import component_identity
from sbomqs._parsers.cyclonedx_xml import xml_to_dict
from sbomqs.exceptions import SBOMParseError
from sbomqs.models import FileFormat, RelationshipType, SpecType
from sbomqs.sbom import parse_sbom


def _ids(licenses):
    return sorted(lic.short_id for lic in licenses)


@pytest.fixture
def cdx16(read_fixture):
    return parse_sbom(read_fixture("cdx-1.6-app.json"), validate=False)


class TestCycloneDX16:
    def test_spec(self, cdx16):
        spec = cdx16.spec
        assert spec.spec_type == SpecType.CYCLONEDX
        assert spec.version == "1.6"
        assert spec.file_format == FileFormat.JSON
        assert spec.namespace == "urn:uuid:3e671687-395b-41f5-a30f-a58921a69b79"
        assert spec.uri == "urn:uuid:3e671687-395b-41f5-a30f-a58921a69b79/1"
        assert spec.creation_timestamp == "2024-05-01T10:00:00Z"
        assert spec.organization == "Acme Corp"
        assert spec.required_fields

    def test_duplicate_bom_ref_is_listed_once_but_its_children_are_walked(self, cdx16):
        names = [c.name for c in cdx16.components]
        assert names == ["acme-app", "lodash", "express", "qs", "ghost"]
        assert cdx16.component_by_id("pkg:npm/ghost@0.0.1").name == "ghost"

    def test_primary_component(self, cdx16):
        primary = cdx16.primary_component
        assert primary.present
        assert primary.id == "pkg:npm/acme-app@1.0.0"
        assert primary.dependency_count == 2
        app = cdx16.component_by_id("pkg:npm/acme-app@1.0.0")
        assert app.is_primary
        assert not cdx16.component_by_id("pkg:npm/qs@6.11.0").is_primary

    def test_dependencies(self, cdx16):
        assert len(cdx16.relationships) == 3
        assert all(r.rel_type == RelationshipType.DEPENDS_ON for r in cdx16.relationships)
        express = cdx16.component_by_id("pkg:npm/express@4.19.2")
        assert express.dependencies == ("pkg:npm/qs@6.11.0",)
        assert express.has_relationships
        assert cdx16.dependencies_of("pkg:npm/acme-app@1.0.0") == (
            "pkg:npm/lodash@4.17.21",
            "pkg:npm/express@4.19.2",
        )
        assert cdx16.dependencies_of("pkg:npm/qs@6.11.0") == ()

    def test_acknowledgement_defaults_to_declared_from_1_6(self, cdx16):
        lodash = cdx16.component_by_id("pkg:npm/lodash@4.17.21")
        assert _ids(lodash.declared_licenses) == ["MIT"]
        assert lodash.concluded_licenses == ()

    def test_explicit_acknowledgement(self, cdx16):
        express = cdx16.component_by_id("pkg:npm/express@4.19.2")
        assert _ids(express.concluded_licenses) == ["Apache-2.0", "MIT"]
        assert express.declared_licenses == ()
        assert _ids(express.licenses) == ["Apache-2.0", "MIT"]

    def test_component_fields(self, cdx16):
        lodash = cdx16.component_by_id("pkg:npm/lodash@4.17.21")
        assert lodash.purls == ("pkg:npm/lodash@4.17.21",)
        assert lodash.cpes == ("cpe:2.3:a:lodash:lodash:4.17.21:*:*:*:*:*:*:*",)
        assert lodash.checksums[0].algorithm == "SHA-256"
        assert lodash.supplier.name == "OpenJS Foundation"
        assert lodash.source_code_url == "https://github.com/lodash/lodash"
        assert lodash.download_location.endswith("lodash-4.17.21.tgz")
        assert lodash.primary_purpose == "library"
        assert lodash.required_fields

    def test_document_metadata(self, cdx16):
        assert [t.name for t in cdx16.tools] == ["cdxgen"]
        assert cdx16.tools[0].version == "10.5.2"
        assert cdx16.authors[0].email == "jane@acme.example"
        assert cdx16.lifecycles == ("build",)
        assert [v.id for v in cdx16.vulnerabilities] == ["CVE-2024-29041"]
        assert cdx16.signature is None


class TestCycloneDX14:
    @pytest.fixture
    def doc(self, read_fixture):
        return parse_sbom(read_fixture("cdx-1.4-legacy.json"), validate=False)

    def test_license_without_acknowledgement_is_concluded_before_1_6(self, doc):
        requests_comp = doc.component_by_id("pkg:pypi/requests@2.31.0")
        assert _ids(requests_comp.concluded_licenses) == ["GPL-2.0"]
        assert requests_comp.declared_licenses == ()

    def test_legacy_tools(self, doc):
        assert [(t.name, t.version) for t in doc.tools] == [("syft", "0.85.0")]

    def test_identity_falls_back_to_purl(self, doc):
        unnamed = doc.components[-1]
        assert unnamed.id == "pkg:pypi/unnamed@1.0"
        assert not unnamed.required_fields
        assert any("missing name field" in log for log in doc.logs)


class TestRequiredFields:
    def test_missing_bom_format(self):
        doc = build_cyclonedx_document({"specVersion": "1.5", "version": 1})
        assert not doc.spec.required_fields
        assert "cdx doc is missing BOMFormat" in doc.logs

    def test_missing_doc_version(self):
        doc = build_cyclonedx_document({"bomFormat": "CycloneDX", "specVersion": "1.5", "version": 0})
        assert "cdx doc is missing doc version" in doc.logs

    def test_dependency_without_ref(self):
        doc = build_cyclonedx_document(
            {"bomFormat": "CycloneDX", "specVersion": "1.5", "version": 1, "dependencies": [{"dependsOn": ["a"]}]}
        )
        assert "cdx doc is missing dependencies" in doc.logs

    def test_invalid_purl_is_logged_and_dropped(self):
        doc = build_cyclonedx_document(
            {
                "bomFormat": "CycloneDX",
                "specVersion": "1.5",
                "version": 1,
                "components": [{"type": "library", "name": "x", "bom-ref": "x", "purl": "not-a-purl"}],
            }
        )
        assert doc.components[0].purls == ()
        assert "cdx doc comp x invalid purl found" in doc.logs


def _lib(name):
    return {"type": "library", "name": name, "bom-ref": name}


def _cdx(**fields):
    return build_cyclonedx_document({"bomFormat": "CycloneDX", "specVersion": "1.5", "version": 1, **fields})


class TestComponentWalk:
    def test_repeated_ref_still_visits_children(self):
        doc = _cdx(
            components=[
                {"type": "library", "name": "a", "bom-ref": "a", "components": [_lib("b")]},
                {"type": "library", "name": "a", "bom-ref": "a", "components": [_lib("c")]},
            ]
        )
        assert sorted(c.id for c in doc.components) == ["a", "b", "c"]

    def test_primary_without_ref_or_purl(self):
        doc = _cdx(
            metadata={"component": {"type": "application", "name": "app"}},
            components=[{"type": "library", "name": "lib", "bom-ref": "lib"}],
        )
        primary = doc.primary_component
        assert primary.present
        assert primary.id
        app = doc.component_by_id(primary.id)
        assert app.name == "app"
        assert app.is_primary
        assert [c.is_primary for c in doc.components] == [True, False]


class TestLicenseEntries:
    def _licenses(self, *entries):
        doc = _cdx(components=[{"type": "library", "name": "x", "bom-ref": "x", "licenses": list(entries)}])
        return doc.components[0].licenses

    def test_free_text_name_is_one_custom_license(self):
        (lic,) = self._licenses({"license": {"name": "Apache License 2.0"}})
        assert lic.short_id == "Apache License 2.0"
        assert lic.source == LicenseSource.CUSTOM

    def test_name_matching_an_identifier_resolves(self):
        (lic,) = self._licenses({"license": {"name": "MIT"}})
        assert lic.source == LicenseSource.SPDX

    def test_id_is_not_tokenized(self):
        assert _ids(self._licenses({"license": {"id": "Apache-2.0"}})) == ["Apache-2.0"]

    def test_expression_is_tokenized(self):
        assert _ids(self._licenses({"expression": "MIT OR Apache-2.0"})) == ["Apache-2.0", "MIT"]

    def test_no_assertion_name_is_skipped(self):
        assert self._licenses({"license": {"name": "NOASSERTION"}}) == ()


class TestCompositions:
    @pytest.fixture
    def doc(self):
        return build_cyclonedx_document(
            {
                "bomFormat": "CycloneDX",
                "specVersion": "1.5",
                "version": 1,
                "components": [_lib("a"), _lib("b")],
                "compositions": [
                    {"aggregate": "incomplete"},
                    {"bom-ref": "c1", "aggregate": "complete", "dependencies": ["a"]},
                ],
            }
        )

    def test_parsed(self, doc):
        first, second = doc.compositions
        assert first.scope == "global"
        assert not first.is_complete
        assert second.id == "c1"
        assert second.scope == "dependencies"
        assert second.is_complete

    def test_component_composition_falls_back_to_global(self, doc):
        assert doc.composition_of("a").id == "c1"
        assert doc.composition_of("b").aggregate == "incomplete"

    def test_no_compositions(self, cdx16):
        assert cdx16.compositions == ()
        assert cdx16.composition_of("pkg:npm/qs@6.11.0") is None


class TestComponentIdentity:
    def test_bom_ref_wins(self):
        assert component_identity({"bom-ref": "ref-1", "purl": "pkg:npm/a@1"}) == "ref-1"

    def test_valid_purl(self):
        assert component_identity({"purl": "pkg:npm/a@1"}) == "pkg:npm/a@1"

    def test_generated_ids_are_unique(self):
        assert component_identity({"name": "a"}) != component_identity({"name": "a"})


class TestCycloneDXXml:
    @pytest.fixture
    def doc(self, read_fixture):
        return parse_sbom(read_fixture("cdx-1.5-app.xml"), validate=False)

    def test_spec(self, doc):
        assert doc.spec.spec_type == SpecType.CYCLONEDX
        assert doc.spec.file_format == FileFormat.XML
        assert doc.spec.version == "1.5"
        assert doc.spec.required_fields

    def test_components(self, doc):
        assert [c.name for c in doc.components] == ["service", "slf4j-api", "guava"]
        slf4j = doc.component_by_id("pkg:maven/org.slf4j/slf4j-api@2.0.9")
        assert slf4j.supplier.name == "QOS.ch"
        assert slf4j.supplier.url == "https://www.qos.ch"
        assert slf4j.checksums[0].algorithm == "SHA-256"

    def test_licenses_default_to_concluded(self, doc):
        guava = doc.component_by_id("pkg:maven/com.google.guava/guava@32.1.2-jre")
        assert _ids(guava.concluded_licenses) == ["Apache-2.0"]

    def test_dependencies_and_tools(self, doc):
        assert doc.primary_component.dependency_count == 2
        assert [(t.name, t.version) for t in doc.tools] == [("cyclonedx-maven-plugin", "2.7.9")]

    def test_xml_to_dict_shape(self, read_fixture):
        import xml.etree.ElementTree as ET

        data = xml_to_dict(ET.fromstring(read_fixture("cdx-1.5-app.xml")))
        assert data["specVersion"] == "1.5"
        assert data["version"] == 1
        assert data["dependencies"][0]["dependsOn"] == [
            "pkg:maven/org.slf4j/slf4j-api@2.0.9",
            "pkg:maven/com.google.guava/guava@32.1.2-jre",
        ]

    def test_malformed_xml(self):
        from sbomqs._parsers import CycloneDXXmlParser
        from sbomqs.sniffer import FormatInfo

        with pytest.raises(SBOMParseError) as exc_info:
            CycloneDXXmlParser().parse(b"<bom", FormatInfo(SpecType.CYCLONEDX, FileFormat.XML, "1.5"))
        assert exc_info.value.file_format == "xml"

"""Tests for the NTIA, BSI v1.1, OpenChain Telco and FSCT compliance reports."""

import pytest

from sbomqs._compliance import (
    BSI,
    DOC_ELEMENT,
    FSCT,
    NTIA,
    OCT,
    ComplianceScore,
    Framework,
    Record,
    Section,
    get_framework,
    run_framework,
)
from sbomqs._compliance.common import element_id, is_rfc3339
from sbomqs._licenses import License, LicenseSource
from sbomqs.models import (
    Author,
    Checksum,
    Component,
    ExternalReference,
    FileFormat,
    Party,
    PrimaryComponent,
    Relationship,
    Spec,
    SpecType,
    Tool,
)
from sbomqs.sbom import parse_sbom

TIMESTAMP = "2024-05-01T10:00:00Z"
MIT = License(name="MIT License", short_id="MIT", source=LicenseSource.SPDX)
ZLIB = License(name="zlib License", short_id="Zlib", source=LicenseSource.SPDX)
CUSTOM = License(name="Acme Proprietary", short_id="LicenseRef-acme", source=LicenseSource.CUSTOM)


def _spec(spec_type=SpecType.CYCLONEDX, **overrides):
    values = {
        "spec_type": spec_type,
        "version": "1.6" if spec_type == SpecType.CYCLONEDX else "SPDX-2.3",
        "file_format": FileFormat.JSON,
        "creation_timestamp": TIMESTAMP,
    }
    values.update(overrides)
    return Spec(**values)


def _values(result, key, element=DOC_ELEMENT):
    return [(r.value, r.score) for r in result.db.by_key_id(key, element)]


@pytest.fixture
def app_doc(make_document):
    """An application depending on one library, which lacks most fields."""
    app = Component(
        id="app",
        name="app",
        version="1.0",
        purls=("pkg:npm/app@1.0",),
        supplier=Party(name="Acme"),
        checksums=(Checksum("SHA256", "ab" * 32),),
        licenses=(MIT,),
        declared_licenses=(MIT,),
        is_primary=True,
    )
    lib = Component(id="lib", name="lib")
    return make_document(
        [app, lib],
        spec=_spec(uri="urn:uuid:3e671687-395b-41f5-a30f-a58921a69b79/1"),
        authors=(Author(name="Jane", email="jane@acme.example"),),
        tools=(Tool("cdxgen", "10.5.2"),),
        relationships=(Relationship("app", "lib", "DEPENDS_ON"),),
        primary_component=PrimaryComponent(
            present=True, id="app", name="app", dependency_count=1, dependencies=("lib",)
        ),
        lifecycles=("build",),
    )


# =============================================================================
# Records and frameworks
# =============================================================================


class TestComplianceScore:
    def test_total_is_mean_of_required_and_optional(self):
        score = ComplianceScore.of(
            [
                Record("a", "x", "", 10.0, required=True),
                Record("b", "x", "", 5.0, required=True),
                Record("c", "x", "", 0.0, required=False),
            ]
        )
        assert score.required == 7.5
        assert score.optional == 0.0
        assert score.total == 3.75

    def test_only_required(self):
        score = ComplianceScore.of([Record("a", "x", "", 8.0, required=True)])
        assert score.total == 8.0
        assert score.optional == 0.0

    def test_empty(self):
        assert ComplianceScore().total == 0.0


class TestFramework:
    def test_get_framework(self):
        assert get_framework("NTIA") is NTIA
        assert get_framework("fsct") is FSCT
        with pytest.raises(ValueError, match="Unknown compliance framework"):
            get_framework("nope")

    def test_record_without_section_is_an_error(self, make_document):
        framework = Framework(
            key="test",
            report_name="Test",
            heading="Test",
            subtitle="",
            revision="",
            sections={"known": Section("Title", "1.1", "Field")},
            checks=lambda doc: [Record("unknown", DOC_ELEMENT, "", 0.0)],
        )
        with pytest.raises(KeyError):
            framework.evaluate(make_document())

    def test_required_comes_from_section_unless_set(self, make_document):
        framework = Framework(
            key="test",
            report_name="Test",
            heading="Test",
            subtitle="",
            revision="",
            sections={"a": Section("Title", "1", "A"), "b": Section("Title", "2", "B", required=False)},
            checks=lambda doc: [
                Record("a", DOC_ELEMENT, "", 10.0),
                Record("b", DOC_ELEMENT, "", 0.0),
                Record("a", "comp", "", 0.0, required=False),
            ],
        )
        db = framework.evaluate(make_document())
        assert [r.required for r in db.records] == [True, False, False]
        assert db.element_ids == [DOC_ELEMENT, "comp"]


class TestHelpers:
    def test_element_id(self):
        assert element_id(Component(id="x", name="lib", version="1.0")) == "lib-1.0"
        long = Component(id="x", name="a-very-long-component-name", version="1.2.3-20240501-abcdef")
        assert element_id(long) == "a-very-long-...ent-name-1.2.3-...abcdef"

    def test_element_id_uses_base_name(self):
        assert element_id(Component(id="x", name="org/lib", version="2")) == "lib-2"

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("2024-05-01T10:00:00Z", True),
            ("2024-05-01T10:00:00+02:00", True),
            ("2024-05-01T10:00:00", False),
            ("2024-05-01", False),
            ("yesterday", False),
        ],
    )
    def test_is_rfc3339(self, value, expected):
        assert is_rfc3339(value) is expected


# =============================================================================
# NTIA
# =============================================================================


class TestNTIA:
    def test_scores(self, app_doc):
        result = run_framework(NTIA, app_doc, "bom.json")
        score = result.score
        assert score.required == 7.5
        assert score.optional == 5.0
        assert score.total == 6.25

    def test_document_records(self, app_doc):
        result = run_framework(NTIA, app_doc, "bom.json")
        assert _values(result, "sbom_machine_format") == [("cyclonedx, json", 10.0)]
        assert _values(result, "sbom_creator") == [("Jane (jane@acme.example)", 10.0)]
        assert _values(result, "sbom_timestamp") == [(TIMESTAMP, 10.0)]
        assert _values(result, "sbom_dependency") == [("doc has 1 dependencies", 10.0)]

    def test_component_records(self, app_doc):
        result = run_framework(NTIA, app_doc, "bom.json")
        assert _values(result, "comp_depth", "app-1.0") == [("lib", 10.0)]
        assert _values(result, "comp_depth", "lib-") == [("no-relationships", 0.0)]
        assert _values(result, "comp_supplier", "app-1.0") == [("Acme", 10.0)]
        (uniq,) = result.db.by_key_id("comp_other_uniq_ids", "app-1.0")
        assert uniq.value == "pkg:npm/app@1.0"
        assert uniq.required is False

    def test_sections_order(self, app_doc):
        sections = run_framework(NTIA, app_doc, "bom.json").sections()
        assert [s["element_id"] for s in sections[:4]] == ["sbom"] * 4
        assert [s["section_id"] for s in sections[:4]] == ["1.1", "2.1", "2.2", "2.3"]
        assert [s["section_id"] for s in sections[4:9]] == ["2.4", "2.5", "2.6", "2.7", "2.8"]
        assert {s["element_id"] for s in sections[4:9]} == {"app-1.0"}
        assert "maturity" not in sections[0]

    def test_spdx_creator_prefers_tools(self, make_document):
        doc = make_document(
            ["lib"],
            spec=_spec(SpecType.SPDX),
            authors=(Author(name="Jane"),),
            tools=(Tool("syft", "0.105.0"),),
        )
        result = run_framework(NTIA, doc, "bom.json")
        assert _values(result, "sbom_creator") == [("syft-0.105.0", 10.0)]

    def test_cyclonedx_creator_falls_back_to_supplier(self, make_document):
        doc = make_document(["lib"], supplier=Party(name="Acme", url="https://acme.example"))
        result = run_framework(NTIA, doc, "bom.json")
        assert _values(result, "sbom_creator") == [("Acme, https://acme.example", 10.0)]

    def test_spdx_other_uniq_ids_is_purl_share(self, make_document):
        comp = Component(
            id="SPDXRef-zlib",
            name="zlib",
            version="1.3.1",
            external_refs=(
                ExternalReference("purl", "pkg:generic/zlib@1.3.1"),
                ExternalReference("cpe23Type", "cpe:2.3:a:zlib:zlib:1.3.1:*:*:*:*:*:*:*"),
            ),
        )
        doc = make_document([comp], spec=_spec(SpecType.SPDX))
        (record,) = run_framework(NTIA, doc, "bom.json").db.by_key("comp_other_uniq_ids")
        assert record.value == "purl:(1/2)"
        assert record.score == 5.0
        assert record.required is True

    def test_no_components(self, make_document):
        result = run_framework(NTIA, make_document(), "bom.json")
        assert _values(result, "sbom_components") == [("absent", 0.0)]

    def test_basic_line(self, app_doc):
        line = run_framework(NTIA, app_doc, "bom.json").basic_line()
        assert line.startswith("Score:")
        assert "RequiredScore:7.5 OptionalScore:5.0 for bom.json" in line

    def test_to_dict(self, app_doc):
        report = run_framework(NTIA, app_doc, "bom.json").to_dict()
        assert report["report_name"] == "NTIA-minimum elements Compliance Report"
        assert report["run"]["file_name"] == "bom.json"
        assert report["tool"]["name"] == "sbomqs"
        assert report["summary"] == {
            "max_score": 10.0,
            "total_score": 6.25,
            "required_elements_score": 7.5,
            "optional_elements_score": 5.0,
        }
        assert len(report["sections"]) == 14


# =============================================================================
# BSI TR-03183-2 v1.1
# =============================================================================


class TestBSI:
    def test_document_records(self, app_doc):
        result = run_framework(BSI, app_doc, "bom.json")
        assert _values(result, "sbom_creator") == [("jane@acme.example", 10.0)]
        assert _values(result, "sbom_uri")[0][1] == 10.0
        assert _values(result, "sbom_components") == [("present", 10.0)]

    def test_creator_falls_back_to_supplier_url(self, make_document):
        doc = make_document(["lib"], authors=(Author(name="Jane"),), supplier=Party(url="https://acme.example"))
        result = run_framework(BSI, doc, "bom.json")
        assert _values(result, "sbom_creator") == [("https://acme.example", 10.0)]

    def test_component_records(self, app_doc):
        result = run_framework(BSI, app_doc, "bom.json")
        assert _values(result, "comp_depth", "app-1.0") == [("lib", 10.0)]
        assert _values(result, "comp_depth", "lib-") == [("no-dependencies", 10.0)]
        assert _values(result, "comp_license", "app-1.0") == [("compliant", 10.0)]
        assert _values(result, "comp_license", "lib-") == [("missing", 0.0)]
        assert _values(result, "comp_hash", "app-1.0") == [("ab" * 32, 10.0)]
        assert _values(result, "comp_creator", "app-1.0") == [("", 0.0)]

    def test_broken_dependencies(self, make_document):
        doc = make_document(
            [Component(id="a", name="a", version="1")],
            relationships=(Relationship("a", "missing", "DEPENDS_ON"),),
        )
        result = run_framework(BSI, doc, "bom.json")
        assert _values(result, "comp_depth", "a-1") == [("broken-dependencies", 0.0)]

    @pytest.mark.parametrize(
        "licenses,expected",
        [
            ((CUSTOM,), "compliant"),
            ((License(name="foo", short_id="foo", source=LicenseSource.CUSTOM),), "non-compliant"),
            ((License(name="NOASSERTION", short_id="NOASSERTION", source=LicenseSource.CUSTOM),), "non-compliant"),
        ],
    )
    def test_license_kinds(self, make_document, licenses, expected):
        doc = make_document([Component(id="a", name="a", version="1", concluded_licenses=licenses)])
        ((value, _score),) = _values(run_framework(BSI, doc, "bom.json"), "comp_license", "a-1")
        assert value == expected

    def test_sections_group_document_rows_first(self, app_doc):
        sections = run_framework(BSI, app_doc, "bom.json").sections()
        assert [s["section_data_field"] for s in sections[:4]] == [
            "creator of sbom",
            "timestamp",
            "components",
            "SBOM-URI",
        ]
        assert sections[0]["element_id"] == "SBOM"


# =============================================================================
# OpenChain Telco
# =============================================================================


@pytest.fixture
def spdx_doc(make_document):
    zlib = Component(
        id="SPDXRef-Package-zlib",
        name="zlib",
        version="1.3.1",
        supplier=Party(name="Mark Adler", email="madler@zlib.example"),
        download_location="https://zlib.net/zlib-1.3.1.tar.gz",
        files_analyzed=True,
        checksums=(Checksum("SHA256", "9a93b2b7"),),
        concluded_licenses=(ZLIB,),
        declared_licenses=(ZLIB,),
        copyright="NOASSERTION",
        external_refs=(ExternalReference("purl", "pkg:generic/zlib@1.3.1"),),
    )
    firmware = Component(id="SPDXRef-Package-firmware", name="firmware", version="5.0.1")
    spec = _spec(
        SpecType.SPDX,
        name="acme-firmware",
        spdx_id="SPDXRef-DOCUMENT",
        namespace="https://acme.example/spdxdocs/acme-firmware",
        organization="Acme Corp",
        licenses=(License(name="Creative Commons Zero v1.0 Universal", short_id="CC0-1.0", source=LicenseSource.SPDX),),
    )
    return make_document([zlib, firmware], spec=spec, tools=(Tool("syft", "0.105.0"),))


class TestOCT:
    def test_cyclonedx_is_not_supported(self, app_doc):
        assert not OCT.supports(app_doc)
        with pytest.raises(ValueError, match="OpenChain Telco Report only supports spdx"):
            run_framework(OCT, app_doc, "bom.json")

    def test_document_records(self, spdx_doc):
        result = run_framework(OCT, spdx_doc, "bom.spdx.json")
        assert _values(result, "sbom_spec") == [("spdx", 10.0)]
        assert _values(result, "sbom_spdxid") == [("SPDXRef-DOCUMENT", 10.0)]
        assert _values(result, "sbom_license") == [("Creative Commons Zero v1.0 Universal", 10.0)]
        assert _values(result, "sbom_comment") == [("", 0.0)]
        assert _values(result, "sbom_tool") == [("syft", 10.0)]
        assert _values(result, "sbom_org") == [("Acme Corp", 10.0)]
        assert _values(result, "sbom_human_format") == [("json", 10.0)]
        for key in ("sbom_delivery_time", "sbom_delivery_method", "sbom_scope"):
            assert _values(result, key) == [("unknown", 0.0)]
        assert _values(result, "pack_info") == [("present", 10.0)]

    def test_package_records(self, spdx_doc):
        result = run_framework(OCT, spdx_doc, "bom.spdx.json")
        zlib = "SPDXRef-Package-zlib"
        assert _values(result, "pack_supplier", zlib) == [("madler@zlib.example", 10.0)]
        assert _values(result, "pack_file_analyzed", zlib) == [("yes", 10.0)]
        assert _values(result, "pack_file_analyzed", "SPDXRef-Package-firmware") == [("no", 0.0)]
        assert _values(result, "pack_hash", zlib) == [("9a93b2b7", 10.0)]
        assert _values(result, "pack_license_con", zlib) == [("Zlib", 10.0)]
        assert _values(result, "pack_copyright", zlib) == [("", 0.0)]
        assert _values(result, "pack_ext_ref", zlib) == [("purl:(1/1)", 10.0)]

    def test_tag_value_counts_as_machine_format(self, make_document):
        doc = make_document(["lib"], spec=_spec(SpecType.SPDX, file_format=FileFormat.TAG_VALUE))
        result = run_framework(OCT, doc, "bom.spdx")
        assert _values(result, "sbom_machine_format") == [("spdx, tag-value", 10.0)]

    def test_spdx_fixture(self, read_fixture):
        doc = parse_sbom(read_fixture("spdx-2.3-app.json"), validate=False)
        result = run_framework(OCT, doc, "spdx-2.3-app.json")
        assert _values(result, "sbom_spdxid") == [("SPDXRef-DOCUMENT", 10.0)]
        assert _values(result, "pack_file_analyzed", "SPDXRef-Package-zlib") == [("yes", 10.0)]
        assert _values(result, "pack_file_analyzed", "SPDXRef-Package-firmware") == [("no", 0.0)]
        assert _values(result, "pack_file_analyzed", "SPDXRef-Package-openssl") == [("yes", 10.0)]
        assert 0.0 < result.score.total < 10.0


# =============================================================================
# FSCT
# =============================================================================


def _maturity(result, key, element=DOC_ELEMENT):
    (record,) = result.db.by_key_id(key, element)
    return record.maturity, record.score


class TestFSCT:
    def test_document_records(self, app_doc):
        result = run_framework(FSCT, app_doc, "bom.json")
        assert _maturity(result, "sbom_author") == ("Recommended", 12.0)
        assert _maturity(result, "sbom_timestamp") == ("Minimum", 10.0)
        assert _maturity(result, "sbom_type") == ("Aspirational", 15.0)
        assert _maturity(result, "sbom_primary_component") == ("Minimum", 10.0)

    def test_tools_alone_are_not_an_author(self, make_document):
        doc = make_document(["lib"], tools=(Tool("syft", "1.0"),))
        result = run_framework(FSCT, doc, "bom.json")
        assert _maturity(result, "sbom_author") == ("None", 0.0)

    def test_component_records(self, app_doc):
        result = run_framework(FSCT, app_doc, "bom.json")
        assert _maturity(result, "comp_checksum", "app-1.0") == ("Recommended", 12.0)
        assert _maturity(result, "comp_checksum", "lib-") == ("None", 0.0)
        assert _maturity(result, "comp_relationship", "app-1.0") == ("Minimum", 10.0)
        assert _maturity(result, "comp_relationship", "lib-") == ("Minimum", 10.0)
        assert _maturity(result, "comp_license", "app-1.0") == ("Aspirational", 15.0)
        assert _maturity(result, "comp_uniq_id", "app-1.0") == ("Minimum", 10.0)
        assert _maturity(result, "comp_version", "lib-") == ("None", 0.0)

    def test_weak_checksum_is_minimum(self, make_document):
        comp = Component(id="a", name="a", version="1", checksums=(Checksum("SHA-1", "9a7d0cf1"),))
        result = run_framework(FSCT, make_document([comp]), "bom.json")
        assert _maturity(result, "comp_checksum", "a-1") == ("Minimum", 10.0)

    def test_relationships_need_every_primary_dependency_listed(self, make_document):
        app = Component(id="app", name="app", version="1", is_primary=True)
        doc = make_document(
            [app],
            relationships=(Relationship("app", "ghost", "DEPENDS_ON"),),
            primary_component=PrimaryComponent(
                present=True, id="app", name="app", dependency_count=1, dependencies=("ghost",)
            ),
        )
        result = run_framework(FSCT, doc, "bom.json")
        assert _maturity(result, "comp_relationship", "app-1") == ("None", 0.0)

    def test_custom_license_is_minimum(self, make_document):
        comp = Component(id="a", name="a", version="1", licenses=(CUSTOM,))
        result = run_framework(FSCT, make_document([comp]), "bom.json")
        assert _maturity(result, "comp_license", "a-1") == ("Minimum", 10.0)

    def test_copyright_is_truncated(self, make_document):
        comp = Component(id="a", name="a", version="1", copyright="Copyright " + "x" * 60)
        (record,) = run_framework(FSCT, make_document([comp]), "bom.json").db.by_key("comp_copyright")
        assert record.value.endswith("...")
        assert len(record.value) == 53

    def test_sections_carry_maturity(self, app_doc):
        sections = run_framework(FSCT, app_doc, "bom.json").sections()
        assert sections[0]["element_id"] == "SBOM Level"
        assert sections[0]["maturity"] == "Recommended"
        optional = [s for s in sections if s["section_data_field"] == "SBOM Type"]
        assert optional[0]["required"] is False

"""Tests for license expression resolution."""

import unittest

import pytest

from sbomqs._licenses import (
    LicenseRegistry,
    LicenseSource,
    create_custom_license,
    is_no_assertion,
    get_license_registry,
    lookup_expression,
    lookup_license,
    tokenize_expression,
)


def _ids(licenses):
    return {lic.short_id for lic in licenses}


class TestTokenizeExpression(unittest.TestCase):
    """Tests for tokenize_expression()."""

    def test_operators_dropped(self):
        self.assertEqual(tokenize_expression("MIT AND Apache-2.0"), ["Apache-2.0", "MIT"])

    def test_parentheses_and_case_insensitive_operators(self):
        self.assertEqual(
            tokenize_expression("(MIT or Apache-2.0) and BSD-3-Clause"),
            ["Apache-2.0", "BSD-3-Clause", "MIT"],
        )

    def test_with_exception(self):
        self.assertEqual(
            tokenize_expression("GPL-2.0-only WITH Classpath-exception-2.0"),
            ["Classpath-exception-2.0", "GPL-2.0-only"],
        )

    def test_empty(self):
        self.assertEqual(tokenize_expression(""), [])


class TestLookupExpression:
    """Tests for lookup_expression()."""

    def test_and_is_order_independent(self):
        left = lookup_expression("MIT AND Apache-2.0")
        right = lookup_expression("Apache-2.0 AND MIT")
        assert _ids(left) == _ids(right) == {"MIT", "Apache-2.0"}

    @pytest.mark.parametrize(
        "expression", ["NONE", "NOASSERTION", "none", "NoAssertion", "(NOASSERTION)", "( none )", ""]
    )
    def test_no_assertion_values_resolve_to_nothing(self, expression):
        assert lookup_expression(expression) == []
        assert is_no_assertion(expression)

    def test_none_is_no_assertion(self):
        assert lookup_expression(None) == []

    def test_spdx_license_flags(self):
        (mit,) = lookup_expression("MIT")
        assert mit.source == LicenseSource.SPDX
        assert mit.osi_approved
        assert not mit.deprecated

    def test_deprecated_identifier(self):
        (gpl,) = lookup_expression("GPL-2.0")
        assert gpl.deprecated

    def test_unknown_identifier_becomes_custom(self):
        (custom,) = lookup_expression("Totally-Made-Up-License")
        assert custom.is_custom
        assert custom.short_id == "Totally-Made-Up-License"

    def test_document_custom_licenses_are_used(self):
        local = create_custom_license("LicenseRef-acme", "Acme License")
        (resolved,) = lookup_expression("LicenseRef-acme", custom_licenses=[local])
        assert resolved.name == "Acme License"
        assert resolved.is_license_ref

    def test_or_later_suffix_is_stripped(self):
        (resolved,) = lookup_expression("Apache-2.0+")
        assert resolved.short_id == "Apache-2.0"


class TestLookupLicense:
    """Tests for lookup_license()."""

    def test_free_text_name_stays_whole(self):
        lic = lookup_license("Apache License 2.0")
        assert lic.is_custom
        assert lic.short_id == "Apache License 2.0"

    def test_identifier_resolves(self):
        assert lookup_license("Apache-2.0").source == LicenseSource.SPDX

    def test_document_custom_license(self):
        local = create_custom_license("LicenseRef-acme", "Acme License")
        assert lookup_license("LicenseRef-acme", custom_licenses=[local]).name == "Acme License"


class TestBundledSpdxList:
    """The bundled SPDX license and exception lists."""

    def test_full_list_is_loaded(self):
        registry = get_license_registry()
        assert registry.list_version
        assert len(registry) > 2500
        assert registry.is_spdx("Zed")
        assert registry.is_exception("Qt-GPL-exception-1.0")

    @pytest.mark.parametrize("short_id", ["GFDL-1.1", "LGPL-2.1", "wxWindows", "Nunit"])
    def test_deprecated_ids_keep_spdx_flags(self, short_id):
        (lic,) = lookup_expression(short_id)
        assert lic.source == LicenseSource.SPDX
        assert lic.deprecated

    def test_osi_flag_outside_common_licenses(self):
        (lic,) = lookup_expression("MIT-Modern-Variant")
        assert lic.source == LicenseSource.SPDX
        assert lic.osi_approved


class TestLicenseRegistry:
    """Tests for LicenseRegistry lookups with explicit tables."""

    @pytest.fixture
    def registry(self, tmp_path):
        spdx_file = tmp_path / "licenses.json"
        spdx_file.write_text(
            '{"licenseListVersion": "test", '
            '"licenses": [{"licenseId": "GPL-3.0-only", "name": "GPL 3", "isOsiApproved": true}]}'
        )
        exceptions_file = tmp_path / "exceptions.json"
        exceptions_file.write_text(
            '{"exceptions": [{"licenseExceptionId": "LLVM-exception", "name": "LLVM Exception"}]}'
        )
        aboutcode = [
            {"license_key": "gpl-3.0", "category": "Copyleft", "spdx_license_key": "GPL-3.0-only"},
            {"license_key": "public-domain", "category": "Public Domain", "spdx_license_key": "LicenseRef-PD"},
        ]
        return LicenseRegistry.from_sources(
            spdx_path=spdx_file, exceptions_path=exceptions_file, aboutcode_index=aboutcode
        )

    def test_spdx_hit_inherits_aboutcode_restrictive(self, registry):
        gpl = registry.lookup("GPL-3.0-only")
        assert gpl.source == LicenseSource.SPDX
        assert gpl.restrictive
        assert gpl.osi_approved
        assert registry.is_spdx("GPL-3.0-only")
        assert registry.is_aboutcode("GPL-3.0-only")

    def test_exception_lookup(self, registry):
        assert registry.is_exception("LLVM-exception")
        assert registry.lookup("LLVM-exception").exception

    def test_aboutcode_only_entry(self, registry):
        pd = registry.lookup("LicenseRef-PD")
        assert pd.source == LicenseSource.ABOUTCODE
        assert registry.is_free_any_use("LicenseRef-PD")

    def test_missing(self, registry):
        assert registry.lookup("MIT") is None
        assert not registry.is_spdx("MIT")
        assert not registry.is_aboutcode("MIT")
        assert registry.lookup("") is None

    def test_unreadable_list_leaves_table_empty(self, tmp_path):
        registry = LicenseRegistry.from_sources(
            spdx_path=tmp_path / "missing.json", exceptions_path=tmp_path / "missing.json", aboutcode_index=[]
        )
        assert len(registry) == 0
        assert registry.list_version == ""

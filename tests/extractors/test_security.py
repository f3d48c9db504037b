"""Tests for access-control and record-rule extraction."""

from __future__ import annotations

from addonmap.extractors.security import SecurityExtractor, parse_acl_csv, parse_record_rules
from addonmap.models import ScanDiagnostics
from tests._fixtures.repo_builder import AddonRepoBuilder

ACL_CSV = """id,name,model_id:id,group_id:id,perm_read,perm_write,perm_create,perm_unlink
access_order_user,order user,model_sale_order,sales_team.group_sale_salesman,1,1,1,0
access_order_public,order public,model_sale_order,,1,1,0,0
access_order_read,order read,model_sale_order,,1,0,0,0
"""

RULES_XML = """<?xml version="1.0" encoding="utf-8"?>
<odoo>
  <record id="rule_personal" model="ir.rule">
    <field name="name">Personal orders</field>
    <field name="model_id" ref="model_sale_order"/>
    <field name="domain_force">[('user_id', '=', user.id)]</field>
    <field name="groups" eval="[(4, ref('sales_team.group_sale_salesman'))]"/>
  </record>
  <record id="rule_company" model="ir.rule">
    <field name="model_id" ref="model_sale_order"/>
    <field name="domain_force" eval="[('company_id', 'in', company_ids)]"/>
  </record>
  <record id="not_a_rule" model="res.groups">
    <field name="name">Group</field>
  </record>
</odoo>
"""


def test_parse_acl_csv_flags_risky_rows() -> None:
    entries = parse_acl_csv(ACL_CSV, "sale")

    by_id = {entry.id: entry for entry in entries}
    assert set(by_id) == {"access_order_user", "access_order_public", "access_order_read"}
    assert by_id["access_order_user"].group_ref == "sales_team.group_sale_salesman"
    assert by_id["access_order_user"].perm_create is True
    assert by_id["access_order_user"].is_risky is False
    assert by_id["access_order_public"].is_risky is True
    assert by_id["access_order_read"].is_risky is False


def test_parse_acl_csv_resolves_columns_by_header() -> None:
    content = "perm_write,group_id/id,model_id/id,id\nTrue,,model_x,access_x\n"

    entries = parse_acl_csv(content, "x")

    assert len(entries) == 1
    assert entries[0].model_ref == "model_x"
    assert entries[0].perm_write is True
    assert entries[0].is_risky is True


def test_parse_acl_csv_short_rows_default_false() -> None:
    diagnostics = ScanDiagnostics()
    content = "id,model_id:id,group_id:id,perm_read,perm_write\naccess_short,model_y\n"

    entries = parse_acl_csv(content, "y", diagnostics)

    assert entries[0].perm_read is False
    assert entries[0].perm_write is False
    assert entries[0].group_ref == ""
    assert diagnostics.short_rows == 1


def test_parse_acl_csv_header_only() -> None:
    assert parse_acl_csv("id,model_id:id\n", "z") == []
    assert parse_acl_csv("", "z") == []


def test_parse_record_rules() -> None:
    rules = parse_record_rules(RULES_XML, "sale", "addons/sale/security/rules.xml")

    by_id = {rule.id: rule for rule in rules}
    assert set(by_id) == {"rule_personal", "rule_company"}
    personal = by_id["rule_personal"]
    assert personal.model_ref == "model_sale_order"
    assert personal.groups == ("sales_team.group_sale_salesman",)
    assert personal.has_domain_force is True
    assert personal.is_global is False
    company = by_id["rule_company"]
    assert company.has_domain_force is True
    assert company.is_global is True


def test_security_extractor_end_to_end(repo_builder: AddonRepoBuilder) -> None:
    repo_builder.add_module(
        "sale",
        files={
            "security/ir.model.access.csv": ACL_CSV,
            "security/rules.xml": RULES_XML,
        },
    )
    repo_builder.add_module("web")

    result = SecurityExtractor().extract(repo_builder.context())
    payload = result.to_payload()

    assert payload["acl_count"] == 3
    assert payload["record_rule_count"] == 2
    assert [entry["id"] for entry in payload["risky_acl_entries"]] == ["access_order_public"]
    assert [rule["id"] for rule in payload["global_record_rules"]] == ["rule_company"]
    assert payload["record_rules"][0]["file"] == "addons/sale/security/rules.xml"
    assert result.metrics() == {
        "acl_entries": 3,
        "record_rules": 2,
        "risky_acl_entries": 1,
        "global_record_rules": 1,
    }
    assert result.risks() == [
        "Review 1 ACL entries that grant write/create/delete without explicit groups.",
        "Review 1 record rules with global scope (no group restriction).",
    ]


def test_parse_acl_csv_quoted_cells() -> None:
    content = 'id,name,model_id:id,group_id:id,perm_read,perm_write\naccess_q,"Orders, all",model_q,,1,0\n'

    entries = parse_acl_csv(content, "q")

    assert entries[0].model_ref == "model_q"
    assert entries[0].perm_read is True
    assert entries[0].is_risky is False


def test_parse_acl_csv_survives_oversized_cell() -> None:
    content = "id,model_id:id,group_id:id,perm_write\na," + "x" * 140000 + ",,1\n"

    entries = parse_acl_csv(content, "m")

    assert len(entries) == 1
    assert entries[0].id == "a"
    assert entries[0].perm_write is True
    assert entries[0].is_risky is True


def test_parse_acl_csv_ignores_byte_order_mark() -> None:
    content = "\ufeffid,model_id:id,group_id:id,perm_read\naccess_bom,model_b,,1\n"

    entries = parse_acl_csv(content, "b")

    assert entries[0].id == "access_bom"
    assert entries[0].perm_read is True

"""Tests for view, action and menu extraction."""

from __future__ import annotations

from addonmap.extractors.ui import INHERITED_VIEW_ALERT, UiExtractor, UiMap, parse_ui_file
from addonmap.models import ViewEntry
from tests._fixtures.repo_builder import AddonRepoBuilder

VIEWS_XML = """<odoo>
  <record id="view_order_form" model="ir.ui.view">
    <field name="name">sale.order.form</field>
    <field name="model">sale.order</field>
    <field name="arch" type="xml">
      <form><field name="partner_id"/></form>
    </field>
  </record>
  <record id="view_partner_form_inherit" model="ir.ui.view">
    <field name="model">res.partner</field>
    <field name="inherit_id" ref="base.view_partner_form"/>
    <field name="arch" type="xml">
      <field name="email" position="after"><field name="sale_ok"/></field>
    </field>
  </record>
  <record id="action_orders" model="ir.actions.act_window">
    <field name="name">Orders</field>
    <field name="res_model">sale.order</field>
  </record>
  <menuitem id="menu_sale_root" name="Sales"/>
  <menuitem id="menu_orders" name="Orders" parent="menu_sale_root" action="action_orders"/>
</odoo>
"""


def test_parse_ui_file() -> None:
    parsed = parse_ui_file(VIEWS_XML, "sale", "addons/sale/views/sale_views.xml")

    views = {view.id: view for view in parsed.views}
    assert views["view_order_form"].model == "sale.order"
    assert views["view_order_form"].is_inherited is False
    assert views["view_partner_form_inherit"].inherit_ref == "base.view_partner_form"
    assert views["view_partner_form_inherit"].is_inherited is True

    assert [(action.id, action.res_model) for action in parsed.actions] == [
        ("action_orders", "sale.order")
    ]

    menus = {menu.id: menu for menu in parsed.menus}
    assert menus["menu_sale_root"].name == "Sales"
    assert menus["menu_sale_root"].parent == ""
    assert menus["menu_orders"].parent == "menu_sale_root"
    assert menus["menu_orders"].action == "action_orders"


def test_ui_extractor_end_to_end(repo_builder: AddonRepoBuilder) -> None:
    repo_builder.add_module("sale", files={"views/sale_views.xml": VIEWS_XML})
    repo_builder.add_module(
        "crm",
        files={
            "views/crm_views.xml": """
            <odoo>
              <record id="crm_partner_inherit" model="ir.ui.view">
                <field name="model">res.partner</field>
                <field name="inherit_id" ref="base.view_partner_form"/>
              </record>
            </odoo>
            """,
            "views/notes.txt": "<record id='x' model='ir.ui.view'></record>",
        },
    )

    result = UiExtractor().extract(repo_builder.context())
    payload = result.to_payload()

    assert payload["view_count"] == 3
    assert payload["inherited_view_count"] == 2
    assert payload["action_count"] == 1
    assert payload["menu_count"] == 2
    assert [(item["module"], item["id"]) for item in payload["inherited_views"]] == [
        ("crm", "crm_partner_inherit"),
        ("sale", "view_partner_form_inherit"),
    ]
    assert result.metrics() == {"views": 3, "inherited_views": 2, "actions": 1, "menus": 2}
    assert result.risks() == []


def test_inherited_view_alert_threshold() -> None:
    views = [
        ViewEntry(module="m", file="f.xml", id=f"v{i}", model="x", inherit_ref="base.v")
        for i in range(INHERITED_VIEW_ALERT + 1)
    ]

    assert UiMap(views=views).risks() != []
    assert UiMap(views=views[:INHERITED_VIEW_ALERT]).risks() == []

"""SchemaFormBuilder tests — dispatch priority, field kinds and key naming.

Covers each dispatch branch (ignored placeholder, allOf, oneOf, plain
object, leaf/array), the numeric step policy, required marking rules and
basic-mode pruning, plus a walk over the shipped paddy rice pathway.
"""

import copy

import pytest

from cfp_forms.builder import UNSUPPORTED_ARRAY_MESSAGE, numeric_step
from cfp_forms.constants import OperationMode
from cfp_forms.models.form import (
    ConditionalNode,
    FieldNode,
    FormTreeAdapter,
    GroupNode,
    PlaceholderNode,
    RepeatableNode,
    iter_fields,
)
from cfp_forms.models.schema import parse_schema

from helpers.schemas import (
    APPLICATIONS_SCHEMA,
    CROP_AREA_SCHEMA,
    NESTED_ALL_OF_SCHEMA,
    ONE_OF_ITEMS_SCHEMA,
    RESIDUE_SCHEMA,
)

FULL = OperationMode.FULL
BASIC = OperationMode.BASIC


def _props(**properties):
    """Wrap properties in a root object schema."""
    return {"type": "object", "properties": properties}


# =====================================================================
# Canonical scenario
# =====================================================================


class TestCropAreaScenario:

    def test_top_level_keys_in_declaration_order(self, builder):
        tree = builder.build(CROP_AREA_SCHEMA, FULL)
        assert list(tree) == ["cropType", "area"]

    def test_required_select(self, builder):
        crop = builder.build(CROP_AREA_SCHEMA, FULL)["cropType"]
        assert isinstance(crop, FieldNode)
        assert crop.kind == "select"
        assert crop.required is True
        assert crop.label == "Crop Type"
        assert [(o.value, o.label) for o in crop.options] == [("Rice", "Rice"), ("Wheat", "Wheat")]

    def test_object_group_children(self, builder):
        area = builder.build(CROP_AREA_SCHEMA, FULL)["area"]
        assert isinstance(area, GroupNode)
        assert not area.collapsible
        assert not area.required
        assert list(area.children) == ["area__value", "area__unit"]
        assert area.children["area__value"].kind == "number"
        assert area.children["area__unit"].kind == "text"

    def test_schema_is_not_mutated(self, builder):
        schema = copy.deepcopy(CROP_AREA_SCHEMA)
        builder.build(schema, FULL)
        assert schema == CROP_AREA_SCHEMA


# =====================================================================
# Leaf fields
# =====================================================================


class TestLeafFields:

    def test_string_kinds(self, builder):
        tree = builder.build(_props(
            short={"type": "string", "maxLength": 100},
            long={"type": "string", "maxLength": 2000},
            boundary={"type": "string", "maxLength": 255},
            untyped={"title": "No type"},
        ), FULL)
        assert tree["short"].kind == "text"
        assert tree["long"].kind == "textarea"
        assert tree["boundary"].kind == "text"
        assert tree["untyped"].kind == "text"
        assert tree["untyped"].label == "No type"

    def test_number_bounds_and_unit(self, builder):
        tree = builder.build(_props(
            rate={"type": "number", "minimum": 0, "maximum": 100, "x-unit": "kg/ha", "default": 5},
        ), FULL)
        rate = tree["rate"]
        assert rate.kind == "number"
        assert (rate.min, rate.max) == (0, 100)
        assert rate.suffix == "kg/ha"
        assert rate.default == 5

    def test_boolean_is_never_required(self, builder):
        schema = _props(burned={"type": "boolean"})
        schema["required"] = ["burned"]
        burned = builder.build(schema, FULL)["burned"]
        assert burned.kind == "checkbox"
        assert burned.required is False

    def test_object_without_properties_is_empty_group(self, builder):
        meta = builder.build(_props(meta={"type": "object", "title": "Meta"}), FULL)["meta"]
        assert isinstance(meta, GroupNode)
        assert meta.title == "Meta"
        assert meta.children == {}

    def test_unknown_type_is_unsupported(self, builder):
        field = builder.build(_props(when={"type": "date"}), FULL)["when"]
        assert field.kind == "unsupported"
        assert field.message == "Unsupported field type: date"

    def test_malformed_node_is_unsupported(self, builder):
        field = builder.build(_props(bad=42), FULL)["bad"]
        assert field.kind == "unsupported"

    def test_title_prefers_metadata_name(self, builder):
        field = builder.build(_props(x={
            "type": "string", "title": "Title", "x-metadata": {"name": "Name"},
        }), FULL)["x"]
        assert field.label == "Name"


class TestNumericStep:

    @pytest.mark.parametrize("raw, step", [
        ({"type": "number", "minimum": 0, "maximum": 10}, 1),
        ({"type": "number", "minimum": 0.5}, "any"),
        ({"type": "number", "minimum": 0.5, "maximum": 10}, "any"),
        ({"type": "number", "minimum": 0}, "any"),
        ({"type": "number"}, "any"),
        ({"type": "integer"}, 1),
        ({"type": "integer", "minimum": 0, "maximum": 3}, 1),
        ({"type": "integer", "maximum": 2.5}, "any"),
        ({"type": "number", "minimum": 0.0, "maximum": 10.0}, 1),
        ({"type": "integer", "minimum": 1.0}, 1),
    ])
    def test_step_policy(self, raw, step):
        assert numeric_step(parse_schema(raw)) == step

    def test_step_on_built_field(self, builder):
        tree = builder.build(_props(
            whole={"type": "number", "minimum": 0, "maximum": 10},
            part={"type": "number", "minimum": 0.5},
        ), FULL)
        assert tree["whole"].step == 1
        assert tree["part"].step == "any"


# =====================================================================
# Plain objects and required marking
# =====================================================================


class TestObjects:

    def test_required_object_is_marked(self, builder):
        schema = _props(area={"type": "object", "properties": {"value": {"type": "number"}}})
        schema["required"] = ["area"]
        area = builder.build(schema, FULL)["area"]
        assert area.required
        assert area.title == "Area *"
        assert area.css_class == "required-fieldset"

    def test_object_with_required_list_is_marked(self, builder):
        area = builder.build(_props(area={
            "type": "object", "required": ["value"],
            "properties": {"value": {"type": "number"}, "unit": {"type": "string"}},
        }), FULL)["area"]
        assert area.title == "Area *"
        assert area.children["area__value"].required
        assert not area.children["area__unit"].required

    def test_required_is_direct_parent_only(self, builder):
        schema = _props(outer={
            "type": "object",
            "properties": {"inner": {"type": "object", "properties": {"value": {"type": "string"}}}},
        })
        schema["required"] = ["value"]
        tree = builder.build(schema, FULL)
        assert not tree["outer"].children["outer__inner"].children["outer__inner__value"].required

    def test_deep_nesting_keys(self, builder):
        tree = builder.build(_props(a={"properties": {"b": {"properties": {"c": {"type": "string"}}}}}), FULL)
        assert "a__b__c" in dict(iter_fields(tree))


# =====================================================================
# allOf
# =====================================================================


class TestAllOf:

    def test_group_fields_are_keyed_under_group(self, builder, paddy_rice):
        group = builder.build(paddy_rice, FULL)["cropYield"]
        assert isinstance(group, GroupNode)
        assert group.collapsible
        assert list(group.children) == [
            "cropYield__harvested",
            "cropYield__seasons",
            "cropYield__yield_measurement_method",
        ]

    def test_member_required_marks_group_and_field(self, builder, paddy_rice):
        group = builder.build(paddy_rice, FULL)["cropYield"]
        assert group.required
        assert group.title == "Crop Yield *"
        assert group.css_class == "required-details"
        assert group.children["cropYield__harvested"].required
        assert not group.children["cropYield__seasons"].required

    def test_bare_leaf_member(self, builder, paddy_rice):
        field = builder.build(paddy_rice, FULL)["cropYield"].children["cropYield__yield_measurement_method"]
        assert field.kind == "select"
        assert field.label == "Yield measurement method"

    def test_untitled_enum_member_uses_enum_field(self, builder):
        tree = builder.build(_props(g={"allOf": [{"enum": ["a", "b"]}, {"description": "nothing"}]}), FULL)
        assert list(tree["g"].children) == ["g__enum_field"]

    def test_title_from_node(self, builder):
        tree = builder.build(_props(g={"title": "General", "allOf": [{"properties": {"a": {"type": "string"}}}]}), FULL)
        assert tree["g"].title == "General"
        assert not tree["g"].required

    def test_nested_allof_flattened_or_slugged(self, builder):
        profile = builder.build(NESTED_ALL_OF_SCHEMA, FULL)["profile"]
        assert list(profile.children) == ["farmer", "profile__region", "profile__age"]
        farmer = profile.children["farmer"]
        assert isinstance(farmer, GroupNode)
        assert farmer.title == "Profile"
        assert list(farmer.children) == ["farmer__name"]

    def test_oneof_member(self, builder):
        tree = builder.build(_props(choice={"allOf": [{"oneOf": [
            {"properties": {"a": {"type": "string"}}},
            {"properties": {"b": {"type": "string"}}},
        ]}]}), FULL)
        children = tree["choice"].children
        assert list(children) == ["choice_oneof", "choice_oneof_option_0", "choice_oneof_option_1"]
        assert isinstance(children["choice_oneof"], ConditionalNode)
        assert list(children["choice_oneof_option_0"].children) == ["choice_oneof_option_0__a"]

    def test_slugged_oneof_member(self, builder):
        tree = builder.build(_props(choice={"allOf": [{
            "x-metadata": {"slug": "method"},
            "oneOf": [{"properties": {"a": {"type": "string"}}}],
        }]}), FULL)
        assert list(tree["choice"].children) == ["method", "method_option_0"]


# =====================================================================
# oneOf
# =====================================================================


class TestOneOf:

    def test_conditional_and_branches(self, builder, paddy_rice):
        tree = builder.build(paddy_rice, FULL)
        residue = tree["residue"]
        assert isinstance(residue, ConditionalNode)
        assert residue.title == "Residue management"
        assert [(o.value, o.label) for o in residue.options] == [
            (0, "No residue management"),
            (1, "Residue removed or treated"),
        ]
        assert residue.default == 0
        assert residue.branches == ["residue_option_0", "residue_option_1"]

    def test_every_branch_is_prebuilt_with_visibility(self, builder, paddy_rice):
        tree = builder.build(paddy_rice, FULL)
        null_branch = tree["residue_option_0"]
        object_branch = tree["residue_option_1"]
        assert null_branch.children == {}
        assert null_branch.visible_when.field == "residue"
        assert null_branch.visible_when.equals == 0
        assert object_branch.visible_when.equals == 1
        assert list(object_branch.children) == ["residue_option_1__amount", "residue_option_1__burned"]

    def test_default_option_labels(self, builder):
        tree = builder.build(_props(x={"oneOf": [{"properties": {}}, {"properties": {}}]}), FULL)
        assert [o.label for o in tree["x"].options] == ["Option 1", "Option 2"]

    def test_required_not_enforced_in_branches(self, builder):
        tree = builder.build(_props(x={"oneOf": [{
            "type": "object", "required": ["a"],
            "properties": {
                "a": {"type": "string"},
                "nested": {"type": "object", "required": ["b"], "properties": {"b": {"type": "string"}}},
            },
        }]}), FULL)
        branch = tree["x_option_0"]
        assert not branch.children["x_option_0__a"].required
        nested = branch.children["x_option_0__nested"]
        assert not nested.required
        assert not nested.children["x_option_0__nested__b"].required

    def test_allof_and_oneof_branches(self, builder):
        tree = builder.build(_props(x={"oneOf": [
            {"allOf": [{"properties": {"a": {"type": "string"}}}]},
            {"oneOf": [{"properties": {"b": {"type": "string"}}}]},
        ]}), FULL)
        first = tree["x_option_0"].children
        second = tree["x_option_1"].children
        assert list(first) == ["x_option_0_allof"]
        assert list(first["x_option_0_allof"].children) == ["x_option_0_allof__a"]
        assert list(second) == ["x_option_1_oneof", "x_option_1_oneof_option_0"]


# =====================================================================
# Arrays
# =====================================================================


class TestArrays:

    def test_complex_array_has_one_item(self, builder):
        apps = builder.build(APPLICATIONS_SCHEMA, FULL)["apps"]
        assert isinstance(apps, RepeatableNode)
        assert list(apps.items) == ["apps_item_0"]
        item = apps.items["apps_item_0"]
        assert list(item.children) == ["apps_item_0__product", "apps_item_0__rate"]
        assert item.children["apps_item_0__product"].required

    def test_add_item_action_is_disabled(self, builder):
        apps = builder.build(APPLICATIONS_SCHEMA, FULL)["apps"]
        assert apps.add_item.name == "apps_add_more"
        assert apps.add_item.label == "Add Applications Item"
        assert apps.add_item.disabled is True

    def test_scalar_items_are_unsupported(self, builder):
        tags = builder.build(_props(tags={"type": "array", "items": {"type": "string"}}), FULL)["tags"]
        assert tags.kind == "unsupported"
        assert tags.message == UNSUPPORTED_ARRAY_MESSAGE

    def test_arrays_skipped_in_basic_mode(self, builder):
        assert "apps" not in builder.build(APPLICATIONS_SCHEMA, BASIC)

    def test_nested_array_item_keys_use_full_key(self, builder, paddy_rice):
        pesticide = builder.build(paddy_rice, FULL)["pesticide"]
        apps = pesticide.children["pesticide__applications"]
        assert list(apps.items) == ["pesticide__applications_item_0"]

    def test_allof_items(self, builder, paddy_rice):
        fertilisers = builder.build(paddy_rice, FULL)["fertiliser"].children["fertiliser__fertilisers"]
        item = fertilisers.items["fertiliser__fertilisers_item_0"]
        group = item.children["fertiliser__fertilisers_item_0_allOf"]
        assert group.title == "Fertilisers 1"
        assert group.collapsible
        assert list(group.children) == [
            "fertiliser__fertilisers_item_0_allOf__product",
            "fertiliser__fertilisers_item_0_allOf__amount",
        ]

    def test_oneof_items(self, builder):
        item = builder.build(ONE_OF_ITEMS_SCHEMA, FULL)["things"].items["things_item_0"]
        assert list(item.children) == [
            "things_item_0_oneof",
            "things_item_0_oneof_option_0",
            "things_item_0_oneof_option_1",
        ]

    def test_build_item_with_later_index(self, builder):
        array_schema = APPLICATIONS_SCHEMA["properties"]["apps"]
        key, item = builder.build_item("apps", array_schema, 2, FULL)
        assert key == "apps_item_2"
        assert list(item.children) == ["apps_item_2__product", "apps_item_2__rate"]


# =====================================================================
# Operation mode
# =====================================================================


class TestOperationMode:

    def test_ignored_sections_become_placeholders_in_basic(self, builder, paddy_rice):
        tree = builder.build(paddy_rice, BASIC)
        assert isinstance(tree["pesticide"], PlaceholderNode)
        assert isinstance(tree["fertiliser"], PlaceholderNode)
        keys = [k for k, _ in iter_fields(tree)]
        assert not any(k.startswith(("pesticide", "fertiliser")) for k in keys)

    def test_ignored_sections_rendered_in_full(self, builder, paddy_rice):
        tree = builder.build(paddy_rice, FULL)
        assert isinstance(tree["pesticide"], GroupNode)
        keys = [k for k, _ in iter_fields(tree)]
        assert "pesticide__applications_item_0__product" in keys

    def test_basic_and_full_share_the_rest(self, builder, paddy_rice):
        basic = builder.build(paddy_rice, BASIC)
        full = builder.build(paddy_rice, FULL)
        assert list(basic) == list(full)
        assert basic["cropYield"] == full["cropYield"]

    def test_mode_accepts_strings(self, builder):
        assert builder.build(APPLICATIONS_SCHEMA, "full")["apps"].kind == "repeatable"

    def test_invalid_mode_raises(self, builder):
        with pytest.raises(ValueError):
            builder.build(CROP_AREA_SCHEMA, "advanced")


# =====================================================================
# Degenerate roots
# =====================================================================


class TestRoot:

    @pytest.mark.parametrize("schema", [{}, {"type": "object"}, {"type": "string"}, "junk", None])
    def test_root_without_properties_builds_nothing(self, builder, schema):
        assert builder.build(schema, FULL) == {}

    def test_iter_fields_covers_the_whole_pathway(self, builder, paddy_rice):
        keys = [k for k, _ in iter_fields(builder.build(paddy_rice, FULL))]
        assert keys[:4] == ["cropType", "area__value", "area__unit", "notes"]
        assert "residue_option_1__burned" in keys
        assert "waterRegime_option_1__aerationDays" in keys
        assert len(keys) == len(set(keys))

    def test_tree_survives_json_round_trip(self, builder, paddy_rice):
        form = builder.build(paddy_rice, FULL)
        dumped = FormTreeAdapter.dump_python(form, mode="json")
        assert FormTreeAdapter.validate_python(dumped) == form

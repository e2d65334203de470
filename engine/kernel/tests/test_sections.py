"""
EPK Kernel — Section model tests

move / toggle / add_custom / delete / update_field over the default set,
plus the document boundary (parse and serialize).
"""

import pytest

from engine.kernel.sections import (
    add_custom,
    default_sections,
    delete,
    fallback_sections,
    find_section,
    move,
    sections_from_document,
    sections_to_document,
    toggle_visibility,
    update_field,
)
from engine.kernel.types import CustomSection, VaultSection


def types_of(sections):
    return [s.type for s in sections]


class TestDefaults:
    def test_default_order(self):
        assert types_of(default_sections()) == ["contact", "vault", "songs", "videos", "tour", "press"]

    def test_default_ids_match_types_and_all_visible(self):
        for section in default_sections():
            assert section.id == section.type
            assert section.visible is True

    def test_default_titles(self):
        titles = [s.title for s in default_sections()]
        assert titles == ["Contact", "The Vault Assets", "Songs", "Videos", "Tour Dates", "Press & Reviews"]

    def test_fallback_order_differs_from_default(self):
        assert types_of(fallback_sections()) == ["songs", "videos", "tour", "press", "vault", "contact"]
        assert types_of(fallback_sections()) != types_of(default_sections())


class TestMove:
    def test_move_up_swaps_with_previous(self):
        result = move(default_sections(), 2, "up")
        assert types_of(result)[:3] == ["contact", "songs", "vault"]

    def test_move_down_swaps_with_next(self):
        result = move(default_sections(), 0, "down")
        assert types_of(result)[:2] == ["vault", "contact"]

    @pytest.mark.parametrize("index", [1, 2, 3, 4, 5])
    def test_up_then_down_restores_order(self, index):
        original = default_sections()
        result = move(move(original, index, "up"), index - 1, "down")
        assert result == original

    def test_move_first_up_is_noop(self):
        original = default_sections()
        assert move(original, 0, "up") == original

    def test_move_last_down_is_noop(self):
        original = default_sections()
        assert move(original, len(original) - 1, "down") == original

    @pytest.mark.parametrize("index", [-1, 6, 100])
    def test_out_of_range_is_noop(self, index):
        original = default_sections()
        assert move(original, index, "down") == original

    def test_input_not_mutated(self):
        original = default_sections()
        snapshot = list(original)
        move(original, 1, "up")
        assert original == snapshot


class TestToggle:
    def test_toggle_flips_visible(self):
        result = toggle_visibility(default_sections(), 3)
        assert result[3].visible is False
        assert all(s.visible for i, s in enumerate(result) if i != 3)

    def test_toggle_twice_restores(self):
        original = default_sections()
        assert toggle_visibility(toggle_visibility(original, 3), 3) == original

    def test_toggle_does_not_mutate_input(self):
        original = default_sections()
        toggle_visibility(original, 0)
        assert original[0].visible is True


class TestAddCustom:
    def test_appends_empty_visible_custom(self):
        result = add_custom(default_sections())
        assert len(result) == 7
        added = result[-1]
        assert isinstance(added, CustomSection)
        assert added.visible is True
        assert added.title == "New Section"
        assert added.content_kind == "text"
        assert (added.content, added.url, added.file_url) == ("", "", "")
        assert added.id.startswith("custom_")

    def test_ids_are_unique(self):
        sections = add_custom(add_custom(default_sections()))
        ids = [s.id for s in sections]
        assert len(ids) == len(set(ids))


class TestDelete:
    def test_delete_vault_is_unconditional(self):
        result = delete(default_sections(), 1)
        assert types_of(result) == ["contact", "songs", "videos", "tour", "press"]
        assert not any(isinstance(s, VaultSection) for s in result)

    def test_delete_out_of_range_is_noop(self):
        original = default_sections()
        assert delete(original, 9) == original


class TestUpdateField:
    def test_updates_one_field_by_id(self):
        sections = add_custom(default_sections())
        custom_id = sections[-1].id
        result = update_field(sections, custom_id, "content", "Hello")
        assert find_section(result, custom_id).content == "Hello"
        assert find_section(result, custom_id).title == "New Section"
        assert types_of(result) == types_of(sections)

    def test_title_on_fixed_section(self):
        result = update_field(default_sections(), "songs", "title", "Discography")
        assert find_section(result, "songs").title == "Discography"

    def test_unknown_id_is_noop(self):
        original = default_sections()
        assert update_field(original, "missing", "title", "X") == original

    def test_id_is_not_settable(self):
        with pytest.raises(ValueError):
            update_field(default_sections(), "songs", "id", "other")

    def test_payload_field_not_on_fixed_section(self):
        with pytest.raises(ValueError):
            update_field(default_sections(), "songs", "content", "text")

    def test_content_kind_must_be_known(self):
        sections = add_custom(default_sections())
        with pytest.raises(ValueError):
            update_field(sections, sections[-1].id, "content_kind", "gif")

    def test_visible_must_be_bool(self):
        with pytest.raises(ValueError):
            update_field(default_sections(), "songs", "visible", "no")


class TestDocumentBoundary:
    def test_round_trip(self):
        sections = add_custom(default_sections())
        assert sections_from_document({"sections": sections_to_document(sections)}) == sections

    def test_absent_sections_is_none(self):
        assert sections_from_document({"display_name": "X"}) is None

    def test_unknown_types_are_skipped(self):
        doc = {"sections": [{"id": "songs", "type": "songs"}, {"id": "x", "type": "marquee"}, "junk"]}
        assert types_of(sections_from_document(doc)) == ["songs"]

    def test_missing_fields_take_defaults(self):
        parsed = sections_from_document({"sections": [{"id": "c1", "type": "custom"}]})
        assert parsed[0].title == "New Section"
        assert parsed[0].visible is True

    def test_serialized_form_carries_type(self):
        doc = sections_to_document(default_sections())
        assert doc[1] == {"id": "vault", "type": "vault", "title": "The Vault Assets", "visible": True}

"""Tests for the shared field walker utility."""

from sophos_parser.domain.field_walker import walk_field_paths


class TestWalkFieldPaths:
    """Tests for walk_field_paths (read-only collection)."""

    def test_simple_key(self):
        assert walk_field_paths({'Name': 'Srv1'}, 'Name') == ['Srv1']

    def test_single_wrapped_item(self):
        assert walk_field_paths({'Zone': 'LAN'}, 'Zone') == ['LAN']

    def test_wrapped_list(self):
        assert walk_field_paths({'Zone': ['LAN', 'DMZ']}, 'Zone') == ['LAN', 'DMZ']

    def test_collapsed_list_drops_item_tag(self):
        assert walk_field_paths(['LAN', 'DMZ'], 'Zone') == ['LAN', 'DMZ']

    def test_nested_wrapper(self):
        data = {'MemberInterface': {'Interface': ['Port1', 'Port2']}}
        assert walk_field_paths(data, 'MemberInterface.Interface') == ['Port1', 'Port2']

    def test_list_of_objects(self):
        data = [{'Name': 'a'}, {'Name': 'b'}, {'Other': 'c'}]
        assert walk_field_paths(data, 'Name') == ['a', 'b']

    def test_empty_path_collects_leaves(self):
        assert walk_field_paths(['a', 'b'], '') == ['a', 'b']
        assert walk_field_paths('a', '') == ['a']

    def test_empty_strings_skipped(self):
        assert walk_field_paths(['a', '', 'b'], 'Zone') == ['a', 'b']

    def test_missing_key_returns_empty(self):
        assert walk_field_paths({}, 'Zone') == []
        assert walk_field_paths({'Network': 'x'}, 'Zone') == []

    def test_none_data_returns_empty(self):
        assert walk_field_paths(None, 'Zone') == []

    def test_bare_string_with_path_returns_empty(self):
        assert walk_field_paths('LAN', 'Zone') == []

"""Tests for the entity-level differ."""

from sophos_parser.api import diff_configurations, parse_configuration
from sophos_parser.diff.engine import DiffEngine, group_diff_by_type, index_entities
from sophos_parser.domain.enums import ChangeType
from sophos_parser.domain.models import ConfigurationModel, Entity
from tests.conftest import FULL_CONFIG_XML

OLD_XML = """\
<Configuration>
  <IPHost transactionid="1"><Name>Srv1</Name><IPAddress>10.0.0.1</IPAddress></IPHost>
  <IPHost transactionid="2"><Name>Old</Name><IPAddress>10.0.0.9</IPAddress></IPHost>
  <Zone transactionid="3"><Name>LAN</Name><Type>LAN</Type></Zone>
</Configuration>
"""

NEW_XML = """\
<Configuration>
  <IPHost transactionid="11"><Name>Srv1</Name><IPAddress>10.0.0.2</IPAddress></IPHost>
  <Zone transactionid="13"><Name>LAN</Name><Type>LAN</Type></Zone>
  <Zone transactionid="14"><Name>Guest</Name><Type>LAN</Type></Zone>
</Configuration>
"""


def _keys(items) -> set[str]:
    return {item.key for item in items}


class TestDiffClassification:
    """Tests for added/removed/modified/unchanged buckets."""

    def setup_method(self):
        self.result = diff_configurations(OLD_XML, NEW_XML)

    def test_modified_field(self):
        [item] = self.result.modified
        assert item.key == 'IPHost|Srv1'
        [change] = item.changes
        assert change.field == 'IPAddress'
        assert change.change_type is ChangeType.MODIFIED
        assert (change.old_value, change.new_value) == ('10.0.0.1', '10.0.0.2')
        assert 'IPAddress>10.0.0.1<' in item.old_raw_xml
        assert 'IPAddress>10.0.0.2<' in item.new_raw_xml

    def test_added_and_removed(self):
        assert _keys(self.result.added) == {'Zone|Guest'}
        assert _keys(self.result.removed) == {'IPHost|Old'}

    def test_transaction_id_change_alone_is_unchanged(self):
        assert _keys(self.result.unchanged) == {'Zone|LAN'}

    def test_no_entity_in_two_buckets(self):
        buckets = [self.result.added, self.result.removed, self.result.modified, self.result.unchanged]
        keys = [item.key for bucket in buckets for item in bucket]
        assert len(keys) == len(set(keys))

    def test_summary_derived(self):
        summary = self.result.summary
        assert (summary.added, summary.removed, summary.modified, summary.unchanged) == (1, 1, 1, 1)
        assert summary.total_old == 3
        assert summary.total_new == 3


class TestDiffProperties:
    """Tests for idempotence, symmetry and order independence."""

    def test_idempotent(self):
        model = parse_configuration(FULL_CONFIG_XML)
        result = diff_configurations(model, model)
        assert result.added == [] and result.removed == [] and result.modified == []
        assert result.summary.unchanged == len([e for e in model.all_entities() if e.root_level])

    def test_idempotent_across_parses(self):
        result = diff_configurations(FULL_CONFIG_XML, FULL_CONFIG_XML)
        assert result.summary.added == result.summary.removed == result.summary.modified == 0

    def test_symmetric(self):
        forward = diff_configurations(OLD_XML, NEW_XML)
        backward = diff_configurations(NEW_XML, OLD_XML)
        assert _keys(forward.added) == _keys(backward.removed)
        assert _keys(forward.removed) == _keys(backward.added)
        assert _keys(forward.modified) == _keys(backward.modified)

    def test_array_reorder_has_no_field_change(self):
        old = '<Configuration><IPHostGroup transactionid=""><Name>G</Name><HostList><Host>a</Host><Host>b</Host></HostList></IPHostGroup></Configuration>'
        new = '<Configuration><IPHostGroup transactionid=""><Name>G</Name><HostList><Host>b</Host><Host>a</Host></HostList></IPHostGroup></Configuration>'
        result = diff_configurations(old, new)
        assert result.modified == []
        assert _keys(result.unchanged) == {'IPHostGroup|G'}

    def test_array_member_change_reported(self):
        old = '<Configuration><IPHostGroup transactionid=""><Name>G</Name><HostList><Host>a</Host><Host>b</Host></HostList></IPHostGroup></Configuration>'
        new = '<Configuration><IPHostGroup transactionid=""><Name>G</Name><HostList><Host>b</Host><Host>c</Host></HostList></IPHostGroup></Configuration>'
        [item] = diff_configurations(old, new).modified
        [change] = item.changes
        assert change.field == 'HostList'
        assert change.detail.removed == ['a']
        assert change.detail.added == ['c']


class TestEngineDetails:
    """Tests for identity collapse, attributes and grouping."""

    def test_identity_collision_first_wins(self, caplog):
        model = ConfigurationModel(collections={'ip_hosts': [
            Entity(tag='IPHost', name='dup', fields={'IPAddress': '1'}),
            Entity(tag='IPHost', name='dup', fields={'IPAddress': '2'}),
        ]})
        index = index_entities(model)
        assert index['IPHost|dup'].fields['IPAddress'] == '1'
        assert 'share a tag|name key' in caplog.text

    def test_attribute_changes_reported(self):
        old = Entity(tag='Zone', name='LAN', attributes={'mode': 'a', 'transactionid': '1'})
        new = Entity(tag='Zone', name='LAN', attributes={'mode': 'b', 'transactionid': '2'})
        [change] = DiffEngine().compare_entities(old, new)
        assert change.field == '@mode'

    def test_items_sorted_by_tag_and_name(self):
        old = ConfigurationModel()
        new = ConfigurationModel(collections={'ip_hosts': [
            Entity(tag='IPHost', name='b'), Entity(tag='IPHost', name='a'),
        ]}, entities_by_tag={'Zone': [Entity(tag='Zone', name='0')]})
        result = DiffEngine().diff(old, new)
        assert [(i.tag, i.name) for i in result.added] == [('IPHost', 'a'), ('IPHost', 'b'), ('Zone', '0')]

    def test_group_by_type(self):
        grouped = group_diff_by_type(diff_configurations(OLD_XML, NEW_XML))
        assert list(grouped) == ['IPHost', 'Zone']
        assert [i.name for i in grouped['IPHost']['removed']] == ['Old']
        assert [i.name for i in grouped['IPHost']['modified']] == ['Srv1']
        assert [i.name for i in grouped['Zone']['added']] == ['Guest']
        assert [i.name for i in grouped['Zone']['unchanged']] == ['LAN']


RULE_ORDER_XML = """\
<Configuration>
  <FirewallRule transactionid=""><Name>R1</Name><Status>Enable</Status></FirewallRule>
  <FirewallRule transactionid=""><Name>R2</Name><Status>Enable</Status><After><Name>R1</Name></After></FirewallRule>
  <FirewallRule transactionid=""><Name>R3</Name><Status>Enable</Status><After><Name>{after}</Name></After></FirewallRule>
</Configuration>
"""


class TestNestedEntities:
    """Tests that named sub-elements are diffed through their owning entity."""

    def test_moved_rule_is_only_a_rule_modification(self):
        result = diff_configurations(RULE_ORDER_XML.format(after='R2'), RULE_ORDER_XML.format(after='R9'))
        assert result.added == []
        assert result.removed == []
        [item] = result.modified
        assert item.key == 'FirewallRule|R3'
        [change] = item.changes
        assert change.field == 'After'

    def test_nested_entities_extracted_but_not_diffed(self):
        model = parse_configuration(RULE_ORDER_XML.format(after='R2'))
        assert all(not entity.root_level for entity in model.entities_by_tag['After'])
        assert not any(key.startswith('After|') for key in index_entities(model))

"""Tests for entity extraction and structural relationships."""

from sophos_parser.config_reader import parse_document
from sophos_parser.domain.models import Entity
from sophos_parser.extraction.entity_extractor import EntityExtractor, has_content, is_meaningful
from tests.conftest import IPHOST_XML


def _extract(xml: str):
    return EntityExtractor().extract(parse_document(xml))


class TestKnownCollections:
    """Tests for the fixed entity collections."""

    def test_single_ip_host(self):
        model = _extract(IPHOST_XML)
        [host] = model.ip_hosts
        assert host.tag == 'IPHost'
        assert host.name == 'Srv1'
        assert host.transaction_id == '1'
        assert host.fields['IPAddress'] == '10.0.0.1'

    def test_collections_from_full_config(self, full_model):
        assert [h.name for h in full_model.ip_hosts] == ['Srv1', 'Srv1-Copy', '##ALL_RW', '##WWAN1', 'Srv2']
        assert [g.name for g in full_model.collection('ip_host_groups')] == ['Servers', 'WebServers']
        assert full_model.collection('mac_hosts') == []

    def test_services_selector_maps_to_canonical_tag(self, full_model):
        [service] = full_model.services
        assert service.tag == 'Service'
        assert service.name == 'HTTPS-Alt'
        assert service.fields['ServiceDetails'] == {
            'ServiceDetail': {'SourcePort': '1:65535', 'DestinationPort': '8443', 'Protocol': 'TCP'},
        }

    def test_policy_wrappers_are_not_services(self, full_model):
        assert all(s.name != 'Service' for s in full_model.services)

    def test_duplicate_key_first_wins(self):
        xml = (
            '<Configuration>'
            '<IPHost transactionid="5"><Name>a</Name><IPAddress>1</IPAddress></IPHost>'
            '<IPHost transactionid="5"><Name>a</Name><IPAddress>2</IPAddress></IPHost>'
            '</Configuration>'
        )
        [host] = _extract(xml).ip_hosts
        assert host.fields['IPAddress'] == '1'


class TestRulesAndMetadata:
    """Tests for dedicated records."""

    def test_metadata(self, full_model):
        assert full_model.metadata.api_version == '2000.1'
        assert full_model.metadata.ips_cat_ver == '1'
        assert full_model.metadata.is_wifi6 == '0'

    def test_firewall_rules(self, full_model):
        assert [r.name for r in full_model.firewall_rules] == [
            'Allow LAN to DMZ', 'Allow LAN to DMZ copy', 'Allow Srv1',
        ]
        assert [r.index for r in full_model.firewall_rules] == [0, 1, 2]
        assert full_model.firewall_rules[0].destination_networks == ['Srv1', 'Srv2']

    def test_firewall_rule_groups(self, full_model):
        [group] = full_model.firewall_rule_groups
        assert group.security_policy_list == ['Allow LAN to DMZ', 'Allow Srv1']


class TestDynamicEntities:
    """Tests for tags discovered from the document."""

    def test_discovered_tags(self, full_model):
        assert set(full_model.entities_by_tag) == {
            'Zone', 'Interface', 'LAG', 'VLAN', 'Alias', 'VPNIPSecConnection', 'XFRMInterface',
        }

    def test_zone_references_are_not_entities(self, full_model):
        assert [z.name for z in full_model.entities_by_tag['Zone']] == ['LAN', 'DMZ']

    def test_root_level_without_transaction_id_skipped(self):
        model = _extract('<Configuration><Zone><Name>LAN</Name></Zone></Configuration>')
        assert 'Zone' not in model.entities_by_tag

    def test_placeholder_entity_pruned(self):
        model = _extract('<Configuration><Zone transactionid=""><Description> </Description></Zone></Configuration>')
        assert 'Zone' not in model.entities_by_tag

    def test_transaction_id_alone_is_meaningful(self):
        model = _extract('<Configuration><Zone transactionid="9"><Type>LAN</Type></Zone></Configuration>')
        [zone] = model.entities_by_tag['Zone']
        assert zone.name == 'Zone'
        assert zone.transaction_id == '9'

    def test_every_entity_has_tag_and_name(self, full_model):
        for entity in full_model.all_entities():
            assert entity.tag
            assert entity.name

    def test_raw_xml_round_trip(self, full_model):
        for entity in full_model.ip_hosts + full_model.entities_by_tag['Zone']:
            again = _extract(f'<Configuration>{entity.raw_xml}</Configuration>')
            [copy] = [e for e in again.all_entities() if e.tag == entity.tag]
            assert (copy.tag, copy.name, copy.fields) == (entity.tag, entity.name, entity.fields)


class TestRelationships:
    """Tests for port, LAG and VPN relationships."""

    def test_ports(self, full_model):
        port1 = full_model.ports_with_entities['Port1']
        assert [v.name for v in port1.vlans] == ['Port1.10']
        assert [a.name for a in port1.aliases] == ['Port1:0']
        assert port1.vlans[0].interface == 'Port1'
        assert port1.vlans[0].zone == 'LAN'

    def test_xfrm_attached_to_vpn_wan_port(self, full_model):
        assert [x.name for x in full_model.ports_with_entities['Port2'].xfrm_interfaces] == ['xfrm1']

    def test_lag_members(self, full_model):
        lag = full_model.lags_with_members['lag0']
        assert lag.lag.member_interfaces == ['Port1', 'Port2']
        assert [m.name for m in lag.members] == ['Port1', 'Port2']

    def test_vpn_configurations_unwrapped(self, full_model):
        [vpn] = full_model.entities_by_tag['VPNIPSecConnection']
        assert vpn.name == 'Branch'
        assert vpn.config_index == 0
        assert vpn.fields['AliasLocalWANPort'] == 'Port2'

    def test_vpn_configurations_share_transaction_id(self):
        xml = (
            '<Configuration><VPNIPSecConnection transactionid="77">'
            '<Configuration><Name>a</Name></Configuration>'
            '<Configuration><Name>b</Name></Configuration>'
            '</VPNIPSecConnection></Configuration>'
        )
        vpns = _extract(xml).entities_by_tag['VPNIPSecConnection']
        assert [(v.name, v.transaction_id, v.config_index) for v in vpns] == [('a', '77', 0), ('b', '77', 1)]

    def test_root_level_marking(self, full_model):
        for tag in ('VPNIPSecConnection', 'VLAN', 'Alias', 'LAG', 'XFRMInterface', 'Zone'):
            assert all(e.root_level for e in full_model.entities_by_tag[tag]), tag
        assert all(e.root_level for e in full_model.ip_hosts)

    def test_nested_named_element_not_root_level(self):
        xml = (
            '<Configuration><FirewallRule transactionid=""><Name>R2</Name>'
            '<After><Name>R1</Name></After></FirewallRule></Configuration>'
        )
        [after] = _extract(xml).entities_by_tag['After']
        assert after.name == 'R1'
        assert not after.root_level

    def test_vlan_without_interface_grouped_as_unknown(self):
        model = _extract('<Configuration><VLAN transactionid=""><Name>v</Name></VLAN></Configuration>')
        assert [v.name for v in model.ports_with_entities['Unknown'].vlans] == ['v']


class TestMeaningfulness:
    """Tests for has_content and is_meaningful."""

    def test_has_content(self):
        assert has_content('x')
        assert not has_content('  ')
        assert has_content(['', 'a'])
        assert not has_content(['', ' '])
        assert has_content({'a': ''})
        assert not has_content({})
        assert not has_content(None)

    def test_is_meaningful(self):
        assert is_meaningful(Entity(tag='Zone', name='LAN'), 'Zone')
        assert not is_meaningful(Entity(tag='Zone', name='Zone'), 'Zone')
        assert not is_meaningful(Entity(tag='Zone', name='Zone', fields={'Type': ''}), 'Zone')
        assert is_meaningful(Entity(tag='Zone', name='Zone', transaction_id='1'), 'Zone')

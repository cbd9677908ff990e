"""Shared test fixtures."""

import pytest

from sophos_parser.config_reader import parse_document
from sophos_parser.extraction.entity_extractor import EntityExtractor


# ── Sample XML Content ───────────────────────────────────────────────────

IPHOST_XML = (
    '<Configuration><IPHost transactionid="1"><Name>Srv1</Name>'
    '<IPAddress>10.0.0.1</IPAddress></IPHost></Configuration>'
)

FIREWALL_RULE_XML = """\
<FirewallRule transactionid="">
  <Name>Allow LAN</Name>
  <Description>Outbound web</Description>
  <IPFamily>IPv4</IPFamily>
  <Status>Enable</Status>
  <Position>After</Position>
  <PolicyType>Network</PolicyType>
  <After>
    <Name>Block Bad</Name>
  </After>
  <NetworkPolicy>
    <Action>Accept</Action>
    <LogTraffic>Disable</LogTraffic>
    <SourceZones>
      <Zone>LAN</Zone>
      <Zone>DMZ</Zone>
    </SourceZones>
    <DestinationZones>
      <Zone>WAN</Zone>
    </DestinationZones>
    <SourceNetworks>
      <Network>Srv1</Network>
    </SourceNetworks>
    <Services>
      <Service>HTTP</Service>
      <Service>HTTPS</Service>
    </Services>
    <WebFilter>Allow All</WebFilter>
    <Exclusions>
      <SourceNetworks>
        <Network>Printer</Network>
      </SourceNetworks>
    </Exclusions>
  </NetworkPolicy>
</FirewallRule>
"""

USER_RULE_XML = """\
<FirewallRule transactionid="">
  <Name>Staff</Name>
  <PolicyType>User</PolicyType>
  <UserPolicy>
    <Action>Drop</Action>
    <Identity>
      <Member>Sales</Member>
      <Member>Support</Member>
    </Identity>
    <SourceZones>LAN</SourceZones>
  </UserPolicy>
</FirewallRule>
"""

SSL_RULE_XML = """\
<SSLTLSInspectionRule transactionid="">
  <Name>Decrypt Staff</Name>
  <Description>Inspect staff traffic</Description>
  <IsDefault>No</IsDefault>
  <Enable>Yes</Enable>
  <LogConnections>Enable</LogConnections>
  <DecryptAction>Decrypt</DecryptAction>
  <DecryptionProfile>Maximum compatibility</DecryptionProfile>
  <MoveTo>
    <Name>Exclusions by website</Name>
    <OrderBy>After</OrderBy>
  </MoveTo>
  <SourceZones>
    <Zone>LAN</Zone>
  </SourceZones>
  <DestinationZones>
    <Zone>WAN</Zone>
  </DestinationZones>
  <Identity>
    <Members>Sales</Members>
  </Identity>
  <Websites>
    <Activity>
      <Name>Banking</Name>
    </Activity>
  </Websites>
</SSLTLSInspectionRule>
"""

_RULE_POLICY = """\
    <NetworkPolicy>
      <Action>Accept</Action>
      <LogTraffic>Enable</LogTraffic>
      <SourceZones>
        <Zone>LAN</Zone>
      </SourceZones>
      <DestinationZones>
        <Zone>DMZ</Zone>
      </DestinationZones>
      <SourceNetworks>
        <Network>Servers</Network>
      </SourceNetworks>
      <DestinationNetworks>
{destinations}
      </DestinationNetworks>
      <Services>
        <Service>HTTPS-Alt</Service>
      </Services>
    </NetworkPolicy>
"""


def _rule(name: str, *destinations: str) -> str:
    networks = '\n'.join(f'        <Network>{d}</Network>' for d in destinations)
    return (
        f'  <FirewallRule transactionid="">\n'
        f'    <Name>{name}</Name>\n'
        f'    <IPFamily>IPv4</IPFamily>\n'
        f'    <Status>Enable</Status>\n'
        f'    <PolicyType>Network</PolicyType>\n'
        + _RULE_POLICY.format(destinations=networks)
        + '  </FirewallRule>\n'
    )


FULL_CONFIG_XML = """\
<?xml version="1.0" encoding="UTF-8"?>
<Configuration APIVersion="2000.1" IPS_CAT_VER="1">
  <IPHost transactionid="">
    <Name>Srv1</Name>
    <IPFamily>IPv4</IPFamily>
    <HostType>IP</HostType>
    <IPAddress>10.0.0.1</IPAddress>
  </IPHost>
  <IPHost transactionid="">
    <Name>Srv1-Copy</Name>
    <IPFamily>IPv4</IPFamily>
    <HostType>IP</HostType>
    <IPAddress>10.0.0.1</IPAddress>
  </IPHost>
  <IPHost transactionid="">
    <Name>##ALL_RW</Name>
    <IPFamily>IPv4</IPFamily>
    <HostType>System Host</HostType>
  </IPHost>
  <IPHost transactionid="">
    <Name>##WWAN1</Name>
    <IPFamily>IPv4</IPFamily>
    <HostType>System Host</HostType>
  </IPHost>
  <IPHost transactionid="">
    <Name>Srv2</Name>
    <IPFamily>IPv4</IPFamily>
    <HostType>IP</HostType>
    <IPAddress>10.0.0.2</IPAddress>
  </IPHost>
  <IPHostGroup transactionid="">
    <Name>Servers</Name>
    <IPFamily>IPv4</IPFamily>
    <HostList>
      <Host>Srv1</Host>
      <Host>Srv2</Host>
    </HostList>
  </IPHostGroup>
  <IPHostGroup transactionid="">
    <Name>WebServers</Name>
    <IPFamily>IPv4</IPFamily>
    <HostList>
      <Host>Srv2</Host>
    </HostList>
  </IPHostGroup>
  <Services transactionid="">
    <Name>HTTPS-Alt</Name>
    <Type>TCPorUDP</Type>
    <ServiceDetails>
      <ServiceDetail>
        <SourcePort>1:65535</SourcePort>
        <DestinationPort>8443</DestinationPort>
        <Protocol>TCP</Protocol>
      </ServiceDetail>
    </ServiceDetails>
  </Services>
  <Zone transactionid="">
    <Name>LAN</Name>
    <Type>LAN</Type>
  </Zone>
  <Zone transactionid="">
    <Name>DMZ</Name>
    <Type>DMZ</Type>
  </Zone>
  <Interface transactionid="">
    <Name>Port1</Name>
    <Hardware>Port1</Hardware>
    <NetworkZone>LAN</NetworkZone>
  </Interface>
  <Interface transactionid="">
    <Name>Port2</Name>
    <Hardware>Port2</Hardware>
    <NetworkZone>WAN</NetworkZone>
  </Interface>
  <LAG transactionid="">
    <Name>lag0</Name>
    <MemberInterface>
      <Interface>Port1</Interface>
      <Interface>Port2</Interface>
    </MemberInterface>
  </LAG>
  <VLAN transactionid="">
    <Name>Port1.10</Name>
    <Interface>Port1</Interface>
    <Zone>LAN</Zone>
    <VLANID>10</VLANID>
  </VLAN>
  <Alias transactionid="">
    <Name>Port1:0</Name>
    <Interface>Port1</Interface>
    <IPAddress>10.0.1.1</IPAddress>
  </Alias>
  <VPNIPSecConnection transactionid="">
    <Configuration>
      <Name>Branch</Name>
      <AliasLocalWANPort>Port2</AliasLocalWANPort>
    </Configuration>
  </VPNIPSecConnection>
  <XFRMInterface transactionid="">
    <Name>xfrm1</Name>
    <Connectionname>Branch</Connectionname>
  </XFRMInterface>
""" + _rule('Allow LAN to DMZ', 'Srv1', 'Srv2') + _rule('Allow LAN to DMZ copy', 'Srv2', 'Srv1') \
    + _rule('Allow Srv1', 'Srv1') + """\
  <FirewallRuleGroup transactionid="">
    <Name>Web rules</Name>
    <Description>Rules for web</Description>
    <SecurityPolicyList>
      <SecurityPolicy>Allow LAN to DMZ</SecurityPolicy>
      <SecurityPolicy>Allow Srv1</SecurityPolicy>
    </SecurityPolicyList>
    <Policytype>Any</Policytype>
  </FirewallRuleGroup>
</Configuration>
"""

MALFORMED_XML = '<Configuration><IPHost><Name>Srv1</Name></Configuration>'


# ── Fixtures ─────────────────────────────────────────────────────────────

@pytest.fixture
def tmp_xml(tmp_path):
    """Factory fixture: write XML content to a temp file and return its path."""
    def _write(content: str, filename: str = "Entities.xml") -> str:
        path = tmp_path / filename
        path.write_text(content, encoding='utf-8')
        return str(path)
    return _write


@pytest.fixture
def full_document():
    return parse_document(FULL_CONFIG_XML)


@pytest.fixture
def full_model(full_document):
    return EntityExtractor().extract(full_document)

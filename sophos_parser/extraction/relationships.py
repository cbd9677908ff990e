"""Structural relationships between interface-like entities.

Sub-interfaces (VLAN, Alias, XFRMInterface) are grouped under the
physical port they sit on, Interface entities under the LAG that bonds
them, and each Configuration block of a VPNIPSecConnection becomes an
entity of its own.
"""

import logging
import xml.etree.ElementTree as ET

from sophos_parser.config_reader import ParsedDocument
from sophos_parser.domain.constants import TRANSACTION_ID_ATTR
from sophos_parser.domain.field_walker import walk_field_paths
from sophos_parser.domain.models import Entity, LagMembers, PortEntities
from sophos_parser.domain.value_parser import element_text, local_tag
from sophos_parser.parsers.entity_parser import EntityParser

logger = logging.getLogger(__name__)

UNKNOWN_PORT = 'Unknown'


def _first_descendant_text(element: ET.Element, tag: str) -> str | None:
    for el in element.iter():
        if el is not element and local_tag(el) == tag:
            return element_text(el)
    return None


def _definitions(document: ParsedDocument, tag: str) -> list[ET.Element]:
    """Elements of a tag that have children; bare-text ones are references."""
    return [el for el in document.find_all(tag) if len(el) > 0]


def _entity_name(entity: Entity) -> str:
    if entity.name:
        return entity.name
    name = entity.fields.get('Name')
    return name if isinstance(name, str) else ''


# ── Ports ────────────────────────────────────────────────────────────────

def extract_vlans(document: ParsedDocument, parser: EntityParser) -> list[Entity]:
    vlans = []
    for idx, el in enumerate(_definitions(document, 'VLAN')):
        entity = parser.parse(el, idx, 'VLAN')
        entity.root_level = document.is_root_level(el)
        entity.interface = _first_descendant_text(el, 'Interface')
        entity.zone = _first_descendant_text(el, 'Zone')
        vlans.append(entity)
    return vlans


def extract_aliases(document: ParsedDocument, parser: EntityParser) -> list[Entity]:
    aliases = []
    for idx, el in enumerate(_definitions(document, 'Alias')):
        entity = parser.parse(el, idx, 'Alias')
        entity.root_level = document.is_root_level(el)
        entity.interface = _first_descendant_text(el, 'Interface')
        aliases.append(entity)
    return aliases


def group_by_port(vlans: list[Entity], aliases: list[Entity]) -> dict[str, PortEntities]:
    """Group VLANs and aliases by parent interface; unresolved ones go under 'Unknown'."""
    ports: dict[str, PortEntities] = {}
    for vlan in vlans:
        ports.setdefault(vlan.interface or UNKNOWN_PORT, PortEntities()).vlans.append(vlan)
    for alias in aliases:
        ports.setdefault(alias.interface or UNKNOWN_PORT, PortEntities()).aliases.append(alias)
    return ports


# ── LAGs ─────────────────────────────────────────────────────────────────

def extract_lags(document: ParsedDocument, parser: EntityParser) -> list[Entity]:
    lags = []
    for idx, el in enumerate(_definitions(document, 'LAG')):
        entity = parser.parse(el, idx, 'LAG')
        entity.root_level = document.is_root_level(el)
        members = walk_field_paths(entity.fields.get('MemberInterface'), 'Interface')
        if not members:
            members = [
                text for text in (element_text(i) for i in el.findall('.//MemberInterface/Interface'))
                if text
            ]
        entity.member_interfaces = members
        lags.append(entity)
    return lags


def group_lag_members(lags: list[Entity], interfaces: list[Entity]) -> dict[str, LagMembers]:
    """Attach Interface entities to the LAG that lists them as members."""
    lags_with_members: dict[str, LagMembers] = {}
    interface_to_lag: dict[str, str] = {}

    for lag in lags:
        lag_name = _entity_name(lag)
        if not lag_name:
            continue
        lags_with_members.setdefault(lag_name, LagMembers(lag=lag))
        for interface_name in lag.member_interfaces:
            interface_to_lag[interface_name] = lag_name

    for interface in interfaces:
        lag_name = interface_to_lag.get(_entity_name(interface))
        if lag_name:
            lags_with_members[lag_name].members.append(interface)
    return lags_with_members


# ── VPN & XFRM ───────────────────────────────────────────────────────────

def extract_vpn_connections(document: ParsedDocument, parser: EntityParser) -> list[Entity]:
    """One entity per Configuration block, sharing the connection's transaction id."""
    connections: list[Entity] = []
    for vpn_el in document.find_all('VPNIPSecConnection'):
        transaction_id = vpn_el.get(TRANSACTION_ID_ATTR, '')
        root_level = document.is_root_level(vpn_el)
        config_elements = [
            el for el in vpn_el.iter() if el is not vpn_el and local_tag(el) == 'Configuration'
        ]
        for config_index, config_el in enumerate(config_elements):
            entity = parser.parse(config_el, len(connections), 'VPNIPSecConnection')
            entity.transaction_id = transaction_id
            entity.config_index = config_index
            entity.root_level = root_level
            connections.append(entity)
    return connections


def extract_xfrm_interfaces(document: ParsedDocument, parser: EntityParser) -> list[Entity]:
    interfaces = []
    for idx, el in enumerate(_definitions(document, 'XFRMInterface')):
        entity = parser.parse(el, idx, 'XFRMInterface')
        entity.root_level = document.is_root_level(el)
        interfaces.append(entity)
    return interfaces


def attach_xfrm_interfaces(
    ports: dict[str, PortEntities],
    xfrm_interfaces: list[Entity],
    vpn_connections: list[Entity],
) -> None:
    """Add XFRM interfaces to the port named by their VPN's AliasLocalWANPort (in place)."""
    wan_port_by_connection: dict[str, str] = {}
    for connection in vpn_connections:
        wan_port = connection.fields.get('AliasLocalWANPort')
        name = _entity_name(connection)
        if name and isinstance(wan_port, str) and wan_port:
            wan_port_by_connection[name] = wan_port

    for xfrm in xfrm_interfaces:
        connection_name = xfrm.fields.get('Connectionname')
        if not isinstance(connection_name, str):
            continue
        port = wan_port_by_connection.get(connection_name)
        if port:
            ports.setdefault(port, PortEntities()).xfrm_interfaces.append(xfrm)
        else:
            logger.debug("XFRM interface %s has no matching VPN connection", xfrm.name)

"""Shared tag vocabularies and entity-boundary policy.

Centralizes the tag sets that decide what counts as an entity, which
tags may carry references to other entities, and which fields the
rule flattener reads. Extraction, reference indexing and diffing all
read from here so that they agree on what "the same entity" is.
"""

# ── Entity Boundaries ────────────────────────────────────────────────────

# Root/container tags: never entities, and ancestor walks stop at them
CONTAINER_TAGS: frozenset[str] = frozenset({'Configuration', 'Entities', 'Root'})

# Containers whose direct children are top-level entities
ROOT_PARENT_TAGS: frozenset[str] = frozenset({'Configuration', 'Entities'})

# Nested helper elements that are never standalone entities
EXCLUDED_TAGS: frozenset[str] = CONTAINER_TAGS | {'Entity', 'MoveTo', 'Activity'}

NAME_TAG = 'Name'
TRANSACTION_ID_ATTR = 'transactionid'

# Direct children tried, in order, when an entity has no Name
NAME_FALLBACK_TAGS: tuple[str, ...] = ('ID', 'Label')

# ── Known Entity Collections ─────────────────────────────────────────────

# collection key -> (selector tags, canonical tag)
KNOWN_COLLECTIONS: dict[str, tuple[tuple[str, ...], str]] = {
    'ip_hosts': (('IPHost',), 'IPHost'),
    'fqdn_hosts': (('FQDNHost',), 'FQDNHost'),
    'mac_hosts': (('MACHost',), 'MACHost'),
    'services': (('Service', 'Services'), 'Service'),
    'groups': (('Group',), 'Group'),
    'fqdn_host_groups': (('FQDNHostGroup',), 'FQDNHostGroup'),
    'ip_host_groups': (('IPHostGroup',), 'IPHostGroup'),
    'service_groups': (('ServiceGroup',), 'ServiceGroup'),
}

# Tags handled outside the dynamic catch-all
KNOWN_TAGS: frozenset[str] = frozenset({
    'FirewallRule', 'FirewallRuleGroup',
    'IPHost', 'FQDNHost', 'MACHost', 'Service', 'Services', 'Group',
    'FQDNHostGroup', 'IPHostGroup', 'ServiceGroup',
    'VLAN', 'Alias',
})

# ── Reference Discovery ──────────────────────────────────────────────────

# Closed allow-list of tags whose text may name another entity
REFERENCE_TAGS: tuple[str, ...] = (
    'Network', 'Zone', 'Service', 'Group', 'Member', 'Members',
    'Interface', 'VLAN', 'Alias', 'Schedule', 'WebFilter',
    'ApplicationControl', 'IntrusionPrevention', 'Country',
    'Application', 'Activity', 'Category', 'Identity',
    'SourceNetwork', 'DestinationNetwork', 'SourceZone', 'DestinationZone',
    'SourceService', 'DestinationService', 'FQDN', 'IPAddress',
    'MACAddress', 'Host', 'HostGroup', 'ServiceGroup',
    'CertificateAuthority', 'Certificate', 'After', 'Before',
    'MoveTo', 'DecryptionProfile', 'IPFamily',
    'User', 'DisableUser', 'AllowedUser', 'AuthenticationServer',
    'SDWANProfileName', 'LinkSelection',
)

REFERENCE_CHUNK_SIZE = 50

# ── Firewall Rule Policy Fields ──────────────────────────────────────────

POLICY_TAGS: tuple[str, ...] = ('NetworkPolicy', 'UserPolicy')

# flattened attribute -> (policy field, wrapped item tag)
POLICY_LIST_FIELDS: dict[str, tuple[str, str]] = {
    'source_zones': ('SourceZones', 'Zone'),
    'destination_zones': ('DestinationZones', 'Zone'),
    'source_networks': ('SourceNetworks', 'Network'),
    'destination_networks': ('DestinationNetworks', 'Network'),
    'services': ('Services', 'Service'),
}

# flattened attribute -> policy field
POLICY_SCALAR_FIELDS: dict[str, str] = {
    'action': 'Action',
    'log_traffic': 'LogTraffic',
    'schedule': 'Schedule',
    'web_filter': 'WebFilter',
    'application_control': 'ApplicationControl',
    'intrusion_prevention': 'IntrusionPrevention',
    'scan_virus': 'ScanVirus',
    'zero_day_protection': 'ZeroDayProtection',
    'proxy_mode': 'ProxyMode',
    'decrypt_https': 'DecryptHTTPS',
}

# Additional policy flags compared by the rule analyzer
POLICY_MISC_FIELDS: dict[str, str] = {
    'skip_local_destined': 'SkipLocalDestined',
    'scan_ftp': 'ScanFTP',
    'block_quick_quic': 'BlockQuickQuic',
    'dscp_marking': 'DSCPMarking',
    'traffic_shaping_policy': 'TrafficShappingPolicy',  # sic, as exported
}

ANY = 'Any'

# ── Diff ─────────────────────────────────────────────────────────────────

DIFF_IGNORED_ATTRIBUTES: frozenset[str] = frozenset({TRANSACTION_ID_ATTR})

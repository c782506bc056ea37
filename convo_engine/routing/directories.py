"""
Lookup ports for channel, persona, company, channel state and contacts.

Each port has an in-memory implementation (tests, local simulation) and a
DynamoDB implementation backed by a boto3 ``Table`` resource. DynamoDB
implementations return None for missing items and let client errors
propagate; callers decide whether a failed lookup is fatal.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

import boto3
from boto3.dynamodb.conditions import Key

from convo_engine.config import AwsConfig, settings
from convo_engine.schemas.directory_schema import ChannelRecord, CompanyInfo, PersonaRecord
from convo_engine.schemas.goal_schema import ChannelState

logger = logging.getLogger(__name__)

# Router-side persona lookups only know the persona id.
PERSONA_CONFIG_SORT_KEY = "CONFIG"


class ChannelDirectory(Protocol):
    def get_channel(self, channel_id: str) -> Optional[ChannelRecord]:
        ...


class PersonaDirectory(Protocol):
    def get_persona(
        self, persona_id: str, tenant_id: Optional[str] = None
    ) -> Optional[PersonaRecord]:
        ...


class CompanyDirectory(Protocol):
    def get_company(self, tenant_id: str) -> Optional[CompanyInfo]:
        ...


class ChannelStateStore(Protocol):
    def get_state(self, channel_id: str, tenant_id: Optional[str] = None) -> Optional[ChannelState]:
        ...


class ContactDirectory(Protocol):
    def resolve_contact_from_phone(self, tenant_id: str, phone: str) -> Optional[str]:
        ...


# ---------------------------------------------------------------------- #
# In-memory
# ---------------------------------------------------------------------- #


@dataclass
class InMemoryChannelDirectory:
    channels: dict[str, ChannelRecord] = field(default_factory=dict)

    def add(self, record: ChannelRecord) -> None:
        self.channels[record.channel_id] = record

    def get_channel(self, channel_id: str) -> Optional[ChannelRecord]:
        return self.channels.get(channel_id)


@dataclass
class InMemoryPersonaDirectory:
    personas: dict[str, PersonaRecord] = field(default_factory=dict)

    def add(self, record: PersonaRecord) -> None:
        self.personas[record.persona_id] = record

    def get_persona(
        self, persona_id: str, tenant_id: Optional[str] = None
    ) -> Optional[PersonaRecord]:
        record = self.personas.get(persona_id)
        if record is not None and tenant_id and record.tenant_id not in (None, tenant_id):
            return None
        return record


@dataclass
class InMemoryCompanyDirectory:
    companies: dict[str, CompanyInfo] = field(default_factory=dict)

    def add(self, tenant_id: str, info: CompanyInfo) -> None:
        self.companies[tenant_id] = info

    def get_company(self, tenant_id: str) -> Optional[CompanyInfo]:
        return self.companies.get(tenant_id)


@dataclass
class InMemoryChannelStateStore:
    states: dict[str, ChannelState] = field(default_factory=dict)

    def put(self, channel_id: str, state: ChannelState) -> None:
        self.states[channel_id] = state

    def get_state(self, channel_id: str, tenant_id: Optional[str] = None) -> Optional[ChannelState]:
        return self.states.get(channel_id)


@dataclass
class InMemoryContactDirectory:
    """Maps ``(tenant_id, phone)`` to a contact key (lower-cased email)."""

    contacts: dict[tuple[str, str], str] = field(default_factory=dict)

    def add(self, tenant_id: str, phone: str, email_lc: str) -> None:
        self.contacts[(tenant_id, phone)] = email_lc

    def resolve_contact_from_phone(self, tenant_id: str, phone: str) -> Optional[str]:
        return self.contacts.get((tenant_id, phone))


# ---------------------------------------------------------------------- #
# DynamoDB
# ---------------------------------------------------------------------- #


class _DynamoTable:
    """Lazily created boto3 Table resource."""

    def __init__(self, table_name: str, table: Any = None, config: AwsConfig = settings.aws) -> None:
        self.table_name = table_name
        self.config = config
        self._table = table

    @property
    def table(self) -> Any:
        if self._table is None:
            resource = boto3.resource("dynamodb", region_name=self.config.region)
            self._table = resource.Table(self.table_name)
        return self._table

    def _get(self, key: dict[str, Any]) -> Optional[dict[str, Any]]:
        return self.table.get_item(Key=key).get("Item")

    def _first(self, condition: Any, **kwargs: Any) -> Optional[dict[str, Any]]:
        items = self.table.query(KeyConditionExpression=condition, Limit=1, **kwargs).get("Items")
        return items[0] if items else None


class DynamoChannelDirectory(_DynamoTable):
    def __init__(self, table: Any = None, config: AwsConfig = settings.aws) -> None:
        super().__init__(config.channels_table, table, config)

    def get_channel(self, channel_id: str) -> Optional[ChannelRecord]:
        item = self._first(Key("channelId").eq(channel_id))
        return ChannelRecord.model_validate(item) if item else None


class DynamoPersonaDirectory(_DynamoTable):
    def __init__(self, table: Any = None, config: AwsConfig = settings.aws) -> None:
        super().__init__(config.personas_table, table, config)

    def get_persona(
        self, persona_id: str, tenant_id: Optional[str] = None
    ) -> Optional[PersonaRecord]:
        if tenant_id:
            key = {"tenantId": tenant_id, "personaId": persona_id}
        else:
            key = {"persona_pk": persona_id, "sk": PERSONA_CONFIG_SORT_KEY}
        item = self._get(key)
        if not item:
            return None
        return PersonaRecord.model_validate({"personaId": persona_id, **item})


class DynamoCompanyDirectory(_DynamoTable):
    def __init__(self, table: Any = None, config: AwsConfig = settings.aws) -> None:
        super().__init__(config.company_info_table, table, config)

    def get_company(self, tenant_id: str) -> Optional[CompanyInfo]:
        item = self._get({"tenantId": tenant_id})
        return CompanyInfo.model_validate(item) if item else None


class DynamoChannelStateStore(_DynamoTable):
    """Latest workflow state per channel (newest ``createdAt`` first)."""

    def __init__(self, table: Any = None, config: AwsConfig = settings.aws) -> None:
        super().__init__(config.channel_state_table, table, config)

    def get_state(self, channel_id: str, tenant_id: Optional[str] = None) -> Optional[ChannelState]:
        item = self._first(Key("channelId").eq(channel_id), ScanIndexForward=False)
        if not item:
            return None
        state = item.get("workflowState") or item
        return ChannelState.model_validate({"channelId": channel_id, **state})


class DynamoContactDirectory(_DynamoTable):
    """Resolves a phone number to a lead's ``email_lc`` through the phone index."""

    def __init__(self, table: Any = None, config: AwsConfig = settings.aws) -> None:
        super().__init__(config.leads_table, table, config)

    def resolve_contact_from_phone(self, tenant_id: str, phone: str) -> Optional[str]:
        item = self._first(
            Key("PK").eq(tenant_id) & Key("phone_e164").eq(phone),
            IndexName=self.config.leads_phone_index,
        )
        return item.get("email_lc") if item else None

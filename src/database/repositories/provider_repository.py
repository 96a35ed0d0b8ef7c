"""
Repository: Providers and Agents
Lookups against cc_fiba_anbieter and cc_fiba_anbieter_betreuer.
"""

from typing import Dict, Iterable, Optional
from sqlalchemy.orm import Session
from sqlalchemy import select, and_

from models.orm_provider import Provider, Agent

# Providers take part in the import only with this flag set
IMPORT_ENABLED = '1'


class ProviderRepository:
    """Repository for provider and agent lookups."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, provider_id: int) -> Optional[Provider]:
        """Get provider by internal ID."""
        return self.session.get(Provider, provider_id)

    def get_recognized_providers(self) -> Dict[str, int]:
        """
        Map OpenImmo provider numbers to local provider ids.

        Only providers that opted into the import are included. If a
        provider number is assigned twice, the lowest id wins.

        Returns:
            Dict of anbieternr -> provider id
        """
        stmt = select(Provider.onoffice_anbieter_nummer, Provider.id).where(
            and_(
                Provider.onoffice_konverter == IMPORT_ENABLED,
                Provider.onoffice_anbieter_nummer != ''
            )
        ).order_by(Provider.id.desc())
        return {key: provider_id for key, provider_id in self.session.execute(stmt)}

    def get_provider_keys(self, provider_ids: Iterable[int]) -> Dict[int, str]:
        """Map provider ids to their OpenImmo provider numbers."""
        provider_ids = list(provider_ids)
        if not provider_ids:
            return {}
        stmt = select(Provider.id, Provider.onoffice_anbieter_nummer).where(
            Provider.id.in_(provider_ids)
        )
        return {provider_id: key for provider_id, key in self.session.execute(stmt)}

    def find_agent_id(self, provider_id: int, external_id: Optional[str]) -> Optional[int]:
        """
        Resolve an agent by its external id (<personennummer>).

        Args:
            provider_id: Provider the agent belongs to
            external_id: External agent id from the listing entry

        Returns:
            Agent id or None if not found
        """
        if not external_id:
            return None
        stmt = select(Agent.id).where(
            and_(
                Agent.pid == provider_id,
                Agent.external_id == external_id
            )
        ).order_by(Agent.id).limit(1)
        return self.session.execute(stmt).scalar_one_or_none()

"""Connector availability: which integrations an actor may use."""

from typing import Protocol, runtime_checkable

from action_kernel.models.actor import ActorProfile


@runtime_checkable
class ConnectorDirectory(Protocol):
    def is_connector_enabled(self, actor: ActorProfile, connector_id: str) -> bool: ...


class ActorConnectorDirectory:
    """
    Reads availability straight from the actor profile.

    An enabled connector id satisfies a requirement when it equals or contains
    the required id, so "google_calendar" satisfies "calendar".
    """

    def is_connector_enabled(self, actor: ActorProfile, connector_id: str) -> bool:
        return any(connector_id in enabled for enabled in actor.enabled_connectors)

"""Service container shared by all endpoints, stored on app.state."""

from dataclasses import dataclass
from pathlib import Path

from fastapi import Request

from reckoning import config
from reckoning.broadcast import BroadcastManager
from reckoning.classifier import ActionClassifier
from reckoning.emergence import (
    EmergenceNotificationRepository,
    EmergenceNotificationService,
    EmergenceObserver,
)
from reckoning.event_builder import EventBuilder
from reckoning.evolution import EvolutionService
from reckoning.storage import PendingEvolutionQueue, RelationshipRepository, TraitRepository


@dataclass
class Services:
    data_dir: Path
    classifier: ActionClassifier
    observer: EmergenceObserver
    builder: EventBuilder
    evolutions: PendingEvolutionQueue
    evolution_service: EvolutionService
    notifications: EmergenceNotificationService
    broadcaster: BroadcastManager


def build_services(data_dir: Path) -> Services:
    cfg = config.get_config(data_dir)
    relationships = RelationshipRepository(data_dir)
    traits = TraitRepository(data_dir)
    queue = PendingEvolutionQueue(data_dir)
    broadcaster = BroadcastManager()
    observer = EmergenceObserver(relationships, config.emergence_thresholds(cfg))
    return Services(
        data_dir=data_dir,
        classifier=ActionClassifier(config.classifier_settings(cfg), config.build_llm(cfg)),
        observer=observer,
        builder=EventBuilder(),
        evolutions=queue,
        evolution_service=EvolutionService(queue, traits, relationships),
        notifications=EmergenceNotificationService(
            observer, EmergenceNotificationRepository(data_dir), broadcaster
        ),
        broadcaster=broadcaster,
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def apply_config(services: Services, cfg: dict) -> None:
    """Swap in a classifier and emergence thresholds built from cfg."""
    services.classifier = ActionClassifier(config.classifier_settings(cfg), config.build_llm(cfg))
    services.observer.thresholds = config.emergence_thresholds(cfg)

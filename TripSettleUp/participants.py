"""
Participants Module

This module handles participant records for the trip settlement service.

Features:
    - Participant record built from caller dicts
    - Accept caller records in either wire format (id/name) or
      snake_case format (participant_id/name)
    - Enforce identifier uniqueness within a computation

Data Model:
    Participant:
        - participant_id: string (opaque, stable identifier)
        - name: string (display name)

Functions:
    load_participants: Normalise caller records into Participant objects.
    participant_ids: Ordered list of participant IDs.
    participant_names: Mapping of participant ID to display name.
"""

import logging
from collections.abc import Mapping
from typing import Optional


logger = logging.getLogger(__name__)


class Participant:
    """
    Represents a person who can pay for or owe a share of an expense.

    Attributes:
        participant_id (str): Unique identifier for the participant.
        name (str): Display name of the participant.
    """

    def __init__(self, participant_id: str, name: Optional[str] = None):
        self.participant_id = str(participant_id)
        self.name = name if name else self.participant_id

    @classmethod
    def from_dict(cls, data: Mapping) -> "Participant":
        """
        Create a Participant from a dictionary.

        Accepts "id" or "participant_id" for the identifier.

        Raises:
            TypeError: If data is not a mapping.
            ValueError: If no identifier is present.
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"participant must be a mapping, got: {type(data).__name__}")

        participant_id = data.get("id", data.get("participant_id"))
        if participant_id is None or str(participant_id) == "":
            raise ValueError(f"participant record has no id: {dict(data)}")

        return cls(participant_id=participant_id, name=data.get("name"))

    def __eq__(self, other) -> bool:
        if not isinstance(other, Participant):
            return NotImplemented
        return self.participant_id == other.participant_id and self.name == other.name

    def __repr__(self) -> str:
        """Return string representation of participant."""
        return f"Participant(id='{self.participant_id}', name='{self.name}')"


def load_participants(records: list, problems: Optional[list[str]] = None) -> list[Participant]:
    """
    Normalise caller-supplied participant records.

    Each record may be a Participant instance or a dict with "id"/"participant_id"
    and "name". Duplicate identifiers are dropped (first occurrence wins) and
    logged, since identifiers must be unique within a computation. Records
    without an identifier are skipped and logged.

    Args:
        records: List of participant records.
        problems: Optional list that receives a message per skipped record.

    Returns:
        list[Participant]: Participants in input order, unique by ID.

    Raises:
        TypeError: If records is not a list or tuple, or a record is not a mapping.
    """
    if not isinstance(records, (list, tuple)):
        raise TypeError(f"participants must be a list, got: {type(records).__name__}")

    participants = []
    seen = set()

    for index, record in enumerate(records):
        message = None
        try:
            participant = record if isinstance(record, Participant) else Participant.from_dict(record)
        except ValueError as e:
            participant = None
            message = f"Participant record {index} skipped: {e}"

        if participant is not None and participant.participant_id in seen:
            message = f"Duplicate participant id {participant.participant_id} ignored"

        if message:
            logger.warning("%s", message)
            if problems is not None:
                problems.append(message)
            continue

        seen.add(participant.participant_id)
        participants.append(participant)

    return participants


def participant_ids(participants: list[Participant]) -> list[str]:
    """Return participant IDs in input order."""
    return [p.participant_id for p in participants]


def participant_names(participants: list[Participant]) -> dict[str, str]:
    """Return a mapping of participant ID to display name."""
    return {p.participant_id: p.name for p in participants}

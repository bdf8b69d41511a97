# flowshare/services/people.py
from __future__ import annotations

import random
from typing import Any, Callable, Dict, List, Optional

from sqlmodel import Session, select
from sqlalchemy import func

from flowshare.models import ExternalSource, Person, Task
from flowshare.storage.db import get_session

PALETTE = (
    "#ef4444",
    "#f97316",
    "#eab308",
    "#22c55e",
    "#06b6d4",
    "#3b82f6",
    "#8b5cf6",
    "#ec4899",
)


def person_payload(person: Person) -> Dict[str, Any]:
    return person.model_dump(mode="json")


class PersonService:
    def __init__(
        self,
        session_factory: Callable[[], Session] = get_session,
        hub=None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._session_factory = session_factory
        self.hub = hub
        self._rng = rng or random.Random()

    def _publish(self, kind: str, **payload: Any) -> None:
        if self.hub is not None:
            self.hub.publish("people_updated", {"type": kind, **payload})

    def list_all(self) -> List[Person]:
        with self._session_factory() as s:
            stmt = select(Person).order_by(func.lower(Person.name), Person.id)
            return list(s.exec(stmt))

    def get(self, person_id: int) -> Optional[Person]:
        with self._session_factory() as s:
            return s.get(Person, person_id)

    def create(self, name: str, *, email: Optional[str] = None, color: Optional[str] = None) -> Person:
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValueError("Name required")
        with self._session_factory() as s:
            person = Person(
                name=cleaned,
                email=(email or "").strip() or None,
                color=color or self._rng.choice(PALETTE),
            )
            s.add(person)
            s.commit()
            s.refresh(person)
        self._publish("created", person=person_payload(person))
        return person

    def update(
        self,
        person_id: int,
        *,
        name: Optional[str] = None,
        email: Optional[str] = None,
        color: Optional[str] = None,
        default_source_id: Optional[int] = None,
    ) -> Optional[Person]:
        with self._session_factory() as s:
            person = s.get(Person, person_id)
            if not person:
                return None
            if name is not None:
                cleaned = name.strip()
                if not cleaned:
                    raise ValueError("Name required")
                person.name = cleaned
            if email is not None:
                person.email = email.strip() or None
            if color is not None:
                person.color = color or None
            if default_source_id is not None:
                person.default_source_id = default_source_id or None
            s.add(person)
            s.commit()
            s.refresh(person)
        self._publish("updated", person=person_payload(person))
        return person

    def delete(self, person_id: int) -> bool:
        """Remove a person: their tasks become unassigned, their sources go away."""
        with self._session_factory() as s:
            person = s.get(Person, person_id)
            if not person:
                return False
            for task in s.exec(select(Task).where(Task.person_id == person_id)):
                task.person_id = None
                s.add(task)
            for source in s.exec(select(ExternalSource).where(ExternalSource.person_id == person_id)):
                s.delete(source)
            s.delete(person)
            s.commit()
        self._publish("deleted", id=person_id)
        return True


__all__ = ["PALETTE", "PersonService", "person_payload"]

"""
User-facing notices.

Notices are delivered through an injected Notifier instead of global toast
state, so the validation and workflow core never depends on a UI lifecycle.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


logger = logging.getLogger(__name__)


class NoticeVariant(Enum):
    """Presentation hint for a notice."""

    DEFAULT = "default"
    SUCCESS = "success"
    DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class Notice:
    """A single advisory or error message shown to the user."""

    title: str
    description: str
    variant: NoticeVariant = NoticeVariant.DEFAULT

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "variant": self.variant.value,
        }


class Notifier(ABC):
    """Capability for surfacing notices to whoever drives a workflow."""

    @abstractmethod
    def notify(self, notice: Notice) -> None:
        pass


class ListNotifier(Notifier):
    """Collects notices in memory. Used by the web layer and tests."""

    def __init__(self):
        self.notices: list[Notice] = []

    def notify(self, notice: Notice) -> None:
        self.notices.append(notice)


class LoggingNotifier(Notifier):
    """Writes notices to the application log."""

    def notify(self, notice: Notice) -> None:
        if notice.variant == NoticeVariant.DESTRUCTIVE:
            logger.warning("%s: %s", notice.title, notice.description)
        else:
            logger.info("%s: %s", notice.title, notice.description)

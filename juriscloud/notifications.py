import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class Toast:
    title: str
    description: Optional[str] = None
    variant: str = "default"  # default | destructive


class Notifier:
    """Collects user facing notifications and hands them to the presenter."""

    def __init__(self, presenter: Optional[Callable[[Toast], None]] = None):
        self.presenter = presenter
        self.history: List[Toast] = []

    def toast(self, title: str, description: Optional[str] = None, variant: str = "default") -> Toast:
        toast = Toast(title=title, description=description, variant=variant)
        self.history.append(toast)
        if variant == "destructive":
            logger.warning(f"{title}: {description}")
        else:
            logger.info(f"{title}: {description}")
        if self.presenter is not None:
            self.presenter(toast)
        return toast

    def success(self, title: str, description: Optional[str] = None) -> Toast:
        return self.toast(title, description)

    def error(self, title: str, description: Optional[str] = None) -> Toast:
        return self.toast(title, description, variant="destructive")

    @property
    def last(self) -> Optional[Toast]:
        return self.history[-1] if self.history else None

"""Registry of live exam wizard sessions, kept in process memory."""

import logging
from datetime import datetime, timedelta
from typing import Dict, Optional

from ..errors import WizardNotFoundError
from ..models import AuthContext
from ..services import ExamWizard

logger = logging.getLogger(__name__)


class WizardRegistry:
    """Holds open wizards by id. Wizards idle longer than the TTL are dropped."""

    def __init__(self, ttl_minutes: int = 120):
        self.ttl = timedelta(minutes=ttl_minutes)
        self._wizards: Dict[str, ExamWizard] = {}

    def __len__(self) -> int:
        return len(self._wizards)

    def add(self, wizard: ExamWizard) -> ExamWizard:
        self.cleanup_expired()
        self._wizards[wizard.wizard_id] = wizard
        return wizard

    def get(self, wizard_id: str, auth: AuthContext) -> ExamWizard:
        """Return the caller's wizard. Someone else's wizard is reported as missing."""
        wizard = self._wizards.get(wizard_id)
        if wizard is None or wizard.auth.user_id != auth.user_id or self._expired(wizard):
            raise WizardNotFoundError(f"Wizard '{wizard_id}' not found")
        wizard.touch()
        return wizard

    def discard(self, wizard_id: str, auth: AuthContext) -> None:
        self.get(wizard_id, auth)
        del self._wizards[wizard_id]

    def _expired(self, wizard: ExamWizard) -> bool:
        return datetime.utcnow() - wizard.last_activity > self.ttl

    def cleanup_expired(self) -> int:
        """Remove idle wizards. Returns the number removed."""
        expired = [wid for wid, w in self._wizards.items() if self._expired(w) and not (w.saving or w.publishing)]
        for wid in expired:
            del self._wizards[wid]
        if expired:
            logger.info(f"Dropped {len(expired)} idle exam wizards")
        return len(expired)


# Global registry instance (initialized in main app)
_registry_instance: Optional[WizardRegistry] = None


def init_registry(ttl_minutes: int = 120) -> WizardRegistry:
    """Initialize global registry instance."""
    global _registry_instance
    _registry_instance = WizardRegistry(ttl_minutes)
    return _registry_instance


def get_registry() -> WizardRegistry:
    """Get global registry instance."""
    if _registry_instance is None:
        raise RuntimeError("Wizard registry not initialized. Call init_registry() first.")
    return _registry_instance

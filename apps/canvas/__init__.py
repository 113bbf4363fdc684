"""Canvas REST client and payload models."""

from .client import CanvasClient, CanvasConfig
from .models import ModuleItem, ModuleSummary, PageRecord

__all__ = ["CanvasClient", "CanvasConfig", "ModuleItem", "ModuleSummary", "PageRecord"]

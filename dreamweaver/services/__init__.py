from .assets import AssetStore
from .beat_generation import BeatGenerationCoordinator
from .beats import BeatStore
from .context import ContextStore
from .generation import GenerationClient
from .story_slots import StorySlotManager
from .workspace import Workspace

__all__ = [
    "AssetStore",
    "BeatGenerationCoordinator",
    "BeatStore",
    "ContextStore",
    "GenerationClient",
    "StorySlotManager",
    "Workspace",
]

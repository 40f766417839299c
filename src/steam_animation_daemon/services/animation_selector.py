"""Animation selection policy"""

import random
from typing import Optional

from steam_animation_daemon.managers.catalog_manager import CatalogManager
from steam_animation_daemon.models.config import DaemonConfig
from steam_animation_daemon.models.enums import AnimationType, RandomizeMode
from steam_animation_daemon.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.ANIMATION)


class AnimationSelector:
    """
    Picks an animation id for a slot according to config.randomize_mode

    - DISABLED: the configured id for the slot (may be None)
    - PER_BOOT: uniform random choice among the slot's catalog entries,
      minus shuffle_exclusions
    - PER_SET: same as PER_BOOT; set-aware grouping is not implemented
    """

    def __init__(self, config: DaemonConfig, catalog: CatalogManager, rng: Optional[random.Random] = None):
        self.config = config
        self.catalog = catalog
        self._rng = rng or random.Random()

    def select(self, animation_type: AnimationType) -> Optional[str]:
        mode = self.config.randomize_mode

        if mode == RandomizeMode.DISABLED:
            return self.config.configured_animation(animation_type)
        if mode == RandomizeMode.PER_SET:
            return self.select_random_from_set(animation_type)
        return self.select_random(animation_type)

    def select_random(self, animation_type: AnimationType) -> Optional[str]:
        excluded = set(self.config.shuffle_exclusions)
        candidates = sorted(
            a.id for a in self.catalog.by_type(animation_type)
            if a.id not in excluded
        )

        if not candidates:
            log.debug(f"No {animation_type.name} candidates after exclusions")
            return None

        return self._rng.choice(candidates)

    def select_random_from_set(self, animation_type: AnimationType) -> Optional[str]:
        # TODO: group candidates by animation set once sets carry a shuffle group
        return self.select_random(animation_type)

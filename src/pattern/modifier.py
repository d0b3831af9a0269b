"""
This module defines the pattern modifiers, the units the play state invokes
once on a decoded chart before gameplay starts.

A LaneShuffleModifier computes one lane mapping and applies it to the whole
chart. A NoteShuffleModifier walks the chart instant by instant and lets a
randomizer choose a new lane assignment for every instant, keeping held long
notes in place.
"""

# pylint: disable=too-few-public-methods

import logging
import time
from abc import ABC, abstractmethod
from enum import IntEnum
from pathlib import Path
from typing import Callable, Dict, List, Optional

from src.bms.chart import Chart
from src.bms.play_mode import PlayMode, get_keys
from src.pattern.java_random import JavaRandom
from src.pattern.lane_mapping import (
    LaneShuffleType,
    apply_lane_mapping,
    battle,
    build_cross,
    build_flip,
    build_mirror,
    build_random,
    build_rotate,
)
from src.pattern.modifier_config import ModifierConfig
from src.pattern.murioshi import build_playable_random
from src.pattern.permutation_state import PermutationState
from src.pattern.randomizer import (
    SRAN_THRESHOLD_MS,
    Randomizer,
    RandomizerType,
    hran_threshold_ms,
)
from src.pattern.timeline import build_timelines


class AssistLevel(IntEnum):
    """How much a modifier eases a chart; scoring uses it to gate clear types."""

    NONE = 0
    LIGHT_ASSIST = 1
    ASSIST = 2


class PatternModifier(ABC):
    """
    Base class of all pattern modifiers.

    The seed is fixed at construction so that it can be stored with the
    score and replayed; a negative configured seed is replaced by a fresh one.
    """

    LOGGER_NAME = "pattern_logger"

    def __init__(self, config: ModifierConfig, assist_level: AssistLevel):
        self.config = config
        self.seed: int = config.seed if config.seed >= 0 else JavaRandom.fresh_seed()
        self._assist_level = assist_level
        self.logger: logging.Logger = logging.getLogger(self.LOGGER_NAME)

    def assist_level(self) -> AssistLevel:
        """Fixed at construction; does not depend on whether `modify` has run."""
        return self._assist_level

    @property
    @abstractmethod
    def name(self) -> str:
        """Short name of the modifier, used in logs."""

    @abstractmethod
    def modify(self, chart: Chart) -> None:
        """Rewrites the chart's note lanes in place."""

    def _setup_logger(self, chart: Chart) -> logging.Logger:
        """Configures a logger to write the modifier's decisions to a file."""
        logger = logging.getLogger(self.LOGGER_NAME)

        if not self.config.enable_logging:
            self._clear_handlers(logger)
            logger.addHandler(logging.NullHandler())
            logger.setLevel(logging.CRITICAL + 1)
            return logger

        log_dir = Path("./logs")
        log_dir.mkdir(exist_ok=True)

        sanitized_title = "".join(
            c for c in chart.title if c.isalnum() or c in " _"
        ).rstrip()
        timestamp = int(time.time())
        log_filename = f"{sanitized_title.replace(' ', '_')}_{self.name}_{timestamp}.log"
        log_filepath = log_dir / log_filename

        logger.setLevel(self.config.log_level)
        logger.propagate = False

        self._clear_handlers(logger)

        file_handler = logging.FileHandler(log_filepath, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(file_handler)

        return logger

    @staticmethod
    def _clear_handlers(logger: logging.Logger) -> None:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__}(type='{self.name}', "
            f"player={self.config.player + 1}P, "
            f"scratch={self.config.contains_scratch}, seed={self.seed})>"
        )


class LaneShuffleModifier(PatternModifier):
    """Applies one chart-wide lane mapping (or, for BATTLE, copies 1P to 2P)."""

    def __init__(
        self,
        kind: LaneShuffleType,
        config: ModifierConfig,
        assist_level: Optional[AssistLevel] = None,
    ):
        if assist_level is None:
            assist_level = self._default_assist_level(kind, config)
        super().__init__(config, assist_level)
        self.kind = kind
        self.mapping: Optional[List[int]] = None

    @property
    def name(self) -> str:
        return self.kind.value

    @staticmethod
    def _default_assist_level(kind: LaneShuffleType, config: ModifierConfig) -> AssistLevel:
        if kind == LaneShuffleType.BATTLE:
            return AssistLevel.ASSIST
        if kind in (LaneShuffleType.CROSS, LaneShuffleType.PLAYABLE_RANDOM):
            return AssistLevel.LIGHT_ASSIST
        if config.contains_scratch and kind != LaneShuffleType.FLIP:
            return AssistLevel.LIGHT_ASSIST
        return AssistLevel.NONE

    def modify(self, chart: Chart) -> None:
        self.logger = self._setup_logger(chart)
        self.logger.debug("--- Applying %s to '%s' (seed=%d) ---", self.name, chart.title, self.seed)

        if self.kind == LaneShuffleType.BATTLE:
            before = len(chart.notes)
            battle(chart)
            self.logger.debug("Battle: %d notes -> %d notes", before, len(chart.notes))
            return

        mode = chart.mode
        keys = get_keys(mode, self.config.player, self.config.contains_scratch)
        if not keys and self.kind != LaneShuffleType.FLIP:
            self.logger.debug("No modifiable lanes for player %d; chart unchanged.", self.config.player)
            return

        random = JavaRandom(self.seed)
        builders: Dict[LaneShuffleType, Callable[[], List[int]]] = {
            LaneShuffleType.MIRROR: lambda: build_mirror(keys, mode.key_count),
            LaneShuffleType.ROTATE: lambda: build_rotate(keys, mode.key_count, random),
            LaneShuffleType.RANDOM: lambda: build_random(keys, mode.key_count, random),
            LaneShuffleType.CROSS: lambda: build_cross(keys, mode.key_count),
            LaneShuffleType.FLIP: lambda: build_flip(mode.key_count, mode.player_count),
            LaneShuffleType.PLAYABLE_RANDOM: lambda: build_playable_random(
                chart, keys, mode.key_count, random
            ),
        }
        self.mapping = builders[self.kind]()
        self.logger.debug("Lane mapping: %s", self.mapping)
        apply_lane_mapping(chart.notes, self.mapping)


class NoteShuffleModifier(PatternModifier):
    """
    Reassigns lanes instant by instant using one randomizer variant.

    The repeat threshold is `threshold_ms` when given. Otherwise S_RANDOM uses
    40 ms unless `bpm_threshold` is set, and every other variant uses the
    H-RANDOM threshold derived from the chart's BPM (or the configured
    override).
    """

    def __init__(
        self,
        kind: RandomizerType,
        config: ModifierConfig,
        threshold_ms: Optional[int] = None,
        bpm_threshold: bool = False,
        assist_level: Optional[AssistLevel] = None,
    ):
        self.kind = kind
        self.threshold_ms = threshold_ms
        self.bpm_threshold = bpm_threshold
        if assist_level is None:
            assist_level = self._default_assist_level(config)
        super().__init__(config, assist_level)

    @property
    def name(self) -> str:
        if self.kind == RandomizerType.S_RANDOM and self.bpm_threshold:
            return "h-random"
        return self.kind.value

    def _default_assist_level(self, config: ModifierConfig) -> AssistLevel:
        if self.kind in (
            RandomizerType.SPIRAL,
            RandomizerType.ALL_SCR,
            RandomizerType.NO_MURIOSHI,
            RandomizerType.CONVERGE,
        ):
            return AssistLevel.LIGHT_ASSIST
        if self.bpm_threshold or config.contains_scratch:
            return AssistLevel.LIGHT_ASSIST
        return AssistLevel.NONE

    def resolve_threshold_ms(self, chart: Chart) -> int:
        if self.threshold_ms is not None:
            return self.threshold_ms
        if self.kind in (RandomizerType.S_RANDOM, RandomizerType.SPIRAL) and not self.bpm_threshold:
            return SRAN_THRESHOLD_MS
        if self.config.hran_threshold_ms is not None:
            return self.config.hran_threshold_ms
        return hran_threshold_ms(chart.bpm)

    def modify_lanes(self, mode: PlayMode) -> List[int]:
        """The configured side's lanes; ALL-SCR always includes its scratch."""
        contains_scratch = self.config.contains_scratch or self.kind == RandomizerType.ALL_SCR
        return get_keys(mode, self.config.player, contains_scratch)

    def modify(self, chart: Chart) -> None:
        self.logger = self._setup_logger(chart)
        mode = chart.mode
        keys = self.modify_lanes(mode)
        if not keys:
            self.logger.debug("No modifiable lanes for player %d; chart unchanged.", self.config.player)
            return

        threshold_ms = self.resolve_threshold_ms(chart)
        self.logger.debug(
            "--- Applying %s to '%s' (seed=%d, threshold=%dms) ---",
            self.name,
            chart.title,
            self.seed,
            threshold_ms,
        )

        random = JavaRandom(self.seed)
        randomizer = Randomizer(
            self.kind,
            keys,
            random,
            threshold_ms=threshold_ms,
            scratch_lanes=[lane for lane in keys if mode.is_scratch(lane)],
            double_play=mode.player_count == 2,
            player=self.config.player,
        )
        state = PermutationState(tuple(keys))

        for view in build_timelines(chart.notes):
            state.release_expired(view.time_us)
            lane_map = state.merge_active(randomizer.randomize(view, state))
            self.logger.debug("%10dms: %s", view.time_ms, lane_map)
            state.permutate(view, chart.notes, lane_map)

"""
This module contains the per-instant randomizers used by the note-level
shuffles (S-RANDOM and its threshold variants, SPIRAL, ALL-SCR, the
murioshi-avoiding S-RANDOM-PLAYABLE, and CONVERGE).

For each instant a randomizer produces a map from source lane to destination
lane covering the lanes that are not held by a long note. Most variants share
one assignment routine, `time_based_shuffle`, and only differ in how a
destination is picked from the lanes that are far enough from their previous
note.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from src.pattern.java_random import JavaRandom
from src.pattern.permutation_state import PermutationState
from src.pattern.timeline import TimelineView

SRAN_THRESHOLD_MS = 40
DEFAULT_BPM = 120.0
# Lanes start out as if their last note were long ago.
INITIAL_NOTE_TIME_MS = -10_000

# Six-button combinations (lane positions) that never form a murioshi chord.
BUTTON_COMBINATIONS = (
    (0, 1, 2, 3, 4, 5),
    (0, 1, 2, 4, 5, 6),
    (0, 1, 2, 5, 6, 7),
    (0, 1, 2, 6, 7, 8),
    (1, 2, 3, 4, 5, 6),
    (1, 2, 3, 5, 6, 7),
    (1, 2, 3, 6, 7, 8),
    (2, 3, 4, 5, 6, 7),
    (2, 3, 4, 6, 7, 8),
    (3, 4, 5, 6, 7, 8),
)

LaneSelector = Callable[[List[int]], int]


class RandomizerType(Enum):
    """The per-instant randomizer variants."""

    S_RANDOM = "s-random"
    SPIRAL = "spiral"
    ALL_SCR = "all-scr"
    NO_MURIOSHI = "no-murioshi"
    CONVERGE = "converge"


def hran_threshold_ms(bpm: float) -> int:
    """Repeat threshold of H-RANDOM: a sixteenth note at the chart's BPM."""
    if bpm <= 0:
        bpm = DEFAULT_BPM
    return math.ceil(15000.0 / bpm)


@dataclass
class TimeBasedState:
    """
    Last note time per destination lane, shared by the time-based variants.

    Times are whole milliseconds (see `TimelineView.time_ms`), so notes less
    than a millisecond past the threshold still count as repeats.

    Attributes:
        threshold_ms (int): A destination whose last note is at most this long
                            ago only receives notes when nothing else is left.
        last_note_time (Dict[int, int]): Destination lane to the time (ms) of
                                         the last playable note placed on it.
    """

    threshold_ms: int
    last_note_time: Dict[int, int] = field(default_factory=dict)

    def is_primary(self, lane: int, time_ms: int) -> bool:
        return time_ms - self.last_note_time.get(lane, INITIAL_NOTE_TIME_MS) > self.threshold_ms

    def record(self, view: TimelineView, lane_map: Dict[int, int]) -> None:
        for source, dest in lane_map.items():
            if view.has_playable_note(source):
                self.last_note_time[dest] = view.time_ms


@dataclass
class SpiralState:
    increment: int
    cycle: int
    head: int = 0


@dataclass
class AllScratchState:
    scratch_lanes: List[int]
    scratch_threshold_ms: int
    double_play: bool
    player: int = 0
    scratch_index: int = 0


@dataclass
class NoMurioshiState:
    button_combination: Optional[List[int]] = None


@dataclass
class ConvergeState:
    threshold2_ms: int
    renda_count: Dict[int, int] = field(default_factory=dict)


def time_based_shuffle(
    view: TimelineView,
    changeable_lane: List[int],
    assignable_lane: List[int],
    timing: TimeBasedState,
    random: JavaRandom,
    select_lane: LaneSelector,
) -> Dict[int, int]:
    """
    Assigns one instant's changeable lanes to assignable lanes.

    Lanes with a note go first, to destinations whose last note is older
    than the threshold (picked with `select_lane`). When those run out, each
    remaining note goes to the destination with the oldest last note, ties
    drawn at random. Empty lanes take whatever is left, drawn at random.

    Args:
        view: The instant being processed.
        changeable_lane: Source lanes not held by a long note.
        assignable_lane: Destination lanes not held by a long note.
        timing: Last note times and threshold of the randomizer.
        random: The modifier's generator.
        select_lane: Returns the index of the destination to use from the
                     list of destinations beyond the threshold.

    Returns:
        The source to destination map for the given lanes.
    """
    lane_map: Dict[int, int] = {}
    note_lanes = [lane for lane in changeable_lane if view.has_note(lane)]
    empty_lanes = [lane for lane in changeable_lane if not view.has_note(lane)]
    primary = [lane for lane in assignable_lane if timing.is_primary(lane, view.time_ms)]
    inferior = [lane for lane in assignable_lane if not timing.is_primary(lane, view.time_ms)]

    while note_lanes and primary:
        r = select_lane(primary)
        lane_map[note_lanes.pop(0)] = primary.pop(r)

    while note_lanes and inferior:
        last = timing.last_note_time
        min_time = min(last.get(lane, INITIAL_NOTE_TIME_MS) for lane in inferior)
        oldest = [lane for lane in inferior if last.get(lane, INITIAL_NOTE_TIME_MS) == min_time]
        chosen = oldest[random.next_int(len(oldest))]
        lane_map[note_lanes.pop(0)] = chosen
        inferior.remove(chosen)

    primary.extend(inferior)
    while empty_lanes and primary:
        r = random.next_int(len(primary))
        lane_map[empty_lanes.pop(0)] = primary.pop(r)

    return lane_map


class Randomizer:
    """
    One per-instant randomizer, created for a single modifier invocation.

    The variant is fixed at construction; its mutable state lives in the
    matching state object and is carried from one instant to the next.
    """

    def __init__(
        self,
        kind: RandomizerType,
        modify_lanes: Sequence[int],
        random: JavaRandom,
        threshold_ms: int = SRAN_THRESHOLD_MS,
        scratch_lanes: Sequence[int] = (),
        double_play: bool = False,
        player: int = 0,
    ):
        """
        Args:
            kind: The randomizer variant.
            modify_lanes: Lanes the modifier may rearrange, in lane order.
            random: The modifier's generator. SPIRAL draws its increment here.
            threshold_ms: Repeat threshold of the time-based assignment.
            scratch_lanes: ALL-SCR only, the scratch lanes to cycle through.
            double_play: ALL-SCR only, whether the chart has two sides.
            player: ALL-SCR only, the side being modified.
        """
        self.kind = kind
        self.modify_lanes = list(modify_lanes)
        self.random = random
        self.timing = TimeBasedState(
            threshold_ms=threshold_ms,
            last_note_time={lane: INITIAL_NOTE_TIME_MS for lane in self.modify_lanes},
        )
        self.spiral: Optional[SpiralState] = None
        self.all_scratch: Optional[AllScratchState] = None
        self.no_murioshi: Optional[NoMurioshiState] = None
        self.converge: Optional[ConvergeState] = None

        if kind == RandomizerType.SPIRAL:
            cycle = len(self.modify_lanes)
            increment = random.next_int(cycle - 1) + 1 if cycle > 1 else 0
            self.spiral = SpiralState(increment=increment, cycle=cycle)
        elif kind == RandomizerType.ALL_SCR:
            self.all_scratch = AllScratchState(
                scratch_lanes=[lane for lane in scratch_lanes if lane in self.modify_lanes],
                scratch_threshold_ms=SRAN_THRESHOLD_MS,
                double_play=double_play,
                player=player,
            )
        elif kind == RandomizerType.NO_MURIOSHI:
            self.no_murioshi = NoMurioshiState()
        elif kind == RandomizerType.CONVERGE:
            self.converge = ConvergeState(
                threshold2_ms=self.timing.threshold_ms * 2,
                renda_count={lane: 0 for lane in self.modify_lanes},
            )

    def randomize(self, view: TimelineView, state: PermutationState) -> Dict[int, int]:
        """Builds the lane map of one instant for the lanes not held by long notes."""
        handlers = {
            RandomizerType.S_RANDOM: self._randomize_s_random,
            RandomizerType.SPIRAL: self._randomize_spiral,
            RandomizerType.ALL_SCR: self._randomize_all_scratch,
            RandomizerType.NO_MURIOSHI: self._randomize_no_murioshi,
            RandomizerType.CONVERGE: self._randomize_converge,
        }
        return handlers[self.kind](
            view, state, list(state.changeable_lane), list(state.assignable_lane)
        )

    # --- Variants ---

    def _randomize_s_random(
        self,
        view: TimelineView,
        state: PermutationState,
        changeable: List[int],
        assignable: List[int],
    ) -> Dict[int, int]:
        lane_map = time_based_shuffle(
            view, changeable, assignable, self.timing, self.random, self._select_uniform
        )
        self.timing.record(view, lane_map)
        return lane_map

    def _randomize_spiral(
        self,
        view: TimelineView,
        state: PermutationState,
        changeable: List[int],
        assignable: List[int],
    ) -> Dict[int, int]:
        spiral = self.spiral
        lanes = self.modify_lanes
        # The head only moves while no long note is held, so a held note keeps its lane.
        if len(changeable) == spiral.cycle:
            spiral.head = (spiral.head + spiral.increment) % spiral.cycle
        return {
            lane: lanes[(i + spiral.head) % spiral.cycle]
            for i, lane in enumerate(lanes)
            if lane in changeable
        }

    def _randomize_all_scratch(
        self,
        view: TimelineView,
        state: PermutationState,
        changeable: List[int],
        assignable: List[int],
    ) -> Dict[int, int]:
        scr = self.all_scratch
        lane_map: Dict[int, int] = {}
        if scr.scratch_lanes:
            scratch = scr.scratch_lanes[scr.scratch_index]
            elapsed = view.time_ms - self.timing.last_note_time.get(scratch, INITIAL_NOTE_TIME_MS)
            if scratch in assignable and elapsed > scr.scratch_threshold_ms:
                source = next((l for l in changeable if view.has_playable_note(l)), None)
                if source is not None:
                    lane_map[source] = scratch
                    changeable.remove(source)
                    assignable.remove(scratch)
                    scr.scratch_index = (scr.scratch_index + 1) % len(scr.scratch_lanes)

        lane_map.update(
            time_based_shuffle(
                view, changeable, assignable, self.timing, self.random, self._select_near_scratch
            )
        )
        self.timing.record(view, lane_map)
        return lane_map

    def _randomize_no_murioshi(
        self,
        view: TimelineView,
        state: PermutationState,
        changeable: List[int],
        assignable: List[int],
    ) -> Dict[int, int]:
        nm = self.no_murioshi
        nm.button_combination = None

        note_count = sum(1 for l in changeable if view.has_playable_note(l)) + len(state.ln_active)
        if 2 < note_count < 7:
            held = set(state.ln_active.values())
            combinations = [
                [self.modify_lanes[p] for p in combo if p < len(self.modify_lanes)]
                for combo in BUTTON_COMBINATIONS
            ]
            combinations = [c for c in combinations if held.issubset(c)]
            renda_lanes = {
                lane for lane in self.modify_lanes if not self.timing.is_primary(lane, view.time_ms)
            }
            combinations = [[l for l in c if l not in renda_lanes] for c in combinations]
            combinations = [c for c in combinations if len(c) >= note_count]
            if combinations:
                nm.button_combination = combinations[self.random.next_int(len(combinations))]

        lane_map = time_based_shuffle(
            view, changeable, assignable, self.timing, self.random, self._select_in_combination
        )
        self.timing.record(view, lane_map)
        return lane_map

    def _randomize_converge(
        self,
        view: TimelineView,
        state: PermutationState,
        changeable: List[int],
        assignable: List[int],
    ) -> Dict[int, int]:
        conv = self.converge
        for lane, last in self.timing.last_note_time.items():
            if view.time_ms - last > conv.threshold2_ms:
                conv.renda_count[lane] = 0

        lane_map = time_based_shuffle(
            view, changeable, assignable, self.timing, self.random, self._select_max_renda
        )
        for source, dest in lane_map.items():
            if view.has_playable_note(source):
                conv.renda_count[dest] = conv.renda_count.get(dest, 0) + 1
        self.timing.record(view, lane_map)
        return lane_map

    # --- Destination selection rules ---

    def _select_uniform(self, lanes: List[int]) -> int:
        return self.random.next_int(len(lanes))

    def _select_near_scratch(self, lanes: List[int]) -> int:
        """In double play, the lowest lane for 1P and the highest for 2P, without a draw."""
        scr = self.all_scratch
        if not scr.double_play:
            return self._select_uniform(lanes)
        edge = min(lanes) if scr.player == 0 else max(lanes)
        return lanes.index(edge)

    def _select_in_combination(self, lanes: List[int]) -> int:
        combination = self.no_murioshi.button_combination
        if combination:
            preferred = [i for i, lane in enumerate(lanes) if lane in combination]
            if preferred:
                return preferred[self.random.next_int(len(preferred))]
        return self._select_uniform(lanes)

    def _select_max_renda(self, lanes: List[int]) -> int:
        renda = self.converge.renda_count
        max_count = max(renda.get(lane, 0) for lane in lanes)
        candidates = [i for i, lane in enumerate(lanes) if renda.get(lane, 0) == max_count]
        return candidates[self.random.next_int(len(candidates))]

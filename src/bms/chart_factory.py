import json
import warnings
from typing import Any, Dict, List, Optional

from src.bms.chart import Chart
from src.bms.note import Note, NoteType
from src.bms.play_mode import PlayMode


class ChartFactory:
    """
    Loads chart records from a JSON file and creates Chart instances by id.

    Long notes are written once in the JSON (with `end_time_us`); the factory
    expands each of them into a start and an end note and links the pair.
    """

    NOTE_TYPES = {
        "normal": NoteType.NORMAL,
        "invisible": NoteType.INVISIBLE,
        "mine": NoteType.MINE,
        "long": NoteType.LONG,
    }

    def __init__(self, charts_json_path: str):
        raw_data = self._load_json(charts_json_path)
        if not isinstance(raw_data, dict):
            raise TypeError("Charts data file must be a dictionary of objects.")

        self._records: Dict[str, Dict[str, Any]] = {}
        self._index_records(raw_data)

    def _load_json(self, json_path: str) -> Dict:
        """Helper to load and parse a JSON file."""
        try:
            with open(json_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (FileNotFoundError, json.JSONDecodeError) as e:
            raise RuntimeError(
                f"Failed to load or parse JSON from {json_path}: {e}"
            ) from e

    def _index_records(self, raw_data: Dict[str, Any]) -> None:
        """Validates each raw record once so that create_chart cannot fail midway."""
        for chart_id, record in raw_data.items():
            try:
                mode = PlayMode.from_name(str(record.get("mode", "")))
                if mode is None:
                    raise ValueError(f"unknown mode '{record.get('mode')}'")
                self._build_notes(record.get("notes", []))
                self._records[chart_id] = record
            except (ValueError, TypeError, KeyError, AttributeError) as e:
                warnings.warn(
                    f"Warning: Skipping invalid chart record with key '{chart_id}': {e}"
                )

    @property
    def chart_ids(self) -> List[str]:
        return list(self._records.keys())

    def create_chart(self, chart_id: str) -> Optional[Chart]:
        """
        Creates a fresh, mutable Chart for the given id.

        Returns:
            A Chart object or None if not found.
        """
        record = self._records.get(chart_id)
        if record is None:
            warnings.warn(f"Error: Chart with identifier '{chart_id}' not found.")
            return None

        return Chart(
            mode=PlayMode.from_name(record["mode"]),
            notes=self._build_notes(record.get("notes", [])),
            title=record.get("title", "Unknown Title"),
            bpm=float(record.get("bpm", Chart.DEFAULT_BPM)),
        )

    def _build_notes(self, raw_notes: List[Dict[str, Any]]) -> List[Note]:
        notes: List[Note] = []
        ends: Dict[int, Note] = {}
        for raw in raw_notes:
            note_type = self.NOTE_TYPES[str(raw.get("type", "normal")).lower()]
            note = Note(
                lane=int(raw["lane"]),
                time_us=int(raw["time_us"]),
                note_type=note_type,
                wav_id=int(raw.get("wav_id", 0)),
            )
            notes.append(note)
            if note_type == NoteType.LONG:
                note.end_time_us = int(raw["end_time_us"])
                if note.end_time_us <= note.time_us:
                    raise ValueError(f"long note at {note.time_us}us ends before it starts")
                end = Note(
                    lane=note.lane,
                    time_us=note.end_time_us,
                    note_type=NoteType.LONG,
                    wav_id=int(raw.get("end_wav_id", note.wav_id)),
                )
                notes.append(end)
                ends[id(note)] = end

        notes.sort(key=lambda n: (n.time_us, n.lane))

        # Pair indices are only known once the final order is fixed.
        index_of = {id(n): i for i, n in enumerate(notes)}
        for start_id, end in ends.items():
            start_idx = index_of[start_id]
            end_idx = index_of[id(end)]
            notes[start_idx].pair_index = end_idx
            end.pair_index = start_idx
        return notes

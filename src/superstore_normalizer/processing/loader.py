"""Assigns surrogate ids to parsed rows."""

from dataclasses import fields

from superstore_normalizer.models.transaction import RawRecord, TransactionRecord
from superstore_normalizer.utils.logging_config import get_logger

logger = get_logger(__name__)

_RAW_FIELDS = tuple(f.name for f in fields(RawRecord))


class RecordLoader:
    """Turns parsed rows into TransactionRecords.

    The loader owns the id sequence: ids start at ``start_id`` and increase
    by one per record in load order, continuing across calls. Earlier loaded
    rows therefore always carry smaller ids, which is what deduplication
    relies on to keep the first instance of a line.
    """

    def __init__(self, start_id: int = 1):
        """Initialize loader.

        Args:
            start_id: Id given to the first loaded record.
        """
        if start_id < 1:
            raise ValueError(f"start_id must be positive, got {start_id}")
        self._next_id = start_id

    @property
    def next_id(self) -> int:
        """Id the next loaded record will receive."""
        return self._next_id

    def load(self, raw_records: list[RawRecord]) -> list[TransactionRecord]:
        """Assign ids to a list of parsed rows.

        Args:
            raw_records: Rows from a parser, in file order.

        Returns:
            TransactionRecords with fresh ids.
        """
        records = []
        for raw in raw_records:
            values = {name: getattr(raw, name) for name in _RAW_FIELDS}
            records.append(TransactionRecord(id=self._next_id, **values))
            self._next_id += 1

        logger.info(f"Loaded {len(records)} records")
        return records

    def load_all(self, raw_by_file: dict[str, list[RawRecord]]) -> list[TransactionRecord]:
        """Load rows from several files in the given order.

        Args:
            raw_by_file: Dict mapping filename to its parsed rows.

        Returns:
            All records, ids continuing from file to file.
        """
        all_records: list[TransactionRecord] = []
        for filename, raw_records in raw_by_file.items():
            records = self.load(raw_records)
            if records:
                logger.debug(f"{filename}: ids {records[0].id}-{records[-1].id}")
            all_records.extend(records)

        logger.info(f"Total loaded records: {len(all_records)}")
        return all_records


def load_records(raw_records: list[RawRecord], start_id: int = 1) -> list[TransactionRecord]:
    """Convenience function to load a single batch of rows.

    Args:
        raw_records: Parsed rows.
        start_id: Id given to the first record.

    Returns:
        TransactionRecords with ids start_id, start_id + 1, ...
    """
    return RecordLoader(start_id).load(raw_records)

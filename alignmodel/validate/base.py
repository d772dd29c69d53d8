from dataclasses import dataclass
from typing import Optional, Tuple

from ..constants import VIOLATION


@dataclass(frozen=True)
class Violation:
    """
    a single problem found with a record

    Attributes:
        kind (str): one of :attr:`~alignmodel.constants.VIOLATION`
        message (str): human readable description
        subject (str): label of the record the problem was found on
        key (tuple): fallback key of the alignment(s) involved, when the record is an alignment
    """
    kind: str
    message: str
    subject: Optional[str] = None
    key: Optional[Tuple] = None

    def __post_init__(self):
        VIOLATION.enforce(self.kind)

    def __str__(self):
        if self.subject is None:
            return '{}: {}'.format(self.kind, self.message)
        return '{} [{}]: {}'.format(self.kind, self.subject, self.message)


class ValidationContext:
    """
    lookups used by checks which involve more than a single record

    Args:
        read_group_sets (iterable of ReadGroupSet): read group sets the alignments may belong to
        read_groups (iterable of ReadGroup): additional read groups which are not part of a given set
        mapped_read_group_ids (iterable of str): ids of read groups known to own mapped alignments
    """

    def __init__(self, read_group_sets=(), read_groups=(), mapped_read_group_ids=()):
        self.read_group_sets = list(read_group_sets)
        self._read_groups = {}
        for read_group_set in self.read_group_sets:
            for read_group in read_group_set.read_groups:
                self._read_groups.setdefault(read_group.id, read_group)
        for read_group in read_groups:
            self._read_groups.setdefault(read_group.id, read_group)
        self.mapped_read_group_ids = frozenset(mapped_read_group_ids)

    def has_read_group(self, read_group_id):
        return read_group_id in self._read_groups

    def get_read_group(self, read_group_id):
        return self._read_groups[read_group_id]

    def reference_set_id(self, read_group_id):
        """
        Raises:
            KeyError: the read group does not exist
        """
        return self._read_groups[read_group_id].reference_set_id

    def is_mapped(self, read_group_id):
        return read_group_id in self.mapped_read_group_ids

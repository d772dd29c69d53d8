"""
assembles the alignments of each fragment into a view of its reads, so that multi-segment and
chimeric alignments can be reconstructed without scanning the full collection again
"""
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from Bio.Seq import reverse_complement

from . import cigar as _cigar
from .error import AmbiguousPrimary
from .records import ReadAlignment, ReadStats
from .util import LOG
from .validate import duplicate_primary_alignments


class ReadView:
    """
    the alignments of a single read of a fragment

    Attributes:
        read_number (int): the read number shared by the alignments (None when the records have none)
        primary (ReadAlignment): the alignment which is neither secondary nor supplementary, if any
        others (tuple of ReadAlignment): the secondary and supplementary alignments in input order
    """

    def __init__(self, read_number: Optional[int], primary: Optional[ReadAlignment] = None, others=()):
        self.read_number = read_number
        self.primary = primary
        self.others = tuple(others)

    def __repr__(self):
        return '{}(read_number={}, primary={}, others={})'.format(
            self.__class__.__name__, self.read_number, self.primary is not None, len(self.others))

    def alignments(self) -> List[ReadAlignment]:
        return ([self.primary] if self.primary is not None else []) + list(self.others)

    def supplementary(self) -> List[ReadAlignment]:
        return [read for read in self.others if read.is_supplementary]

    def secondary(self) -> List[ReadAlignment]:
        return [read for read in self.others if read.is_secondary]

    def read_length(self) -> Optional[int]:
        """
        length of the read as sequenced. Uses the cigar of the primary alignment so hard clipped
        bases are counted, otherwise the length of the primary sequence

        Raises:
            InvalidCigar: the cigar of the primary alignment is malformed
        """
        if self.primary is None:
            return None
        if self.primary.is_mapped and self.primary.alignment.cigar:
            return _cigar.full_query_length(self.primary.alignment.cigar)
        if self.primary.aligned_sequence is not None:
            return len(self.primary.aligned_sequence)
        return None

    def segments(self) -> List[Tuple[Tuple[int, int], ReadAlignment]]:
        """
        the primary and supplementary alignments of the read, each with the part of the read it aligns
        given as 0-based half-open coordinates in the orientation the read was sequenced in. Sorted by the
        start of the read interval this gives the order of the pieces of a chimeric read

        Raises:
            InvalidCigar: the cigar of one of the alignments is malformed
        """
        result = []
        for read in self.alignments():
            if not read.is_mapped or read.is_secondary or not read.alignment.cigar:
                continue
            interval = _cigar.query_interval(read.alignment.cigar, reverse=read.alignment.position.is_reverse)
            result.append((interval, read))
        result.sort(key=lambda x: x[0])
        return result

    def sequenced_sequence(self) -> Optional[str]:
        """
        the sequence of the primary alignment in the orientation it was sequenced in. Aligned sequences
        of reverse strand alignments are stored as the reverse complement
        """
        if self.primary is None or self.primary.aligned_sequence is None:
            return None
        if self.primary.is_mapped and self.primary.alignment.position.is_reverse:
            return reverse_complement(self.primary.aligned_sequence)
        return self.primary.aligned_sequence


def _read_number_order(read_number):
    return (read_number is None, read_number if read_number is not None else 0)


class FragmentView:
    """
    all alignments sharing a fragment name
    """

    def __init__(self, fragment_name: str, reads: Dict[Optional[int], ReadView]):
        self.fragment_name = fragment_name
        self.reads = reads

    def __repr__(self):
        return '{}({!r}, read_numbers={})'.format(self.__class__.__name__, self.fragment_name, self.read_numbers)

    @property
    def read_numbers(self) -> Tuple:
        """
        distinct read numbers observed, sorted. None (records without a read number) is last
        """
        return tuple(sorted(self.reads, key=_read_number_order))

    def __getitem__(self, read_number):
        return self.reads[read_number]

    def primary(self, read_number):
        return self.reads[read_number].primary

    def alignments(self) -> List[ReadAlignment]:
        result = []
        for read_number in self.read_numbers:
            result.extend(self.reads[read_number].alignments())
        return result

    def is_chimeric(self) -> bool:
        return any([view.supplementary() for view in self.reads.values()])


def group_by_fragment(alignments: Iterable[ReadAlignment]) -> Dict[str, FragmentView]:
    """
    group alignments by fragment name and read number

    Args:
        alignments: the alignments in any order

    Returns:
        dict of str and FragmentView: fragment views by fragment name, in the order the fragments were first seen

    Raises:
        AmbiguousPrimary: at least one read has more than one primary alignment. All such reads are listed on the error
    """
    alignments = list(alignments)
    conflicts = duplicate_primary_alignments(alignments)
    if conflicts:
        raise AmbiguousPrimary([key for key, reads in conflicts])

    grouped = {}
    for read in alignments:
        grouped.setdefault(read.fragment_name, {}).setdefault(read.read_number, []).append(read)

    result = {}
    for fragment_name, by_read_number in grouped.items():
        reads = {}
        for read_number, reads_list in by_read_number.items():
            primary = None
            others = []
            for read in reads_list:
                if read.is_primary:
                    primary = read
                else:
                    others.append(read)
            reads[read_number] = ReadView(read_number, primary, others)
        result[fragment_name] = FragmentView(fragment_name, reads)
    LOG('grouped {} alignment(s) into {} fragment(s)'.format(len(alignments), len(result)), level=logging.DEBUG)
    return result


def flatten(groups: Dict[str, FragmentView]) -> List[ReadAlignment]:
    """
    all alignments of the fragment views
    """
    result = []
    for fragment in groups.values():
        result.extend(fragment.alignments())
    return result


def compute_read_stats(alignments: Iterable[ReadAlignment]) -> ReadStats:
    """
    count the reads of a collection of alignments. Only primary alignments are counted so that a read
    with supplementary or secondary alignments is counted once

    Returns:
        ReadStats: new stats for the alignments
    """
    aligned = 0
    unaligned = 0
    bases = 0
    for read in alignments:
        if not read.is_primary:
            continue
        if read.is_mapped:
            aligned += 1
        else:
            unaligned += 1
        bases += len(read.aligned_sequence or '')
    return ReadStats(aligned_read_count=aligned, unaligned_read_count=unaligned, base_count=bases)

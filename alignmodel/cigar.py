"""
holds methods related to processing cigar tuples. Cigar tuples are generally
an iterable list of tuples where the first element in each tuple is the
CIGAR value (i.e. 1 for an insertion), and the second value is the frequency.
:class:`~alignmodel.records.CigarUnit` objects are accepted anywhere a tuple is
"""
import re
from typing import Iterable, List, Tuple

from .constants import CIGAR
from .error import InvalidCigar

ALIGNED_STATES = {CIGAR.M, CIGAR.X, CIGAR.EQ}
REFERENCE_ALIGNED_STATES = ALIGNED_STATES | {CIGAR.D, CIGAR.N}
QUERY_ALIGNED_STATES = ALIGNED_STATES | {CIGAR.I, CIGAR.S}
CLIPPING_STATE = {CIGAR.S, CIGAR.H}

CigarTuples = List[Tuple[int, int]]


def check_cigar(cigar: Iterable) -> CigarTuples:
    """
    checks that a cigar can be used in span computations

    Args:
        cigar: cigar tuples or cigar units

    Returns:
        the cigar as a list of (operation, length) tuples

    Raises:
        InvalidCigar: an operation is not a known cigar value, has a non-positive length,
            or is a hard clip which is not the first or last operation

    Example:
        >>> check_cigar([(CIGAR.H, 5), (CIGAR.M, 10)])
        [(5, 5), (0, 10)]
        >>> check_cigar([(CIGAR.M, 5), (CIGAR.H, 2), (CIGAR.M, 10)])
        Traceback (most recent call last):
        ....
        alignmodel.error.InvalidCigar: ...
    """
    result = [(unit[0], unit[1]) for unit in cigar]
    for index, (state, freq) in enumerate(result):
        if state not in CIGAR.values():
            raise InvalidCigar('unexpected cigar value', state, result)
        if isinstance(freq, bool) or not isinstance(freq, int) or freq <= 0:
            raise InvalidCigar('cigar operation lengths must be positive integers', (state, freq), result)
        if state == CIGAR.H and index not in (0, len(result) - 1):
            raise InvalidCigar('hard clipping is only allowed at the start or end of a cigar', index, result)
    return result


def reference_span(cigar: Iterable) -> int:
    """
    number of reference bases covered by the alignment (M, D, N, =, X)

    Example:
        >>> reference_span([(CIGAR.M, 5), (CIGAR.D, 2), (CIGAR.I, 3)])
        7
    """
    return sum([f for v, f in check_cigar(cigar) if v in REFERENCE_ALIGNED_STATES] + [0])


def query_span(cigar: Iterable) -> int:
    """
    number of read bases consumed by the alignment (M, I, S, =, X). This is the expected length of the aligned sequence

    Example:
        >>> query_span([(CIGAR.M, 5), (CIGAR.D, 2), (CIGAR.I, 3)])
        8
    """
    return sum([f for v, f in check_cigar(cigar) if v in QUERY_ALIGNED_STATES] + [0])


compute_reference_span = reference_span
compute_query_span = query_span


def hard_clipping(cigar: Iterable) -> Tuple[int, int]:
    """
    Returns:
        tuple of int and int: the number of hard clipped bases at the start and at the end of the read

    Example:
        >>> hard_clipping([(CIGAR.H, 5), (CIGAR.M, 10), (CIGAR.H, 2)])
        (5, 2)
    """
    cigar = check_cigar(cigar)
    if not cigar:
        return 0, 0
    start = cigar[0][1] if cigar[0][0] == CIGAR.H else 0
    end = cigar[-1][1] if len(cigar) > 1 and cigar[-1][0] == CIGAR.H else 0
    return start, end


def soft_clipping(cigar: Iterable) -> Tuple[int, int]:
    """
    Returns:
        tuple of int and int: the number of soft clipped bases at the start and at the end of the read

    Example:
        >>> soft_clipping([(CIGAR.H, 5), (CIGAR.S, 3), (CIGAR.M, 10)])
        (3, 0)
    """
    inner = [(v, f) for v, f in check_cigar(cigar) if v != CIGAR.H]
    if not inner:
        return 0, 0
    start = inner[0][1] if inner[0][0] == CIGAR.S else 0
    end = inner[-1][1] if len(inner) > 1 and inner[-1][0] == CIGAR.S else 0
    return start, end


def full_query_length(cigar: Iterable) -> int:
    """
    length of the read as it was sequenced, the query span plus any hard clipped bases.
    Supplementary alignments are often hard clipped so the aligned sequence alone
    under-reports the read length

    Example:
        >>> full_query_length([(CIGAR.H, 50), (CIGAR.M, 100)])
        150
    """
    start, end = hard_clipping(cigar)
    return start + query_span(cigar) + end


def query_interval(cigar: Iterable, reverse: bool = False) -> Tuple[int, int]:
    """
    the part of the read which is aligned (not clipped) given in the coordinates of the full read

    Args:
        cigar: the cigar of the alignment
        reverse: True if the alignment is to the negative strand. The cigar runs along the reverse
            complement of the read so the interval is flipped back to the orientation it was sequenced in

    Returns:
        tuple of int and int: 0-based half-open start and end

    Example:
        >>> query_interval([(CIGAR.H, 50), (CIGAR.M, 100)])
        (50, 150)
        >>> query_interval([(CIGAR.H, 50), (CIGAR.M, 100)], reverse=True)
        (0, 100)
    """
    cigar = check_cigar(cigar)
    hard_start, hard_end = hard_clipping(cigar)
    soft_start, soft_end = soft_clipping(cigar)
    start = hard_start + soft_start
    end = start + sum([f for v, f in cigar if v in QUERY_ALIGNED_STATES - {CIGAR.S}] + [0])
    if reverse:
        total = hard_start + query_span(cigar) + hard_end
        return total - end, total - start
    return start, end


def join(*pos):
    """
    given a number of cigar lists, joins them and merges any consecutive tuples
    with the same cigar value

    Example:
        >>> join([(1, 1), (4, 7)], [(4, 3), (2, 4)])
        [(1, 1), (4, 10), (2, 4)]
    """
    result = []
    for cigar in pos:
        for unit in cigar:
            v, f = unit[0], unit[1]
            if len(result) > 0 and result[-1][0] == v:
                result[-1] = (v, f + result[-1][1])
            else:
                result.append((v, f))
    return result


def convert_string_to_cigar(string: str) -> CigarTuples:
    """
    Given a cigar string, converts it to the appropriate cigar tuple

    Raises:
        InvalidCigar: the string contains characters which are not part of a cigar

    Example:
        >>> convert_string_to_cigar('8M2I1D9X')
        [(0, 8), (1, 2), (2, 1), (8, 9)]
    """
    if string in ('', '*'):
        return []
    if not re.match(r'^(\d+[MIDNSHP=X])+$', string):
        raise InvalidCigar('unable to parse cigar string', string)
    return [
        (CIGAR[op] if op != '=' else CIGAR.EQ, int(freq))
        for freq, op in re.findall(r'(\d+)([MIDNSHP=X])', string)
    ]


def convert_cigar_to_string(cigar: Iterable) -> str:
    """
    Example:
        >>> convert_cigar_to_string([(CIGAR.S, 3), (CIGAR.EQ, 10)])
        '3S10='
    """
    result = ''.join(['{}{}'.format(unit[1], CIGAR.reverse(unit[0]) if unit[0] != CIGAR.EQ else '=') for unit in cigar])
    return result or '*'

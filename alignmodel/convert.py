"""
conversion between pysam aligned segments and read alignment records
"""
import pysam

from .config import DEFAULTS
from .constants import SAM_FLAG, STRAND
from .records import InfoMap, LinearAlignment, Position, ReadAlignment


def is_flag_set(flag, bit):
    return flag & bit == bit


def _tag_values(value):
    if isinstance(value, (list, tuple)) or (hasattr(value, 'tolist') and not isinstance(value, str)):
        return [str(v) for v in (value.tolist() if hasattr(value, 'tolist') else value)]
    return [str(value)]


def read_alignment_from_pysam(read: pysam.AlignedSegment, read_group_id, reference_name=None, next_reference_name=None):
    """
    create a read alignment record from a pysam aligned segment

    Args:
        read (pysam.AlignedSegment): the input read
        read_group_id (str): id of the read group the read belongs to
        reference_name (str): name of the reference the read is aligned to. Taken from the read when not given
        next_reference_name (str): name of the reference the mate is aligned to. Taken from the read when not given

    Returns:
        ReadAlignment: the converted read. A mapping quality of 255 is treated as not calculated
    """
    flag = read.flag
    kwargs = {
        'read_group_id': read_group_id,
        'fragment_name': read.query_name,
        'proper_placement': is_flag_set(flag, SAM_FLAG.PROPER_PAIR),
        'duplicate_fragment': is_flag_set(flag, SAM_FLAG.DUPLICATE),
        'failed_vendor_quality_checks': is_flag_set(flag, SAM_FLAG.QC_FAIL),
        'secondary_alignment': is_flag_set(flag, SAM_FLAG.SECONDARY),
        'supplementary_alignment': is_flag_set(flag, SAM_FLAG.SUPPLEMENTARY),
        'fragment_length': read.template_length,
        'info': InfoMap({tag: _tag_values(value) for tag, value in read.get_tags()}),
    }
    if read.query_sequence is not None:
        kwargs['aligned_sequence'] = read.query_sequence
    if read.query_qualities is not None:
        kwargs['aligned_quality'] = list(read.query_qualities)

    if is_flag_set(flag, SAM_FLAG.PAIRED):
        kwargs['number_reads'] = 2
        if is_flag_set(flag, SAM_FLAG.FIRST_IN_PAIR):
            kwargs['read_number'] = 0
        elif is_flag_set(flag, SAM_FLAG.SECOND_IN_PAIR):
            kwargs['read_number'] = 1
    else:
        kwargs['number_reads'] = 1
        kwargs['read_number'] = 0

    if not is_flag_set(flag, SAM_FLAG.UNMAPPED):
        alignment = {
            'position': Position(
                reference_name=reference_name if reference_name is not None else read.reference_name,
                position=read.reference_start,
                strand=STRAND.NEG if is_flag_set(flag, SAM_FLAG.REVERSE) else STRAND.POS,
            ),
            'cigar': read.cigartuples or [],
        }
        if read.mapping_quality != DEFAULTS.na_mapping_quality:
            alignment['mapping_quality'] = read.mapping_quality
        kwargs['alignment'] = LinearAlignment(**alignment)

    if is_flag_set(flag, SAM_FLAG.PAIRED) and not is_flag_set(flag, SAM_FLAG.MATE_UNMAPPED) and read.next_reference_start >= 0:
        kwargs['next_mate_position'] = Position(
            reference_name=next_reference_name if next_reference_name is not None else read.next_reference_name,
            position=read.next_reference_start,
            strand=STRAND.NEG if is_flag_set(flag, SAM_FLAG.MATE_REVERSE) else STRAND.POS,
        )
    return ReadAlignment(**kwargs)


def sam_flag(read: ReadAlignment) -> int:
    """
    compute the SAM flag for a read alignment. Unset boolean fields are treated as False

    Example:
        >>> sam_flag(ReadAlignment(read_group_id='rg', fragment_name='f', number_reads=2, read_number=0))
        77
    """
    flag = 0
    paired = read.number_reads is not None and read.number_reads > 1
    if paired:
        flag |= SAM_FLAG.PAIRED
        if read.read_number == 0:
            flag |= SAM_FLAG.FIRST_IN_PAIR
        elif read.read_number == read.number_reads - 1:
            flag |= SAM_FLAG.SECOND_IN_PAIR
        elif read.read_number is not None:
            flag |= SAM_FLAG.FIRST_IN_PAIR | SAM_FLAG.SECOND_IN_PAIR
        if read.proper_placement:
            flag |= SAM_FLAG.PROPER_PAIR
        if read.next_mate_position is None:
            flag |= SAM_FLAG.MATE_UNMAPPED
        elif read.next_mate_position.is_reverse:
            flag |= SAM_FLAG.MATE_REVERSE
    if not read.is_mapped:
        flag |= SAM_FLAG.UNMAPPED
    elif read.alignment.position.is_reverse:
        flag |= SAM_FLAG.REVERSE
    if read.is_secondary:
        flag |= SAM_FLAG.SECONDARY
    if read.is_supplementary:
        flag |= SAM_FLAG.SUPPLEMENTARY
    if read.failed_vendor_quality_checks:
        flag |= SAM_FLAG.QC_FAIL
    if read.duplicate_fragment:
        flag |= SAM_FLAG.DUPLICATE
    return flag

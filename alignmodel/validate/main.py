"""
checks for single records and batches of records. Nothing here changes a record: every problem
is returned as a :class:`~alignmodel.validate.base.Violation` and the caller decides whether it
rejects the record (see :func:`check`)
"""
import itertools
import logging

from .. import cigar as _cigar
from ..config import DEFAULTS
from ..constants import NA_MAPPING_QUALITY, VIOLATION
from ..error import InvalidCigar, ValidationError
from ..records import LinearAlignment, Position, Program, ReadAlignment, ReadGroup, ReadGroupSet, ReadStats, Experiment
from ..util import LOG
from .base import ValidationContext, Violation


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def validate_stats(stats, subject=None):
    negative = [
        name for name in ['aligned_read_count', 'unaligned_read_count', 'base_count']
        if getattr(stats, name) is not None and (not _is_int(getattr(stats, name)) or getattr(stats, name) < 0)
    ]
    if negative:
        return [Violation(VIOLATION.INVALID_STATS, 'counts must be non-negative integers: {}'.format(', '.join(negative)), subject)]
    return []


def validate_linear_alignment(alignment, subject=None, key=None):
    violations = []
    try:
        _cigar.check_cigar(alignment.cigar)
    except InvalidCigar as err:
        violations.append(Violation(VIOLATION.INVALID_CIGAR, str(err.args[0]), subject, key))
    mapq = alignment.mapping_quality
    if mapq is not None and (not _is_int(mapq) or mapq < 0 or mapq > NA_MAPPING_QUALITY):
        violations.append(Violation(
            VIOLATION.INVALID_MAPPING_QUALITY,
            'mapping quality must be an integer from 0 to {}, found {!r}'.format(NA_MAPPING_QUALITY, mapq),
            subject, key
        ))
    return violations


def _check_read_number(read):
    """
    number_reads and read_number are each checked when given. When only one is given, the other is not assumed
    """
    number_reads, read_number = read.number_reads, read.read_number
    if number_reads is not None and number_reads <= 0:
        return 'number of reads must be positive, found {}'.format(number_reads)
    if read_number is not None and read_number < 0:
        return 'read number must not be negative, found {}'.format(read_number)
    if number_reads is not None and read_number is not None and read_number >= number_reads:
        return 'read number {} is out of range for {} read(s)'.format(read_number, number_reads)
    return None


def validate_read_alignment(read, context=None):
    subject = read.label()
    key = read.key()
    violations = []

    if context is not None and not context.has_read_group(read.read_group_id):
        violations.append(Violation(
            VIOLATION.UNKNOWN_READ_GROUP, 'read group {} does not exist'.format(read.read_group_id), subject, key))

    message = _check_read_number(read)
    if message:
        violations.append(Violation(VIOLATION.READ_NUMBER_OUT_OF_RANGE, message, subject, key))

    if any([q < 0 for q in read.aligned_quality]):
        violations.append(Violation(VIOLATION.INVALID_QUALITY, 'base qualities must not be negative', subject, key))
    if read.aligned_quality and read.aligned_sequence is not None and len(read.aligned_quality) != len(read.aligned_sequence):
        violations.append(Violation(
            VIOLATION.QUALITY_LENGTH_MISMATCH,
            '{} base qualities for a sequence of length {}'.format(len(read.aligned_quality), len(read.aligned_sequence)),
            subject, key
        ))

    if read.alignment is not None:
        alignment_violations = validate_linear_alignment(read.alignment, subject, key)
        violations.extend(alignment_violations)
        cigar_ok = not any([v.kind == VIOLATION.INVALID_CIGAR for v in alignment_violations])
        if cigar_ok and read.alignment.cigar and read.aligned_sequence:
            expected = _cigar.query_span(read.alignment.cigar)
            if expected != len(read.aligned_sequence):
                violations.append(Violation(
                    VIOLATION.CIGAR_SEQUENCE_MISMATCH,
                    'cigar {} consumes {} query bases but the sequence has length {}'.format(
                        read.alignment.cigar_string(), expected, len(read.aligned_sequence)),
                    subject, key
                ))
    return violations


def validate_read_group(read_group, context=None):
    subject = read_group.id
    violations = []
    if read_group.stats is not None:
        violations.extend(validate_stats(read_group.stats, subject))

    created, updated = read_group.created, read_group.updated
    if any([t is not None and t < 0 for t in [created, updated]]):
        violations.append(Violation(VIOLATION.INVALID_TIMESTAMPS, 'timestamps must not be negative', subject))
    elif created is not None and updated is not None and updated < created:
        violations.append(Violation(
            VIOLATION.INVALID_TIMESTAMPS, 'updated ({}) is before created ({})'.format(updated, created), subject))

    if context is not None and context.is_mapped(read_group.id) and read_group.reference_set_id is None:
        violations.append(_missing_reference_set(read_group.id))
    return violations


def _missing_reference_set(read_group_id):
    return Violation(
        VIOLATION.MISSING_REFERENCE_SET,
        'read group has mapped alignments but no reference set', read_group_id)


def validate_read_group_set(read_group_set, context=None):
    subject = read_group_set.id
    violations = []
    if read_group_set.stats is not None:
        violations.extend(validate_stats(read_group_set.stats, subject))

    seen = set()
    for read_group in read_group_set.read_groups:
        if read_group.id in seen:
            violations.append(Violation(
                VIOLATION.DUPLICATE_READ_GROUP, 'read group id {} is used more than once'.format(read_group.id), subject))
        seen.add(read_group.id)
        violations.extend(validate_read_group(read_group, context))

    reference_sets = read_group_set.reference_set_ids()
    if len(reference_sets) > 1:
        violations.append(Violation(
            VIOLATION.REFERENCE_SET_CONFLICT,
            'read groups use different reference sets: {}'.format(', '.join(reference_sets)), subject))
    return violations


def duplicate_primary_alignments(alignments):
    """
    Returns:
        list of tuple: (fragment_name, read_number) and the primary alignments for every read with more than one primary alignment
    """
    primaries = {}
    for read in alignments:
        if read.is_primary:
            primaries.setdefault((read.fragment_name, read.read_number), []).append(read)
    return [(key, reads) for key, reads in primaries.items() if len(reads) > 1]


def validate_alignments(alignments, context=None):
    """
    validate a batch of alignments. In addition to the checks for each alignment, checks that each read
    has a single primary alignment and that read groups with mapped alignments have a reference set
    """
    alignments = list(alignments)
    violations = []
    for read in alignments:
        violations.extend(validate_read_alignment(read, context))

    for (fragment_name, read_number), reads in duplicate_primary_alignments(alignments):
        violations.append(Violation(
            VIOLATION.DUPLICATE_PRIMARY_ALIGNMENT,
            '{} primary alignments for read {} of fragment {}'.format(len(reads), read_number, fragment_name),
            fragment_name,
            (fragment_name, read_number),
        ))

    if context is not None:
        reported = set()
        for read in alignments:
            if not read.is_mapped or read.read_group_id in reported or not context.has_read_group(read.read_group_id):
                continue
            reported.add(read.read_group_id)
            if context.reference_set_id(read.read_group_id) is None:
                violations.append(_missing_reference_set(read.read_group_id))
    return violations


def validate(record, context=None):
    """
    check a record, or a batch of alignments, for violations

    Args:
        record: any schema record, or an iterable of :class:`~alignmodel.records.ReadAlignment`
        context (ValidationContext): lookups for read groups. Checks which need a lookup are skipped without one

    Returns:
        list of Violation: every problem found. An empty list means the record is valid

    Example:
        >>> read = ReadAlignment(read_group_id='rg1', fragment_name='f1', number_reads=2, read_number=2)
        >>> [v.kind for v in validate(read)]
        ['ReadNumberOutOfRange']
    """
    if isinstance(record, ReadAlignment):
        violations = validate_read_alignment(record, context)
    elif isinstance(record, ReadGroupSet):
        violations = validate_read_group_set(record, context)
    elif isinstance(record, ReadGroup):
        violations = validate_read_group(record, context)
    elif isinstance(record, ReadStats):
        violations = validate_stats(record)
    elif isinstance(record, LinearAlignment):
        violations = validate_linear_alignment(record)
    elif isinstance(record, (Program, Position, Experiment)):
        violations = []
    else:
        try:
            records = list(record)
        except TypeError:
            raise TypeError('cannot validate object of type {}'.format(type(record).__name__))
        bad_types = {type(r).__name__ for r in records if not isinstance(r, ReadAlignment)}
        if bad_types:
            raise TypeError('batches may only contain ReadAlignment records, found', sorted(bad_types))
        violations = validate_alignments(records, context)
    LOG('validated {}: {} violation(s)'.format(type(record).__name__, len(violations)), level=logging.DEBUG)
    return violations


def validate_all(read_group_sets, alignments=()):
    """
    validate read group sets and the alignments belonging to them together

    Returns:
        list of Violation: violations for the read group sets, followed by the violations for the alignments
    """
    read_group_sets = list(read_group_sets)
    context = ValidationContext(read_group_sets)
    violations = list(itertools.chain.from_iterable([validate(rgs, context) for rgs in read_group_sets]))
    violations.extend(validate(list(alignments), context))
    return violations


def check(record, context=None, strict=None, log=LOG):
    """
    validate a record and apply a policy to the result

    Args:
        strict (bool): raise an error for any violation. Defaults to :term:`strict`
        log (Log): where violations are reported when not strict

    Returns:
        list of Violation: the violations found (only returned when not strict)

    Raises:
        ValidationError: strict checking found at least one violation
    """
    if strict is None:
        strict = DEFAULTS.strict
    violations = validate(record, context)
    if violations and strict:
        raise ValidationError(violations)
    for violation in violations:
        log(str(violation), level=logging.WARNING)
    return violations

import logging

import pytest

from alignmodel.constants import CIGAR, STRAND, VIOLATION
from alignmodel.error import ValidationError
from alignmodel.records import LinearAlignment, Position, Program, ReadAlignment, ReadGroup, ReadGroupSet, ReadStats
from alignmodel.validate import ValidationContext, Violation, check, validate, validate_all


def mapped(fragment_name='f1', read_number=0, read_group_id='rg1', cigar=((CIGAR.M, 4),), **kwargs):
    return ReadAlignment(
        read_group_id=read_group_id,
        fragment_name=fragment_name,
        read_number=read_number,
        alignment=LinearAlignment(
            position=Position(reference_name='chr1', position=100, strand=STRAND.POS), mapping_quality=30, cigar=cigar
        ),
        **kwargs
    )


def kinds(violations):
    return [v.kind for v in violations]


class TestReadAlignment:
    def test_valid(self):
        assert validate(mapped(aligned_sequence='ACGT', aligned_quality=[1, 2, 3, 4], number_reads=2)) == []

    def test_read_number_equal_to_number_reads(self):
        read = ReadAlignment(read_group_id='rg1', fragment_name='f1', number_reads=2, read_number=2)
        assert kinds(validate(read)) == [VIOLATION.READ_NUMBER_OUT_OF_RANGE]

    def test_negative_read_number(self):
        read = ReadAlignment(read_group_id='rg1', fragment_name='f1', read_number=-1)
        assert kinds(validate(read)) == [VIOLATION.READ_NUMBER_OUT_OF_RANGE]

    def test_zero_number_reads(self):
        read = ReadAlignment(read_group_id='rg1', fragment_name='f1', number_reads=0)
        assert kinds(validate(read)) == [VIOLATION.READ_NUMBER_OUT_OF_RANGE]

    def test_read_number_without_number_reads(self):
        assert validate(ReadAlignment(read_group_id='rg1', fragment_name='f1', read_number=5)) == []
        assert validate(ReadAlignment(read_group_id='rg1', fragment_name='f1', number_reads=3)) == []

    def test_quality_length_mismatch(self):
        read = ReadAlignment(read_group_id='rg1', fragment_name='f1', aligned_sequence='ACGT', aligned_quality=[1, 2, 3])
        assert kinds(validate(read)) == [VIOLATION.QUALITY_LENGTH_MISMATCH]

    def test_empty_quality_is_allowed(self):
        read = ReadAlignment(read_group_id='rg1', fragment_name='f1', aligned_sequence='ACGT', aligned_quality=[])
        assert validate(read) == []

    def test_quality_without_sequence(self):
        read = ReadAlignment(read_group_id='rg1', fragment_name='f1', aligned_quality=[1, 2, 3])
        assert validate(read) == []

    def test_negative_quality(self):
        read = ReadAlignment(read_group_id='rg1', fragment_name='f1', aligned_sequence='AC', aligned_quality=[1, -2])
        assert kinds(validate(read)) == [VIOLATION.INVALID_QUALITY]

    def test_unknown_read_group(self):
        context = ValidationContext(read_groups=[ReadGroup(id='rg1')])
        assert kinds(validate(mapped(read_group_id='rg2'), context)) == [VIOLATION.UNKNOWN_READ_GROUP]
        assert validate(mapped(read_group_id='rg1'), context) == []

    def test_read_group_not_checked_without_context(self):
        assert validate(mapped(read_group_id='missing')) == []

    def test_invalid_cigar(self):
        read = mapped(cigar=[(CIGAR.M, 2), (CIGAR.H, 2), (CIGAR.M, 2)], aligned_sequence='ACGT')
        assert kinds(validate(read)) == [VIOLATION.INVALID_CIGAR]

    def test_cigar_sequence_mismatch(self):
        read = mapped(cigar=[(CIGAR.S, 2), (CIGAR.M, 4)], aligned_sequence='ACGT')
        assert kinds(validate(read)) == [VIOLATION.CIGAR_SEQUENCE_MISMATCH]

    def test_hard_clips_are_not_part_of_sequence(self):
        read = mapped(cigar=[(CIGAR.H, 20), (CIGAR.M, 4)], aligned_sequence='ACGT')
        assert validate(read) == []

    @pytest.mark.parametrize('mapq', [-1, 256, 2.5])
    def test_invalid_mapping_quality(self, mapq):
        alignment = LinearAlignment(position=Position(reference_name='chr1', position=1), mapping_quality=mapq)
        assert kinds(validate(alignment)) == [VIOLATION.INVALID_MAPPING_QUALITY]

    def test_multiple_violations(self):
        read = mapped(
            number_reads=1, read_number=1, aligned_sequence='ACGT', aligned_quality=[1], cigar=[(CIGAR.M, 0)]
        )
        assert kinds(validate(read)) == [
            VIOLATION.READ_NUMBER_OUT_OF_RANGE, VIOLATION.QUALITY_LENGTH_MISMATCH, VIOLATION.INVALID_CIGAR
        ]

    def test_does_not_modify(self):
        read = mapped(number_reads=1, read_number=1)
        copy = read.replace()
        validate(read)
        assert read == copy


class TestReadGroups:
    def test_reference_set_conflict(self):
        rgs = ReadGroupSet(
            id='rgs1',
            read_groups=[ReadGroup(id='rg1', reference_set_id='A'), ReadGroup(id='rg2', reference_set_id='B')],
        )
        violations = validate(rgs)
        assert kinds(violations) == [VIOLATION.REFERENCE_SET_CONFLICT]
        assert violations[0].subject == 'rgs1'

    def test_null_reference_set_does_not_conflict(self):
        rgs = ReadGroupSet(
            id='rgs1',
            read_groups=[ReadGroup(id='rg1', reference_set_id='A'), ReadGroup(id='rg2'), ReadGroup(id='rg3', reference_set_id='A')],
        )
        assert validate(rgs) == []

    def test_duplicate_read_group(self):
        rgs = ReadGroupSet(id='rgs1', read_groups=[ReadGroup(id='rg1'), ReadGroup(id='rg1')])
        assert kinds(validate(rgs)) == [VIOLATION.DUPLICATE_READ_GROUP]

    def test_invalid_stats(self):
        assert kinds(validate(ReadStats(aligned_read_count=-1, base_count=-5))) == [VIOLATION.INVALID_STATS]
        assert validate(ReadStats(aligned_read_count=0)) == []
        rgs = ReadGroupSet(id='rgs1', stats=ReadStats(base_count=-1), read_groups=[ReadGroup(id='rg1', stats=ReadStats(unaligned_read_count=-1))])
        assert kinds(validate(rgs)) == [VIOLATION.INVALID_STATS, VIOLATION.INVALID_STATS]

    @pytest.mark.parametrize('created,updated,valid', [
        [1, 2, True],
        [2, 2, True],
        [3, 2, False],
        [None, 2, True],
        [-1, None, False],
    ])
    def test_timestamps(self, created, updated, valid):
        read_group = ReadGroup(id='rg1', created=created, updated=updated)
        assert (validate(read_group) == []) == valid

    def test_missing_reference_set_from_context(self):
        context = ValidationContext(read_groups=[ReadGroup(id='rg1')], mapped_read_group_ids=['rg1'])
        assert kinds(validate(context.get_read_group('rg1'), context)) == [VIOLATION.MISSING_REFERENCE_SET]

    def test_no_checks_for_program(self):
        assert validate(Program(id='p')) == []


class TestBatch:
    def test_duplicate_primary(self):
        reads = [
            mapped('f1', 0, secondary_alignment=False, supplementary_alignment=False),
            mapped('f1', 0, secondary_alignment=False, supplementary_alignment=False),
            mapped('f1', 1),
        ]
        violations = validate(reads)
        assert kinds(violations) == [VIOLATION.DUPLICATE_PRIMARY_ALIGNMENT]
        assert violations[0].key == ('f1', 0)

    def test_three_primaries_reported_once(self):
        reads = [mapped('f1', 0) for i in range(3)]
        assert kinds(validate(reads)) == [VIOLATION.DUPLICATE_PRIMARY_ALIGNMENT]

    def test_secondary_and_supplementary_are_not_primary(self):
        reads = [
            mapped('f1', 0),
            mapped('f1', 0, secondary_alignment=True),
            mapped('f1', 0, supplementary_alignment=True),
        ]
        assert validate(reads) == []

    def test_unmapped_flags_treated_as_false(self):
        reads = [
            mapped('f1', 0),
            ReadAlignment(read_group_id='rg1', fragment_name='f1', read_number=0, secondary_alignment=True),
        ]
        assert kinds(validate(reads)) == [VIOLATION.DUPLICATE_PRIMARY_ALIGNMENT]

    def test_missing_reference_set(self):
        context = ValidationContext([ReadGroupSet(id='rgs', read_groups=[ReadGroup(id='rg1'), ReadGroup(id='rg2')])])
        reads = [
            mapped('f1', 0), mapped('f2', 0),
            ReadAlignment(read_group_id='rg2', fragment_name='f3'),
        ]
        violations = validate(reads, context)
        assert kinds(violations) == [VIOLATION.MISSING_REFERENCE_SET]
        assert violations[0].subject == 'rg1'

    def test_invalid_cigar_does_not_stop_batch(self):
        reads = [
            mapped('f1', 0, cigar=[(CIGAR.M, -4)]),
            mapped('f2', number_reads=1, read_number=3),
        ]
        assert kinds(validate(reads)) == [VIOLATION.INVALID_CIGAR, VIOLATION.READ_NUMBER_OUT_OF_RANGE]

    def test_generator(self):
        assert validate(mapped(name, 0) for name in ['a', 'b']) == []

    def test_wrong_record_type_in_batch(self):
        with pytest.raises(TypeError):
            validate([mapped(), ReadGroup(id='rg1')])

    def test_not_a_record(self):
        with pytest.raises(TypeError):
            validate(1)

    def test_validate_all(self):
        rgs = ReadGroupSet(
            id='rgs1',
            read_groups=[ReadGroup(id='rg1', reference_set_id='A'), ReadGroup(id='rg2', reference_set_id='B')],
        )
        reads = [mapped('f1', 0), mapped('f2', 0, read_group_id='rg3')]
        assert kinds(validate_all([rgs], reads)) == [VIOLATION.REFERENCE_SET_CONFLICT, VIOLATION.UNKNOWN_READ_GROUP]


class TestCheck:
    def test_strict(self):
        read = ReadAlignment(read_group_id='rg1', fragment_name='f1', number_reads=2, read_number=2)
        with pytest.raises(ValidationError) as err:
            check(read, strict=True)
        assert kinds(err.value.violations) == [VIOLATION.READ_NUMBER_OUT_OF_RANGE]

    def test_not_strict_logs(self, caplog):
        read = ReadAlignment(read_group_id='rg1', fragment_name='f1', number_reads=2, read_number=2)
        with caplog.at_level(logging.WARNING):
            violations = check(read, strict=False)
        assert kinds(violations) == [VIOLATION.READ_NUMBER_OUT_OF_RANGE]
        assert 'ReadNumberOutOfRange' in caplog.text

    def test_strict_from_env(self, monkeypatch):
        monkeypatch.setenv('ALIGNMODEL_STRICT', 'true')
        with pytest.raises(ValidationError):
            check(ReadStats(base_count=-1))

    def test_valid_record(self):
        assert check(mapped(), strict=True) == []


def test_violation_kind_is_enforced():
    with pytest.raises(KeyError):
        Violation('NotAKind', 'message')

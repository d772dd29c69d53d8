"""
immutable record types for read group sets, read groups and read alignments

Every optional field remembers whether it was given. A field which was not given reads as its
default (``None``, an empty tuple for lists or an empty :class:`InfoMap`) but is left out when the
record is serialized, while a field given as ``None`` is serialized as an explicit null. Records with
the same values but different presence are not equal

Example:
    >>> Program(name='bwa').is_set('version')
    False
    >>> Program(version=None).is_set('version')
    True
    >>> Program() == Program(version=None)
    False
"""
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
import json
import logging
import math
from typing import FrozenSet, NamedTuple, Optional, Tuple

from . import cigar as _cigar
from .config import DEFAULTS
from .constants import CIGAR_OPERATION, MAX_MAPPING_QUALITY, STRAND
from .error import InvalidRecord
from .util import LOG


class _Unset:
    """
    marker for a field which was not given
    """

    def __repr__(self):
        return 'UNSET'

    def __bool__(self):
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __reduce__(self):
        return 'UNSET'


UNSET = _Unset()


def _camel(name):
    """
    Example:
        >>> _camel('read_group_id')
        'readGroupId'
    """
    head, *tail = name.split('_')
    return head + ''.join([t.capitalize() for t in tail])


def optional(kind, empty=None, many=False, choices=None):
    """
    declare an optional field

    Args:
        kind: the type of the values (str, int, bool, a record class, :class:`CigarUnit` or :class:`InfoMap`)
        empty: the value (or factory for the value) used when the field is not given
        many (bool): the field holds an ordered sequence of values
        choices (Namespace): controlled vocabulary the value must belong to
    """
    if many:
        empty = tuple
    return field(default=UNSET, metadata={'kind': kind, 'empty': empty, 'many': many, 'choices': choices, 'required': False})


def required(kind, choices=None):
    return field(metadata={'kind': kind, 'empty': None, 'many': False, 'choices': choices, 'required': True})


class InfoMap(Mapping):
    """
    immutable mapping of string keys to ordered sequences of string values. Keys keep their
    insertion order but only the key set and the order of the values within a key are used for equality

    Example:
        >>> InfoMap({'XS': ['10'], 'NM': ['1']}) == InfoMap({'NM': ['1'], 'XS': ['10']})
        True
    """

    def __init__(self, data=None, **kwargs):
        content = {}
        for source in (data or {}, kwargs):
            for key, values in source.items():
                if isinstance(values, (str, bytes)):
                    raise TypeError('info values must be a sequence of strings', key, values)
                content[key] = tuple(values)
        self._data = content

    def __getitem__(self, key):
        return self._data[key]

    def __len__(self):
        return len(self._data)

    def __iter__(self):
        return iter(self._data)

    def __eq__(self, other):
        if not isinstance(other, Mapping):
            return NotImplemented
        if not isinstance(other, InfoMap):
            try:
                other = InfoMap(other)
            except TypeError:
                return False
        return self._data == other._data

    def __hash__(self):
        return hash(frozenset(self._data.items()))

    def __repr__(self):
        return '{}({!r})'.format(self.__class__.__name__, self._data)

    def to_dict(self):
        return {key: list(values) for key, values in self._data.items()}

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, Mapping):
            raise InvalidRecord('info must be an object of string keys to lists of strings', data)
        for key, values in data.items():
            if not isinstance(key, str) or not isinstance(values, list) or not all(isinstance(v, str) for v in values):
                raise InvalidRecord('info must be an object of string keys to lists of strings', key, values)
        return cls(data)


class CigarUnit(NamedTuple):
    """
    a single cigar operation. Behaves as the (operation, length) tuples used by pysam
    """
    operation: int
    operation_length: int
    reference_sequence: Optional[str] = None

    @classmethod
    def coerce(cls, unit):
        if isinstance(unit, cls):
            return unit
        return cls(*unit)

    def to_dict(self):
        result = {
            'operation': CIGAR_OPERATION.reverse(self.operation),
            'operationLength': self.operation_length,
        }
        if self.reference_sequence is not None:
            result['referenceSequence'] = self.reference_sequence
        return result

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, Mapping):
            raise InvalidRecord('cigar unit must be an object', data)
        operation = data.get('operation')
        if not isinstance(operation, str) or operation not in CIGAR_OPERATION or 'operationLength' not in data:
            raise InvalidRecord('cigar unit requires a known operation and an operationLength', data)
        operation = CIGAR_OPERATION[operation]
        length = data['operationLength']
        if isinstance(length, bool) or not isinstance(length, int):
            raise InvalidRecord('cigar operation length must be an integer', data)
        return cls(operation, length, data.get('referenceSequence'))


def _check_kind(owner, name, kind, value):
    if kind is bool:
        valid = isinstance(value, bool)
    elif kind is int:
        valid = isinstance(value, int) and not isinstance(value, bool)
    else:
        valid = isinstance(value, kind)
    if not valid:
        raise InvalidRecord('unexpected value type', '{}.{}'.format(owner, name), kind.__name__, value)
    return value


@dataclass(frozen=True)
class Record:
    """
    base class for the immutable schema records
    """
    fields_set: FrozenSet[str] = field(init=False, repr=False, default=frozenset())

    def __post_init__(self):
        present = set()
        for fld in fields(self):
            if not fld.init:
                continue
            value = getattr(self, fld.name)
            if value is UNSET:
                empty = fld.metadata['empty']
                value = empty() if callable(empty) else empty
            else:
                present.add(fld.name)
                value = self._coerce(fld, value)
            object.__setattr__(self, fld.name, value)
        object.__setattr__(self, 'fields_set', frozenset(present))

    @staticmethod
    def _coerce(fld, value):
        kind = fld.metadata['kind']
        if fld.metadata['many']:
            if value is None:
                return ()
            if isinstance(value, (str, bytes)):
                raise TypeError('{} must be a sequence of values, not a string'.format(fld.name), value)
            if kind is CigarUnit:
                return tuple([CigarUnit.coerce(unit) for unit in value])
            return tuple(value)
        if kind is InfoMap:
            return value if isinstance(value, InfoMap) else InfoMap(value)
        if value is not None and fld.metadata['choices'] is not None:
            if value not in fld.metadata['choices'].values():
                raise ValueError('invalid value for {}'.format(fld.name), value, fld.metadata['choices'].values())
        return value

    @classmethod
    def schema_fields(cls):
        return [fld for fld in fields(cls) if fld.init]

    def is_set(self, name):
        """
        Returns:
            bool: True if the field was given when the record was created, even if it was given as null
        """
        if name not in {fld.name for fld in self.schema_fields()}:
            raise AttributeError('{} has no field {}'.format(self.__class__.__name__, name))
        return name in self.fields_set

    def replace(self, **changes):
        """
        create a copy of this record with some fields changed. Fields which were not given on the
        original record (and are not changed) remain unset
        """
        kwargs = {name: getattr(self, name) for name in self.fields_set}
        kwargs.update(changes)
        return self.__class__(**kwargs)

    def to_dict(self):
        """
        serialize to a json-compatible dict using the camelCase field names. Unset fields are left out
        """
        result = {}
        for fld in self.schema_fields():
            if fld.name not in self.fields_set:
                continue
            value = getattr(self, fld.name)
            if fld.metadata['many']:
                value = [v.to_dict() if hasattr(v, 'to_dict') else v for v in value]
            elif value is not None and hasattr(value, 'to_dict'):
                value = value.to_dict()
            result[_camel(fld.name)] = value
        return result

    @classmethod
    def from_dict(cls, data, ignore_unknown=None):
        """
        read a record from its serialized (dict) form

        Args:
            data (dict): the serialized record
            ignore_unknown (bool): skip fields which are not part of the schema, defaults to :term:`ignore_unknown_fields`

        Raises:
            InvalidRecord: a required field is missing, or a value has the wrong type
        """
        if ignore_unknown is None:
            ignore_unknown = DEFAULTS.ignore_unknown_fields
        if not isinstance(data, Mapping):
            raise InvalidRecord('expected an object', cls.__name__, data)
        known = {_camel(fld.name): fld for fld in cls.schema_fields()}
        kwargs = {}
        for key, value in data.items():
            if key not in known:
                if not ignore_unknown:
                    raise InvalidRecord('unexpected field', cls.__name__, key)
                LOG('ignoring unknown field', repr(key), 'for', cls.__name__, level=logging.DEBUG)
                continue
            fld = known[key]
            kwargs[fld.name] = cls._deserialize(fld, value, ignore_unknown)
        missing = [key for key, fld in known.items() if fld.metadata['required'] and fld.name not in kwargs]
        if missing:
            raise InvalidRecord('missing required field(s)', cls.__name__, missing)
        try:
            return cls(**kwargs)
        except (ValueError, TypeError) as err:
            raise InvalidRecord('could not create record', cls.__name__, str(err)) from err

    @classmethod
    def _deserialize(cls, fld, value, ignore_unknown):
        kind = fld.metadata['kind']
        if value is None:
            if fld.metadata['required']:
                raise InvalidRecord('required field cannot be null', cls.__name__, fld.name)
            return None
        if fld.metadata['many']:
            if not isinstance(value, list):
                raise InvalidRecord('expected a list', '{}.{}'.format(cls.__name__, fld.name), value)
            return [cls._deserialize_item(fld.name, kind, item, ignore_unknown) for item in value]
        return cls._deserialize_item(fld.name, kind, value, ignore_unknown)

    @classmethod
    def _deserialize_item(cls, name, kind, value, ignore_unknown):
        if kind is InfoMap or kind is CigarUnit:
            return kind.from_dict(value)
        if isinstance(kind, type) and issubclass(kind, Record):
            return kind.from_dict(value, ignore_unknown=ignore_unknown)
        return _check_kind(cls.__name__, name, kind, value)

    def to_json(self, **kwargs):
        return json.dumps(self.to_dict(), **kwargs)

    @classmethod
    def from_json(cls, text, ignore_unknown=None):
        try:
            data = json.loads(text)
        except json.JSONDecodeError as err:
            raise InvalidRecord('unable to parse json', cls.__name__, str(err)) from err
        return cls.from_dict(data, ignore_unknown=ignore_unknown)


def phred_mapping_quality(error_probability):
    """
    convert the probability that a mapping is wrong to the mapping quality, -10 log10 P rounded to the nearest integer.
    The result is capped at :attr:`MAX_MAPPING_QUALITY` since 255 means the quality was not calculated

    Raises:
        ValueError: the probability is not in (0, 1]

    Example:
        >>> phred_mapping_quality(0.001)
        30
        >>> phred_mapping_quality(1)
        0
        >>> phred_mapping_quality(1e-40)
        254
    """
    if not 0 < error_probability <= 1:
        raise ValueError('error probability must be greater than 0 and at most 1', error_probability)
    return min(int(math.floor(-10 * math.log10(error_probability) + 0.5)), MAX_MAPPING_QUALITY)


def mapping_error_probability(mapping_quality):
    """
    the probability the mapping is wrong for a given mapping quality. None if the quality was not calculated

    Example:
        >>> mapping_error_probability(20)
        0.01
    """
    if mapping_quality is None or mapping_quality == DEFAULTS.na_mapping_quality:
        return None
    return 10 ** (-mapping_quality / 10)


@dataclass(frozen=True)
class Position(Record):
    """
    a 0-based position on a named reference sequence
    """
    reference_name: str = required(str)
    position: int = required(int)
    strand: str = optional(str, empty=STRAND.NS, choices=STRAND)

    @property
    def is_reverse(self):
        return self.strand == STRAND.NEG


@dataclass(frozen=True)
class Program(Record):
    """
    a program run on the reads of a read group, i.e. a @PG line
    """
    command_line: Optional[str] = optional(str)
    id: Optional[str] = optional(str)
    name: Optional[str] = optional(str)
    prev_program_id: Optional[str] = optional(str)
    version: Optional[str] = optional(str)


@dataclass(frozen=True)
class ReadStats(Record):
    aligned_read_count: Optional[int] = optional(int)
    unaligned_read_count: Optional[int] = optional(int)
    base_count: Optional[int] = optional(int)


@dataclass(frozen=True)
class Experiment(Record):
    """
    sequencing experiment details. Only carried along with the read group
    """
    id: Optional[str] = optional(str)
    name: Optional[str] = optional(str)
    description: Optional[str] = optional(str)
    run_time: Optional[str] = optional(str)
    molecule: Optional[str] = optional(str)
    strategy: Optional[str] = optional(str)
    selection: Optional[str] = optional(str)
    library: Optional[str] = optional(str)
    library_layout: Optional[str] = optional(str)
    instrument_model: Optional[str] = optional(str)
    sequencing_center: Optional[str] = optional(str)
    platform_unit: Optional[str] = optional(str)
    info: InfoMap = optional(InfoMap, empty=InfoMap)


@dataclass(frozen=True)
class ReadGroup(Record):
    """
    a set of reads from a single library, sequencing run and sample

    Attributes:
        created (int): epoch milliseconds
        updated (int): epoch milliseconds
        programs (tuple of Program): in the order they were run
    """
    id: str = required(str)
    dataset_id: Optional[str] = optional(str)
    name: Optional[str] = optional(str)
    description: Optional[str] = optional(str)
    sample_id: Optional[str] = optional(str)
    experiment: Optional[Experiment] = optional(Experiment)
    predicted_insert_size: Optional[int] = optional(int)
    created: Optional[int] = optional(int)
    updated: Optional[int] = optional(int)
    stats: Optional[ReadStats] = optional(ReadStats)
    programs: Tuple[Program, ...] = optional(Program, many=True)
    reference_set_id: Optional[str] = optional(str)
    info: InfoMap = optional(InfoMap, empty=InfoMap)

    def with_stats(self, stats):
        return self.replace(stats=stats)


@dataclass(frozen=True)
class ReadGroupSet(Record):
    """
    the read groups coming from a single source (e.g. a bam file). All are aligned against the same reference set
    """
    id: str = required(str)
    dataset_id: Optional[str] = optional(str)
    name: Optional[str] = optional(str)
    stats: Optional[ReadStats] = optional(ReadStats)
    read_groups: Tuple[ReadGroup, ...] = optional(ReadGroup, many=True)

    def with_stats(self, stats):
        return self.replace(stats=stats)

    def get_read_group(self, read_group_id):
        for read_group in self.read_groups:
            if read_group.id == read_group_id:
                return read_group
        raise KeyError('read group not found', read_group_id, self.id)

    def reference_set_ids(self):
        """
        Returns:
            list of str: the distinct non-null reference set ids of the read groups, in order
        """
        result = []
        for read_group in self.read_groups:
            if read_group.reference_set_id is not None and read_group.reference_set_id not in result:
                result.append(read_group.reference_set_id)
        return result


@dataclass(frozen=True)
class LinearAlignment(Record):
    """
    the mapping of a read to a single location on the reference
    """
    position: Position = required(Position)
    mapping_quality: Optional[int] = optional(int)
    cigar: Tuple[CigarUnit, ...] = optional(CigarUnit, many=True)

    @classmethod
    def from_error_probability(cls, position, error_probability, cigar=UNSET):
        return cls(position=position, mapping_quality=phred_mapping_quality(error_probability), cigar=cigar)

    def error_probability(self):
        return mapping_error_probability(self.mapping_quality)

    def reference_span(self):
        return _cigar.reference_span(self.cigar)

    def query_span(self):
        return _cigar.query_span(self.cigar)

    def reference_end(self):
        """
        Returns:
            int: the 0-based exclusive end of the alignment on the reference
        """
        return self.position.position + self.reference_span()

    def cigar_string(self):
        return _cigar.convert_cigar_to_string(self.cigar)


@dataclass(frozen=True)
class ReadAlignment(Record):
    """
    a single read, aligned or not. Alignments of the same physical template share the fragment name
    """
    read_group_id: str = required(str)
    fragment_name: str = required(str)
    id: Optional[str] = optional(str)
    proper_placement: Optional[bool] = optional(bool)
    duplicate_fragment: Optional[bool] = optional(bool)
    number_reads: Optional[int] = optional(int)
    fragment_length: Optional[int] = optional(int)
    read_number: Optional[int] = optional(int)
    failed_vendor_quality_checks: Optional[bool] = optional(bool)
    alignment: Optional[LinearAlignment] = optional(LinearAlignment)
    secondary_alignment: Optional[bool] = optional(bool)
    supplementary_alignment: Optional[bool] = optional(bool)
    aligned_sequence: Optional[str] = optional(str)
    aligned_quality: Tuple[int, ...] = optional(int, many=True)
    next_mate_position: Optional[Position] = optional(Position)
    info: InfoMap = optional(InfoMap, empty=InfoMap)

    @property
    def is_mapped(self):
        return self.alignment is not None

    @property
    def is_secondary(self):
        """
        secondary flag, always False for unmapped reads
        """
        return self.is_mapped and bool(self.secondary_alignment)

    @property
    def is_supplementary(self):
        """
        supplementary flag, always False for unmapped reads
        """
        return self.is_mapped and bool(self.supplementary_alignment)

    @property
    def is_primary(self):
        return not self.is_secondary and not self.is_supplementary

    def key(self):
        """
        key identifying the alignment when no id was assigned
        """
        return (self.read_group_id, self.fragment_name, self.read_number, self.is_secondary, self.is_supplementary)

    def label(self):
        if self.id is not None:
            return self.id
        return '{}:{}[{}]'.format(self.read_group_id, self.fragment_name, self.read_number)

    def cigar(self):
        return () if self.alignment is None else self.alignment.cigar

"""
module responsible for small utility functions and constants used throughout the alignmodel package
"""
import os

PROGNAME = 'alignmodel'
EXIT_OK = 0
EXIT_ERROR = 1


def cast_boolean(input_value):
    """
    cast a string-like flag to a boolean

    Example:
        >>> cast_boolean('yes')
        True
        >>> cast_boolean('0')
        False
    """
    value = str(input_value).lower()
    if value in ['t', 'true', '1', 'y', 'yes', '+']:
        return True
    elif value in ['f', 'false', '0', 'n', 'no', '-']:
        return False
    raise TypeError('casting to boolean failed', input_value)


class Namespace:
    """
    enum-like holder for module constants and for typed, documented default settings

    Example:
        >>> nspace = Namespace(thing=1, otherthing=2)
        >>> nspace.thing
        1
        >>> 'otherthing' in nspace
        True
    """

    def __init__(self, **kwargs):
        object.__setattr__(self, '_defns', {})
        object.__setattr__(self, '_types', {})
        object.__setattr__(self, '_members', {})
        for attr, val in kwargs.items():
            self.add(attr, val)

    def __repr__(self):
        return '{}({})'.format(self.__class__.__name__, ', '.join(sorted(['{}={}'.format(k, repr(v)) for k, v in self.items()])))

    def get_env_name(self, attr):
        """
        Example:
            >>> Namespace().get_env_name('strict')
            'ALIGNMODEL_STRICT'
        """
        return '{}_{}'.format(PROGNAME, attr).upper()

    def is_env_overwritable(self, attr):
        return False

    def __getattr__(self, attr):
        members = object.__getattribute__(self, '_members')
        if attr not in members:
            raise AttributeError('{} has no member {}'.format(self.__class__.__name__, attr))
        if self.is_env_overwritable(attr):
            env = os.environ.get(self.get_env_name(attr))
            if env is not None:
                return self._types[attr](env.strip())
        return members[attr]

    def __getitem__(self, key):
        return getattr(self, key)

    def __setattr__(self, attr, val):
        raise AttributeError('namespace members are added with add', attr)

    def __contains__(self, attr):
        return attr in self._members

    def keys(self):
        return list(self._members)

    def values(self):
        return [self[k] for k in self._members]

    def items(self):
        return [(k, self[k]) for k in self._members]

    def enforce(self, value):
        """
        checks that the current namespace has a given value

        Returns:
            the input value

        Raises:
            KeyError: the value did not exist

        Example:
            >>> STRAND.enforce('+')
            '+'
        """
        if value not in self.values():
            raise KeyError('value {0} is not a valid member of '.format(repr(value)), self.values())
        return value

    def reverse(self, value):
        """
        for a given value, return the associated key

        Raises:
            KeyError: the value is not unique
            KeyError: the value is not assigned

        Example:
            >>> CIGAR.reverse(2)
            'D'
        """
        result = [key for key in self.keys() if self[key] == value]
        if len(result) > 1:
            raise KeyError('could not reverse, the mapping is not unique', value, result)
        elif not result:
            raise KeyError('input value is not assigned to a key', value)
        return result[0]

    def define(self, attr):
        """
        Raises:
            KeyError: the attribute was added without a definition
        """
        return self._defns[attr]

    def add(self, attr, value, defn=None, cast_type=None):
        """
        Add an attribute to the name space

        Args:
            attr (str): name of the attribute being added
            value: the value of the attribute
            defn (str): the definition, used in the help menus
            cast_type (callable): the function used to read the value from its environment variable
        """
        if attr.startswith('_') or attr in self._members:
            raise AttributeError('cannot add private or existing attribute', attr)
        cast_type = cast_type or type(value)
        self._types[attr] = cast_boolean if cast_type == bool else cast_type
        if defn:
            self._defns[attr] = defn
        self._members[attr] = value


SUBCOMMAND = Namespace(VALIDATE='validate', GROUP='group')
""":class:`Namespace`: holds controlled vocabulary for allowed pipeline stage values

- ``validate``: check records and report violations
- ``group``: assemble per-fragment views of alignments
"""

STRAND = Namespace(POS='+', NEG='-', NS='?')
""":class:`Namespace`: holds controlled vocabulary for allowed strand values

- ``POS``: the forward/positive strand
- ``NEG``: the reverse/negative strand
- ``NS``: strand is not-specified
"""

CIGAR = Namespace(M=0, I=1, D=2, N=3, S=4, H=5, P=6, EQ=7, X=8)  # noqa
""":class:`Namespace`: Enum-like. For readable cigar values, same codes as pysam cigartuples

- ``M``: alignment match (can be a sequence match or mismatch)
- ``I``: insertion to the reference
- ``D``: deletion from the reference
- ``N``: skipped region from the reference
- ``S``: soft clipping (clipped sequences present in SEQ)
- ``H``: hard clipping (clipped sequences NOT present in SEQ)
- ``P``: padding (silent deletion from padded reference)
- ``EQ``: sequence match (=)
- ``X``: sequence mismatch

note: descriptions are taken from the `samfile documentation <https://samtools.github.io/hts-specs/SAMv1.pdf>`_
"""

CIGAR_OPERATION = Namespace(
    ALIGNMENT_MATCH=CIGAR.M,
    INSERT=CIGAR.I,
    DELETE=CIGAR.D,
    SKIP=CIGAR.N,
    CLIP_SOFT=CIGAR.S,
    CLIP_HARD=CIGAR.H,
    PAD=CIGAR.P,
    SEQUENCE_MATCH=CIGAR.EQ,
    SEQUENCE_MISMATCH=CIGAR.X,
)
""":class:`Namespace`: serialized names of the cigar operations, mapped to their :attr:`CIGAR` codes"""

NA_MAPPING_QUALITY = 255
""":class:`int`: mapping quality value to indicate mapping was not performed/calculated"""

MAX_MAPPING_QUALITY = NA_MAPPING_QUALITY - 1
""":class:`int`: highest mapping quality computed from an error probability"""

SAM_FLAG = Namespace(
    PAIRED=0x1,
    PROPER_PAIR=0x2,
    UNMAPPED=0x4,
    MATE_UNMAPPED=0x8,
    REVERSE=0x10,
    MATE_REVERSE=0x20,
    FIRST_IN_PAIR=0x40,
    SECOND_IN_PAIR=0x80,
    SECONDARY=0x100,
    QC_FAIL=0x200,
    DUPLICATE=0x400,
    SUPPLEMENTARY=0x800,
)
""":class:`Namespace`: bits of the SAM FLAG field"""

VIOLATION = Namespace(
    INVALID_CIGAR='InvalidCigar',
    UNKNOWN_READ_GROUP='UnknownReadGroup',
    READ_NUMBER_OUT_OF_RANGE='ReadNumberOutOfRange',
    QUALITY_LENGTH_MISMATCH='QualityLengthMismatch',
    DUPLICATE_PRIMARY_ALIGNMENT='DuplicatePrimaryAlignment',
    REFERENCE_SET_CONFLICT='ReferenceSetConflict',
    MISSING_REFERENCE_SET='MissingReferenceSet',
    INVALID_STATS='InvalidStats',
    DUPLICATE_READ_GROUP='DuplicateReadGroup',
    INVALID_TIMESTAMPS='InvalidTimestamps',
    INVALID_MAPPING_QUALITY='InvalidMappingQuality',
    INVALID_QUALITY='InvalidQuality',
    CIGAR_SEQUENCE_MISMATCH='CigarSequenceMismatch',
)
""":class:`Namespace`: the kinds of problem the validator reports

- ``InvalidCigar``: a cigar has a non-positive length, an unknown operation or a misplaced hard clip
- ``UnknownReadGroup``: the read group id of an alignment does not resolve
- ``ReadNumberOutOfRange``: read number is negative or not less than the number of reads
- ``QualityLengthMismatch``: base qualities and aligned sequence differ in length
- ``DuplicatePrimaryAlignment``: more than one primary alignment for a single read
- ``ReferenceSetConflict``: read groups of a set point at different reference sets
- ``MissingReferenceSet``: a read group with mapped alignments has no reference set
- ``InvalidStats``: a negative count
- ``DuplicateReadGroup``: two read groups in a set share an id
- ``InvalidTimestamps``: updated is before created, or a timestamp is negative
- ``InvalidMappingQuality``: mapping quality outside of 0-255
- ``InvalidQuality``: a negative base quality
- ``CigarSequenceMismatch``: the query length of the cigar does not match the aligned sequence
"""

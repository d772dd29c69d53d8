class InvalidCigar(Exception):
    """
    raised when a cigar cannot be used for a computation. For example an operation
    with a non-positive length or a hard clip in the middle of the alignment
    """
    pass


class InvalidRecord(Exception):
    """
    raised when a serialized record cannot be read. For example a required field is missing
    """
    pass


class AmbiguousPrimary(Exception):
    """
    raised when grouping alignments finds more than one primary alignment for a single read

    Attributes:
        conflicts (list): the (fragment_name, read_number) keys with more than one primary alignment
    """

    def __init__(self, conflicts):
        self.conflicts = list(conflicts)
        Exception.__init__(self, 'multiple primary alignments for reads', self.conflicts)


class ValidationError(Exception):
    """
    raised by strict checking when a record has one or more violations

    Attributes:
        violations (list): the :class:`~alignmodel.validate.base.Violation` objects found
    """

    def __init__(self, violations):
        self.violations = list(violations)
        Exception.__init__(
            self, '{} violation(s): {}'.format(len(self.violations), ', '.join(sorted({v.kind for v in self.violations})))
        )

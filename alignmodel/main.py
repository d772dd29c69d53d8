#!python
import argparse
import json
import logging
import sys

from . import __version__
from .config import DEFAULTS
from .constants import EXIT_ERROR, EXIT_OK, SUBCOMMAND, VIOLATION
from .error import AmbiguousPrimary, InvalidRecord
from .fragment import group_by_fragment
from .records import ReadAlignment, ReadGroupSet
from .util import LOG, log_arguments
from .validate import ValidationContext, validate, validate_all


def load_input(filename):
    """
    read a json document of read group sets and alignments

    Returns:
        tuple of list of ReadGroupSet and list of ReadAlignment

    Raises:
        InvalidRecord: the document or one of its records is malformed
    """
    with open(filename, 'r') as fh:
        try:
            content = json.load(fh)
        except json.JSONDecodeError as err:
            raise InvalidRecord('unable to parse json', filename, str(err)) from err
    if not isinstance(content, dict):
        raise InvalidRecord('expected an object with readGroupSets and alignments', filename)
    for key in ['readGroupSets', 'alignments']:
        if not isinstance(content.get(key) or [], list):
            raise InvalidRecord('expected a list', key, filename)
    read_group_sets = [ReadGroupSet.from_dict(r) for r in content.get('readGroupSets') or []]
    alignments = [ReadAlignment.from_dict(r) for r in content.get('alignments') or []]
    LOG('loaded', len(read_group_sets), 'read group set(s) and', len(alignments), 'alignment(s) from', filename)
    return read_group_sets, alignments


def validate_main(inputs, strict=False, **kwargs):
    """
    report the violations for each input. Returns the exit code
    """
    total = 0
    for filename in inputs:
        read_group_sets, alignments = load_input(filename)
        violations = validate_all(read_group_sets, alignments)
        for violation in violations:
            LOG(str(violation), level=logging.WARNING if not strict else logging.ERROR, indent_level=1)
        LOG(filename, ':', len(violations), 'violation(s)')
        total += len(violations)
    if total and strict:
        return EXIT_ERROR
    return EXIT_OK


def group_main(inputs, output=None, **kwargs):
    """
    write a json summary of the fragments of each input. Returns the exit code
    """
    summary = {}
    returncode = EXIT_OK
    for filename in inputs:
        read_group_sets, alignments = load_input(filename)
        context = ValidationContext(read_group_sets)
        unknown = [v for v in validate(alignments, context) if v.kind == VIOLATION.UNKNOWN_READ_GROUP]
        for violation in unknown:
            LOG(str(violation), level=logging.WARNING, indent_level=1)
        try:
            groups = group_by_fragment(alignments)
        except AmbiguousPrimary as err:
            LOG('cannot group', filename, '- reads with multiple primary alignments:', err.conflicts, level=logging.ERROR)
            returncode = EXIT_ERROR
            continue
        summary[filename] = {
            name: {
                str(read_number): {
                    'primary': view[read_number].primary.label() if view[read_number].primary is not None else None,
                    'others': [read.label() for read in view[read_number].others],
                }
                for read_number in view.read_numbers
            }
            for name, view in groups.items()
        }
    content = json.dumps(summary, indent=2)
    if output:
        with open(output, 'w') as fh:
            fh.write(content + '\n')
    else:
        print(content)
    return returncode


def main(argv=None):
    """
    sets up the parser and runs the subcommand
    """
    if argv is None:
        argv = sys.argv[1:]
    parser = argparse.ArgumentParser(formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    parser.add_argument('-v', '--version', action='version', version='%(prog)s version ' + __version__)
    parser.add_argument(
        '--log_level', default='INFO', choices=['INFO', 'DEBUG', 'WARNING', 'ERROR'], help='level of logging to output')
    subp = parser.add_subparsers(dest='command', title='subcommands')
    subp.required = True

    validate_parser = subp.add_parser(SUBCOMMAND.VALIDATE, help='report violations for read group sets and alignments')
    validate_parser.add_argument('inputs', nargs='+', help='json file(s) with readGroupSets and alignments')
    validate_parser.add_argument(
        '--strict', action='store_true', default=DEFAULTS.strict, help=DEFAULTS.define('strict'))

    group_parser = subp.add_parser(SUBCOMMAND.GROUP, help='summarize the alignments of each fragment')
    group_parser.add_argument('inputs', nargs='+', help='json file(s) with readGroupSets and alignments')
    group_parser.add_argument('-o', '--output', help='file to write the summary to, defaults to stdout')

    args = parser.parse_args(argv)
    logging.basicConfig(format='{message}', style='{', level=getattr(logging, args.log_level))
    log_arguments(args)

    try:
        if args.command == SUBCOMMAND.VALIDATE:
            return validate_main(**vars(args))
        return group_main(**vars(args))
    except InvalidRecord as err:
        LOG('invalid input:', err, level=logging.ERROR)
        return EXIT_ERROR


if __name__ == '__main__':
    sys.exit(main())

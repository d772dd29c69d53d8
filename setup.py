import os

from setuptools import find_packages, setup

VERSION = '1.0.0'


# HSTLIB is a dependency for pysam.
# The cram file libraries fail for some OS versions and alignmodel does not use cram files so we disable these options
os.environ['HTSLIB_CONFIGURE_OPTIONS'] = '--disable-lzma --disable-bz2 --disable-libcurl'


TEST_REQS = [
    'coverage>=4.2',
    'pytest',
    'pytest-cov',
]


INSTALL_REQS = [
    'biopython>=1.78',
    'pysam>=0.15.3',
]


setup(
    name='alignmodel',
    version='{}'.format(VERSION),
    packages=find_packages(exclude=['tests', 'tests.*']),
    description='Data model, validation and fragment grouping for SAM-style read alignments',
    install_requires=INSTALL_REQS,
    extras_require={
        'test': TEST_REQS,
        'dev': ['black', 'flake8'] + TEST_REQS,
    },
    tests_require=TEST_REQS,
    python_requires='>=3.7',
    test_suite='tests',
    entry_points={
        'console_scripts': [
            'alignmodel = alignmodel.main:main',
        ]
    },
)
